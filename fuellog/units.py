"""Unit systems and conversion of stored entries between them."""

import logging
from enum import Enum
from typing import List, Optional

from .entry import RawEntry, parse_number

logger = logging.getLogger(__name__)

KM_TO_MILES = 0.621371
LITERS_TO_GALLONS = 0.264172

DISTANCE_DECIMALS = 2
VOLUME_DECIMALS = 2
PRICE_DECIMALS = 3


class UnitSystem(Enum):
    """Measurement convention for stored values and derived statistics."""

    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def distance_unit(self) -> str:
        return "mi" if self is UnitSystem.IMPERIAL else "km"

    @property
    def volume_unit(self) -> str:
        return "gal" if self is UnitSystem.IMPERIAL else "L"

    @property
    def efficiency_unit(self) -> str:
        return "MPG" if self is UnitSystem.IMPERIAL else "L/100km"

    @property
    def higher_efficiency_is_better(self) -> bool:
        """MPG grows with efficiency, L/100km shrinks."""
        return self is UnitSystem.IMPERIAL

    @classmethod
    def parse(cls, value: str) -> "UnitSystem":
        """Look up a unit system by name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown unit system '{value}' (expected 'metric' or 'imperial')"
            ) from None


def _scale(value, factor: float, decimals: int, invert: bool = False):
    number = parse_number(value)
    if number is None:
        # Leave unparseable values for the derivation pass to flag
        return value
    scaled = number / factor if invert else number * factor
    return round(scaled, decimals)


def convert_entry(
    entry: RawEntry, from_unit: UnitSystem, to_unit: UnitSystem
) -> RawEntry:
    """
    Convert one entry between unit systems.

    Price is currency per unit volume, so it moves opposite to the volume
    factor: a gallon holds ~3.785 liters, so its price is ~3.785 times the
    price per liter.
    """
    if from_unit is to_unit:
        return entry
    to_imperial = to_unit is UnitSystem.IMPERIAL
    return RawEntry(
        date=entry.date,
        odometer_reading=_scale(
            entry.odometer_reading,
            KM_TO_MILES,
            DISTANCE_DECIMALS,
            invert=not to_imperial,
        ),
        fuel=_scale(
            entry.fuel, LITERS_TO_GALLONS, VOLUME_DECIMALS, invert=not to_imperial
        ),
        price=_scale(entry.price, LITERS_TO_GALLONS, PRICE_DECIMALS, invert=to_imperial),
    )


def convert_entries(
    entries: List[RawEntry], from_unit: UnitSystem, to_unit: UnitSystem
) -> List[RawEntry]:
    """Convert every entry; values are rounded here because they get persisted."""
    if from_unit is not to_unit:
        logger.info(
            "Converting %d entries from %s to %s",
            len(entries),
            from_unit.value,
            to_unit.value,
        )
    return [convert_entry(e, from_unit, to_unit) for e in entries]


def default_unit_system(
    configured: Optional[str] = None, lang: Optional[str] = None
) -> UnitSystem:
    """
    Unit system for a brand-new store.

    An explicit setting wins; otherwise US English locales get imperial.
    """
    if configured:
        return UnitSystem.parse(configured)
    if lang and lang.replace("-", "_").lower().startswith("en_us"):
        return UnitSystem.IMPERIAL
    return UnitSystem.METRIC
