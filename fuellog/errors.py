"""Exception types raised by the fuel log."""


class FuelLogError(Exception):
    """Base class for errors that should be reported to the user."""


class EntryInputError(FuelLogError):
    """A manually entered or edited fuel entry is incomplete or not numeric."""


class VehicleExistsError(FuelLogError):
    """A vehicle with the requested name is already in the store."""


class VehicleNotFoundError(FuelLogError):
    """No vehicle with the requested name is in the store."""


class ImportFormatError(FuelLogError):
    """An import file could not be read as a fuel log."""


class ExportError(FuelLogError):
    """There is nothing to export."""
