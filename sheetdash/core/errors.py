"""Exception hierarchy for sheetdash."""


class SheetdashError(Exception):
    """Base class for every error raised by the package."""


class ConfigurationError(SheetdashError):
    """A required identifier (spreadsheet id, webhook URL) is missing or invalid."""


class SheetFetchError(SheetdashError):
    """The query endpoint could not be reached or returned an unusable body."""
