"""Custom exceptions for dumpslice."""


class DumpSliceError(Exception):
    """Base exception for dumpslice."""

    pass


class ConfigurationError(DumpSliceError):
    """Configuration error."""

    pass


class OutputDirectoryError(DumpSliceError):
    """Output directory path exists but is not a directory."""

    pass


class OutputWriteError(DumpSliceError):
    """Writing to an output file failed."""

    pass


class InputReadError(DumpSliceError):
    """Dump input could not be opened or read."""

    pass
