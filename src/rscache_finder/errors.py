"""Typed exceptions for rs-cache-finder."""


class CacheFinderError(Exception):
    """Base exception for rs-cache-finder failures."""


class PatternError(CacheFinderError):
    """Raised when a match pattern is not a valid regular expression."""


class InputPathError(CacheFinderError):
    """Raised when the search path is missing or not a directory."""


class OutputExistsError(CacheFinderError):
    """Raised when the output archive path already exists."""


class OutputCreateError(CacheFinderError):
    """Raised when the output archive cannot be created."""


class ArchiveWriteError(CacheFinderError):
    """Raised when writing to the output archive fails. Always fatal."""


class EntryError(CacheFinderError):
    """Base for failures local to one filesystem entry.

    These are reported and the scan continues with the next entry.
    """

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path


class FilesystemError(EntryError):
    """Raised for permission denied, vanished files and broken links."""


class ArchiveReadError(EntryError):
    """Raised when a source file cannot be read after its header was written."""


class ArchiveNameError(EntryError):
    """Raised when an entry name does not fit the ustar name field."""


class ArchiveSizeError(EntryError):
    """Raised when a file is too large for the ustar size field."""
