"""File access errors raised by the compilation world."""

import errno
from pathlib import Path
from typing import Optional


class FileError(Exception):
    """
    Base class for failures to provide a file to the compiler.

    File errors are cached exactly like successful reads, so they must compare
    and fingerprint by content: the class plus its message.

    Attributes:
        message: Error description
        path: Filesystem path the error refers to (None when not tied to a path)
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        self.message = message
        self.path = path

        parts = [message]
        if path is not None:
            parts.append(f"(path: {path})")

        super().__init__(" ".join(parts))

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, str(self)))

    @classmethod
    def from_os_error(cls, error: OSError, path: Path) -> "FileError":
        """Map an OSError raised while reading path to the matching FileError."""
        if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
            return FileNotFound("file not found", path)
        if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
            return AccessDenied("failed to load file (access denied)", path)
        if isinstance(error, IsADirectoryError) or error.errno == errno.EISDIR:
            return IsDirectory("failed to load file (is a directory)", path)
        return OtherIoError(f"failed to load file ({error.strerror or error})", path)


class FileNotFound(FileError):
    """The file does not exist."""


class AccessDenied(FileError):
    """The file exists but may not be read, or its path escapes the project root."""


class IsDirectory(FileError):
    """The path points to a directory."""


class InvalidUtf8(FileError):
    """The file is not valid UTF-8 and cannot be used as a source."""


class PackageError(FileError):
    """A package could not be found, downloaded, or extracted."""


class OtherIoError(FileError):
    """Any other I/O failure."""
