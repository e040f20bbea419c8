"""Exceptions and advisory warnings raised by the in-memory filesystem."""


class FSError(OSError):
    """Base class for every filesystem error"""


class NotFound(FSError, FileNotFoundError):
    """Referenced file or directory does not exist"""


class AlreadyExists(FSError, FileExistsError):
    """Create or mkdir collided with an existing entry"""


class OutOfBounds(FSError, IndexError):
    """Position or range lies outside the content buffer"""


class InvalidArgument(FSError, ValueError):
    """Empty or reserved name, negative size, unrepresentable content"""


class SnapshotError(FSError):
    """Snapshot text could not be parsed"""

    def __init__(self, message: str, line_no: int = 0):
        if line_no:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


class FSWarning(UserWarning):
    """Non-fatal condition; the operation still completes"""


class AlreadyOpen(FSWarning):
    pass


class TruncatedRead(FSWarning):
    pass


class NoOpTruncate(FSWarning):
    pass


class AlreadyAtRoot(FSWarning):
    pass
