"""Custom exceptions for neat-folder."""


class NeatFolderError(Exception):
    """Base exception for neat-folder errors."""
    pass


class InaccessibleDirectoryError(NeatFolderError):
    """Raised when the directory to organize cannot be read or written."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Cannot access directory: {path}")


class ConfigurationError(NeatFolderError):
    """Raised when there's an error in configuration."""
    pass


class FileOperationError(NeatFolderError):
    """Raised when file operations fail."""
    pass


class HistoryError(NeatFolderError):
    """Raised when an operation record cannot be written to the history store."""
    pass
