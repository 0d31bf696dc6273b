class HistdbImportError(Exception):
    """Base class for errors that abort an import run"""


class StreamError(HistdbImportError):
    """Reading the history file failed"""


class FormatError(HistdbImportError):
    """A history entry could not be parsed"""

    def __init__(self, message, fragment):
        super().__init__(f"{message}={fragment!r}")
        self.fragment = fragment


class StorageError(HistdbImportError):
    """Preparing, executing or committing database statements failed"""
