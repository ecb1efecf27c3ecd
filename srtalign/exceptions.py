"""Custom Exceptions for the SrtAlign package."""

class SrtAlignError(Exception):
    """Base class for exceptions in this package."""
    pass

class ConfigurationError(SrtAlignError):
    """Exception raised for errors in configuration loading or invalid limits."""
    pass

class InvalidTimecodeError(SrtAlignError, ValueError):
    """Exception raised when a string is not a strict HH:MM:SS,mmm timecode."""
    pass

class SrtFormatError(SrtAlignError):
    """Exception raised when an SRT file cannot be read or written."""
    pass

class ShorteningError(SrtAlignError):
    """Exception raised when the text-shortening assistant fails."""
    pass

class FileSystemError(SrtAlignError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
