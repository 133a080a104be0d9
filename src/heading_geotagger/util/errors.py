from __future__ import annotations

class HeadingGeotaggerError(Exception):
    """Base exception for the application."""

class UsageError(HeadingGeotaggerError):
    """Raised when the command line is malformed; nothing has been processed yet."""

class MetadataReadError(HeadingGeotaggerError):
    """Raised when a photo's EXIF block cannot be read or decoded."""

class MetadataWriteError(HeadingGeotaggerError):
    """Raised when EXIF cannot be written back into a photo."""

class ExifToolError(HeadingGeotaggerError):
    """Raised when ExifTool invocation fails."""
