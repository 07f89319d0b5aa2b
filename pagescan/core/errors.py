"""
Page Scan Errors Module.

Exception taxonomy for the page scanning pipeline.

Per-attempt errors (RenderError, DecodeError) are always recovered locally by
the orchestrator: the attempt is recorded as failed and the ladder advances.
IncompleteResult is a terminal page outcome and is only raised when a caller
asks for it explicitly.
"""

from typing import Optional, Any


class PageScanError(Exception):
    """Base class for all page scanning errors."""
    pass


class RenderError(PageScanError):
    """
    Rasterization failed for a page at a given scale.

    Attributes:
        scale: Scale that was requested.
        rotationDegrees: Rotation that was requested.
    """

    def __init__(self, message: str, scale: float = 0.0, rotationDegrees: int = 0):
        super().__init__(message)
        self.scale = scale
        self.rotationDegrees = rotationDegrees


class DecodeError(PageScanError):
    """The decode primitive rejected an image buffer (malformed or unreadable)."""
    pass


class IncompleteResult(PageScanError):
    """
    Scan ladders were exhausted without satisfying the page expectation.

    Attributes:
        pageResult: The (still valid) PageResult, marked incomplete.
    """

    def __init__(self, message: str, pageResult: Optional[Any] = None):
        super().__init__(message)
        self.pageResult = pageResult


class StructureError(PageScanError):
    """Expected structure definition is invalid."""
    pass


class MissingPageExpectationError(StructureError):
    """A strict structure has no entry for the requested page."""

    def __init__(self, structureId: str, pageNumber: int):
        super().__init__(
            f"Structure '{structureId}' has no expectation for page {pageNumber}"
        )
        self.structureId = structureId
        self.pageNumber = pageNumber


class ConfigError(PageScanError):
    """Configuration is missing or invalid."""
    pass
