"""
Page Renderer Interface Module.

Defines the rasterization capability consumed by the scan pipeline:
render one document page at a given scale and rotation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
import numpy as np


@dataclass(frozen=True)
class PageImage:
    """
    Rasterized page.

    Attributes:
        pixels: Image buffer (H x W or H x W x C, uint8).
        renderScale: Scale at which the page was rendered (1.0 = 72 dpi).
    """
    pixels: np.ndarray = field(repr=False)
    renderScale: float = 1.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        return f"PageImage({self.width}x{self.height} @ {self.renderScale})"


class IPageRenderer(ABC):
    """
    Interface for page rasterization.

    Documents and page handles are opaque to the pipeline.
    """

    @abstractmethod
    def openDocument(self, path: str) -> Any:
        """
        Open a document for rendering.

        Raises:
            RenderError: If the document cannot be opened.
        """
        pass

    @abstractmethod
    def getPageCount(self, document: Any) -> int:
        """Get the number of pages in an open document."""
        pass

    @abstractmethod
    def getPageHandle(self, document: Any, pageNumber: int) -> Any:
        """
        Get a handle for a 1-indexed page.

        Raises:
            RenderError: If the page does not exist.
        """
        pass

    @abstractmethod
    def renderPage(
        self,
        pageHandle: Any,
        scale: float,
        rotationDegrees: int = 0
    ) -> PageImage:
        """
        Render a page.

        Args:
            pageHandle: Handle from getPageHandle().
            scale: Magnification (1.0 = 72 dpi).
            rotationDegrees: Clockwise rotation (0, 90, 180, 270).

        Returns:
            PageImage rendered at the requested scale.

        Raises:
            RenderError: If the page cannot be rasterized at this scale.
        """
        pass

    @abstractmethod
    def closeDocument(self, document: Any) -> None:
        """Release an open document."""
        pass
