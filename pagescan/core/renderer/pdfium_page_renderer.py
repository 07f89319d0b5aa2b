"""
Pdfium Page Renderer Implementation.

Rasterizes PDF pages with pypdfium2. Output images are BGR numpy arrays so
they can be passed straight to the OpenCV based image operations and decoders.

pdfium is not thread safe: all calls into a document, including the release of
pages and bitmaps, are serialized with a renderer-wide lock so pages of one
file can be scanned from worker threads.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from pagescan.core.errors import RenderError
from pagescan.core.interfaces.page_renderer_interface import IPageRenderer, PageImage


@dataclass(frozen=True)
class PdfiumPageHandle:
    """Opaque handle for one page of an open document."""
    document: Any
    pageNumber: int  # 1-indexed


class PdfiumPageRenderer(IPageRenderer):
    """
    IPageRenderer backed by pypdfium2.

    Scale 1.0 renders at 72 dpi (PDF points).
    """

    def __init__(
        self,
        grayscale: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize PdfiumPageRenderer.

        Args:
            grayscale: Render single-channel images instead of BGR.
            logger: Logger instance for debug output.
        """
        self._grayscale = grayscale
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()

    def _requirePdfium(self):
        try:
            import pypdfium2 as pdfium

            return pdfium
        except ImportError as e:
            raise RuntimeError(
                "Missing dependency: pypdfium2 is required for page rendering."
            ) from e

    def openDocument(self, path: str) -> Any:
        pdfium = self._requirePdfium()
        try:
            with self._lock:
                document = pdfium.PdfDocument(str(path))
        except (pdfium.PdfiumError, OSError) as e:
            raise RenderError(f"Cannot open document {path}: {e}") from e
        self._logger.debug(f"Opened document: {path}")
        return document

    def getPageCount(self, document: Any) -> int:
        with self._lock:
            return len(document)

    def getPageHandle(self, document: Any, pageNumber: int) -> PdfiumPageHandle:
        pageCount = self.getPageCount(document)
        if pageNumber < 1 or pageNumber > pageCount:
            raise RenderError(f"Page out of range: {pageNumber} (1..{pageCount})")
        return PdfiumPageHandle(document=document, pageNumber=pageNumber)

    def renderPage(
        self,
        pageHandle: Any,
        scale: float,
        rotationDegrees: int = 0
    ) -> PageImage:
        if scale <= 0:
            raise RenderError(f"Invalid render scale: {scale}", scale, rotationDegrees)
        rotation = int(rotationDegrees) % 360
        if rotation not in (0, 90, 180, 270):
            raise RenderError(
                f"Unsupported rotation: {rotationDegrees}", scale, rotationDegrees
            )

        pdfium = self._requirePdfium()
        try:
            with self._lock:
                page = pageHandle.document[pageHandle.pageNumber - 1]
                bitmap = None
                try:
                    bitmap = page.render(
                        scale=scale,
                        rotation=rotation,
                        grayscale=self._grayscale
                    )
                    # Copy out of the pdfium buffer before the bitmap is released
                    pixels = np.array(bitmap.to_numpy(), copy=True)
                finally:
                    # Bitmap and page are released while the lock is held
                    if bitmap is not None:
                        bitmap.close()
                    page.close()
        except (pdfium.PdfiumError, MemoryError, ValueError) as e:
            raise RenderError(
                f"Cannot render page {pageHandle.pageNumber} at scale {scale}: {e}",
                scale,
                rotationDegrees
            ) from e

        if pixels.ndim == 3 and pixels.shape[2] == 4:
            pixels = np.ascontiguousarray(pixels[:, :, :3])
        elif pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]

        self._logger.debug(
            f"Rendered page {pageHandle.pageNumber} at scale {scale} "
            f"(rotation={rotation}): {pixels.shape[1]}x{pixels.shape[0]}"
        )
        return PageImage(pixels=pixels, renderScale=scale)

    def closeDocument(self, document: Any) -> None:
        with self._lock:
            document.close()
