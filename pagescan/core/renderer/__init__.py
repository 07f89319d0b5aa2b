"""Page rendering module."""

from pagescan.core.renderer.pdfium_page_renderer import PdfiumPageRenderer, PdfiumPageHandle

__all__ = [
    'PdfiumPageRenderer',
    'PdfiumPageHandle'
]
