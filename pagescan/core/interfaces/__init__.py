"""Core interfaces: decode primitive and page rasterization."""

from pagescan.core.interfaces.code_decoder_interface import (
    BoundingBox,
    DetectionHit,
    ICodeDecoder
)
from pagescan.core.interfaces.page_renderer_interface import PageImage, IPageRenderer

__all__ = [
    "BoundingBox",
    "DetectionHit",
    "ICodeDecoder",
    "PageImage",
    "IPageRenderer",
]
