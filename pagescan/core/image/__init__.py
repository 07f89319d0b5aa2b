"""Page image operations."""

from pagescan.core.image.image_ops import PageImageTransformer

__all__ = ['PageImageTransformer']
