"""
Code Decoder Interface Module.

This module defines the interface and data classes for the raw decode
primitive: "decode this pixel region, return zero or more hits".
Follows the Interface Segregation Principle (ISP) from SOLID.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List, Tuple
import numpy as np


# Code type families by canonical (zxing-cpp BarcodeFormat) name
MATRIX_CODE_TYPES = frozenset({
    "QRCode", "MicroQRCode", "rMQRCode", "DataMatrix", "Aztec", "PDF417", "MaxiCode"
})

LINEAR_CODE_TYPES = frozenset({
    "Code128", "Code39", "Code93", "Codabar", "EAN8", "EAN13", "UPCA", "UPCE",
    "ITF", "DataBar", "DataBarExpanded", "DataBarLimited", "DXFilmEdge"
})


def isLinearCodeType(codeType: str) -> bool:
    """Check if a code type is a one-dimensional (linear) barcode."""
    return codeType in LINEAR_CODE_TYPES


def isMatrixCodeType(codeType: str) -> bool:
    """Check if a code type is a two-dimensional (matrix) code."""
    return codeType in MATRIX_CODE_TYPES


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box in pixels.

    Attributes:
        left: X coordinate of the left edge.
        top: Y coordinate of the top edge.
        width: Box width (>= 0).
        height: Box height (>= 0).
    """
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @classmethod
    def fromPolygon(cls, polygon: List[Tuple[float, float]]) -> "BoundingBox":
        """Build the enclosing box of a polygon [(x, y), ...]."""
        xs = [p[0] for p in polygon]
        ys = [p[1] for p in polygon]
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def intersectionArea(self, other: "BoundingBox") -> float:
        """Area shared with another box (0 when they only touch or are apart)."""
        overlapW = min(self.right, other.right) - max(self.left, other.left)
        overlapH = min(self.bottom, other.bottom) - max(self.top, other.top)
        if overlapW <= 0 or overlapH <= 0:
            return 0.0
        return overlapW * overlapH

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Smallest box containing both boxes."""
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        return BoundingBox(
            left,
            top,
            max(self.right, other.right) - left,
            max(self.bottom, other.bottom) - top
        )

    def padded(self, padX: float, padY: float) -> "BoundingBox":
        """
        Expand the box on every side by a fraction of its own size.

        Args:
            padX: Fraction of the width added on the left and on the right.
            padY: Fraction of the height added on the top and on the bottom.
        """
        dx = self.width * padX
        dy = self.height * padY
        return BoundingBox(
            self.left - dx,
            self.top - dy,
            self.width + 2 * dx,
            self.height + 2 * dy
        )

    def clamped(self, imageWidth: float, imageHeight: float) -> "BoundingBox":
        """Clip the box to the image rectangle [0, imageWidth] x [0, imageHeight]."""
        left = min(max(0.0, self.left), imageWidth)
        top = min(max(0.0, self.top), imageHeight)
        right = min(max(left, self.right), imageWidth)
        bottom = min(max(top, self.bottom), imageHeight)
        return BoundingBox(left, top, right - left, bottom - top)

    def scaled(self, factor: float) -> "BoundingBox":
        """Multiply every coordinate by factor."""
        return BoundingBox(
            self.left * factor,
            self.top * factor,
            self.width * factor,
            self.height * factor
        )

    def translated(self, dx: float, dy: float) -> "BoundingBox":
        """Shift the box by (dx, dy)."""
        return BoundingBox(self.left + dx, self.top + dy, self.width, self.height)

    def toPixelRect(self) -> Tuple[int, int, int, int]:
        """Integer rect (left, top, width, height) enclosing the box."""
        left = int(np.floor(self.left))
        top = int(np.floor(self.top))
        right = int(np.ceil(self.right))
        bottom = int(np.ceil(self.bottom))
        return (left, top, right - left, bottom - top)


@dataclass(frozen=True)
class DetectionHit:
    """
    One code found by the decode primitive.

    Attributes:
        codeType: Canonical code type (e.g., "QRCode", "Code128").
        value: Decoded text, or None for a position-only hit.
        boundingBox: Position of the code in the decoded image, if known.
    """
    codeType: str
    value: Optional[str]
    boundingBox: Optional[BoundingBox] = None

    @property
    def hasValue(self) -> bool:
        return self.value is not None

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        """Deduplication key."""
        return (self.codeType, self.value)

    def withBoundingBox(self, boundingBox: Optional[BoundingBox]) -> "DetectionHit":
        return DetectionHit(self.codeType, self.value, boundingBox)


class ICodeDecoder(ABC):
    """
    Interface for the raw single-image decode primitive.

    Implementations must return an empty list when nothing is found and raise
    DecodeError only for a malformed or unreadable image buffer.
    """

    @abstractmethod
    def decode(
        self,
        image: np.ndarray,
        includeUndecoded: bool = False
    ) -> List[DetectionHit]:
        """
        Decode all codes in an image.

        Args:
            image: Input image (BGR or grayscale numpy array).
            includeUndecoded: Also report codes that were located but could
                not be decoded (value=None).

        Returns:
            List of DetectionHit with boxes in image coordinates.

        Raises:
            DecodeError: If the image buffer cannot be read.
        """
        pass

    @abstractmethod
    def getBackendName(self) -> str:
        """
        Get the decoder backend name for logging.

        Returns:
            str: Backend name (e.g., "zxing").
        """
        pass
