"""
Page Image Operations Module

Crop, resample and rotate page images for decode attempts, and map hit
coordinates from a transformed image back onto the source page image.

Follows SRP: Only handles pixel-level geometric operations.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from pagescan.core.interfaces.code_decoder_interface import BoundingBox


logger = logging.getLogger(__name__)


_CV2_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


class PageImageTransformer:
    """
    Stateless helpers for page image transformations.

    All rotations are clockwise and restricted to multiples of 90 degrees.
    """

    @staticmethod
    def normalizeRotation(rotationDegrees: int) -> int:
        """
        Normalize a rotation to one of 0, 90, 180, 270.

        Raises:
            ValueError: If the rotation is not a multiple of 90 degrees.
        """
        normalized = int(rotationDegrees) % 360
        if normalized not in (0, 90, 180, 270):
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {rotationDegrees}")
        return normalized

    @staticmethod
    def crop(image: np.ndarray, box: BoundingBox) -> Optional[np.ndarray]:
        """
        Crop a box from an image (box is clipped to the image).

        Returns:
            Cropped view, or None if the clipped box is empty.
        """
        h, w = image.shape[:2]
        left, top, width, height = box.clamped(w, h).toPixelRect()
        right = min(left + width, w)
        bottom = min(top + height, h)
        if right <= left or bottom <= top:
            return None
        return image[top:bottom, left:right]

    @staticmethod
    def resample(image: np.ndarray, factor: float) -> np.ndarray:
        """
        Resize an image by a factor.

        Uses INTER_CUBIC when enlarging and INTER_AREA when shrinking.
        A factor within 1% of 1.0 returns the image unchanged.
        """
        if factor <= 0:
            raise ValueError(f"Resample factor must be > 0, got {factor}")
        if abs(factor - 1.0) < 0.01:
            return image

        h, w = image.shape[:2]
        newW = max(1, int(round(w * factor)))
        newH = max(1, int(round(h * factor)))
        interpolation = cv2.INTER_CUBIC if factor > 1.0 else cv2.INTER_AREA
        return cv2.resize(image, (newW, newH), interpolation=interpolation)

    @staticmethod
    def rotate(image: np.ndarray, rotationDegrees: int) -> np.ndarray:
        """Rotate an image clockwise by a multiple of 90 degrees."""
        rotation = PageImageTransformer.normalizeRotation(rotationDegrees)
        if rotation == 0:
            return image
        return cv2.rotate(image, _CV2_ROTATIONS[rotation])

    @staticmethod
    def unrotateBox(
        box: BoundingBox,
        rotatedWidth: float,
        rotatedHeight: float,
        rotationDegrees: int
    ) -> BoundingBox:
        """
        Map a box found in a rotated image back to the unrotated image.

        Args:
            box: Box in rotated image coordinates.
            rotatedWidth: Width of the rotated image.
            rotatedHeight: Height of the rotated image.
            rotationDegrees: Clockwise rotation that produced the rotated image.
        """
        rotation = PageImageTransformer.normalizeRotation(rotationDegrees)
        if rotation == 0:
            return box
        if rotation == 180:
            return BoundingBox(
                rotatedWidth - box.right,
                rotatedHeight - box.bottom,
                box.width,
                box.height
            )
        if rotation == 90:
            return BoundingBox(
                box.top,
                rotatedWidth - box.right,
                box.height,
                box.width
            )
        # 270
        return BoundingBox(
            rotatedHeight - box.bottom,
            box.left,
            box.height,
            box.width
        )
