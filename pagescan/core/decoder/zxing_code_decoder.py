"""
ZXing Code Decoder Implementation.

This module provides QR code and barcode decoding using the zxing-cpp library.
zxing-cpp is a high-performance C++ implementation with Python bindings.

Follows the Single Responsibility Principle (SRP) from SOLID.
"""

import logging
from typing import Optional, List

import cv2
import numpy as np

from pagescan.core.errors import DecodeError
from pagescan.core.interfaces.code_decoder_interface import (
    ICodeDecoder,
    DetectionHit,
    BoundingBox
)


class ZxingCodeDecoder(ICodeDecoder):
    """
    Code decoder using zxing-cpp library.

    Decodes every supported symbol in an image and, on request, also reports
    symbols that were located but failed to decode (position-only hits).
    """

    BACKEND_NAME = "zxing"

    def __init__(
        self,
        formats: Optional[List[str]] = None,
        tryRotate: bool = True,
        tryDownscale: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize ZxingCodeDecoder.

        Args:
            formats: zxing-cpp format names to read (e.g., ["QRCode", "Code128"]).
                     None or empty reads every format.
            tryRotate: Try rotated barcodes (90/270 degrees)
            tryDownscale: Try downscaled versions for better detection
            logger: Logger instance for debug output
        """
        self._formats = list(formats or [])
        self._tryRotate = tryRotate
        self._tryDownscale = tryDownscale
        self._logger = logger or logging.getLogger(__name__)
        self._zxingcpp = None

        self._logger.info(
            f"ZxingCodeDecoder initialized "
            f"(formats={self._formats or 'all'}, "
            f"tryRotate={tryRotate}, tryDownscale={tryDownscale})"
        )

    def getBackendName(self) -> str:
        return self.BACKEND_NAME

    def _ensureZxing(self) -> None:
        """Lazily import zxing-cpp module."""
        if self._zxingcpp is None:
            try:
                import zxingcpp
                self._zxingcpp = zxingcpp
                self._logger.info("zxing-cpp module loaded successfully")
            except ImportError as e:
                self._logger.error(
                    f"Failed to import zxing-cpp. "
                    f"Please install: pip install zxing-cpp. Error: {e}"
                )
                raise

    def _buildFormats(self):
        """Map configured format names to a tuple of zxing-cpp formats."""
        if not self._formats:
            return None
        try:
            flags = [getattr(self._zxingcpp.BarcodeFormat, name) for name in self._formats]
        except AttributeError as e:
            raise ValueError(f"Unknown zxing-cpp barcode format in {self._formats}") from e
        return tuple(flags)

    def decode(
        self,
        image: np.ndarray,
        includeUndecoded: bool = False
    ) -> List[DetectionHit]:
        """
        Decode all codes in image.

        Args:
            image: Input image (BGR or grayscale)
            includeUndecoded: Also return located symbols that failed to decode

        Returns:
            List of DetectionHit (empty if nothing found)

        Raises:
            DecodeError: If zxing-cpp rejects the image buffer
        """
        self._ensureZxing()

        if image is None or image.size == 0:
            raise DecodeError("Empty image buffer")

        formats = self._buildFormats()

        try:
            # Convert BGR to grayscale if needed for better detection
            if len(image.shape) == 3:
                grayImage = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            else:
                grayImage = image

            kwargs = {
                "try_rotate": self._tryRotate,
                "try_downscale": self._tryDownscale,
            }
            if formats is not None:
                kwargs["formats"] = formats
            if includeUndecoded:
                kwargs["return_errors"] = True

            barcodes = self._zxingcpp.read_barcodes(grayImage, **kwargs)

        except (ValueError, TypeError, RuntimeError, cv2.error) as e:
            self._logger.error(f"zxing-cpp rejected image: {e}")
            raise DecodeError(f"zxing-cpp rejected image: {e}") from e

        if not barcodes:
            self._logger.debug("No code detected")
            return []

        hits: List[DetectionHit] = []
        for barcode in barcodes:
            if not barcode.valid and not includeUndecoded:
                continue

            # Extract polygon (4 corners)
            position = barcode.position
            polygon = [
                (position.top_left.x, position.top_left.y),
                (position.top_right.x, position.top_right.y),
                (position.bottom_right.x, position.bottom_right.y),
                (position.bottom_left.x, position.bottom_left.y)
            ]

            value = barcode.text if barcode.valid else None
            hit = DetectionHit(
                codeType=barcode.format.name,
                value=value,
                boundingBox=BoundingBox.fromPolygon(polygon)
            )
            self._logger.debug(f"Code detected: {hit.codeType}={value!r} @ {hit.boundingBox}")
            hits.append(hit)

        return hits
