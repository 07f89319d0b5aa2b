"""
Pyzbar Code Decoder Implementation.

This module provides QR code and barcode decoding using the pyzbar library.
Follows the Single Responsibility Principle (SRP) and
Dependency Inversion Principle (DIP) from SOLID.
"""

import logging
from typing import Optional, List

import numpy as np
from pyzbar.pyzbar import decode, ZBarSymbol, Decoded
from pyzbar.pyzbar_error import PyZbarError

from pagescan.core.errors import DecodeError
from pagescan.core.interfaces.code_decoder_interface import (
    ICodeDecoder,
    DetectionHit,
    BoundingBox
)


# zbar symbol names -> canonical (zxing-cpp) code type names
ZBAR_TO_CODE_TYPE = {
    "QRCODE": "QRCode",
    "CODE128": "Code128",
    "CODE39": "Code39",
    "CODE93": "Code93",
    "CODABAR": "Codabar",
    "EAN8": "EAN8",
    "EAN13": "EAN13",
    "UPCA": "UPCA",
    "UPCE": "UPCE",
    "I25": "ITF",
    "DATABAR": "DataBar",
    "DATABAR_EXP": "DataBarExpanded",
    "PDF417": "PDF417",
}


class PyzbarCodeDecoder(ICodeDecoder):
    """
    Code decoder using pyzbar library.

    zbar only reports fully decoded symbols, so position-only hits are never
    produced (includeUndecoded has no effect).
    """

    BACKEND_NAME = "pyzbar"

    def __init__(
        self,
        formats: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize PyzbarCodeDecoder.

        Args:
            formats: Canonical code type names to decode (default: all zbar symbols)
            logger: Logger instance for debug output
        """
        self._logger = logger or logging.getLogger(__name__)
        self._symbolTypes = self._toSymbolTypes(formats or [])

    def getBackendName(self) -> str:
        return self.BACKEND_NAME

    def _toSymbolTypes(self, formats: List[str]) -> Optional[List[ZBarSymbol]]:
        if not formats:
            return None
        reverse = {v: k for k, v in ZBAR_TO_CODE_TYPE.items()}
        symbols = []
        for codeType in formats:
            zbarName = reverse.get(codeType)
            if zbarName is None:
                self._logger.warning(f"Code type not supported by pyzbar: {codeType}")
                continue
            symbols.append(ZBarSymbol[zbarName])
        return symbols or None

    def decode(
        self,
        image: np.ndarray,
        includeUndecoded: bool = False
    ) -> List[DetectionHit]:
        """
        Decode all codes in an image.

        Args:
            image: Input image (BGR or grayscale numpy array)
            includeUndecoded: Ignored (zbar has no position-only results)

        Returns:
            List of DetectionHit (empty if nothing found)

        Raises:
            DecodeError: If zbar rejects the image (bit depth or dimensions)
        """
        if image is None or image.size == 0:
            raise DecodeError("Empty image buffer")

        try:
            results: List[Decoded] = decode(image, symbols=self._symbolTypes)
        except (TypeError, ValueError, PyZbarError) as e:
            self._logger.error(f"pyzbar rejected image: {e}")
            raise DecodeError(f"pyzbar rejected image: {e}") from e

        if not results:
            self._logger.debug("No code detected in image")
            return []

        hits = []
        for symbol in results:
            codeType = ZBAR_TO_CODE_TYPE.get(symbol.type, symbol.type)
            text = symbol.data.decode('utf-8', errors='replace')
            rect = symbol.rect
            hits.append(DetectionHit(
                codeType=codeType,
                value=text,
                boundingBox=BoundingBox(rect.left, rect.top, rect.width, rect.height)
            ))
            self._logger.debug(f"Code detected: {codeType}={text!r}")

        return hits
