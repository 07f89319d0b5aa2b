"""
Code Decoder Factory Module.

Factory function for creating code decoder instances based on backend selection.
Supports ZXing-cpp and pyzbar backends.

Follows:
- OCP (Open/Closed Principle): Easy to extend with new backends
- DIP (Dependency Inversion): Returns ICodeDecoder interface
- Factory Pattern: Encapsulates object creation logic
"""

import logging
from typing import Optional, List

from pagescan.core.interfaces.code_decoder_interface import ICodeDecoder


logger = logging.getLogger(__name__)


def createCodeDecoder(
    backend: str = "zxing",
    formats: Optional[List[str]] = None,
    # ZXing params (prefixed with 'zxing')
    zxingTryRotate: bool = True,
    zxingTryDownscale: bool = True
) -> ICodeDecoder:
    """
    Factory function to create a code decoder based on backend.

    Supports:
    - "zxing": ZXing-cpp backend (fast, reports position-only hits)
    - "pyzbar": zbar backend (requires the zbar shared library)

    Args:
        backend: Backend name ("zxing" or "pyzbar").
        formats: Code type names to read (None = all).
        zxingTryRotate: (zxing) Try rotated barcodes (90/270 degrees).
        zxingTryDownscale: (zxing) Try downscaled versions for better detection.

    Returns:
        ICodeDecoder: Decoder instance implementing ICodeDecoder interface.

    Raises:
        ValueError: If backend is invalid or not supported.
        ImportError: If required library is not installed.

    Examples:
        >>> decoder = createCodeDecoder(
        ...     backend="zxing",
        ...     formats=["QRCode", "Code128"]
        ... )
    """
    # Normalize backend name
    backend = backend.lower().strip()

    # Validate backend
    supportedBackends = getSupportedDecoderBackends()
    if backend not in supportedBackends:
        errorMsg = (
            f"Invalid decoder backend: '{backend}'. "
            f"Supported backends: {supportedBackends}"
        )
        logger.error(errorMsg)
        raise ValueError(errorMsg)

    if backend == "pyzbar":
        return _createPyzbarDecoder(formats=formats)

    return _createZxingDecoder(
        formats=formats,
        zxingTryRotate=zxingTryRotate,
        zxingTryDownscale=zxingTryDownscale
    )


def _createZxingDecoder(
    formats: Optional[List[str]],
    zxingTryRotate: bool,
    zxingTryDownscale: bool
) -> ICodeDecoder:
    """
    Create ZXing decoder instance.

    Raises:
        ImportError: If zxing-cpp is not installed.
    """
    try:
        import zxingcpp  # noqa: F401
        from pagescan.core.decoder.zxing_code_decoder import ZxingCodeDecoder

        logger.info(
            f"Creating ZXing decoder "
            f"(tryRotate={zxingTryRotate}, tryDownscale={zxingTryDownscale})"
        )

        return ZxingCodeDecoder(
            formats=formats,
            tryRotate=zxingTryRotate,
            tryDownscale=zxingTryDownscale
        )

    except ImportError as e:
        errorMsg = (
            "ZXing-cpp is not installed. "
            "Install with: pip install zxing-cpp"
        )
        logger.error(errorMsg)
        logger.error(f"Import error details: {e}")
        raise ImportError(errorMsg) from e


def _createPyzbarDecoder(formats: Optional[List[str]]) -> ICodeDecoder:
    """
    Create pyzbar decoder instance.

    Raises:
        ImportError: If pyzbar or the zbar shared library is missing.
    """
    try:
        from pagescan.core.decoder.pyzbar_code_decoder import PyzbarCodeDecoder

        logger.info("Creating pyzbar decoder")
        return PyzbarCodeDecoder(formats=formats)

    except ImportError as e:
        errorMsg = (
            "pyzbar requires the zbar shared library. "
            "Install with: pip install pyzbar (and libzbar0 on Linux)"
        )
        logger.error(errorMsg)
        logger.error(f"Import error details: {e}")
        raise ImportError(errorMsg) from e


def getSupportedDecoderBackends() -> List[str]:
    """
    Get list of supported decoder backend names.

    Returns:
        List[str]: List of backend names ["zxing", "pyzbar"].
    """
    return ["zxing", "pyzbar"]
