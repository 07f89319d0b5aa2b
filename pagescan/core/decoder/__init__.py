"""Code decoder module."""

from pagescan.core.decoder.decoder_factory import (
    createCodeDecoder,
    getSupportedDecoderBackends
)

__all__ = [
    'createCodeDecoder',
    'getSupportedDecoderBackends'
]
