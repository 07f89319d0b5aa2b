import enum
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np

from pagescan.core.decoder import createCodeDecoder, getSupportedDecoderBackends
from pagescan.core.decoder.zxing_code_decoder import ZxingCodeDecoder
from pagescan.core.errors import DecodeError
from pagescan.core.interfaces.code_decoder_interface import BoundingBox

try:
    from pagescan.core.decoder import pyzbar_code_decoder
except ImportError:
    pyzbar_code_decoder = None


class _FakeFormat(enum.IntFlag):
    QRCode = 1
    Code128 = 2


def _point(x, y):
    return SimpleNamespace(x=x, y=y)


def _barcode(text, formatName="QRCode", valid=True, corners=((10, 20), (50, 22), (48, 60), (12, 58))):
    return SimpleNamespace(
        text=text,
        valid=valid,
        format=SimpleNamespace(name=formatName),
        position=SimpleNamespace(
            top_left=_point(*corners[0]),
            top_right=_point(*corners[1]),
            bottom_right=_point(*corners[2]),
            bottom_left=_point(*corners[3]),
        ),
    )


class TestZxingCodeDecoder(unittest.TestCase):
    def _decoder(self, barcodes=(), formats=None, side_effect=None):
        decoder = ZxingCodeDecoder(formats=formats, tryRotate=False, tryDownscale=True)
        readBarcodes = MagicMock(return_value=list(barcodes), side_effect=side_effect)
        decoder._zxingcpp = SimpleNamespace(read_barcodes=readBarcodes, BarcodeFormat=_FakeFormat)
        return decoder, readBarcodes

    def test_color_images_are_decoded_in_grayscale(self) -> None:
        decoder, readBarcodes = self._decoder()
        self.assertEqual(decoder.decode(np.zeros((20, 30, 3), dtype=np.uint8)), [])
        image = readBarcodes.call_args[0][0]
        self.assertEqual(image.shape, (20, 30))

    def test_decoded_hits_carry_enclosing_box(self) -> None:
        decoder, _ = self._decoder([_barcode("HELLO")])
        hits = decoder.decode(np.zeros((100, 100), dtype=np.uint8))
        self.assertEqual(len(hits), 1)
        self.assertEqual(hits[0].codeType, "QRCode")
        self.assertEqual(hits[0].value, "HELLO")
        self.assertEqual(hits[0].boundingBox, BoundingBox(10, 20, 40, 40))

    def test_undecoded_symbols_only_on_request(self) -> None:
        decoder, readBarcodes = self._decoder([_barcode("", valid=False), _barcode("OK")])
        image = np.zeros((100, 100), dtype=np.uint8)

        hits = decoder.decode(image)
        self.assertEqual([h.value for h in hits], ["OK"])
        self.assertNotIn("return_errors", readBarcodes.call_args[1])

        hits = decoder.decode(image, includeUndecoded=True)
        self.assertEqual([h.value for h in hits], [None, "OK"])
        self.assertTrue(readBarcodes.call_args[1]["return_errors"])

    def test_formats_and_options_are_forwarded(self) -> None:
        decoder, readBarcodes = self._decoder(formats=["QRCode", "Code128"])
        decoder.decode(np.zeros((10, 10), dtype=np.uint8))
        kwargs = readBarcodes.call_args[1]
        self.assertEqual(kwargs["formats"], (_FakeFormat.QRCode, _FakeFormat.Code128))
        self.assertFalse(kwargs["try_rotate"])
        self.assertTrue(kwargs["try_downscale"])

    def test_unknown_format_is_rejected(self) -> None:
        decoder, _ = self._decoder(formats=["NotAFormat"])
        with self.assertRaises(ValueError):
            decoder.decode(np.zeros((10, 10), dtype=np.uint8))

    def test_rejected_buffers_raise_decode_error(self) -> None:
        decoder, _ = self._decoder(side_effect=ValueError("bad stride"))
        with self.assertRaises(DecodeError):
            decoder.decode(np.zeros((10, 10), dtype=np.uint8))
        with self.assertRaises(DecodeError):
            decoder.decode(np.zeros((0, 10), dtype=np.uint8))


@unittest.skipIf(pyzbar_code_decoder is None, "zbar shared library not available")
class TestPyzbarCodeDecoder(unittest.TestCase):
    def test_symbols_are_mapped_to_canonical_types(self) -> None:
        symbol = SimpleNamespace(
            type="CODE128",
            data=b"12345",
            rect=SimpleNamespace(left=5, top=6, width=70, height=20),
        )
        with patch.object(pyzbar_code_decoder, "decode", return_value=[symbol]):
            hits = pyzbar_code_decoder.PyzbarCodeDecoder().decode(np.zeros((50, 100), dtype=np.uint8))
        self.assertEqual(len(hits), 1)
        self.assertEqual(hits[0].codeType, "Code128")
        self.assertEqual(hits[0].value, "12345")
        self.assertEqual(hits[0].boundingBox, BoundingBox(5, 6, 70, 20))

    def test_type_errors_raise_decode_error(self) -> None:
        with patch.object(pyzbar_code_decoder, "decode", side_effect=TypeError("bad")):
            with self.assertRaises(DecodeError):
                pyzbar_code_decoder.PyzbarCodeDecoder().decode(np.zeros((5, 5), dtype=np.uint8))

    def test_zbar_errors_raise_decode_error(self) -> None:
        from pyzbar.pyzbar_error import PyZbarError

        with patch.object(pyzbar_code_decoder, "decode", side_effect=PyZbarError("Unsupported bits-per-pixel")):
            with self.assertRaises(DecodeError):
                pyzbar_code_decoder.PyzbarCodeDecoder().decode(np.zeros((5, 5), dtype=np.uint8))


class TestDecoderFactory(unittest.TestCase):
    def test_supported_backends(self) -> None:
        self.assertEqual(getSupportedDecoderBackends(), ["zxing", "pyzbar"])

    def test_unknown_backend_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            createCodeDecoder(backend="wechat")


if __name__ == "__main__":
    unittest.main()
