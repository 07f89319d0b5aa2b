import json
import shutil
import tempfile
import unittest
from pathlib import Path

from pagescan.core.errors import MissingPageExpectationError, StructureError
from pagescan.core.structure.expected_structure import (
    ExpectedStructure,
    PageExpectation,
    loadStructureFile
)


def _structure(**overrides):
    data = {
        "structureId": "invoice",
        "expectedPageCount": 3,
        "pages": [
            {
                "pageNumber": 1,
                "totalCodeCount": 2,
                "formats": [{"code": "QRCode", "count": 1}, {"code": "Code128", "count": 1}],
            },
            {"pageNumber": 2, "totalCodeCount": 0, "formats": []},
        ],
    }
    data.update(overrides)
    return data


class TestExpectedStructure(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="pagescan_structure_"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _write(self, payload) -> str:
        path = self._tmp / "structures.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    def test_from_dict_parses_pages(self) -> None:
        structure = ExpectedStructure.fromDict(_structure())
        first = structure.forPage(1)
        self.assertEqual(first.formats, (("Code128", 1), ("QRCode", 1)))
        self.assertEqual(first.totalCodeCount, 2)
        self.assertTrue(first.demandsCodes)
        self.assertTrue(structure.forPage(2).isEmpty)

    def test_zero_count_formats_are_dropped(self) -> None:
        data = _structure(pages=[{
            "pageNumber": 1,
            "formats": [{"code": "QRCode", "count": 0}, {"code": "Code128"}],
        }])
        expectation = ExpectedStructure.fromDict(data).forPage(1)
        self.assertEqual(expectation.formats, (("Code128", None),))
        self.assertEqual(expectation.requiredCount("Code128"), 1)
        self.assertEqual(expectation.requiredCount("QRCode"), 0)

    def test_missing_page_is_open_when_not_strict(self) -> None:
        expectation = ExpectedStructure.fromDict(_structure()).forPage(3)
        self.assertTrue(expectation.isOpen)
        self.assertFalse(expectation.isEmpty)
        self.assertFalse(expectation.demandsCodes)

    def test_missing_page_raises_when_strict(self) -> None:
        structure = ExpectedStructure.fromDict(_structure(strict=True))
        with self.assertRaises(MissingPageExpectationError) as ctx:
            structure.forPage(3)
        self.assertEqual(ctx.exception.pageNumber, 3)
        self.assertEqual(ctx.exception.structureId, "invoice")

    def test_check_page_count(self) -> None:
        structure = ExpectedStructure.fromDict(_structure())
        self.assertTrue(structure.checkPageCount(3))
        with self.assertLogs("pagescan.core.structure.expected_structure", level="WARNING"):
            self.assertFalse(structure.checkPageCount(5))

    def test_invalid_definitions_are_rejected(self) -> None:
        invalid = [
            _structure(structureId=""),
            _structure(expectedPageCount=0),
            _structure(pages=[{"pageNumber": 0}]),
            _structure(pages=[{"pageNumber": 1, "formats": [{"count": 1}]}]),
            _structure(pages=[{"pageNumber": 1, "formats": [{"code": "QRCode", "count": -1}]}]),
            _structure(pages=[{"pageNumber": 1}, {"pageNumber": 1}]),
        ]
        for data in invalid:
            with self.assertRaises(StructureError):
                ExpectedStructure.fromDict(data)

    def test_load_structure_file(self) -> None:
        path = self._write({"structures": [_structure(), _structure(structureId="letter")]})
        structures = loadStructureFile(path)
        self.assertEqual(sorted(structures), ["invoice", "letter"])

    def test_load_structure_file_errors(self) -> None:
        with self.assertRaises(StructureError):
            loadStructureFile(str(self._tmp / "missing.json"))

        bad = self._tmp / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with self.assertRaises(StructureError):
            loadStructureFile(str(bad))

        with self.assertRaises(StructureError):
            loadStructureFile(self._write({"structures": [_structure(), _structure()]}))

        with self.assertRaises(StructureError):
            loadStructureFile(self._write({"pages": []}))

    def test_from_counts_is_order_independent(self) -> None:
        a = PageExpectation.fromCounts({"QRCode": 1, "Code128": 2})
        b = PageExpectation.fromCounts({"Code128": 2, "QRCode": 1})
        self.assertEqual(a, b)


if __name__ == "__main__":
    unittest.main()
