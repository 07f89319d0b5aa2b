import shutil
import threading
import tempfile
import unittest
from pathlib import Path

from pagescan.core.interfaces.code_decoder_interface import BoundingBox, DetectionHit
from pagescan.core.scan.scan_models import PageStatus
from pagescan.core.scan.scan_orchestrator import ScanOrchestrator
from pagescan.core.structure.expected_structure import ExpectedStructure
from pagescan.services.impl.batch_scan_service import BatchScanService

from tests._fakes import CallbackDecoder, FakeRenderer


def _structure(strict=False):
    return ExpectedStructure.fromDict({
        "structureId": "test",
        "strict": strict,
        "pages": [
            {"pageNumber": 1, "formats": [{"code": "QRCode", "count": 1}]},
            {"pageNumber": 2, "totalCodeCount": 0, "formats": []},
            {"pageNumber": 3, "formats": [{"code": "QRCode", "count": 1}]},
        ],
    })


def _alwaysQr(index, image, includeUndecoded):
    return [DetectionHit("QRCode", "QR-VALUE", BoundingBox(1, 1, 10, 10))]


def _nothing(index, image, includeUndecoded):
    return []


class _OrderedRenderer(FakeRenderer):
    """Records whether every earlier document was closed when a new one opens."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.closedBeforeOpen = []

    def openDocument(self, path):
        self.closedBeforeOpen.append(all(d.closed for d in self.opened))
        return super().openDocument(path)


class TestBatchScanService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="pagescan_batch_"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _service(self, renderer, handler=_alwaysQr, **kwargs):
        orchestrator = ScanOrchestrator(CallbackDecoder(handler), renderer=renderer)
        return BatchScanService(
            renderer=renderer,
            orchestrator=orchestrator,
            maxWorkers=3,
            debugBasePath=str(self._tmp),
            **kwargs
        )

    def test_pages_are_reported_in_order_and_empty_pages_skipped(self) -> None:
        renderer = FakeRenderer({"doc.pdf": 3})
        seen = []
        result = self._service(renderer).scanFile("doc.pdf", _structure(), seen.append)

        self.assertIsNone(result.error)
        self.assertEqual(result.pageCount, 3)
        self.assertEqual([p.pageNumber for p in result.pages], [1, 2, 3])
        self.assertEqual(
            [p.result.status for p in result.pages],
            [PageStatus.COMPLETE, PageStatus.SKIPPED, PageStatus.COMPLETE]
        )
        self.assertTrue(result.success)
        self.assertEqual(sorted(r.pageNumber for r in seen), [1, 2, 3])
        self.assertNotIn(2, {r["page"] for r in renderer.renders})
        self.assertTrue(all(r["scale"] == 3.0 for r in renderer.renders))
        self.assertTrue(renderer.opened[0].closed)

    def test_pages_of_one_file_are_scanned_in_parallel(self) -> None:
        barrier = threading.Barrier(3)

        def handler(index, image, includeUndecoded):
            # Detection of every page waits until all three pages are in flight
            if includeUndecoded:
                barrier.wait(timeout=10)
            return _alwaysQr(index, image, includeUndecoded)

        structure = ExpectedStructure.fromDict({
            "structureId": "parallel",
            "pages": [
                {"pageNumber": n, "formats": [{"code": "QRCode", "count": 1}]}
                for n in (1, 2, 3)
            ],
        })
        renderer = FakeRenderer({"doc.pdf": 3})
        result = self._service(renderer, handler=handler).scanFile("doc.pdf", structure)

        self.assertFalse(barrier.broken)
        self.assertEqual(
            [p.result.status for p in result.pages],
            [PageStatus.COMPLETE] * 3
        )

    def test_unopenable_file_does_not_stop_batch(self) -> None:
        renderer = _OrderedRenderer({"a.pdf": 1, "c.pdf": 3})
        results = self._service(renderer).scanFiles(["a.pdf", "missing.pdf", "c.pdf"], _structure())

        self.assertEqual([r.fileName for r in results], ["a.pdf", "missing.pdf", "c.pdf"])
        self.assertIsNotNone(results[1].error)
        self.assertEqual(results[1].pages, [])
        self.assertFalse(results[1].success)
        self.assertTrue(results[2].success)
        self.assertEqual(renderer.closedBeforeOpen, [True, True, True])

    def test_strict_structure_fails_unlisted_pages(self) -> None:
        renderer = FakeRenderer({"doc.pdf": 4})
        result = self._service(renderer).scanFile("doc.pdf", _structure(strict=True))

        fourth = result.pages[3].result
        self.assertEqual(fourth.status, PageStatus.FAILED)
        self.assertIn("page 4", fourth.error)
        self.assertNotIn(4, {r["page"] for r in renderer.renders})
        self.assertEqual(result.pages[0].result.status, PageStatus.COMPLETE)

    def test_open_expectation_for_unlisted_pages(self) -> None:
        renderer = FakeRenderer({"doc.pdf": 4})
        result = self._service(renderer).scanFile("doc.pdf", _structure())
        self.assertEqual(result.pages[3].result.status, PageStatus.COMPLETE)

    def test_render_failure_only_fails_that_page(self) -> None:
        renderer = FakeRenderer({"doc.pdf": 3}, failingPages=[3])
        result = self._service(renderer).scanFile("doc.pdf", _structure())

        self.assertEqual(result.pages[0].result.status, PageStatus.COMPLETE)
        self.assertEqual(result.pages[2].result.status, PageStatus.FAILED)
        self.assertIsNotNone(result.pages[2].result.error)
        self.assertFalse(result.success)

    def test_callback_errors_are_contained(self) -> None:
        def explode(record):
            raise RuntimeError("callback broke")

        renderer = FakeRenderer({"doc.pdf": 3})
        result = self._service(renderer).scanFile("doc.pdf", _structure(), explode)
        self.assertEqual(len(result.pages), 3)

    def test_debug_output(self) -> None:
        renderer = FakeRenderer({"doc.pdf": 1})
        service = self._service(renderer, handler=_nothing, saveIncompletePages=True, debugEnabled=True)
        result = service.scanFile("doc.pdf", _structure())

        self.assertEqual(result.pages[0].result.status, PageStatus.FAILED)
        debugDir = self._tmp / "batch_scan"
        self.assertTrue((debugDir / "file_doc.json").exists())
        self.assertTrue((debugDir / "failed_doc.pdf_p1.png").exists())

    def test_invalid_arguments(self) -> None:
        renderer = FakeRenderer({})
        with self.assertRaises(ValueError):
            self._service(renderer, initialScale=0)


if __name__ == "__main__":
    unittest.main()
