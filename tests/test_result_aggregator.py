import unittest

from pagescan.core.errors import IncompleteResult
from pagescan.core.interfaces.code_decoder_interface import BoundingBox, DetectionHit
from pagescan.core.scan.result_aggregator import ResultAggregator
from pagescan.core.scan.scan_models import AttemptOutcome, PageStatus, ScaleAttempt, ScanPhase
from pagescan.core.structure.expected_structure import PageExpectation


ROI_ATTEMPT = ScaleAttempt(2.5, False, ScanPhase.ROI)


class TestResultAggregator(unittest.TestCase):
    def test_merge_is_idempotent(self) -> None:
        aggregator = ResultAggregator()
        hit = DetectionHit("QRCode", "A", BoundingBox(0, 0, 10, 10))
        self.assertTrue(aggregator.merge(hit, ROI_ATTEMPT))
        self.assertFalse(aggregator.merge(hit, ROI_ATTEMPT))
        self.assertFalse(aggregator.merge(DetectionHit("QRCode", "A", BoundingBox(50, 50, 10, 10))))
        self.assertEqual(aggregator.foundCount("QRCode"), 1)

    def test_first_sighting_keeps_its_position(self) -> None:
        aggregator = ResultAggregator()
        aggregator.merge(DetectionHit("QRCode", "A", BoundingBox(1, 2, 3, 4)), ROI_ATTEMPT)
        aggregator.merge(DetectionHit("QRCode", "A", BoundingBox(9, 9, 9, 9)))
        code = aggregator.finalize(PageExpectation.fromCounts({"QRCode": 1})).codes[0]
        self.assertEqual(code.hit.boundingBox, BoundingBox(1, 2, 3, 4))
        self.assertEqual(code.attempt, ROI_ATTEMPT)

    def test_position_only_hits_are_ignored(self) -> None:
        aggregator = ResultAggregator()
        self.assertFalse(aggregator.merge(DetectionHit("QRCode", None, BoundingBox(0, 0, 1, 1))))
        self.assertFalse(aggregator.hasAnyCode())

    def test_same_value_different_types_are_distinct(self) -> None:
        aggregator = ResultAggregator()
        aggregator.merge(DetectionHit("QRCode", "123"))
        aggregator.merge(DetectionHit("Code128", "123"))
        self.assertEqual(aggregator.foundCount(), 2)

    def test_complete_when_counts_met(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": 2, "Code128": 1})
        aggregator = ResultAggregator()
        aggregator.merge(DetectionHit("QRCode", "A"))
        aggregator.merge(DetectionHit("Code128", "B"))
        self.assertFalse(aggregator.isComplete(expectation))
        aggregator.merge(DetectionHit("QRCode", "A"))
        self.assertFalse(aggregator.isComplete(expectation))
        aggregator.merge(DetectionHit("QRCode", "C"))
        self.assertTrue(aggregator.isComplete(expectation))

    def test_presence_only_count(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": None})
        aggregator = ResultAggregator()
        self.assertFalse(aggregator.isComplete(expectation))
        aggregator.merge(DetectionHit("QRCode", "A"))
        self.assertTrue(aggregator.isComplete(expectation))

    def test_total_code_count_is_enforced(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": 1}, totalCodeCount=2)
        aggregator = ResultAggregator()
        aggregator.merge(DetectionHit("QRCode", "A"))
        self.assertFalse(aggregator.isComplete(expectation))
        aggregator.merge(DetectionHit("Code128", "B"))
        self.assertTrue(aggregator.isComplete(expectation))

    def test_empty_expectation_is_always_complete(self) -> None:
        self.assertTrue(ResultAggregator().isComplete(PageExpectation(pageNumber=1)))

    def test_open_expectation_needs_any_code(self) -> None:
        expectation = PageExpectation.open(3)
        aggregator = ResultAggregator(3)
        self.assertFalse(aggregator.isComplete(expectation))
        result = aggregator.finalize(expectation)
        self.assertEqual(result.status, PageStatus.INCOMPLETE)
        self.assertEqual(result.missingFormats, ("any (found 0/1)",))
        aggregator.merge(DetectionHit("DataMatrix", "X"))
        self.assertTrue(aggregator.isComplete(expectation))

    def test_finalize_statuses(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": 1, "Code128": 1})
        aggregator = ResultAggregator()

        failed = aggregator.finalize(expectation)
        self.assertEqual(failed.status, PageStatus.FAILED)
        self.assertFalse(failed.complete)

        aggregator.merge(DetectionHit("QRCode", "A"))
        partial = aggregator.finalize(expectation)
        self.assertEqual(partial.status, PageStatus.INCOMPLETE)
        self.assertEqual(partial.missingFormats, ("Code128 (found 0/1)",))

        aggregator.merge(DetectionHit("Code128", "B"))
        complete = aggregator.finalize(expectation)
        self.assertEqual(complete.status, PageStatus.COMPLETE)
        self.assertEqual(complete.codesByType, {"QRCode": ["A"], "Code128": ["B"]})

    def test_finalize_is_idempotent_and_detached(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": 1})
        aggregator = ResultAggregator()
        outcome = AttemptOutcome(decodeCalls=1)
        aggregator.recordAttempt(ROI_ATTEMPT, outcome)

        first = aggregator.finalize(expectation)
        second = aggregator.finalize(expectation)
        self.assertEqual(first, second)

        outcome.errors.append("late")
        self.assertEqual(first.outcomes[0].errors, [])
        self.assertEqual(first.attempts, (ROI_ATTEMPT,))

    def test_raise_if_incomplete(self) -> None:
        expectation = PageExpectation.fromCounts({"QRCode": 1})
        aggregator = ResultAggregator(7)
        with self.assertRaises(IncompleteResult) as ctx:
            aggregator.finalize(expectation).raiseIfIncomplete()
        self.assertEqual(ctx.exception.pageResult.pageNumber, 7)

        aggregator.merge(DetectionHit("QRCode", "A"))
        result = aggregator.finalize(expectation)
        self.assertIs(result.raiseIfIncomplete(), result)


if __name__ == "__main__":
    unittest.main()
