"""
Result Aggregator Module

Collects decode hits of one page across phases and scales.

- Deduplication key is (codeType, value); the first hit seen wins and keeps
  its position. Repeated keys are no-op merges.
- Position-only hits (no value) are never counted.
- Completeness is evaluated against a PageExpectation.

One aggregator instance is owned by exactly one page scan.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from pagescan.core.interfaces.code_decoder_interface import DetectionHit
from pagescan.core.scan.scan_models import (
    AttemptOutcome,
    FoundCode,
    PageResult,
    PageStatus,
    ScaleAttempt
)
from pagescan.core.structure.expected_structure import PageExpectation


logger = logging.getLogger(__name__)


class ResultAggregator:
    """
    Incremental, deduplicating page result builder.
    """

    def __init__(self, pageNumber: int = 1):
        """
        Initialize ResultAggregator.

        Args:
            pageNumber: Page the aggregated result belongs to.
        """
        self._pageNumber = pageNumber
        self._codes: Dict[Tuple[str, str], FoundCode] = {}
        self._attempts: List[ScaleAttempt] = []
        self._outcomes: List[AttemptOutcome] = []

    @property
    def pageNumber(self) -> int:
        return self._pageNumber

    def merge(self, hit: DetectionHit, attempt: Optional[ScaleAttempt] = None) -> bool:
        """
        Merge one hit.

        Args:
            hit: Decoded hit.
            attempt: Attempt that produced the hit (kept for the first sighting).

        Returns:
            bool: True if the hit added a new distinct code.
        """
        if not hit.hasValue:
            return False
        if hit.key in self._codes:
            return False
        self._codes[hit.key] = FoundCode(hit=hit, attempt=attempt)
        logger.debug(
            f"[page {self._pageNumber}] New code {hit.codeType}={hit.value!r}"
            f"{f' ({attempt.phase.value} @ {attempt.scale})' if attempt else ''}"
        )
        return True

    def recordAttempt(self, attempt: ScaleAttempt, outcome: AttemptOutcome) -> None:
        """Record a consumed attempt and what happened during it."""
        self._attempts.append(attempt)
        self._outcomes.append(outcome)

    def foundCount(self, codeType: Optional[str] = None) -> int:
        """Number of distinct values found (for one type, or overall)."""
        if codeType is None:
            return len(self._codes)
        return sum(1 for (t, _) in self._codes if t == codeType)

    def hasAnyCode(self) -> bool:
        return bool(self._codes)

    def isComplete(self, expectation: PageExpectation) -> bool:
        """
        Check the found codes against a page expectation.

        Returns:
            bool: True if every expected type meets its count (at least one
            when no count is given) and the total count is met.
        """
        return not self._missing(expectation) and (
            not expectation.isOpen or self.hasAnyCode()
        )

    def _missing(self, expectation: PageExpectation) -> List[str]:
        if expectation.isOpen or expectation.isEmpty:
            return []

        counts = Counter(t for (t, _) in self._codes)
        missing = []
        for codeType, count in expectation.formats:
            required = 1 if count is None else count
            found = counts.get(codeType, 0)
            if found < required:
                missing.append(f"{codeType} (found {found}/{required})")

        total = expectation.totalCodeCount
        if total and len(self._codes) < total:
            missing.append(f"total (found {len(self._codes)}/{total})")
        return missing

    def finalize(self, expectation: PageExpectation) -> PageResult:
        """
        Build an immutable snapshot of the page result.

        Idempotent and side-effect free: repeated calls return equal results.
        """
        complete = self.isComplete(expectation)
        if complete:
            status = PageStatus.COMPLETE
        elif not self._codes and expectation.demandsCodes:
            status = PageStatus.FAILED
        else:
            status = PageStatus.INCOMPLETE

        missing = self._missing(expectation)
        if expectation.isOpen and not self._codes:
            missing = ["any (found 0/1)"]

        return PageResult(
            pageNumber=self._pageNumber,
            codes=tuple(self._codes.values()),
            complete=complete,
            status=status,
            attempts=tuple(self._attempts),
            outcomes=tuple(
                AttemptOutcome(
                    decodeCalls=o.decodeCalls,
                    hitsReturned=o.hitsReturned,
                    newCodes=o.newCodes,
                    errors=list(o.errors),
                    earlyExit=o.earlyExit
                )
                for o in self._outcomes
            ),
            missingFormats=tuple(missing)
        )
