"""
Scan Models Module.

Data classes shared by the page scan components: regions, scale attempts,
attempt outcomes and the per-page result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pagescan.core.errors import IncompleteResult
from pagescan.core.interfaces.code_decoder_interface import BoundingBox, DetectionHit


class ScanPhase(str, Enum):
    """Phase of the page scan state machine that produced an attempt."""
    DETECTION = "detection"
    ROI = "roi"
    FALLBACK = "fallback"


class PageStatus(str, Enum):
    """Terminal outcome of a page scan."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Region:
    """
    Padded and merged search region.

    Attributes:
        boundingBox: Region in page image coordinates.
        codeTypeHint: Code type of the hits the region was built from.
        priority: 1 if any source hit carried a decoded value, else 0.
        label: Human readable label for logs (e.g., "QRCode_1").
        sourceCount: Number of hits merged into the region.
        anchor: (top, left) of the earliest source box, used for reading order.
    """
    boundingBox: BoundingBox
    codeTypeHint: str
    priority: int = 0
    label: str = ""
    sourceCount: int = 1
    anchor: Tuple[float, float] = (0.0, 0.0)

    @property
    def hasDecodedValue(self) -> bool:
        return self.priority > 0


@dataclass(frozen=True)
class ScaleAttempt:
    """
    One point in a retry sequence.

    Attributes:
        scale: Magnification (1.0 = 72 dpi).
        rotated: Whether the rotated variant is decoded.
        phase: Phase consuming the attempt.
    """
    scale: float
    rotated: bool
    phase: ScanPhase

    def toDict(self) -> Dict:
        return {"scale": self.scale, "rotated": self.rotated, "phase": self.phase.value}


@dataclass
class AttemptOutcome:
    """
    What happened while consuming one ScaleAttempt.

    Attributes:
        decodeCalls: Number of decode primitive invocations.
        hitsReturned: Hits returned by the decoder (duplicates included).
        newCodes: Distinct codes first seen during this attempt.
        errors: Messages of RenderError/DecodeError failures.
        earlyExit: The attempt stopped before visiting every region.
    """
    decodeCalls: int = 0
    hitsReturned: int = 0
    newCodes: int = 0
    errors: List[str] = field(default_factory=list)
    earlyExit: bool = False

    @property
    def failed(self) -> bool:
        """True if every decode call of the attempt failed."""
        return bool(self.errors) and len(self.errors) >= self.decodeCalls

    def toDict(self) -> Dict:
        return {
            "decodeCalls": self.decodeCalls,
            "hitsReturned": self.hitsReturned,
            "newCodes": self.newCodes,
            "errors": list(self.errors),
            "earlyExit": self.earlyExit,
        }


@dataclass(frozen=True)
class FoundCode:
    """A distinct code of a page and the attempt that first found it."""
    hit: DetectionHit
    attempt: Optional[ScaleAttempt] = None

    @property
    def codeType(self) -> str:
        return self.hit.codeType

    @property
    def value(self) -> Optional[str]:
        return self.hit.value


@dataclass(frozen=True)
class PageResult:
    """
    Aggregate output of one page scan (immutable snapshot).

    Attributes:
        pageNumber: 1-indexed page number.
        codes: Distinct codes in first-seen order.
        complete: All expected codes were found.
        status: Terminal page outcome.
        attempts: ScaleAttempts consumed, in order.
        outcomes: One AttemptOutcome per consumed attempt.
        missingFormats: Descriptions such as "QRCode (found 0/1)".
        error: Message for pages that could not be scanned at all.
        retrySummary: Scales used, rotated attempts and attempts per phase
            (see RetryController.summary).
    """
    pageNumber: int
    codes: Tuple[FoundCode, ...] = ()
    complete: bool = False
    status: PageStatus = PageStatus.INCOMPLETE
    attempts: Tuple[ScaleAttempt, ...] = ()
    outcomes: Tuple[AttemptOutcome, ...] = ()
    missingFormats: Tuple[str, ...] = ()
    error: Optional[str] = None
    retrySummary: Optional[Dict] = field(default=None, compare=False)

    @property
    def codesByType(self) -> Dict[str, List[str]]:
        """{codeType: [value, ...]} in first-seen order."""
        grouped: Dict[str, List[str]] = {}
        for code in self.codes:
            grouped.setdefault(code.codeType, []).append(code.value)
        return grouped

    @property
    def foundCount(self) -> int:
        return len(self.codes)

    def raiseIfIncomplete(self) -> "PageResult":
        """
        Return self when complete (or skipped), raise otherwise.

        Raises:
            IncompleteResult: Carrying this PageResult.
        """
        if self.status in (PageStatus.COMPLETE, PageStatus.SKIPPED):
            return self
        raise IncompleteResult(
            f"Page {self.pageNumber} incomplete: {', '.join(self.missingFormats) or self.status.value}",
            pageResult=self
        )
