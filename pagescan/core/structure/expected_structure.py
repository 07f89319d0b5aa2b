"""
Expected Structure Module

Typed, validated description of which codes each page of a document is
expected to carry. Loaded once from JSON and shared read-only by every page
task of a batch.

JSON layout:
    {
        "structures": [
            {
                "structureId": "exam-booklet",
                "expectedPageCount": 32,
                "strict": false,
                "pages": [
                    {"pageNumber": 1, "totalCodeCount": 2,
                     "formats": [{"code": "QRCode", "count": 1},
                                 {"code": "Code128", "count": 1}]},
                    {"pageNumber": 2, "totalCodeCount": 0, "formats": []}
                ]
            }
        ]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pagescan.core.errors import StructureError, MissingPageExpectationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageExpectation:
    """
    Expected codes for one page.

    Attributes:
        pageNumber: 1-indexed page number.
        formats: ((codeType, count or None), ...). None means "at least one".
        totalCodeCount: Minimum number of distinct codes overall, if set.
        isOpen: True when the structure had no entry for this page; an open
            expectation is satisfied by any decoded code.
    """
    pageNumber: int
    formats: Tuple[Tuple[str, Optional[int]], ...] = ()
    totalCodeCount: Optional[int] = None
    isOpen: bool = False

    @classmethod
    def open(cls, pageNumber: int) -> "PageExpectation":
        return cls(pageNumber=pageNumber, isOpen=True)

    @classmethod
    def fromCounts(
        cls,
        counts: Mapping[str, Optional[int]],
        pageNumber: int = 1,
        totalCodeCount: Optional[int] = None
    ) -> "PageExpectation":
        """Build an expectation from {codeType: count} (count None = presence only)."""
        return cls(
            pageNumber=pageNumber,
            formats=tuple(sorted(counts.items())),
            totalCodeCount=totalCodeCount
        )

    @property
    def isEmpty(self) -> bool:
        """Page expects no codes at all."""
        if self.isOpen:
            return False
        return not self.formats and not self.totalCodeCount

    @property
    def demandsCodes(self) -> bool:
        """Page requires at least one code to be found."""
        return not self.isOpen and not self.isEmpty

    def requiredCount(self, codeType: str) -> int:
        for name, count in self.formats:
            if name == codeType:
                return 1 if count is None else count
        return 0


@dataclass(frozen=True)
class ExpectedStructure:
    """
    Expectations for every page of one document layout.

    Attributes:
        structureId: Identifier used by configuration and reports.
        pages: {pageNumber: PageExpectation}.
        expectedPageCount: Page count the layout was designed for, if known.
        strict: When True a page without an entry is an error instead of an
            open expectation.
    """
    structureId: str
    pages: Mapping[int, PageExpectation] = field(default_factory=dict)
    expectedPageCount: Optional[int] = None
    strict: bool = False

    def forPage(self, pageNumber: int) -> PageExpectation:
        """
        Resolve the expectation for a page.

        Raises:
            MissingPageExpectationError: If strict and the page has no entry.
        """
        expectation = self.pages.get(pageNumber)
        if expectation is not None:
            return expectation
        if self.strict:
            raise MissingPageExpectationError(self.structureId, pageNumber)
        logger.debug(
            f"Structure '{self.structureId}' has no entry for page {pageNumber}, "
            f"using open expectation"
        )
        return PageExpectation.open(pageNumber)

    def checkPageCount(self, pageCount: int) -> bool:
        """Check a document's page count against expectedPageCount (logs a warning on mismatch)."""
        if self.expectedPageCount is None or self.expectedPageCount == pageCount:
            return True
        logger.warning(
            f"Structure '{self.structureId}' expects {self.expectedPageCount} pages, "
            f"document has {pageCount}"
        )
        return False

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "ExpectedStructure":
        """
        Build and validate a structure from its JSON dictionary.

        Raises:
            StructureError: If the definition is malformed.
        """
        if not isinstance(data, dict):
            raise StructureError(f"Structure must be an object, got {type(data).__name__}")

        structureId = str(data.get("structureId", "")).strip()
        if not structureId:
            raise StructureError("Structure is missing 'structureId'")

        expectedPageCount = data.get("expectedPageCount")
        if expectedPageCount is not None and (
            not isinstance(expectedPageCount, int) or expectedPageCount < 1
        ):
            raise StructureError(
                f"[{structureId}] expectedPageCount must be a positive integer"
            )

        pages: Dict[int, PageExpectation] = {}
        for entry in data.get("pages", []):
            expectation = _parsePage(structureId, entry)
            if expectation.pageNumber in pages:
                raise StructureError(
                    f"[{structureId}] duplicate entry for page {expectation.pageNumber}"
                )
            pages[expectation.pageNumber] = expectation

        return cls(
            structureId=structureId,
            pages=pages,
            expectedPageCount=expectedPageCount,
            strict=bool(data.get("strict", False))
        )


def _parsePage(structureId: str, entry: Any) -> PageExpectation:
    if not isinstance(entry, dict):
        raise StructureError(f"[{structureId}] page entry must be an object")

    pageNumber = entry.get("pageNumber")
    if not isinstance(pageNumber, int) or pageNumber < 1:
        raise StructureError(f"[{structureId}] invalid pageNumber: {pageNumber!r}")

    counts: Dict[str, Optional[int]] = {}
    for fmt in entry.get("formats", []):
        if not isinstance(fmt, dict) or not fmt.get("code"):
            raise StructureError(
                f"[{structureId}] page {pageNumber}: format entry needs a 'code'"
            )
        count = fmt.get("count")
        if count is not None and (not isinstance(count, int) or count < 0):
            raise StructureError(
                f"[{structureId}] page {pageNumber}: invalid count for {fmt['code']}"
            )
        counts[str(fmt["code"])] = count

    totalCodeCount = entry.get("totalCodeCount")
    if totalCodeCount is not None and (not isinstance(totalCodeCount, int) or totalCodeCount < 0):
        raise StructureError(
            f"[{structureId}] page {pageNumber}: invalid totalCodeCount"
        )

    # Zero-count formats do not constrain the page
    counts = {k: v for k, v in counts.items() if v != 0}

    return PageExpectation.fromCounts(
        counts,
        pageNumber=pageNumber,
        totalCodeCount=totalCodeCount
    )


def loadStructureFile(path: str) -> Dict[str, ExpectedStructure]:
    """
    Load every structure from a JSON file.

    Returns:
        {structureId: ExpectedStructure}

    Raises:
        StructureError: If the file is missing, not JSON or malformed.
    """
    filePath = Path(path)
    try:
        with open(filePath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise StructureError(f"Structure file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise StructureError(f"Invalid JSON in structure file {path}: {e}") from e

    entries = data.get("structures") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise StructureError(f"Structure file {path} must contain a 'structures' list")

    structures: Dict[str, ExpectedStructure] = {}
    for entry in entries:
        structure = ExpectedStructure.fromDict(entry)
        if structure.structureId in structures:
            raise StructureError(f"Duplicate structureId: {structure.structureId}")
        structures[structure.structureId] = structure

    logger.info(f"Loaded {len(structures)} structure(s) from: {filePath.absolute()}")
    return structures
