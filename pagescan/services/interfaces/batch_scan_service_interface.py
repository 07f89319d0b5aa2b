"""
Batch Scan Service Interface Module.

Defines the interface for scanning whole documents against an expected
structure: files one after another, the pages of a file in parallel.

Follows:
- SRP: Only handles document/page scheduling
- DIP: Depends on IPageRenderer and ScanOrchestrator from the core layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from pagescan.core.scan.scan_models import PageResult, PageStatus
from pagescan.core.structure.expected_structure import ExpectedStructure


@dataclass
class PageScanRecord:
    """
    Result of one page inside a file scan.

    Attributes:
        fileName: Base name of the scanned file.
        pageNumber: 1-indexed page number.
        result: PageResult produced by the orchestrator.
        processingTimeMs: Render + scan time of the page.
    """
    fileName: str
    pageNumber: int
    result: PageResult
    processingTimeMs: float = 0.0

    @property
    def frameId(self) -> str:
        return f"{self.fileName}#p{self.pageNumber}"


@dataclass
class FileScanResult:
    """
    Result of scanning one file.

    Attributes:
        fileName: Base name of the file.
        filePath: Path the file was opened from.
        structureId: Structure the pages were checked against.
        pageCount: Number of pages in the document (0 if it could not be opened).
        pages: One record per page, ordered by page number.
        error: Message when the file could not be opened at all.
        processingTimeMs: Total time spent on the file.
    """
    fileName: str
    filePath: str
    structureId: str
    pageCount: int = 0
    pages: List[PageScanRecord] = field(default_factory=list)
    error: Optional[str] = None
    processingTimeMs: float = 0.0

    @property
    def success(self) -> bool:
        """True if the file was opened and every page is complete or skipped."""
        return self.error is None and all(
            p.result.status in (PageStatus.COMPLETE, PageStatus.SKIPPED)
            for p in self.pages
        )

    def pagesWithStatus(self, status: PageStatus) -> List[PageScanRecord]:
        return [p for p in self.pages if p.result.status == status]


PageCallback = Callable[[PageScanRecord], None]


class IBatchScanService(ABC):
    """
    Interface for batch document scanning.
    """

    @abstractmethod
    def scanFile(
        self,
        filePath: str,
        structure: ExpectedStructure,
        onPageComplete: Optional[PageCallback] = None
    ) -> FileScanResult:
        """
        Scan every page of one file.

        Args:
            filePath: Document path.
            structure: Expected structure of the document.
            onPageComplete: Called once per finished page (any thread).

        Returns:
            FileScanResult: Never raises for per-page or open failures.
        """
        pass

    @abstractmethod
    def scanFiles(
        self,
        filePaths: Sequence[str],
        structure: ExpectedStructure,
        onPageComplete: Optional[PageCallback] = None
    ) -> List[FileScanResult]:
        """
        Scan files strictly one after another.

        Returns:
            List[FileScanResult]: One result per input path, in input order.
        """
        pass
