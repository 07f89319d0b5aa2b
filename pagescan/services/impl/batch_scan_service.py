"""
Batch Scan Service Implementation.

Scans documents against an expected structure.

- Files are processed strictly one after another; a file is fully joined
  and closed before the next one is opened.
- The pages of one file are scanned in parallel on a thread pool. Each page
  task owns its page image and its own orchestrator state.
- A page failure never aborts its siblings, and a file that cannot be opened
  is reported and the batch continues.

Follows:
- SRP: Only schedules pages, scanning is delegated to ScanOrchestrator
- DIP: Depends on the IPageRenderer abstraction
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pagescan.core.errors import MissingPageExpectationError, PageScanError, RenderError
from pagescan.core.interfaces.page_renderer_interface import IPageRenderer
from pagescan.core.scan.scan_models import PageResult, PageStatus
from pagescan.core.scan.scan_orchestrator import ScanOrchestrator
from pagescan.core.structure.expected_structure import ExpectedStructure, PageExpectation
from pagescan.services.interfaces.base_service_interface import BaseService
from pagescan.services.interfaces.batch_scan_service_interface import (
    FileScanResult,
    IBatchScanService,
    PageCallback,
    PageScanRecord
)


class BatchScanService(IBatchScanService, BaseService):
    """
    Batch scan service implementation.

    Renders each page once at the initial scale and hands it to the
    ScanOrchestrator, which re-renders through the same renderer when the
    full-page fallback needs other scales.
    """

    SERVICE_NAME = "batch_scan"

    def __init__(
        self,
        renderer: IPageRenderer,
        orchestrator: ScanOrchestrator,
        initialScale: float = 3.0,
        maxWorkers: int = 4,
        saveIncompletePages: bool = False,
        debugBasePath: str = "output/debug",
        debugEnabled: bool = False
    ):
        """
        Initialize BatchScanService.

        Args:
            renderer: Page renderer (also used by the orchestrator fallback).
            orchestrator: Per-page scan engine.
            initialScale: Scale of the first page render.
            maxWorkers: Pages of one file scanned in parallel.
            saveIncompletePages: Save images of pages that end incomplete
                (debug only).
            debugBasePath: Base path for debug output.
            debugEnabled: Whether to save debug output.
        """
        BaseService.__init__(
            self,
            serviceName=self.SERVICE_NAME,
            debugBasePath=debugBasePath,
            debugEnabled=debugEnabled
        )

        if initialScale <= 0:
            raise ValueError("initialScale must be > 0")
        if maxWorkers < 1:
            raise ValueError("maxWorkers must be >= 1")

        self._renderer = renderer
        self._orchestrator = orchestrator
        self._initialScale = initialScale
        self._maxWorkers = maxWorkers
        self._saveIncompletePages = saveIncompletePages

        self._logger.info(
            f"BatchScanService initialized "
            f"(initialScale={initialScale}, maxWorkers={maxWorkers})"
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Public API
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def scanFiles(
        self,
        filePaths: Sequence[str],
        structure: ExpectedStructure,
        onPageComplete: Optional[PageCallback] = None
    ) -> List[FileScanResult]:
        """Scan files strictly one after another."""
        results = []
        for index, filePath in enumerate(filePaths, start=1):
            self._logger.info(f"[{index}/{len(filePaths)}] Scanning {filePath}")
            results.append(self.scanFile(filePath, structure, onPageComplete))
        return results

    def scanFile(
        self,
        filePath: str,
        structure: ExpectedStructure,
        onPageComplete: Optional[PageCallback] = None
    ) -> FileScanResult:
        """Scan every page of one file."""
        startTime = time.time()
        fileName = Path(filePath).name
        fileResult = FileScanResult(
            fileName=fileName,
            filePath=str(filePath),
            structureId=structure.structureId
        )

        try:
            document = self._renderer.openDocument(filePath)
        except RenderError as e:
            self._logger.error(f"[{fileName}] Cannot open file: {e}")
            fileResult.error = str(e)
            fileResult.processingTimeMs = self._measureTime(startTime)
            return fileResult

        try:
            pageCount = self._renderer.getPageCount(document)
            fileResult.pageCount = pageCount
            structure.checkPageCount(pageCount)

            records: Dict[int, PageScanRecord] = {}
            tasks: List[Tuple[int, PageExpectation]] = []

            # Resolve every expectation before fan-out; failed and skipped
            # pages are never rendered
            for pageNumber in range(1, pageCount + 1):
                record = None
                try:
                    expectation = structure.forPage(pageNumber)
                except MissingPageExpectationError as e:
                    self._logger.error(f"[{fileName}#p{pageNumber}] {e}")
                    record = self._pageRecord(fileName, pageNumber, PageResult(
                        pageNumber=pageNumber,
                        status=PageStatus.FAILED,
                        error=str(e)
                    ))
                else:
                    if expectation.isEmpty:
                        self._logger.info(f"[{fileName}#p{pageNumber}] No codes expected, skipping")
                        record = self._pageRecord(fileName, pageNumber, PageResult(
                            pageNumber=pageNumber,
                            complete=True,
                            status=PageStatus.SKIPPED
                        ))
                    else:
                        tasks.append((pageNumber, expectation))

                if record is not None:
                    records[pageNumber] = record
                    self._notify(onPageComplete, record)

            if tasks:
                with ThreadPoolExecutor(
                    max_workers=min(self._maxWorkers, len(tasks)),
                    thread_name_prefix="pagescan"
                ) as executor:
                    futures = [
                        executor.submit(self._scanPage, document, fileName, pageNumber, expectation)
                        for pageNumber, expectation in tasks
                    ]
                    for future in as_completed(futures):
                        record = future.result()
                        records[record.pageNumber] = record
                        self._notify(onPageComplete, record)

            fileResult.pages = [records[n] for n in sorted(records)]
        finally:
            self._renderer.closeDocument(document)

        fileResult.processingTimeMs = self._measureTime(startTime)
        self._logFileSummary(fileResult)
        self._saveFileReport(fileResult)
        return fileResult

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Page Tasks
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _scanPage(
        self,
        document: Any,
        fileName: str,
        pageNumber: int,
        expectation: PageExpectation
    ) -> PageScanRecord:
        """Render and scan one page; never raises."""
        startTime = time.time()
        frameId = f"{fileName}#p{pageNumber}"
        pageImage = None

        try:
            pageHandle = self._renderer.getPageHandle(document, pageNumber)
            pageImage = self._renderer.renderPage(pageHandle, self._initialScale)
            result = self._orchestrator.scanPage(
                pageImage, expectation, pageHandle=pageHandle, frameId=frameId
            )
        except PageScanError as e:
            self._logger.error(f"[{frameId}] Page scan failed: {e}")
            result = PageResult(pageNumber=pageNumber, status=PageStatus.FAILED, error=str(e))
        except Exception as e:
            self._logger.exception(f"[{frameId}] Unexpected error: {e}")
            result = PageResult(pageNumber=pageNumber, status=PageStatus.FAILED, error=str(e))

        processingTimeMs = self._measureTime(startTime)
        self._logTiming(frameId, processingTimeMs)
        record = self._pageRecord(fileName, pageNumber, result, processingTimeMs)

        if self._saveIncompletePages and pageImage is not None and not result.complete:
            self._savePageImage(record, pageImage.pixels)
        return record

    @staticmethod
    def _pageRecord(
        fileName: str,
        pageNumber: int,
        result: PageResult,
        processingTimeMs: float = 0.0
    ) -> PageScanRecord:
        return PageScanRecord(
            fileName=fileName,
            pageNumber=pageNumber,
            result=result,
            processingTimeMs=processingTimeMs
        )

    def _notify(self, callback: Optional[PageCallback], record: PageScanRecord) -> None:
        """Invoke the page callback on the calling thread; callback errors are logged."""
        if callback is None:
            return
        try:
            callback(record)
        except Exception as e:
            self._logger.warning(f"[{record.frameId}] Page callback failed: {e}")

    def _logFileSummary(self, fileResult: FileScanResult) -> None:
        statusCounts = {status.value: len(fileResult.pagesWithStatus(status)) for status in PageStatus}
        self._logger.info(
            f"[{fileResult.fileName}] {fileResult.pageCount} page(s) in "
            f"{fileResult.processingTimeMs:.0f}ms: "
            + ", ".join(f"{count} {status}" for status, count in statusCounts.items() if count)
        )
