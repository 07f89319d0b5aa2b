"""
Result Formatter Module.

Turns scan results into JSON-serializable reports.

Page report:
    {fileName, pageNumber, codesFound: [{type, value}], complete, status,
     attempts: [{scale, rotated, phase}], missing, retrySummary, error,
     processingTimeMs}
"""

from typing import Any, Dict, List, Sequence

from pagescan.core.scan.scan_models import PageStatus
from pagescan.services.interfaces.batch_scan_service_interface import (
    FileScanResult,
    PageScanRecord
)


def formatPageReport(record: PageScanRecord) -> Dict[str, Any]:
    """Format one page."""
    result = record.result
    return {
        "fileName": record.fileName,
        "pageNumber": record.pageNumber,
        "codesFound": [
            {"type": code.codeType, "value": code.value}
            for code in result.codes
        ],
        "complete": result.complete,
        "status": result.status.value,
        "attempts": [attempt.toDict() for attempt in result.attempts],
        "missing": list(result.missingFormats),
        "retrySummary": result.retrySummary,
        "error": result.error,
        "processingTimeMs": round(record.processingTimeMs, 2),
    }


def formatFileReport(fileResult: FileScanResult) -> Dict[str, Any]:
    """Format one file with all of its pages."""
    return {
        "fileName": fileResult.fileName,
        "filePath": fileResult.filePath,
        "structureId": fileResult.structureId,
        "pageCount": fileResult.pageCount,
        "success": fileResult.success,
        "error": fileResult.error,
        "processingTimeMs": round(fileResult.processingTimeMs, 2),
        "pages": [formatPageReport(page) for page in fileResult.pages],
    }


def getSummary(fileResults: Sequence[FileScanResult]) -> Dict[str, Any]:
    """
    Summarize a batch.

    successRate is the share of complete pages among the pages that
    demanded codes (skipped pages are left out), in percent.
    """
    counts = {status: 0 for status in PageStatus}
    totalCodes = 0
    for fileResult in fileResults:
        for page in fileResult.pages:
            counts[page.result.status] += 1
            totalCodes += page.result.foundCount

    totalPages = sum(counts.values())
    scannedPages = totalPages - counts[PageStatus.SKIPPED]
    successRate = (
        counts[PageStatus.COMPLETE] / scannedPages * 100 if scannedPages else 0.0
    )

    return {
        "totalFiles": len(fileResults),
        "unreadableFiles": sum(1 for f in fileResults if f.error is not None),
        "totalPages": totalPages,
        "completePages": counts[PageStatus.COMPLETE],
        "incompletePages": counts[PageStatus.INCOMPLETE],
        "failedPages": counts[PageStatus.FAILED],
        "skippedPages": counts[PageStatus.SKIPPED],
        "totalCodes": totalCodes,
        "successRate": round(successRate, 2),
        "processingTimeMs": round(sum(f.processingTimeMs for f in fileResults), 2),
    }


def formatBatchReport(fileResults: Sequence[FileScanResult]) -> Dict[str, Any]:
    """Format a whole batch: summary plus every file."""
    files: List[Dict[str, Any]] = [formatFileReport(f) for f in fileResults]
    return {
        "summary": getSummary(fileResults),
        "files": files,
    }
