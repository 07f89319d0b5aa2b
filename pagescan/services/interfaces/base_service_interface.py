"""
Base Service Interface Module.

Debug output and timing shared by the scanner services.

Debug artifacts are written to <debugBasePath>/<serviceName>/ and named
after the scanned file and page:
- file_<stem>.json: file report with every page (see formatFileReport)
- <status>_<fileName>_p<pageNumber>.png: image of a page that ended
  incomplete or failed

Follows:
- ISP (Interface Segregation Principle): Minimal base interface
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import time

import cv2

from pagescan.services.interfaces.batch_scan_service_interface import (
    FileScanResult,
    PageScanRecord
)
from pagescan.services import result_formatter


class IBaseService(ABC):
    """Debug switch shared by every scanner service."""

    @abstractmethod
    def setDebugEnabled(self, enabled: bool) -> None:
        """
        Enable or disable debug output.

        Args:
            enabled: True to enable debug output, False to disable.
        """
        pass

    @abstractmethod
    def isDebugEnabled(self) -> bool:
        pass


class BaseService(IBaseService):
    """
    Helper base class for scanner services.

    Debug writes never raise: a failed write is logged as a warning and the
    scan goes on.
    """

    def __init__(
        self,
        serviceName: str,
        debugBasePath: str = "output/debug",
        debugEnabled: bool = False
    ):
        """
        Initialize BaseService.

        Args:
            serviceName: Name of the service (logger name and debug subdirectory).
            debugBasePath: Base path for debug output.
            debugEnabled: Whether debug output is enabled.
        """
        self._debugDirectory = Path(debugBasePath) / serviceName
        self._debugEnabled = debugEnabled
        self._logger = logging.getLogger(serviceName)

        if debugEnabled:
            self._debugDirectory.mkdir(parents=True, exist_ok=True)

    @property
    def debugDirectory(self) -> Path:
        return self._debugDirectory

    def setDebugEnabled(self, enabled: bool) -> None:
        self._debugEnabled = enabled
        if enabled:
            self._debugDirectory.mkdir(parents=True, exist_ok=True)
        self._logger.info(f"Debug {'enabled' if enabled else 'disabled'}")

    def isDebugEnabled(self) -> bool:
        return self._debugEnabled

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Debug Output
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _saveFileReport(self, fileResult: FileScanResult) -> Optional[str]:
        """
        Save the report of one scanned file.

        Returns:
            Saved file path, or None if debug is disabled or the write failed.
        """
        if not self._debugEnabled:
            return None

        filename = f"file_{Path(fileResult.fileName).stem}.json"
        return self._writeJson(filename, result_formatter.formatFileReport(fileResult))

    def _savePageImage(self, record: PageScanRecord, image: Any) -> Optional[str]:
        """
        Save the rendered image of a scanned page, named by its outcome.

        Returns:
            Saved file path, or None if debug is disabled or the write failed.
        """
        if not self._debugEnabled or image is None:
            return None

        filename = (
            f"{record.result.status.value}_{record.fileName}_p{record.pageNumber}.png"
        )
        filepath = self._debugDirectory / filename
        try:
            if not cv2.imwrite(str(filepath), image):
                raise OSError(f"cv2.imwrite returned False for {filepath}")
        except (OSError, cv2.error) as e:
            self._logger.warning(f"[{record.frameId}] Failed to save page image: {e}")
            return None
        self._logger.debug(f"[{record.frameId}] Saved page image: {filepath}")
        return str(filepath)

    def _writeJson(self, filename: str, data: Dict) -> Optional[str]:
        filepath = self._debugDirectory / filename
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        except (OSError, TypeError, ValueError) as e:
            self._logger.warning(f"Failed to save debug JSON {filepath}: {e}")
            return None
        self._logger.debug(f"Saved debug JSON: {filepath}")
        return str(filepath)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Timing
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _logTiming(self, frameId: str, processingTimeMs: float) -> None:
        self._logger.info(f"[{frameId}] Processing time: {processingTimeMs:.2f}ms")

    def _measureTime(self, startTime: float) -> float:
        """Milliseconds elapsed since a time.time() timestamp."""
        return (time.time() - startTime) * 1000
