"""
Services Implementation Package.

Exports all service implementations for the page scanner.
"""

from pagescan.services.impl.config_service import ConfigService
from pagescan.services.impl.batch_scan_service import BatchScanService


__all__ = [
    "ConfigService",
    "BatchScanService",
]
