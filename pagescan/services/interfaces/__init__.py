"""
Services Interfaces Package.

Exports all service interfaces for the page scanner.
"""

from pagescan.services.interfaces.base_service_interface import (
    IBaseService,
    BaseService
)

from pagescan.services.interfaces.config_service_interface import IConfigService

from pagescan.services.interfaces.batch_scan_service_interface import (
    PageScanRecord,
    FileScanResult,
    PageCallback,
    IBatchScanService
)

__all__ = [
    'IBaseService',
    'BaseService',
    'IConfigService',
    'PageScanRecord',
    'FileScanResult',
    'PageCallback',
    'IBatchScanService'
]
