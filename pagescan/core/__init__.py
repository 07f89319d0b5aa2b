# Core module for the page scanner
# Contains interfaces, adapters and the page scan engine

from pagescan.core.interfaces.code_decoder_interface import BoundingBox, DetectionHit, ICodeDecoder
from pagescan.core.interfaces.page_renderer_interface import PageImage, IPageRenderer
from pagescan.core.structure.expected_structure import PageExpectation, ExpectedStructure
from pagescan.core.scan.scan_models import PageResult, PageStatus, ScaleAttempt, ScanPhase
from pagescan.core.scan.scan_orchestrator import ScanOrchestrator

__all__ = [
    "BoundingBox",
    "DetectionHit",
    "ICodeDecoder",
    "PageImage",
    "IPageRenderer",
    "PageExpectation",
    "ExpectedStructure",
    "PageResult",
    "PageStatus",
    "ScaleAttempt",
    "ScanPhase",
    "ScanOrchestrator",
]
