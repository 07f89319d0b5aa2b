"""Page scan engine: region builder, retry controller, aggregator and orchestrator."""

from pagescan.core.scan.scan_models import (
    ScanPhase,
    PageStatus,
    Region,
    ScaleAttempt,
    AttemptOutcome,
    FoundCode,
    PageResult
)
from pagescan.core.scan.region_builder import RegionBuilder, buildRegions
from pagescan.core.scan.retry_controller import RetryConfig, RetryController, ScaleLadder
from pagescan.core.scan.result_aggregator import ResultAggregator
from pagescan.core.scan.scan_orchestrator import ScanOrchestrator

__all__ = [
    'ScanPhase',
    'PageStatus',
    'Region',
    'ScaleAttempt',
    'AttemptOutcome',
    'FoundCode',
    'PageResult',
    'RegionBuilder',
    'buildRegions',
    'RetryConfig',
    'RetryController',
    'ScaleLadder',
    'ResultAggregator',
    'ScanOrchestrator'
]
