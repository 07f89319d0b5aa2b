"""
Config Service Interface Module.

Defines the settings the scan pipeline reads when it wires the scanner:
scale ladders, region padding, decoder backend, batch scheduling, expected
structure and debug output.

Follows:
- SRP: Only handles configuration management
- DIP: ScanPipeline depends on this abstraction
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from pagescan.core.scan.retry_controller import RetryConfig


class IConfigService(ABC):
    """
    Interface for scanner configuration.

    Getters return typed values with defaults applied and raise ConfigError
    for values of the wrong shape.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a raw configuration value by dot notation key
        (e.g., "scan.detectionScale").
        """
        pass

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Scan engine
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @abstractmethod
    def getRetryConfig(self) -> RetryConfig:
        """
        Get the validated scale ladder parameters (scan section).

        Raises:
            ConfigError: If the ladder parameters are inconsistent.
        """
        pass

    @abstractmethod
    def getMatrixPadding(self) -> Tuple[float, float]:
        pass

    @abstractmethod
    def getLinearPadding(self) -> Tuple[float, float]:
        pass

    @abstractmethod
    def getDefaultPadding(self) -> Tuple[float, float]:
        pass

    @abstractmethod
    def getPaddingByType(self) -> Dict[str, Tuple[float, float]]:
        pass

    @abstractmethod
    def getMinRegionSize(self) -> float:
        pass

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Decoder / Renderer / Batch
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @abstractmethod
    def getDecoderBackend(self) -> str:
        """Get decoder backend name ("zxing" or "pyzbar")."""
        pass

    @abstractmethod
    def getDecoderFormats(self) -> Optional[List[str]]:
        """Get code type names to read (None = every format)."""
        pass

    @abstractmethod
    def getZxingTryRotate(self) -> bool:
        pass

    @abstractmethod
    def getZxingTryDownscale(self) -> bool:
        pass

    @abstractmethod
    def isGrayscaleRendering(self) -> bool:
        pass

    @abstractmethod
    def getMaxWorkers(self) -> int:
        """Get the number of pages of one file scanned in parallel."""
        pass

    @abstractmethod
    def getInputExtensions(self) -> List[str]:
        """Get lowercased file extensions collected from input directories."""
        pass

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Expected structure
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @abstractmethod
    def getStructurePath(self) -> str:
        pass

    @abstractmethod
    def getStructureId(self) -> Optional[str]:
        pass

    @abstractmethod
    def isStructureStrict(self) -> bool:
        """Force strict page lookups for the selected structure."""
        pass

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Debug
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @abstractmethod
    def getDebugBasePath(self) -> str:
        pass

    @abstractmethod
    def isDebugEnabled(self) -> bool:
        pass

    @abstractmethod
    def setDebugEnabled(self, enabled: bool) -> None:
        pass

    @abstractmethod
    def isSaveIncompletePages(self) -> bool:
        """Save page images of pages that end incomplete (debug only)."""
        pass
