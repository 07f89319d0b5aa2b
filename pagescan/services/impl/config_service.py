"""
Config Service Implementation.

Centralized configuration management for the page scanner.
Loads configuration from application_config.json organized by section
(scan, regions, decoder, renderer, batch, structure, debug).

Missing keys fall back to the tuned production defaults.

Follows:
- SRP: Only handles configuration management
- DIP: Provides configuration to other services via interface
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pagescan.core.errors import ConfigError
from pagescan.core.scan.retry_controller import RetryConfig
from pagescan.services.interfaces.config_service_interface import IConfigService


logger = logging.getLogger(__name__)


class ConfigService(IConfigService):
    """
    Implementation of IConfigService.

    Loads and manages scanner configuration from application_config.json.
    """

    def __init__(self, configPath: str = "config/application_config.json"):
        """
        Initialize ConfigService.

        Args:
            configPath: Path to the configuration file.

        Raises:
            ConfigError: If the file cannot be loaded.
        """
        self._config: Dict[str, Any] = {}
        self._configPath = Path(configPath)
        self._debugEnabled = False

        # Load config (required)
        if not self.loadConfig(configPath):
            raise ConfigError(f"Failed to load configuration from: {configPath}")

    @classmethod
    def fromDict(cls, config: Dict[str, Any]) -> "ConfigService":
        """Build a ConfigService from an in-memory dictionary."""
        service = cls.__new__(cls)
        service._config = dict(config)
        service._configPath = None
        service._debugEnabled = bool(service.get("debug.enabled", False))
        return service

    def loadConfig(self, configPath: str) -> bool:
        """Load configuration from JSON file."""
        try:
            path = Path(configPath)
            if not path.exists():
                logger.error(f"Config file not found: {configPath}")
                return False

            with open(path, 'r', encoding='utf-8') as f:
                config = json.load(f)

            if not isinstance(config, dict):
                logger.error(f"Config root must be an object: {configPath}")
                return False
            self._config = config

            # Initialize debug state from config
            self._debugEnabled = bool(self.get("debug.enabled", False))

            logger.info(f"Configuration loaded from: {path.absolute()}")
            return True

        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file: {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to load config: {e}")
            return False

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Generic Config Access
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key with dot notation support.

        Examples:
            get("scan.detectionScale") -> 1.5
            get("decoder.backend") -> "zxing"
            get("structure.strict") -> False
        """
        value = self._config
        for part in key.split('.'):
            if isinstance(value, dict):
                value = value.get(part)
                if value is None:
                    return default
            else:
                return default
        return value

    def _getScales(self, key: str, default: Tuple[float, ...]) -> Tuple[float, ...]:
        value = self.get(key, list(default))
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in value
        ):
            raise ConfigError(f"'{key}' must be a list of numbers, got {value!r}")
        return tuple(float(v) for v in value)

    def _getPadding(self, key: str, default: Tuple[float, float]) -> Tuple[float, float]:
        value = self.get(key, list(default))
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ConfigError(f"'{key}' must be [horizontal, vertical], got {value!r}")
        return float(value[0]), float(value[1])

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Debug Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def getDebugBasePath(self) -> str:
        """Get base path for debug output."""
        return self.get("debug.basePath", "output/debug")

    def isDebugEnabled(self) -> bool:
        """Check if debug mode is enabled."""
        return self._debugEnabled

    def setDebugEnabled(self, enabled: bool) -> None:
        """Enable or disable debug mode at runtime."""
        self._debugEnabled = enabled
        logger.info(f"Debug mode {'enabled' if enabled else 'disabled'}")

    def isSaveIncompletePages(self) -> bool:
        """Save page images of incomplete pages when debug is enabled."""
        return bool(self.get("debug.saveIncompletePages", False))

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Scan Ladder Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def getDetectionScale(self) -> float:
        """Get the fixed scale of the detection phase."""
        return float(self.get("scan.detectionScale", 1.5))

    def getRoiScales(self) -> Tuple[float, ...]:
        """Get the ROI ladder scales."""
        return self._getScales("scan.roiScales", (2.5, 3.5, 4.5))

    def getFallbackScales(self) -> Tuple[float, ...]:
        """Get the full-page fallback ladder scales."""
        return self._getScales("scan.fallbackScales", (3.0, 4.0))

    def getMinScale(self) -> float:
        return float(self.get("scan.minScale", 1.0))

    def getInitialScale(self) -> float:
        """Get the scale pages are first rendered at."""
        return float(self.get("scan.initialScale", 3.0))

    def getMaxScale(self) -> float:
        return float(self.get("scan.maxScale", 9.0))

    def isRotationEnabled(self) -> bool:
        """Check if the fallback ladder also tries the rotated page."""
        return bool(self.get("scan.rotationEnabled", True))

    def getRotationDegrees(self) -> int:
        return int(self.get("scan.rotationDegrees", 180))

    def getRetryConfig(self) -> RetryConfig:
        """Get the validated scale ladder parameters."""
        retryConfig = RetryConfig(
            detectionScale=self.getDetectionScale(),
            roiScales=self.getRoiScales(),
            fallbackScales=self.getFallbackScales(),
            minScale=self.getMinScale(),
            initialScale=self.getInitialScale(),
            maxScale=self.getMaxScale(),
            rotationEnabled=self.isRotationEnabled(),
            rotationDegrees=self.getRotationDegrees()
        )
        try:
            retryConfig.validate()
        except ValueError as e:
            raise ConfigError(f"Invalid scan configuration: {e}") from e
        return retryConfig

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Region Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def getMatrixPadding(self) -> Tuple[float, float]:
        """Get (horizontal, vertical) padding of 2D codes."""
        return self._getPadding("regions.matrixPadding", (0.20, 0.20))

    def getLinearPadding(self) -> Tuple[float, float]:
        """Get (horizontal, vertical) padding of 1D barcodes."""
        return self._getPadding("regions.linearPadding", (0.35, 0.20))

    def getDefaultPadding(self) -> Tuple[float, float]:
        return self._getPadding("regions.defaultPadding", (0.25, 0.25))

    def getPaddingByType(self) -> Dict[str, Tuple[float, float]]:
        """Get per code type padding overrides."""
        overrides = self.get("regions.paddingByType", {})
        if not isinstance(overrides, dict):
            raise ConfigError("'regions.paddingByType' must be an object")
        return {
            codeType: self._getPadding(f"regions.paddingByType.{codeType}", (0.0, 0.0))
            for codeType in overrides
        }

    def getMinRegionSize(self) -> float:
        """Get minimum region width and height in pixels."""
        return float(self.get("regions.minRegionSize", 20))

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Decoder Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def getDecoderBackend(self) -> str:
        """
        Get decoder backend.

        Returns:
            str: "zxing" or "pyzbar".
        """
        return self.get("decoder.backend", "zxing")

    def getDecoderFormats(self) -> Optional[List[str]]:
        """Get code type names to read (None = every format)."""
        formats = self.get("decoder.formats")
        if formats is not None and not isinstance(formats, list):
            raise ConfigError(f"'decoder.formats' must be a list, got {formats!r}")
        return formats or None

    def getZxingTryRotate(self) -> bool:
        return bool(self.get("decoder.zxing.tryRotate", True))

    def getZxingTryDownscale(self) -> bool:
        return bool(self.get("decoder.zxing.tryDownscale", True))

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Renderer / Batch Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def isGrayscaleRendering(self) -> bool:
        """Check if pages are rendered as single-channel images."""
        return bool(self.get("renderer.grayscale", False))

    def getMaxWorkers(self) -> int:
        """Get the number of pages of one file scanned in parallel."""
        maxWorkers = self.get("batch.maxWorkers", 4)
        if not isinstance(maxWorkers, int) or isinstance(maxWorkers, bool) or maxWorkers < 1:
            raise ConfigError(f"'batch.maxWorkers' must be a positive integer, got {maxWorkers!r}")
        return maxWorkers

    def getInputExtensions(self) -> List[str]:
        """Get file extensions collected from input directories."""
        return [ext.lower() for ext in self.get("batch.inputExtensions", [".pdf"])]

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Structure Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def getStructurePath(self) -> str:
        """Get path of the expected structure file."""
        return self.get("structure.path", "config/structures.json")

    def getStructureId(self) -> Optional[str]:
        """Get the structure to use (None = the only one in the file)."""
        return self.get("structure.structureId")

    def isStructureStrict(self) -> bool:
        """Check if a page without an expectation is an error."""
        return bool(self.get("structure.strict", False))
