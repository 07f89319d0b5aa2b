"""
Scan Pipeline Module.

Wires the page scanner from configuration.
Creates ConfigService and initializes every component with proper parameters.

Components:
1. Decoder: zxing-cpp or pyzbar adapter (decoder.backend)
2. Renderer: pypdfium2 page renderer
3. Region builder and retry ladders (regions.*, scan.*)
4. Scan orchestrator: per-page four-phase scan
5. Batch scan service: files sequentially, pages in parallel

Follows:
- SRP: Only handles component wiring
- DIP: Reads settings through IConfigService; components receive plain
  parameters
"""

import dataclasses
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from pagescan.core.decoder import createCodeDecoder
from pagescan.core.errors import ConfigError
from pagescan.core.renderer import PdfiumPageRenderer
from pagescan.core.scan.region_builder import RegionBuilder
from pagescan.core.scan.scan_orchestrator import ScanOrchestrator
from pagescan.core.structure.expected_structure import ExpectedStructure, loadStructureFile
from pagescan.services.impl.batch_scan_service import BatchScanService
from pagescan.services.impl.config_service import ConfigService
from pagescan.services.interfaces.config_service_interface import IConfigService
from pagescan.services.interfaces.batch_scan_service_interface import (
    FileScanResult,
    PageCallback
)


class ScanPipeline:
    """
    Builds and owns the scanner components.

    Responsibilities:
    - Initialize ConfigService
    - Create decoder, renderer, orchestrator and batch service from config
    - Resolve the expected structure
    """

    def __init__(
        self,
        configPath: str = "config/application_config.json",
        configService: Optional[IConfigService] = None
    ):
        """
        Initialize the scan pipeline.

        Args:
            configPath: Path to the application configuration file.
            configService: Already loaded configuration (overrides configPath).
        """
        self._logger = logging.getLogger(__name__)

        # Step 1: Initialize ConfigService (reads from JSON)
        self._configService = configService or ConfigService(configPath)
        self._logger.info("ConfigService initialized")

        # Step 2: Initialize components with parameters from config
        self._initializeComponents()

        self._logger.info("ScanPipeline initialized successfully")

    def _initializeComponents(self) -> None:
        """
        Initialize all components with parameters from config.

        Components receive parameters, not IConfigService.
        """
        config = self._configService

        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        # Decoder
        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        self._decoder = createCodeDecoder(
            backend=config.getDecoderBackend(),
            formats=config.getDecoderFormats(),
            zxingTryRotate=config.getZxingTryRotate(),
            zxingTryDownscale=config.getZxingTryDownscale()
        )
        self._logger.info(f"Decoder initialized ({self._decoder.getBackendName()})")

        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        # Renderer
        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        self._renderer = PdfiumPageRenderer(grayscale=config.isGrayscaleRendering())

        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        # Scan engine
        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        self._retryConfig = config.getRetryConfig()
        try:
            regionBuilder = RegionBuilder(
                paddingByType=config.getPaddingByType(),
                matrixPadding=config.getMatrixPadding(),
                linearPadding=config.getLinearPadding(),
                defaultPadding=config.getDefaultPadding(),
                minRegionSize=config.getMinRegionSize()
            )
        except ValueError as e:
            raise ConfigError(f"Invalid region configuration: {e}") from e

        self._orchestrator = ScanOrchestrator(
            decoder=self._decoder,
            retryConfig=self._retryConfig,
            regionBuilder=regionBuilder,
            renderer=self._renderer
        )

        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        # Batch scan service
        # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
        self._batchScanService = BatchScanService(
            renderer=self._renderer,
            orchestrator=self._orchestrator,
            initialScale=self._retryConfig.initialScale,
            maxWorkers=config.getMaxWorkers(),
            saveIncompletePages=config.isSaveIncompletePages(),
            debugBasePath=config.getDebugBasePath(),
            debugEnabled=config.isDebugEnabled()
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Structure / Inputs
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def loadStructure(
        self,
        structurePath: Optional[str] = None,
        structureId: Optional[str] = None
    ) -> ExpectedStructure:
        """
        Load the expected structure to scan against.

        Args:
            structurePath: Structure file (default: structure.path).
            structureId: Structure to select (default: structure.structureId,
                or the only structure of the file).

        Raises:
            StructureError: If the file is invalid.
            ConfigError: If no single structure can be selected.
        """
        structurePath = structurePath or self._configService.getStructurePath()
        structureId = structureId or self._configService.getStructureId()
        structures = loadStructureFile(structurePath)

        if structureId is None:
            if len(structures) != 1:
                raise ConfigError(
                    f"{structurePath} defines {len(structures)} structures, "
                    f"select one with structure.structureId: {sorted(structures)}"
                )
            structure = next(iter(structures.values()))
        elif structureId in structures:
            structure = structures[structureId]
        else:
            raise ConfigError(f"Unknown structureId '{structureId}' in {structurePath}")

        if self._configService.isStructureStrict() and not structure.strict:
            structure = dataclasses.replace(structure, strict=True)

        self._logger.info(
            f"Using structure '{structure.structureId}' "
            f"({len(structure.pages)} page entries, strict={structure.strict})"
        )
        return structure

    def collectInputFiles(self, inputs: Iterable[str]) -> List[str]:
        """
        Expand input paths: directories yield their matching files (sorted),
        files are kept as given.
        """
        extensions = self._configService.getInputExtensions()
        files: List[str] = []
        for entry in inputs:
            path = Path(entry)
            if path.is_dir():
                matches = sorted(
                    p for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in extensions
                )
                if not matches:
                    self._logger.warning(f"No input files found in {path}")
                files.extend(str(p) for p in matches)
            else:
                files.append(str(path))
        return files

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Execution
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def run(
        self,
        filePaths: Sequence[str],
        structure: ExpectedStructure,
        onPageComplete: Optional[PageCallback] = None
    ) -> List[FileScanResult]:
        """Scan files against a structure."""
        return self._batchScanService.scanFiles(filePaths, structure, onPageComplete)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Component Access
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @property
    def configService(self) -> IConfigService:
        return self._configService

    @property
    def orchestrator(self) -> ScanOrchestrator:
        return self._orchestrator

    @property
    def batchScanService(self) -> BatchScanService:
        return self._batchScanService

    @property
    def renderer(self) -> PdfiumPageRenderer:
        return self._renderer

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Debug
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def setDebugEnabled(self, enabled: bool) -> None:
        """Enable or disable debug output for every service."""
        self._configService.setDebugEnabled(enabled)
        self._batchScanService.setDebugEnabled(enabled)

    def getDebugBasePath(self) -> str:
        return self._configService.getDebugBasePath()
