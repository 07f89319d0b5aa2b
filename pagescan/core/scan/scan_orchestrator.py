"""
Scan Orchestrator Module

Drives the four-phase page scan state machine:

1. Detection: one fast decode at a low fixed scale to locate candidate codes.
2. ROI construction: padded, merged, priority-ordered regions from those hits.
3. ROI decode: crop and decode each region over the ascending ROI ladder.
4. Fallback: whole-page decode over the fallback ladder, original then
   rotated per scale, only when the page is still incomplete.

Transitions are strictly forward and every phase after the point where the
page becomes complete is skipped. The completeness check runs after each
decode merge so a mid-ladder match stops further decode attempts at once.

Per-attempt RenderError/DecodeError are logged, recorded in the attempt
outcome and never abort the page. Performs no I/O besides calls to the
decoder and (optionally) the renderer.
"""

import dataclasses
import logging
import time
from typing import Any, List, Optional

import cv2

from pagescan.core.errors import DecodeError, RenderError
from pagescan.core.image.image_ops import PageImageTransformer
from pagescan.core.interfaces.code_decoder_interface import ICodeDecoder, DetectionHit
from pagescan.core.interfaces.page_renderer_interface import IPageRenderer, PageImage
from pagescan.core.scan.region_builder import RegionBuilder
from pagescan.core.scan.result_aggregator import ResultAggregator
from pagescan.core.scan.retry_controller import RetryController, RetryConfig
from pagescan.core.scan.scan_models import (
    AttemptOutcome,
    PageResult,
    Region,
    ScaleAttempt
)
from pagescan.core.structure.expected_structure import PageExpectation


class ScanOrchestrator:
    """
    Per-page scan engine.

    Holds only immutable collaborators; all mutable state (regions, retry
    cursors, aggregator) lives inside one scanPage() call, so a single
    orchestrator can serve concurrent page tasks.
    """

    def __init__(
        self,
        decoder: ICodeDecoder,
        retryConfig: Optional[RetryConfig] = None,
        regionBuilder: Optional[RegionBuilder] = None,
        renderer: Optional[IPageRenderer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize ScanOrchestrator.

        Args:
            decoder: Decode primitive.
            retryConfig: Ladder parameters shared by every page.
            regionBuilder: Region builder (default padding rules if None).
            renderer: Renderer used to re-render whole pages in the fallback
                phase. Without it the page image is resampled instead.
            logger: Logger instance.
        """
        self._decoder = decoder
        self._retryConfig = retryConfig or RetryConfig()
        self._retryConfig.validate()
        self._regionBuilder = regionBuilder or RegionBuilder()
        self._renderer = renderer
        self._logger = logger or logging.getLogger(__name__)

    @property
    def retryConfig(self) -> RetryConfig:
        return self._retryConfig

    def scanPage(
        self,
        pageImage: PageImage,
        expectation: PageExpectation,
        pageHandle: Optional[Any] = None,
        frameId: Optional[str] = None
    ) -> PageResult:
        """
        Locate and decode every expected code of one page.

        Args:
            pageImage: Page rendered by the caller (not retained).
            expectation: Expected codes of this page.
            pageHandle: Renderer handle of the page, enables re-rendering in
                the fallback phase.
            frameId: Identifier used in log messages.

        Returns:
            PageResult snapshot (complete, incomplete or failed).
        """
        frameId = frameId or f"page {expectation.pageNumber}"
        startTime = time.perf_counter()

        aggregator = ResultAggregator(expectation.pageNumber)
        retry = RetryController(self._retryConfig)

        def stop() -> bool:
            return retry.shouldStop(aggregator.isComplete(expectation))

        if stop():
            self._logger.info(f"[{frameId}] Nothing expected, no decode attempts")
            return dataclasses.replace(
                aggregator.finalize(expectation), retrySummary=retry.summary()
            )

        # Phase 1: detection
        detectionHits = self._detectionPhase(pageImage, aggregator, retry, frameId)

        if not stop():
            # Phase 2: ROI construction
            regions = self._regionBuilder.buildRegions(
                detectionHits, pageImage.width, pageImage.height
            )
            self._logger.debug(f"[{frameId}] Built {len(regions)} region(s)")

            # Phase 3: ROI decode
            if regions:
                self._roiDecodePhase(pageImage, regions, expectation, aggregator, retry, frameId)
            else:
                self._logger.info(f"[{frameId}] No regions, going to full-page fallback")

        # Phase 4: fallback
        if not stop():
            self._fallbackPhase(pageImage, pageHandle, expectation, aggregator, retry, frameId)

        summary = retry.summary()
        result = dataclasses.replace(aggregator.finalize(expectation), retrySummary=summary)
        elapsedMs = (time.perf_counter() - startTime) * 1000
        self._logger.info(
            f"[{frameId}] {result.status.value}: {result.foundCount} code(s), "
            f"{summary['totalAttempts']} attempt(s) "
            f"(scales={summary['scalesUsed']}, rotated={summary['rotatedAttempts']}, "
            f"perPhase={summary['attemptsPerPhase']}), {elapsedMs:.1f}ms"
        )
        if result.missingFormats:
            self._logger.debug(f"[{frameId}] Missing: {', '.join(result.missingFormats)}")
        return result

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Phases
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _detectionPhase(
        self,
        pageImage: PageImage,
        aggregator: ResultAggregator,
        retry: RetryController,
        frameId: str
    ) -> List[DetectionHit]:
        """Run the detection decode; return every hit in page image coordinates."""
        attempt = retry.detectionAttempt()
        retry.consume(attempt)
        outcome = AttemptOutcome(decodeCalls=1)

        pageHits: List[DetectionHit] = []
        try:
            image = PageImageTransformer.resample(
                pageImage.pixels, attempt.scale / pageImage.renderScale
            )
            hits = self._decoder.decode(image, includeUndecoded=True)
            toPage = pageImage.width / image.shape[1]
            for hit in hits:
                box = hit.boundingBox.scaled(toPage) if hit.boundingBox else None
                pageHits.append(hit.withBoundingBox(box))
        except (DecodeError, cv2.error) as e:
            outcome.errors.append(str(e))
            self._logger.warning(f"[{frameId}] Detection decode failed: {e}")

        outcome.hitsReturned = len(pageHits)
        for hit in pageHits:
            if aggregator.merge(hit, attempt):
                outcome.newCodes += 1
        aggregator.recordAttempt(attempt, outcome)

        self._logger.debug(
            f"[{frameId}] Detection @ {attempt.scale}: {len(pageHits)} hit(s), "
            f"{sum(1 for h in pageHits if h.hasValue)} decoded"
        )
        return pageHits

    def _roiDecodePhase(
        self,
        pageImage: PageImage,
        regions: List[Region],
        expectation: PageExpectation,
        aggregator: ResultAggregator,
        retry: RetryController,
        frameId: str
    ) -> None:
        """Decode regions over the ROI ladder until complete or exhausted."""
        ladder = retry.roiLadder()

        while not retry.shouldStop(aggregator.isComplete(expectation)):
            attempt = retry.nextAttempt(ladder)
            if attempt is None:
                self._logger.debug(f"[{frameId}] ROI ladder exhausted")
                break

            outcome = AttemptOutcome()
            factor = attempt.scale / pageImage.renderScale

            for index, region in enumerate(regions):
                hits = self._decodeRegion(pageImage, region, factor, outcome, frameId)
                for hit in hits:
                    if aggregator.merge(hit, attempt):
                        outcome.newCodes += 1

                if retry.shouldStop(aggregator.isComplete(expectation)):
                    outcome.earlyExit = index < len(regions) - 1
                    self._logger.info(
                        f"[{frameId}] Complete after {region.label} @ ROI scale {attempt.scale}"
                    )
                    break

            aggregator.recordAttempt(attempt, outcome)

    def _fallbackPhase(
        self,
        pageImage: PageImage,
        pageHandle: Optional[Any],
        expectation: PageExpectation,
        aggregator: ResultAggregator,
        retry: RetryController,
        frameId: str
    ) -> None:
        """Decode the whole page over the fallback ladder until complete or exhausted."""
        ladder = retry.fallbackLadder()
        self._logger.debug(f"[{frameId}] Starting full-page fallback ({len(ladder)} attempt(s))")

        while not retry.shouldStop(aggregator.isComplete(expectation)):
            attempt = retry.nextAttempt(ladder)
            if attempt is None:
                self._logger.debug(f"[{frameId}] Fallback ladder exhausted")
                break

            rotation = self._retryConfig.rotationDegrees if attempt.rotated else 0
            outcome = AttemptOutcome(decodeCalls=1)
            try:
                hits = self._decodeFullPage(pageImage, pageHandle, attempt.scale, rotation)
                outcome.hitsReturned = len(hits)
                for hit in hits:
                    if aggregator.merge(hit, attempt):
                        outcome.newCodes += 1
            except (RenderError, DecodeError, cv2.error) as e:
                outcome.errors.append(str(e))
                self._logger.warning(
                    f"[{frameId}] Full-page decode failed @ {attempt.scale} "
                    f"(rotated={attempt.rotated}): {e}"
                )

            aggregator.recordAttempt(attempt, outcome)
            if outcome.newCodes:
                self._logger.info(
                    f"[{frameId}] Fallback found {outcome.newCodes} code(s) @ {attempt.scale} "
                    f"(rotated={attempt.rotated})"
                )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Decode helpers
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _decodeRegion(
        self,
        pageImage: PageImage,
        region: Region,
        factor: float,
        outcome: AttemptOutcome,
        frameId: str
    ) -> List[DetectionHit]:
        """Crop, resample and decode one region; hits come back in page coordinates."""
        crop = PageImageTransformer.crop(pageImage.pixels, region.boundingBox)
        if crop is None:
            self._logger.debug(f"[{frameId}] Empty crop for {region.label}")
            return []

        left, top, _, _ = region.boundingBox.clamped(
            pageImage.width, pageImage.height
        ).toPixelRect()

        outcome.decodeCalls += 1
        try:
            image = PageImageTransformer.resample(crop, factor)
            hits = self._decoder.decode(image)
        except (DecodeError, cv2.error) as e:
            outcome.errors.append(f"{region.label}: {e}")
            self._logger.warning(f"[{frameId}] ROI decode failed for {region.label}: {e}")
            return []

        outcome.hitsReturned += len(hits)
        toCrop = crop.shape[1] / image.shape[1]
        mapped = []
        for hit in hits:
            box = hit.boundingBox
            if box is not None:
                box = box.scaled(toCrop).translated(left, top)
            mapped.append(hit.withBoundingBox(box))
        return mapped

    def _decodeFullPage(
        self,
        pageImage: PageImage,
        pageHandle: Optional[Any],
        scale: float,
        rotation: int
    ) -> List[DetectionHit]:
        """Re-render (or resample) and decode the whole page; hits in page coordinates."""
        if self._renderer is not None and pageHandle is not None:
            pixels = self._renderer.renderPage(pageHandle, scale, rotation).pixels
        else:
            pixels = PageImageTransformer.rotate(
                PageImageTransformer.resample(pageImage.pixels, scale / pageImage.renderScale),
                rotation
            )

        hits = self._decoder.decode(pixels)

        rotatedHeight, rotatedWidth = pixels.shape[:2]
        unrotatedWidth = rotatedWidth if rotation % 180 == 0 else rotatedHeight
        toPage = pageImage.width / unrotatedWidth

        mapped = []
        for hit in hits:
            box = hit.boundingBox
            if box is not None:
                box = PageImageTransformer.unrotateBox(
                    box, rotatedWidth, rotatedHeight, rotation
                ).scaled(toPage)
            mapped.append(hit.withBoundingBox(box))
        return mapped
