"""
Retry Controller Module

Owns the two resolution ladders of a page scan and the early-exit predicate.

- ROI ladder: ascending magnifications for cropped region decodes,
  bounded by [minScale, maxScale].
- Fallback ladder: ascending magnifications for whole-page decodes,
  bounded by [initialScale, maxScale]. When rotation is enabled each scale
  doubles into (original, rotated), in that order, before the next scale.

maxScale is a hard ceiling: reaching a scale above it exhausts the ladder.
One RetryController is created per page; RetryConfig is immutable and shared.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from pagescan.core.scan.scan_models import ScaleAttempt, ScanPhase


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """
    Scale ladder parameters.

    Defaults are the tuned scales used by the scanner configuration.
    """
    detectionScale: float = 1.5
    roiScales: Tuple[float, ...] = (2.5, 3.5, 4.5)
    fallbackScales: Tuple[float, ...] = (3.0, 4.0)
    minScale: float = 1.0
    initialScale: float = 3.0
    maxScale: float = 9.0
    rotationEnabled: bool = True
    rotationDegrees: int = 180

    def validate(self) -> None:
        if self.minScale <= 0:
            raise ValueError("minScale must be > 0")
        if not (self.minScale <= self.initialScale <= self.maxScale):
            raise ValueError("scales must satisfy minScale <= initialScale <= maxScale")
        if self.detectionScale <= 0:
            raise ValueError("detectionScale must be > 0")
        for scale in tuple(self.roiScales) + tuple(self.fallbackScales):
            if scale <= 0:
                raise ValueError(f"ladder scales must be > 0, got {scale}")
        if self.rotationEnabled and (
            self.rotationDegrees % 90 != 0 or self.rotationDegrees % 360 == 0
        ):
            raise ValueError("rotationDegrees must be 90, 180 or 270")


class ScaleLadder:
    """
    Ordered, consumable sequence of ScaleAttempts with its own cursor.
    """

    def __init__(self, phase: ScanPhase, attempts: List[ScaleAttempt], maxScale: float):
        self._phase = phase
        self._attempts = tuple(attempts)
        self._maxScale = maxScale
        self._cursor = 0

    @property
    def phase(self) -> ScanPhase:
        return self._phase

    @property
    def attempts(self) -> Tuple[ScaleAttempt, ...]:
        return self._attempts

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._attempts)

    def __len__(self) -> int:
        return len(self._attempts)

    def advance(self) -> Optional[ScaleAttempt]:
        if self.exhausted:
            return None
        attempt = self._attempts[self._cursor]
        if attempt.scale > self._maxScale:
            self._cursor = len(self._attempts)
            return None
        self._cursor += 1
        return attempt


class RetryController:
    """
    Per-page retry state: ladders, consumed attempts and the stop predicate.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        """
        Initialize RetryController.

        Args:
            config: Shared ladder parameters (validated here).
        """
        self._config = config or RetryConfig()
        self._config.validate()
        self._consumed: Set[ScaleAttempt] = set()
        self._history: List[ScaleAttempt] = []

    @property
    def config(self) -> RetryConfig:
        return self._config

    def detectionAttempt(self) -> ScaleAttempt:
        """The single fixed-scale attempt of the detection phase."""
        return ScaleAttempt(self._config.detectionScale, False, ScanPhase.DETECTION)

    def roiLadder(self) -> ScaleLadder:
        """Build the ascending ROI ladder."""
        scales = self._boundedScales(self._config.roiScales, self._config.minScale)
        attempts = [ScaleAttempt(scale, False, ScanPhase.ROI) for scale in scales]
        return ScaleLadder(ScanPhase.ROI, attempts, self._config.maxScale)

    def fallbackLadder(self) -> ScaleLadder:
        """Build the ascending fallback ladder (original then rotated per scale)."""
        scales = self._boundedScales(self._config.fallbackScales, self._config.initialScale)
        attempts: List[ScaleAttempt] = []
        for scale in scales:
            attempts.append(ScaleAttempt(scale, False, ScanPhase.FALLBACK))
            if self._config.rotationEnabled:
                attempts.append(ScaleAttempt(scale, True, ScanPhase.FALLBACK))
        return ScaleLadder(ScanPhase.FALLBACK, attempts, self._config.maxScale)

    def _boundedScales(self, scales, lowerBound: float) -> List[float]:
        # Sorted and unique; entries above maxScale stay so the ladder reports
        # exhaustion when it reaches them.
        bounded = sorted({float(s) for s in scales if s >= lowerBound})
        dropped = [s for s in scales if s < lowerBound]
        if dropped:
            logger.debug(f"Dropping ladder scales below {lowerBound}: {dropped}")
        return bounded

    def nextAttempt(self, ladder: ScaleLadder) -> Optional[ScaleAttempt]:
        """
        Advance a ladder's cursor.

        Returns:
            Next unconsumed ScaleAttempt, or None when the ladder is exhausted.
        """
        while True:
            attempt = ladder.advance()
            if attempt is None:
                return None
            if attempt in self._consumed:
                continue
            self.consume(attempt)
            return attempt

    def consume(self, attempt: ScaleAttempt) -> None:
        """Mark an attempt as consumed (detection attempt is consumed directly)."""
        self._consumed.add(attempt)
        self._history.append(attempt)

    def shouldStop(self, isComplete: bool) -> bool:
        """
        Early-exit predicate, evaluated after every merge.

        Args:
            isComplete: Aggregator completeness for the page expectation.
        """
        return bool(isComplete)

    @property
    def history(self) -> List[ScaleAttempt]:
        return list(self._history)

    def summary(self) -> Dict:
        """Counts of consumed attempts per phase."""
        perPhase = {phase.value: 0 for phase in ScanPhase}
        for attempt in self._history:
            perPhase[attempt.phase.value] += 1
        return {
            "totalAttempts": len(self._history),
            "scalesUsed": sorted({a.scale for a in self._history}),
            "rotatedAttempts": sum(1 for a in self._history if a.rotated),
            "attemptsPerPhase": perPhase,
        }
