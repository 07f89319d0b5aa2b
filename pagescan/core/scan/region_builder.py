"""
Region Builder Module

Turns partial detection hits into padded, merged and priority-ordered search
regions (ROIs) for the ROI decode phase.

Padding is type-specific: matrix codes (QR) get a tight uniform margin while
linear barcodes get extra horizontal slack for their quiet zone.
Overlapping regions of the same type hint are merged; regions of different
type hints are never merged since they are decoded with different expectations.

Follows SRP: Only builds regions, performs no decoding or image access.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from pagescan.core.interfaces.code_decoder_interface import (
    BoundingBox,
    DetectionHit,
    isLinearCodeType,
    isMatrixCodeType
)
from pagescan.core.scan.scan_models import Region


logger = logging.getLogger(__name__)


# (horizontal, vertical) padding as a fraction of the hit box size
DEFAULT_MATRIX_PADDING = (0.20, 0.20)
DEFAULT_LINEAR_PADDING = (0.35, 0.20)
DEFAULT_PADDING = (0.25, 0.25)
DEFAULT_MIN_REGION_SIZE = 20.0


@dataclass
class _Candidate:
    box: BoundingBox
    codeType: str
    hasValue: bool
    anchor: Tuple[float, float]  # (top, left)
    firstIndex: int
    count: int = 1


class RegionBuilder:
    """
    Builds search regions from detection hits.

    Pure and deterministic: the same hits in the same order always produce
    the same regions in the same order.
    """

    def __init__(
        self,
        paddingByType: Optional[Dict[str, Tuple[float, float]]] = None,
        matrixPadding: Tuple[float, float] = DEFAULT_MATRIX_PADDING,
        linearPadding: Tuple[float, float] = DEFAULT_LINEAR_PADDING,
        defaultPadding: Tuple[float, float] = DEFAULT_PADDING,
        minRegionSize: float = DEFAULT_MIN_REGION_SIZE
    ):
        """
        Initialize RegionBuilder.

        Args:
            paddingByType: Per code type overrides {codeType: (padX, padY)}.
            matrixPadding: Padding for 2D codes (QRCode, DataMatrix, ...).
            linearPadding: Padding for 1D barcodes (Code128, EAN13, ...).
            defaultPadding: Padding for any other code type.
            minRegionSize: Minimum region width and height in pixels.
        """
        self._paddingByType = dict(paddingByType or {})
        self._matrixPadding = tuple(matrixPadding)
        self._linearPadding = tuple(linearPadding)
        self._defaultPadding = tuple(defaultPadding)
        self._minRegionSize = float(minRegionSize)

        for name, padding in [
            ("matrixPadding", self._matrixPadding),
            ("linearPadding", self._linearPadding),
            ("defaultPadding", self._defaultPadding),
        ] + [(f"paddingByType[{k}]", tuple(v)) for k, v in self._paddingByType.items()]:
            if len(padding) != 2 or min(padding) < 0:
                raise ValueError(f"{name} must be two non-negative fractions, got {padding}")
        if self._minRegionSize < 0:
            raise ValueError("minRegionSize must be >= 0")

    def getPadding(self, codeType: str) -> Tuple[float, float]:
        """Get (padX, padY) for a code type."""
        if codeType in self._paddingByType:
            return tuple(self._paddingByType[codeType])
        if isMatrixCodeType(codeType):
            return self._matrixPadding
        if isLinearCodeType(codeType):
            return self._linearPadding
        return self._defaultPadding

    def buildRegions(
        self,
        hits: Sequence[DetectionHit],
        imageWidth: Optional[float] = None,
        imageHeight: Optional[float] = None
    ) -> List[Region]:
        """
        Build priority-ordered regions from detection hits.

        Args:
            hits: Detection hits (with or without decoded value).
            imageWidth: Page image width for clamping (optional).
            imageHeight: Page image height for clamping (optional).

        Returns:
            Regions, highest priority first. Empty for an empty input.
        """
        candidates: List[_Candidate] = []
        for index, hit in enumerate(hits):
            box = hit.boundingBox
            if box is None or box.width <= 0 or box.height <= 0:
                logger.debug(f"Skipping hit without usable position: {hit.codeType}")
                continue

            padded = self._padBox(box, hit.codeType, imageWidth, imageHeight)
            if padded.area <= 0:
                continue

            candidates.append(_Candidate(
                box=padded,
                codeType=hit.codeType,
                hasValue=hit.hasValue,
                anchor=(box.top, box.left),
                firstIndex=index
            ))

        merged = self._mergeOverlapping(candidates)
        merged.sort(key=lambda c: (0 if c.hasValue else 1, c.anchor[0], c.anchor[1], c.firstIndex))

        regions: List[Region] = []
        typeCounters: Dict[str, int] = {}
        for candidate in merged:
            typeCounters[candidate.codeType] = typeCounters.get(candidate.codeType, 0) + 1
            regions.append(Region(
                boundingBox=candidate.box,
                codeTypeHint=candidate.codeType,
                priority=1 if candidate.hasValue else 0,
                label=f"{candidate.codeType}_{typeCounters[candidate.codeType]}",
                sourceCount=candidate.count,
                anchor=candidate.anchor
            ))

        logger.debug(f"Built {len(regions)} region(s) from {len(hits)} hit(s)")
        return regions

    def _padBox(
        self,
        box: BoundingBox,
        codeType: str,
        imageWidth: Optional[float],
        imageHeight: Optional[float]
    ) -> BoundingBox:
        padX, padY = self.getPadding(codeType)
        padded = box.padded(padX, padY)

        # Grow tiny boxes around their center
        if padded.width < self._minRegionSize or padded.height < self._minRegionSize:
            width = max(padded.width, self._minRegionSize)
            height = max(padded.height, self._minRegionSize)
            centerX = padded.left + padded.width / 2
            centerY = padded.top + padded.height / 2
            padded = BoundingBox(centerX - width / 2, centerY - height / 2, width, height)

        if imageWidth is not None and imageHeight is not None:
            padded = padded.clamped(imageWidth, imageHeight)
        return padded

    @staticmethod
    def _mergeOverlapping(candidates: List[_Candidate]) -> List[_Candidate]:
        """Union same-type candidates with non-zero overlap until none overlap."""
        merged = list(candidates)
        changed = True
        while changed:
            changed = False
            for i in range(len(merged)):
                for j in range(i + 1, len(merged)):
                    a, b = merged[i], merged[j]
                    if a.codeType != b.codeType:
                        continue
                    if a.box.intersectionArea(b.box) <= 0:
                        continue
                    merged[i] = _Candidate(
                        box=a.box.union(b.box),
                        codeType=a.codeType,
                        hasValue=a.hasValue or b.hasValue,
                        anchor=min(a.anchor, b.anchor),
                        firstIndex=min(a.firstIndex, b.firstIndex),
                        count=a.count + b.count
                    )
                    del merged[j]
                    changed = True
                    break
                if changed:
                    break
        return merged


def buildRegions(
    hits: Sequence[DetectionHit],
    imageWidth: Optional[float] = None,
    imageHeight: Optional[float] = None
) -> List[Region]:
    """Build regions with the default padding rules."""
    return RegionBuilder().buildRegions(hits, imageWidth, imageHeight)
