"""Fake decode and render collaborators shared by the test modules."""

from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from pagescan.core.errors import RenderError
from pagescan.core.interfaces.code_decoder_interface import ICodeDecoder, DetectionHit
from pagescan.core.interfaces.page_renderer_interface import IPageRenderer, PageImage


Response = Union[Sequence[DetectionHit], Exception]


class ScriptedDecoder(ICodeDecoder):
    """Returns scripted responses call by call, then empty lists."""

    def __init__(self, responses: Optional[List[Response]] = None):
        self._responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def getBackendName(self) -> str:
        return "scripted"

    def decode(self, image: np.ndarray, includeUndecoded: bool = False) -> List[DetectionHit]:
        self.calls.append({"shape": image.shape, "includeUndecoded": includeUndecoded})
        if not self._responses:
            return []
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return list(response)


class CallbackDecoder(ICodeDecoder):
    """Delegates to a function of (callIndex, image, includeUndecoded)."""

    def __init__(self, handler: Callable[[int, np.ndarray, bool], List[DetectionHit]]):
        self._handler = handler
        self.calls = 0

    def getBackendName(self) -> str:
        return "callback"

    def decode(self, image: np.ndarray, includeUndecoded: bool = False) -> List[DetectionHit]:
        index = self.calls
        self.calls += 1
        return self._handler(index, image, includeUndecoded)


class FakeDocument:
    def __init__(self, path: str, pageCount: int):
        self.path = path
        self.pageCount = pageCount
        self.closed = False


class FakeRenderer(IPageRenderer):
    """
    In-memory renderer: every page is a blank image of 72-dpi size
    (pageWidth x pageHeight) times the render scale.
    """

    def __init__(
        self,
        pageCounts: Dict[str, int],
        pageWidth: int = 60,
        pageHeight: int = 80,
        failingPages: Sequence[int] = ()
    ):
        self._pageCounts = dict(pageCounts)
        self._pageWidth = pageWidth
        self._pageHeight = pageHeight
        self._failingPages = set(failingPages)
        self.opened: List[FakeDocument] = []
        self.renders: List[Dict[str, Any]] = []

    def openDocument(self, path: str) -> Any:
        if path not in self._pageCounts:
            raise RenderError(f"Cannot open document {path}")
        document = FakeDocument(path, self._pageCounts[path])
        self.opened.append(document)
        return document

    def getPageCount(self, document: Any) -> int:
        return document.pageCount

    def getPageHandle(self, document: Any, pageNumber: int) -> Any:
        return (document, pageNumber)

    def renderPage(self, pageHandle: Any, scale: float, rotationDegrees: int = 0) -> PageImage:
        document, pageNumber = pageHandle
        self.renders.append({"page": pageNumber, "scale": scale, "rotation": rotationDegrees})
        if pageNumber in self._failingPages:
            raise RenderError(f"Cannot render page {pageNumber}", scale, rotationDegrees)
        width = int(round(self._pageWidth * scale))
        height = int(round(self._pageHeight * scale))
        if rotationDegrees % 180:
            width, height = height, width
        return PageImage(pixels=np.full((height, width), 255, dtype=np.uint8), renderScale=scale)

    def closeDocument(self, document: Any) -> None:
        document.closed = True


def blankPage(width: int = 200, height: int = 300, renderScale: float = 3.0) -> PageImage:
    return PageImage(pixels=np.full((height, width), 255, dtype=np.uint8), renderScale=renderScale)
