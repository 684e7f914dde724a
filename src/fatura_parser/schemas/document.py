"""Positioned text structures produced by the extractor and the normalizer.

Coordinates are PDF points measured from the top-left corner of the page,
so ``y`` grows downward.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GlyphRun:
    """One decoded text fragment on one page."""

    page: int
    text: str
    x: float
    y: float
    width: float
    spacing: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass
class GlyphPage:
    """All glyph runs of one page, in extraction order."""

    number: int
    width: float
    height: float
    runs: list[GlyphRun] = field(default_factory=list)


@dataclass
class GlyphDocument:
    """Page-structured output of the extractor."""

    pages: list[GlyphPage] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def run_count(self) -> int:
        return sum(len(page.runs) for page in self.pages)


@dataclass
class NormalizedRow:
    """Fragments that lie on the same visual line.

    ``chunks`` are ordered left to right; ``y`` is the mean of the member
    fragments' y values.
    """

    page: int
    y: float
    text: str = ""
    chunks: list[GlyphRun] = field(default_factory=list)

    @property
    def chunk_texts(self) -> list[str]:
        return [chunk.text.strip() for chunk in self.chunks]
