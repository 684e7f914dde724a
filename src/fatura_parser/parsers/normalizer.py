"""Rebuilds visual text lines from positioned glyph runs."""

from fatura_parser.schemas.document import GlyphDocument, GlyphRun, NormalizedRow


class PdfTextNormalizer:
    """Groups glyph runs into rows and reconstructs spacing within a row.

    A run joins the current row while it is on the same page and within
    ``y_tolerance`` of the row's running-average y. Inside a row, a single
    space is inserted between neighbouring runs only when the horizontal gap
    exceeds ``space_threshold``; otherwise they are concatenated (a label
    split across runs with no visual space).
    """

    def __init__(self, y_tolerance: float = 2.0, space_threshold: float = 1.5):
        self.y_tolerance = y_tolerance
        self.space_threshold = space_threshold

    def normalize(self, document: GlyphDocument) -> list[NormalizedRow]:
        rows: list[NormalizedRow] = []
        for page in document.pages:
            runs = sorted(
                (run for run in page.runs if run.text.strip()),
                key=lambda run: (run.y, run.x),
            )
            rows.extend(self._group_rows(runs))
        return rows

    def _group_rows(self, runs: list[GlyphRun]) -> list[NormalizedRow]:
        rows: list[NormalizedRow] = []
        current: NormalizedRow | None = None

        for run in runs:
            if (
                current is None
                or run.page != current.page
                or abs(run.y - current.y) > self.y_tolerance
            ):
                current = NormalizedRow(page=run.page, y=run.y)
                rows.append(current)

            current.chunks.append(run)
            current.y = sum(chunk.y for chunk in current.chunks) / len(current.chunks)

        for row in rows:
            row.chunks.sort(key=lambda chunk: chunk.x)
            row.text = self._join_chunks(row.chunks)

        return rows

    def _join_chunks(self, chunks: list[GlyphRun]) -> str:
        text = ""
        previous: GlyphRun | None = None
        for chunk in chunks:
            if previous is not None and text and chunk.x - previous.right > self.space_threshold:
                text = f"{text} {chunk.text}"
            else:
                text = f"{text}{chunk.text}"
            previous = chunk
        return text.strip()
