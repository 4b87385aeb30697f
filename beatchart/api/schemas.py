"""Pydantic models for the serialized chart."""

from pydantic import BaseModel

from beatchart.analysis.models import Chart, Note


class NoteResponse(BaseModel):
    lane: int
    beat: float
    type: str
    endBeat: float | None = None


class StructureResponse(BaseModel):
    totalDurSec: float
    introEndSec: float
    outroStartSec: float


class PatternsResponse(BaseModel):
    easy: list[NoteResponse]
    hard: list[NoteResponse]


class ChartResponse(BaseModel):
    title: str
    bpm: int
    offsetSec: float
    structure: StructureResponse
    patterns: PatternsResponse
    markers: list[NoteResponse] | None = None


class ChartUrlRequest(BaseModel):
    url: str
    title: str | None = None
    include_markers: bool = False


def note_to_response(note: Note) -> NoteResponse:
    return NoteResponse(lane=note.lane, beat=note.beat, type=note.type, endBeat=note.end_beat)


def chart_to_response(chart: Chart) -> ChartResponse:
    """Convert a Chart to its output-boundary model."""
    return ChartResponse(
        title=chart.title,
        bpm=chart.bpm,
        offsetSec=chart.offset_sec,
        structure=StructureResponse(
            totalDurSec=round(chart.structure.total_duration, 3),
            introEndSec=round(chart.structure.intro_end, 3),
            outroStartSec=round(chart.structure.outro_start, 3),
        ),
        patterns=PatternsResponse(
            easy=[note_to_response(n) for n in chart.easy],
            hard=[note_to_response(n) for n in chart.hard],
        ),
        markers=[note_to_response(n) for n in chart.markers] or None,
    )
