"""
Split a Statistics Canada metadata CSV into its typed sections.

The metadata file is a single ragged sheet. Sections are delimited by marker
rows whose first cell holds a fixed label ("Dimension ID", "Symbol Legend",
...). The expected markers and their relative order live in SECTION_LAYOUT;
the splitter only walks that schema.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from cansim.errors import MalformedMetadataError
from cansim.tables import labels_for

LABEL_COL = 0


@dataclass(frozen=True)
class SectionSpec:
    name: str
    marker_key: Optional[str]  # attribute of MetadataLabels; None for the leading cube info block
    predecessor: Optional[str]


SECTION_LAYOUT: List[SectionSpec] = [
    SectionSpec("cube_info", None, None),
    SectionSpec("dimensions", "dimension_id", "cube_info"),
    SectionSpec("members", "dimension_id", "dimensions"),
    SectionSpec("legend", "symbol_legend", "members"),
    SectionSpec("survey", "survey_code", "legend"),
    SectionSpec("subject", "subject_code", "survey"),
    SectionSpec("notes", "note_id", "subject"),
    SectionSpec("corrections", "correction_id", "notes"),
]


@dataclass(frozen=True)
class MetadataSection:
    name: str
    marker: Optional[str]
    header: List[str]
    frame: pd.DataFrame


# -----------------------------
# Sheet loading
# -----------------------------

def sheet_from_rows(rows: Sequence[Sequence[Optional[str]]]) -> pd.DataFrame:
    """Ragged rows -> rectangular sheet of stripped strings ('' for gaps)."""
    sheet = pd.DataFrame([list(r) for r in rows])
    if sheet.empty:
        return sheet
    return sheet.fillna("").astype(str).apply(lambda col: col.str.strip())


def read_metadata_sheet(source: Union[str, Path, io.TextIOBase], sep: str = ",") -> pd.DataFrame:
    if isinstance(source, (str, Path)):
        with open(source, newline="", encoding="utf-8-sig") as fh:
            rows = list(csv.reader(fh, delimiter=sep))
    else:
        rows = list(csv.reader(source, delimiter=sep))
    return sheet_from_rows(rows)


# -----------------------------
# Splitting
# -----------------------------

def _non_empty(cells: pd.Series) -> List[str]:
    return [c for c in cells.tolist() if c != ""]


def _find_marker(labels: List[str], marker: str, start: int) -> Optional[int]:
    for i in range(start, len(labels)):
        if labels[i] == marker:
            return i
    return None


def _locate_markers(sheet: pd.DataFrame, language: str) -> Dict[str, int]:
    text = labels_for(language)
    labels = sheet[LABEL_COL].tolist() if not sheet.empty else []

    rows: Dict[str, int] = {}
    cursor = 1  # row 0 is the cube info header
    for spec in SECTION_LAYOUT:
        if spec.marker_key is None:
            continue
        marker = getattr(text, spec.marker_key)
        idx = _find_marker(labels, marker, cursor)
        if idx is None:
            earlier = _find_marker(labels, marker, 0)
            if earlier is not None and earlier < cursor and spec.name != "members":
                detail = f"found at row {earlier}, expected after '{spec.predecessor}' (row {cursor - 1})"
            else:
                detail = f"no '{spec.name}' section found"
            raise MalformedMetadataError(marker, detail)
        rows[spec.name] = idx
        cursor = idx + 1
    return rows


def _section_frame(sheet: pd.DataFrame, header_row: int, start: int, stop: int) -> Tuple[List[str], pd.DataFrame]:
    header = _non_empty(sheet.iloc[header_row])
    body = sheet.iloc[start:stop, : len(header)]
    body = body[(body != "").any(axis=1)]
    frame = body.copy()
    frame.columns = header
    return header, frame.reset_index(drop=True)


def split_sections(sheet: pd.DataFrame, language: str = "en") -> Dict[str, MetadataSection]:
    """
    Partition a raw metadata sheet into named sections, in layout order.

    Raises MalformedMetadataError when a marker is missing or out of order.
    """
    text = labels_for(language)
    marker_rows = _locate_markers(sheet, language)

    names = [spec.name for spec in SECTION_LAYOUT]
    bounds = [0] + [marker_rows[n] for n in names[1:]] + [len(sheet)]

    sections: Dict[str, MetadataSection] = {}
    for i, spec in enumerate(SECTION_LAYOUT):
        header_row, stop = bounds[i], bounds[i + 1]
        header, frame = _section_frame(sheet, header_row, header_row + 1, stop)
        marker = getattr(text, spec.marker_key) if spec.marker_key else None
        sections[spec.name] = MetadataSection(name=spec.name, marker=marker, header=header, frame=frame)
    return sections
