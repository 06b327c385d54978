from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

import pandas as pd

from cansim.annotate import annotate_table
from cansim.hierarchy import build_hierarchies
from cansim.registry import DimensionRegistry, build_registry
from cansim.sections import MetadataSection, split_sections
from cansim.tables import labels_for

logger = logging.getLogger(__name__)

# sections handed to the cache alongside the annotated table
ARTIFACT_SECTIONS = ["cube_info", "dimensions", "survey", "subject", "notes"]


@dataclass(frozen=True)
class EnrichedTable:
    data: pd.DataFrame
    sections: Dict[str, MetadataSection]
    registry: DimensionRegistry
    hierarchies: Dict[int, Dict[int, str]]
    report: Dict[str, Any]
    language: str = "en"

    def artifacts(self) -> Dict[str, pd.DataFrame]:
        return {name: self.sections[name].frame for name in ARTIFACT_SECTIONS if name in self.sections}

    def column_members(self) -> Dict[int, pd.DataFrame]:
        """Per dimension position, its member table with the derived hierarchy path."""
        text = labels_for(self.language)
        out: Dict[int, pd.DataFrame] = {}
        for d in self.registry.dimensions:
            frame = self.registry.members_frame(d.position)
            paths = self.hierarchies.get(d.position, {})
            frame[text.hierarchy_field] = frame[text.member_id].map(lambda mid: paths.get(int(mid))).astype("string")
            out[d.position] = frame
        return out


def fold_in_metadata(data: pd.DataFrame, sheet: pd.DataFrame, language: str = "en") -> EnrichedTable:
    """Split the metadata sheet, build per-dimension hierarchies and annotate the data table."""
    sections = split_sections(sheet, language=language)
    registry = build_registry(sections, language=language)
    hierarchies = build_hierarchies(registry)
    annotated, report = annotate_table(data, registry, hierarchies, language=language)

    logger.info(
        "Annotated %d of %d dimensions (%d rows)",
        len(report["annotated_dimensions"]),
        len(registry.dimensions),
        report["row_count"],
    )
    return EnrichedTable(
        data=annotated,
        sections=sections,
        registry=registry,
        hierarchies=hierarchies,
        report=report,
        language=language,
    )


def unannotated(data: pd.DataFrame, language: str, reason: str) -> EnrichedTable:
    """The data table as read, with no metadata sections and no dimensions."""
    report: Dict[str, Any] = {
        "row_count": int(data.shape[0]),
        "annotated_dimensions": [],
        "unmatched_dimensions": [],
        "added_columns": [],
        "warnings": [reason],
    }
    return EnrichedTable(
        data=data.copy(),
        sections={},
        registry=DimensionRegistry(dimensions=[], language=language),
        hierarchies={},
        report=report,
        language=language,
    )
