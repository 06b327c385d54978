from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

import pandas as pd

from cansim.errors import UnmatchedDimensionWarning
from cansim.registry import DimensionDescriptor, DimensionMember, DimensionRegistry
from cansim.tables import labels_for

logger = logging.getLogger(__name__)

GEO_UID = "GeoUID"


@dataclass(frozen=True)
class AnnotationColumns:
    classification: str
    hierarchy: str


def annotation_columns(dimension_name: str, language: str = "en") -> AnnotationColumns:
    """The only place generated column names are derived from a dimension name."""
    text = labels_for(language)
    return AnnotationColumns(
        classification=f"{text.classification_prefix}{dimension_name}",
        hierarchy=f"{text.hierarchy_prefix}{dimension_name}",
    )


def is_geography(dimension: DimensionDescriptor, language: str = "en") -> bool:
    return labels_for(language).geography_token in dimension.name


def _lookups(members: List[DimensionMember], paths: Mapping[int, str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    # member names are the join key; the first member carrying a name wins
    codes: Dict[str, Any] = {}
    hier: Dict[str, Any] = {}
    for m in members:
        if m.name in codes:
            continue
        codes[m.name] = m.classification_code
        hier[m.name] = paths.get(m.member_id)
    return codes, hier


def _lookup_column(values: pd.Series, lookup: Mapping[str, Any]) -> pd.Series:
    return values.map(lookup).astype("string")


def annotate_table(
    data: pd.DataFrame,
    registry: DimensionRegistry,
    hierarchies: Mapping[int, Mapping[int, str]],
    language: str = "en",
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Join classification codes and hierarchy paths onto the data table.

    Returns a new frame (input untouched, same rows) and an annotation report.
    Dimensions without a matching column are skipped with
    UnmatchedDimensionWarning.
    """
    text = labels_for(language)
    out = data.copy()

    report: Dict[str, Any] = {
        "row_count": int(out.shape[0]),
        "annotated_dimensions": [],
        "unmatched_dimensions": [],
        "added_columns": [],
        "warnings": [],
    }

    for dim in registry.dimensions:
        members = registry.members.get(dim.position, [])
        codes, hier = _lookups(members, hierarchies.get(dim.position, {}))

        if is_geography(dim, language) and dim.name not in out.columns and text.geo in out.columns:
            out[GEO_UID] = _lookup_column(out[text.geo], codes)
            report["annotated_dimensions"].append(dim.name)
            report["added_columns"].append(GEO_UID)
        elif dim.name in out.columns:
            cols = annotation_columns(dim.name, language)
            out[cols.classification] = _lookup_column(out[dim.name], codes)
            out[cols.hierarchy] = _lookup_column(out[dim.name], hier)
            report["annotated_dimensions"].append(dim.name)
            report["added_columns"].extend([cols.classification, cols.hierarchy])
        else:
            msg = f"Don't know how to add metadata for {dim.name}! Ignoring this dimension."
            report["unmatched_dimensions"].append(dim.name)
            report["warnings"].append(msg)
            logger.warning(msg)
            warnings.warn(msg, UnmatchedDimensionWarning, stacklevel=2)

    if registry.dimensions and not report["annotated_dimensions"]:
        msg = "No declared dimension matched a column of the data table; nothing was annotated."
        report["warnings"].append(msg)
        logger.warning(msg)
        warnings.warn(msg, UnmatchedDimensionWarning, stacklevel=2)

    return out, report
