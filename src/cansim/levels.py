from __future__ import annotations

from typing import List, Optional

import pandas as pd

from cansim.annotate import annotation_columns
from cansim.errors import UnknownColumnError


def categories_for_level(
    data: pd.DataFrame,
    column_name: str,
    level: Optional[int] = None,
    strict: bool = False,
    remove_duplicates: bool = True,
    language: str = "en",
) -> List[str]:
    """
    Categories of an annotated column at a given hierarchy level (0 is the top).

    level: clamped to the deepest level present; None means the deepest level.
    strict: only categories exactly at `level`.
    remove_duplicates: drop grouping categories whose children at `level`
        are already listed.
    """
    hierarchy_name = annotation_columns(column_name, language).hierarchy
    for col in (column_name, hierarchy_name):
        if col not in data.columns:
            raise UnknownColumnError(col)
    if level is not None and level < 0:
        raise ValueError(f"level must be >= 0, got {level}")

    h = data[[column_name, hierarchy_name]].dropna(subset=[hierarchy_name]).drop_duplicates()
    if h.empty:
        return []

    segments = h[hierarchy_name].astype(str).str.split(".")
    h = h.assign(
        hierarchy_level=segments.str.len() - 1,
        member_id=segments.str[-1].astype(int),
    )

    max_level = int(h["hierarchy_level"].max())
    if level is None or level > max_level:
        level = max_level

    h = h[h["hierarchy_level"] <= level]
    at_level = h[h["hierarchy_level"] == level]

    if strict:
        h = at_level
    elif remove_duplicates:
        higher_ids = {
            int(seg)
            for path in at_level[hierarchy_name].astype(str).unique()
            for seg in path.split(".")[:-1]
        }
        h = h[~h["member_id"].isin(higher_ids)]

    return h[column_name].drop_duplicates().tolist()
