from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from cansim.errors import MalformedMetadataError
from cansim.sections import MetadataSection
from cansim.tables import labels_for


@dataclass(frozen=True)
class DimensionDescriptor:
    position: int
    name: str


@dataclass(frozen=True)
class DimensionMember:
    member_id: int
    name: str
    parent_id: Optional[int]
    classification_code: Optional[str]


@dataclass(frozen=True)
class DimensionRegistry:
    dimensions: List[DimensionDescriptor]
    members: Dict[int, List[DimensionMember]] = field(default_factory=dict)
    language: str = "en"

    def dimension(self, name: str) -> DimensionDescriptor:
        for d in self.dimensions:
            if d.name == name:
                return d
        raise KeyError(name)

    def members_frame(self, position: int) -> pd.DataFrame:
        text = labels_for(self.language)
        rows = self.members.get(position, [])
        return pd.DataFrame(
            {
                text.dimension_id: pd.Series([position] * len(rows), dtype="Int64"),
                text.member_name: pd.Series([m.name for m in rows], dtype="string"),
                text.classification_code: pd.Series([m.classification_code for m in rows], dtype="string"),
                text.member_id: pd.Series([m.member_id for m in rows], dtype="Int64"),
                text.parent_member_id: pd.Series([m.parent_id for m in rows], dtype="Int64"),
            }
        )


def _parse_int(raw: str, marker: str, what: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        raise MalformedMetadataError(marker, f"{what} '{raw}' is not an integer") from None


def _require(frame: pd.DataFrame, columns: List[str], marker: str) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise MalformedMetadataError(marker, f"missing columns {missing}")


def _opt(value: str) -> Optional[str]:
    return value if value != "" else None


def build_registry(sections: Mapping[str, MetadataSection], language: str = "en") -> DimensionRegistry:
    """
    Dimension list plus, per dimension position, its flat member rows.

    Every dimension declared in the metadata is kept, whether or not the data
    table carries a matching column.
    """
    text = labels_for(language)

    dims = sections["dimensions"].frame
    _require(dims, [text.dimension_id, text.dimension_name], text.dimension_id)
    dimensions = [
        DimensionDescriptor(
            position=_parse_int(r[text.dimension_id], text.dimension_id, "Dimension position"),
            name=r[text.dimension_name],
        )
        for _, r in dims.iterrows()
    ]

    mem = sections["members"].frame
    _require(
        mem,
        [text.dimension_id, text.member_name, text.member_id, text.parent_member_id],
        text.dimension_id,
    )
    has_code = text.classification_code in mem.columns

    members: Dict[int, List[DimensionMember]] = {d.position: [] for d in dimensions}
    for _, r in mem.iterrows():
        position = _parse_int(r[text.dimension_id], text.dimension_id, "Dimension ID")
        if position not in members:
            continue
        parent_raw = r[text.parent_member_id]
        members[position].append(
            DimensionMember(
                member_id=_parse_int(r[text.member_id], text.dimension_id, "Member ID"),
                name=r[text.member_name],
                parent_id=_parse_int(parent_raw, text.dimension_id, "Parent Member ID") if parent_raw != "" else None,
                classification_code=_opt(r[text.classification_code]) if has_code else None,
            )
        )

    return DimensionRegistry(dimensions=dimensions, members=members, language=language)
