"""
Ancestor paths from flat parent-pointer member tables.

Each pass prepends, to every path, the parent of the path's current top
segment, so a pass grows all unfinished paths by exactly one generation and
the loop needs as many passes as the deepest tree is deep. Passes are pure:
each builds a new mapping and convergence is tested against the previous one.
"""

from __future__ import annotations

import logging
import warnings
from typing import Dict, Iterable, Mapping, Optional, Tuple

from cansim.config import MAX_HIERARCHY_DEPTH
from cansim.errors import HierarchyDepthExceeded
from cansim.registry import DimensionMember, DimensionRegistry

logger = logging.getLogger(__name__)

IdPath = Tuple[int, ...]


def hierarchy_depth(path: str) -> int:
    return len(str(path).split(".")) - 1


def render_path(path: IdPath) -> str:
    return ".".join(str(i) for i in path)


def _extend_once(paths: Mapping[int, IdPath], parents: Mapping[int, Optional[int]]) -> Dict[int, IdPath]:
    out: Dict[int, IdPath] = {}
    for member_id, path in paths.items():
        parent = parents.get(path[0])
        out[member_id] = (parent,) + path if parent is not None else path
    return out


def build_hierarchy(
    members: Iterable[DimensionMember],
    max_passes: int = MAX_HIERARCHY_DEPTH,
    label: str = "",
) -> Dict[int, str]:
    """
    member id -> dot-delimited path from its root down to itself.

    Emits HierarchyDepthExceeded and returns the paths as last computed when
    the closure is still growing after max_passes.
    """
    parents: Dict[int, Optional[int]] = {m.member_id: m.parent_id for m in members}
    paths: Dict[int, IdPath] = {mid: (mid,) for mid in parents}

    changed = False
    for _ in range(max_passes):
        extended = _extend_once(paths, parents)
        changed = extended != paths
        paths = extended
        if not changed:
            break

    if changed:
        where = f" for {label}" if label else ""
        msg = f"Exceeded max depth for hierarchy{where}, hierarchy information may be faulty."
        logger.warning(msg)
        warnings.warn(msg, HierarchyDepthExceeded, stacklevel=2)

    return {mid: render_path(p) for mid, p in paths.items()}


def build_hierarchies(registry: DimensionRegistry, max_passes: int = MAX_HIERARCHY_DEPTH) -> Dict[int, Dict[int, str]]:
    """Per dimension position; dimensions are independent of one another."""
    return {
        d.position: build_hierarchy(registry.members.get(d.position, []), max_passes=max_passes, label=d.name)
        for d in registry.dimensions
    }
