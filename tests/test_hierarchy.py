import random
import warnings
from typing import Dict, List, Optional

import pytest

from cansim.errors import HierarchyDepthExceeded
from cansim.hierarchy import build_hierarchies, build_hierarchy, hierarchy_depth
from cansim.registry import DimensionMember, build_registry
from cansim.sections import split_sections


def _members(parents: Dict[int, Optional[int]]) -> List[DimensionMember]:
    return [DimensionMember(mid, f"m{mid}", pid, None) for mid, pid in parents.items()]


def _walk_to_root(member_id: int, parents: Dict[int, Optional[int]]) -> str:
    chain = [member_id]
    while parents.get(chain[0]) is not None:
        chain.insert(0, parents[chain[0]])
    return ".".join(str(i) for i in chain)


def test_three_level_paths():
    paths = build_hierarchy(_members({1: None, 10: 1, 11: 1, 100: 10}))
    assert paths == {1: "1", 10: "1.10", 11: "1.11", 100: "1.10.100"}


def test_path_ends_with_own_id_and_starts_at_root():
    parents = {7: None, 3: 7, 9: 3, 4: 9, 12: None, 5: 12}
    paths = build_hierarchy(_members(parents))
    for mid, path in paths.items():
        segments = [int(s) for s in path.split(".")]
        assert segments[-1] == mid
        assert parents[segments[0]] is None
        for child, parent in zip(segments[1:], segments[:-1]):
            assert parents[child] == parent


def test_parent_outside_member_list_stops_the_chain():
    paths = build_hierarchy(_members({2: 1, 3: 2}))
    assert paths == {2: "1.2", 3: "1.2.3"}


def test_converging_hierarchy_emits_no_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        build_hierarchy(_members({1: None, 2: 1, 3: 2}))


def test_cycle_terminates_with_depth_warning():
    with pytest.warns(HierarchyDepthExceeded):
        paths = build_hierarchy(_members({5: 6, 6: 5, 8: None}))
    assert paths[8] == "8"
    assert paths[5].endswith(".5")
    assert hierarchy_depth(paths[5]) == 100


def test_deep_chain_beyond_pass_limit_is_truncated():
    parents = {i: (i - 1 if i > 0 else None) for i in range(8)}
    with pytest.warns(HierarchyDepthExceeded):
        paths = build_hierarchy(_members(parents), max_passes=3)
    assert paths[7] == "4.5.6.7"


def test_chain_exactly_at_pass_limit_still_warns_without_a_confirming_pass():
    parents = {0: None, 1: 0, 2: 1}
    with pytest.warns(HierarchyDepthExceeded):
        build_hierarchy(_members(parents), max_passes=2)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert build_hierarchy(_members(parents), max_passes=3)[2] == "0.1.2"


@pytest.mark.parametrize("seed", range(25))
def test_closure_matches_walk_to_root_on_random_forests(seed):
    rng = random.Random(seed)
    ids = rng.sample(range(1, 10_000), rng.randint(1, 60))
    parents: Dict[int, Optional[int]] = {}
    for i, mid in enumerate(ids):
        parents[mid] = None if i == 0 or rng.random() < 0.2 else rng.choice(ids[:i])
    members = _members(parents)
    rng.shuffle(members)

    paths = build_hierarchy(members)

    assert paths == {mid: _walk_to_root(mid, parents) for mid in parents}


def test_hierarchy_depth():
    assert hierarchy_depth("12") == 0
    assert hierarchy_depth("12.45.103") == 2


def test_build_hierarchies_per_dimension(sheet):
    registry = build_registry(split_sections(sheet))
    h = build_hierarchies(registry)
    assert h[1] == {1: "1", 2: "1.2", 3: "1.3"}
    assert h[2] == {1: "1", 2: "1.2", 3: "1.2.3", 4: "1.4"}
    assert h[3] == {1: "1"}
