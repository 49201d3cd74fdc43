from __future__ import annotations

import pytest

from conditions.model import Condition, GroupCondition, dump_group, parse_group
from conditions.paths import (
    InvalidPathError,
    duplicate_conditions_at_paths,
    find_path,
    get_all_condition_paths,
    get_all_groups,
    get_condition_at_path,
    group_conditions_at_paths,
    insert_condition_at_path,
    move_conditions_to_path,
    move_down,
    move_up,
    remove_conditions_at_paths,
    set_condition_at_path,
    ungroup_conditions_at_paths,
)


def _leaf(node_id: str) -> dict:
    return {"id": node_id, "operator": ">", "lhs": {"type": "constant", "value": 1}, "rhs": {"type": "constant", "value": 0}}


def _tree() -> GroupCondition:
    return parse_group(
        {
            "id": "root",
            "groupLogic": "AND",
            "conditions": [
                _leaf("A"),
                {"id": "g1", "groupLogic": "OR", "conditions": [_leaf("B"), _leaf("C")]},
                _leaf("D"),
            ],
        }
    )


def _ids(group) -> list:
    return [c.id for c in group.conditions]


def test_get_and_find() -> None:
    root = _tree()
    assert get_condition_at_path(root, []) is root
    assert get_condition_at_path(root, [1, 1]).id == "C"
    assert get_condition_at_path(root, [0, 0]) is None
    assert get_condition_at_path(root, [5]) is None
    assert find_path(root, "C") == (1, 1)
    assert find_path(root, "root") == ()
    assert find_path(root, "zzz") is None


def test_set_and_insert_copy_the_tree() -> None:
    root = _tree()
    before = dump_group(root)
    updated = set_condition_at_path(root, [1, 0], Condition(id="X", operator="<"))
    assert get_condition_at_path(updated, [1, 0]).id == "X"
    assert dump_group(root) == before

    inserted = insert_condition_at_path(root, [1], 99, Condition(id="Y"))
    assert _ids(inserted.conditions[1]) == ["B", "C", "Y"]
    inserted = insert_condition_at_path(root, [], -3, Condition(id="Z"))
    assert _ids(inserted)[0] == "Z"


def test_set_rejects_bad_paths() -> None:
    root = _tree()
    with pytest.raises(InvalidPathError):
        set_condition_at_path(root, [0, 0], Condition())
    with pytest.raises(InvalidPathError):
        set_condition_at_path(root, [9], Condition())
    with pytest.raises(InvalidPathError):
        set_condition_at_path(root, [], Condition())


def test_remove_many() -> None:
    root = _tree()
    result = remove_conditions_at_paths(root, [[0], [1, 0], [2]])
    assert _ids(result) == ["g1"]
    assert _ids(result.conditions[0]) == ["C"]
    assert _ids(remove_conditions_at_paths(root, [[]])) == ["A", "g1", "D"]


def test_duplicate_inserts_fresh_copy_after_original() -> None:
    result = duplicate_conditions_at_paths(_tree(), [[0], [1]])
    ids = _ids(result)
    assert ids[0] == "A" and ids[2] == "g1" and ids[4] == "D"
    assert ids[1] not in ("A", "g1") and ids[3] not in ("A", "g1")
    assert result.conditions[3].group_logic == "OR"
    assert not set(_ids(result.conditions[3])) & {"B", "C"}


def test_move_to_path_tracks_target_across_removal() -> None:
    root = _tree()
    assert _ids(move_conditions_to_path(root, [[0]], [2], "after")) == ["g1", "D", "A"]
    result = move_conditions_to_path(root, [[0], [2]], [1], "inside")
    assert _ids(result) == ["g1"]
    assert _ids(result.conditions[0]) == ["B", "C", "A", "D"]
    result = move_conditions_to_path(root, [[1, 1]], [0], "before")
    assert _ids(result) == ["C", "A", "g1", "D"]


def test_move_to_path_rejections() -> None:
    root = _tree()
    with pytest.raises(InvalidPathError):
        move_conditions_to_path(root, [[1]], [1, 0], "after")
    with pytest.raises(InvalidPathError):
        move_conditions_to_path(root, [[0]], [2], "inside")
    with pytest.raises(InvalidPathError):
        move_conditions_to_path(root, [[0]], [7], "after")


def test_group_and_ungroup() -> None:
    root = _tree()
    grouped = group_conditions_at_paths(root, [[2], [0]], "OR")
    assert len(grouped.conditions) == 2
    new_group = grouped.conditions[0]
    assert new_group.group_logic == "OR"
    assert _ids(new_group) == ["A", "D"]
    assert grouped.conditions[1].id == "g1"

    flat = ungroup_conditions_at_paths(root, [[1]])
    assert _ids(flat) == ["A", "B", "C", "D"]


def test_group_requires_two_siblings() -> None:
    root = _tree()
    with pytest.raises(InvalidPathError):
        group_conditions_at_paths(root, [[0]])
    with pytest.raises(InvalidPathError):
        group_conditions_at_paths(root, [[0], [1, 0]])


def test_move_up_and_down() -> None:
    root = _tree()
    assert _ids(move_up(root, [2])) == ["A", "D", "g1"]
    assert _ids(move_down(root, [1, 0]).conditions[1]) == ["C", "B"]
    assert move_up(root, [0]) is root
    assert move_down(root, [2]) is root


def test_listing_helpers() -> None:
    root = _tree()
    groups = get_all_groups(root)
    assert [(g.path, g.label) for g in groups] == [((1,), "OR Group (2 items)")]
    assert get_all_condition_paths(root) == [(0,), (1,), (1, 0), (1, 1), (2,)]
