from __future__ import annotations

import pytest
from pydantic import ValidationError

from conditions.model import (
    Condition,
    GroupCondition,
    collect_ids,
    count_nodes,
    dump_group,
    is_group,
    iter_nodes,
    parse_group,
    parse_nodes,
)


def _tree() -> dict:
    return {
        "id": "root",
        "groupLogic": "AND",
        "conditions": [
            {"id": "a", "operator": ">", "lhs": {"type": "constant", "value": 1}, "rhs": {"type": "constant", "value": 2}},
            {
                "id": "g1",
                "groupLogic": "OR",
                "conditions": [
                    {"id": "b", "operator": "<", "lhs": {"type": "constant", "value": 3}, "rhs": {"type": "constant", "value": 4}},
                    {"id": "g2", "groupLogic": "AND", "conditions": []},
                ],
            },
        ],
    }


def test_parse_group_tags_children_by_group_logic_key() -> None:
    root = parse_group(_tree())
    assert isinstance(root, GroupCondition)
    assert isinstance(root.conditions[0], Condition)
    assert isinstance(root.conditions[1], GroupCondition)
    assert root.conditions[1].group_logic == "OR"
    assert isinstance(root.conditions[1].conditions[1], GroupCondition)


def test_is_group_accepts_models_and_raw_mappings() -> None:
    root = parse_group(_tree())
    assert is_group(root)
    assert not is_group(root.conditions[0])
    assert is_group({"groupLogic": "AND", "conditions": []})
    assert not is_group({"operator": ">"})


def test_dump_group_keeps_camel_case_keys() -> None:
    data = dump_group(parse_group(_tree()))
    assert data["groupLogic"] == "AND"
    assert "group_logic" not in data
    assert data["conditions"][1]["conditions"][0]["lhs"] == {"type": "constant", "value": 3}
    assert parse_group(data) == parse_group(_tree())


def test_rhs_upper_alias_round_trips() -> None:
    cond = Condition.model_validate(
        {
            "id": "c",
            "operator": "between",
            "lhs": {"type": "constant", "value": 5},
            "rhs": {"type": "constant", "value": 1},
            "rhsUpper": {"type": "constant", "value": 9},
        }
    )
    assert cond.rhs_upper is not None and cond.rhs_upper.get("value") == 9
    assert cond.model_dump(by_alias=True, exclude_none=True)["rhsUpper"] == {"type": "constant", "value": 9}


@pytest.mark.parametrize(
    "data,complete",
    [
        ({"operator": ">", "lhs": {"type": "constant"}, "rhs": {"type": "constant"}}, True),
        ({"lhs": {"type": "constant"}, "rhs": {"type": "constant"}}, False),
        ({"operator": ">", "rhs": {"type": "constant"}}, False),
        ({"operator": ">", "lhs": {"type": "constant"}}, False),
        ({"operator": ">", "lhs": {"value": 1}, "rhs": {"type": "constant"}}, False),
        ({"operator": "", "lhs": {"type": "constant"}, "rhs": {"type": "constant"}}, False),
    ],
)
def test_condition_completeness(data: dict, complete: bool) -> None:
    assert Condition.model_validate(data).is_complete() is complete


def test_counts_and_ids() -> None:
    root = parse_group(_tree())
    assert count_nodes(root) == 4
    assert [n.id for n in iter_nodes(root)] == ["a", "g1", "b", "g2"]
    assert collect_ids(root) == ["root", "a", "g1", "b", "g2"]
    assert collect_ids(root, include_root=False) == ["a", "g1", "b", "g2"]


def test_missing_ids_are_generated() -> None:
    root = parse_group({"groupLogic": "AND", "conditions": [{"operator": ">"}, {"groupLogic": "OR"}]})
    assert root.id.startswith("group-")
    assert root.conditions[0].id.startswith("condition-")
    assert root.conditions[1].id.startswith("group-")


def test_invalid_group_logic_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_group({"groupLogic": "XOR", "conditions": []})


def test_parse_nodes_mixes_models_and_dicts() -> None:
    existing = Condition(id="x", operator="==")
    nodes = parse_nodes([existing, {"groupLogic": "OR", "conditions": []}, {"id": "y"}])
    assert nodes[0] is existing
    assert isinstance(nodes[1], GroupCondition)
    assert isinstance(nodes[2], Condition) and nodes[2].id == "y"
