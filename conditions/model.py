"""Condition tree data model.

A strategy node (entry, exit, re-entry signal) owns one root `GroupCondition`.
Groups hold an ordered list of children, each either a leaf `Condition` or a
nested `GroupCondition`. The persisted shape uses camelCase keys and marks a
group by the presence of `groupLogic`; on the Python side the union is tagged
explicitly so recursive code can branch on `is_group()` instead of probing keys.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


GroupLogic = Literal["AND", "OR"]
GROUP_LOGICS: tuple[str, ...] = ("AND", "OR")

COMPARISON_OPERATORS: tuple[str, ...] = (">", "<", ">=", "<=", "==", "!=", "crosses_above", "crosses_below")
RANGE_OPERATORS: tuple[str, ...] = ("between", "not_between")
MEMBERSHIP_OPERATORS: tuple[str, ...] = ("in", "not_in")
OPERATORS: tuple[str, ...] = COMPARISON_OPERATORS + RANGE_OPERATORS + MEMBERSHIP_OPERATORS

EXPRESSION_TYPES: tuple[str, ...] = (
    "constant",
    "indicator",
    "candle_data",
    "live_data",
    "time_function",
    "current_time",
    "expression",
    "function",
    "position_data",
    "trailing_variable",
    "external_trigger",
    "node_variable",
    "pnl_data",
    "underlying_pnl",
    "math_expression",
    "position_time",
    "time_offset",
    "candle_range",
    "aggregation",
    "list",
)


def new_condition_id() -> str:
    return f"condition-{uuid.uuid4().hex}"


def new_group_id() -> str:
    return f"group-{uuid.uuid4().hex}"


class Expression(BaseModel):
    """Operand of a condition.

    Only `type` is modelled; the remaining keys depend on the type
    (`value`/`numberValue` for constants, `indicatorId`/`indicatorParam` for
    indicators, ...) and are kept verbatim as extras.
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        if key == "type":
            return self.type if self.type is not None else default
        extra = self.model_extra or {}
        value = extra.get(key, default)
        return default if value is None else value


class Condition(BaseModel):
    """Leaf node: `lhs operator rhs`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default_factory=new_condition_id)
    operator: Optional[str] = None
    lhs: Optional[Expression] = None
    rhs: Optional[Expression] = None
    # Upper bound for between / not_between
    rhs_upper: Optional[Expression] = Field(default=None, alias="rhsUpper")

    def is_complete(self) -> bool:
        lhs, rhs = self.lhs, self.rhs
        return bool(lhs is not None and rhs is not None and self.operator and lhs.type and rhs.type)


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if ("groupLogic" in value or "group_logic" in value) else "condition"
    return "group" if isinstance(value, GroupCondition) else "condition"


ConditionNode = Annotated[
    Union[
        Annotated["GroupCondition", Tag("group")],
        Annotated[Condition, Tag("condition")],
    ],
    Discriminator(_node_tag),
]


class GroupCondition(BaseModel):
    """Internal node combining its children with AND / OR."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_group_id)
    group_logic: GroupLogic = Field(default="AND", alias="groupLogic")
    conditions: list[ConditionNode] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.conditions


GroupCondition.model_rebuild()


def is_group(node: Any) -> bool:
    """True when `node` is a group (model instance or raw mapping)."""
    return _node_tag(node) == "group"


def parse_group(data: Union[GroupCondition, dict[str, Any]]) -> GroupCondition:
    if isinstance(data, GroupCondition):
        return data
    return GroupCondition.model_validate(data)


def parse_nodes(items: list[Any]) -> list[Union[GroupCondition, Condition]]:
    out: list[Union[GroupCondition, Condition]] = []
    for item in items:
        if isinstance(item, (GroupCondition, Condition)):
            out.append(item)
        elif is_group(item):
            out.append(GroupCondition.model_validate(item))
        else:
            out.append(Condition.model_validate(item))
    return out


def dump_node(node: Union[GroupCondition, Condition]) -> dict[str, Any]:
    """Serialize a node to its persisted camelCase shape."""
    return node.model_dump(by_alias=True, exclude_none=True)


def dump_group(group: GroupCondition) -> dict[str, Any]:
    return dump_node(group)


def iter_nodes(root: GroupCondition) -> Iterator[Union[GroupCondition, Condition]]:
    """Pre-order walk over every node below `root` (root excluded)."""
    for child in root.conditions:
        yield child
        if is_group(child):
            yield from iter_nodes(child)


def count_nodes(root: GroupCondition) -> int:
    """Number of leaves and groups below `root`."""
    return sum(1 for _ in iter_nodes(root))


def collect_ids(root: GroupCondition, include_root: bool = True) -> list[str]:
    ids = [root.id] if include_root else []
    ids.extend(node.id for node in iter_nodes(root))
    return ids
