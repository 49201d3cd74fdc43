"""Factories for operands, leaves and groups, plus clone and legacy-migration helpers."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from .model import (
    Condition,
    Expression,
    GroupCondition,
    is_group,
    new_condition_id,
    new_group_id,
)

logger = logging.getLogger(__name__)

ConditionNodeT = Union[Condition, GroupCondition]


# Expression factories

def create_constant_expression(value_type: str = "number", value: Any = 0) -> Expression:
    data: dict[str, Any] = {"type": "constant", "valueType": value_type, "value": value}
    if value_type == "number":
        data["numberValue"] = value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
    elif value_type == "string":
        data["stringValue"] = value if isinstance(value, str) else ""
    elif value_type == "boolean":
        data["booleanValue"] = value if isinstance(value, bool) else False
    return Expression.model_validate(data)


def create_indicator_expression(
    indicator_id: str = "",
    indicator_param: str = "",
    field_type: str = "value",
    param_type: str = "input",
) -> Expression:
    return Expression.model_validate(
        {
            "type": "indicator",
            "indicatorId": indicator_id,
            "indicatorParam": indicator_param,
            "indicatorFieldType": field_type,
            "indicatorParamType": param_type,
            "name": "",
            "parameter": "",
            "offset": 0,
        }
    )


def create_market_data_expression() -> Expression:
    # Field, timeframe and offset are chosen step by step in the editor.
    return Expression.model_validate({"type": "candle_data", "dataField": ""})


def create_live_data_expression(data_field: str = "ltp") -> Expression:
    return Expression.model_validate(
        {"type": "live_data", "dataField": data_field, "field": data_field, "instrumentType": "TI"}
    )


def create_time_expression(time_value: str = "09:00", operator: str = ">=") -> Expression:
    return Expression.model_validate({"type": "time_function", "timeValue": time_value, "operator": operator})


def create_current_time_expression() -> Expression:
    return Expression(type="current_time")


def create_complex_expression(
    operation: Optional[str] = None,
    left: Optional[Expression] = None,
    right: Optional[Expression] = None,
) -> Expression:
    left = left or create_constant_expression()
    right = right or create_constant_expression()
    return Expression.model_validate(
        {
            "type": "expression",
            "expressionString": "",
            "operation": operation,
            "left": left.model_dump(),
            "right": right.model_dump(),
        }
    )


def create_function_expression(function_name: str = "max", expressions: Optional[list[Expression]] = None) -> Expression:
    items = expressions or [create_constant_expression(), create_constant_expression()]
    return Expression.model_validate(
        {"type": "function", "functionName": function_name, "expressions": [e.model_dump() for e in items]}
    )


def create_position_data_expression(position_field: str = "entryPrice", vpi: str = "") -> Expression:
    data: dict[str, Any] = {"type": "position_data", "positionField": position_field, "field": position_field}
    if vpi:
        data["vpi"] = vpi
    return Expression.model_validate(data)


def create_external_trigger_expression(trigger_id: str = "", trigger_type: str = "", parameters: Optional[dict] = None) -> Expression:
    return Expression.model_validate(
        {"type": "external_trigger", "triggerId": trigger_id, "triggerType": trigger_type, "parameters": parameters or {}}
    )


def create_node_variable_expression(node_id: str = "", variable_name: str = "") -> Expression:
    return Expression.model_validate({"type": "node_variable", "nodeId": node_id, "variableName": variable_name})


def create_pnl_expression(pnl_type: str = "unrealized", scope: str = "overall", vpi: Optional[str] = None) -> Expression:
    return Expression.model_validate({"type": "pnl_data", "pnlType": pnl_type, "scope": scope, "vpi": vpi})


def create_underlying_pnl_expression(pnl_type: str = "unrealized", scope: str = "overall", vpi: Optional[str] = None) -> Expression:
    return Expression.model_validate({"type": "underlying_pnl", "pnlType": pnl_type, "scope": scope, "vpi": vpi})


def create_position_time_expression(time_field: str = "entryTime", vpi: Optional[str] = None) -> Expression:
    return Expression.model_validate({"type": "position_time", "timeField": time_field, "vpi": vpi})


def create_time_offset_expression(
    base_time: Optional[Expression] = None,
    offset_type: str = "minutes",
    offset_value: int = 0,
    direction: str = "after",
) -> Expression:
    base_time = base_time or create_current_time_expression()
    return Expression.model_validate(
        {
            "type": "time_offset",
            "baseTime": base_time.model_dump(),
            "offsetType": offset_type,
            "offsetValue": offset_value,
            "direction": direction,
        }
    )


def create_candle_range_expression(range_type: str = "by_count") -> Expression:
    return Expression.model_validate(
        {"type": "candle_range", "rangeType": range_type, "startIndex": 0, "endIndex": 5, "instrumentType": "TI"}
    )


def create_list_expression(items: Optional[list[Expression]] = None) -> Expression:
    items = items or [create_constant_expression()]
    return Expression.model_validate({"type": "list", "items": [e.model_dump() for e in items]})


def create_math_expression(items: Optional[list[dict[str, Any]]] = None) -> Expression:
    """Flat math expression: `[{expression}, {operator, expression}, ...]`."""
    if not items:
        items = [{"expression": create_constant_expression().model_dump()}]
    return Expression.model_validate({"type": "math_expression", "items": items})


def create_aggregation_expression(aggregation_type: str = "max", ohlcv_field: str = "close") -> Expression:
    return Expression.model_validate(
        {
            "type": "aggregation",
            "aggregationType": aggregation_type,
            "sourceType": "candle_range",
            "candleRange": create_candle_range_expression().model_dump(),
            "ohlcvField": ohlcv_field,
        }
    )


EXPRESSION_FACTORIES: dict[str, Callable[[], Expression]] = {
    "constant": create_constant_expression,
    "indicator": create_indicator_expression,
    "candle_data": create_market_data_expression,
    "live_data": create_live_data_expression,
    "time_function": create_time_expression,
    "current_time": create_current_time_expression,
    "expression": create_complex_expression,
    "function": create_function_expression,
    "position_data": create_position_data_expression,
    "external_trigger": create_external_trigger_expression,
    "node_variable": create_node_variable_expression,
    "pnl_data": create_pnl_expression,
    "underlying_pnl": create_underlying_pnl_expression,
    "math_expression": create_math_expression,
    "position_time": create_position_time_expression,
    "time_offset": create_time_offset_expression,
    "candle_range": create_candle_range_expression,
    "aggregation": create_aggregation_expression,
    "list": create_list_expression,
}


def create_default_expression(expression_type: str) -> Expression:
    factory = EXPRESSION_FACTORIES.get(expression_type)
    if factory is None:
        logger.warning("Unknown expression type %r, defaulting to constant", expression_type)
        return create_constant_expression()
    return factory()


# Condition factories

def create_condition(
    operator: str = ">",
    lhs: Optional[Expression] = None,
    rhs: Optional[Expression] = None,
    rhs_upper: Optional[Expression] = None,
) -> Condition:
    """Complete leaf; missing operands default to constant 0."""
    return Condition(
        id=new_condition_id(),
        operator=operator,
        lhs=lhs or create_constant_expression(),
        rhs=rhs or create_constant_expression(),
        rhs_upper=rhs_upper,
    )


def create_default_condition() -> Condition:
    """Placeholder leaf added by the builder; operands are chosen by the user."""
    return Condition(id=new_condition_id(), operator=">")


def create_group_condition(
    group_logic: str = "AND",
    conditions: Optional[list[ConditionNodeT]] = None,
) -> GroupCondition:
    return GroupCondition(id=new_group_id(), group_logic=group_logic, conditions=list(conditions or []))


def create_default_group_condition() -> GroupCondition:
    return create_group_condition("AND", [create_default_condition()])


# Cloning

def clone_node(node: ConditionNodeT) -> ConditionNodeT:
    """Deep copy keeping ids."""
    return node.model_copy(deep=True)


def clone_with_fresh_ids(node: ConditionNodeT) -> ConditionNodeT:
    """Deep copy with a new id on the node and on every nested node."""
    cloned = node.model_copy(deep=True)
    _assign_fresh_ids(cloned)
    return cloned


def _assign_fresh_ids(node: ConditionNodeT) -> None:
    if is_group(node):
        node.id = new_group_id()
        for child in node.conditions:
            _assign_fresh_ids(child)
    else:
        node.id = new_condition_id()


# Legacy migration

def migrate_legacy_condition(data: dict[str, Any]) -> Condition:
    """Map a pre-lhs/rhs record (`expressionA` / `expressionB`) onto `Condition`."""
    lhs = data.get("lhs") or data.get("expressionA") or create_constant_expression().model_dump()
    rhs = data.get("rhs") or data.get("expressionB") or create_constant_expression().model_dump()
    migrated = Condition.model_validate(
        {
            "id": data.get("id") or new_condition_id(),
            "operator": data.get("operator") or ">",
            "lhs": lhs,
            "rhs": rhs,
            "rhsUpper": data.get("rhsUpper"),
        }
    )
    logger.debug("Migrated legacy condition %s", migrated.id)
    return migrated


def migrate_legacy_group_condition(data: dict[str, Any]) -> GroupCondition:
    children: list[ConditionNodeT] = []
    for child in data.get("conditions") or []:
        if is_group(child):
            children.append(migrate_legacy_group_condition(child))
        else:
            children.append(migrate_legacy_condition(child))
    return GroupCondition(
        id=data.get("id") or new_group_id(),
        group_logic=data.get("groupLogic") or "AND",
        conditions=children,
    )
