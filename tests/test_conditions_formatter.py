from __future__ import annotations

import pytest

from conditions.formatter import (
    INCOMPLETE_CONDITIONS,
    NO_CONDITIONS,
    SETUP_INCOMPLETE,
    expression_to_string,
    find_incomplete,
    format_conditions,
    group_condition_to_string,
    is_diagnostic,
)
from conditions.model import GroupCondition, parse_group
from conditions.naming import (
    format_expression_display_name,
    format_node_variable_reference,
    format_uuid_for_display,
    normalize_expression_identifier,
)


def _const(value) -> dict:
    return {"type": "constant", "value": value}


def _leaf(lhs, op, rhs) -> dict:
    return {"operator": op, "lhs": _const(lhs), "rhs": _const(rhs)}


def _group(logic: str, *children) -> dict:
    return {"groupLogic": logic, "conditions": list(children)}


START_NODE = {
    "tradingInstrumentConfig": {
        "timeframes": [
            {"id": "tf-1", "timeframe": "5m", "indicators": {"rsi_1": {"display_name": "RSI(14)"}}},
        ]
    },
    "supportingInstrumentConfig": {
        "timeframes": [
            {"id": "tf-2", "timeframe": "1h", "indicators": {"ema_9": {"indicator_name": "EMA"}}},
        ]
    },
}


def test_missing_or_empty_root_has_no_conditions() -> None:
    assert format_conditions(None) == NO_CONDITIONS
    assert format_conditions(GroupCondition()) == NO_CONDITIONS
    assert format_conditions({"groupLogic": "AND"}) == NO_CONDITIONS
    assert format_conditions({"groupLogic": "AND", "conditions": "nope"}) == NO_CONDITIONS
    assert format_conditions({"groupLogic": "AND", "conditions": []}) == NO_CONDITIONS


def test_incomplete_direct_child_short_circuits() -> None:
    root = _group("AND", _leaf(1, ">", 2), {"operator": ">", "lhs": _const(1)})
    assert format_conditions(root) == INCOMPLETE_CONDITIONS


def test_nested_incomplete_leaf_only_blocks_in_strict_mode() -> None:
    root = _group("AND", _leaf(1, ">", 2), _group("OR", {"operator": ">"}))
    assert format_conditions(root, strict_nested=False) == "1 > 2 AND (Incomplete condition)"
    assert format_conditions(root, strict_nested=True) == INCOMPLETE_CONDITIONS


def test_nested_groups_render_with_parentheses() -> None:
    root = _group("AND", _leaf(1, ">", 2), _group("OR", _leaf(3, "<", 4), _leaf(5, "==", 5)))
    assert format_conditions(root) == "1 > 2 AND (3 < 4 OR 5 == 5)"


def test_empty_nested_group_renders_placeholder() -> None:
    root = parse_group(_group("OR", _leaf(1, ">", 0), _group("AND")))
    assert group_condition_to_string(root) == "1 > 0 OR (No conditions defined)"


def test_malformed_tree_degrades_to_setup_message() -> None:
    assert format_conditions(_group("AND", 1, 2)) == SETUP_INCOMPLETE
    assert format_conditions(_group("AND", _group("XOR", _leaf(1, ">", 2)))) == SETUP_INCOMPLETE


def test_non_mapping_root_is_treated_as_missing() -> None:
    assert format_conditions(["not", "a", "group"]) == NO_CONDITIONS


def test_indicator_resolved_from_start_node() -> None:
    expr = {"type": "indicator", "indicatorId": "rsi_1", "indicatorParam": "value", "instrumentType": "TI", "offset": 0}
    assert expression_to_string(expr, START_NODE) == "Current[TI.5m.RSI(14).value]"

    supporting = {"type": "indicator", "indicatorId": "ema_9", "offset": -1}
    assert expression_to_string(supporting, START_NODE) == "Previous[1h.EMA]"


def test_indicator_without_context_uses_normalized_key() -> None:
    expr = {"type": "indicator", "indicatorId": "ema-fast", "timeframe": "15m", "offset": -3}
    assert expression_to_string(expr) == "3ago[15m.ema_fast]"


def test_candle_and_live_data() -> None:
    candle = {"type": "candle_data", "field": "High", "timeframeId": "tf-2", "instrumentType": "SI"}
    assert expression_to_string(candle, START_NODE) == "SI.1h.High"
    assert expression_to_string({"type": "live_data", "field": "mark", "instrumentType": "TI"}) == "TI.LTP"


@pytest.mark.parametrize(
    "expr,expected",
    [
        ({"type": "constant", "booleanValue": True}, "true"),
        ({"type": "constant", "numberValue": 1.5}, "1.5"),
        ({"type": "constant"}, "0"),
        ({"type": "time_function", "timeValue": "09:15"}, "09:15"),
        ({"type": "current_time"}, "Current Time"),
        ({"type": "position_data", "positionField": "entryPrice", "vpi": "P1"}, "Entry Price (P1)"),
        ({"type": "pnl_data", "pnlType": "realized", "scope": "overall"}, "Realized P&L (Overall)"),
        ({"type": "pnl_data", "pnlType": "total", "scope": "position", "vpi": "_any"}, "Total P&L (Position)"),
        ({"type": "external_trigger", "triggerId": "t1"}, "t1"),
        ({"type": "node_variable", "nodeId": "entry-1", "variableName": "high-mark"}, "entry_1.high_mark"),
        (
            {"type": "expression", "operation": "+", "left": _const(1), "right": _const(2)},
            "(1 + 2)",
        ),
        ({"type": "function", "functionName": "max", "expressions": [_const(1), _const(2)]}, "max(1, 2)"),
        (
            {"type": "math_expression", "items": [{"expression": _const(1)}, {"operator": "*", "expression": _const(3)}]},
            "(1 * 3)",
        ),
        ({"type": "list", "items": [_const(1), _const(2)]}, "[1, 2]"),
        ({"type": "mystery"}, "Unknown Expression"),
    ],
)
def test_expression_rendering(expr: dict, expected: str) -> None:
    assert expression_to_string(expr) == expected


def test_between_uses_upper_bound() -> None:
    root = _group("AND", {"operator": "between", "lhs": _const(5), "rhs": _const(1), "rhsUpper": _const(9)})
    assert format_conditions(root) == "5 between 1 and 9"


def test_find_incomplete_depth() -> None:
    root = parse_group(_group("AND", {"id": "x", "operator": ">"}, _group("OR", {"id": "y"})))
    assert [c.id for c in find_incomplete(root)] == ["x"]
    assert [c.id for c in find_incomplete(root, recursive=True)] == ["x", "y"]


def test_is_diagnostic_substrings() -> None:
    assert is_diagnostic(NO_CONDITIONS)
    assert is_diagnostic(INCOMPLETE_CONDITIONS)
    assert is_diagnostic(SETUP_INCOMPLETE)
    assert is_diagnostic("Error formatting condition")
    assert not is_diagnostic("1 > 2 AND (3 < 4)")


def test_display_name_helpers() -> None:
    assert format_expression_display_name("a-b", timeframe="1m", parameter="upper") == "1m.a_b.upper"
    assert format_expression_display_name("x", offset=2) == "x"
    assert format_uuid_for_display("123e4567-e89b-12d3-a456-426614174000") == "ID_123E4567"
    assert normalize_expression_identifier("short-id") == "short_id"
    assert format_node_variable_reference("123e4567-e89b-12d3-a456-426614174000", "v") == "ID_123E4567.v"
