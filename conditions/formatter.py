"""Render condition trees as human-readable boolean expressions.

`format_conditions` is the preview entry point used by signal-node editors. It
is total: malformed input never raises, it resolves to one of the diagnostic
strings below, which callers detect by substring (see `is_diagnostic`). The
wording of these strings is matched by calling code and must not change.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel

from config import get_builder_config

from .model import Condition, Expression, GroupCondition, is_group
from .naming import (
    format_expression_display_name,
    format_node_variable_reference,
    normalize_expression_identifier,
)

logger = logging.getLogger(__name__)

NO_CONDITIONS = "No conditions defined"
INCOMPLETE_CONDITIONS = "Incomplete conditions - please fill all fields"
SETUP_INCOMPLETE = "Please complete your condition setup"

INCOMPLETE_CONDITION = "Incomplete condition"
FORMAT_ERROR = "Error formatting condition"

DIAGNOSTIC_MARKERS: tuple[str, ...] = ("Error", "Incomplete", "Please complete")

POSITION_FIELD_LABELS = {
    "entryPrice": "Entry Price",
    "currentPrice": "Current Price",
    "quantity": "Quantity",
    "status": "Status",
    "underlyingPriceOnEntry": "Underlying Price on Entry",
    "underlyingPriceOnExit": "Underlying Price on Exit",
    "instrumentName": "Instrument Name",
    "instrumentType": "Instrument Type",
    "symbol": "Symbol",
    "expiryDate": "Expiry Date",
    "strikePrice": "Strike Price",
    "optionType": "Option Type",
    "strikeType": "Strike Type",
    "underlyingName": "Underlying Name",
    "entryTime": "Entry Time",
    "exitTime": "Exit Time",
}

_INSTRUMENT_CONFIG_KEYS = ("tradingInstrumentConfig", "supportingInstrumentConfig")


def is_diagnostic(text: str) -> bool:
    """Whether a preview string should be styled as a warning."""
    return any(marker in text for marker in DIAGNOSTIC_MARKERS) or text == NO_CONDITIONS


def _as_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Expected a mapping, got {type(value).__name__}")


def _timeframes(context: Mapping[str, Any]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for key in _INSTRUMENT_CONFIG_KEYS:
        cfg = context.get(key) or {}
        for tf in cfg.get("timeframes") or []:
            if isinstance(tf, Mapping):
                out.append(dict(tf))
    return out


def _lookup_indicator(context: Mapping[str, Any], key: str) -> tuple[Optional[dict[str, Any]], str]:
    for tf in _timeframes(context):
        indicators = tf.get("indicators")
        if isinstance(indicators, Mapping) and key in indicators:
            return dict(indicators[key] or {}), str(tf.get("timeframe") or "")
    return None, ""


def _timeframe_display(context: Mapping[str, Any], timeframe_id: Optional[str]) -> str:
    if not timeframe_id:
        return ""
    for tf in _timeframes(context):
        if tf.get("id") == timeframe_id:
            return str(tf.get("timeframe") or "")
    return ""


def _constant_to_string(expr: dict[str, Any]) -> str:
    for key in ("value", "numberValue", "stringValue", "booleanValue", "statusValue"):
        value = expr.get(key)
        if value is None:
            continue
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    return "0"


def _pnl_label(expr: dict[str, Any], title: str) -> str:
    pnl_type = {"realized": "Realized", "unrealized": "Unrealized"}.get(expr.get("pnlType"), "Total")
    if expr.get("scope") == "overall":
        return f"{pnl_type} {title} (Overall)"
    vpi = expr.get("vpi")
    if vpi and vpi != "_any":
        return f"{pnl_type} {title} ({vpi})"
    return f"{pnl_type} {title} (Position)"


def expression_to_string(expression: Union[Expression, Mapping[str, Any], None], context: Optional[Mapping[str, Any]] = None) -> str:
    """Render one operand, resolving indicator and timeframe names against `context`."""
    try:
        expr = _as_dict(expression)
        ctx = context or {}
        kind = expr.get("type")

        if kind == "constant":
            return _constant_to_string(expr)

        if kind == "indicator":
            key = expr.get("indicatorId") or expr.get("name")
            name = "Indicator"
            timeframe = ""
            if key:
                indicator, timeframe = _lookup_indicator(ctx, key)
                if indicator:
                    name = indicator.get("display_name") or indicator.get("indicator_name") or key
                else:
                    name = normalize_expression_identifier(key)
            if not timeframe:
                timeframe = _timeframe_display(ctx, expr.get("timeframeId")) or expr.get("timeframe") or ""
            return format_expression_display_name(
                name,
                instrument_type=expr.get("instrumentType"),
                timeframe=timeframe,
                parameter=expr.get("indicatorParam") or expr.get("parameter"),
                offset=expr.get("offset"),
            )

        if kind == "candle_data":
            timeframe = _timeframe_display(ctx, expr.get("timeframeId")) or expr.get("timeframe") or ""
            return format_expression_display_name(
                expr.get("field") or "Close",
                instrument_type=expr.get("instrumentType"),
                timeframe=timeframe,
                offset=expr.get("offset"),
            )

        if kind == "live_data":
            field = expr.get("field") or "LTP"
            if field == "mark":
                field = "LTP"
            return format_expression_display_name(field, instrument_type=expr.get("instrumentType"))

        if kind == "time_function":
            return str(expr.get("timeValue") or "Time")

        if kind == "current_time":
            return "Current Time"

        if kind == "position_data":
            field = expr.get("field") or expr.get("positionField") or "Position Data"
            label = POSITION_FIELD_LABELS.get(field, field)
            return f"{label} ({expr['vpi']})" if expr.get("vpi") else label

        if kind == "position_time":
            label = POSITION_FIELD_LABELS.get(expr.get("timeField") or "", "Position Time")
            return f"{label} ({expr['vpi']})" if expr.get("vpi") else label

        if kind == "external_trigger":
            return expr.get("triggerType") or expr.get("triggerId") or "External Trigger"

        if kind == "node_variable":
            return format_node_variable_reference(expr.get("nodeId") or "", expr.get("variableName") or "")

        if kind == "trailing_variable":
            return f"Trailing ({expr['variableId']})" if expr.get("variableId") else "Trailing Position"

        if kind == "pnl_data":
            return _pnl_label(expr, "P&L")

        if kind == "underlying_pnl":
            return _pnl_label(expr, "Underlying P&L")

        if kind == "expression":
            left, right, operation = expr.get("left"), expr.get("right"), expr.get("operation")
            if left and right and operation:
                return f"({expression_to_string(left, ctx)} {operation} {expression_to_string(right, ctx)})"
            return expr.get("expressionString") or "Complex Expression"

        if kind == "function":
            items = expr.get("expressions") or []
            if expr.get("functionName") and items:
                return f"{expr['functionName']}({', '.join(expression_to_string(e, ctx) for e in items)})"
            return "Function Expression"

        if kind == "math_expression":
            parts: list[str] = []
            for i, item in enumerate(expr.get("items") or []):
                text = expression_to_string(item.get("expression"), ctx)
                if i > 0:
                    parts.append(str(item.get("operator") or "+"))
                parts.append(text)
            return f"({' '.join(parts)})" if len(parts) > 1 else (parts[0] if parts else "0")

        if kind == "list":
            return f"[{', '.join(expression_to_string(e, ctx) for e in expr.get('items') or [])}]"

        if kind == "time_offset":
            base = expression_to_string(expr.get("baseTime"), ctx)
            return f"{base} {expr.get('direction') or 'after'} {expr.get('offsetValue', 0)} {expr.get('offsetType') or 'minutes'}"

        if kind == "candle_range":
            if expr.get("rangeType") == "by_time":
                return f"Candles[{expr.get('startTime') or ''}-{expr.get('endTime') or ''}]"
            return f"Candles[{expr.get('startIndex', 0)}..{expr.get('endIndex', 0)}]"

        if kind == "aggregation":
            agg = expr.get("aggregationType") or "max"
            if expr.get("sourceType") == "expression_list":
                inner = ", ".join(expression_to_string(e, ctx) for e in expr.get("expressions") or [])
            else:
                inner = f"{expression_to_string(expr.get('candleRange'), ctx)}.{expr.get('ohlcvField') or 'close'}"
            return f"{agg}({inner})"

        return "Unknown Expression"
    except Exception:
        logger.exception("Error formatting expression")
        return "Error"


def condition_to_string(condition: Condition, context: Optional[Mapping[str, Any]] = None) -> str:
    try:
        if condition.lhs is None or condition.rhs is None:
            return INCOMPLETE_CONDITION
        left = expression_to_string(condition.lhs, context)
        right = expression_to_string(condition.rhs, context)
        if condition.operator in ("between", "not_between") and condition.rhs_upper is not None:
            upper = expression_to_string(condition.rhs_upper, context)
            return f"{left} {condition.operator} {right} and {upper}"
        return f"{left} {condition.operator} {right}"
    except Exception:
        logger.exception("Error formatting single condition")
        return FORMAT_ERROR


def group_condition_to_string(group: Optional[GroupCondition], context: Optional[Mapping[str, Any]] = None) -> str:
    """Recursive renderer: nested groups are parenthesised, siblings joined by the group logic."""
    if group is None or not group.conditions:
        return NO_CONDITIONS
    try:
        parts = [
            f"({group_condition_to_string(child, context)})" if is_group(child) else condition_to_string(child, context)
            for child in group.conditions
        ]
        return f" {group.group_logic} ".join(parts)
    except Exception:
        logger.exception("Error formatting condition group")
        return FORMAT_ERROR


def find_incomplete(group: GroupCondition, recursive: bool = False) -> list[Condition]:
    """Leaves failing the completeness check; nested groups are only entered when `recursive`."""
    found: list[Condition] = []
    for child in group.conditions:
        if is_group(child):
            if recursive:
                found.extend(find_incomplete(child, recursive=True))
        elif not child.is_complete():
            found.append(child)
    return found


def _strict_default() -> bool:
    return get_builder_config().formatter.strict_nested_completeness


def format_conditions(
    root: Union[GroupCondition, Mapping[str, Any], None],
    context: Optional[Mapping[str, Any]] = None,
    *,
    strict_nested: Optional[bool] = None,
) -> str:
    """Preview string for a root group. Never raises."""
    try:
        if root is None:
            return NO_CONDITIONS
        if not isinstance(root, GroupCondition):
            if not isinstance(root, Mapping):
                return NO_CONDITIONS
            raw = root.get("conditions")
            if not isinstance(raw, list) or not raw:
                return NO_CONDITIONS
            root = GroupCondition.model_validate(root)
        if not root.conditions:
            return NO_CONDITIONS

        if strict_nested is None:
            strict_nested = _strict_default()
        incomplete = find_incomplete(root, recursive=strict_nested)
        if incomplete:
            logger.debug("Incomplete conditions: %s", [c.id for c in incomplete])
            return INCOMPLETE_CONDITIONS

        return group_condition_to_string(root, context)
    except Exception:
        logger.exception("Error in condition preview")
        return SETUP_INCOMPLETE
