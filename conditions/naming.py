"""Display-name helpers for operands shown in condition previews."""

from __future__ import annotations

from typing import Optional


def sanitize_expression_name(name: str) -> str:
    # Hyphens read as minus signs inside an expression.
    if not name:
        return name
    return name.replace("-", "_")


def format_expression_display_name(
    base_name: str,
    *,
    instrument_type: Optional[str] = None,
    timeframe: Optional[str] = None,
    parameter: Optional[str] = None,
    offset: Optional[int] = None,
) -> str:
    """Build `TI.5m.RSI.value`-style names, wrapped with the candle offset.

    Offsets: 0 -> `Current[...]`, -1 -> `Previous[...]`, -N -> `Nago[...]`.
    """
    parts: list[str] = []
    if instrument_type:
        parts.append(instrument_type)
    if timeframe:
        parts.append(timeframe)
    parts.append(sanitize_expression_name(base_name))
    if parameter:
        parts.append(parameter)
    name = ".".join(parts)

    if offset is None:
        return name
    if offset == 0:
        return f"Current[{name}]"
    if offset == -1:
        return f"Previous[{name}]"
    if offset < 0:
        return f"{abs(offset)}ago[{name}]"
    return name


def _looks_like_uuid(value: str) -> bool:
    return len(value) >= 36 and "-" in value


def format_uuid_for_display(value: str) -> str:
    if not value or len(value) < 8:
        return value
    if _looks_like_uuid(value):
        return f"ID_{value[:8].upper()}"
    return sanitize_expression_name(value)


def normalize_expression_identifier(identifier: str) -> str:
    if not identifier:
        return identifier
    if _looks_like_uuid(identifier):
        return format_uuid_for_display(identifier)
    return sanitize_expression_name(identifier)


def format_node_variable_reference(node_id: str, variable_name: str) -> str:
    return f"{normalize_expression_identifier(node_id)}.{sanitize_expression_name(variable_name)}"
