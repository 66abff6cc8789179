"""
Column references and value coercion.

A column reference is either a plain attribute name (`status`) or a JSON
column followed by a key (`meta.nickname`), which resolves to the unquoted text
of that key. Names are checked against the entity allow-list; values are always
bound as parameters.
"""

from datetime import UTC
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser
from sqlalchemy import ColumnElement
from sqlalchemy.sql import sqltypes

from appscope.core.exceptions import FilterValidationError, UnknownColumnError

from .registry import EntityMetadata

TRUE_VALUES = frozenset({"true", "t", "1", "yes", "y"})
FALSE_VALUES = frozenset({"false", "f", "0", "no", "n"})


def split_column_spec(column_spec: str) -> tuple[str, str | None]:
    """Splits `column.field` into its parts; a plain column has no field."""
    column, sep, json_field = column_spec.partition(".")
    return column, (json_field if sep else None)


def resolve_column(alias: Any, column_spec: str, metadata: EntityMetadata) -> ColumnElement:
    """
    Resolves a client-supplied column reference against an aliased entity.

    Args:
        alias: The aliased entity (`sqlalchemy.orm.aliased`) the column belongs to.
        column_spec (str): `column` or `json_column.json_field`.
        metadata (EntityMetadata): Allow-list of the entity behind `alias`.

    Returns:
        ColumnElement: The column, or the text extraction of the JSON field.

    Raises:
        UnknownColumnError: If the column is not declared, or a dotted reference
            does not start with a JSON column.
    """
    column, json_field = split_column_spec(column_spec)
    if column not in metadata.columns:
        raise UnknownColumnError(metadata.name, column_spec)

    if json_field is None:
        return getattr(alias, column)

    if column not in metadata.json_columns:
        raise UnknownColumnError(metadata.name, column_spec, "only JSON columns accept a field path")
    if not json_field:
        raise UnknownColumnError(metadata.name, column_spec, "empty JSON field")

    return getattr(alias, column)[json_field].as_string()


def column_type(column) -> sqltypes.TypeEngine:
    """SQL type of a mapped attribute or a plain column expression."""
    return column.expression.type


def _invalid(raw: str, kind: str) -> FilterValidationError:
    return FilterValidationError(f"'{raw}' is not a valid {kind} value")


def coerce_value(column: ColumnElement, raw: str) -> Any:
    """
    Converts a raw string to the Python type the column compares against.

    Booleans, integers, decimals, dates and datetimes are parsed; everything else
    (including JSON field extractions) is compared as text.

    Raises:
        FilterValidationError: If `raw` cannot be parsed for the column type.
    """
    if raw is None:
        return None

    col_type = column_type(column)

    if isinstance(col_type, sqltypes.Boolean):
        value = raw.strip().lower()
        if value in TRUE_VALUES:
            return True
        if value in FALSE_VALUES:
            return False
        raise _invalid(raw, "boolean")

    if isinstance(col_type, sqltypes.Integer):
        try:
            return int(raw)
        except ValueError:
            raise _invalid(raw, "integer") from None

    if isinstance(col_type, sqltypes.Float):
        try:
            return float(raw)
        except ValueError:
            raise _invalid(raw, "number") from None

    if isinstance(col_type, sqltypes.Numeric):
        try:
            return Decimal(raw)
        except InvalidOperation:
            raise _invalid(raw, "number") from None

    if isinstance(col_type, sqltypes.DateTime):
        try:
            parsed = date_parser.parse(raw)
        except (ValueError, OverflowError):
            raise _invalid(raw, "datetime") from None
        # Stored as naive UTC.
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(UTC).replace(tzinfo=None)
        return parsed

    if isinstance(col_type, sqltypes.Date):
        try:
            return date_parser.parse(raw).date()
        except (ValueError, OverflowError):
            raise _invalid(raw, "date") from None

    return raw
