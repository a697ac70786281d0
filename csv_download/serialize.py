"""
Record-to-text serialization.

Responsibilities:
- column order from the first record
- header derivation (with optional override)
- per-cell value transformation
- quote doubling and quoting
- delimiter / line assembly

Pure and stateless: no I/O, identical inputs give identical output.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple

from . import rules
from .errors import CellConversionError, SchemaMismatchError
from .models import CsvOptions, ReportItem
from .schema import RecordSchema


class ValueTransformer(Protocol):
    """
    Per-cell plug-in: `(value, field, record) -> str`.

    Implementations must not mutate `record` and must not perform I/O.
    Exceptions they raise are not caught here.
    """

    def __call__(self, value: Any, field: str, record: Mapping[str, Any]) -> str: ...


@dataclass(frozen=True)
class SerializationResult:
    text: str
    schema: Optional[RecordSchema] = None
    warnings: List[ReportItem] = field(default_factory=list)
    rows: int = 0


def default_stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _float_text(value)
    return str(value)


def _float_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    # integral floats below 1e21 print as plain integers; larger ones keep exponent form
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def escape_cell(text: str) -> str:
    return text.replace(rules.QUOTE_CHAR, rules.QUOTE_CHAR * 2)


def needs_quoting(text: str, delimiter: str) -> bool:
    if delimiter and delimiter in text:
        return True
    return any(ch in text for ch in rules.STRICT_QUOTE_TRIGGERS)


def _quote(text: str) -> str:
    return f"{rules.QUOTE_CHAR}{text}{rules.QUOTE_CHAR}"


def _header_labels(schema: RecordSchema, options: CsvOptions) -> Tuple[str, ...]:
    override = options.header_override
    if override is not None and len(override) == schema.width:
        return tuple(str(label) for label in override)
    return tuple(str(f) for f in schema.fields)


def _header_line(labels: Sequence[str], options: CsvOptions) -> str:
    if not options.strict_quoting:
        return options.delimiter.join(labels)
    return options.delimiter.join(
        _quote(escape_cell(label)) if needs_quoting(label, options.delimiter) else label
        for label in labels
    )


def _cell_text(value: Any, field_name: str, record: Mapping[str, Any], row: int, options: CsvOptions) -> str:
    if options.value_transformer is not None:
        text = options.value_transformer(value, field_name, record)
        if not isinstance(text, str):
            raise CellConversionError(
                str(field_name), row, f"transformer returned {type(text).__name__}, expected str"
            )
        return text

    try:
        return default_stringify(value)
    except Exception as exc:
        raise CellConversionError(str(field_name), row, f"cannot convert {type(value).__name__} to text") from exc


def _render_cell(text: str, options: CsvOptions) -> str:
    escaped = escape_cell(text)
    if options.quote_values:
        return _quote(escaped)
    if options.strict_quoting and needs_quoting(text, options.delimiter):
        return _quote(escaped)
    return escaped


def _render_row(index: int, record: Mapping[str, Any], schema: RecordSchema, options: CsvOptions) -> str:
    cells = []
    for field_name in schema.fields:
        raw = record.get(field_name)
        cells.append(_render_cell(_cell_text(raw, field_name, record, index + 1, options), options))
    return options.delimiter.join(cells)


def serialize_with_report(
    records: Sequence[Mapping[str, Any]],
    options: Optional[CsvOptions] = None,
) -> SerializationResult:
    """
    Serialize `records` and report records that diverge from the first one.

    In lenient mode divergent records are padded (missing fields become
    empty cells) or truncated (unknown fields are dropped) and reported as
    warnings. In strict mode they raise SchemaMismatchError before any text
    is produced.
    """
    options = options or CsvOptions()

    schema = RecordSchema.from_records(records)
    if schema is None:
        return SerializationResult(text="")

    issues = schema.validate(records)
    if issues and options.schema_policy == "strict":
        raise SchemaMismatchError(issues)

    lines = [_header_line(_header_labels(schema, options), options)]
    lines.extend(_render_row(i, record, schema, options) for i, record in enumerate(records))

    return SerializationResult(
        text=rules.LINE_SEPARATOR.join(lines),
        schema=schema,
        warnings=issues,
        rows=len(records),
    )


def serialize(records: Sequence[Mapping[str, Any]], options: Optional[CsvOptions] = None) -> str:
    return serialize_with_report(records, options).text
