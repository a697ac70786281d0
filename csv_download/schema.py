"""
Explicit record schema.

The first record fixes the column order and a declared kind per column.
Every record is then checked against it, so divergent records are reported
instead of being padded or truncated silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import ReportItem


def value_kind(value: Any) -> Optional[str]:
    if value is None:
        return None
    # bool is an int subclass; check it first
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "text"


@dataclass(frozen=True)
class RecordSchema:
    fields: Tuple[str, ...]
    kinds: Tuple[Optional[str], ...]

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> Optional["RecordSchema"]:
        if not records:
            return None
        first = records[0]
        fields = tuple(first.keys())
        return cls(fields=fields, kinds=tuple(value_kind(first[f]) for f in fields))

    @property
    def width(self) -> int:
        return len(self.fields)

    def check(self, index: int, record: Mapping[str, Any]) -> List[ReportItem]:
        """
        Compare one record with the schema.

        `index` is zero-based; reported rows are one-based data rows
        (the header is not counted).
        """
        issues: List[ReportItem] = []
        row = index + 1
        declared: Dict[str, Optional[str]] = dict(zip(self.fields, self.kinds))

        for field in self.fields:
            if field not in record:
                issues.append(ReportItem(
                    row=row,
                    column=str(field),
                    issue="missing_field",
                    value=None,
                    action="emitted_empty",
                ))
                continue

            expected = declared[field]
            actual = value_kind(record[field])
            if expected is not None and actual is not None and actual != expected:
                issues.append(ReportItem(
                    row=row,
                    column=str(field),
                    issue="type_mismatch",
                    value=actual,
                    action="stringified",
                ))

        for field in record:
            if field not in declared:
                issues.append(ReportItem(
                    row=row,
                    column=str(field),
                    issue="unexpected_field",
                    value=None,
                    action="ignored",
                ))

        return issues

    def validate(self, records: Sequence[Mapping[str, Any]]) -> List[ReportItem]:
        issues: List[ReportItem] = []
        for i, record in enumerate(records):
            issues.extend(self.check(i, record))
        return issues
