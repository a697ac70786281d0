from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ReportItem


class CsvDownloadError(Exception):
    """Base class for every failure the delivery adapter knows how to report."""


class EmptyInputError(CsvDownloadError):
    pass


class GenerationFailure(CsvDownloadError):
    """Serialization returned nothing for non-empty input."""


class CellConversionError(CsvDownloadError):
    def __init__(self, field: str, row: int, reason: str):
        self.field = field
        self.row = row
        self.reason = reason
        super().__init__(f"row {row}, field {field!r}: {reason}")


class SchemaMismatchError(CsvDownloadError):
    def __init__(self, issues: List["ReportItem"]):
        self.issues = issues
        super().__init__(f"{len(issues)} record(s) diverge from the first record's schema")
