from .errors import (
    CellConversionError,
    CsvDownloadError,
    EmptyInputError,
    GenerationFailure,
    SchemaMismatchError,
)
from .models import CsvOptions, ReportItem
from .schema import RecordSchema
from .serialize import SerializationResult, serialize, serialize_with_report

__all__ = [
    "CellConversionError",
    "CsvDownloadError",
    "CsvOptions",
    "EmptyInputError",
    "GenerationFailure",
    "RecordSchema",
    "ReportItem",
    "SchemaMismatchError",
    "SerializationResult",
    "serialize",
    "serialize_with_report",
]
