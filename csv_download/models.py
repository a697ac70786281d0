from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from . import rules

Scalar = Optional[Union[str, int, float, bool]]
SchemaPolicy = Literal["lenient", "strict"]


class CsvOptions(BaseModel):
    """Options for one serialization call."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = rules.DEFAULT_DELIMITER
    quote_values: bool = True
    value_transformer: Optional[Callable[[Any, str, Mapping[str, Any]], str]] = None
    header_override: Optional[Tuple[str, ...]] = None
    strict_quoting: bool = False
    schema_policy: SchemaPolicy = "lenient"


class ReportItem(BaseModel):
    row: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class ExportRequest(BaseModel):
    records: List[Dict[str, Scalar]] = Field(default_factory=list)
    filename: str = rules.DEFAULT_FILENAME
    delimiter: str = Field(default=rules.DEFAULT_DELIMITER, min_length=1)
    quote_values: bool = True
    header_override: Optional[List[str]] = None
    strict_quoting: bool = False
    schema_policy: SchemaPolicy = "lenient"
    include_bom: bool = False
    empty_data_message: str = rules.EMPTY_DATA_MESSAGE

    def to_options(self) -> CsvOptions:
        return CsvOptions(
            delimiter=self.delimiter,
            quote_values=self.quote_values,
            header_override=tuple(self.header_override) if self.header_override is not None else None,
            strict_quoting=self.strict_quoting,
            schema_policy=self.schema_policy,
        )


class ExportedCsv(BaseModel):
    filename: str
    sha256: str
    encoding: str = Field(default=rules.TARGET_ENCODING)
    media_type: str = Field(default=rules.MEDIA_TYPE)
    content_b64: str


class ReportSummary(BaseModel):
    rows: int = 0
    columns: int = 0
    warnings: int = 0
    errors: int = 0
    deterministic: bool = True


class ExportReport(BaseModel):
    summary: ReportSummary
    warnings: List[ReportItem] = Field(default_factory=list)
    errors: List[ReportItem] = Field(default_factory=list)


class ExportResponse(BaseModel):
    csv: ExportedCsv
    report: ExportReport


class TriggerView(BaseModel):
    kind: Literal["placeholder", "default", "custom"]
    label: Optional[str] = None
    message: Optional[str] = None
    handle: Any = None


class HealthResponse(BaseModel):
    ok: bool = True
