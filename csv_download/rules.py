"""
Deterministic serialization rules and defaults.

This file exists to make the fixed choices explicit and enforceable.
"""

DEFAULT_DELIMITER = ","
QUOTE_CHAR = '"'
LINE_SEPARATOR = "\n"  # no trailing separator after the last row

# Characters that force a cell into quotes when strict quoting is enabled.
STRICT_QUOTE_TRIGGERS = (QUOTE_CHAR, "\n", "\r")

TARGET_ENCODING = "utf-8"
BOM_ENCODING = "utf-8-sig"  # UTF-8 with BOM, for spreadsheet consumers
MEDIA_TYPE = "text/csv;charset=utf-8"

DEFAULT_FILENAME = "export.csv"
ALLOWED_EXTENSIONS = (".csv", ".tsv", ".txt")

DEFAULT_TRIGGER_LABEL = "Download CSV"
EMPTY_DATA_MESSAGE = "No data available."
EMPTY_INPUT_DETAIL = "No data available"
GENERATION_FAILED_DETAIL = "Failed to generate CSV content"
