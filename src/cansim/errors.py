from __future__ import annotations

from typing import Optional


class CansimError(Exception):
    """Base class for errors raised by this package."""


class MalformedMetadataError(CansimError):
    """A required section marker is missing or out of order; the metadata cannot be parsed."""

    def __init__(self, marker: str, detail: str = "", table: Optional[str] = None) -> None:
        self.marker = marker
        self.detail = detail
        self.table = table
        msg = f"Malformed metadata at marker '{marker}'"
        if detail:
            msg += f": {detail}"
        if table:
            msg += f" (table {table})"
        super().__init__(msg)

    def for_table(self, table: str) -> "MalformedMetadataError":
        return MalformedMetadataError(self.marker, self.detail, table=table)


class UnknownColumnError(CansimError, KeyError):
    def __init__(self, column: str, table: Optional[str] = None) -> None:
        self.column = column
        self.table = table
        msg = f"Unknown column '{column}'"
        if table:
            msg += f" in table {table}"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class TableNumberError(CansimError, ValueError):
    pass


class LanguageError(CansimError, ValueError):
    pass


class DownloadError(CansimError):
    def __init__(self, url: str, status_code: int, body: str = "") -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Problem downloading data, status code {status_code} ({url})\n{body}".rstrip())


# -----------------------------
# Recoverable diagnostics
# -----------------------------

class CansimWarning(UserWarning):
    pass


class HierarchyDepthExceeded(CansimWarning):
    """Parent-pointer closure did not converge; hierarchy information may be truncated."""


class UnmatchedDimensionWarning(CansimWarning):
    """A declared dimension has no column in the data table and was not annotated."""


class UnannotatedTableWarning(CansimWarning):
    """Metadata could not be folded in; the data table is returned without annotation columns."""
