"""Data model for extraction sheets.

A sheet is a grid of documents (rows) by typed facts (columns). Each
(row, column) pair holds a Cell that tracks both the live value and the
last AI-produced value, so manual overrides never lose provenance.
Versions are immutable deep copies of the grid.
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from litsheet.core.exceptions import (
    ColumnNotFoundError,
    RowNotFoundError,
    SheetInvariantError,
    VersionNotFoundError,
)
from litsheet.models.enums import CellStatus, ColumnType, RowStatus
from litsheet.models.values import CellValue, read_value

DEFAULT_COLUMN_WIDTH = 200


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class ColumnOption:
    """A labeled choice for Select columns."""
    id: str
    label: str
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnOption":
        return cls(id=data["id"], label=data["label"], color=data.get("color"))


@dataclass
class Column:
    """A typed fact to extract from every document in a sheet.

    Attributes:
        id: Column ID
        name: Display name
        type: Value type
        prompt: Free-text description of what to extract
        options: Choices for Select types, empty otherwise
        width: Display width in pixels
    """
    id: str
    name: str
    type: ColumnType
    prompt: str = ""
    options: List[ColumnOption] = field(default_factory=list)
    width: int = DEFAULT_COLUMN_WIDTH

    def __post_init__(self):
        self.type = ColumnType(self.type)
        if self.type.is_select and not self.options:
            raise ValueError(f"Column '{self.name}' of type {self.type.value} requires options")
        if not self.type.is_select and self.options:
            raise ValueError(f"Column '{self.name}' of type {self.type.value} cannot have options")

    @property
    def option_labels(self) -> List[str]:
        return [option.label for option in self.options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "prompt": self.prompt,
            "options": [option.to_dict() for option in self.options],
            "width": self.width,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(
            id=data["id"],
            name=data["name"],
            type=ColumnType(data["type"]),
            prompt=data.get("prompt", ""),
            options=[ColumnOption.from_dict(o) for o in data.get("options") or []],
            width=data.get("width", DEFAULT_COLUMN_WIDTH),
        )


@dataclass
class Cell:
    """Value of one (row, column) pair plus AI provenance.

    ``ai_value`` is only meaningful when ``has_ai_value`` is set; an AI pass
    that found nothing still records ``ai_value=None`` with
    ``has_ai_value=True``.
    """
    value: CellValue = None
    ai_value: CellValue = None
    has_ai_value: bool = False
    confidence: Optional[float] = None
    source_text: Optional[str] = None
    is_overridden: bool = False
    status: Optional[CellStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "value": copy.deepcopy(self.value),
            "confidence": self.confidence,
            "source_text": self.source_text,
            "is_overridden": self.is_overridden,
            "status": self.status.value if self.status else None,
        }
        if self.has_ai_value:
            data["ai_value"] = copy.deepcopy(self.ai_value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cell":
        status = data.get("status")
        return cls(
            value=copy.deepcopy(data.get("value")),
            ai_value=copy.deepcopy(data.get("ai_value")),
            has_ai_value="ai_value" in data,
            confidence=data.get("confidence"),
            source_text=data.get("source_text"),
            is_overridden=bool(data.get("is_overridden", False)),
            status=CellStatus(status) if status else None,
        )


@dataclass
class Row:
    """One document's extraction record."""
    id: str
    document_id: str
    document_title: str
    cells: Dict[str, Cell] = field(default_factory=dict)
    status: RowStatus = RowStatus.PENDING
    error_message: Optional[str] = None
    extracted_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = RowStatus(self.status)

    def value_for(self, column: Column) -> CellValue:
        """Typed value of a column's cell; mismatched or missing reads as null."""
        cell = self.cells.get(column.id)
        if cell is None:
            return None
        return read_value(cell.value, column.type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "document_title": self.document_title,
            "cells": {column_id: cell.to_dict() for column_id, cell in self.cells.items()},
            "status": self.status.value,
            "error_message": self.error_message,
            "extracted_at": _iso(self.extracted_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Row":
        return cls(
            id=data["id"],
            document_id=data["document_id"],
            document_title=data.get("document_title", ""),
            cells={cid: Cell.from_dict(c) for cid, c in (data.get("cells") or {}).items()},
            status=RowStatus(data.get("status", RowStatus.PENDING.value)),
            error_message=data.get("error_message"),
            extracted_at=_parse_datetime(data.get("extracted_at")),
        )


@dataclass(frozen=True)
class Version:
    """Immutable snapshot of a sheet's columns and rows."""
    id: str
    name: str
    created_at: datetime
    columns: Tuple[Column, ...]
    rows: Tuple[Row, ...]

    @classmethod
    def snapshot(cls, name: str, columns: List[Column], rows: List[Row]) -> "Version":
        """Build a version from deep copies of the given lists."""
        return cls(
            id=new_id(),
            name=name,
            created_at=utcnow(),
            columns=tuple(copy.deepcopy(columns)),
            rows=tuple(copy.deepcopy(rows)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": _iso(self.created_at),
            "columns": [column.to_dict() for column in self.columns],
            "rows": [row.to_dict() for row in self.rows],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Version":
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=_parse_datetime(data["created_at"]),
            columns=tuple(Column.from_dict(c) for c in data.get("columns") or []),
            rows=tuple(Row.from_dict(r) for r in data.get("rows") or []),
        )


@dataclass
class Sheet:
    """Top-level extraction grid for one collection of documents.

    Attributes:
        id: Sheet ID
        collection_id: Owning collection (project) ID
        name: Display name
        columns: Ordered live columns
        rows: Live rows, one per document
        versions: Append-only snapshots
        viewing_version_id: Version shown instead of live data (preview)
        document_ids: Documents currently included, in insertion order
    """
    id: str
    collection_id: str
    name: str
    columns: List[Column] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    versions: List[Version] = field(default_factory=list)
    viewing_version_id: Optional[str] = None
    document_ids: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_previewing(self) -> bool:
        return self.viewing_version_id is not None

    @property
    def viewing_version(self) -> Optional[Version]:
        if self.viewing_version_id is None:
            return None
        return self.get_version(self.viewing_version_id)

    @property
    def display_columns(self) -> List[Column]:
        """Columns consumers should render: the snapshot's while previewing."""
        version = self.viewing_version
        return list(version.columns) if version else self.columns

    @property
    def display_rows(self) -> List[Row]:
        version = self.viewing_version
        return list(version.rows) if version else self.rows

    @property
    def column_ids(self) -> List[str]:
        return [column.id for column in self.columns]

    def get_row(self, row_id: str) -> Row:
        for row in self.rows:
            if row.id == row_id:
                return row
        raise RowNotFoundError(f"Row {row_id} not found in sheet {self.id}")

    def find_row_by_document(self, document_id: str) -> Optional[Row]:
        for row in self.rows:
            if row.document_id == document_id:
                return row
        return None

    def get_column(self, column_id: str) -> Column:
        for column in self.columns:
            if column.id == column_id:
                return column
        raise ColumnNotFoundError(f"Column {column_id} not found in sheet {self.id}")

    def get_version(self, version_id: str) -> Version:
        for version in self.versions:
            if version.id == version_id:
                return version
        raise VersionNotFoundError(f"Version {version_id} not found in sheet {self.id}")

    def touch(self) -> None:
        self.updated_at = utcnow()

    def check_invariants(self) -> None:
        """Verify structural invariants.

        Raises:
            SheetInvariantError: On a cell keyed by an unknown column or a
                duplicated document
        """
        column_ids = set(self.column_ids)
        seen_documents = set()
        for row in self.rows:
            stray = set(row.cells) - column_ids
            if stray:
                raise SheetInvariantError(
                    f"Row {row.id} has cells for unknown columns: {sorted(stray)}"
                )
            if row.document_id in seen_documents:
                raise SheetInvariantError(
                    f"Document {row.document_id} appears in more than one row"
                )
            seen_documents.add(row.document_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "collection_id": self.collection_id,
            "name": self.name,
            "columns": [column.to_dict() for column in self.columns],
            "rows": [row.to_dict() for row in self.rows],
            "versions": [version.to_dict() for version in self.versions],
            "viewing_version_id": self.viewing_version_id,
            "document_ids": list(self.document_ids),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sheet":
        return cls(
            id=data["id"],
            collection_id=data["collection_id"],
            name=data["name"],
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
            rows=[Row.from_dict(r) for r in data.get("rows") or []],
            versions=[Version.from_dict(v) for v in data.get("versions") or []],
            viewing_version_id=data.get("viewing_version_id"),
            document_ids=list(data.get("document_ids") or []),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
            updated_at=_parse_datetime(data.get("updated_at")) or utcnow(),
        )
