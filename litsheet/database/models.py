"""SQLAlchemy models for documents and extraction sheets.

Sheet columns, row cells and version snapshots are stored as JSON
payloads produced by the domain model's ``to_dict``.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from litsheet.database.base import Base
from litsheet.models.sheet import new_id, utcnow


class DocumentRecord(Base):
    """Document with already-extracted plain text."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    collection_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False, default="Untitled")
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )


class SheetRecord(Base):
    """Extraction sheet header: name, columns and preview pointer."""

    __tablename__ = "extraction_sheets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    collection_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    columns: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    document_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    viewing_version_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    rows: Mapped[list["SheetRowRecord"]] = relationship(
        "SheetRowRecord",
        back_populates="sheet",
        cascade="all, delete-orphan",
        order_by="SheetRowRecord.position",
        lazy="selectin",
    )
    versions: Mapped[list["SheetVersionRecord"]] = relationship(
        "SheetVersionRecord",
        back_populates="sheet",
        cascade="all, delete-orphan",
        order_by="SheetVersionRecord.position",
        lazy="selectin",
    )


class SheetRowRecord(Base):
    """One document's row in a sheet."""

    __tablename__ = "extraction_sheet_rows"
    __table_args__ = (
        UniqueConstraint("sheet_id", "document_id", name="uq_sheet_row_document"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    sheet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("extraction_sheets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_id: Mapped[str] = mapped_column(String(36), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    sheet: Mapped["SheetRecord"] = relationship("SheetRecord", back_populates="rows")


class SheetVersionRecord(Base):
    """Immutable snapshot of a sheet's columns and rows."""

    __tablename__ = "extraction_sheet_versions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    sheet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("extraction_sheets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    sheet: Mapped["SheetRecord"] = relationship("SheetRecord", back_populates="versions")
