from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from litsheet.models.enums import CellStatus, ColumnType, RowStatus, RunMode
from litsheet.models.sheet import ColumnOption, Sheet, new_id
from litsheet.services.extraction.column_inference import ColumnDraft


class ColumnOptionSchema(BaseModel):
    """A labeled choice for select columns."""

    id: Optional[str] = Field(None, description="Option ID; generated when omitted")
    label: str = Field(..., min_length=1, description="Option label")
    color: Optional[str] = Field(None, description="Display color")

    def to_domain(self) -> ColumnOption:
        return ColumnOption(id=self.id or new_id(), label=self.label, color=self.color)


class ColumnSchema(BaseModel):
    """Column as returned by the API."""

    id: str
    name: str
    type: ColumnType
    prompt: str = ""
    options: List[ColumnOptionSchema] = Field(default_factory=list)
    width: int = 200


class CellSchema(BaseModel):
    """Cell value with AI provenance."""

    value: Any = None
    ai_value: Any = None
    has_ai_value: bool = False
    confidence: Optional[float] = None
    source_text: Optional[str] = None
    is_overridden: bool = False
    status: Optional[CellStatus] = None


class RowSchema(BaseModel):
    id: str
    document_id: str
    document_title: str
    cells: Dict[str, CellSchema] = Field(default_factory=dict)
    status: RowStatus
    error_message: Optional[str] = None
    extracted_at: Optional[datetime] = None


class VersionSummary(BaseModel):
    id: str
    name: str
    created_at: datetime


def _row_payload(row) -> Dict[str, Any]:
    payload = row.to_dict()
    for column_id, cell in row.cells.items():
        payload["cells"][column_id]["has_ai_value"] = cell.has_ai_value
    return payload


class SheetResponse(BaseModel):
    """Sheet as displayed: the previewed version's grid while previewing."""

    id: str
    collection_id: str
    name: str
    columns: List[ColumnSchema]
    rows: List[RowSchema]
    versions: List[VersionSummary]
    document_ids: List[str]
    viewing_version_id: Optional[str] = None
    is_previewing: bool = False
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_sheet(cls, sheet: Sheet) -> "SheetResponse":
        return cls(
            id=sheet.id,
            collection_id=sheet.collection_id,
            name=sheet.name,
            columns=[ColumnSchema(**column.to_dict()) for column in sheet.display_columns],
            rows=[RowSchema(**_row_payload(row)) for row in sheet.display_rows],
            versions=[
                VersionSummary(id=v.id, name=v.name, created_at=v.created_at)
                for v in sheet.versions
            ],
            document_ids=list(sheet.document_ids),
            viewing_version_id=sheet.viewing_version_id,
            is_previewing=sheet.is_previewing,
            created_at=sheet.created_at,
            updated_at=sheet.updated_at,
        )


class SheetSummary(BaseModel):
    id: str
    name: str
    column_count: int
    row_count: int
    version_count: int
    updated_at: datetime

    @classmethod
    def from_sheet(cls, sheet: Sheet) -> "SheetSummary":
        return cls(
            id=sheet.id,
            name=sheet.name,
            column_count=len(sheet.columns),
            row_count=len(sheet.rows),
            version_count=len(sheet.versions),
            updated_at=sheet.updated_at,
        )


class CreateSheetRequest(BaseModel):
    """Request model for creating a sheet."""

    collection_id: str = Field(..., description="Owning collection ID")
    name: str = Field(..., min_length=1, description="Sheet name")
    document_ids: List[str] = Field(default_factory=list, description="Documents to include")
    preset_id: Optional[str] = Field(None, description="Built-in preset for the initial columns")


class RenameSheetRequest(BaseModel):
    name: str = Field(..., min_length=1)


class AddDocumentsRequest(BaseModel):
    document_ids: List[str] = Field(..., min_length=1, description="Documents to add as rows")


class CreateColumnRequest(BaseModel):
    """Request model for adding a column."""

    name: Optional[str] = Field(None, description="Column name; defaults to 'New Column'")
    type: ColumnType = Field(ColumnType.TEXT, description="Value type")
    prompt: str = Field("", description="What to extract")
    options: List[ColumnOptionSchema] = Field(default_factory=list)
    width: Optional[int] = Field(None, gt=0)


class UpdateColumnRequest(BaseModel):
    """Partial column update; omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1)
    type: Optional[ColumnType] = None
    prompt: Optional[str] = None
    options: Optional[List[ColumnOptionSchema]] = None
    width: Optional[int] = Field(None, gt=0)

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True, exclude={"options"})
        if self.options is not None:
            changes["options"] = [option.to_domain() for option in self.options]
        return changes


class EditCellRequest(BaseModel):
    value: Any = Field(None, description="New value; its shape must match the column type")


class RunExtractionRequest(BaseModel):
    row_ids: Optional[List[str]] = Field(
        None, description="Rows to process in order; all unfinished rows when omitted"
    )
    force_refresh: bool = Field(False, description="Include completed rows in a bulk run")


class ExtractionRunResponse(BaseModel):
    sheet_id: str
    mode: RunMode
    column_id: Optional[str] = None
    processed: List[str]
    succeeded: List[str]
    failed: List[str]
    started_at: datetime
    finished_at: Optional[datetime] = None


class SaveVersionRequest(BaseModel):
    name: Optional[str] = Field(None, description="Defaults to 'Version N'")


class PresetResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    columns: List[ColumnSchema]


class ColumnDraftSchema(BaseModel):
    """Column proposal used by the column design endpoints."""

    name: str = Field(..., min_length=1)
    type: ColumnType = ColumnType.TEXT
    prompt: str = ""
    options: List[str] = Field(default_factory=list)

    def to_domain(self) -> ColumnDraft:
        return ColumnDraft(name=self.name, type=self.type, prompt=self.prompt, options=list(self.options))


class GeneratePromptsRequest(BaseModel):
    columns: List[ColumnDraftSchema] = Field(..., min_length=1)


class GeneratePromptsResponse(BaseModel):
    prompts: List[str]


class InferColumnsRequest(BaseModel):
    descriptions: List[str] = Field(..., min_length=1, description="One description per column")


class InferColumnsResponse(BaseModel):
    columns: List[ColumnDraftSchema]


class MessageResponse(BaseModel):
    message: str
    status: str = "success"


class ServiceInfoResponse(BaseModel):
    service: str
    version: str
    api_prefix: str
    docs: Optional[str] = None
    health: str


class HealthCheckResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Service status
        version: Application version
        service: Service name
        database: Database status
    """

    status: str = Field(
        default="healthy",
        description="Service health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(..., description="Application version", examples=["0.1.0"])
    service: str = Field(..., description="Service name", examples=["Litsheet"])
    database: str = Field(..., description="Database status", examples=["healthy", "unhealthy"])
