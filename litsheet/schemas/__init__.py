from .sheets import (
    AddDocumentsRequest,
    CreateColumnRequest,
    CreateSheetRequest,
    EditCellRequest,
    ExtractionRunResponse,
    SheetResponse,
    SheetSummary,
)

__all__ = [
    "AddDocumentsRequest",
    "CreateColumnRequest",
    "CreateSheetRequest",
    "EditCellRequest",
    "ExtractionRunResponse",
    "SheetResponse",
    "SheetSummary",
]
