from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from litsheet.core.exceptions import (
    APIClientError,
    AppError,
    ConfigurationError,
    DocumentUnavailableError,
    ExtractionInProgressError,
    NotFoundError,
    SheetReadOnlyError,
    ValidationError,
)
from litsheet.dependencies import get_sheet_service
from litsheet.services.sheet.presets import get_preset
from litsheet.services.sheet.sheet_service import SheetService
from litsheet.schemas.sheets import (
    AddDocumentsRequest,
    CellSchema,
    ColumnSchema,
    CreateColumnRequest,
    CreateSheetRequest,
    EditCellRequest,
    ExtractionRunResponse,
    GeneratePromptsRequest,
    GeneratePromptsResponse,
    InferColumnsRequest,
    InferColumnsResponse,
    ColumnDraftSchema,
    MessageResponse,
    PresetResponse,
    RenameSheetRequest,
    RunExtractionRequest,
    SaveVersionRequest,
    SheetResponse,
    SheetSummary,
    UpdateColumnRequest,
    VersionSummary,
)
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

Service = Annotated[SheetService, Depends(get_sheet_service)]

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DocumentUnavailableError, status.HTTP_404_NOT_FOUND),
    (ExtractionInProgressError, status.HTTP_409_CONFLICT),
    (SheetReadOnlyError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (APIClientError, status.HTTP_502_BAD_GATEWAY),
    (ConfigurationError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(error: AppError) -> HTTPException:
    """Map an application error onto an HTTP error response."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        LOGGER.error(
            "Sheet request failed",
            exc_info=True,
            extra={"error_type": error.__class__.__name__, "error": str(error)},
        )
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.__class__.__name__,
            "message": str(error),
        },
    )


@router.get(
    "/",
    response_model=List[SheetSummary],
    summary="List sheets in a collection",
    operation_id="list_sheets",
)
async def list_sheets(service: Service, collection_id: str = Query(...)):
    sheets = await service.list_sheets(collection_id)
    return [SheetSummary.from_sheet(sheet) for sheet in sheets]


@router.post(
    "/",
    response_model=SheetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sheet",
    operation_id="create_sheet",
)
async def create_sheet(request: CreateSheetRequest, service: Service):
    """Create a sheet, optionally seeded with a preset's columns."""
    try:
        if request.preset_id:
            get_preset(request.preset_id)
        sheet = await service.create_sheet(
            collection_id=request.collection_id,
            name=request.name,
            document_ids=request.document_ids,
        )
        if request.preset_id:
            sheet = await service.apply_preset(sheet.id, request.preset_id)
        return SheetResponse.from_sheet(sheet)
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/presets",
    response_model=List[PresetResponse],
    summary="List built-in column presets",
    operation_id="list_presets",
)
async def list_presets(service: Service):
    return [PresetResponse(**preset.to_dict()) for preset in service.list_presets()]


@router.post(
    "/columns/generate-prompts",
    response_model=GeneratePromptsResponse,
    summary="Draft extraction prompts for columns",
    operation_id="generate_column_prompts",
)
async def generate_column_prompts(request: GeneratePromptsRequest, service: Service):
    try:
        prompts = await service.generate_column_prompts(
            [column.to_domain() for column in request.columns]
        )
        return GeneratePromptsResponse(prompts=prompts)
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/columns/infer",
    response_model=InferColumnsResponse,
    summary="Infer columns from plain-language descriptions",
    operation_id="infer_columns",
)
async def infer_columns(request: InferColumnsRequest, service: Service):
    try:
        drafts = await service.infer_columns(request.descriptions)
        return InferColumnsResponse(
            columns=[ColumnDraftSchema(**draft.to_dict()) for draft in drafts]
        )
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/{sheet_id}",
    response_model=SheetResponse,
    summary="Get a sheet",
    operation_id="get_sheet",
)
async def get_sheet(sheet_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.get_sheet(sheet_id))
    except AppError as e:
        raise to_http_exception(e)


@router.patch(
    "/{sheet_id}",
    response_model=SheetResponse,
    summary="Rename a sheet",
    operation_id="rename_sheet",
)
async def rename_sheet(sheet_id: str, request: RenameSheetRequest, service: Service):
    try:
        return SheetResponse.from_sheet(await service.rename_sheet(sheet_id, request.name))
    except AppError as e:
        raise to_http_exception(e)


@router.delete(
    "/{sheet_id}",
    response_model=MessageResponse,
    summary="Delete a sheet",
    operation_id="delete_sheet",
)
async def delete_sheet(sheet_id: str, service: Service):
    try:
        await service.delete_sheet(sheet_id)
        return MessageResponse(message="Sheet deleted")
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/documents",
    response_model=SheetResponse,
    summary="Add documents as rows",
    operation_id="add_sheet_documents",
)
async def add_documents(sheet_id: str, request: AddDocumentsRequest, service: Service):
    try:
        sheet = await service.add_documents(sheet_id, request.document_ids)
        return SheetResponse.from_sheet(sheet)
    except AppError as e:
        raise to_http_exception(e)


@router.delete(
    "/{sheet_id}/rows/{row_id}",
    response_model=SheetResponse,
    summary="Remove a row",
    operation_id="remove_sheet_row",
)
async def remove_row(sheet_id: str, row_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.remove_row(sheet_id, row_id))
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/columns",
    response_model=ColumnSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Add a column",
    operation_id="add_sheet_column",
)
async def add_column(sheet_id: str, request: CreateColumnRequest, service: Service):
    try:
        column = await service.add_column(
            sheet_id,
            name=request.name,
            type=request.type,
            prompt=request.prompt,
            options=[option.to_domain() for option in request.options],
            width=request.width,
        )
        return ColumnSchema(**column.to_dict())
    except AppError as e:
        raise to_http_exception(e)


@router.patch(
    "/{sheet_id}/columns/{column_id}",
    response_model=ColumnSchema,
    summary="Update a column",
    operation_id="update_sheet_column",
)
async def update_column(
    sheet_id: str,
    column_id: str,
    request: UpdateColumnRequest,
    service: Service,
):
    try:
        column = await service.update_column(sheet_id, column_id, **request.to_changes())
        return ColumnSchema(**column.to_dict())
    except AppError as e:
        raise to_http_exception(e)


@router.delete(
    "/{sheet_id}/columns/{column_id}",
    response_model=SheetResponse,
    summary="Delete a column and its cells",
    operation_id="delete_sheet_column",
)
async def delete_column(sheet_id: str, column_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.delete_column(sheet_id, column_id))
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/presets/{preset_id}",
    response_model=SheetResponse,
    summary="Replace columns with a preset",
    operation_id="apply_sheet_preset",
)
async def apply_sheet_preset(sheet_id: str, preset_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.apply_preset(sheet_id, preset_id))
    except AppError as e:
        raise to_http_exception(e)


@router.put(
    "/{sheet_id}/rows/{row_id}/cells/{column_id}",
    response_model=CellSchema,
    summary="Manually edit a cell",
    operation_id="edit_sheet_cell",
)
async def edit_cell(
    sheet_id: str,
    row_id: str,
    column_id: str,
    request: EditCellRequest,
    service: Service,
):
    try:
        cell = await service.edit_cell(sheet_id, row_id, column_id, request.value)
        return CellSchema(**cell.to_dict(), has_ai_value=cell.has_ai_value)
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/rows/{row_id}/cells/{column_id}/revert",
    response_model=CellSchema,
    summary="Revert a cell to its AI value",
    operation_id="revert_sheet_cell",
)
async def revert_cell(sheet_id: str, row_id: str, column_id: str, service: Service):
    try:
        cell = await service.revert_cell(sheet_id, row_id, column_id)
        return CellSchema(**cell.to_dict(), has_ai_value=cell.has_ai_value)
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/extract",
    response_model=ExtractionRunResponse,
    summary="Run row extraction",
    operation_id="run_sheet_extraction",
)
async def run_extraction(sheet_id: str, request: RunExtractionRequest, service: Service):
    """Extract every column for unfinished rows, or for the given rows."""
    try:
        result = await service.run_extraction(
            sheet_id,
            row_ids=request.row_ids,
            force_refresh=request.force_refresh,
        )
        return ExtractionRunResponse(**result.to_dict())
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/columns/{column_id}/extract",
    response_model=ExtractionRunResponse,
    summary="Re-extract one column for every row",
    operation_id="run_sheet_column_extraction",
)
async def run_column_extraction(sheet_id: str, column_id: str, service: Service):
    try:
        result = await service.run_column_extraction(sheet_id, column_id)
        return ExtractionRunResponse(**result.to_dict())
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/versions",
    response_model=VersionSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Save a version snapshot",
    operation_id="save_sheet_version",
)
async def save_version(sheet_id: str, request: SaveVersionRequest, service: Service):
    try:
        version = await service.save_version(sheet_id, request.name)
        return VersionSummary(id=version.id, name=version.name, created_at=version.created_at)
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{sheet_id}/versions/{version_id}/preview",
    response_model=SheetResponse,
    summary="Preview a saved version",
    operation_id="preview_sheet_version",
)
async def preview_version(sheet_id: str, version_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.preview_version(sheet_id, version_id))
    except AppError as e:
        raise to_http_exception(e)


@router.delete(
    "/{sheet_id}/preview",
    response_model=SheetResponse,
    summary="Return to live data",
    operation_id="exit_sheet_preview",
)
async def exit_preview(sheet_id: str, service: Service):
    try:
        return SheetResponse.from_sheet(await service.exit_preview(sheet_id))
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/{sheet_id}/export",
    response_class=PlainTextResponse,
    summary="Export the displayed sheet as CSV or TSV",
    operation_id="export_sheet",
)
async def export_sheet(
    sheet_id: str,
    service: Service,
    format: str = Query("csv", pattern="^(csv|tsv)$"),
):
    try:
        delimiter = "\t" if format == "tsv" else ","
        content = await service.export(sheet_id, delimiter=delimiter)
    except AppError as e:
        raise to_http_exception(e)

    media_type = "text/tab-separated-values" if format == "tsv" else "text/csv"
    return PlainTextResponse(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="sheet-{sheet_id}.{format}"'},
    )
