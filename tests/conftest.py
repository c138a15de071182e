"""Pytest configuration and shared fixtures."""

import copy
import json
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from litsheet.core.exceptions import DocumentUnavailableError, PersistenceError
from litsheet.main import app
from litsheet.models.enums import ColumnType, RowStatus
from litsheet.models.sheet import Cell, Column, ColumnOption, Row, Sheet, Version
from litsheet.services.sheet.contracts import CompletionService, DocumentCorpus, SheetStore


class FakeCorpus(DocumentCorpus):
    """In-memory corpus keyed by document ID."""

    def __init__(self, documents: Dict[str, Tuple[str, str]]):
        self.documents = documents
        self.text_requests: List[str] = []

    async def get_document_text(self, document_id: str) -> str:
        self.text_requests.append(document_id)
        if document_id not in self.documents or not self.documents[document_id][1]:
            raise DocumentUnavailableError(document_id)
        return self.documents[document_id][1]

    async def get_document_title(self, document_id: str) -> str:
        if document_id not in self.documents:
            raise DocumentUnavailableError(document_id)
        return self.documents[document_id][0]


class FakeCompletion(CompletionService):
    """Completion service driven by a handler(system_prompt, user_prompt).

    The handler returns the raw completion text or raises.
    """

    def __init__(self, handler: Callable[[str, str], str]):
        self.handler = handler
        self.calls: List[Tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.handler(system_prompt, user_prompt)


class InMemorySheetStore(SheetStore):
    """Sheet store holding deep copies, like a real database would."""

    def __init__(self):
        self.sheets: Dict[str, Sheet] = {}
        self.upserts: List[Tuple[str, str, RowStatus]] = []
        self.fail_upserts = False

    async def list_sheets(self, collection_id: str) -> List[Sheet]:
        return [
            copy.deepcopy(sheet)
            for sheet in self.sheets.values()
            if sheet.collection_id == collection_id
        ]

    async def get_sheet(self, sheet_id: str) -> Optional[Sheet]:
        sheet = self.sheets.get(sheet_id)
        return copy.deepcopy(sheet) if sheet else None

    async def create_sheet(self, sheet: Sheet) -> Sheet:
        self.sheets[sheet.id] = copy.deepcopy(sheet)
        return sheet

    async def update_sheet(self, sheet: Sheet) -> None:
        stored = self.sheets[sheet.id]
        versions = stored.versions
        self.sheets[sheet.id] = copy.deepcopy(sheet)
        self.sheets[sheet.id].versions = versions

    async def delete_sheet(self, sheet_id: str) -> bool:
        return self.sheets.pop(sheet_id, None) is not None

    async def upsert_row(self, sheet_id: str, row: Row) -> None:
        if self.fail_upserts:
            raise PersistenceError(f"Failed to upsert row for sheet {sheet_id}")
        self.upserts.append((sheet_id, row.id, row.status))
        stored = self.sheets[sheet_id]
        for index, existing in enumerate(stored.rows):
            if existing.document_id == row.document_id:
                stored.rows[index] = copy.deepcopy(row)
                return
        stored.rows.append(copy.deepcopy(row))

    async def delete_row(self, sheet_id: str, document_id: str) -> bool:
        stored = self.sheets[sheet_id]
        before = len(stored.rows)
        stored.rows = [row for row in stored.rows if row.document_id != document_id]
        return len(stored.rows) < before

    async def append_version(self, sheet_id: str, version: Version) -> None:
        self.sheets[sheet_id].versions.append(copy.deepcopy(version))


def extraction_payload(value, confidence=0.9, source_text="quoted evidence") -> str:
    return json.dumps({"value": value, "confidence": confidence, "sourceText": source_text})


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def corpus() -> FakeCorpus:
    return FakeCorpus({
        "doc-1": ("Gesture Typing on Watches", "We ran a lab study with 12 participants."),
        "doc-2": ("Voice Assistants for Older Adults", "A field deployment with 24 older adults."),
        "doc-3": ("Haptic Feedback in VR", "A survey of 150 VR users."),
    })


@pytest.fixture
def store() -> InMemorySheetStore:
    return InMemorySheetStore()


@pytest.fixture
def text_column() -> Column:
    return Column(id="col-findings", name="Key Findings", type=ColumnType.TEXT, prompt="Main findings")


@pytest.fixture
def number_column() -> Column:
    return Column(id="col-n", name="Participants (N)", type=ColumnType.NUMBER, prompt="Participant count")


@pytest.fixture
def select_column() -> Column:
    return Column(
        id="col-study",
        name="Study Type",
        type=ColumnType.SELECT,
        prompt="Type of study",
        options=[
            ColumnOption(id="lab", label="Lab Study"),
            ColumnOption(id="field", label="Field Study"),
        ],
    )


@pytest.fixture
def sample_sheet(text_column: Column, number_column: Column) -> Sheet:
    """Three rows, two columns; the second row is already completed."""
    completed = Row(
        id="row-2",
        document_id="doc-2",
        document_title="Voice Assistants for Older Adults",
        status=RowStatus.COMPLETED,
        cells={
            "col-findings": Cell(value="Prior finding", ai_value="Prior finding", has_ai_value=True, confidence=0.8),
            "col-n": Cell(value=24.0, ai_value=24.0, has_ai_value=True, confidence=0.9),
        },
    )
    return Sheet(
        id="sheet-1",
        collection_id="collection-1",
        name="CHI Review",
        columns=[text_column, number_column],
        rows=[
            Row(id="row-1", document_id="doc-1", document_title="Gesture Typing on Watches"),
            completed,
            Row(id="row-3", document_id="doc-3", document_title="Haptic Feedback in VR"),
        ],
        document_ids=["doc-1", "doc-2", "doc-3"],
    )
