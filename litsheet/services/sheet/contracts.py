"""Collaborator contracts consumed by the sheet engine.

Implementations live elsewhere (repositories, LLM client); the engine and
services depend only on these interfaces.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from litsheet.models.sheet import Row, Sheet, Version


class DocumentCorpus(ABC):
    """Source of already-extracted document text."""

    @abstractmethod
    async def get_document_text(self, document_id: str) -> str:
        """Return plain text for a document.

        Raises:
            DocumentUnavailableError: If the document has no text
        """
        pass

    @abstractmethod
    async def get_document_title(self, document_id: str) -> str:
        """Return the document's display title.

        Raises:
            DocumentUnavailableError: If the document does not exist
        """
        pass


class CompletionService(ABC):
    """Opaque text-in, text-out AI completion."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run one completion.

        Raises:
            CompletionServiceError: If the service fails
        """
        pass


class SheetStore(ABC):
    """Durable storage for sheets, rows and versions.

    Every method is durable on return; callers do not batch or retry.
    """

    @abstractmethod
    async def list_sheets(self, collection_id: str) -> List[Sheet]:
        pass

    @abstractmethod
    async def get_sheet(self, sheet_id: str) -> Optional[Sheet]:
        pass

    @abstractmethod
    async def create_sheet(self, sheet: Sheet) -> Sheet:
        pass

    @abstractmethod
    async def update_sheet(self, sheet: Sheet) -> None:
        """Persist sheet-level fields and synchronize rows.

        Covers name, columns, documents and the preview pointer. Rows are
        upserted and rows no longer in the sheet are removed; versions are
        only ever added through ``append_version``.
        """
        pass

    @abstractmethod
    async def delete_sheet(self, sheet_id: str) -> bool:
        pass

    @abstractmethod
    async def upsert_row(self, sheet_id: str, row: Row) -> None:
        pass

    @abstractmethod
    async def delete_row(self, sheet_id: str, document_id: str) -> bool:
        pass

    @abstractmethod
    async def append_version(self, sheet_id: str, version: Version) -> None:
        pass
