from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from litsheet.core.base_repository import BaseRepository
from litsheet.core.exceptions import DocumentUnavailableError
from litsheet.database.models import DocumentRecord
from litsheet.services.sheet.contracts import DocumentCorpus
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[DocumentRecord], DocumentCorpus):
    """Repository for documents and their extracted text.

    Serves as the document corpus for extraction runs.
    """

    def __init__(self, session: AsyncSession):
        """Initialize document repository.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__(session, DocumentRecord)

    async def create_document(
        self,
        title: str,
        text: Optional[str] = None,
        collection_id: Optional[str] = None,
    ) -> DocumentRecord:
        """Create a document record and commit it.

        Args:
            title: Display title
            text: Already-extracted plain text
            collection_id: Owning collection

        Returns:
            Created DocumentRecord
        """
        document = await self.create(title=title, text=text, collection_id=collection_id)
        await self.session.commit()
        return document

    async def list_by_collection(self, collection_id: str) -> List[DocumentRecord]:
        result = await self.session.execute(
            select(DocumentRecord)
            .where(DocumentRecord.collection_id == collection_id)
            .order_by(DocumentRecord.created_at)
        )
        return list(result.scalars().all())

    async def get_document_text(self, document_id: str) -> str:
        document = await self.get_by_id(document_id)
        if document is None:
            raise DocumentUnavailableError(document_id, f"Document {document_id} not found")
        if not (document.text or "").strip():
            LOGGER.warning(
                "Document has no extracted text",
                extra={"document_id": document_id},
            )
            raise DocumentUnavailableError(document_id)
        return document.text

    async def get_document_title(self, document_id: str) -> str:
        document = await self.get_by_id(document_id)
        if document is None:
            raise DocumentUnavailableError(document_id, f"Document {document_id} not found")
        return document.title or "Untitled"
