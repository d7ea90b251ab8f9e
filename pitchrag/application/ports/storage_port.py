import abc
import uuid
from typing import List, Optional

from pitchrag.domain.models import ChunkRecord, Document, DocumentStatus


class StorageError(Exception):
    """Base exception for persistence failures."""
    pass


class StorageWriteError(StorageError):
    """Raised when a write could not be committed. Nothing from it is visible."""
    pass


class ChunkStoragePort(abc.ABC):
    """
    Abstract port for documents and their embedded chunks.
    """

    @abc.abstractmethod
    async def create_document(self, document: Document) -> Document:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_document(self, document_id: uuid.UUID) -> Optional[Document]:
        raise NotImplementedError

    @abc.abstractmethod
    async def document_exists(self, document_id: uuid.UUID) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_document(self, document_id: uuid.UUID) -> bool:
        """Deletes a document and, by cascade, its chunks. Returns False if it did not exist."""
        raise NotImplementedError

    @abc.abstractmethod
    async def insert_chunk(self, chunk: ChunkRecord) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def replace_chunks_for_document(self, document_id: uuid.UUID, chunks: List[ChunkRecord]) -> bool:
        """
        Atomically replaces every chunk of a document with `chunks`.

        Concurrent callers for the same document are serialized. Returns
        False, writing nothing, if the document no longer exists.

        Raises:
            StorageWriteError: If the transaction fails; it is rolled back.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_chunks_for_document(self, document_id: uuid.UUID) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_chunks_for_document(self, document_id: uuid.UUID) -> List[ChunkRecord]:
        """Chunks ordered by chunk_index."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_chunks_for_project(self, project_id: uuid.UUID) -> List[ChunkRecord]:
        """Chunks of every completed document of the project."""
        raise NotImplementedError

    @abc.abstractmethod
    async def update_document_status(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        tokens: Optional[int] = None,
        page_count: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """Returns False if the document does not exist."""
        raise NotImplementedError
