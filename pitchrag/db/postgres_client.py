# pitchrag/db/postgres_client.py
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import (
    Column, DateTime, Float, ForeignKeyConstraint, Index, Integer, MetaData, String,
    Table, Text, UniqueConstraint, Uuid, delete, select, text, update,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pitchrag.application.ports.storage_port import ChunkStoragePort, StorageError, StorageWriteError
from pitchrag.core.config import settings
from pitchrag.domain.models import ChunkRecord, Document, DocumentStatus

log = structlog.get_logger(__name__)

metadata = MetaData()

documents_table = Table(
    'documents',
    metadata,
    Column('id', Uuid(as_uuid=True), primary_key=True),
    Column('project_id', Uuid(as_uuid=True), nullable=False),
    Column('filename', String(512), nullable=False),
    Column('original_name', String(512), nullable=False),
    Column('file_size', Integer, nullable=False),
    Column('mime_type', String(255), nullable=False),
    Column('status', String(32), nullable=False, server_default=DocumentStatus.PROCESSING.value),
    Column('tokens', Integer, nullable=False, server_default=text("0")),
    Column('page_count', Integer, nullable=False, server_default=text("0")),
    Column('source', String(64), nullable=False, server_default="upload"),
    Column('error_message', Text),
    Column('created_at', DateTime(timezone=True), server_default=text("timezone('utc', now())")),
    Column('updated_at', DateTime(timezone=True), server_default=text("timezone('utc', now())")),
    Index('idx_documents_project_id', 'project_id'),
)

document_chunks_table = Table(
    'document_chunks',
    metadata,
    Column('id', Uuid(as_uuid=True), primary_key=True),
    Column('document_id', Uuid(as_uuid=True), nullable=False),
    Column('chunk_index', Integer, nullable=False),
    Column('content', Text, nullable=False),
    Column('embedding', ARRAY(Float)),
    Column('metadata', JSONB),
    Column('token_count', Integer, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=text("timezone('utc', now())")),
    UniqueConstraint('document_id', 'chunk_index', name='uq_document_chunk_index'),
    ForeignKeyConstraint(['document_id'], ['documents.id'], name='fk_document_chunks_document', ondelete='CASCADE'),
    Index('idx_document_chunks_document_id', 'document_id'),
)


def create_engine_from_settings() -> AsyncEngine:
    log.info(
        "Creating SQLAlchemy async engine...",
        host=settings.POSTGRES_SERVER,
        port=settings.POSTGRES_PORT,
        db=settings.POSTGRES_DB,
    )
    return create_async_engine(
        settings.postgres_async_dsn,
        pool_size=5,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    log.info("Database schema ensured", tables=list(metadata.tables))


async def check_db_connection(engine: AsyncEngine) -> bool:
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        log.error("Database connection check failed", error=str(e))
        return False


def _row_to_document(row: Any) -> Document:
    m = row._mapping
    return Document(
        id=m['id'],
        project_id=m['project_id'],
        filename=m['filename'],
        original_name=m['original_name'],
        file_size=m['file_size'],
        mime_type=m['mime_type'],
        status=DocumentStatus(m['status']),
        tokens=m['tokens'],
        page_count=m['page_count'],
        source=m['source'],
        error_message=m['error_message'],
        created_at=m['created_at'],
        updated_at=m['updated_at'],
    )


def _row_to_chunk(row: Any) -> ChunkRecord:
    m = row._mapping
    return ChunkRecord(
        id=m['id'],
        document_id=m['document_id'],
        chunk_index=m['chunk_index'],
        content=m['content'],
        embedding=list(m['embedding']) if m['embedding'] is not None else None,
        metadata=m['metadata'] or {},
    )


def _chunk_to_row(chunk: ChunkRecord) -> Dict[str, Any]:
    return {
        'id': chunk.id,
        'document_id': chunk.document_id,
        'chunk_index': chunk.chunk_index,
        'content': chunk.content,
        'embedding': chunk.embedding,
        'metadata': chunk.metadata,
        'token_count': chunk.token_count,
    }


class PostgresChunkStorage(ChunkStoragePort):
    """
    Documents and chunks in PostgreSQL through SQLAlchemy Core over asyncpg.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.log = log.bind(component="PostgresChunkStorage")

    async def create_document(self, document: Document) -> Document:
        values = document.model_dump()
        values['status'] = document.status.value
        try:
            async with self.engine.begin() as conn:
                await conn.execute(documents_table.insert().values(**values))
        except SQLAlchemyError as e:
            self.log.error("Failed to create document record", document_id=str(document.id), error=str(e), exc_info=True)
            raise StorageWriteError(f"Failed to create document record: {e}") from e
        self.log.info("Document record created", document_id=str(document.id), project_id=str(document.project_id))
        return document

    async def get_document(self, document_id: uuid.UUID) -> Optional[Document]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(documents_table).where(documents_table.c.id == document_id))
                row = result.first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load document {document_id}: {e}") from e
        return _row_to_document(row) if row is not None else None

    async def document_exists(self, document_id: uuid.UUID) -> bool:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(documents_table.c.id).where(documents_table.c.id == document_id))
                return result.first() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check document {document_id}: {e}") from e

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(delete(documents_table).where(documents_table.c.id == document_id))
        except SQLAlchemyError as e:
            self.log.error("Failed to delete document", document_id=str(document_id), error=str(e), exc_info=True)
            raise StorageWriteError(f"Failed to delete document {document_id}: {e}") from e
        deleted = result.rowcount > 0
        self.log.info("Document delete executed", document_id=str(document_id), deleted=deleted)
        return deleted

    async def insert_chunk(self, chunk: ChunkRecord) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(pg_insert(document_chunks_table).values(**_chunk_to_row(chunk)))
        except SQLAlchemyError as e:
            raise StorageWriteError(f"Failed to insert chunk {chunk.chunk_index} of {chunk.document_id}: {e}") from e

    async def replace_chunks_for_document(self, document_id: uuid.UUID, chunks: List[ChunkRecord]) -> bool:
        replace_log = self.log.bind(document_id=str(document_id), num_chunks=len(chunks))
        try:
            async with self.engine.begin() as conn:
                # Row lock serializes concurrent writers of the same document
                locked = await conn.execute(
                    select(documents_table.c.id)
                    .where(documents_table.c.id == document_id)
                    .with_for_update()
                )
                if locked.first() is None:
                    replace_log.warning("Document vanished before chunk commit, discarding")
                    return False
                await conn.execute(delete(document_chunks_table).where(document_chunks_table.c.document_id == document_id))
                if chunks:
                    await conn.execute(pg_insert(document_chunks_table), [_chunk_to_row(c) for c in chunks])
        except SQLAlchemyError as e:
            replace_log.error("Chunk replace transaction failed, rolled back", error=str(e), exc_info=True)
            raise StorageWriteError(f"Failed to replace chunks of document {document_id}: {e}") from e
        replace_log.info("Chunks replaced")
        return True

    async def delete_chunks_for_document(self, document_id: uuid.UUID) -> int:
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    delete(document_chunks_table).where(document_chunks_table.c.document_id == document_id)
                )
        except SQLAlchemyError as e:
            raise StorageWriteError(f"Failed to delete chunks of document {document_id}: {e}") from e
        return result.rowcount

    async def get_chunks_for_document(self, document_id: uuid.UUID) -> List[ChunkRecord]:
        stmt = (
            select(document_chunks_table)
            .where(document_chunks_table.c.document_id == document_id)
            .order_by(document_chunks_table.c.chunk_index)
        )
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_row_to_chunk(row) for row in result]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load chunks of document {document_id}: {e}") from e

    async def get_chunks_for_project(self, project_id: uuid.UUID) -> List[ChunkRecord]:
        stmt = (
            select(document_chunks_table)
            .join(documents_table, documents_table.c.id == document_chunks_table.c.document_id)
            .where(
                documents_table.c.project_id == project_id,
                documents_table.c.status == DocumentStatus.COMPLETED.value,
            )
            .order_by(documents_table.c.created_at, document_chunks_table.c.document_id, document_chunks_table.c.chunk_index)
        )
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_row_to_chunk(row) for row in result]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load chunks of project {project_id}: {e}") from e

    async def update_document_status(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        tokens: Optional[int] = None,
        page_count: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        update_log = self.log.bind(document_id=str(document_id), new_status=status.value)
        values: Dict[str, Any] = {
            'status': status.value,
            'updated_at': datetime.now(timezone.utc),
            'error_message': error_message if status == DocumentStatus.FAILED else None,
        }
        if tokens is not None:
            values['tokens'] = tokens
        if page_count is not None:
            values['page_count'] = page_count

        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    update(documents_table).where(documents_table.c.id == document_id).values(**values)
                )
        except SQLAlchemyError as e:
            update_log.error("Failed to update document status", error=str(e), exc_info=True)
            raise StorageWriteError(f"Failed to update status of document {document_id}: {e}") from e

        if result.rowcount == 0:
            update_log.warning("Attempted to update status for non-existent document_id.")
            return False
        update_log.info("Document status updated", updated_fields=list(values))
        return True
