from typing import List, Optional
import uuid

from ..embedding.embedding_service import EmbeddingService
from ..errors import HybridGraphError, NotFoundError, UpstreamError, ValidationError
from ..graph.graph_builder import GraphBuilder
from ..store.base import GraphStore
from ..store.blob_store import BlobStore
from ..types import FileRecord, FileStatus, IngestResult, Node
from ..utils.logger import app_logger
from .text_chunker import TextChunker


TEXT_NODE_TYPE = "text"


class IngestionPipeline:
    """Chunk, embed and link one uploaded file into the node/edge corpus."""

    def __init__(self, store: GraphStore, blob_store: BlobStore,
                 embedding_service: Optional[EmbeddingService] = None,
                 chunker: Optional[TextChunker] = None,
                 graph_builder: Optional[GraphBuilder] = None):
        self.logger = app_logger.bind(component="ingestion_pipeline")
        self.store = store
        self.blob_store = blob_store
        self.embedding_service = embedding_service or EmbeddingService()
        self.chunker = chunker or TextChunker()
        self.graph_builder = graph_builder or GraphBuilder()

    def upload_file(self, file_name: str, data: bytes, file_type: Optional[str] = None) -> FileRecord:
        """Store raw content and register a file in the processing state."""
        if not file_name or not file_name.strip():
            raise ValidationError("File name is required")

        file_id = str(uuid.uuid4())
        path = f"{file_id}_{file_name.strip()}"
        self.blob_store.upload(path, data)
        record = FileRecord(
            id=file_id,
            name=file_name.strip(),
            path=path,
            status=FileStatus.PROCESSING,
            size=len(data),
            type=file_type,
        )
        self.store.insert_file(record)
        self.logger.info(f"Registered file {record.name} as {file_id} ({record.size} bytes)")
        return record

    def ingest(self, file_id: str, file_name: str, file_type: Optional[str] = None) -> IngestResult:
        """
        Ingest a registered file.

        Nodes are keyed by (file_id, chunk_index), so running this twice for
        the same content leaves the same nodes and edges behind. Any failure
        marks the file as failed and is re-raised; nodes already written are
        kept.
        """
        if not file_id or not str(file_id).strip():
            raise ValidationError("fileId is required")
        if not file_name or not file_name.strip():
            raise ValidationError("fileName is required")

        record = self.store.get_file(file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")

        self.logger.info(f"Ingesting file {file_id} from {file_name} (type={file_type or record.type})")
        if record.status != FileStatus.PROCESSING:
            self.store.update_file_status(file_id, FileStatus.PROCESSING)

        try:
            result = self._run(file_id, file_name)
            self.store.update_file_status(file_id, FileStatus.COMPLETED)
        except HybridGraphError as e:
            self._mark_failed(file_id, e.message)
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected ingestion failure for file {file_id}")
            self._mark_failed(file_id, str(e))
            raise UpstreamError(f"Ingestion failed: {e}") from e

        self.logger.info(
            f"Ingestion completed for file {file_id}: "
            f"{result.nodes_created} nodes, {result.edges_created} edges"
        )
        return result

    def _run(self, file_id: str, file_name: str) -> IngestResult:
        raw_bytes = self.blob_store.download(file_name)
        text = raw_bytes.decode("utf-8", errors="replace")

        chunks = self.chunker.split(text)
        self.logger.info(f"Split {len(text)} characters into {len(chunks)} chunk(s)")

        embeddings = self.embedding_service.embed_texts(chunks)

        existing = self.store.get_nodes_by_file(file_id)
        stale_ids = [node.id for node in existing if node.chunk_index >= len(chunks)]
        if stale_ids:
            self.store.delete_nodes(stale_ids)
            self.logger.info(f"Removed {len(stale_ids)} stale node(s) from file {file_id}")

        nodes = self.store.upsert_nodes(self._build_nodes(file_id, chunks, embeddings))

        edges = self.graph_builder.build_edges(self.store.get_nodes_by_file(file_id))
        self.store.replace_edges_for_file(file_id, edges)

        return IngestResult(success=True, nodes_created=len(nodes), edges_created=len(edges))

    def _build_nodes(self, file_id: str, chunks: List[str], embeddings: List[List[float]]) -> List[Node]:
        return [
            Node(
                id=str(uuid.uuid4()),
                file_id=file_id,
                type=TEXT_NODE_TYPE,
                content=chunk,
                embedding=embedding,
                metadata={},
                chunk_index=index,
            )
            for index, (chunk, embedding) in enumerate(zip(chunks, embeddings))
        ]

    def _mark_failed(self, file_id: str, message: str):
        try:
            self.store.update_file_status(file_id, FileStatus.FAILED, error=message)
        except HybridGraphError as e:
            self.logger.error(f"Could not mark file {file_id} as failed: {e}")
        self.logger.error(f"Ingestion failed for file {file_id}: {message}")

    def delete_file(self, file_id: str) -> bool:
        """Delete a file with its nodes, edges and raw content."""
        record = self.store.get_file(file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")
        self.store.delete_file(file_id)
        self.blob_store.delete(record.path)
        return True
