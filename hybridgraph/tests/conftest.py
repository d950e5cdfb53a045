import pytest
from typing import Callable, Dict, List, Optional, Tuple
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from hybridgraph.embedding.embedding_service import EmbeddingService, HashEmbeddingProvider
from hybridgraph.graph.graph_builder import GraphBuilder
from hybridgraph.processor.ingestion_pipeline import IngestionPipeline
from hybridgraph.processor.text_chunker import TextChunker
from hybridgraph.search.hybrid_search import HybridSearch
from hybridgraph.store.blob_store import InMemoryBlobStore
from hybridgraph.store.memory_store import InMemoryGraphStore
from hybridgraph.types import Edge, FileRecord, FileStatus, IngestResult, Node


class StaticEmbeddingProvider:
    """Returns hand-picked vectors so ranking tests can predict scores."""

    def __init__(self, vectors: Dict[str, List[float]], default: List[float]):
        self.vectors = vectors
        self.default = default

    def embed(self, text: str) -> List[float]:
        return list(self.vectors.get(text, self.default))

    def get_dimension(self) -> int:
        return len(self.default)


class FailingEmbeddingProvider:
    def embed(self, text: str) -> List[float]:
        raise RuntimeError("model unavailable")

    def get_dimension(self) -> int:
        return 768


@pytest.fixture
def embedding_service() -> EmbeddingService:
    """Reference hash embedder at the default dimension."""
    return EmbeddingService(provider=HashEmbeddingProvider(dimension=768), max_workers=2)


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def pipeline(store, blob_store, embedding_service) -> IngestionPipeline:
    return IngestionPipeline(
        store,
        blob_store,
        embedding_service,
        chunker=TextChunker(chunk_size=500),
        graph_builder=GraphBuilder(neighbor_count=5, max_workers=2),
    )


@pytest.fixture
def failing_pipeline(store, blob_store) -> IngestionPipeline:
    """Pipeline whose embedding provider always raises."""
    service = EmbeddingService(provider=FailingEmbeddingProvider(), max_workers=1)
    return IngestionPipeline(store, blob_store, service, chunker=TextChunker(chunk_size=500))


@pytest.fixture
def search_engine(store, embedding_service) -> HybridSearch:
    return HybridSearch(store, embedding_service, query_timeout=30.0)


@pytest.fixture
def ingest_text(pipeline) -> Callable[..., Tuple[FileRecord, IngestResult]]:
    """Upload text and run ingestion over it."""
    def _ingest(text: str, file_name: str = "document.txt") -> Tuple[FileRecord, IngestResult]:
        record = pipeline.upload_file(file_name, text.encode("utf-8"), "text/plain")
        result = pipeline.ingest(record.id, record.path, record.type)
        return record, result

    return _ingest


@pytest.fixture
def sample_document() -> str:
    """Three chunks at the default 500 character window."""
    paragraphs = [
        "Graph databases store entities as nodes and relationships as edges. ",
        "Vector search ranks passages by cosine similarity of embeddings. ",
        "Hybrid retrieval fuses semantic scores with structural neighbours. ",
    ]
    text = "".join(paragraphs * 20)
    return text[:1200]


def make_node(node_id: str, file_id: str, embedding: List[float], content: str = "",
              chunk_index: int = 0, metadata: Optional[dict] = None) -> Node:
    return Node(
        id=node_id,
        file_id=file_id,
        type="text",
        content=content or f"content of {node_id}",
        embedding=embedding,
        metadata=metadata or {},
        chunk_index=chunk_index,
    )


def make_edge(source: str, target: str, weight: float) -> Edge:
    return Edge(id=f"{source}->{target}", source_node_id=source, target_node_id=target, weight=weight)


@pytest.fixture
def handmade_corpus(store) -> str:
    """
    Four nodes in file 'f1' with 3-d embeddings and hand-set edges.

    The query vector [1, 0, 0] ranks a > b > c > d by cosine.
    """
    store.insert_file(FileRecord(id="f1", name="handmade.txt", path="f1_handmade.txt",
                                 status=FileStatus.COMPLETED))
    store.upsert_nodes([
        make_node("a", "f1", [1.0, 0.0, 0.0], "Alpha node. It mentions graphs.", 0),
        make_node("b", "f1", [0.8, 0.6, 0.0], "Beta node talks about vectors! Another sentence.", 1),
        make_node("c", "f1", [0.0, 1.0, 0.0], "Gamma node is orthogonal.", 2),
        make_node("d", "f1", [-1.0, 0.0, 0.0], "Delta node points away. Graphs again.", 3),
    ])
    store.replace_edges_for_file("f1", [
        make_edge("a", "c", 0.25),
        make_edge("b", "c", 0.75),
        make_edge("a", "b", 0.5),
        make_edge("b", "d", 0.1),
    ])
    return "f1"


@pytest.fixture
def handmade_engine(store, handmade_corpus) -> HybridSearch:
    provider = StaticEmbeddingProvider({}, default=[1.0, 0.0, 0.0])
    return HybridSearch(store, EmbeddingService(provider=provider, max_workers=1), query_timeout=30.0)
