from typing import List, Dict, Optional, Sequence
import datetime
import time
import uuid

from ..config import settings
from ..embedding.embedding_service import EmbeddingService
from ..errors import HybridGraphError, NotFoundError, UpstreamError, ValidationError
from ..graph.similarity import SimilarityIndex
from ..store.base import GraphStore
from ..types import (
    CombinedResult,
    Edge,
    GraphResult,
    GraphVisualization,
    HybridResult,
    HybridSearchResponse,
    Node,
    QueryLog,
    VectorResult,
    VisualizationLink,
    VisualizationNode,
)
from ..utils.logger import app_logger
from .label_resolver import derive_label, extract_matching_sentence, extract_matching_words, tokenize


SCAN_BATCH_SIZE = 1024
HYBRID_QUERY_TYPE = "hybrid"


def rank_by_vector(query_embedding: Sequence[float], nodes: List[Node], top_k: int,
                   deadline: Optional[float] = None) -> List[VectorResult]:
    """Cosine-rank nodes against the query; equal scores keep node order."""
    scores: List[float] = []
    mismatched = next((node for node in nodes if len(node.embedding) != len(query_embedding)), None)
    if mismatched is not None:
        raise UpstreamError(
            f"Embedding dimension mismatch: query has {len(query_embedding)}, "
            f"node {mismatched.id} has {len(mismatched.embedding)}"
        )

    for start in range(0, len(nodes), SCAN_BATCH_SIZE):
        if deadline is not None and time.monotonic() > deadline:
            raise UpstreamError(f"Vector scan exceeded its deadline after {start} of {len(nodes)} nodes")
        batch = nodes[start:start + SCAN_BATCH_SIZE]
        scores.extend(SimilarityIndex([node.embedding for node in batch]).query(query_embedding).tolist())

    order = sorted(range(len(nodes)), key=lambda i: scores[i], reverse=True)
    return [
        VectorResult(
            node_id=nodes[i].id,
            node_type=nodes[i].type,
            content=nodes[i].content,
            vector_score=scores[i],
        )
        for i in order[:top_k]
    ]


def expand_one_hop(edges: List[Edge], node_lookup: Dict[str, Node], query: str) -> List[GraphResult]:
    """One GraphResult per seed edge; distance is always 1."""
    query_tokens = tokenize(query)
    results = []
    for edge in edges:
        path = [edge.source_node_id, edge.target_node_id]
        target = node_lookup.get(edge.target_node_id)
        content = target.content if target else None
        results.append(GraphResult(
            node_id=edge.target_node_id,
            source_node=edge.source_node_id,
            graph_score=edge.weight,
            path=path,
            path_labels=[derive_label(node_lookup.get(node_id)) for node_id in path],
            distance=1,
            matching_sentence=extract_matching_sentence(content, query_tokens),
            matching_words=extract_matching_words(content, query_tokens),
            node_type=target.type if target else None,
            content=content,
        ))
    return results


def fuse_results(vector_results: List[VectorResult], graph_results: List[GraphResult],
                 node_lookup: Dict[str, Node], vector_weight: float, graph_weight: float,
                 top_k: int) -> List[HybridResult]:
    """
    Merge vector and graph evidence per node and rank by the linear hybrid score.

    A node reached by several seed edges keeps the highest edge weight and
    counts one connection per edge. Missing components score 0.
    """
    combined: Dict[str, CombinedResult] = {}

    for v in vector_results:
        combined[v.node_id] = CombinedResult(
            node_id=v.node_id,
            node_type=v.node_type,
            content=v.content,
            vector_score=v.vector_score,
            graph_score=0.0,
            connections=0,
        )

    for g in graph_results:
        existing = combined.get(g.node_id)
        if existing:
            existing.graph_score = max(existing.graph_score, g.graph_score)
            existing.connections += 1
        else:
            details = node_lookup.get(g.node_id)
            combined[g.node_id] = CombinedResult(
                node_id=g.node_id,
                node_type=details.type if details else None,
                content=details.content if details else None,
                vector_score=0.0,
                graph_score=g.graph_score,
                connections=1,
            )

    hybrid = [HybridResult.fuse(result, vector_weight, graph_weight) for result in combined.values()]
    hybrid.sort(key=lambda result: result.hybrid_score, reverse=True)
    return hybrid[:top_k]


class HybridSearch:
    """Hybrid search combining vector similarity and one-hop graph expansion."""

    def __init__(self, store: GraphStore, embedding_service: Optional[EmbeddingService] = None,
                 query_timeout: Optional[float] = None):
        self.logger = app_logger.bind(component="hybrid_search")
        self.store = store
        self.embedding_service = embedding_service or EmbeddingService()
        self.query_timeout = settings.query_timeout_seconds if query_timeout is None else query_timeout

    def search(self, query: str, file_id: str,
               vector_weight: Optional[float] = None,
               graph_weight: Optional[float] = None,
               top_k: Optional[int] = None) -> HybridSearchResponse:
        """Perform hybrid search within one file."""
        vector_weight = settings.default_vector_weight if vector_weight is None else vector_weight
        graph_weight = settings.default_graph_weight if graph_weight is None else graph_weight
        top_k = settings.default_top_k if top_k is None else top_k
        self._validate(query, file_id, vector_weight, graph_weight, top_k)

        started = time.monotonic()
        deadline = started + self.query_timeout if self.query_timeout else None
        self.logger.info(
            f"Performing hybrid search for query: {query!r} in file {file_id} "
            f"(w_v={vector_weight}, w_g={graph_weight}, top_k={top_k})"
        )

        query_embedding = self.embedding_service.embed_query(query)

        nodes = self.store.get_nodes_by_file(file_id)
        if not nodes:
            raise NotFoundError("No nodes found for this file")
        node_lookup = {node.id: node for node in nodes}

        vector_results = rank_by_vector(query_embedding, nodes, top_k, deadline)

        edges = self.store.get_edges_by_source_ids([r.node_id for r in vector_results])
        self._fetch_missing_nodes(edges, node_lookup)
        graph_results = expand_one_hop(edges, node_lookup, query)

        hybrid_results = fuse_results(
            vector_results, graph_results, node_lookup,
            vector_weight, graph_weight, top_k,
        )

        response = HybridSearchResponse(
            vector_results=vector_results,
            graph_results=graph_results,
            hybrid_results=hybrid_results,
            graph_visualization=self._build_visualization(nodes, edges),
        )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.logger.info(
            f"Hybrid search finished in {elapsed_ms}ms: {len(vector_results)} vector, "
            f"{len(graph_results)} graph, {len(hybrid_results)} hybrid result(s)"
        )
        self._log_query(query, response, elapsed_ms)
        return response

    def _validate(self, query: str, file_id: str, vector_weight: float, graph_weight: float, top_k: int):
        if not query or not query.strip():
            raise ValidationError("Please enter a search query")
        if not file_id or not str(file_id).strip():
            raise ValidationError("fileId is required")
        for name, weight in (("vectorWeight", vector_weight), ("graphWeight", graph_weight)):
            if not 0.0 <= weight <= 1.0:
                raise ValidationError(f"{name} must be between 0 and 1, got {weight}")
        if top_k < 1:
            raise ValidationError(f"topK must be at least 1, got {top_k}")

    def _fetch_missing_nodes(self, edges: List[Edge], node_lookup: Dict[str, Node]):
        missing = []
        for edge in edges:
            for node_id in (edge.source_node_id, edge.target_node_id):
                if node_id not in node_lookup and node_id not in missing:
                    missing.append(node_id)
        if missing:
            for node in self.store.get_nodes_by_ids(missing):
                node_lookup[node.id] = node

    def _build_visualization(self, nodes: List[Node], edges: List[Edge]) -> GraphVisualization:
        return GraphVisualization(
            nodes=[
                VisualizationNode(id=node.id, node_type=node.type, content=node.content, label=derive_label(node))
                for node in nodes
            ],
            links=[
                VisualizationLink(source=edge.source_node_id, target=edge.target_node_id, weight=edge.weight)
                for edge in edges
            ],
        )

    def _log_query(self, query: str, response: HybridSearchResponse, elapsed_ms: int):
        log = QueryLog(
            id=str(uuid.uuid4()),
            query_text=query,
            query_type=HYBRID_QUERY_TYPE,
            results=response.to_dict(),
            execution_time_ms=elapsed_ms,
            created_at=datetime.datetime.now().isoformat(),
        )
        try:
            self.store.insert_query_log(log)
        except HybridGraphError as e:
            self.logger.warning(f"Could not record query log: {e}")
