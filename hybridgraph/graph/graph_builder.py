"""
Builds the semantic k-nearest-neighbour graph of one file.
"""
from typing import List, Optional, Tuple
from concurrent.futures import ThreadPoolExecutor
import uuid

from ..config import settings
from ..types import Node, Edge
from ..utils.logger import app_logger
from .similarity import SimilarityIndex


SEMANTIC_EDGE_TYPE = "semantic"


class GraphBuilder:
    """Turns per-node top-K neighbour lists into directed weighted edges."""

    def __init__(self, neighbor_count: Optional[int] = None, max_workers: Optional[int] = None):
        self.logger = app_logger.bind(component="graph_builder")
        self.neighbor_count = settings.neighbor_count if neighbor_count is None else neighbor_count
        self.max_workers = max_workers or settings.max_workers

    def build_edges(self, nodes: List[Node]) -> List[Edge]:
        """
        Build edges for the nodes of a single file.

        Every node gets at most neighbor_count outgoing edges to its most
        similar siblings, weighted by cosine similarity. Nodes must be given
        in ingestion order; it breaks similarity ties.
        """
        if len(nodes) < 2 or self.neighbor_count <= 0:
            return []

        index = SimilarityIndex([node.embedding for node in nodes])
        candidate_lists = self._compute_rows(index)

        edges = []
        for row, candidates in enumerate(candidate_lists):
            for neighbor, score in candidates:
                edges.append(Edge(
                    id=str(uuid.uuid4()),
                    source_node_id=nodes[row].id,
                    target_node_id=nodes[neighbor].id,
                    weight=score,
                    type=SEMANTIC_EDGE_TYPE,
                ))

        self.logger.info(f"Built {len(edges)} edges for {len(nodes)} nodes (k={self.neighbor_count})")
        return edges

    def _compute_rows(self, index: SimilarityIndex) -> List[List[Tuple[int, float]]]:
        """Top-K candidates for every row; rows are independent and run in parallel."""
        rows = range(len(index))
        if self.max_workers <= 1:
            return [index.top_k(row, self.neighbor_count) for row in rows]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda row: index.top_k(row, self.neighbor_count), rows))
