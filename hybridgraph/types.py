from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from enum import Enum


class FileStatus(Enum):
    """Ingestion status of an uploaded file."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class FileRecord:
    """Represents an uploaded file, the scope of its nodes and edges."""
    id: str
    name: str
    path: str
    status: FileStatus = FileStatus.PROCESSING
    size: int = 0
    type: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "status": self.status.value,
            "size": self.size,
            "type": self.type,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        return cls(
            id=data["id"],
            name=data["name"],
            path=data["path"],
            status=FileStatus(data.get("status", FileStatus.PROCESSING.value)),
            size=data.get("size", 0),
            type=data.get("type"),
            error=data.get("error"),
        )


@dataclass
class Node:
    """A persisted content chunk with its embedding."""
    id: str
    file_id: str
    type: str
    content: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)
    chunk_index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "file_id": self.file_id,
            "type": self.type,
            "content": self.content,
            "embedding": list(self.embedding),
            "metadata": dict(self.metadata),
            "chunk_index": self.chunk_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            id=data["id"],
            file_id=data["file_id"],
            type=data.get("type", "text"),
            content=data.get("content", ""),
            embedding=list(data.get("embedding", [])),
            metadata=data.get("metadata") or {},
            chunk_index=data.get("chunk_index", 0),
        )


@dataclass
class Edge:
    """A directed, weighted semantic link between two nodes of one file."""
    id: str
    source_node_id: str
    target_node_id: str
    weight: float
    type: str = "semantic"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "source_node_id": self.source_node_id,
            "target_node_id": self.target_node_id,
            "weight": self.weight,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            id=data["id"],
            source_node_id=data["source_node_id"],
            target_node_id=data["target_node_id"],
            weight=float(data["weight"]),
            type=data.get("type", "semantic"),
        )


@dataclass
class QueryLog:
    """Write-only audit record of a search request."""
    id: str
    query_text: str
    query_type: str
    results: Dict[str, Any]
    execution_time_ms: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "query_text": self.query_text,
            "query_type": self.query_type,
            "results": self.results,
            "execution_time_ms": self.execution_time_ms,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryLog":
        return cls(**data)


@dataclass
class IngestResult:
    """Outcome of ingesting one file."""
    success: bool
    nodes_created: int
    edges_created: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "nodesCreated": self.nodes_created,
            "edgesCreated": self.edges_created,
        }


@dataclass
class VectorResult:
    """A node ranked by cosine similarity to the query."""
    node_id: str
    node_type: str
    content: str
    vector_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "nodeType": self.node_type,
            "content": self.content,
            "vectorScore": self.vector_score,
        }


@dataclass
class GraphResult:
    """A node reached by one-hop expansion from a vector result."""
    node_id: str
    source_node: str
    graph_score: float
    path: List[str]
    path_labels: List[str]
    distance: int = 1
    matching_sentence: Optional[str] = None
    matching_words: List[str] = field(default_factory=list)
    node_type: Optional[str] = None
    content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "sourceNode": self.source_node,
            "graphScore": self.graph_score,
            "distance": self.distance,
            "path": list(self.path),
            "pathLabels": list(self.path_labels),
            "matchingSentence": self.matching_sentence,
            "matchingWords": list(self.matching_words),
            "nodeType": self.node_type,
            "content": self.content,
        }


@dataclass
class CombinedResult:
    """Vector and graph evidence merged for one node."""
    node_id: str
    node_type: Optional[str]
    content: Optional[str]
    vector_score: float = 0.0
    graph_score: float = 0.0
    connections: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "nodeType": self.node_type,
            "content": self.content,
            "vectorScore": self.vector_score,
            "graphScore": self.graph_score,
            "connections": self.connections,
        }


@dataclass
class HybridResult(CombinedResult):
    """A combined result with its fused score."""
    hybrid_score: float = 0.0

    @classmethod
    def fuse(cls, combined: CombinedResult, vector_weight: float, graph_weight: float) -> "HybridResult":
        return cls(
            node_id=combined.node_id,
            node_type=combined.node_type,
            content=combined.content,
            vector_score=combined.vector_score,
            graph_score=combined.graph_score,
            connections=combined.connections,
            hybrid_score=combined.vector_score * vector_weight + combined.graph_score * graph_weight,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["hybridScore"] = self.hybrid_score
        return data


@dataclass
class VisualizationNode:
    id: str
    node_type: str
    content: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nodeType": self.node_type,
            "content": self.content,
            "label": self.label,
        }


@dataclass
class VisualizationLink:
    source: str
    target: str
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "weight": self.weight}


@dataclass
class GraphVisualization:
    """Nodes and links handed to the caller for rendering."""
    nodes: List[VisualizationNode]
    links: List[VisualizationLink]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }


@dataclass
class HybridSearchResponse:
    """Full answer to a hybrid search request."""
    vector_results: List[VectorResult]
    graph_results: List[GraphResult]
    hybrid_results: List[HybridResult]
    graph_visualization: GraphVisualization

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "vectorResults": [r.to_dict() for r in self.vector_results],
            "graphResults": [r.to_dict() for r in self.graph_results],
            "hybridResults": [r.to_dict() for r in self.hybrid_results],
            "graphVisualization": self.graph_visualization.to_dict(),
        }
