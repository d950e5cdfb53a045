from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..types import Edge, FileRecord, FileStatus, Node, QueryLog


class GraphStore(ABC):
    """Structured store for files, nodes, edges and query logs.

    Deleting a file removes its nodes; deleting a node removes every edge
    that touches it.
    """

    # Files

    @abstractmethod
    def insert_file(self, record: FileRecord) -> FileRecord:
        ...

    @abstractmethod
    def get_file(self, file_id: str) -> Optional[FileRecord]:
        ...

    @abstractmethod
    def list_files(self) -> List[FileRecord]:
        ...

    @abstractmethod
    def update_file_status(self, file_id: str, status: FileStatus, error: Optional[str] = None) -> FileRecord:
        ...

    @abstractmethod
    def delete_file(self, file_id: str) -> bool:
        ...

    # Nodes

    @abstractmethod
    def upsert_nodes(self, nodes: Iterable[Node]) -> List[Node]:
        """Insert nodes keyed by (file_id, chunk_index), reusing the id of an existing key."""

    @abstractmethod
    def get_nodes_by_file(self, file_id: str) -> List[Node]:
        """Nodes of a file in chunk order."""

    @abstractmethod
    def get_nodes_by_ids(self, node_ids: Iterable[str]) -> List[Node]:
        ...

    @abstractmethod
    def delete_nodes(self, node_ids: Iterable[str]) -> int:
        ...

    # Edges

    @abstractmethod
    def replace_edges_for_file(self, file_id: str, edges: Iterable[Edge]) -> List[Edge]:
        """Drop the outgoing edges of the file's nodes and store the new batch."""

    @abstractmethod
    def get_edges_by_source_ids(self, node_ids: Iterable[str]) -> List[Edge]:
        ...

    @abstractmethod
    def get_edges_by_file(self, file_id: str) -> List[Edge]:
        ...

    # Queries

    @abstractmethod
    def insert_query_log(self, log: QueryLog) -> QueryLog:
        ...

    @abstractmethod
    def list_query_logs(self, limit: Optional[int] = None) -> List[QueryLog]:
        """Most recent first."""

    def get_stats(self) -> dict:
        return {
            "files": len(self.list_files()),
            "queries": len(self.list_query_logs()),
        }
