from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple
import threading

from ..errors import NotFoundError
from ..types import Edge, FileRecord, FileStatus, Node, QueryLog
from ..utils.logger import app_logger
from .base import GraphStore


class InMemoryGraphStore(GraphStore):
    """Process-local store.

    Files, nodes and edges mutate under one re-entrant lock and either
    commit as a whole or are rolled back. Query logs sit behind their own
    lock so searches never wait on ingestion.
    """

    def __init__(self):
        self.logger = app_logger.bind(component=self._component_name())
        self._lock = threading.RLock()
        self._query_lock = threading.Lock()
        self._reset()
        self._queries: List[QueryLog] = []

    def _component_name(self) -> str:
        return "memory_store"

    def _reset(self):
        self._files: Dict[str, FileRecord] = {}
        self._nodes: Dict[str, Node] = {}
        self._node_keys: Dict[Tuple[str, int], str] = {}
        self._edges: Dict[str, Edge] = {}

    def _commit(self):
        """Hook run at the end of every mutation; raising rolls the mutation back."""

    def _snapshot(self) -> Dict[str, Any]:
        # Records are replaced, never mutated, so shallow copies are enough
        return {
            "files": dict(self._files),
            "nodes": dict(self._nodes),
            "node_keys": dict(self._node_keys),
            "edges": dict(self._edges),
        }

    def _restore(self, snapshot: Dict[str, Any]):
        self._files = snapshot["files"]
        self._nodes = snapshot["nodes"]
        self._node_keys = snapshot["node_keys"]
        self._edges = snapshot["edges"]

    @contextmanager
    def _mutation(self):
        with self._lock:
            snapshot = self._snapshot()
            try:
                yield
                self._commit()
            except Exception:
                self._restore(snapshot)
                self.logger.warning("Rolled back store mutation after a failure")
                raise

    # Files

    def insert_file(self, record: FileRecord) -> FileRecord:
        with self._mutation():
            self._files[record.id] = record
        return record

    def get_file(self, file_id: str) -> Optional[FileRecord]:
        with self._lock:
            return self._files.get(file_id)

    def list_files(self) -> List[FileRecord]:
        with self._lock:
            return list(self._files.values())

    def update_file_status(self, file_id: str, status: FileStatus, error: Optional[str] = None) -> FileRecord:
        with self._lock:
            record = self._files.get(file_id)
            if record is None:
                raise NotFoundError(f"File not found: {file_id}")
            record = replace(record, status=status, error=error)
            with self._mutation():
                self._files[file_id] = record
        return record

    def delete_file(self, file_id: str) -> bool:
        with self._lock:
            if file_id not in self._files:
                return False
            with self._mutation():
                node_ids = [node.id for node in self._nodes.values() if node.file_id == file_id]
                self._delete_nodes(node_ids)
                del self._files[file_id]
        self.logger.info(f"Deleted file {file_id} with {len(node_ids)} nodes")
        return True

    # Nodes

    def upsert_nodes(self, nodes: Iterable[Node]) -> List[Node]:
        stored = []
        with self._mutation():
            for node in nodes:
                key = (node.file_id, node.chunk_index)
                existing_id = self._node_keys.get(key)
                if existing_id is not None and existing_id != node.id:
                    node = replace(node, id=existing_id)
                self._nodes[node.id] = node
                self._node_keys[key] = node.id
                stored.append(node)
        return stored

    def get_nodes_by_file(self, file_id: str) -> List[Node]:
        with self._lock:
            nodes = [node for node in self._nodes.values() if node.file_id == file_id]
        return sorted(nodes, key=lambda node: node.chunk_index)

    def get_nodes_by_ids(self, node_ids: Iterable[str]) -> List[Node]:
        with self._lock:
            return [self._nodes[node_id] for node_id in node_ids if node_id in self._nodes]

    def delete_nodes(self, node_ids: Iterable[str]) -> int:
        with self._mutation():
            deleted = self._delete_nodes(list(node_ids))
        return deleted

    def _delete_nodes(self, node_ids: List[str]) -> int:
        doomed = {node_id for node_id in node_ids if node_id in self._nodes}
        for node_id in doomed:
            node = self._nodes.pop(node_id)
            self._node_keys.pop((node.file_id, node.chunk_index), None)
        self._edges = {
            edge_id: edge for edge_id, edge in self._edges.items()
            if edge.source_node_id not in doomed and edge.target_node_id not in doomed
        }
        return len(doomed)

    # Edges

    def replace_edges_for_file(self, file_id: str, edges: Iterable[Edge]) -> List[Edge]:
        stored = []
        with self._mutation():
            file_node_ids = {node.id for node in self._nodes.values() if node.file_id == file_id}
            self._edges = {
                edge_id: edge for edge_id, edge in self._edges.items()
                if edge.source_node_id not in file_node_ids
            }
            for edge in edges:
                self._edges[edge.id] = edge
                stored.append(edge)
        return stored

    def get_edges_by_source_ids(self, node_ids: Iterable[str]) -> List[Edge]:
        wanted = set(node_ids)
        with self._lock:
            return [edge for edge in self._edges.values() if edge.source_node_id in wanted]

    def get_edges_by_file(self, file_id: str) -> List[Edge]:
        with self._lock:
            file_node_ids = {node.id for node in self._nodes.values() if node.file_id == file_id}
            return [edge for edge in self._edges.values() if edge.source_node_id in file_node_ids]

    # Queries

    def insert_query_log(self, log: QueryLog) -> QueryLog:
        with self._query_lock:
            self._append_query_log(log)
            self._queries.append(log)
        return log

    def _append_query_log(self, log: QueryLog):
        """Hook run before a query log becomes visible."""

    def list_query_logs(self, limit: Optional[int] = None) -> List[QueryLog]:
        with self._query_lock:
            logs = list(reversed(self._queries))
        return logs[:limit] if limit is not None else logs

    def get_stats(self) -> dict:
        with self._lock:
            stats = {
                "files": len(self._files),
                "nodes": len(self._nodes),
                "edges": len(self._edges),
            }
        with self._query_lock:
            stats["queries"] = len(self._queries)
        return stats

    def clear(self):
        """Clear all data from the store."""
        with self._mutation():
            self._reset()
        with self._query_lock:
            self._clear_query_logs()
            self._queries = []
        self.logger.info("Cleared all data from store")

    def _clear_query_logs(self):
        """Hook run when the query history is wiped."""
