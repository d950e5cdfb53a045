from typing import Any, Dict
import datetime
import json
from pathlib import Path

from ..errors import UpstreamError
from ..types import Edge, FileRecord, Node, QueryLog
from .memory_store import InMemoryGraphStore


class JsonGraphStore(InMemoryGraphStore):
    """JSON-file backed store.

    Files, nodes and edges live in one JSON document rewritten after every
    mutation. Query logs are appended to a JSON Lines file beside it, so
    searches never rewrite the corpus.
    """

    def __init__(self, storage_path: str = "graph_store.json"):
        self.storage_path = Path(storage_path)
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.query_log_path = self.storage_path.with_name(self.storage_path.stem + ".queries.jsonl")
        self.metadata: Dict[str, Any] = self._initialize_metadata()
        super().__init__()
        self._load_data()
        self._load_query_logs()

    def _component_name(self) -> str:
        return "json_store"

    def _initialize_metadata(self) -> Dict[str, Any]:
        return {
            "version": "1.0",
            "created_at": None,
            "updated_at": None
        }

    def _load_data(self):
        """Load data from JSON file."""
        if not self.storage_path.exists():
            return

        try:
            with open(self.storage_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Error loading store data from {self.storage_path}: {e}")
            raise UpstreamError(f"Could not load store from {self.storage_path}: {e}") from e

        with self._lock:
            self._reset()
            self.metadata = data.get("metadata") or self._initialize_metadata()
            for file_data in data.get("files", {}).values():
                record = FileRecord.from_dict(file_data)
                self._files[record.id] = record
            for node_data in data.get("nodes", {}).values():
                node = Node.from_dict(node_data)
                self._nodes[node.id] = node
                self._node_keys[(node.file_id, node.chunk_index)] = node.id
            for edge_data in data.get("edges", {}).values():
                edge = Edge.from_dict(edge_data)
                self._edges[edge.id] = edge

        self.logger.info(
            f"Loaded store from {self.storage_path}: {len(self._files)} files, "
            f"{len(self._nodes)} nodes, {len(self._edges)} edges"
        )

    def _load_query_logs(self):
        if not self.query_log_path.exists():
            return

        try:
            with open(self.query_log_path, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except OSError as e:
            self.logger.error(f"Error loading query logs from {self.query_log_path}: {e}")
            raise UpstreamError(f"Could not load query logs from {self.query_log_path}: {e}") from e

        logs = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                logs.append(QueryLog.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError) as e:
                # A torn trailing line is left behind when a process dies mid-append
                self.logger.warning(f"Skipping unreadable query log line {number} in {self.query_log_path}: {e}")

        if lines and not lines[-1].endswith("\n"):
            # Start the next append on a fresh line
            self._append_line("")

        with self._query_lock:
            self._queries = logs

    def _commit(self):
        self._save_data()

    def _save_data(self):
        """Save data to JSON file."""
        now = datetime.datetime.now().isoformat()
        metadata = dict(self.metadata, updated_at=now)
        if not metadata["created_at"]:
            metadata["created_at"] = now

        data = {
            "files": {file_id: record.to_dict() for file_id, record in self._files.items()},
            "nodes": {node_id: node.to_dict() for node_id, node in self._nodes.items()},
            "edges": {edge_id: edge.to_dict() for edge_id, edge in self._edges.items()},
            "metadata": metadata,
        }

        tmp_path = self.storage_path.with_suffix(self.storage_path.suffix + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            tmp_path.replace(self.storage_path)
        except OSError as e:
            self.logger.error(f"Error saving store data: {e}")
            raise UpstreamError(f"Could not save store to {self.storage_path}: {e}") from e
        self.metadata = metadata
        self.logger.debug(f"Saved store data to {self.storage_path}")

    def _append_query_log(self, log: QueryLog):
        self._append_line(json.dumps(log.to_dict(), ensure_ascii=False))

    def _append_line(self, line: str):
        try:
            with open(self.query_log_path, 'a', encoding='utf-8') as f:
                f.write(line + "\n")
        except OSError as e:
            self.logger.error(f"Error appending query log: {e}")
            raise UpstreamError(f"Could not append query log to {self.query_log_path}: {e}") from e

    def _clear_query_logs(self):
        try:
            self.query_log_path.write_text("", encoding='utf-8')
        except OSError as e:
            self.logger.error(f"Error clearing query logs: {e}")
            raise UpstreamError(f"Could not clear query logs at {self.query_log_path}: {e}") from e
