import pytest
from fastapi.testclient import TestClient

from api_server import create_app


@pytest.fixture
def client(store, blob_store, embedding_service):
    return TestClient(create_app(store, blob_store, embedding_service))


@pytest.fixture
def ingested_file(client, sample_document):
    uploaded = client.post("/files", json={"fileName": "doc.txt", "content": sample_document}).json()
    response = client.post("/process-file", json={"fileId": uploaded["id"], "fileName": uploaded["path"]})
    assert response.status_code == 200
    return uploaded


class TestAppFactory:
    """Test that the app is only wired on demand."""

    def test_import_builds_nothing(self):
        import api_server

        assert not hasattr(api_server, "app")

    def test_injected_stores_touch_no_disk(self, tmp_path, monkeypatch, store, blob_store, embedding_service):
        monkeypatch.chdir(tmp_path)

        create_app(store, blob_store, embedding_service)

        assert list(tmp_path.iterdir()) == []


class TestFileEndpoints:
    """Test upload, ingestion and file management over HTTP."""

    def test_upload(self, client, store):
        response = client.post("/files", json={"fileName": "doc.txt", "content": "hello"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "processing"
        assert body["size"] == 5
        assert body["type"] == "text/plain"
        assert store.get_file(body["id"]) is not None

    def test_process_file(self, client, sample_document):
        uploaded = client.post("/files", json={"fileName": "doc.txt", "content": sample_document}).json()

        response = client.post("/process-file", json={
            "fileId": uploaded["id"],
            "fileName": uploaded["path"],
            "fileType": "text/plain",
        })

        assert response.status_code == 200
        assert response.json() == {"success": True, "nodesCreated": 3, "edgesCreated": 6}
        assert client.get(f"/files/{uploaded['id']}").json()["status"] == "completed"

    def test_process_unknown_file(self, client):
        response = client.post("/process-file", json={"fileId": "missing", "fileName": "x.txt"})

        assert response.status_code == 404
        assert "missing" in response.json()["error"]

    def test_process_failure_reports_error(self, client):
        uploaded = client.post("/files", json={"fileName": "doc.txt", "content": "text"}).json()

        response = client.post("/process-file", json={"fileId": uploaded["id"], "fileName": "wrong.txt"})

        assert response.status_code == 404
        record = client.get(f"/files/{uploaded['id']}").json()
        assert record["status"] == "failed"
        assert record["error"] == response.json()["error"]

    def test_missing_field_is_bad_request(self, client):
        response = client.post("/process-file", json={"fileName": "doc.txt"})

        assert response.status_code == 400
        assert "fileId" in response.json()["error"]

    def test_delete_file(self, client, ingested_file):
        response = client.delete(f"/files/{ingested_file['id']}")

        assert response.json() == {"success": True}
        assert client.get(f"/files/{ingested_file['id']}").status_code == 404
        assert client.get("/stats").json()["nodes"] == 0


class TestSearchEndpoint:
    """Test the hybrid search contract."""

    def test_search(self, client, ingested_file):
        response = client.post("/hybrid-search", json={
            "query": "vector search",
            "fileId": ingested_file["id"],
            "vectorWeight": 0.6,
            "graphWeight": 0.4,
            "topK": 2,
        })

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"vectorResults", "graphResults", "hybridResults", "graphVisualization"}
        assert len(body["vectorResults"]) == 2
        assert len(body["hybridResults"]) <= 2
        assert set(body["graphVisualization"]) == {"nodes", "links"}
        assert len(body["graphVisualization"]["nodes"]) == 3

    def test_search_uses_defaults(self, client, ingested_file):
        response = client.post("/hybrid-search", json={"query": "graphs", "fileId": ingested_file["id"]})

        assert response.status_code == 200
        assert len(response.json()["vectorResults"]) == 3

    def test_search_unknown_file(self, client):
        response = client.post("/hybrid-search", json={"query": "graphs", "fileId": "nope"})

        assert response.status_code == 404
        assert response.json() == {"error": "No nodes found for this file"}

    @pytest.mark.parametrize("payload", [
        {"query": "   "},
        {"vectorWeight": 2.0},
        {"topK": 0},
    ])
    def test_search_validation(self, client, ingested_file, payload):
        request = {"query": "graphs", "fileId": ingested_file["id"]}
        request.update(payload)

        response = client.post("/hybrid-search", json=request)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_queries_are_listed(self, client, ingested_file):
        for query in ("first", "second"):
            client.post("/hybrid-search", json={"query": query, "fileId": ingested_file["id"]})

        queries = client.get("/queries", params={"limit": 1}).json()["queries"]

        assert [q["query_text"] for q in queries] == ["second"]
        assert queries[0]["query_type"] == "hybrid"
        assert client.get("/stats").json()["queries"] == 2
