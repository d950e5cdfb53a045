from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import uvicorn

from hybridgraph.config import settings
from hybridgraph.embedding.embedding_service import EmbeddingService
from hybridgraph.errors import HybridGraphError, NotFoundError
from hybridgraph.processor.ingestion_pipeline import IngestionPipeline
from hybridgraph.search.hybrid_search import HybridSearch
from hybridgraph.store import BlobStore, GraphStore, create_blob_store, create_graph_store
from hybridgraph.utils.logger import app_logger


logger = app_logger.bind(component="api_server")


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadRequest(CamelModel):
    file_name: str = Field(alias="fileName")
    content: str
    file_type: Optional[str] = Field(default="text/plain", alias="fileType")


class IngestRequest(CamelModel):
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    file_type: Optional[str] = Field(default=None, alias="fileType")


class SearchRequest(CamelModel):
    query: str
    file_id: str = Field(alias="fileId")
    vector_weight: float = Field(default=settings.default_vector_weight, alias="vectorWeight")
    graph_weight: float = Field(default=settings.default_graph_weight, alias="graphWeight")
    top_k: int = Field(default=settings.default_top_k, alias="topK")


def create_app(store: Optional[GraphStore] = None,
               blob_store: Optional[BlobStore] = None,
               embedding_service: Optional[EmbeddingService] = None) -> FastAPI:
    """Wire the ingestion pipeline and search engine behind HTTP endpoints."""
    store = store or create_graph_store()
    blob_store = blob_store or create_blob_store()
    embedding_service = embedding_service or EmbeddingService()

    pipeline = IngestionPipeline(store, blob_store, embedding_service)
    hybrid_search = HybridSearch(store, embedding_service)

    app = FastAPI(title="Hybrid Graph Search API", version="1.0.0")

    @app.exception_handler(HybridGraphError)
    async def handle_hybridgraph_error(request: Request, exc: HybridGraphError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        logger.warning(f"{request.method} {request.url.path} rejected: {problems}")
        return JSONResponse(status_code=400, content={"error": problems})

    @app.post("/files")
    def upload_file(request: UploadRequest):
        """Store a text document and register it for processing."""
        record = pipeline.upload_file(request.file_name, request.content.encode("utf-8"), request.file_type)
        return record.to_dict()

    @app.post("/process-file")
    def process_file(request: IngestRequest):
        """Chunk, embed and link an uploaded file."""
        result = pipeline.ingest(request.file_id, request.file_name, request.file_type)
        return result.to_dict()

    @app.post("/hybrid-search")
    def search(request: SearchRequest):
        """Hybrid vector + graph search within one file."""
        response = hybrid_search.search(
            query=request.query,
            file_id=request.file_id,
            vector_weight=request.vector_weight,
            graph_weight=request.graph_weight,
            top_k=request.top_k,
        )
        return response.to_dict()

    @app.get("/files/{file_id}")
    def get_file(file_id: str):
        record = store.get_file(file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")
        return record.to_dict()

    @app.delete("/files/{file_id}")
    def delete_file(file_id: str):
        pipeline.delete_file(file_id)
        return {"success": True}

    @app.get("/queries")
    def list_queries(limit: int = 20):
        return {"queries": [log.to_dict() for log in store.list_query_logs(limit)]}

    @app.get("/stats")
    def get_stats():
        return store.get_stats()

    return app


if __name__ == "__main__":
    logger.info("Starting Hybrid Graph Search API server")

    uvicorn.run(
        "api_server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
