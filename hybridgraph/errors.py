"""Error taxonomy shared by ingestion, search and the API surface."""


class HybridGraphError(Exception):
    """Base exception for hybridgraph operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


class ValidationError(HybridGraphError):
    """Raised when a request is missing or has a malformed field."""

    status_code = 400


class NotFoundError(HybridGraphError):
    """Raised when a file scope or record does not exist."""

    status_code = 404


class UpstreamError(HybridGraphError):
    """Raised when the embedding provider or a store fails."""

    status_code = 500
