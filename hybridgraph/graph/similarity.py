from typing import List, Sequence, Tuple
import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either vector has zero norm."""
    a_np = np.asarray(a, dtype=np.float64)
    b_np = np.asarray(b, dtype=np.float64)
    denominator = np.linalg.norm(a_np) * np.linalg.norm(b_np)
    if denominator == 0:
        return 0.0
    return float(np.dot(a_np, b_np) / denominator)


class SimilarityIndex:
    """Exact cosine index over an arena of embeddings addressed by row number.

    Every query is a full scan, O(n * D). Rows are read-only after
    construction so concurrent callers need no locking.
    """

    def __init__(self, embeddings: Sequence[Sequence[float]]):
        if len(embeddings) == 0:
            self.matrix = np.zeros((0, 0), dtype=np.float64)
        else:
            self.matrix = np.asarray(embeddings, dtype=np.float64)
        self.norms = np.linalg.norm(self.matrix, axis=1) if len(self) else np.zeros(0)

    def __len__(self) -> int:
        return self.matrix.shape[0]

    def query(self, vector: Sequence[float]) -> np.ndarray:
        """Cosine similarity of vector against every row, in row order."""
        if not len(self):
            return np.zeros(0, dtype=np.float64)
        query_np = np.asarray(vector, dtype=np.float64)
        return self._cosine(self.matrix @ query_np, np.linalg.norm(query_np))

    def row_similarities(self, row: int) -> np.ndarray:
        """Cosine similarity of one stored row against every row."""
        return self._cosine(self.matrix @ self.matrix[row], self.norms[row])

    def top_k(self, row: int, k: int) -> List[Tuple[int, float]]:
        """Return the k most similar other rows as (row, score), best first.

        Equal scores keep ascending row order.
        """
        if k <= 0 or len(self) < 2:
            return []

        scores = self.row_similarities(row)
        candidates = np.array([i for i in range(len(self)) if i != row])
        candidate_scores = scores[candidates]
        order = np.lexsort((candidates, -candidate_scores))[:k]
        return [(int(candidates[i]), float(candidate_scores[i])) for i in order]

    def _cosine(self, dots: np.ndarray, query_norm: float) -> np.ndarray:
        denominators = self.norms * query_norm
        similarities = np.zeros_like(dots)
        np.divide(dots, denominators, out=similarities, where=denominators != 0)
        return similarities
