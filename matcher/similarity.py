from typing import Sequence

import numpy as np

from services.base import EmbeddingDimensionError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b; 0.0 when either has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise EmbeddingDimensionError(va.size, vb.size, "cosine operands")
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def score_chunks(query: Sequence[float], chunk_vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Linear scan: cosine of query against every chunk vector, in input order."""
    q = np.asarray(query, dtype=np.float64)
    if len(chunk_vectors) == 0:
        return np.zeros(0)
    lengths = {len(v) for v in chunk_vectors}
    if lengths != {q.size}:
        bad = next(n for n in lengths if n != q.size)
        raise EmbeddingDimensionError(q.size, bad, "query vs stored chunk")
    m = np.asarray(chunk_vectors, dtype=np.float64)
    denom = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    out = np.zeros(len(m))
    np.divide(m @ q, denom, out=out, where=denom > 0)
    return np.clip(out, -1.0, 1.0)
