"""Cosine similarity, made total: zero vectors and shape mismatches score 0."""

import numpy as np


def cosine_similarity(a, b) -> float:
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape != vb.shape or va.size == 0:
        return 0.0
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0 or not np.isfinite(norm):
        return 0.0
    return float(np.dot(va, vb) / norm)
