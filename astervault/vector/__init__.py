"""AsterVault vector index — embedding collections and cosine retrieval."""

from .index import VectorIndex
from .similarity import cosine_similarity

__all__ = ["VectorIndex", "cosine_similarity"]
