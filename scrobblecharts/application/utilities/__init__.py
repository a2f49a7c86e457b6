"""Application utilities - shared helpers for application services."""

from .batching import chunked, gather_in_batches

__all__ = ["chunked", "gather_in_batches"]
