"""Application services - fetching, caching and aggregating listening history."""

from .activity_aggregator import ActivityAggregator
from .genre_attributor import GenreAttributor
from .metadata_cache import MetadataCache
from .paginated_fetcher import PaginatedFetcher

__all__ = [
    "ActivityAggregator",
    "GenreAttributor",
    "MetadataCache",
    "PaginatedFetcher",
]
