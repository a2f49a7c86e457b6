"""Pure transformations for bucketing, genre attribution and activity counts."""

from .activity import aggregate_activity
from .bucketing import (
    add_units,
    bucket_for,
    bucket_starts_for,
    make_bucket_starts,
    start_of_unit,
)
from .genres import (
    assemble_series,
    attribute_plays,
    collapse_top_genres,
    distribute_uniformly,
    group_plays_by_bucket,
    rank_genres,
    split_across_tags,
)
from .ranges import RangeOption

__all__ = [
    "RangeOption",
    "add_units",
    "aggregate_activity",
    "assemble_series",
    "attribute_plays",
    "bucket_for",
    "bucket_starts_for",
    "collapse_top_genres",
    "distribute_uniformly",
    "group_plays_by_bucket",
    "make_bucket_starts",
    "rank_genres",
    "split_across_tags",
    "start_of_unit",
]
