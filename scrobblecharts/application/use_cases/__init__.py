"""Use cases - entry points for presentation layers."""

from .build_charts import (
    ChartBuilder,
    GenreSource,
    LiveUserSource,
    TopTracksSource,
    create_chart_builder,
)

__all__ = [
    "ChartBuilder",
    "GenreSource",
    "LiveUserSource",
    "TopTracksSource",
    "create_chart_builder",
]
