"""Store/item sales forecasting playground using Prophet.

This package loads the daily store/item sales history, summarises it,
prepares one store/item series at a time, forecasts it with Prophet and
scores the configuration with rolling-origin cross-validation.  The same
per-series workflow can be mapped over many pairs in parallel.  See the
scripts directory for command line entry points.
"""

from .config import CrossValidationConfig, ModelConfig, PipelineConfig  # noqa: F401
from .data import list_store_items, load_data, prepare_series  # noqa: F401
from .exceptions import (  # noqa: F401
    DuplicateTimestampError,
    EmptySeriesError,
    ForecastError,
    InsufficientHistoryError,
    ModelFitError,
    ParseError,
)
from .metrics import compute_metrics, mape, mdape, smape  # noqa: F401
from .model import ProphetBackend, ProphetForecaster, make_future_dates  # noqa: F401
from .pipeline import SeriesResult, run_batch, run_pipeline, run_series  # noqa: F401
from .validation import cross_validate, generate_cutoffs, performance_metrics  # noqa: F401

__all__ = [
    "CrossValidationConfig",
    "ModelConfig",
    "PipelineConfig",
    "list_store_items",
    "load_data",
    "prepare_series",
    "ForecastError",
    "ParseError",
    "EmptySeriesError",
    "DuplicateTimestampError",
    "InsufficientHistoryError",
    "ModelFitError",
    "compute_metrics",
    "mape",
    "mdape",
    "smape",
    "ProphetBackend",
    "ProphetForecaster",
    "make_future_dates",
    "SeriesResult",
    "run_batch",
    "run_pipeline",
    "run_series",
    "cross_validate",
    "generate_cutoffs",
    "performance_metrics",
]
