"""Exception hierarchy for the forecasting workflow.

Every failure raised by the loader, the series preparer, the model adapter
or the cross-validator derives from ``ForecastError`` so that callers which
process many store/item pairs can catch a single type per series.
"""


class ForecastError(Exception):
    """Base class for all errors raised by this package."""


class ParseError(ForecastError):
    """Raised when the input file has missing columns or malformed rows."""


class EmptySeriesError(ForecastError):
    """Raised when no observations exist for the requested store and item."""


class DuplicateTimestampError(ForecastError):
    """Raised when a store/item series has more than one value for a day."""


class InsufficientHistoryError(ForecastError):
    """Raised when a series is too short for the requested training window."""


class ModelFitError(ForecastError):
    """Raised when the forecasting library rejects the configuration or data."""
