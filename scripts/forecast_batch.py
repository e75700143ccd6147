#!/usr/bin/env python3
"""Forecast many store/item series in parallel.

Every pair is fitted, forecast and cross-validated independently with the
same settings; a pair that fails is reported and does not stop the others.
Forecasts, cross-validation performance and failures are written as CSV.

Usage example::

    python scripts/forecast_batch.py --input-csv dataset/train.csv \
        --stores 1 2 --items 1 2 3 --horizon 90 --n-jobs 4 \
        --output-dir batch_output

Omitting ``--stores`` or ``--items`` selects every store or item present in
the file.
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

sys.path.append(str(Path(__file__).resolve().parents[1]))

from store_sales_forecast.config import CrossValidationConfig, PipelineConfig
from store_sales_forecast.data import list_store_items, load_data
from store_sales_forecast.exceptions import ForecastError
from store_sales_forecast.model import quiet_prophet_logging
from store_sales_forecast.pipeline import run_batch, stack_results

logger = logging.getLogger("forecast_batch")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Forecast many store/item pairs in parallel.")
    parser.add_argument("--input-csv", required=True, help="Path to the sales history CSV.")
    parser.add_argument("--stores", type=int, nargs="*", default=None, help="Stores to include.")
    parser.add_argument("--items", type=int, nargs="*", default=None, help="Items to include.")
    parser.add_argument("--horizon", type=int, default=90, help="Days to forecast.")
    parser.add_argument("--cv-initial", type=int, default=730)
    parser.add_argument("--cv-period", type=int, default=90)
    parser.add_argument("--cv-horizon", type=int, default=45)
    parser.add_argument("--n-jobs", type=int, default=-1, help="Parallel workers; -1 uses every core.")
    parser.add_argument("--output-dir", default="batch_output", help="Directory for the result tables.")
    return parser.parse_args()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    quiet_prophet_logging()
    args = parse_args()
    try:
        df = load_data(args.input_csv)
    except ForecastError as e:
        logger.error("%s", e)
        return 1

    pairs = [
        (s, i)
        for s, i in list_store_items(df)
        if (args.stores is None or s in args.stores) and (args.items is None or i in args.items)
    ]
    if not pairs:
        logger.error("No store/item pairs match the selection")
        return 1

    config = PipelineConfig(
        input_path=args.input_csv,
        forecast_horizon=args.horizon,
        cross_validation=CrossValidationConfig(
            initial=args.cv_initial, period=args.cv_period, horizon=args.cv_horizon
        ),
    )
    results = run_batch(df, pairs, config, n_jobs=args.n_jobs)

    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    forecasts = stack_results(results, "forecast")
    performance = stack_results(results, "performance")
    if not performance.empty:
        performance["horizon"] = performance["horizon"].dt.days
    failures = pd.DataFrame(
        [
            {"store": r.store_id, "item": r.item_id, "error": type(r.error).__name__, "message": str(r.error)}
            for r in results
            if not r.ok
        ],
        columns=["store", "item", "error", "message"],
    )
    forecasts.to_csv(output_path / "forecasts.csv", index=False)
    performance.to_csv(output_path / "performance.csv", index=False)
    failures.to_csv(output_path / "failures.csv", index=False)

    print(f"{len(results) - len(failures)} of {len(results)} pairs forecast")
    print(f"Results written to {output_path}")
    return 0 if failures.empty else 2


if __name__ == "__main__":
    sys.exit(main())
