#!/usr/bin/env python3
"""Summarise the store/item sales history and draw exploration charts.

Prints the number of stores and items, the covered date range and the
number of items per store, then writes per-store and per-item summary
statistics and the store correlation matrix as CSV, and histograms, item
sales lines and a correlation heatmap as PNG.

Usage example::

    python scripts/explore.py --input-csv dataset/train.csv --output-dir eda_output
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from store_sales_forecast import eda, plots
from store_sales_forecast.data import load_data
from store_sales_forecast.exceptions import ForecastError

logger = logging.getLogger("explore")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Exploratory statistics for the sales history.")
    parser.add_argument(
        "--input-csv",
        required=True,
        help="Path to the sales history CSV with date, store, item and sales columns.",
    )
    parser.add_argument(
        "--output-dir",
        default="eda_output",
        help="Directory to write summary tables and charts.",
    )
    parser.add_argument(
        "--store",
        type=int,
        default=1,
        help="Store whose first ten items are drawn as sales lines.",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip writing charts.")
    return parser.parse_args()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args()
    try:
        df = load_data(args.input_csv)
    except ForecastError as e:
        logger.error("%s", e)
        return 1

    overview = eda.dataset_overview(df)
    print(f"Number of stores: {overview['num_stores']}")
    print(f"Number of items: {overview['num_items']}")
    print("Time Range:")
    print(f"Start Date: {overview['start_date']}")
    print(f"End Date: {overview['end_date']}")
    print(eda.items_per_store(df).to_string(index=False))

    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    store_summary = eda.summary_by(df, "store")
    item_summary = eda.summary_by(df, "item")
    corr = eda.store_sales_correlation(df)
    store_summary.to_csv(output_path / "store_summary.csv", index=False)
    item_summary.to_csv(output_path / "item_summary.csv", index=False)
    corr.to_csv(output_path / "store_correlation.csv")
    print("Summary Statistics for Each Store")
    print(store_summary.to_string(index=False))

    if not args.no_plots:
        plots.plot_store_histograms(df, save_path=output_path / "store_histograms.png")
        plots.plot_item_sales(df, store_id=args.store, save_path=output_path / "item_sales.png")
        plots.plot_correlation_heatmap(corr, save_path=output_path / "store_correlation.png")

    print(f"Summaries and charts written to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
