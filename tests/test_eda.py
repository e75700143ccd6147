import numpy as np
import pytest

from store_sales_forecast import eda


def test_dataset_overview(observations):
    overview = eda.dataset_overview(observations)
    assert overview == {
        "num_stores": 2,
        "num_items": 3,
        "num_rows": 2 * 3 * 400,
        "start_date": "2016-01-01",
        "end_date": "2017-02-03",
    }


def test_items_per_store(observations):
    out = eda.items_per_store(observations.query("not (store == 2 and item == 3)"))
    assert out.to_dict("list") == {"store": [1, 2], "num_items": [3, 2]}


def test_summary_by_store(observations):
    out = eda.summary_by(observations, "store")
    assert list(out.columns) == ["store", *eda.SUMMARY_STATS]
    store1 = observations.loc[observations["store"] == 1, "sales"]
    row = out.set_index("store").loc[1]
    assert row["count"] == len(store1)
    assert row["sum"] == pytest.approx(store1.sum())
    assert row["median"] == pytest.approx(store1.median())
    assert row["std"] == pytest.approx(np.std(store1, ddof=1))


def test_summary_by_rejects_other_keys(observations):
    with pytest.raises(ValueError):
        eda.summary_by(observations, "date")


def test_store_correlation(observations):
    corr = eda.store_sales_correlation(observations)
    assert corr.shape == (2, 2)
    assert np.allclose(np.diag(corr.to_numpy()), 1.0)
    assert corr.loc[1, 2] == pytest.approx(corr.loc[2, 1])
