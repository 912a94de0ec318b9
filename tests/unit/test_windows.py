"""
Unit Tests - Window Engine
"""
from datetime import date

import pytest
import polars as pl

from sales_analytics.analytics.windows import (
    WindowSpec,
    grand_total,
    lag,
    partition_aggregate,
    running_aggregate,
)


@pytest.fixture
def monthly_df() -> pl.DataFrame:
    """Monthly totals over two years, deliberately out of order"""
    return pl.DataFrame({
        "order_date": [
            date(2013, 1, 1),
            date(2012, 1, 1),
            date(2012, 2, 1),
            date(2013, 2, 1),
        ],
        "year": [2013, 2012, 2012, 2013],
        "total_sales": [10.0, 100.0, 50.0, 5.0],
        "avg_price": [10.0, 20.0, 30.0, 40.0],
    })


class TestRunningAggregate:
    """Tests for running sums and averages"""

    def test_running_sum_keeps_input_order(self, monthly_df):
        """Test running sum with rows returned in input order"""
        result = running_aggregate(
            monthly_df, WindowSpec(order_by=("order_date",)), "total_sales", "running"
        )

        assert result["order_date"].to_list() == monthly_df["order_date"].to_list()
        assert result["running"].to_list() == [160.0, 100.0, 150.0, 165.0]

    def test_running_sum_is_non_decreasing(self, monthly_df):
        """Test non-negative measures give a non-decreasing running sum"""
        result = running_aggregate(
            monthly_df, WindowSpec(order_by=("order_date",)), "total_sales", "running"
        ).sort("order_date")

        running = result["running"].to_list()
        assert running == sorted(running)
        assert running[-1] == monthly_df["total_sales"].sum()

    def test_running_sum_resets_per_partition(self, monthly_df):
        """Test that a partition restarts the running sum"""
        spec = WindowSpec(order_by=("order_date",), partition_by=("year",))

        result = running_aggregate(monthly_df, spec, "total_sales", "running").sort("order_date")

        assert result["running"].to_list() == [100.0, 150.0, 10.0, 15.0]

    def test_running_average(self, monthly_df):
        """Test running mean of the values so far"""
        result = running_aggregate(
            monthly_df,
            WindowSpec(order_by=("order_date",)),
            "avg_price",
            "running_avg",
            func="avg",
            decimals=2,
        ).sort("order_date")

        assert result["running_avg"].to_list() == [20.0, 25.0, 20.0, 25.0]

    def test_peers_share_running_value(self):
        """Test that rows with equal order keys get the same running value"""
        df = pl.DataFrame({"k": [1, 1, 2], "v": [1.0, 2.0, 3.0]})

        result = running_aggregate(df, WindowSpec(order_by=("k",)), "v", "running")

        assert result["running"].to_list() == [3.0, 3.0, 6.0]

    def test_null_values_are_skipped(self):
        """Test that null measures do not count towards the average"""
        df = pl.DataFrame({"k": [1, 2, 3], "v": [None, 4.0, 2.0]}, schema={"k": pl.Int64, "v": pl.Float64})

        result = running_aggregate(df, WindowSpec(order_by=("k",)), "v", "running_avg", func="avg")

        assert result["running_avg"].to_list() == [None, 4.0, 3.0]

    def test_null_order_keys_sort_last(self):
        """Test that rows without an order key come after all others"""
        df = pl.DataFrame({"k": [None, 1, 2], "v": [5.0, 1.0, 2.0]}, schema={"k": pl.Int64, "v": pl.Float64})

        result = running_aggregate(df, WindowSpec(order_by=("k",)), "v", "running")

        assert result["running"].to_list() == [8.0, 1.0, 3.0]

    def test_unknown_function_rejected(self, monthly_df):
        """Test validation of the window function"""
        with pytest.raises(ValueError):
            running_aggregate(monthly_df, WindowSpec(order_by=("order_date",)), "total_sales", "x", func="median")

    def test_order_key_required(self, monthly_df):
        """Test that a window without order keys is rejected"""
        with pytest.raises(ValueError):
            running_aggregate(monthly_df, WindowSpec(order_by=()), "total_sales", "x")


class TestPartitionAggregate:
    """Tests for whole-partition aggregates and grand totals"""

    def test_partition_average(self):
        """Test average attached to each row of the partition"""
        df = pl.DataFrame({"product": ["A", "A", "B"], "sales": [100.0, 150.0, 40.0]})

        result = partition_aggregate(df, ["product"], "sales", "avg_sales", func="avg", decimals=0)

        assert result["avg_sales"].to_list() == [125.0, 125.0, 40.0]

    def test_grand_total(self):
        """Test total over the entire input on every row"""
        df = pl.DataFrame({"category": ["Bikes", "Accessories"], "sales": [800.0, 200.0]})

        result = grand_total(df, "sales", "overall")

        assert result["overall"].to_list() == [1000.0, 1000.0]


class TestLag:
    """Tests for previous-row lookups"""

    def test_lag_within_partition(self):
        """Test previous value per product, absent for the first year"""
        df = pl.DataFrame({
            "product": ["A", "B", "A", "B"],
            "year": [2013, 2012, 2012, 2013],
            "sales": [150.0, 40.0, 100.0, 60.0],
        })
        spec = WindowSpec(order_by=("year",), partition_by=("product",))

        result = lag(df, spec, "sales", "py_sales")

        assert result["py_sales"].to_list() == [100.0, None, None, 40.0]

    def test_lag_offset(self):
        """Test a lag of two rows"""
        df = pl.DataFrame({"k": [1, 2, 3], "v": [1.0, 2.0, 3.0]})

        result = lag(df, WindowSpec(order_by=("k",)), "v", "prev2", offset=2)

        assert result["prev2"].to_list() == [None, None, 1.0]

    def test_lag_ties_keep_input_order(self):
        """Test that peers are walked in input order"""
        df = pl.DataFrame({"k": [1, 1], "v": [1.0, 2.0]})

        result = lag(df, WindowSpec(order_by=("k",)), "v", "prev")

        assert result["prev"].to_list() == [None, 1.0]

    def test_invalid_offset(self):
        """Test that a non-positive offset is rejected"""
        df = pl.DataFrame({"k": [1], "v": [1.0]})

        with pytest.raises(ValueError):
            lag(df, WindowSpec(order_by=("k",)), "v", "prev", offset=0)
