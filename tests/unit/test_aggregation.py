"""
Unit Tests - Aggregation Engine
"""
from datetime import date

import pytest
import polars as pl

from sales_analytics.analytics.aggregation import Measure, MeasureFunc, aggregate
from sales_analytics.analytics.expressions import (
    days_between,
    format_fixed,
    round_half_away,
    whole_months_between,
    whole_years_between,
)


class TestAggregate:
    """Tests for aggregate and Measure"""

    def test_sum_count_distinct_by_key(self):
        """Test sum and distinct count per group"""
        df = pl.DataFrame({
            "year": [2012, 2012, 2013],
            "customer_key": [1, 1, 2],
            "sales_amount": [100.0, 50.0, 25.0],
        })

        result = aggregate(
            df,
            ["year"],
            [
                Measure("total_sales", "sales_amount", MeasureFunc.SUM),
                Measure("total_customers", "customer_key", MeasureFunc.COUNT_DISTINCT),
            ],
        ).sort("year")

        assert result["total_sales"].to_list() == [150.0, 25.0]
        assert result["total_customers"].to_list() == [1, 1]

    def test_count_distinct_ignores_nulls(self):
        """Test that null values are not counted as a distinct value"""
        df = pl.DataFrame({"k": ["a", "a", "a"], "customer_key": [1, None, 1]})

        result = aggregate(df, ["k"], [Measure("n", "customer_key", MeasureFunc.COUNT_DISTINCT)])

        assert result["n"].item() == 1

    def test_count_ignores_nulls(self):
        """Test that count skips null values"""
        df = pl.DataFrame({"k": ["a", "a", "a"], "v": [1, None, 3]})

        result = aggregate(df, ["k"], [Measure("n", "v", MeasureFunc.COUNT)])

        assert result["n"].item() == 2

    def test_sum_of_only_nulls_is_absent(self):
        """Test that a group without values sums to null"""
        df = pl.DataFrame({"k": ["a", "b"], "v": [None, 2.0]}, schema={"k": pl.Utf8, "v": pl.Float64})

        result = aggregate(df, ["k"], [Measure("total", "v", MeasureFunc.SUM)]).sort("k")

        assert result["total"].to_list() == [None, 2.0]

    def test_null_key_forms_its_own_group(self):
        """Test that null grouping keys are grouped together"""
        df = pl.DataFrame({"category": ["Bikes", None, None], "v": [1.0, 2.0, 3.0]})

        result = aggregate(df, ["category"], [Measure("total", "v", MeasureFunc.SUM)])

        assert result.height == 2
        assert result.filter(pl.col("category").is_null())["total"].item() == 5.0

    def test_expression_keys(self):
        """Test grouping by an aliased expression"""
        df = pl.DataFrame({
            "order_date": [date(2012, 1, 5), date(2012, 7, 1), date(2013, 1, 1)],
            "v": [1.0, 2.0, 3.0],
        })

        result = aggregate(
            df,
            [pl.col("order_date").dt.year().alias("order_year")],
            [Measure("total", "v", MeasureFunc.SUM)],
        ).sort("order_year")

        assert result.columns == ["order_year", "total"]
        assert result["total"].to_list() == [3.0, 3.0]

    def test_min_max_avg(self):
        """Test min, max and rounded average"""
        df = pl.DataFrame({"k": [1, 1, 1], "v": [1.0, 2.0, 2.0]})

        result = aggregate(
            df,
            ["k"],
            [
                Measure("lo", "v", MeasureFunc.MIN),
                Measure("hi", "v", MeasureFunc.MAX),
                Measure("avg", "v", MeasureFunc.AVG, decimals=2),
            ],
        )

        row = result.row(0, named=True)
        assert row["lo"] == 1.0
        assert row["hi"] == 2.0
        assert row["avg"] == pytest.approx(1.67)

    def test_no_group_keys_aggregates_everything(self):
        """Test aggregation over the whole input"""
        df = pl.DataFrame({"v": [1.0, 2.0]})

        result = aggregate(df, [], [Measure("total", "v", MeasureFunc.SUM)])

        assert result["total"].to_list() == [3.0]

    def test_empty_input(self):
        """Test that empty input yields no groups"""
        df = pl.DataFrame(schema={"k": pl.Int64, "v": pl.Float64})

        result = aggregate(df, ["k"], [Measure("total", "v", MeasureFunc.SUM)])

        assert result.height == 0


class TestRounding:
    """Tests for half-away-from-zero rounding"""

    @pytest.mark.parametrize(
        "value,decimals,expected",
        [
            (0.125, 2, 0.13),
            (-0.125, 2, -0.13),
            (12.5, 0, 13.0),
            (-12.5, 0, -13.0),
            (80.0, 2, 80.0),
            (1.004, 2, 1.0),
        ],
    )
    def test_round_half_away(self, value, decimals, expected):
        """Test exact ties round away from zero"""
        df = pl.DataFrame({"v": [value]})

        result = df.select(round_half_away(pl.col("v"), decimals)).item()

        assert result == pytest.approx(expected)

    def test_null_stays_null(self):
        """Test that rounding keeps absent values absent"""
        df = pl.DataFrame({"v": [None]}, schema={"v": pl.Float64})

        assert df.select(round_half_away(pl.col("v"), 2)).item() is None


class TestFixedFormatting:
    """Tests for fixed-decimal text rendering"""

    @pytest.mark.parametrize(
        "value,decimals,suffix,expected",
        [
            (99.81, 2, "%", "99.81%"),
            (5.0, 2, "%", "5.00%"),
            (100.0, 2, "%", "100.00%"),
            (0.0, 2, "%", "0.00%"),
            (-0.05, 2, "", "-0.05"),
            (1234.5, 0, "", "1235"),
        ],
    )
    def test_format_fixed(self, value, decimals, suffix, expected):
        """Test padding of the fractional part and the sign"""
        df = pl.DataFrame({"v": [value]})

        assert df.select(format_fixed(pl.col("v"), decimals, suffix)).item() == expected

    def test_null_stays_null(self):
        """Test that an absent value renders as absent"""
        df = pl.DataFrame({"v": [None]}, schema={"v": pl.Float64})

        assert df.select(format_fixed(pl.col("v"), 2, "%")).item() is None


class TestCalendarArithmetic:
    """Tests for month, year and day differences"""

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (date(2021, 1, 15), date(2021, 2, 15), 1),
            (date(2021, 1, 31), date(2021, 2, 28), 0),
            (date(2012, 1, 15), date(2013, 2, 20), 13),
            (date(2013, 2, 20), date(2014, 1, 1), 10),
            (date(2021, 3, 1), date(2021, 3, 1), 0),
            (date(2021, 2, 15), date(2021, 1, 15), -1),
        ],
    )
    def test_whole_months_between(self, start, end, expected):
        """Test calendar-field month subtraction"""
        df = pl.DataFrame({"start": [start], "end": [end]})

        result = df.select(whole_months_between(pl.col("start"), pl.col("end"))).item()

        assert result == expected

    def test_months_against_literal_date(self):
        """Test a column against a fixed evaluation date"""
        df = pl.DataFrame({"d": [date(2013, 6, 1), None]})

        result = df.select(whole_months_between(pl.col("d"), date(2014, 1, 1))).to_series()

        assert result.to_list() == [7, None]

    def test_whole_years_between(self):
        """Test age in completed years"""
        df = pl.DataFrame({"birthdate": [date(1971, 10, 6), date(1976, 1, 1)]})

        result = df.select(whole_years_between(pl.col("birthdate"), date(2014, 1, 1))).to_series()

        assert result.to_list() == [42, 38]

    def test_days_between(self):
        """Test elapsed days"""
        df = pl.DataFrame({"a": [date(2012, 1, 1)], "b": [date(2013, 1, 1)]})

        assert df.select(days_between(pl.col("a"), pl.col("b"))).item() == 366
