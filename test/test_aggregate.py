import pyarrow as pa
import pyarrow.compute as pc
import pytest

from pywrangle.compute import PyArrowTableDataSource, across, starts_with
from pywrangle.compute.aggregate import (
    AggregateNode,
    CountAggregation,
    FunctionAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)

TEST_DATA = pa.record_batch(
    {
        "city": pa.array(
            ["New York", "New York", "Los Angeles", "Los Angeles", "New York"]
        ),
        "shop": pa.array(["Shop A", "Shop B", "Shop A", "Shop A2", "Shop B"]),
        "n_employees": pa.array([10, 15, 8, 12, 20]),
    }
)


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_basic_aggregation(keys):
    aggregate = AggregateNode(
        keys,
        {"total_employees": SumAggregation("n_employees")},
        PyArrowTableDataSource(TEST_DATA),
    )
    result = next(aggregate.batches())

    if keys == ["city"]:
        assert result.column_names == ["city", "total_employees"]
        assert result.column(0).to_pylist() == ["Los Angeles", "New York"]
        assert result.column(1).to_pylist() == [20, 45]
    else:
        assert result.column_names == ["city", "shop", "total_employees"]
        assert result.column(0).to_pylist() == [
            "Los Angeles",
            "Los Angeles",
            "New York",
            "New York",
        ]
        assert result.column(1).to_pylist() == ["Shop A", "Shop A2", "Shop A", "Shop B"]
        assert result.column(2).to_pylist() == [8, 12, 10, 35]


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_aggregate_node_str(keys):
    aggregate = AggregateNode(
        keys,
        {"total_employees": SumAggregation("n_employees")},
        PyArrowTableDataSource(TEST_DATA),
    )
    assert str(aggregate) == (
        "AggregateNode(keys=%r, aggregations={'total_employees': SumAggregation(n_employees)}, "
        "PyArrowTableDataSource(columns=['city', 'shop', 'n_employees'], rows=5))"
        % (keys,)
    )


@pytest.mark.parametrize(
    "aggregation,expected",
    [
        (MinAggregation("n_employees"), [8, 10]),
        (MaxAggregation("n_employees"), [12, 20]),
        (CountAggregation("n_employees"), [2, 3]),
        (CountAggregation(), [2, 3]),
        (MeanAggregation("n_employees"), [10.0, 15.0]),
        (FunctionAggregation("n_employees", pc.stddev), [2.0, pytest.approx(4.0824829)]),
    ],
)
def test_aggregations_by_city(aggregation, expected):
    aggregate = AggregateNode(
        ["city"], {"value": aggregation}, PyArrowTableDataSource(TEST_DATA)
    )
    result = next(aggregate.batches())

    assert result.column_names == ["city", "value"]
    assert result.column(0).to_pylist() == ["Los Angeles", "New York"]
    assert result.column(1).to_pylist() == expected


def test_mean_aggregation_by_shop():
    aggregate = AggregateNode(
        ["city", "shop"],
        {"mean_employees": MeanAggregation("n_employees")},
        PyArrowTableDataSource(TEST_DATA),
    )
    result = next(aggregate.batches())
    assert result.column(2).to_pylist() == [8, 12, 10, 17.5]


def test_aggregation_across_batches():
    data = pa.Table.from_batches([TEST_DATA.slice(0, 2), TEST_DATA.slice(2)])
    aggregate = AggregateNode(
        ["city"],
        {
            "total": SumAggregation("n_employees"),
            "mean": MeanAggregation("n_employees"),
            "largest": FunctionAggregation("n_employees", pc.max),
        },
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())
    assert result.to_pydict() == {
        "city": ["Los Angeles", "New York"],
        "total": [20, 45],
        "mean": [10.0, 15.0],
        "largest": [12, 20],
    }


def test_aggregation_without_keys():
    aggregate = AggregateNode(
        [],
        {"total": SumAggregation("n_employees"), "rows": CountAggregation()},
        PyArrowTableDataSource(TEST_DATA),
    )
    assert next(aggregate.batches()).to_pydict() == {"total": [65], "rows": [5]}


def test_null_keys_are_grouped_last():
    data = pa.record_batch({"k": ["b", None, "a", None], "v": [1, 2, 3, 4]})
    aggregate = AggregateNode(
        ["k"], {"total": SumAggregation("v")}, PyArrowTableDataSource(data)
    )
    assert next(aggregate.batches()).to_pydict() == {
        "k": ["a", "b", None],
        "total": [3, 1, 6],
    }


def test_sum_of_only_nulls_is_null():
    data = pa.record_batch({"k": ["a", "a"], "v": pa.array([None, None], type=pa.int64())})
    aggregate = AggregateNode(
        ["k"], {"total": SumAggregation("v")}, PyArrowTableDataSource(data)
    )
    result = next(aggregate.batches())
    assert result.to_pydict() == {"k": ["a"], "total": [None]}
    assert result.schema.field("total").type == pa.int64()


def test_aggregating_no_rows_keeps_the_types():
    data = pa.record_batch(
        {"k": pa.array([], type=pa.string()), "v": pa.array([], type=pa.int64())}
    )
    aggregate = AggregateNode(
        ["k"],
        {
            "total": SumAggregation("v"),
            "mean": MeanAggregation("v"),
            "rows": CountAggregation(),
            "largest": FunctionAggregation("v", pc.max),
        },
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())

    assert result.num_rows == 0
    assert result.schema.types == [pa.string(), pa.int64(), pa.float64(), pa.int64(), pa.int64()]


def test_aggregation_across_columns():
    data = pa.record_batch(
        {"team": ["x", "x", "y"], "q1": [1, 2, 3], "q2": [10, 20, 30]}
    )
    aggregate = AggregateNode(
        ["team"],
        [across(starts_with("q"), {"min": pc.min, "max": pc.max})],
        PyArrowTableDataSource(data),
    )
    assert next(aggregate.batches()).to_pydict() == {
        "team": ["x", "y"],
        "q1_min": [1, 3],
        "q1_max": [2, 3],
        "q2_min": [10, 30],
        "q2_max": [20, 30],
    }


def test_across_never_aggregates_the_keys():
    data = pa.record_batch({"team": [1, 1, 2], "score": [5, 7, 9]})
    aggregate = AggregateNode(
        ["team"], [across(["team", "score"], pc.sum)], PyArrowTableDataSource(data)
    )
    assert next(aggregate.batches()).to_pydict() == {"team": [1, 2], "score": [12, 9]}


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_count_aggregation_50_rows(keys):
    aggregate = AggregateNode(
        keys,
        {"count_employees": CountAggregation("n_employees")},
        PyArrowTableDataSource(_generate_50rows_test_data()),
    )
    result = next(aggregate.batches())

    if keys == ["city"]:
        assert result.column_names == ["city", "count_employees"]
        assert result.column(0).to_pylist() == [
            "City0",
            "City1",
            "City2",
            "City3",
            "City4",
        ]
        assert result.column(1).to_pylist() == [20, 20, 20, 20, 20]
    else:
        assert result.column_names == ["city", "shop", "count_employees"]
        expected_cities = ["City" + str(i) for i in range(5) for _ in range(10)]
        expected_shops = ["Shop" + str(i) for _ in range(5) for i in range(10)]
        expected_counts = [2] * 50
        assert result.column(0).to_pylist() == expected_cities
        assert result.column(1).to_pylist() == expected_shops
        assert result.column(2).to_pylist() == expected_counts


def _generate_50rows_test_data():
    cities = ["City" + str(i) for i in range(5)]
    shops = ["Shop" + str(i) for i in range(10)]
    data = {"city": [], "shop": [], "n_employees": []}
    for city in cities:
        for shop in shops:
            for _ in range(2):
                data["city"].append(city)
                data["shop"].append(shop)
                data["n_employees"].append(10)
    return pa.record_batch(data)
