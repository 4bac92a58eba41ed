import pandas as pd
import pyarrow as pa
import pytest

from pywrangle.compute import PyArrowTableDataSource
from pywrangle.compute.rownames import (
    RowIdToColumnNode,
    RowNamesToColumnNode,
    data_columns,
    drop_rownames,
    index_columns,
    rowname_columns,
)


@pytest.fixture
def cars():
    df = pd.DataFrame(
        {"mpg": [21.0, 22.8, 18.7], "cyl": [6, 4, 8]},
        index=["Mazda RX4", "Datsun 710", "Hornet Sportabout"],
    )
    return pa.Table.from_pandas(df)


def test_index_columns(cars):
    assert index_columns(cars.schema) == ["__index_level_0__"]
    assert index_columns(pa.schema([("x", pa.int64())])) == []


def test_rownames_to_column(cars):
    result = next(RowNamesToColumnNode("model", PyArrowTableDataSource(cars)).batches())
    assert result.to_pydict() == {
        "model": ["Mazda RX4", "Datsun 710", "Hornet Sportabout"],
        "mpg": [21.0, 22.8, 18.7],
        "cyl": [6, 4, 8],
    }
    assert result.schema.pandas_metadata is None


def test_rownames_are_always_strings():
    df = pd.DataFrame({"v": ["a", "b"]}, index=[10, 20])
    table = pa.Table.from_pandas(df)

    result = next(RowNamesToColumnNode("rowname", PyArrowTableDataSource(table)).batches())
    assert result.to_pydict() == {"rowname": ["10", "20"], "v": ["a", "b"]}


def test_range_index_rownames():
    df = pd.DataFrame({"v": ["a", "b", "c"]}, index=pd.RangeIndex(5, 11, 2))
    table = pa.Table.from_pandas(df)

    result = next(RowNamesToColumnNode("rowname", PyArrowTableDataSource(table)).batches())
    assert result.to_pydict() == {"rowname": ["5", "7", "9"], "v": ["a", "b", "c"]}


def test_tables_without_rownames_are_numbered():
    table = pa.Table.from_batches(
        [pa.record_batch({"v": ["a", "b"]}), pa.record_batch({"v": ["c"]})]
    )

    batches = list(RowNamesToColumnNode("rowname", PyArrowTableDataSource(table)).batches())
    assert [b.column("rowname").to_pylist() for b in batches] == [["1", "2"], ["3"]]


def test_rowid_to_column_across_batches():
    table = pa.Table.from_batches(
        [pa.record_batch({"v": ["a", "b"]}), pa.record_batch({"v": ["c"]})]
    )

    batches = list(RowIdToColumnNode("id", PyArrowTableDataSource(table)).batches())
    assert [b.to_pydict() for b in batches] == [
        {"id": [1, 2], "v": ["a", "b"]},
        {"id": [3], "v": ["c"]},
    ]


@pytest.mark.parametrize("node_class", [RowNamesToColumnNode, RowIdToColumnNode])
def test_existing_column_is_rejected(node_class):
    source = PyArrowTableDataSource(pa.record_batch({"v": [1]}))
    with pytest.raises(ValueError, match="already exists"):
        next(node_class("v", source).batches())


def test_rowname_columns(cars):
    assert rowname_columns(cars.schema) == ["__index_level_0__"]
    assert data_columns(cars.schema) == ["mpg", "cyl"]


def test_drop_rownames(cars):
    batch = drop_rownames(cars.to_batches()[0])
    assert batch.to_pydict() == {"mpg": [21.0, 22.8, 18.7], "cyl": [6, 4, 8]}
    assert batch.schema.pandas_metadata is None


def test_rownames_whose_column_was_dropped_are_numbered(cars):
    schema = pa.schema([cars.schema.field("mpg")], metadata=cars.schema.metadata)
    batch = pa.RecordBatch.from_arrays([cars.column("mpg").combine_chunks()], schema=schema)
    assert rowname_columns(batch.schema) == []

    result = next(RowNamesToColumnNode("rowname", PyArrowTableDataSource(batch)).batches())
    assert result.to_pydict() == {"rowname": ["1", "2", "3"], "mpg": [21.0, 22.8, 18.7]}
