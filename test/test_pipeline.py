import operator

import pytest

from pyfstat.pipeline import Pipeline


def _double(item):
    return item * 2


def _add_one(item):
    return item + 1


def test_map_items():
    pipeline = Pipeline(map_functs=[_double, _add_one])
    assert list(pipeline.map_items(range(5))) == [1, 3, 5, 7, 9]

    res = pipeline.map_items(range(100), num_processes=2)
    assert sorted(res) == [item * 2 + 1 for item in range(100)]

    pipeline = Pipeline()
    assert list(pipeline.map_items(["a", "b"])) == ["a", "b"]


def test_map_and_reduce():
    pipeline = Pipeline(
        map_functs=[_double], reduce_funct=operator.add, reduce_initializer=0
    )
    assert pipeline.map_and_reduce(range(5)) == 20
    assert pipeline.map_and_reduce(range(100), num_processes=3) == 9900
    assert pipeline.map_and_reduce([]) == 0

    pipeline = Pipeline(
        map_functs=[_double, _add_one],
        reduce_funct=operator.add,
        reduce_initializer=0,
    )
    assert pipeline.map_and_reduce(range(5)) == 25
    assert pipeline.map_and_reduce(range(5), num_processes=2) == 25


def test_wrong_pipeline():
    pipeline = Pipeline(map_functs=[_double], reduce_funct=operator.add)
    with pytest.raises(ValueError):
        pipeline.map_items(range(5))

    pipeline = Pipeline(map_functs=[_double])
    with pytest.raises(ValueError):
        pipeline.map_and_reduce(range(5))
