import pytest

from opensearchaggs.aggs import MetricAggregation


def metric(id: str, type: str = 'count', **kwargs) -> MetricAggregation:
    return MetricAggregation(id=id, type=type, **kwargs)


@pytest.fixture
def make_metric():
    return metric


@pytest.fixture
def pipeline_chain():
    """avg <- moving_avg <- derivative, with an unrelated max in between."""
    return [
        metric('1', 'avg', field='value'),
        metric('2', 'moving_avg', field='1'),
        metric('3', 'max', field='value'),
        metric('4', 'derivative', field='2'),
    ]


@pytest.fixture
def reference_cycle():
    """Two derivatives pointing at each other."""
    return [
        metric('1', 'derivative', field='2'),
        metric('2', 'derivative', field='1'),
    ]
