from typing import Any, Dict, List, Sequence, Tuple

from opensearchaggs.aggs import MetricAggregation, capabilities, is_basic_aggregation
from opensearchaggs.model import BaseModel
from opensearchaggs.registry import METRIC_REGISTRY, Registry


class Option(BaseModel):
    text: str
    value: Any = None
    default: Any = None
    is_checkbox: bool = False


ORDER_BY_OPTIONS: Tuple[Option, ...] = (
    Option(text='Doc Count', value='_count'),
    Option(text='Term value', value='_term'),
)

ORDER_OPTIONS: Tuple[Option, ...] = (
    Option(text='Top', value='desc'),
    Option(text='Bottom', value='asc'),
)

SIZE_OPTIONS: Tuple[Option, ...] = (
    Option(text='No limit', value='0'),
    *(Option(text=size, value=size) for size in ('1', '2', '3', '5', '10', '15', '20')),
)

INTERVAL_OPTIONS: Tuple[Option, ...] = tuple(
    Option(text=interval, value=interval) for interval in ('auto', '10s', '1m', '5m', '10m', '20m', '1h', '1d')
)

EXTENDED_STATS: Tuple[Option, ...] = (
    Option(text='Avg', value='avg'),
    Option(text='Min', value='min'),
    Option(text='Max', value='max'),
    Option(text='Sum', value='sum'),
    Option(text='Count', value='count'),
    Option(text='Std Dev', value='std_deviation'),
    Option(text='Std Dev Upper', value='std_deviation_bounds_upper'),
    Option(text='Std Dev Lower', value='std_deviation_bounds_lower'),
)

MOVING_AVG_MODEL_OPTIONS: Tuple[Option, ...] = (
    Option(text='Simple', value='simple'),
    Option(text='Linear', value='linear'),
    Option(text='Exponentially Weighted', value='ewma'),
    Option(text='Holt Linear', value='holt'),
    Option(text='Holt Winters', value='holt_winters'),
)

_ALPHA = Option(text='Alpha', value='alpha')
_BETA = Option(text='Beta', value='beta')

MOVING_AVG_MODEL_SETTINGS: Dict[str, Tuple[Option, ...]] = {
    'simple': (),
    'linear': (),
    'ewma': (_ALPHA,),
    'holt': (_ALPHA, _BETA),
    'holt_winters': (
        _ALPHA,
        _BETA,
        Option(text='Gamma', value='gamma'),
        Option(text='Period', value='period'),
        Option(text='Pad', value='pad', is_checkbox=True),
    ),
}

# default settings of each pipeline aggregation, keyed by type
PIPELINE_OPTIONS: Dict[str, Tuple[Option, ...]] = {
    'moving_avg': (
        Option(text='window', default=5),
        Option(text='model', default='simple'),
        Option(text='predict'),
        Option(text='minimize', default=False),
    ),
    'derivative': (Option(text='unit'),),
    'cumulative_sum': (Option(text='format'),),
    'bucket_script': (),
}


def moving_avg_settings(model: str, filtered: bool = False) -> List[Option]:
    """Settings of a moving average model; ``filtered`` leaves out checkboxes."""
    settings = MOVING_AVG_MODEL_SETTINGS[model]
    return [s for s in settings if not (filtered and s.is_checkbox)]


def describe_metric(metric: MetricAggregation, registry: Registry = METRIC_REGISTRY) -> str:
    record = capabilities(metric, registry)
    if not record.requires_field and not record.is_pipeline_agg:
        return record.label
    if metric.field is None:
        return record.label
    return f'{record.label} {metric.field}'


def describe_order(order: str) -> str:
    return next((option.text for option in ORDER_OPTIONS if option.value == order), order)


def order_by_options(metrics: Sequence[MetricAggregation], registry: Registry = METRIC_REGISTRY) -> List[Option]:
    """Terms ordering choices: doc count, term value, then every basic metric."""
    refs = [
        Option(text=describe_metric(metric, registry), value=metric.id)
        for metric in metrics
        if is_basic_aggregation(metric, registry)
    ]
    return [*ORDER_BY_OPTIONS, *refs]


def describe_order_by(
    order_by: str,
    metrics: Sequence[MetricAggregation],
    registry: Registry = METRIC_REGISTRY,
) -> str:
    for option in ORDER_BY_OPTIONS:
        if option.value == order_by:
            return option.text
    for metric in metrics:
        if metric.id == order_by:
            return describe_metric(metric, registry)
    return 'metric not found'
