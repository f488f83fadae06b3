from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from opensearchaggs.errors import UnknownAggregationType


class MetricAggregationType(str, Enum):
    COUNT = 'count'
    AVG = 'avg'
    SUM = 'sum'
    MAX = 'max'
    MIN = 'min'
    EXTENDED_STATS = 'extended_stats'
    PERCENTILES = 'percentiles'
    CARDINALITY = 'cardinality'
    MOVING_AVG = 'moving_avg'
    DERIVATIVE = 'derivative'
    CUMULATIVE_SUM = 'cumulative_sum'
    BUCKET_SCRIPT = 'bucket_script'
    RAW_DOCUMENT = 'raw_document'
    RAW_DATA = 'raw_data'
    LOGS = 'logs'


class BucketAggregationType(str, Enum):
    TERMS = 'terms'
    FILTERS = 'filters'
    GEOHASH_GRID = 'geohash_grid'
    DATE_HISTOGRAM = 'date_histogram'
    HISTOGRAM = 'histogram'


class CapabilityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    requires_field: bool = False
    supports_inline_script: bool = False
    supports_missing: bool = False
    is_pipeline_agg: bool = False
    supports_multiple_bucket_paths: bool = False
    min_version: Optional[int] = None
    is_single_metric: bool = False
    has_settings: bool = False
    has_meta: bool = False
    settings_keys: FrozenSet[str] = frozenset()
    meta_keys: FrozenSet[str] = frozenset()


def type_name(type: Union[str, Enum]) -> str:
    return type.value if isinstance(type, Enum) else type


class Registry:
    """
    Immutable table of capability records, one per aggregation type.

    Declaration order is kept: it is the order types are offered to a caller
    building a type picker.
    """

    def __init__(self, records: Iterable[Tuple[Union[str, Enum], CapabilityRecord]]) -> None:
        self.__records: Dict[str, CapabilityRecord] = {}
        for type, record in records:
            self.__records[type_name(type)] = record

    def lookup(self, type: Union[str, Enum]) -> CapabilityRecord:
        try:
            return self.__records[type_name(type)]
        except KeyError:
            raise UnknownAggregationType(type_name(type)) from None

    def types(self) -> List[str]:
        return list(self.__records)

    def items(self) -> Iterator[Tuple[str, CapabilityRecord]]:
        return iter(self.__records.items())

    def __contains__(self, type) -> bool:
        return isinstance(type, (str, Enum)) and type_name(type) in self.__records

    def __len__(self) -> int:
        return len(self.__records)

    def __repr__(self):
        return f'Registry({self.types()!r})'


SCRIPT_MISSING = frozenset({'script', 'missing'})

EXTENDED_STATS_META = frozenset({
    'avg',
    'min',
    'max',
    'sum',
    'count',
    'std_deviation',
    'std_deviation_bounds_upper',
    'std_deviation_bounds_lower',
})

MOVING_AVG_SETTINGS = frozenset({
    'model',
    'window',
    'predict',
    'minimize',
    'alpha',
    'beta',
    'gamma',
    'period',
    'pad',
})


def _field_metric(label: str, settings_keys: FrozenSet[str] = SCRIPT_MISSING, **kwargs) -> CapabilityRecord:
    return CapabilityRecord(
        label=label,
        requires_field=True,
        supports_inline_script='script' in settings_keys,
        supports_missing='missing' in settings_keys,
        has_settings=True,
        settings_keys=settings_keys,
        **kwargs,
    )


def _pipeline_metric(label: str, settings_keys: Iterable[str], **kwargs) -> CapabilityRecord:
    return CapabilityRecord(
        label=label,
        is_pipeline_agg=True,
        min_version=2,
        has_settings=True,
        settings_keys=frozenset(settings_keys),
        **kwargs,
    )


METRIC_REGISTRY = Registry([
    (MetricAggregationType.COUNT, CapabilityRecord(label='Count')),
    (MetricAggregationType.AVG, _field_metric('Average')),
    (MetricAggregationType.SUM, _field_metric('Sum')),
    (MetricAggregationType.MAX, _field_metric('Max')),
    (MetricAggregationType.MIN, _field_metric('Min')),
    (
        MetricAggregationType.EXTENDED_STATS,
        _field_metric(
            'Extended Stats',
            SCRIPT_MISSING | {'sigma'},
            has_meta=True,
            meta_keys=EXTENDED_STATS_META,
        ),
    ),
    (MetricAggregationType.PERCENTILES, _field_metric('Percentiles', SCRIPT_MISSING | {'percents'})),
    (MetricAggregationType.CARDINALITY, _field_metric('Unique Count', frozenset({'precision_threshold', 'missing'}))),
    (MetricAggregationType.MOVING_AVG, _pipeline_metric('Moving Average', MOVING_AVG_SETTINGS)),
    (MetricAggregationType.DERIVATIVE, _pipeline_metric('Derivative', ['unit'])),
    (MetricAggregationType.CUMULATIVE_SUM, _pipeline_metric('Cumulative Sum', ['format'])),
    (
        MetricAggregationType.BUCKET_SCRIPT,
        _pipeline_metric(
            'Bucket Script',
            ['script'],
            supports_multiple_bucket_paths=True,
        ),
    ),
    (
        MetricAggregationType.RAW_DOCUMENT,
        CapabilityRecord(
            label='Raw Document (legacy)',
            is_single_metric=True,
            has_settings=True,
            settings_keys=frozenset({'size'}),
        ),
    ),
    (
        MetricAggregationType.RAW_DATA,
        CapabilityRecord(
            label='Raw Data',
            is_single_metric=True,
            has_settings=True,
            settings_keys=frozenset({'size'}),
        ),
    ),
    (MetricAggregationType.LOGS, CapabilityRecord(label='Logs')),
])

BUCKET_REGISTRY = Registry([
    (
        BucketAggregationType.TERMS,
        CapabilityRecord(
            label='Terms',
            requires_field=True,
            supports_missing=True,
            has_settings=True,
            settings_keys=frozenset({'order', 'size', 'min_doc_count', 'orderBy', 'missing'}),
        ),
    ),
    (
        BucketAggregationType.FILTERS,
        CapabilityRecord(label='Filters', has_settings=True, settings_keys=frozenset({'filters'})),
    ),
    (
        BucketAggregationType.GEOHASH_GRID,
        CapabilityRecord(
            label='Geo Hash Grid',
            requires_field=True,
            has_settings=True,
            settings_keys=frozenset({'precision'}),
        ),
    ),
    (
        BucketAggregationType.DATE_HISTOGRAM,
        CapabilityRecord(
            label='Date Histogram',
            requires_field=True,
            has_settings=True,
            settings_keys=frozenset({'interval', 'min_doc_count', 'trimEdges', 'offset'}),
        ),
    ),
    (
        BucketAggregationType.HISTOGRAM,
        CapabilityRecord(
            label='Histogram',
            requires_field=True,
            has_settings=True,
            settings_keys=frozenset({'interval', 'min_doc_count'}),
        ),
    ),
])
