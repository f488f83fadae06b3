from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

from opensearchaggs.model import BaseModel
from opensearchaggs.registry import (
    BUCKET_REGISTRY,
    METRIC_REGISTRY,
    BucketAggregationType,
    CapabilityRecord,
    MetricAggregationType,
    Registry,
)


class PipelineVariable(BaseModel):
    name: str
    pipeline_agg: str = ''


class Aggregation(BaseModel):
    """
    Fields shared by every aggregation variant.

    A single shape holds all variants of a family. Which optional fields are
    meaningful is decided by the capability registry from ``type`` alone,
    never by looking at which fields happen to be set.
    """

    registry: ClassVar[Registry]

    id: str
    hide: bool = False
    field: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def load(cls, data: Dict[str, Any]):
        cls.registry.lookup(data.get('type', cls.model_fields['type'].default))
        return super().load(data)


class MetricAggregation(Aggregation):
    registry: ClassVar[Registry] = METRIC_REGISTRY

    type: MetricAggregationType = MetricAggregationType.COUNT
    meta: Optional[Dict[str, bool]] = None
    pipeline_variables: Optional[List[PipelineVariable]] = None


class BucketAggregation(Aggregation):
    registry: ClassVar[Registry] = BUCKET_REGISTRY

    type: BucketAggregationType = BucketAggregationType.DATE_HISTOGRAM


AggregationValue = Union[MetricAggregation, BucketAggregation]

FIELD_KINDS = ('any', 'number', 'date', 'geo_point')

BUCKET_FIELD_KINDS: Dict[BucketAggregationType, str] = {
    BucketAggregationType.TERMS: 'any',
    BucketAggregationType.GEOHASH_GRID: 'geo_point',
    BucketAggregationType.DATE_HISTOGRAM: 'date',
    BucketAggregationType.HISTOGRAM: 'number',
}


def default_metric_agg(id: str = '1') -> MetricAggregation:
    return MetricAggregation(id=id, type=MetricAggregationType.COUNT, hide=False)


def default_bucket_agg(id: str = '2') -> BucketAggregation:
    return BucketAggregation(
        id=id,
        type=BucketAggregationType.DATE_HISTOGRAM,
        settings={'interval': 'auto'},
        hide=False,
    )


def capabilities(agg: AggregationValue, registry: Optional[Registry] = None) -> CapabilityRecord:
    if registry is None:
        registry = agg.registry
    return registry.lookup(agg.type)


def has_field(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    """Whether ``agg`` takes a field, either a document field or another aggregation's id."""
    return capabilities(agg, registry).requires_field


def is_pipeline(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).is_pipeline_agg


def has_multiple_bucket_paths(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).supports_multiple_bucket_paths


def supports_missing(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).supports_missing


def has_settings(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).has_settings


def has_meta(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).has_meta


def supports_inline_script(agg: AggregationValue, registry: Optional[Registry] = None) -> bool:
    return capabilities(agg, registry).supports_inline_script


def is_basic_aggregation(agg: MetricAggregation, registry: Optional[Registry] = None) -> bool:
    """
    Basic aggregations work on documents: anything but ``count`` and pipelines.

    A pipeline aggregation only makes sense once a basic one precedes it.
    """
    return agg.type != MetricAggregationType.COUNT and not is_pipeline(agg, registry)


def available_types_for(
    previous: Sequence[MetricAggregation],
    backend_version: int,
    registry: Registry = METRIC_REGISTRY,
) -> List[str]:
    """
    :arg previous: aggregations positioned before the one being edited

    :arg backend_version: major version of the backend, gates ``min_version``

    :arg registry: capability table, types are returned in its declaration order
    """
    include_pipelines = any(is_basic_aggregation(agg, registry) for agg in previous)

    types = []
    for name, record in registry.items():
        if record.min_version is not None and record.min_version > backend_version:
            continue
        if record.is_pipeline_agg and not include_pipelines:
            continue
        types.append(name)
    return types


def field_kind(agg: AggregationValue, registry: Optional[Registry] = None) -> Optional[str]:
    """
    Kind of document fields to offer for ``agg`` (see ``FIELD_KINDS``), or
    ``None`` when no field list should be fetched at all.
    """
    if not has_field(agg, registry) or is_pipeline(agg, registry):
        return None
    if isinstance(agg, BucketAggregation):
        return BUCKET_FIELD_KINDS.get(agg.type, 'any')
    if agg.type == MetricAggregationType.CARDINALITY:
        return 'any'
    return 'number'


def illegal_keys(agg: AggregationValue, registry: Optional[Registry] = None) -> List[str]:
    """
    List the populated parts of ``agg`` its type does not allow.

    Changing an aggregation's type keeps whatever it held before, so a value
    read mid-edit can carry leftovers; this names them.
    """
    record = capabilities(agg, registry)
    problems = []

    takes_reference = record.is_pipeline_agg and not record.supports_multiple_bucket_paths
    if agg.field is not None and not (record.requires_field or takes_reference):
        problems.append('field')

    if agg.settings:
        if not record.has_settings:
            problems.append('settings')
        else:
            problems.extend(f'settings.{key}' for key in sorted(agg.settings) if key not in record.settings_keys)

    if isinstance(agg, MetricAggregation):
        if agg.meta:
            if not record.has_meta:
                problems.append('meta')
            else:
                problems.extend(f'meta.{key}' for key in sorted(agg.meta) if key not in record.meta_keys)
        if agg.pipeline_variables is not None and not record.supports_multiple_bucket_paths:
            problems.append('pipelineVariables')

    return problems
