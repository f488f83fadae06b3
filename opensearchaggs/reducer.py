"""
State transitions for a query's aggregation lists.

Every operation takes a list and returns a new one; aggregation values are
frozen and replaced, never changed in place. Edits that do not apply to the
target (an unknown id, a setting its type does not declare) leave the state as
it was. Only an aggregation type missing from the registry is an error.
"""
import logging
from typing import Any, Callable, Dict, List, Sequence, Type, TypeVar

from opensearchaggs.aggs import (
    Aggregation,
    BucketAggregation,
    MetricAggregation,
    capabilities,
    default_bucket_agg,
    default_metric_agg,
    has_meta,
    has_settings,
)
from opensearchaggs.model import BaseModel
from opensearchaggs.registry import (
    BUCKET_REGISTRY,
    METRIC_REGISTRY,
    BucketAggregationType,
    MetricAggregationType,
    Registry,
    type_name,
)
from opensearchaggs.resolver import descendants_of
from opensearchaggs.utils import deep_merge, next_id

Agg = TypeVar('Agg', bound=Aggregation)


def _replace(state: Sequence[Agg], id: str, change: Callable[[Agg], Agg]) -> List[Agg]:
    return [change(agg) if agg.id == id else agg for agg in state]


def _change_setting(agg: Agg, key: str, value: Any, registry: Registry) -> Agg:
    if not has_settings(agg, registry):
        logging.debug('aggregation %s (%s) has no settings, ignoring %s', agg.id, type_name(agg.type), key)
        return agg
    if key not in capabilities(agg, registry).settings_keys:
        logging.debug('setting %s is not legal for %s, ignoring', key, type_name(agg.type))
        return agg
    return agg.model_copy(update={'settings': deep_merge(agg.settings, {key: value})})


# metrics


def add_metric(state: Sequence[MetricAggregation]) -> List[MetricAggregation]:
    return [*state, default_metric_agg(next_id(agg.id for agg in state))]


def remove_metric(state: Sequence[MetricAggregation], id: str) -> List[MetricAggregation]:
    """Remove ``id`` together with every aggregation that depends on it."""
    if not any(agg.id == id for agg in state):
        logging.debug('no metric %s to remove', id)
        return list(state)

    removed = {id, *descendants_of(state, id)}
    logging.debug('removing metrics: %s', sorted(removed))
    return [agg for agg in state if agg.id not in removed]


def change_metric_type(
    state: Sequence[MetricAggregation],
    id: str,
    type: str,
    registry: Registry = METRIC_REGISTRY,
) -> List[MetricAggregation]:
    """
    Set the type of ``id``.

    ``field``, ``settings`` and ``meta`` are kept as they are even when the new
    type does not use them; see ``aggs.illegal_keys``.
    """
    registry.lookup(type)
    new_type = MetricAggregationType(type_name(type))
    return _replace(state, id, lambda agg: agg.model_copy(update={'type': new_type}))


def change_metric_field(state: Sequence[MetricAggregation], id: str, field: str) -> List[MetricAggregation]:
    return _replace(state, id, lambda agg: agg.model_copy(update={'field': field}))


def toggle_metric_visibility(state: Sequence[MetricAggregation], id: str) -> List[MetricAggregation]:
    return _replace(state, id, lambda agg: agg.model_copy(update={'hide': not agg.hide}))


def change_metric_setting(
    state: Sequence[MetricAggregation],
    id: str,
    setting: str,
    value: Any,
    registry: Registry = METRIC_REGISTRY,
) -> List[MetricAggregation]:
    return _replace(state, id, lambda agg: _change_setting(agg, setting, value, registry))


def change_metric_meta(
    state: Sequence[MetricAggregation],
    id: str,
    meta: str,
    value: bool,
    registry: Registry = METRIC_REGISTRY,
) -> List[MetricAggregation]:
    def change(agg: MetricAggregation) -> MetricAggregation:
        if not has_meta(agg, registry) or meta not in capabilities(agg, registry).meta_keys:
            logging.debug('meta %s is not legal for %s, ignoring', meta, type_name(agg.type))
            return agg
        return agg.model_copy(update={'meta': {**(agg.meta or {}), meta: bool(value)}})

    return _replace(state, id, change)


# buckets


def add_bucket_agg(state: Sequence[BucketAggregation]) -> List[BucketAggregation]:
    return [*state, default_bucket_agg(next_id(agg.id for agg in state))]


def remove_bucket_agg(state: Sequence[BucketAggregation], id: str) -> List[BucketAggregation]:
    return [agg for agg in state if agg.id != id]


def change_bucket_agg_type(
    state: Sequence[BucketAggregation],
    id: str,
    type: str,
    registry: Registry = BUCKET_REGISTRY,
) -> List[BucketAggregation]:
    registry.lookup(type)
    new_type = BucketAggregationType(type_name(type))
    return _replace(state, id, lambda agg: agg.model_copy(update={'type': new_type}))


def change_bucket_agg_field(state: Sequence[BucketAggregation], id: str, field: str) -> List[BucketAggregation]:
    return _replace(state, id, lambda agg: agg.model_copy(update={'field': field}))


def toggle_bucket_agg_visibility(state: Sequence[BucketAggregation], id: str) -> List[BucketAggregation]:
    return _replace(state, id, lambda agg: agg.model_copy(update={'hide': not agg.hide}))


def change_bucket_agg_setting(
    state: Sequence[BucketAggregation],
    id: str,
    setting: str,
    value: Any,
    registry: Registry = BUCKET_REGISTRY,
) -> List[BucketAggregation]:
    return _replace(state, id, lambda agg: _change_setting(agg, setting, value, registry))


# actions


class AddMetric(BaseModel):
    ...


class RemoveMetric(BaseModel):
    id: str


class ChangeMetricType(BaseModel):
    id: str
    type: str


class ChangeMetricField(BaseModel):
    id: str
    field: str


class ToggleMetricVisibility(BaseModel):
    id: str


class ChangeMetricSetting(BaseModel):
    id: str
    setting: str
    value: Any = None


class ChangeMetricMeta(BaseModel):
    id: str
    meta: str
    value: bool


class AddBucketAgg(BaseModel):
    ...


class RemoveBucketAgg(BaseModel):
    id: str


class ChangeBucketAggType(BaseModel):
    id: str
    type: str


class ChangeBucketAggField(BaseModel):
    id: str
    field: str


class ToggleBucketAggVisibility(BaseModel):
    id: str


class ChangeBucketAggSetting(BaseModel):
    id: str
    setting: str
    value: Any = None


Handler = Callable[[List[Any], Any, Registry], List[Any]]

METRIC_ACTIONS: Dict[Type[BaseModel], Handler] = {
    AddMetric: lambda state, action, registry: add_metric(state),
    RemoveMetric: lambda state, action, registry: remove_metric(state, action.id),
    ChangeMetricType: lambda state, action, registry: change_metric_type(state, action.id, action.type, registry),
    ChangeMetricField: lambda state, action, registry: change_metric_field(state, action.id, action.field),
    ToggleMetricVisibility: lambda state, action, registry: toggle_metric_visibility(state, action.id),
    ChangeMetricSetting: lambda state, action, registry: change_metric_setting(
        state, action.id, action.setting, action.value, registry
    ),
    ChangeMetricMeta: lambda state, action, registry: change_metric_meta(
        state, action.id, action.meta, action.value, registry
    ),
}

BUCKET_ACTIONS: Dict[Type[BaseModel], Handler] = {
    AddBucketAgg: lambda state, action, registry: add_bucket_agg(state),
    RemoveBucketAgg: lambda state, action, registry: remove_bucket_agg(state, action.id),
    ChangeBucketAggType: lambda state, action, registry: change_bucket_agg_type(
        state, action.id, action.type, registry
    ),
    ChangeBucketAggField: lambda state, action, registry: change_bucket_agg_field(state, action.id, action.field),
    ToggleBucketAggVisibility: lambda state, action, registry: toggle_bucket_agg_visibility(state, action.id),
    ChangeBucketAggSetting: lambda state, action, registry: change_bucket_agg_setting(
        state, action.id, action.setting, action.value, registry
    ),
}


def metrics_reducer(
    state: Sequence[MetricAggregation],
    action: BaseModel,
    registry: Registry = METRIC_REGISTRY,
) -> List[MetricAggregation]:
    handler = METRIC_ACTIONS.get(type(action))
    if handler is None:
        return list(state)
    return handler(list(state), action, registry)


def buckets_reducer(
    state: Sequence[BucketAggregation],
    action: BaseModel,
    registry: Registry = BUCKET_REGISTRY,
) -> List[BucketAggregation]:
    handler = BUCKET_ACTIONS.get(type(action))
    if handler is None:
        return list(state)
    return handler(list(state), action, registry)
