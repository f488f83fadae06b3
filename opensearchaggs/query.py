import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from opensearchaggs.aggs import BucketAggregation, MetricAggregation, default_bucket_agg, default_metric_agg
from opensearchaggs.model import BaseModel
from opensearchaggs.reducer import BUCKET_ACTIONS, METRIC_ACTIONS, buckets_reducer, metrics_reducer
from opensearchaggs.registry import BUCKET_REGISTRY, METRIC_REGISTRY, Registry, type_name


class AggregationQuery(BaseModel):
    """
    One query of a dashboard panel: a lucene query string plus its metric and
    bucket aggregations. Metric and bucket ids are independent of each other.
    """

    ref_id: Optional[str] = None
    query: Optional[str] = None
    alias: Optional[str] = None
    time_field: Optional[str] = None
    metrics: List[MetricAggregation] = Field(default_factory=list)
    bucket_aggs: List[BucketAggregation] = Field(default_factory=list)

    @classmethod
    def default(cls, time_field: Optional[str] = None, **kwargs):
        bucket = default_bucket_agg()
        if time_field:
            bucket = bucket.model_copy(update={'field': time_field})
        return cls(
            time_field=time_field,
            metrics=[default_metric_agg()],
            bucket_aggs=[bucket],
            **kwargs,
        )

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        metric_registry: Registry = METRIC_REGISTRY,
        bucket_registry: Registry = BUCKET_REGISTRY,
    ):
        """
        :arg data: the query as stored in the dashboard document

        :raise UnknownAggregationType: an aggregation's type is not in the registry
        """
        for metric in data.get('metrics') or []:
            metric_registry.lookup(metric.get('type', 'count'))
        for bucket in data.get('bucketAggs') or data.get('bucket_aggs') or []:
            bucket_registry.lookup(bucket.get('type', 'date_histogram'))
        return cls.model_validate(data)

    def dispatch(
        self,
        action: BaseModel,
        metric_registry: Registry = METRIC_REGISTRY,
        bucket_registry: Registry = BUCKET_REGISTRY,
    ) -> 'AggregationQuery':
        if type(action) in METRIC_ACTIONS:
            metrics = metrics_reducer(self.metrics, action, metric_registry)
            return self.model_copy(update={'metrics': metrics})
        if type(action) in BUCKET_ACTIONS:
            bucket_aggs = buckets_reducer(self.bucket_aggs, action, bucket_registry)
            return self.model_copy(update={'bucket_aggs': bucket_aggs})

        logging.debug('unhandled action: %r', action)
        return self

    def find_metric(self, id: str) -> Optional[MetricAggregation]:
        return next((metric for metric in self.metrics if metric.id == id), None)

    def has_metric_of_type(self, type: str) -> bool:
        return any(type_name(metric.type) == type_name(type) for metric in self.metrics)

    def to_json(self) -> str:
        body = json.dumps(self.dump())
        logging.debug('query:\n%s', body)
        return body
