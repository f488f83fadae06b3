"""
Reference graph between the metric aggregations of one query.

Pipeline aggregations point at other aggregations through ``field`` or
``pipelineVariables[].pipelineAgg``. No explicit graph is kept: edges are read
off those fields each time, the same way they travel on the wire.
"""
import logging
from typing import Dict, List, Optional, Sequence

from opensearchaggs.aggs import MetricAggregation, is_basic_aggregation
from opensearchaggs.errors import MalformedReferenceGraph
from opensearchaggs.registry import METRIC_REGISTRY, Registry

VISITING = 1
DONE = 2


def references_of(agg: MetricAggregation) -> List[str]:
    refs = []
    if agg.field:
        refs.append(agg.field)
    for variable in agg.pipeline_variables or []:
        if variable.pipeline_agg:
            refs.append(variable.pipeline_agg)
    return refs


def find_reference_cycles(metrics: Sequence[MetricAggregation]) -> List[List[str]]:
    """
    Return every reference cycle found, each as the ids walked along the cycle
    with the first id repeated at the end (``['1', '2', '1']``).
    """
    ids = {agg.id for agg in metrics}
    edges: Dict[str, List[str]] = {}
    for agg in metrics:
        edges.setdefault(agg.id, []).extend(ref for ref in references_of(agg) if ref in ids)

    cycles = []
    state: Dict[str, int] = {}
    for root in edges:
        if root in state:
            continue

        state[root] = VISITING
        path = [root]
        stack = [iter(edges[root])]
        while stack:
            for child in stack[-1]:
                if state.get(child) == VISITING:
                    cycles.append(path[path.index(child):] + [child])
                elif child not in state:
                    state[child] = VISITING
                    path.append(child)
                    stack.append(iter(edges[child]))
                    break
            else:
                stack.pop()
                state[path.pop()] = DONE

    return cycles


def check_reference_graph(metrics: Sequence[MetricAggregation]) -> None:
    cycles = find_reference_cycles(metrics)
    if cycles:
        raise MalformedReferenceGraph(cycles[0])


def ancestors_of(
    metrics: Sequence[MetricAggregation],
    target_id: Optional[str] = None,
    *,
    strict: bool = False,
) -> List[str]:
    """
    Ids that must not be offered as a reference target for ``target_id``: the
    target itself plus everything that consumes its output, directly or through
    other pipeline aggregations.

    :arg metrics: the query's metric aggregations, in order

    :arg target_id: aggregation being edited, ``None`` for one about to be appended

    :arg strict: raise ``MalformedReferenceGraph`` on a reference cycle instead of
        logging it and treating the whole cycle as ineligible
    """
    ancestors = [] if target_id is None else [target_id]
    seen = set(ancestors)

    for agg in metrics:
        if agg.id in seen:
            continue
        if any(ref in seen for ref in references_of(agg)):
            ancestors.append(agg.id)
            seen.add(agg.id)

    for cycle in find_reference_cycles(metrics):
        if strict:
            raise MalformedReferenceGraph(cycle)
        logging.warning('reference cycle between aggregations: %s', ' -> '.join(cycle))
        if seen.intersection(cycle):
            for id in cycle:
                if id not in seen:
                    ancestors.append(id)
                    seen.add(id)

    return ancestors


def descendants_of(metrics: Sequence[MetricAggregation], id: str) -> List[str]:
    """Ids of every aggregation that transitively references ``id``, in list order."""
    referenced_by: Dict[str, List[str]] = {}
    for agg in metrics:
        for ref in references_of(agg):
            referenced_by.setdefault(ref, []).append(agg.id)

    visited = {id}
    worklist = [id]
    while worklist:
        current = worklist.pop()
        for child in referenced_by.get(current, []):
            if child not in visited:
                visited.add(child)
                worklist.append(child)

    visited.discard(id)
    return [agg.id for agg in metrics if agg.id in visited]


def reference_options(
    metrics: Sequence[MetricAggregation],
    target_id: Optional[str] = None,
    registry: Registry = METRIC_REGISTRY,
) -> List[MetricAggregation]:
    """
    Aggregations a pipeline aggregation may point at.

    Only aggregations positioned before the target are candidates, minus the
    target's ancestor set and the members of any reference cycle. A brand-new
    aggregation (``target_id=None``) is offered basic aggregations only.
    """
    position = next((i for i, agg in enumerate(metrics) if agg.id == target_id), None)
    candidates = list(metrics) if position is None else list(metrics[:position])

    excluded = set(ancestors_of(metrics, target_id))
    for cycle in find_reference_cycles(metrics):
        excluded.update(cycle)
    options = [agg for agg in candidates if agg.id not in excluded]
    if target_id is None:
        options = [agg for agg in options if is_basic_aggregation(agg, registry)]

    logging.debug('reference options for %s: %s', target_id, [agg.id for agg in options])
    return options
