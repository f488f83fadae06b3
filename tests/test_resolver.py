import logging

import pytest

from opensearchaggs.aggs import PipelineVariable
from opensearchaggs.errors import MalformedReferenceGraph
from opensearchaggs.resolver import (
    ancestors_of,
    check_reference_graph,
    descendants_of,
    find_reference_cycles,
    reference_options,
    references_of,
)

from conftest import metric


def ids(aggs):
    return [agg.id for agg in aggs]


class TestReferences:
    def test_field_and_variables(self):
        agg = metric(
            '5',
            'bucket_script',
            pipeline_variables=[
                PipelineVariable(name='a', pipeline_agg='1'),
                PipelineVariable(name='b'),
                PipelineVariable(name='c', pipeline_agg='3'),
            ],
        )
        assert references_of(agg) == ['1', '3']
        assert references_of(metric('2', 'derivative', field='1')) == ['1']
        assert references_of(metric('1', 'count')) == []


class TestAncestors:
    def test_chain(self, pipeline_chain):
        assert ancestors_of(pipeline_chain, '1') == ['1', '2', '4']
        assert ancestors_of(pipeline_chain, '2') == ['2', '4']
        assert ancestors_of(pipeline_chain, '3') == ['3']

    def test_new_aggregation_has_no_ancestors(self, pipeline_chain):
        assert ancestors_of(pipeline_chain) == []
        assert ancestors_of([], '1') == ['1']

    def test_pipeline_variables(self):
        metrics = [
            metric('1', 'avg', field='value'),
            metric('2', 'sum', field='value'),
            metric('3', 'bucket_script', pipeline_variables=[PipelineVariable(name='x', pipeline_agg='2')]),
            metric('4', 'derivative', field='3'),
        ]
        assert ancestors_of(metrics, '2') == ['2', '3', '4']
        assert ancestors_of(metrics, '1') == ['1']

    def test_cycle_terminates(self, reference_cycle, caplog):
        with caplog.at_level(logging.WARNING):
            assert set(ancestors_of(reference_cycle, '1')) == {'1', '2'}
            assert set(ancestors_of(reference_cycle, '2')) == {'1', '2'}

        assert 'reference cycle' in caplog.text

    def test_cycle_strict(self, reference_cycle):
        with pytest.raises(MalformedReferenceGraph) as exc_info:
            ancestors_of(reference_cycle, '1', strict=True)
        assert exc_info.value.cycle == ['1', '2', '1']

    def test_cycle_members_are_ineligible(self):
        # '1' only reaches the target through '2', which the left-to-right fold sees too late
        metrics = [
            metric('1', 'derivative', field='2'),
            metric(
                '2',
                'bucket_script',
                pipeline_variables=[
                    PipelineVariable(name='a', pipeline_agg='3'),
                    PipelineVariable(name='b', pipeline_agg='1'),
                ],
            ),
            metric('3', 'avg', field='value'),
        ]
        assert ancestors_of(metrics, '3') == ['3', '2', '1']

    def test_cycle_elsewhere_does_not_leak(self, reference_cycle):
        metrics = [metric('3', 'avg', field='value'), *reference_cycle]
        assert ancestors_of(metrics, '3') == ['3']


class TestCycles:
    def test_clean_graph(self, pipeline_chain):
        assert find_reference_cycles(pipeline_chain) == []
        check_reference_graph(pipeline_chain)

    def test_two_cycle(self, reference_cycle):
        assert find_reference_cycles(reference_cycle) == [['1', '2', '1']]
        with pytest.raises(MalformedReferenceGraph, match='1 -> 2 -> 1'):
            check_reference_graph(reference_cycle)

    def test_self_reference(self):
        assert find_reference_cycles([metric('1', 'derivative', field='1')]) == [['1', '1']]

    def test_document_fields_are_not_edges(self):
        metrics = [metric('1', 'avg', field='bytes'), metric('2', 'max', field='bytes')]
        assert find_reference_cycles(metrics) == []


class TestDescendants:
    def test_chain(self, pipeline_chain):
        assert descendants_of(pipeline_chain, '1') == ['2', '4']
        assert descendants_of(pipeline_chain, '4') == []
        assert descendants_of(pipeline_chain, 'missing') == []

    def test_forward_listed_dependents(self):
        metrics = [
            metric('3', 'derivative', field='2'),
            metric('1', 'avg', field='value'),
            metric('2', 'moving_avg', field='1'),
        ]
        assert descendants_of(metrics, '1') == ['3', '2']

    def test_cycle_terminates(self, reference_cycle):
        assert descendants_of(reference_cycle, '1') == ['2']


class TestReferenceOptions:
    def test_existing_target(self, pipeline_chain):
        assert ids(reference_options(pipeline_chain, '2')) == ['1']
        assert ids(reference_options(pipeline_chain, '4')) == ['1', '2', '3']

    def test_never_at_or_after_target(self, pipeline_chain):
        for position, agg in enumerate(pipeline_chain):
            later = set(ids(pipeline_chain[position:]))
            assert not later & set(ids(reference_options(pipeline_chain, agg.id)))

    def test_new_aggregation_gets_basic_only(self):
        metrics = [
            metric('1', 'count'),
            metric('2', 'avg', field='value'),
            metric('3', 'moving_avg', field='2'),
            metric('4', 'max', field='value'),
        ]
        assert ids(reference_options(metrics)) == ['2', '4']

    def test_cycle_members_are_never_offered(self):
        metrics = [
            metric('1', 'avg', field='2'),
            metric('2', 'max', field='1'),
            metric('3', 'sum', field='value'),
            metric('4', 'derivative', field='3'),
        ]
        assert ids(reference_options(metrics)) == ['3']
        assert ids(reference_options(metrics, '4')) == ['3']

    def test_excludes_own_dependents(self):
        metrics = [
            metric('1', 'avg', field='value'),
            metric('2', 'derivative', field='3'),
            metric('3', 'moving_avg', field='1'),
        ]
        assert ids(reference_options(metrics, '3')) == ['1']
