from opensearchaggs.options import (
    MOVING_AVG_MODEL_OPTIONS,
    MOVING_AVG_MODEL_SETTINGS,
    describe_metric,
    describe_order,
    describe_order_by,
    moving_avg_settings,
    order_by_options,
)

from conftest import metric


class TestMovingAverage:
    def test_every_model_has_settings(self):
        assert {option.value for option in MOVING_AVG_MODEL_OPTIONS} == set(MOVING_AVG_MODEL_SETTINGS)

    def test_filtered_drops_checkboxes(self):
        assert [s.value for s in moving_avg_settings('holt_winters')] == ['alpha', 'beta', 'gamma', 'period', 'pad']
        assert [s.value for s in moving_avg_settings('holt_winters', filtered=True)] == [
            'alpha',
            'beta',
            'gamma',
            'period',
        ]
        assert moving_avg_settings('simple') == []


class TestDescriptions:
    def test_describe_metric(self):
        assert describe_metric(metric('1', 'count')) == 'Count'
        assert describe_metric(metric('1', 'avg', field='value')) == 'Average value'
        assert describe_metric(metric('2', 'derivative', field='1')) == 'Derivative 1'
        assert describe_metric(metric('3', 'bucket_script')) == 'Bucket Script'

    def test_describe_order(self):
        assert describe_order('desc') == 'Top'
        assert describe_order('asc') == 'Bottom'

    def test_order_by(self):
        metrics = [
            metric('1', 'count'),
            metric('2', 'max', field='bytes'),
            metric('3', 'derivative', field='2'),
        ]

        options = order_by_options(metrics)

        assert [(o.text, o.value) for o in options] == [
            ('Doc Count', '_count'),
            ('Term value', '_term'),
            ('Max bytes', '2'),
        ]
        assert describe_order_by('_term', metrics) == 'Term value'
        assert describe_order_by('2', metrics) == 'Max bytes'
        assert describe_order_by('7', metrics) == 'metric not found'
