from typing import Sequence


class AggregationError(Exception):
    ...


class UnknownAggregationType(AggregationError, KeyError):
    def __init__(self, type: str) -> None:
        super().__init__(type)
        self.type = type

    def __str__(self):
        return f'unknown aggregation type: {self.type}'


class MalformedReferenceGraph(AggregationError):
    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(list(cycle))
        self.cycle = list(cycle)

    def __str__(self):
        return 'reference cycle between aggregations: ' + ' -> '.join(self.cycle)
