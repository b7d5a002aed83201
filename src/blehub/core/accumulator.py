from typing import Iterable, Iterator, List, Tuple
from .schemas import Sample


class SampleAccumulator:
    """Ordered, append-only store of Samples for one collection run.

    Rows are handed over exactly once through ``consume()``; the accumulator is
    unusable afterwards.
    """

    def __init__(self):
        self._rows: List[Sample] = []
        self._consumed = False

    def append(self, sample: Sample):
        self._check_open()
        self._rows.append(sample)

    def extend(self, samples: Iterable[Sample]):
        self._check_open()
        self._rows.extend(samples)

    def consume(self) -> Tuple[Sample, ...]:
        self._check_open()
        rows = tuple(self._rows)
        self._rows = []
        self._consumed = True
        return rows

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._rows)

    def _check_open(self):
        if self._consumed:
            raise RuntimeError("accumulator has already been consumed")
