"""Grid expansion of a repeated cut into placed instances."""

from typing import Iterator, List

from panel_cutting.contracts import CutSpec, PlacedCutInstance


def iter_instances(cut: CutSpec) -> Iterator[PlacedCutInstance]:
    for i in range(cut.repetition_x + 1):
        for j in range(cut.repetition_y + 1):
            yield PlacedCutInstance(cut=cut, i=i, j=j)


def expand(cut: CutSpec) -> List[PlacedCutInstance]:
    """All grid copies of ``cut``, the base copy at (0, 0) first.

    Overlapping copies are kept; rejecting them is the validation gate's job.
    """
    return list(iter_instances(cut))
