"""Running Shapley estimates built from sampled marginal contributions."""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass

import pandas as pd

__all__ = ["ContributionAccumulator", "ContributionRecord"]


@dataclass(slots=True)
class ContributionRecord:
    total: float = 0.0
    count: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


class ContributionAccumulator:
    """Per-piece running sum and count of marginal height contributions.

    The mean marginal contribution over uniformly sampled insertion orders is
    an unbiased Monte Carlo estimate of each piece's Shapley value in the game
    whose value function is the final stack height.
    """

    def __init__(self, piece_ids: abc.Iterable[int]) -> None:
        self._records: dict[int, ContributionRecord] = {
            piece_id: ContributionRecord() for piece_id in piece_ids
        }

    @property
    def piece_ids(self) -> tuple[int, ...]:
        return tuple(self._records)

    def record(self, piece_id: int, marginal: float) -> None:
        try:
            entry = self._records[piece_id]
        except KeyError:
            msg = f"Unknown piece id {piece_id}."
            raise KeyError(msg) from None
        entry.total += float(marginal)
        entry.count += 1

    def averages(self) -> dict[int, float]:
        return {piece_id: entry.average for piece_id, entry in self._records.items()}

    def sums(self) -> dict[int, float]:
        return {piece_id: entry.total for piece_id, entry in self._records.items()}

    def counts(self) -> dict[int, int]:
        return {piece_id: entry.count for piece_id, entry in self._records.items()}

    def reset(self) -> None:
        for entry in self._records.values():
            entry.total = 0.0
            entry.count = 0

    def to_dataframe(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                "piece_id": list(self._records),
                "sum": [entry.total for entry in self._records.values()],
                "count": [entry.count for entry in self._records.values()],
                "average": [entry.average for entry in self._records.values()],
            }
        )
        return frame.astype({"piece_id": "int64", "sum": "float64", "count": "int64"})
