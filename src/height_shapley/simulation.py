"""Monte Carlo Shapley attribution of stack height."""

from __future__ import annotations

import logging
from collections import abc
from dataclasses import dataclass

import numpy as np

from stacking import Board, GenerationPolicy, generate

from .model import ContributionAccumulator
from .sampler import PermutationSampler
from .stepper import IterationStepper

__all__ = ["SimulationConfig", "ShapleySimulation"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    seed_offset: int = 1000
    batch_size: int = 10
    default_seed: int = 12345
    default_iterations: int = 100

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            msg = "batch_size must be positive."
            raise ValueError(msg)


def _check_seed(seed: object) -> int:
    if isinstance(seed, bool) or not isinstance(seed, int | np.integer):
        msg = f"seed must be an integer, got {type(seed).__name__}."
        raise TypeError(msg)
    return int(seed)


class ShapleySimulation:
    """Estimate each piece's Shapley contribution to the final stack height.

    Every iteration samples a uniformly random insertion order, replays it on an
    empty copy of the reference board and credits each piece with the height it
    added. Averages over iterations converge to the Shapley values.

    Parameters
    ----------
    reference_board:
        Board defining the piece set. A private copy is kept, so the caller's
        board is never mutated.
    seed:
        Seed of the insertion-order sampler.
    config:
        Batch size and seed conventions used by :meth:`run_batches`.
    """

    def __init__(
        self,
        reference_board: Board,
        seed: int,
        *,
        config: SimulationConfig | None = None,
    ) -> None:
        seed = _check_seed(seed)
        if not isinstance(reference_board, Board):
            msg = "reference_board must be a Board instance."
            raise TypeError(msg)
        if not reference_board.pieces:
            msg = "The reference board must contain at least one piece."
            raise ValueError(msg)

        self._config = config or SimulationConfig()
        self._reference = reference_board.copy()
        self._seed = seed
        self._sampler = PermutationSampler(self._reference.piece_ids, seed=seed)
        self._accumulator = ContributionAccumulator(self._reference.piece_ids)
        self._total_iterations = 0
        self._final_heights: list[int] = []
        self._highlighted_piece: int | None = None

    @classmethod
    def from_seed(
        cls,
        seed: int,
        policy: GenerationPolicy | None = None,
        *,
        config: SimulationConfig | None = None,
    ) -> ShapleySimulation:
        """Generate a reference board from ``seed`` and attach a simulation to it.

        The sampler is seeded with ``seed + config.seed_offset`` so insertion
        orders are decorrelated from the board's own randomness.
        """
        seed = _check_seed(seed)
        config = config or SimulationConfig()
        board = generate(seed, policy)
        return cls(board, seed + config.seed_offset, config=config)

    # ------------------------------------------------------------------
    # Queries

    @property
    def reference_board(self) -> Board:
        return self._reference

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def piece_ids(self) -> tuple[int, ...]:
        return self._reference.piece_ids

    @property
    def highlighted_piece(self) -> int | None:
        return self._highlighted_piece

    @highlighted_piece.setter
    def highlighted_piece(self, piece_id: int | None) -> None:
        if piece_id is not None and piece_id not in self._reference.pieces:
            msg = f"Unknown piece id {piece_id}."
            raise KeyError(msg)
        self._highlighted_piece = piece_id

    def get_total_iterations(self) -> int:
        return self._total_iterations

    def get_average_contributions(self) -> dict[int, float]:
        return self._accumulator.averages()

    def get_sample_counts(self) -> dict[int, int]:
        return self._accumulator.counts()

    def mean_final_height(self) -> float:
        """Mean stack height reached by completed replays."""
        if not self._final_heights:
            return 0.0
        return float(np.mean(self._final_heights))

    @property
    def accumulator(self) -> ContributionAccumulator:
        return self._accumulator

    # ------------------------------------------------------------------
    # Operations

    def run_iteration(self) -> IterationStepper:
        """Lazy event sequence for one iteration; nothing happens until advanced."""
        return IterationStepper(
            self._reference,
            self._accumulator,
            iteration=self._total_iterations + 1,
            sampler=self._sampler,
            on_complete=self._complete_iteration,
        )

    def run_permutation(self, permutation: abc.Sequence[int]) -> int:
        """Run one full iteration over a caller-supplied insertion order."""
        stepper = IterationStepper(
            self._reference,
            self._accumulator,
            iteration=self._total_iterations + 1,
            permutation=permutation,
            on_complete=self._complete_iteration,
        )
        return stepper.run_to_end()

    def run_iterations(self, count: int) -> None:
        if count < 0:
            msg = "count must be non-negative."
            raise ValueError(msg)
        for _ in range(count):
            self.run_iteration().run_to_end()

    def run_batches(self, target: int, batch_size: int | None = None) -> abc.Iterator[int]:
        """Run towards ``target`` total iterations, yielding the total after each batch.

        When the simulation already holds ``target`` or more iterations it is
        reset and ``target`` fresh iterations are run instead.
        """
        if target <= 0:
            msg = "target must be positive."
            raise ValueError(msg)
        if batch_size is None:
            batch_size = self._config.batch_size
        if batch_size <= 0:
            msg = "batch_size must be positive."
            raise ValueError(msg)

        remaining = target - self._total_iterations
        if remaining <= 0:
            self.reset()
            remaining = target

        completed = 0
        while completed < remaining:
            batch = min(batch_size, remaining - completed)
            self.run_iterations(batch)
            completed += batch
            logger.debug("Completed %d/%d iterations", self._total_iterations, target)
            yield self._total_iterations

    def reset(self) -> None:
        """Forget all samples; the sampler keeps its position in the random stream."""
        self._accumulator.reset()
        self._total_iterations = 0
        self._final_heights.clear()

    def _complete_iteration(self, final_height: int) -> None:
        self._total_iterations += 1
        self._final_heights.append(final_height)
        logger.debug(
            "Iteration %d finished at height %d",
            self._total_iterations,
            final_height,
        )
