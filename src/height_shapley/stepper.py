"""Step-by-step replay of a single sampled insertion order."""

from __future__ import annotations

import enum
import logging
from collections import abc
from dataclasses import dataclass
from typing import ClassVar, TypeAlias

from stacking import Board, StackingError

from .model import ContributionAccumulator
from .replay import Insertion, replay_insertions
from .sampler import PermutationSampler, validate_permutation

__all__ = [
    "EndEvent",
    "IterationEvent",
    "IterationStepper",
    "StartEvent",
    "StepEvent",
    "StepperState",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StartEvent:
    kind: ClassVar[str] = "start"

    board: Board
    iteration: int
    permutation: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class StepEvent:
    kind: ClassVar[str] = "step"

    board: Board
    piece_id: int
    height_before: int
    height_after: int
    iteration: int
    contributions: dict[int, float]

    @property
    def marginal(self) -> int:
        return self.height_after - self.height_before


@dataclass(frozen=True, slots=True)
class EndEvent:
    kind: ClassVar[str] = "end"

    board: Board
    iteration: int
    height: int
    contributions: dict[int, float]


IterationEvent: TypeAlias = StartEvent | StepEvent | EndEvent


class StepperState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


class IterationStepper:
    """Drive one Monte Carlo iteration one insertion at a time.

    The stepper emits ``n + 2`` events for ``n`` pieces: a start event, one step
    event per insertion, and an end event. It is also an iterator over those
    events, so ``for event in stepper`` runs the iteration to completion.
    Stopping early needs no cleanup: every insertion already yielded has been
    recorded and nothing else has.

    Parameters
    ----------
    reference:
        Board whose piece set is replayed. It is never mutated.
    accumulator:
        Receives one marginal contribution per completed insertion.
    iteration:
        1-based iteration number reported in events.
    sampler:
        Source of the insertion order, drawn when the iteration starts.
    permutation:
        Explicit insertion order, used instead of ``sampler``.
    on_complete:
        Called with the final stack height once the end event is produced.
    """

    def __init__(
        self,
        reference: Board,
        accumulator: ContributionAccumulator,
        *,
        iteration: int,
        sampler: PermutationSampler | None = None,
        permutation: abc.Sequence[int] | None = None,
        on_complete: abc.Callable[[int], None] | None = None,
    ) -> None:
        if sampler is None and permutation is None:
            msg = "Either a sampler or a permutation is required."
            raise ValueError(msg)
        self._reference = reference
        self._accumulator = accumulator
        self._iteration = iteration
        self._sampler = sampler
        self._permutation: tuple[int, ...] | None = (
            validate_permutation(permutation, reference.piece_ids)
            if permutation is not None
            else None
        )
        self._on_complete = on_complete
        self._state = StepperState.IDLE
        self._position = 0
        self._board: Board | None = None
        self._insertions: abc.Iterator[Insertion] | None = None

    @property
    def state(self) -> StepperState:
        return self._state

    @property
    def is_complete(self) -> bool:
        return self._state is StepperState.COMPLETE

    @property
    def position(self) -> int:
        """Number of insertions performed so far."""
        return self._position

    @property
    def iteration(self) -> int:
        return self._iteration

    @property
    def permutation(self) -> tuple[int, ...] | None:
        return self._permutation

    def start(self) -> StartEvent:
        if self._state is not StepperState.IDLE:
            msg = "Iteration has already started."
            raise RuntimeError(msg)
        if self._permutation is None:
            assert self._sampler is not None
            self._permutation = validate_permutation(
                self._sampler.sample(), self._reference.piece_ids
            )
        self._board = self._reference.clone_empty()
        self._insertions = replay_insertions(self._board, self._permutation)
        self._state = StepperState.RUNNING
        return StartEvent(
            board=self._board.copy(),
            iteration=self._iteration,
            permutation=self._permutation,
        )

    def advance(self) -> IterationEvent:
        """Produce the next event; raises ``StopIteration`` once complete."""
        if self._state is StepperState.IDLE:
            return self.start()
        if self._state is StepperState.COMPLETE:
            raise StopIteration

        assert self._board is not None
        if self._has_pending_insertions():
            insertion = self._insert()
            return StepEvent(
                board=self._board.copy(),
                piece_id=insertion.piece_id,
                height_before=insertion.height_before,
                height_after=insertion.height_after,
                iteration=self._iteration,
                contributions=self._accumulator.averages(),
            )

        height = self._finish()
        return EndEvent(
            board=self._board.copy(),
            iteration=self._iteration,
            height=height,
            contributions=self._accumulator.averages(),
        )

    def run_to_end(self) -> int:
        """Perform every remaining insertion without building events."""
        if self._state is StepperState.IDLE:
            self.start()
        elif self._state is StepperState.COMPLETE:
            msg = "Iteration is already complete."
            raise RuntimeError(msg)
        while self._has_pending_insertions():
            self._insert()
        return self._finish()

    def _has_pending_insertions(self) -> bool:
        assert self._permutation is not None
        return self._position < len(self._permutation)

    def _insert(self) -> Insertion:
        assert self._insertions is not None
        try:
            insertion = next(self._insertions)
        except StackingError:
            self._state = StepperState.COMPLETE
            logger.warning(
                "Iteration %d aborted after %d insertions.",
                self._iteration,
                self._position,
            )
            raise
        self._accumulator.record(insertion.piece_id, insertion.marginal)
        self._position += 1
        return insertion

    def _finish(self) -> int:
        assert self._board is not None
        self._state = StepperState.COMPLETE
        height = self._board.stack_height
        if self._on_complete is not None:
            self._on_complete(height)
        return height

    def __iter__(self) -> IterationStepper:
        return self

    def __next__(self) -> IterationEvent:
        return self.advance()
