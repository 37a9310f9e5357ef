"""Monte Carlo Shapley attribution of stack height to individual pieces."""

from .model import ContributionAccumulator
from .replay import Insertion, replay_insertions
from .report import ContributionReport
from .sampler import PermutationSampler, validate_permutation
from .simulation import ShapleySimulation, SimulationConfig
from .stepper import EndEvent, IterationEvent, IterationStepper, StartEvent, StepEvent

__all__ = [
    "ContributionAccumulator",
    "ContributionReport",
    "EndEvent",
    "Insertion",
    "IterationEvent",
    "IterationStepper",
    "PermutationSampler",
    "ShapleySimulation",
    "SimulationConfig",
    "StartEvent",
    "StepEvent",
    "replay_insertions",
    "validate_permutation",
]
