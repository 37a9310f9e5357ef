"""Command line interface for stack height Shapley attribution."""

from __future__ import annotations

import argparse
import logging
from collections import abc
from dataclasses import dataclass
from pathlib import Path

from stacking import GenerationPolicy, StackingError
from stacking.logging_utils import get_logger

from .report import ContributionReport
from .simulation import ShapleySimulation, SimulationConfig
from .stepper import EndEvent, StartEvent, StepEvent

DEFAULTS = SimulationConfig()


@dataclass(slots=True, frozen=True)
class CLIArgs:
    """Typed container for parsed CLI arguments."""

    seed: int
    iterations: int
    batch_size: int
    width: int
    pieces: int
    output: Path
    trace: bool
    log_level: str


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        msg = f"expected a positive integer, got {raw!r}"
        raise argparse.ArgumentTypeError(msg)
    return value


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate each piece's Shapley contribution to the final stack height.",
    )
    _ = parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULTS.default_seed,
        help="Seed used to generate the reference board.",
    )
    _ = parser.add_argument(
        "--iterations",
        type=_positive_int,
        default=DEFAULTS.default_iterations,
        help="Number of sampled insertion orders.",
    )
    _ = parser.add_argument(
        "--batch-size",
        type=_positive_int,
        default=DEFAULTS.batch_size,
        help="Iterations run between progress updates.",
    )
    _ = parser.add_argument(
        "--width",
        type=_positive_int,
        default=GenerationPolicy().width,
        help="Number of board columns.",
    )
    _ = parser.add_argument(
        "--pieces",
        type=_positive_int,
        default=GenerationPolicy().piece_count,
        help="Number of pieces on the generated board.",
    )
    _ = parser.add_argument(
        "--output",
        type=Path,
        default=Path("reports/height_shapley_report.md"),
        help="Output path for the generated Markdown report.",
    )
    _ = parser.add_argument(
        "--trace",
        action="store_true",
        help="Step through the first iteration and log every insertion.",
    )
    _ = parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    return parser


def parse_arguments(argv: abc.Sequence[str] | None = None) -> CLIArgs:
    parser = build_argument_parser()
    if argv is not None and not isinstance(argv, abc.Sequence):
        msg = "argv must be a sequence of strings."
        raise TypeError(msg)
    namespace = parser.parse_args(argv)
    return CLIArgs(
        seed=int(namespace.seed),
        iterations=int(namespace.iterations),
        batch_size=int(namespace.batch_size),
        width=int(namespace.width),
        pieces=int(namespace.pieces),
        output=Path(namespace.output),
        trace=bool(namespace.trace),
        log_level=str(namespace.log_level),
    )


def trace_iteration(simulation: ShapleySimulation, logger: logging.Logger) -> None:
    for event in simulation.run_iteration():
        if isinstance(event, StartEvent):
            logger.info(
                "Iteration %d order: %s",
                event.iteration,
                " ".join(f"#{piece_id}" for piece_id in event.permutation),
            )
        elif isinstance(event, StepEvent):
            logger.info(
                "  #%d: height %d -> %d (marginal %+d)",
                event.piece_id,
                event.height_before,
                event.height_after,
                event.marginal,
            )
        elif isinstance(event, EndEvent):
            logger.info(
                "Iteration %d final height %d\n%s",
                event.iteration,
                event.height,
                event.board.to_text(),
            )


def main(argv: abc.Sequence[str] | None = None) -> None:
    args = parse_arguments(argv)
    logger = get_logger("height_shapley", args.log_level)
    get_logger("stacking", args.log_level)

    try:
        policy = GenerationPolicy(width=args.width, piece_count=args.pieces)
    except ValueError as exc:
        logger.error("Invalid board settings: %s", exc)
        raise SystemExit(2) from exc

    config = SimulationConfig(batch_size=args.batch_size)
    try:
        simulation = ShapleySimulation.from_seed(args.seed, policy, config=config)
        logger.info(
            "Generated %d pieces, reference height %d (seed %d)",
            len(simulation.piece_ids),
            simulation.reference_board.stack_height,
            args.seed,
        )
        if args.trace:
            trace_iteration(simulation, logger)
        for total in simulation.run_batches(args.iterations):
            logger.info("Iterations: %d/%d", total, args.iterations)
    except StackingError as exc:
        logger.error("Simulation could not complete: %s", exc)
        raise SystemExit(1) from exc

    report = ContributionReport(simulation)
    report.write_markdown(args.output)
    logger.info("Report written to %s", args.output)


if __name__ == "__main__":
    main()
