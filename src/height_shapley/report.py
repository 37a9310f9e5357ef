"""Markdown report of estimated height contributions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

if TYPE_CHECKING:
    from pandas import DataFrame
else:
    DataFrame = Any

from .simulation import ShapleySimulation


@dataclass(slots=True)
class KPIBundle:
    total_iterations: int
    piece_count: int
    reference_height: int
    mean_replay_height: float
    contribution_total: float


@dataclass(slots=True)
class PieceContributionRow:
    piece_id: int
    shape: str
    color: str
    column: int
    cells: int
    contribution: float
    samples: int


class ContributionReport:
    """Build and render a Markdown report for a simulation's Shapley estimates."""

    def __init__(self, simulation: ShapleySimulation) -> None:
        if not isinstance(simulation, ShapleySimulation):
            msg = "simulation must be an instance of ShapleySimulation."
            raise TypeError(msg)
        self._simulation = simulation

    def build_kpis(self) -> KPIBundle:
        contributions = self._simulation.get_average_contributions()
        return KPIBundle(
            total_iterations=self._simulation.get_total_iterations(),
            piece_count=len(self._simulation.piece_ids),
            reference_height=self._simulation.reference_board.stack_height,
            mean_replay_height=self._simulation.mean_final_height(),
            contribution_total=float(sum(contributions.values())),
        )

    def build_piece_rows(self) -> list[PieceContributionRow]:
        board = self._simulation.reference_board
        frame = self._simulation.accumulator.to_dataframe().sort_values(
            "average",
            ascending=False,
            kind="stable",
        )
        rows: list[PieceContributionRow] = []
        for piece_id, average, count in frame[["piece_id", "average", "count"]].itertuples(
            index=False, name=None
        ):
            piece = board.get_piece(int(piece_id))
            rows.append(
                PieceContributionRow(
                    piece_id=int(piece_id),
                    shape=piece.name or "-",
                    color=piece.color,
                    column=piece.column,
                    cells=piece.size,
                    contribution=float(average),
                    samples=int(count),
                )
            )
        return rows

    def build_piece_dataframe(self) -> DataFrame:
        rows = self.build_piece_rows()
        data = {
            "Piece": [f"#{row.piece_id}" for row in rows],
            "Shape": [row.shape for row in rows],
            "Color": [row.color for row in rows],
            "Column": [row.column for row in rows],
            "Cells": [row.cells for row in rows],
            "Contribution": [row.contribution for row in rows],
            "Samples": [row.samples for row in rows],
        }
        frame = pd.DataFrame(data)
        pretty = frame.copy()
        pretty["Contribution"] = pretty["Contribution"].map(lambda value: f"{value:.2f}")
        return pretty

    def to_markdown(self, top_n: int | None = None) -> str:
        kpis = self.build_kpis()
        dataframe = self.build_piece_dataframe()
        if top_n is not None:
            dataframe = dataframe.head(top_n)

        highlighted = self._simulation.highlighted_piece
        kpi_lines = [
            "## Overview",
            f"- Iterations completed: **{kpis.total_iterations:,}**",
            f"- Pieces: **{kpis.piece_count}**",
            f"- Reference stack height: **{kpis.reference_height}**",
            f"- Mean replay height: **{kpis.mean_replay_height:.2f}**",
            f"- Sum of contributions: **{kpis.contribution_total:.2f}**",
        ]
        if highlighted is not None:
            kpi_lines.append(f"- Highlighted piece: **#{highlighted}**")

        contribution_section = (
            "## Average Contribution to Height\n"
            "Pieces ordered by estimated Shapley value.\n\n"
            f"{dataframe.to_markdown(index=False)}"
        )

        board_section = "\n".join(
            [
                "## Reference Board",
                "Cells are labelled with the id of the piece occupying them.",
                "",
                "```",
                self._simulation.reference_board.to_text(),
                "```",
            ]
        )

        methodology_section = "\n".join(
            [
                "## Methodology",
                "1. Sample a uniformly random insertion order of all pieces.",
                "2. Drop the pieces in that order onto an empty board, each in its own column.",
                "3. Credit every piece with the stack height it added on arrival.",
                "4. Average each piece's credit over all sampled orders.",
                "5. The averages sum to the mean replay height.",
            ]
        )

        sections = (
            "# Stack Height Shapley Attribution",
            "\n".join(kpi_lines),
            contribution_section,
            board_section,
            methodology_section,
        )
        return "\n\n".join(sections)

    def write_markdown(self, output_path: Path | str, *, top_n: int | None = None) -> None:
        destination = Path(output_path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(self.to_markdown(top_n=top_n), encoding="utf-8")
