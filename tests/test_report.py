import pytest

from height_shapley import ContributionReport, ShapleySimulation


@pytest.fixture
def scenario_simulation(scenario_board):
    simulation = ShapleySimulation(scenario_board, seed=0)
    simulation.run_permutation((0, 1, 2))
    return simulation


def test_rows_sorted_by_contribution(scenario_simulation):
    rows = ContributionReport(scenario_simulation).build_piece_rows()
    assert [row.piece_id for row in rows] == [2, 0, 1]
    assert rows[0].contribution == 2.0
    assert rows[0].shape == "C"
    assert rows[0].samples == 1


def test_kpis(scenario_simulation):
    kpis = ContributionReport(scenario_simulation).build_kpis()
    assert kpis.total_iterations == 1
    assert kpis.piece_count == 3
    assert kpis.reference_height == 0
    assert kpis.mean_replay_height == 3.0
    assert kpis.contribution_total == 3.0


def test_markdown_sections(scenario_simulation):
    scenario_simulation.highlighted_piece = 1
    markdown = ContributionReport(scenario_simulation).to_markdown()
    assert markdown.startswith("# Stack Height Shapley Attribution")
    assert "## Average Contribution to Height" in markdown
    assert "## Reference Board" in markdown
    assert "Highlighted piece: **#1**" in markdown
    assert "#2" in markdown
    assert "2.00" in markdown


def test_top_n_limits_table(scenario_simulation):
    table = ContributionReport(scenario_simulation).build_piece_dataframe().head(1)
    markdown = ContributionReport(scenario_simulation).to_markdown(top_n=1)
    assert table.to_markdown(index=False) in markdown
    assert "| #0 " not in markdown


def test_write_markdown_creates_directories(scenario_simulation, tmp_path):
    destination = tmp_path / "nested" / "report.md"
    ContributionReport(scenario_simulation).write_markdown(destination)
    assert destination.read_text(encoding="utf-8").startswith("# Stack Height")


def test_report_requires_simulation():
    with pytest.raises(TypeError):
        ContributionReport(object())


def test_rows_follow_accumulator_frame(generated_board):
    simulation = ShapleySimulation(generated_board, seed=31)
    simulation.run_iterations(10)
    rows = ContributionReport(simulation).build_piece_rows()
    frame = simulation.accumulator.to_dataframe().set_index("piece_id")
    assert [row.contribution for row in rows] == sorted(frame["average"], reverse=True)
    for row in rows:
        assert row.contribution == frame.loc[row.piece_id, "average"]
        assert row.samples == frame.loc[row.piece_id, "count"] == 10
