import numpy as np
import pytest

from height_shapley import EndEvent, ShapleySimulation, SimulationConfig, StepEvent
from stacking import Board, GenerationPolicy, generate


def step_trace(simulation):
    return [
        (event.piece_id, event.height_after)
        for event in simulation.run_iteration()
        if isinstance(event, StepEvent)
    ]


def test_iterations_are_deterministic(generated_board):
    first = ShapleySimulation(generated_board, seed=13345)
    second = ShapleySimulation(generated_board, seed=13345)
    for _ in range(5):
        assert step_trace(first) == step_trace(second)
    assert first.get_average_contributions() == second.get_average_contributions()


def test_run_iteration_emits_n_plus_two_events(generated_board):
    simulation = ShapleySimulation(generated_board, seed=1)
    events = list(simulation.run_iteration())
    assert len(events) == len(generated_board.pieces) + 2
    assert events[0].iteration == 1
    assert simulation.get_total_iterations() == 1
    assert events[-1].iteration == 1
    assert list(simulation.run_iteration())[0].iteration == 2


def test_run_iteration_is_lazy(generated_board):
    simulation = ShapleySimulation(generated_board, seed=1)
    simulation.run_iteration()
    assert simulation.get_total_iterations() == 0
    assert set(simulation.get_sample_counts().values()) == {0}


def test_conservation_of_averages(generated_board):
    simulation = ShapleySimulation(generated_board, seed=77)
    simulation.run_iterations(40)
    contributions = simulation.get_average_contributions()
    assert set(simulation.get_sample_counts().values()) == {40}
    assert sum(contributions.values()) == pytest.approx(simulation.mean_final_height())


def test_end_event_height_matches_marginals(generated_board):
    simulation = ShapleySimulation(generated_board, seed=5)
    events = list(simulation.run_iteration())
    marginals = [event.marginal for event in events if isinstance(event, StepEvent)]
    end = events[-1]
    assert isinstance(end, EndEvent)
    assert sum(marginals) == end.height == end.board.stack_height


def test_scenario_contributions(scenario_board):
    simulation = ShapleySimulation(scenario_board, seed=0)
    assert simulation.run_permutation((0, 1, 2)) == 3
    assert simulation.get_average_contributions() == {0: 1.0, 1: 0.0, 2: 2.0}
    assert simulation.get_total_iterations() == 1


def test_iteration_order_does_not_change_averages(generated_board):
    ids = generated_board.piece_ids
    first_order = ids
    second_order = tuple(reversed(ids))

    simulation = ShapleySimulation(generated_board, seed=0)
    simulation.run_permutation(first_order)
    simulation.run_permutation(second_order)
    forward = simulation.get_average_contributions()

    simulation.reset()
    simulation.run_permutation(second_order)
    simulation.run_permutation(first_order)
    assert simulation.get_average_contributions() == forward


def test_reset_clears_state(generated_board):
    simulation = ShapleySimulation(generated_board, seed=9)
    simulation.run_iterations(7)
    simulation.reset()
    assert simulation.get_total_iterations() == 0
    assert simulation.get_average_contributions() == dict.fromkeys(generated_board.piece_ids, 0.0)
    assert simulation.mean_final_height() == 0.0


def test_reset_does_not_rewind_sampler(generated_board):
    simulation = ShapleySimulation(generated_board, seed=9)
    simulation.run_iterations(1)
    simulation.reset()
    fresh = ShapleySimulation(generated_board, seed=9)
    fresh.run_iterations(1)
    assert simulation.run_iteration().start().permutation == fresh.run_iteration().start().permutation


def test_reference_board_is_never_mutated(generated_board):
    before = generated_board.grid.copy()
    simulation = ShapleySimulation(generated_board, seed=2)
    simulation.run_iterations(5)
    list(simulation.run_iteration())
    assert np.array_equal(generated_board.grid, before)
    assert np.array_equal(simulation.reference_board.grid, before)
    assert simulation.reference_board is not generated_board


def test_from_seed_offsets_sampler_seed():
    policy = GenerationPolicy(width=6, piece_count=6)
    simulation = ShapleySimulation.from_seed(12345, policy)
    manual = ShapleySimulation(generate(12345, policy), seed=12345 + 1000)
    assert simulation.seed == 13345
    assert step_trace(simulation) == step_trace(manual)


def test_run_batches_resumes_then_restarts(generated_board):
    simulation = ShapleySimulation(generated_board, seed=3, config=SimulationConfig(batch_size=10))
    assert list(simulation.run_batches(25)) == [10, 20, 25]
    assert simulation.get_total_iterations() == 25

    simulation.reset()
    simulation.run_iterations(12)
    assert list(simulation.run_batches(25, batch_size=5)) == [17, 22, 25]

    assert list(simulation.run_batches(25)) == [10, 20, 25]
    assert set(simulation.get_sample_counts().values()) == {25}


def test_highlighted_piece_is_validated(scenario_board):
    simulation = ShapleySimulation(scenario_board, seed=0)
    assert simulation.highlighted_piece is None
    simulation.highlighted_piece = 2
    assert simulation.highlighted_piece == 2
    with pytest.raises(KeyError):
        simulation.highlighted_piece = 42
    simulation.highlighted_piece = None


@pytest.mark.parametrize("seed", ["1", 2.0, None, False])
def test_bad_seed_rejected(scenario_board, seed):
    with pytest.raises(TypeError):
        ShapleySimulation(scenario_board, seed=seed)


def test_empty_board_rejected():
    with pytest.raises(ValueError):
        ShapleySimulation(Board(4, 4), seed=0)


def test_negative_counts_rejected(scenario_board):
    simulation = ShapleySimulation(scenario_board, seed=0)
    with pytest.raises(ValueError):
        simulation.run_iterations(-1)
    with pytest.raises(ValueError):
        list(simulation.run_batches(0))


@pytest.mark.parametrize("seed", [-1, -12345, 2**70])
def test_any_integer_seed_is_accepted(generated_board, seed):
    first = ShapleySimulation(generated_board, seed=seed)
    second = ShapleySimulation(generated_board, seed=seed)
    assert step_trace(first) == step_trace(second)
    assert first.seed == seed


def test_negative_seed_from_seed():
    policy = GenerationPolicy(width=6, piece_count=5)
    simulation = ShapleySimulation.from_seed(-5000, policy)
    assert simulation.seed == -4000
    simulation.run_iterations(3)
    assert simulation.get_total_iterations() == 3


def test_explicit_zero_batch_size_rejected(scenario_board):
    simulation = ShapleySimulation(scenario_board, seed=0)
    with pytest.raises(ValueError, match="batch_size"):
        list(simulation.run_batches(5, batch_size=0))
    assert simulation.get_total_iterations() == 0
