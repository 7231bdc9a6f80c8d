import numpy as np
import pytest

from belief import TargetBelief, ping_probability


def off_agent_total(belief):
    assert belief.belief[belief.agent_index] == 0.0
    return belief.belief.sum()


@pytest.mark.parametrize("alpha", [0.0, 0.1, 1.0, 25.0])
def test_ping_probability_is_one_next_to_target(alpha):
    assert ping_probability(1, alpha) == 1.0


def test_ping_probability_decays_with_distance():
    p = ping_probability(np.arange(1, 10), 0.3)
    assert np.all(np.diff(p) < 0)
    assert p[3] == pytest.approx(np.exp(-0.3 * 3))


def test_alpha_zero_pings_everywhere():
    assert np.all(ping_probability(np.arange(1, 50), 0.0) == 1.0)


def test_uniform_prior(room):
    agent = room.index(1, 1)
    belief = TargetBelief(room, agent, alpha=0.2)
    open_count = room.num_open
    expected = 1.0 / (open_count - 1)
    assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)
    assert belief.belief[room.index(5, 5)] == pytest.approx(expected)
    assert belief.belief[0] == 0.0


@pytest.mark.parametrize("pinged", [True, False])
def test_update_matches_bayes_rule(room, pinged):
    agent = room.index(3, 3)
    alpha = 0.4
    belief = TargetBelief(room, agent, alpha=alpha)
    prior = belief.belief.copy()
    belief.bayesian_update(pinged)

    expected = np.zeros_like(prior)
    for idx in np.flatnonzero(room.open_cells):
        idx = int(idx)
        if idx == agent:
            continue
        p = np.exp(-alpha * (room.manhattan_distance(agent, idx) - 1))
        expected[idx] = (p if pinged else 1 - p) * prior[idx]
    expected /= expected.sum()
    np.testing.assert_allclose(belief.belief, expected, atol=1e-12)


def test_negative_ping_rules_out_adjacent_cells(room):
    agent = room.index(3, 3)
    belief = TargetBelief(room, agent, alpha=0.5)
    belief.bayesian_update(False)
    for nbr in room.neighbors(agent):
        assert belief.belief[nbr] == 0.0
    assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)


def test_impossible_observation_keeps_prior(room):
    # With alpha = 0 a ping is certain, so a silent reading has zero likelihood everywhere
    belief = TargetBelief(room, room.index(2, 2), alpha=0.0)
    before = belief.belief.copy()
    belief.bayesian_update(False)
    np.testing.assert_array_equal(belief.belief, before)


def test_uninformative_ping_leaves_belief_unchanged(room):
    belief = TargetBelief(room, room.index(2, 2), alpha=0.0)
    belief.bayesian_update(True)
    belief.bayesian_update(True)
    assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)
    before = belief.belief.copy()
    belief.bayesian_update(True)
    np.testing.assert_allclose(belief.belief, before, atol=1e-15)


def test_belief_sums_to_one_over_many_updates(ship):
    rng = np.random.default_rng(5)
    open_cells = np.flatnonzero(ship.open_cells)
    agent = int(open_cells[0])
    belief = TargetBelief(ship, agent, alpha=0.15)
    for _ in range(60):
        belief.bayesian_update(bool(rng.random() < 0.5))
        assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)
        nbrs = ship.neighbors(belief.agent_index)
        belief.move_agent(nbrs[int(rng.integers(len(nbrs)))])
        assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)
        assert np.all(belief.belief[~ship.open_cells] == 0.0)


def test_move_agent_clears_new_cell(room):
    belief = TargetBelief(room, room.index(1, 1), alpha=0.1)
    belief.move_agent(room.index(2, 1))
    assert belief.belief[room.index(2, 1)] == 0.0
    assert belief.agent_index == room.index(2, 1)
    assert off_agent_total(belief) == pytest.approx(1.0, abs=1e-9)


def test_clear_last_cell_falls_back_to_uniform(corridor):
    agent = corridor.index(1, 1)
    belief = TargetBelief(corridor, agent, alpha=0.1)
    belief.belief[:] = 0.0
    belief.belief[corridor.index(2, 1)] = 1.0
    belief.move_agent(corridor.index(2, 1))
    assert off_agent_total(belief) == pytest.approx(1.0)
    assert belief.belief[corridor.index(3, 3)] == pytest.approx(0.25)


def test_negative_alpha_rejected(room):
    with pytest.raises(ValueError):
        TargetBelief(room, room.index(1, 1), alpha=-0.1)
