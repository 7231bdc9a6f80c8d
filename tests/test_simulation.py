import math

import numpy as np
import pytest

from environment import Environment
from results import TrialStatus
from simulation import default_options, parse_args, run_simulation, run_trial

SMALL = {"grid_size": 10, "max_cycles": 200}


def test_run_trial_adds_up_steps():
    result = run_trial(np.random.default_rng(0), SMALL)
    assert result.localization.localized
    assert result.tracking is not None
    assert result.steps == result.localization.steps + result.tracking.steps


def test_run_trial_gives_up_after_retries():
    # A zero iteration cap only localizes when the first scan is unique
    rows = ["#####", "#...#", "###.#", "###.#", "#####"]
    env = Environment.from_layout(np.array([[c != '#' for c in r] for r in rows]))
    options = dict(SMALL, max_iterations=0)
    result = None
    for seed in range(20):
        result = run_trial(np.random.default_rng(seed), options, env=env, max_retries=0)
        if result.tracking is None:
            break
    assert result.tracking is None
    assert result.localization.status is TrialStatus.EXHAUSTED
    assert result.attempts == 1
    assert result.steps == result.localization.steps


def test_run_trial_retries_until_localized():
    rows = ["#####", "#...#", "###.#", "###.#", "#####"]
    env = Environment.from_layout(np.array([[c != '#' for c in r] for r in rows]))
    options = dict(SMALL, max_iterations=0)
    result = None
    for seed in range(200):
        result = run_trial(np.random.default_rng(seed), options, env=env, max_retries=5)
        if result.attempts == 2 and result.tracking is not None:
            break
    assert result.attempts == 2
    assert result.localization.localized
    assert result.localization.position == env.index(3, 1)
    assert result.steps == result.localization.steps + result.tracking.steps


def test_run_trial_collects_snapshots():
    snapshots = []
    timings = {}
    run_trial(np.random.default_rng(1), SMALL, timings=timings, snapshots=snapshots)
    titles = [title for title, _ in snapshots]
    assert len(titles) == 3
    assert snapshots[-1][1].belief is not None
    assert set(timings) == {"generation", "localization", "tracking"}


def test_simulation_is_reproducible():
    a = run_simulation(num_trials=4, seed=123, options=SMALL, verbose=False)
    b = run_simulation(num_trials=4, seed=123, options=SMALL, verbose=False)
    assert a["average_steps"] == b["average_steps"]
    assert [r.steps for r in a["results"]] == [r.steps for r in b["results"]]


def test_simulation_summary_counts():
    summary = run_simulation(num_trials=3, seed=5, options=SMALL, verbose=False)
    assert summary["trials"] == 3
    assert len(summary["results"]) == 3
    assert summary["included"] + summary["skipped"] <= 3
    if summary["included"]:
        assert summary["average_steps"] == pytest.approx(
            summary["average_localization_steps"] + summary["average_tracking_steps"])
    else:
        assert math.isnan(summary["average_steps"])


def test_reused_layout_is_shared():
    summary = run_simulation(num_trials=2, seed=9, options=SMALL, reuse_layout=True,
                             verbose=False)
    assert len(summary["results"]) == 2


def test_rejects_zero_trials():
    with pytest.raises(ValueError):
        run_simulation(num_trials=0, verbose=False)


def test_parse_args_overrides():
    args = parse_args(["--trials", "7", "--alpha", "0.3", "--moves", "2", "--no-prune",
                       "--move-policy", "entropy"])
    assert args.trials == 7
    assert args.alpha == 0.3
    assert args.moves == 2
    assert args.no_prune
    assert args.move_policy == "entropy"


def test_default_options_cover_components():
    options = default_options()
    assert options["lookahead"] >= 1
    assert options["pings_per_cycle"] >= 1


def test_exclude_capped_drops_capped_trials():
    options = dict(SMALL, lookahead=1, max_cycles=1)
    summary = run_simulation(num_trials=6, seed=3, options=options, exclude_capped=True,
                             verbose=False)
    results = summary["results"]
    captured = [r for r in results if r.completed]
    assert summary["capped"] > 0
    assert summary["included"] == len(captured)
    assert summary["included"] + summary["skipped"] + summary["capped"] == 6
    if captured:
        assert summary["average_steps"] == pytest.approx(
            sum(r.steps for r in captured) / len(captured))
    else:
        assert math.isnan(summary["average_steps"])


def test_capped_trials_count_by_default():
    options = dict(SMALL, lookahead=1, max_cycles=1)
    summary = run_simulation(num_trials=6, seed=3, options=options, verbose=False)
    assert summary["included"] == summary["trials"] - summary["skipped"]
