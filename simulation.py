# simulation.py

import argparse
import logging
import math
import os
import time

import numpy as np

import config
from environment import Environment
from localizer import Localizer
from plot import save_snapshots
from results import TrialResult
from tracker import Tracker

logger = logging.getLogger(__name__)

ENV_OPTIONS = ("grid_size", "dead_end_fraction")
LOCALIZER_OPTIONS = ("signature_mode", "move_policy", "history_limit", "max_iterations")
TRACKER_OPTIONS = ("alpha", "lookahead", "pings_per_cycle", "moves_per_cycle",
                   "max_cycles", "tie_break", "prune")


def default_options():
    """Component options as set in config.py."""
    return {
        "grid_size": config.GRID_SIZE,
        "dead_end_fraction": config.DEAD_END_FRACTION,
        "signature_mode": config.SIGNATURE_MODE,
        "move_policy": config.MOVE_POLICY,
        "history_limit": config.MOVE_HISTORY_LIMIT,
        "max_iterations": config.MAX_LOCALIZE_ITERATIONS,
        "alpha": config.ALPHA,
        "lookahead": config.LOOKAHEAD,
        "pings_per_cycle": config.PINGS_PER_CYCLE,
        "moves_per_cycle": config.MOVES_PER_CYCLE,
        "max_cycles": config.MAX_TRACK_CYCLES,
        "tie_break": config.TIE_BREAK,
        "prune": config.PLANNER_PRUNE,
    }


def _pick(options, keys):
    return {k: options[k] for k in keys if k in options}


def setup_logging(level=logging.INFO, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w'))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        handlers=handlers,
    )


def run_trial(rng, options=None, env=None, max_retries=config.MAX_TRIAL_RETRIES,
              timings=None, snapshots=None):
    """
    One trial: build (or reuse) a ship, localize the agent, then track the
    target. An exhausted localization is retried with fresh draws from `rng`
    up to `max_retries` times; after that the trial is returned without a
    tracking result.

    `timings` (dict) accumulates seconds per phase; `snapshots` (list)
    collects (title, Snapshot) pairs for rendering.
    """
    options = dict(default_options(), **(options or {}))
    if timings is None:
        timings = {}

    attempts = 0
    while True:
        attempts += 1
        t0 = time.time()
        ship = env if env is not None else Environment(rng=rng, **_pick(options, ENV_OPTIONS))
        t1 = time.time()
        localizer = Localizer(ship, rng=rng, **_pick(options, LOCALIZER_OPTIONS))
        localization = localizer.run()
        t2 = time.time()
        timings["generation"] = timings.get("generation", 0.0) + (t1 - t0)
        timings["localization"] = timings.get("localization", 0.0) + (t2 - t1)

        if localization.localized:
            break
        if attempts > max_retries:
            logger.warning("Giving up on trial after %d exhausted localizations", attempts)
            return TrialResult(localization, None, attempts)
        logger.info("Localization exhausted, retrying (attempt %d of %d)",
                    attempts + 1, max_retries + 1)

    if snapshots is not None:
        snapshots.append(("Ship (open-neighbour counts)", ship.snapshot()))
        snapshots.append(("Localized agent (signatures)", localizer.snapshot()))

    t3 = time.time()
    tracker = Tracker(ship, localization.position, rng=rng, **_pick(options, TRACKER_OPTIONS))
    tracking = tracker.run()
    timings["tracking"] = timings.get("tracking", 0.0) + (time.time() - t3)

    if snapshots is not None:
        snapshots.append(("Final belief", tracker.snapshot()))
    return TrialResult(localization, tracking, attempts)


def run_simulation(num_trials=config.NUM_TRIALS, seed=config.SEED, options=None,
                   reuse_layout=config.REUSE_LAYOUT, exclude_capped=config.EXCLUDE_CAPPED,
                   max_retries=config.MAX_TRIAL_RETRIES, plot_dir=None, verbose=True):
    """
    Run `num_trials` independent trials and return a summary dict with the
    average step count. Every trial gets its own Generator spawned from one
    SeedSequence, so a given seed always reproduces the same results.
    """
    if num_trials < 1:
        raise ValueError(f"num_trials must be >= 1, got {num_trials}")
    start_time = time.time()
    options = dict(default_options(), **(options or {}))

    root = np.random.SeedSequence(seed)
    layout_seq, *trial_seqs = root.spawn(num_trials + 1)

    env = None
    if reuse_layout:
        env = Environment(rng=np.random.default_rng(layout_seq), **_pick(options, ENV_OPTIONS))

    timings = {}
    results = []
    for i, seq in enumerate(trial_seqs):
        snapshots = [] if (plot_dir and i == 0) else None
        result = run_trial(np.random.default_rng(seq), options, env=env,
                           max_retries=max_retries, timings=timings, snapshots=snapshots)
        results.append(result)
        if snapshots:
            os.makedirs(plot_dir, exist_ok=True)
            save_snapshots(snapshots, os.path.join(plot_dir, 'trial_000.png'))

    skipped = [r for r in results if r.tracking is None]
    capped = [r for r in results if r.tracking is not None and not r.completed]
    included = [r for r in results
                if r.completed or (r.tracking is not None and not exclude_capped)]
    total_steps = sum(r.steps for r in included)
    average = total_steps / len(included) if included else math.nan

    summary = {
        "trials": num_trials,
        "included": len(included),
        "skipped": len(skipped),
        "capped": len(capped),
        "average_steps": average,
        "average_localization_steps": (
            sum(r.localization.steps for r in included) / len(included) if included else math.nan),
        "average_tracking_steps": (
            sum(r.tracking.steps for r in included) / len(included) if included else math.nan),
        "timings": timings,
        "results": results,
    }

    if not included:
        logger.warning("No trial produced a usable step count")

    if verbose:
        print("\n=== Simulation Summary ===")
        print(f"  Trials: {num_trials}")
        print(f"  Included in average: {len(included)}")
        print(f"  Skipped (localization exhausted): {len(skipped)}")
        print(f"  Tracking capped: {len(capped)}")
        print(f"  Average Localization Steps: {summary['average_localization_steps']:.2f}")
        print(f"  Average Tracking Steps: {summary['average_tracking_steps']:.2f}")
        print(f"Average Time Steps: {average:.2f}")

        print("\nPerformance Breakdown:")
        print(f"  Generation Time: {timings.get('generation', 0.0):.2f}s")
        print(f"  Localization Time: {timings.get('localization', 0.0):.2f}s")
        print(f"  Tracking Time: {timings.get('tracking', 0.0):.2f}s")
        print(f"Total Simulation Time: {time.time() - start_time:.2f}s")
    return summary


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Localize-then-track ship search simulation")
    parser.add_argument("--trials", type=int, default=config.NUM_TRIALS, help="number of trials")
    parser.add_argument("--seed", type=int, default=config.SEED, help="root random seed")
    parser.add_argument("--grid-size", type=int, default=config.GRID_SIZE, help="ship side length")
    parser.add_argument("--dead-end-fraction", type=float, default=config.DEAD_END_FRACTION)
    parser.add_argument("--reuse-layout", action="store_true", default=config.REUSE_LAYOUT,
                        help="generate one ship and reuse it for every trial")
    parser.add_argument("--signature-mode", choices=("count", "pattern"), default=config.SIGNATURE_MODE)
    parser.add_argument("--move-policy", choices=("distinct", "entropy", "random"),
                        default=config.MOVE_POLICY)
    parser.add_argument("--history-limit", type=int, default=config.MOVE_HISTORY_LIMIT)
    parser.add_argument("--max-iterations", type=int, default=config.MAX_LOCALIZE_ITERATIONS,
                        help="localization iteration cap")
    parser.add_argument("--alpha", type=float, default=config.ALPHA, help="ping sensitivity")
    parser.add_argument("--lookahead", type=int, default=config.LOOKAHEAD, help="max moves per plan (M)")
    parser.add_argument("--pings", type=int, default=config.PINGS_PER_CYCLE, help="pings per cycle (N)")
    parser.add_argument("--moves", type=int, default=config.MOVES_PER_CYCLE,
                        help="path steps walked per cycle (default: whole path)")
    parser.add_argument("--max-cycles", type=int, default=config.MAX_TRACK_CYCLES,
                        help="tracking cycle cap")
    parser.add_argument("--tie-break", choices=("fifo", "random"), default=config.TIE_BREAK)
    parser.add_argument("--no-prune", action="store_true", help="disable planner pruning")
    parser.add_argument("--max-retries", type=int, default=config.MAX_TRIAL_RETRIES)
    parser.add_argument("--exclude-capped", action="store_true", default=config.EXCLUDE_CAPPED,
                        help="leave non-convergent tracking runs out of the average")
    parser.add_argument("--plot-dir", default=None, help="save snapshots of the first trial here")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    options = {
        "grid_size": args.grid_size,
        "dead_end_fraction": args.dead_end_fraction,
        "signature_mode": args.signature_mode,
        "move_policy": args.move_policy,
        "history_limit": args.history_limit,
        "max_iterations": args.max_iterations,
        "alpha": args.alpha,
        "lookahead": args.lookahead,
        "pings_per_cycle": args.pings,
        "moves_per_cycle": args.moves,
        "max_cycles": args.max_cycles,
        "tie_break": args.tie_break,
        "prune": not args.no_prune,
    }
    logger.info("Running %d trials on a %dx%d ship (alpha=%.3f)",
                args.trials, args.grid_size, args.grid_size, args.alpha)
    return run_simulation(num_trials=args.trials, seed=args.seed, options=options,
                          reuse_layout=args.reuse_layout, exclude_capped=args.exclude_capped,
                          max_retries=args.max_retries, plot_dir=args.plot_dir)


if __name__ == "__main__":
    main()
