# tracker.py

import logging

import numpy as np

from belief import TargetBelief, ping_probability
from config import (
    ALPHA, LOOKAHEAD, PINGS_PER_CYCLE, MOVES_PER_CYCLE, MAX_TRACK_CYCLES,
    TIE_BREAK, PLANNER_PRUNE
)
from planner import plan_path
from randomized_set import RandomizedSet
from results import Snapshot, TrackingResult, TrialStatus

logger = logging.getLogger(__name__)


class Tracker:
    """
    Hunts a stationary target from a known agent cell.

    Each cycle:
      1) ping `pings_per_cycle` times, updating the target belief after each
      2) plan a path of at most `lookahead` moves through high-belief cells
      3) walk up to `moves_per_cycle` cells of it (the whole path if None),
         stopping the trial as soon as the agent steps on the target

    Every ping and every cell walked costs one step.
    """

    def __init__(self, env, agent_index, rng=None, target=None,
                 alpha=ALPHA,
                 lookahead=LOOKAHEAD,
                 pings_per_cycle=PINGS_PER_CYCLE,
                 moves_per_cycle=MOVES_PER_CYCLE,
                 max_cycles=MAX_TRACK_CYCLES,
                 tie_break=TIE_BREAK,
                 prune=PLANNER_PRUNE):
        if lookahead < 1:
            raise ValueError(f"lookahead must be >= 1, got {lookahead}")
        if pings_per_cycle < 1:
            raise ValueError(f"pings_per_cycle must be >= 1, got {pings_per_cycle}")
        if moves_per_cycle is not None and moves_per_cycle < 1:
            raise ValueError(f"moves_per_cycle must be >= 1 or None, got {moves_per_cycle}")
        if not env.is_open(agent_index):
            raise ValueError(f"agent cell {agent_index} is not open")

        self.env = env
        self.rng = rng if rng is not None else np.random.default_rng()
        self.alpha = alpha
        self.lookahead = lookahead
        self.pings_per_cycle = pings_per_cycle
        self.moves_per_cycle = moves_per_cycle
        self.max_cycles = max_cycles
        self.tie_break = tie_break
        self.prune = prune

        self.position = agent_index
        if target is None:
            target = env.random_open_cell(self.rng, exclude=agent_index)
        elif target == agent_index or not env.is_open(target):
            raise ValueError(f"target cell {target} must be open and differ from the agent's")
        self.target = target

        self.belief = TargetBelief(env, agent_index, alpha)
        self.steps = 0
        self.cycles = 0

    def run(self):
        while self.cycles < self.max_cycles:
            self.cycles += 1
            for _ in range(self.pings_per_cycle):
                self.ping()
            if self.move():
                logger.debug("Captured target %d after %d steps (%d cycles)",
                             self.target, self.steps, self.cycles)
                return TrackingResult(TrialStatus.CAPTURED, self.steps, self.cycles, self.position)

        logger.warning("Tracking did not converge within %d cycles (%d steps)",
                       self.max_cycles, self.steps)
        return TrackingResult(TrialStatus.NON_CONVERGENT, self.steps, self.cycles, self.position)

    def ping(self):
        """Noisy proximity reading followed by a belief update."""
        self.steps += 1
        distance = self.env.manhattan_distance(self.position, self.target)
        pinged = bool(self.rng.random() < ping_probability(distance, self.alpha))
        self.belief.bayesian_update(pinged)
        return pinged

    def plan(self):
        path, _ = plan_path(self.position, self.belief.belief, self.env,
                            lookahead=self.lookahead, target=self.target,
                            tie_break=self.tie_break, rng=self.rng, prune=self.prune)
        if not path:
            # Raises EmptySetError when the agent is walled in
            legal = RandomizedSet(self.env.neighbors(self.position))
            path = [legal.random_element(self.rng)]
        return path

    def move(self):
        """
        Plan and walk the path. Returns True once the target is reached. Each
        cell walked is cleared from the belief right away, not only where the
        path ends.
        """
        path = self.plan()
        if self.moves_per_cycle is not None:
            path = path[:self.moves_per_cycle]
        for cell in path:
            self.steps += 1
            self.position = cell
            if cell == self.target:
                return True
            self.belief.move_agent(cell)
        return False

    def snapshot(self):
        return Snapshot(open_map=Snapshot.frozen(self.env.open_map),
                        agent_index=self.position,
                        belief=Snapshot.frozen(self.belief.belief_map),
                        target_index=self.target)
