# localizer.py

import logging
from collections import deque

import numpy as np
from scipy import ndimage

from config import SIGNATURE_MODE, MOVE_POLICY, MOVE_HISTORY_LIMIT, MAX_LOCALIZE_ITERATIONS
from randomized_set import RandomizedSet
from results import LocalizationResult, Snapshot, TrialStatus

logger = logging.getLogger(__name__)

# Signature reported for closed cells, in every mode
WALL_SIGNATURE = -1

_COUNT_KERNEL = np.array([[1, 1, 1],
                          [1, 0, 1],
                          [1, 1, 1]])
# One bit per Moore neighbour, clockwise from north-west
_PATTERN_KERNEL = np.array([[1, 2, 4],
                            [128, 0, 8],
                            [64, 32, 16]])


def compute_signatures(open_map, mode=SIGNATURE_MODE):
    """
    Local scan value of every cell, flattened to linear indices.

    "count":   number of closed cells among the 8 Moore neighbours (0..8)
    "pattern": 8-bit mask of which Moore neighbours are open (0..255)

    Closed cells always read WALL_SIGNATURE.
    """
    open_int = np.asarray(open_map, dtype=np.int64)
    if mode == "count":
        signatures = 8 - ndimage.correlate(open_int, _COUNT_KERNEL, mode="constant", cval=0)
    elif mode == "pattern":
        signatures = ndimage.correlate(open_int, _PATTERN_KERNEL, mode="constant", cval=0)
    else:
        raise ValueError(f"unknown signature mode {mode!r}")
    signatures[~np.asarray(open_map, dtype=bool)] = WALL_SIGNATURE
    return signatures.reshape(-1)


# --- Move selection policies ---

def _unseen_neighbor_signatures(candidates, seen, signatures, step):
    return [signatures[c + step] for c in candidates if (c + step) not in seen]


def _pick_strict_best(directions, scores, rng):
    """Direction with the strictly highest score; any tie → uniform random direction."""
    scores = np.asarray(scores, dtype=float)
    best = scores.max()
    winners = np.flatnonzero(np.isclose(scores, best))
    if winners.size == 1:
        return directions[int(winners[0])]
    return directions[int(rng.integers(len(directions)))]


def most_distinct_move(candidates, seen, signatures, directions, rng):
    """Score each direction by how many distinct signatures its unseen neighbours show."""
    scores = [len(set(_unseen_neighbor_signatures(candidates, seen, signatures, step)))
              for step in directions]
    return _pick_strict_best(directions, scores, rng)


def max_entropy_move(candidates, seen, signatures, directions, rng):
    """Score each direction by the Shannon entropy of its unseen neighbours' signatures."""
    scores = []
    for step in directions:
        observed = _unseen_neighbor_signatures(candidates, seen, signatures, step)
        if not observed:
            scores.append(0.0)
            continue
        _, counts = np.unique(observed, return_counts=True)
        p = counts / counts.sum()
        scores.append(float(-(p * np.log2(p)).sum()))
    return _pick_strict_best(directions, scores, rng)


def random_move(candidates, seen, signatures, directions, rng):
    return directions[int(rng.integers(len(directions)))]


MOVE_POLICIES = {
    "distinct": most_distinct_move,
    "entropy": max_entropy_move,
    "random": random_move,
}


class Localizer:
    """
    Finds the agent's own cell on a known ship.

    The agent only senses its local signature and whether a move went through.
    It keeps:
      - position: true cell (hidden from the decision logic, advanced by move())
      - candidates: cells consistent with every scan and move outcome so far
      - seen: cells no longer worth counting when scoring moves
      - move_history: recent moves that may not be repeated
      - steps: one per scan and one per move

    The true position stays in `candidates` until a single cell is left.
    """

    def __init__(self, env, rng=None, start=None,
                 signature_mode=SIGNATURE_MODE,
                 move_policy=MOVE_POLICY,
                 history_limit=MOVE_HISTORY_LIMIT,
                 max_iterations=MAX_LOCALIZE_ITERATIONS):
        if move_policy not in MOVE_POLICIES:
            raise ValueError(f"unknown move policy {move_policy!r}")
        if not 0 <= history_limit < len(env.directions):
            raise ValueError(f"history_limit must be in [0, {len(env.directions)}), got {history_limit}")
        self.env = env
        self.rng = rng if rng is not None else np.random.default_rng()
        self.signature_mode = signature_mode
        self.select_move = MOVE_POLICIES[move_policy]
        self.max_iterations = max_iterations
        self.move_history = deque(maxlen=history_limit)

        self.candidates = RandomizedSet()
        self.seen = RandomizedSet()
        self.signatures = None
        self.steps = 0

        if start is None:
            start = self._place_agent()
        elif not env.is_open(start):
            raise ValueError(f"start cell {start} is not open")
        self.position = start

    def _place_agent(self):
        while True:
            cell = self.env.random_interior_cell(self.rng)
            if self.env.is_open(cell):
                return cell

    def run(self):
        """Localize until one candidate is left or the iteration cap is hit."""
        history = [self.start()]
        iterations = 0
        while len(self.candidates) > 1 and iterations < self.max_iterations:
            history.append(self.iterate())
            iterations += 1

        if len(self.candidates) == 1:
            resolved = next(iter(self.candidates))
            logger.debug("Localized at %d after %d steps (%d iterations)",
                         resolved, self.steps, iterations)
            return LocalizationResult(TrialStatus.LOCALIZED, resolved, self.steps, history)

        logger.warning("Localization exhausted after %d iterations: %d candidates left",
                       iterations, len(self.candidates))
        return LocalizationResult(TrialStatus.EXHAUSTED, None, self.steps, history)

    def start(self):
        """Compute signatures, take the first scan and seed the candidate set."""
        self.signatures = compute_signatures(self.env.open_map, self.signature_mode)
        reading = self.scan()
        self.candidates = RandomizedSet(int(c) for c in np.flatnonzero(self.signatures == reading))
        return len(self.candidates)

    def iterate(self):
        """One move followed by one scan. Returns the new candidate count."""
        self.move()
        self.filter_candidates(self.scan())
        return len(self.candidates)

    def scan(self):
        self.steps += 1
        return int(self.signatures[self.position])

    def filter_candidates(self, reading):
        mismatched = [c for c in self.candidates if self.signatures[c] != reading]
        self.candidates.difference(mismatched)

    def choose_move(self):
        step = self.select_move(self.candidates, self.seen, self.signatures,
                                self.env.directions, self.rng)
        while step in self.move_history:
            step = self.env.directions[int(self.rng.integers(len(self.env.directions)))]
        self.move_history.append(step)
        return step

    def move(self):
        """
        Try to move the agent one cell and keep only the candidates for which
        the same move has the same outcome. Returns True if the agent moved.
        """
        self.steps += 1
        step = self.choose_move()
        moved = self.env.is_open(self.position + step)

        mismatched = RandomizedSet()
        for c in self.candidates:
            if self.env.is_open(c + step) != moved:
                mismatched.add(c)
                self.seen.add(c + step)
        self.candidates.difference(mismatched)

        if moved:
            self.seen.union(self.candidates)
            self.position += step
            self.candidates.shift_all(step)
        return moved

    def snapshot(self):
        values = None
        if self.signatures is not None:
            values = self.signatures.reshape(self.env.grid_size, self.env.grid_size)
        return Snapshot(open_map=Snapshot.frozen(self.env.open_map),
                        agent_index=self.position,
                        values=Snapshot.frozen(values),
                        candidates=list(self.candidates))
