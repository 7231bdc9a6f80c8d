# planner.py

import heapq
import itertools

from config import LOOKAHEAD, TIE_BREAK, PLANNER_PRUNE

TIE_BREAKS = ("fifo", "random")


def plan_path(start, belief, env, lookahead=LOOKAHEAD, target=None,
              tie_break=TIE_BREAK, rng=None, prune=PLANNER_PRUNE):
    """
    Best-first search over self-avoiding move sequences of at most `lookahead`
    moves from `start` on a 4-connected grid, scored by the sum of `belief`
    over the visited cells (start included).

    A partial path is finished when it has `lookahead` moves, when it steps on
    `target`, or when it has nowhere left to go. The highest-scoring finished
    path wins; among equal scores the first one finished is kept.

    Returns (steps, score) where `steps` lists the cells to walk through, start
    excluded. `steps` is empty only when `start` has no open neighbour.
    """
    if lookahead < 1:
        raise ValueError(f"lookahead must be >= 1, got {lookahead}")
    if tie_break not in TIE_BREAKS:
        raise ValueError(f"unknown tie_break {tie_break!r}")
    if tie_break == "random" and rng is None:
        raise ValueError("tie_break='random' needs an rng")

    counter = itertools.count()

    def push(score, cell, steps):
        key = float(rng.random()) if tie_break == "random" else 0.0
        heapq.heappush(open_heap, (-score, key, next(counter), cell, steps))

    # No single move can add more than the largest belief value
    top = float(belief.max()) if prune else 0.0

    open_heap = []
    push(float(belief[start]), start, ())
    best_steps = None
    best_score = float("-inf")

    while open_heap:
        neg_score, _, _, cell, steps = heapq.heappop(open_heap)
        score = -neg_score

        if prune and best_steps is not None and \
                score + (lookahead - len(steps)) * top <= best_score:
            continue

        finished = len(steps) == lookahead or cell == target
        if not finished:
            extended = False
            for nbr in env.neighbors(cell):
                if nbr == start or nbr in steps:
                    continue
                push(score + float(belief[nbr]), nbr, steps + (nbr,))
                extended = True
            finished = not extended

        if finished and score > best_score:
            best_steps, best_score = steps, score

    return list(best_steps or ()), best_score
