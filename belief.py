# belief.py

import numpy as np

from config import ALPHA


def ping_probability(distance, alpha=ALPHA):
    """
    P(ping | target at Manhattan `distance`) = exp(-alpha * (distance - 1)).
    Works elementwise on arrays. Exactly 1 at distance 1 for every alpha.
    """
    return np.exp(-alpha * (np.asarray(distance, dtype=np.float64) - 1.0))


class TargetBelief:
    """
    Probability that the target sits in each cell of the ship, stored over all
    linear indices. Closed cells and the agent's current cell always hold 0;
    the rest sums to 1. Updates are vectorized Bayes' rule in NumPy.
    """

    def __init__(self, env, agent_index, alpha=ALPHA):
        if alpha < 0:
            raise ValueError(f"alpha must be >= 0, got {alpha}")
        self.env = env
        self.alpha = alpha
        self.agent_index = agent_index
        self.open_mask = env.open_cells.copy()
        if self.open_mask.sum() < 2:
            raise ValueError("the ship needs at least two open cells to hide a target")

        # Uniform prior over every open cell except the agent's
        self.reset()

    def distances_from(self, index):
        x, y = self.env.coords(index)
        return np.abs(self.env.xs - x) + np.abs(self.env.ys - y)

    def likelihood(self, pinged):
        """
        P(observation | target at i) for every cell, seen from the agent's
        current cell.
        """
        p = ping_probability(self.distances_from(self.agent_index), self.alpha)
        return p if pinged else 1.0 - p

    def bayesian_update(self, pinged):
        """
        Posterior ∝ likelihood × prior over open cells other than the agent's.
        An observation the model rates impossible everywhere leaves the prior
        untouched.
        """
        posterior = self.likelihood(pinged) * self.belief
        posterior[~self.open_mask] = 0.0
        posterior[self.agent_index] = 0.0
        norm = posterior.sum()
        if norm > 0:
            self.belief = posterior / norm

    def move_agent(self, index):
        """The agent stepped onto `index` without finding the target there."""
        self.agent_index = index
        self.clear(index)

    def clear(self, index):
        """Force the belief at `index` to 0 and renormalize the rest."""
        self.belief[index] = 0.0
        norm = self.belief.sum()
        if norm > 0:
            self.belief /= norm
        else:
            # All mass was on cells now ruled out: fall back to uniform
            self.reset()

    def reset(self):
        prior = self.open_mask.astype(np.float64)
        prior[self.agent_index] = 0.0
        self.belief = prior / prior.sum()

    @property
    def belief_map(self):
        return self.belief.reshape(self.env.grid_size, self.env.grid_size)
