# plot.py

import matplotlib.pyplot as plt
import numpy as np


def plot_snapshot(snapshot, ax=None, title=None):
    """
    Draw one Snapshot: walls black, open cells white, belief (if any) as a
    heat overlay, candidates as orange dots, agent blue, target green x.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 8))
    open_map = snapshot.open_map
    size = open_map.shape[0]

    ax.imshow(open_map, cmap='gray', vmin=0, vmax=1)

    if snapshot.belief is not None:
        masked = np.ma.masked_where(~open_map, snapshot.belief)
        im = ax.imshow(masked, cmap='hot', alpha=0.6)
        plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04, label='P(target)')
    elif snapshot.values is not None:
        for y, x in np.argwhere(open_map):
            ax.text(x, y, str(snapshot.values[y, x]), ha='center', va='center',
                    fontsize=6, color='red')

    if snapshot.candidates:
        cand = np.array(snapshot.candidates)
        ax.scatter(cand % size, cand // size, c='orange', s=12, label='Candidates')
    if snapshot.agent_index is not None:
        ax.plot(snapshot.agent_index % size, snapshot.agent_index // size, 'bo', label='Agent')
    if snapshot.target_index is not None:
        ax.scatter([snapshot.target_index % size], [snapshot.target_index // size],
                   c='green', marker='x', label='Target')

    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc='upper right')
    if title:
        ax.set_title(title)
    return ax


def save_snapshots(snapshots, filename):
    """Lay out (title, snapshot) pairs side by side and save them to `filename`."""
    fig, axes = plt.subplots(1, len(snapshots), figsize=(8 * len(snapshots), 8), squeeze=False)
    for ax, (title, snapshot) in zip(axes[0], snapshots):
        plot_snapshot(snapshot, ax=ax, title=title)
    plt.tight_layout()
    plt.savefig(filename)
    plt.close(fig)
