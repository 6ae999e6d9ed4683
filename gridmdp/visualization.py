"""
Visualization Utilities

Text tables for terminals and logs, matplotlib figures for reports:

- ``render_utilities`` / ``render_policy``: box-drawn ASCII grids
- ``plot_utilities``: utility heatmap with blocked cells masked
- ``plot_convergence``: per-sweep delta against the stopping threshold
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Union

import numpy as np

from .algorithms import PolicyMap, UtilityMap, ValueIterationResult
from .environment import Coordinate, Direction, EnvironmentModel

ARROWS = {
    Direction.NORTH: '↑',
    Direction.SOUTH: '↓',
    Direction.EAST: '→',
    Direction.WEST: '←',
}


def _render_grid(
    environment: EnvironmentModel,
    cell_width: int,
    cell: Callable[[Coordinate], str],
    title: str,
) -> str:
    bar = "─" * cell_width
    lines = [title]
    lines.append("┌" + (bar + "┬") * (environment.width - 1) + bar + "┐")

    for y in range(environment.height):
        row = "│"
        for x in range(environment.width):
            coordinate = Coordinate(x, y)
            if environment.is_blocked(coordinate):
                text = "#" * min(2, cell_width)
            else:
                text = cell(coordinate)
            row += text.center(cell_width) + "│"
        lines.append(row)

        if y < environment.height - 1:
            lines.append("├" + (bar + "┼") * (environment.width - 1) + bar + "┤")

    lines.append("└" + (bar + "┴") * (environment.width - 1) + bar + "┘")
    return "\n".join(lines)


def render_utilities(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    stream: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Render utilities as an ASCII grid.

    Args:
        utilities: Utility map to show
        environment: Environment providing the grid layout
        stream: Optional output function (e.g. ``print``)

    Returns:
        Rendered string representation.
    """
    result = _render_grid(
        environment,
        cell_width=8,
        cell=lambda c: f"{utilities[c]:.3f}" if c in utilities else "",
        title="Utilities:",
    )
    if stream is not None:
        stream(result)
    return result


def render_policy(
    policy: PolicyMap,
    environment: EnvironmentModel,
    stream: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Render a policy as an ASCII grid of arrows.

    Terminal cells show ``+`` or ``-`` by the sign of their reward.
    """
    def cell(coordinate: Coordinate) -> str:
        if environment.is_terminal(coordinate):
            return "+" if environment.reward(coordinate) >= 0 else "-"
        direction = policy.get(coordinate)
        return ARROWS[direction] if direction is not None else ""

    result = _render_grid(environment, cell_width=3, cell=cell, title="Policy:")
    if stream is not None:
        stream(result)
    return result


def utility_array(utilities: UtilityMap, environment: EnvironmentModel) -> np.ndarray:
    """Utilities as a (height, width) array, NaN on blocked cells."""
    grid = np.full((environment.height, environment.width), np.nan)
    for coordinate, value in utilities.items():
        grid[coordinate.y, coordinate.x] = value
    return grid


def plot_utilities(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    ax: Optional[Any] = None,
    cmap: str = "RdYlGn",
    save_path: Optional[Union[str, Path]] = None,
    show: bool = False,
) -> Any:
    """
    Heatmap of utilities with each cell annotated.

    Args:
        utilities: Utility map to plot
        environment: Environment providing the grid layout
        ax: Axes to draw on; a new figure is created if None
        cmap: Matplotlib colormap name
        save_path: Path to save figure
        show: Whether to display plot

    Returns:
        The matplotlib Axes drawn on.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError(
            "matplotlib required for plotting. "
            "Install with: pip install matplotlib"
        )

    if ax is None:
        _, ax = plt.subplots(figsize=(1.2 * environment.width + 1, 1.2 * environment.height))

    grid = np.ma.masked_invalid(utility_array(utilities, environment))
    image = ax.imshow(grid, cmap=cmap, interpolation="nearest")
    ax.figure.colorbar(image, ax=ax, label="Utility")

    for coordinate, value in utilities.items():
        label = f"{value:.2f}"
        if environment.is_terminal(coordinate):
            label = f"[{label}]"
        ax.text(coordinate.x, coordinate.y, label, ha="center", va="center", fontsize=9)

    ax.set_xticks(range(environment.width))
    ax.set_yticks(range(environment.height))
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title("State Utilities")

    if save_path is not None:
        ax.figure.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()

    return ax


def plot_convergence(
    result: ValueIterationResult,
    ax: Optional[Any] = None,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = False,
) -> Any:
    """
    Semilog plot of the largest utility change of every sweep.

    Args:
        result: Value iteration result holding the delta history
        ax: Axes to draw on; a new figure is created if None
        save_path: Path to save figure
        show: Whether to display plot

    Returns:
        The matplotlib Axes drawn on.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError(
            "matplotlib required for plotting. "
            "Install with: pip install matplotlib"
        )

    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))

    sweeps = np.arange(1, len(result.deltas) + 1)
    # log scale cannot show an exact zero delta
    deltas = np.maximum(result.deltas, np.finfo(float).tiny)

    ax.semilogy(sweeps, deltas, color="blue", linewidth=1.5, label="Sweep delta")
    ax.axhline(result.threshold, color="red", linestyle="--", label="Stopping threshold")
    ax.set_xlabel("Sweep")
    ax.set_ylabel("max |U' - U|")
    ax.set_title(f"Value Iteration Convergence ({result.iterations} sweeps)")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3, linestyle="--")

    if save_path is not None:
        ax.figure.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()

    return ax
