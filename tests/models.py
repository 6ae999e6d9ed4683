"""
Hand-built environment models for solver tests.

``TableModel`` answers every query from explicit tables so tests can set up
corridors, self-loops and broken contracts without going through GridWorld.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from gridmdp.environment import Coordinate, Direction, EnvironmentModel


class TableModel(EnvironmentModel):
    """
    Environment model backed by explicit tables.

    Any (state, direction) pair missing from ``table`` stays in place with
    probability 1.
    """

    def __init__(
        self,
        width: int,
        height: int,
        rewards: Dict[Tuple[int, int], float],
        terminals: Iterable[Tuple[int, int]] = (),
        blocked: Iterable[Tuple[int, int]] = (),
        table: Optional[Dict[Tuple[Tuple[int, int], Direction], List[Tuple[Tuple[int, int], float]]]] = None,
    ):
        self._width = width
        self._height = height
        self._rewards = {Coordinate(*c): r for c, r in rewards.items()}
        self._terminals = {Coordinate(*c) for c in terminals}
        self._blocked = {Coordinate(*c) for c in blocked}
        self._table = table or {}

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def is_blocked(self, coordinate):
        return Coordinate(*coordinate) in self._blocked

    def reward(self, coordinate):
        return self._rewards[Coordinate(*coordinate)]

    def is_terminal(self, coordinate):
        return Coordinate(*coordinate) in self._terminals

    def transitions(self, state, direction):
        key = (tuple(state), direction)
        if key in self._table:
            return [(Coordinate(*s), p) for s, p in self._table[key]]
        return [(Coordinate(*state), 1.0)]


def corridor(step_reward: float = 0.0) -> TableModel:
    """
    Deterministic 3×1 corridor with a +1 exit at (2, 0).

    East and West move one cell (West bounces at the left end); North and
    South bump into the walls and stay put.
    """
    table = {}
    # the exit at (2, 0) is absorbing, so only the first two cells move
    for x in range(2):
        table[((x, 0), Direction.EAST)] = [((x + 1, 0), 1.0)]
        table[((x, 0), Direction.WEST)] = [((max(x - 1, 0), 0), 1.0)]
    return TableModel(
        width=3,
        height=1,
        rewards={(0, 0): step_reward, (1, 0): step_reward, (2, 0): 1.0},
        terminals=[(2, 0)],
        table=table,
    )


def self_loop(reward: float) -> TableModel:
    """Single non-terminal cell whose every move bounces back onto itself."""
    return TableModel(width=1, height=1, rewards={(0, 0): reward})
