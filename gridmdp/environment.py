"""
Grid-World Environment Model

Core Idea:
    The solver only ever reads an environment through a small contract:
    which cells are blocked, what each cell pays, which cells are terminal,
    and where an attempted move may land. This module defines that contract
    as an abstract base class and provides a configurable grid world that
    satisfies it.

Mathematical Theory:
    The grid world is a finite MDP :math:`\\langle \\mathcal{S}, \\mathcal{A}, P, R \\rangle`:

        - :math:`\\mathcal{S}`: every non-blocked cell (x, y) of the grid
        - :math:`\\mathcal{A}`: the four cardinal directions
        - :math:`P(s'|s,a)`: the attempted direction succeeds with
          probability :math:`1-p`, and slips to each perpendicular
          direction with probability :math:`p/2`
        - :math:`R(s)`: a reward attached to the state itself

    Moving off the grid or into a blocked cell leaves the agent in place.
    Terminal cells are absorbing.

Summary:
    ``EnvironmentModel`` is the read contract consumed by the solver.
    ``GridWorld`` is the reference implementation, built from a
    ``GridWorldConfig`` or from an ASCII map.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple


# =============================================================================
# Type Definitions
# =============================================================================

class Coordinate(NamedTuple):
    """Grid cell (x, y); x grows east, y grows south."""

    x: int
    y: int


class Direction(Enum):
    """
    Cardinal moves, in the fixed order used for tie-breaking.

    Each member's value is its (dx, dy) delta on the grid.
    """

    NORTH = (0, -1)
    SOUTH = (0, 1)
    EAST = (1, 0)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def perpendicular(self) -> Tuple["Direction", "Direction"]:
        """The two directions an agent may slip into when attempting this one."""
        if self in (Direction.NORTH, Direction.SOUTH):
            return Direction.EAST, Direction.WEST
        return Direction.NORTH, Direction.SOUTH

    def apply(self, coordinate: Coordinate) -> Coordinate:
        """Return the neighbouring cell in this direction (bounds unchecked)."""
        return Coordinate(coordinate.x + self.dx, coordinate.y + self.dy)


CARDINAL_DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)
"""All directions in tie-breaking order."""

Transition = Tuple[Coordinate, float]
"""One outcome of an attempted move: (next_state, probability)."""

TransitionDistribution = List[Transition]
"""Outcome distribution of one (state, direction) pair; probabilities sum to 1."""


# =============================================================================
# Abstract Environment Model
# =============================================================================

class EnvironmentModel(ABC):
    """
    Read contract between a grid world and the value iteration solver.

    Implementations must be treated as frozen while a solve is running.
    The solver never mutates them.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        """Number of columns (x extent)."""

    @property
    @abstractmethod
    def height(self) -> int:
        """Number of rows (y extent)."""

    @abstractmethod
    def is_blocked(self, coordinate: Coordinate) -> bool:
        """True if the cell cannot be occupied."""

    @abstractmethod
    def reward(self, coordinate: Coordinate) -> float:
        """
        Immediate reward of a state.

        Must be defined for every non-blocked coordinate, terminals included.
        """

    @abstractmethod
    def transitions(
        self, state: Coordinate, direction: Direction
    ) -> TransitionDistribution:
        """
        Outcome distribution of attempting ``direction`` from ``state``.

        Args:
            state: Current non-blocked cell
            direction: Attempted move

        Returns:
            List of (next_state, probability) pairs summing to 1.
        """

    @abstractmethod
    def is_terminal(self, coordinate: Coordinate) -> bool:
        """True for exactly the two terminal cells."""

    @property
    def states(self) -> List[Coordinate]:
        """Non-blocked cells, scanned column by column."""
        return [
            Coordinate(x, y)
            for x in range(self.width)
            for y in range(self.height)
            if not self.is_blocked(Coordinate(x, y))
        ]

    def in_bounds(self, coordinate: Coordinate) -> bool:
        return 0 <= coordinate.x < self.width and 0 <= coordinate.y < self.height


# =============================================================================
# GridWorld Configuration
# =============================================================================

@dataclass
class GridWorldConfig:
    """
    Layout and reward parameters of a grid world.

    The defaults describe the classic 4×3 world: one blocked cell in the
    middle, a +1 exit in the top-right corner and a -1 exit right below it.

    Attributes:
        width: Number of columns
        height: Number of rows
        blocked: Cells that cannot be occupied
        positive_terminal: Exit cell paying ``positive_reward``
        negative_terminal: Exit cell paying ``negative_reward``
        positive_reward: Reward of the positive terminal
        negative_reward: Reward of the negative terminal
        step_reward: Reward of every other cell
        slip_probability: Total probability of slipping sideways; split
            evenly between the two perpendicular directions
        rewards: Per-cell overrides of ``step_reward`` for non-terminal cells

    Example:
        >>> config = GridWorldConfig(
        ...     width=3, height=1, blocked=[],
        ...     positive_terminal=(2, 0), negative_terminal=(0, 0),
        ...     slip_probability=0.0
        ... )
    """

    width: int = 4
    height: int = 3
    blocked: Sequence[Tuple[int, int]] = field(default_factory=lambda: [(1, 1)])
    positive_terminal: Tuple[int, int] = (3, 0)
    negative_terminal: Tuple[int, int] = (3, 1)
    positive_reward: float = 1.0
    negative_reward: float = -1.0
    step_reward: float = -0.04
    slip_probability: float = 0.2
    rewards: Dict[Tuple[int, int], float] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize coordinates and validate the layout."""
        self.blocked = frozenset(Coordinate(*c) for c in self.blocked)
        self.positive_terminal = Coordinate(*self.positive_terminal)
        self.negative_terminal = Coordinate(*self.negative_terminal)
        self.rewards = {Coordinate(*c): float(r) for c, r in self.rewards.items()}

        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"Grid must be at least 1x1, got: {self.width}x{self.height}"
            )

        if not 0.0 <= self.slip_probability <= 1.0:
            raise ValueError(
                f"Slip probability must be in [0, 1], got: {self.slip_probability}"
            )

        if self.positive_terminal == self.negative_terminal:
            raise ValueError(
                f"Terminals must be distinct, both are: {self.positive_terminal}"
            )

        for name, cell in (
            ("Positive terminal", self.positive_terminal),
            ("Negative terminal", self.negative_terminal),
        ):
            if not self._within(cell):
                raise ValueError(f"{name} out of bounds: {cell}")
            if cell in self.blocked:
                raise ValueError(f"{name} cannot be blocked: {cell}")

        for cell in self.blocked:
            if not self._within(cell):
                raise ValueError(f"Blocked cell out of bounds: {cell}")

        for cell in self.rewards:
            if not self._within(cell) or cell in self.blocked:
                raise ValueError(f"Reward override on an unusable cell: {cell}")
            if cell in (self.positive_terminal, self.negative_terminal):
                raise ValueError(
                    f"Reward override on a terminal, set its terminal reward instead: {cell}"
                )

    def _within(self, cell: Coordinate) -> bool:
        return 0 <= cell.x < self.width and 0 <= cell.y < self.height


# =============================================================================
# GridWorld Environment
# =============================================================================

class GridWorld(EnvironmentModel):
    """
    Stochastic grid world with two absorbing exits.

    Attempted moves succeed with probability ``1 - slip_probability``;
    otherwise the agent slips to one of the two perpendicular directions.
    Moves that would leave the grid or enter a blocked cell keep the agent
    where it is. Outcomes that land on the same cell are merged.

    Visual Representation (default 4×3 world):
        ┌────┬────┬────┬────┐
        │    │    │    │ +1 │   y = 0
        ├────┼────┼────┼────┤
        │    │ ## │    │ -1 │   y = 1
        ├────┼────┼────┼────┤
        │    │    │    │    │   y = 2
        └────┴────┴────┴────┘
    """

    ASCII_BLOCKED = '#'
    ASCII_POSITIVE = '+'
    ASCII_NEGATIVE = '-'
    ASCII_FREE = '.'

    def __init__(self, config: Optional[GridWorldConfig] = None):
        self.config = config or GridWorldConfig()

    @classmethod
    def from_rows(cls, rows: Sequence[str], **kwargs) -> "GridWorld":
        """
        Build a grid world from an ASCII map, one string per row.

        ``#`` marks a blocked cell, ``+`` the positive terminal, ``-`` the
        negative terminal and any other character a free cell. Remaining
        ``GridWorldConfig`` fields are taken from ``kwargs``.

        Raises:
            ValueError: If rows are ragged or a terminal is missing/duplicated.
        """
        if not rows:
            raise ValueError("ASCII map must have at least one row")

        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("ASCII map rows must all have the same length")

        blocked = []
        positives = []
        negatives = []
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                if char == cls.ASCII_BLOCKED:
                    blocked.append((x, y))
                elif char == cls.ASCII_POSITIVE:
                    positives.append((x, y))
                elif char == cls.ASCII_NEGATIVE:
                    negatives.append((x, y))

        if len(positives) != 1 or len(negatives) != 1:
            raise ValueError(
                "ASCII map needs exactly one '+' and one '-' cell, "
                f"got {len(positives)} and {len(negatives)}"
            )

        config = GridWorldConfig(
            width=width,
            height=len(rows),
            blocked=blocked,
            positive_terminal=positives[0],
            negative_terminal=negatives[0],
            **kwargs,
        )
        return cls(config)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def positive_terminal(self) -> Coordinate:
        return self.config.positive_terminal

    @property
    def negative_terminal(self) -> Coordinate:
        return self.config.negative_terminal

    def is_blocked(self, coordinate: Coordinate) -> bool:
        return coordinate in self.config.blocked or not self.in_bounds(coordinate)

    def is_terminal(self, coordinate: Coordinate) -> bool:
        return coordinate in (self.config.positive_terminal, self.config.negative_terminal)

    def reward(self, coordinate: Coordinate) -> float:
        """
        Reward of a non-blocked cell.

        Raises:
            KeyError: If the cell is blocked or outside the grid.
        """
        if self.is_blocked(coordinate):
            raise KeyError(f"No reward for blocked cell: {coordinate}")
        if coordinate == self.config.positive_terminal:
            return self.config.positive_reward
        if coordinate == self.config.negative_terminal:
            return self.config.negative_reward
        return self.config.rewards.get(coordinate, self.config.step_reward)

    def _execute_move(self, state: Coordinate, direction: Direction) -> Coordinate:
        """Deterministic outcome of a move, bouncing off walls and blocked cells."""
        next_state = direction.apply(state)
        if self.is_blocked(next_state):
            return state
        return next_state

    def transitions(
        self, state: Coordinate, direction: Direction
    ) -> TransitionDistribution:
        state = Coordinate(*state)

        # Terminal: absorbing self-loop
        if self.is_terminal(state):
            return [(state, 1.0)]

        slip = self.config.slip_probability
        candidates = [(direction, 1.0 - slip)]
        for side in direction.perpendicular:
            candidates.append((side, slip / 2.0))

        # Merge outcomes that land on the same cell, keeping first-seen order
        merged: Dict[Coordinate, float] = {}
        for move, prob in candidates:
            if prob <= 0.0:
                continue
            next_state = self._execute_move(state, move)
            merged[next_state] = merged.get(next_state, 0.0) + prob

        return list(merged.items())
