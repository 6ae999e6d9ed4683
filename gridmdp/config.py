"""
Solver Configuration

Core Idea:
    Keep every numeric knob of value iteration in one validated dataclass so
    runs are reproducible and configs can be stored next to their results.

Mathematical Theory:
    Value iteration stops once the largest utility change of a sweep is small
    enough that the current utilities are within :math:`\\epsilon` of the
    optimum:

    .. math::
        \\delta \\leq \\epsilon \\frac{1 - \\gamma}{\\gamma}

    For :math:`\\gamma = 1` this bound collapses to zero, which floating-point
    noise may never reach, so the absolute bound :math:`\\delta \\leq \\epsilon`
    is used instead.

    The backup is a :math:`\\gamma`-contraction, so the delta of sweep
    :math:`k` is at most :math:`\\gamma^{k-1} \\delta_1`. Unless a limit is
    given, the sweep limit is the first :math:`k` at which that bound falls
    below the stopping threshold.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from .errors import DegenerateDiscountError

GAMMA = 0.9
"""Default discount factor."""

EPSILON = 1e-6
"""Default convergence tolerance."""

MAX_SWEEPS = 10_000
"""Sweep limit for undiscounted runs, which have no contraction bound."""

SWEEP_MARGIN = 10
"""Extra sweeps allowed beyond the contraction bound for rounding noise."""


@dataclass
class SolverConfig:
    """
    Hyperparameters of value iteration.

    Attributes:
        gamma: Discount factor in (0, 1]
        epsilon: Convergence tolerance on the utilities
        max_sweeps: Sweep limit guarding against non-contracting models;
            None derives it from gamma (``MAX_SWEEPS`` when gamma is 1)
        raise_on_nonconvergence: Raise ``NonConvergenceError`` when the limit
            is hit; otherwise return the last utilities flagged unconverged

    Example:
        >>> config = SolverConfig(gamma=0.9)
        >>> config.validate()
        >>> round(config.stopping_threshold, 9)
        1.11e-07
    """

    gamma: float = GAMMA
    epsilon: float = EPSILON
    max_sweeps: Optional[int] = None
    raise_on_nonconvergence: bool = True

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            DegenerateDiscountError: If gamma is not in (0, 1].
            ValueError: If epsilon or max_sweeps is not positive.
        """
        if not 0.0 < self.gamma <= 1.0:
            raise DegenerateDiscountError(self.gamma)

        if not self.epsilon > 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")

        if self.max_sweeps is not None and self.max_sweeps <= 0:
            raise ValueError(f"max_sweeps must be positive, got {self.max_sweeps}")

    @property
    def stopping_threshold(self) -> float:
        """Largest sweep delta at which iteration is considered converged."""
        self.validate()
        if self.gamma == 1.0:
            return self.epsilon
        return self.epsilon * (1.0 - self.gamma) / self.gamma

    def sweep_limit(self, initial_delta_bound: float) -> int:
        """
        Number of sweeps after which iteration is declared non-convergent.

        Args:
            initial_delta_bound: Upper bound on the delta of the first sweep,
                e.g. ``max|R| + 2 * max|U_0|``

        Returns:
            ``max_sweeps`` when set, ``MAX_SWEEPS`` for gamma = 1, otherwise
            the contraction bound plus ``SWEEP_MARGIN``.

        Example:
            >>> SolverConfig(gamma=0.5, epsilon=1e-3).sweep_limit(1.0)
            21
        """
        threshold = self.stopping_threshold
        if self.max_sweeps is not None:
            return self.max_sweeps
        if self.gamma == 1.0:
            return MAX_SWEEPS
        if initial_delta_bound <= threshold:
            return 1 + SWEEP_MARGIN

        needed = math.ceil(math.log(threshold / initial_delta_bound) / math.log(self.gamma))
        return needed + 1 + SWEEP_MARGIN

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, path: str) -> None:
        """Save configuration to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolverConfig":
        """
        Build a config from a dict, rejecting keys that are not fields.

        Raises:
            ValueError: On unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown SolverConfig keys: {unknown}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: str) -> "SolverConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)
