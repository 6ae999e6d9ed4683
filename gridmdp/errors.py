"""
Solver Exceptions

Every error raised by the solver derives from :class:`MDPError`, so callers
can catch the whole family at the planning boundary. None of them occur
against a well-formed environment model.
"""

from __future__ import annotations

from typing import Any, Optional


class MDPError(Exception):
    """Base class for all grid-world MDP solver errors."""


class ContractViolationError(MDPError):
    """
    The environment model broke its read contract.

    Raised when a transition leads to a coordinate outside the utility map
    (e.g. a blocked cell), when a reward is missing for a state of the state
    space, or when a seed utility map does not cover exactly the state space.

    Attributes:
        coordinate: Offending coordinate, if a single one is to blame.
    """

    def __init__(self, message: str, coordinate: Optional[Any] = None):
        super().__init__(message)
        self.coordinate = coordinate


class NonConvergenceError(MDPError):
    """
    Value iteration exceeded its sweep limit without meeting the stopping bound.

    Attributes:
        sweeps: Number of sweeps performed.
        delta: Largest utility change observed in the last sweep.
        threshold: Stopping bound that was not reached.
    """

    def __init__(self, sweeps: int, delta: float, threshold: float):
        super().__init__(
            f"Value iteration did not converge after {sweeps} sweeps "
            f"(last delta {delta:.3e}, threshold {threshold:.3e})"
        )
        self.sweeps = sweeps
        self.delta = delta
        self.threshold = threshold


class DegenerateDiscountError(MDPError, ValueError):
    """The discount factor gives no usable stopping bound (gamma outside (0, 1])."""

    def __init__(self, gamma: float):
        super().__init__(f"Discount factor must be in (0, 1], got: {gamma}")
        self.gamma = gamma
