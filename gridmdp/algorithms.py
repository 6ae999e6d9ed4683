"""
Value Iteration for Grid-World MDPs

Core Idea:
    Repeatedly apply the Bellman optimality backup to every state until the
    utilities stop moving, then read a greedy policy off the converged
    utilities.

Mathematical Theory:
    **Bellman optimality backup** (state-based rewards):

    .. math::
        U_{k+1}(s) = R(s) + \\gamma \\max_a \\sum_{s'} P(s'|s,a) U_k(s')

    Terminal states are absorbing and pinned to their reward:
    :math:`U(s) = R(s)`.

    Updates are synchronous (Jacobi style): every state of sweep
    :math:`k+1` reads the frozen utilities of sweep :math:`k`.

    **Stopping criterion**: with :math:`\\delta_k = \\|U_{k+1} - U_k\\|_\\infty`,

    .. math::
        \\delta_k \\leq \\epsilon \\frac{1 - \\gamma}{\\gamma}
        \\;\\Rightarrow\\; \\|U_{k+1} - U^*\\|_\\infty < \\epsilon

    For :math:`\\gamma = 1` the absolute bound :math:`\\delta_k \\leq \\epsilon`
    is used.

    **Greedy policy**:

    .. math::
        \\pi(s) = \\arg\\max_a \\sum_{s'} P(s'|s,a) U(s')

    Ties go to the first direction in enumeration order.

Complexity:
    - Time per sweep: O(|S| × |A| × k) where k is the outcome count of a move
    - Space: O(|S|) for two utility maps

Summary:
    ``solve`` is the pure entry point returning read-only utilities;
    ``value_iteration`` also reports sweep count and delta history;
    ``extract_policy`` turns utilities into a direction per state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from .config import SolverConfig
from .environment import (
    CARDINAL_DIRECTIONS,
    Coordinate,
    Direction,
    EnvironmentModel,
)
from .errors import ContractViolationError, NonConvergenceError

logger = logging.getLogger(__name__)

UtilityMap = Mapping[Coordinate, float]
"""Utility U(s) of every non-blocked state."""

PolicyMap = Mapping[Coordinate, Direction]
"""Chosen direction for every state."""

QFunction = Dict[Coordinate, Dict[Direction, float]]
"""Action value Q(s, a) of every non-terminal state."""


# =============================================================================
# Result Container
# =============================================================================

@dataclass
class ValueIterationResult:
    """
    Outcome of a value iteration run.

    Attributes:
        utilities: Read-only utility map of the last sweep
        iterations: Number of sweeps performed
        deltas: Largest utility change of each sweep
        converged: Whether the stopping bound was met
        threshold: Stopping bound that was applied
    """
    utilities: UtilityMap
    iterations: int
    deltas: np.ndarray
    converged: bool
    threshold: float

    @property
    def final_delta(self) -> float:
        return float(self.deltas[-1])


# =============================================================================
# Bellman Backup
# =============================================================================

def zero_utilities(environment: EnvironmentModel) -> Dict[Coordinate, float]:
    """Map every non-blocked cell to utility 0.0."""
    return {state: 0.0 for state in environment.states}


def state_reward(environment: EnvironmentModel, state: Coordinate) -> float:
    """
    Look up R(s), turning a missing reward into a contract violation.

    Raises:
        ContractViolationError: If the environment has no reward for ``state``.
    """
    try:
        value = environment.reward(state)
    except LookupError as exc:
        raise ContractViolationError(
            f"Environment has no reward for state {state}", coordinate=state
        ) from exc

    if value is None:
        raise ContractViolationError(
            f"Environment has no reward for state {state}", coordinate=state
        )

    value = float(value)
    if not math.isfinite(value):
        raise ContractViolationError(
            f"Reward of state {state} is not finite: {value}", coordinate=state
        )
    return value


def expected_utility(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    state: Coordinate,
    direction: Direction,
) -> float:
    """
    Expected utility of attempting ``direction`` from ``state``.

    .. math::
        \\sum_{s'} P(s'|s,a) U(s')

    Args:
        utilities: Utilities to read successor values from
        environment: Source of the transition distribution
        state: Current state
        direction: Attempted move

    Returns:
        Probability-weighted sum of successor utilities.

    Raises:
        ContractViolationError: If an outcome lies outside ``utilities``.
    """
    total = 0.0
    for next_state, probability in environment.transitions(state, direction):
        try:
            successor = utilities[next_state]
        except KeyError:
            raise ContractViolationError(
                f"Moving {direction.name} from {state} reaches {tuple(next_state)}, "
                f"which is not in the state space",
                coordinate=next_state,
            ) from None
        total += probability * successor
    return total


def bellman_sweep(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    gamma: float,
) -> Tuple[Dict[Coordinate, float], float]:
    """
    One synchronous Bellman backup over every state of ``utilities``.

    The input map is only read; all updates go to a fresh map, so every
    state sees the previous sweep's values.

    Args:
        utilities: Utilities of the previous sweep
        environment: Environment model
        gamma: Discount factor

    Returns:
        Tuple of (new_utilities, delta) where delta is the largest absolute
        change of any state.
    """
    updated: Dict[Coordinate, float] = {}
    delta = 0.0

    for state, old_value in utilities.items():
        reward = state_reward(environment, state)

        if environment.is_terminal(state):
            # Terminal utility is pinned to its reward
            new_value = reward
        else:
            best = max(
                expected_utility(utilities, environment, state, direction)
                for direction in CARDINAL_DIRECTIONS
            )
            new_value = reward + gamma * best

        updated[state] = new_value
        delta = max(delta, abs(new_value - old_value))

    return updated, delta


# =============================================================================
# Value Iteration
# =============================================================================

def value_iteration(
    environment: EnvironmentModel,
    config: Optional[SolverConfig] = None,
    initial_utilities: Optional[UtilityMap] = None,
) -> ValueIterationResult:
    """
    Iterate Bellman backups until the utilities converge.

    Core Idea:
        Start from all-zero utilities (or a caller-provided seed) and sweep
        until the largest change of a sweep drops to the stopping threshold.
        At least one sweep is always performed.

    Args:
        environment: Frozen environment snapshot
        config: Solver hyperparameters; defaults to ``SolverConfig()``
        initial_utilities: Optional seed covering exactly the state space

    Returns:
        ValueIterationResult with utilities, sweep count and delta history.

    Raises:
        DegenerateDiscountError: If ``config.gamma`` is not in (0, 1].
        ContractViolationError: If the seed or the environment is
            inconsistent with the state space.
        NonConvergenceError: If ``config.sweep_limit`` is exceeded and
            ``config.raise_on_nonconvergence`` is set.
    """
    config = config or SolverConfig()
    config.validate()
    threshold = config.stopping_threshold

    if initial_utilities is None:
        utilities: Dict[Coordinate, float] = zero_utilities(environment)
    else:
        utilities = {Coordinate(*s): float(u) for s, u in initial_utilities.items()}
        expected = set(environment.states)
        if set(utilities) != expected:
            missing = sorted(expected - set(utilities))
            extra = sorted(set(utilities) - expected)
            raise ContractViolationError(
                f"Seed utilities must cover exactly the state space "
                f"(missing: {missing}, unexpected: {extra})"
            )
        for state, value in utilities.items():
            if not math.isfinite(value):
                raise ContractViolationError(
                    f"Seed utility of state {state} is not finite: {value}",
                    coordinate=state,
                )

    max_reward = max((abs(state_reward(environment, s)) for s in utilities), default=0.0)
    max_seed = max((abs(u) for u in utilities.values()), default=0.0)
    max_sweeps = config.sweep_limit(max_reward + 2.0 * max_seed)

    logger.debug(
        "Value iteration over %d states (gamma=%s, threshold=%.3e, limit=%d)",
        len(utilities), config.gamma, threshold, max_sweeps,
    )

    deltas = []
    delta = float("inf")
    for sweep in range(1, max_sweeps + 1):
        utilities, delta = bellman_sweep(utilities, environment, config.gamma)
        deltas.append(delta)
        logger.debug("Sweep %d: delta=%.3e", sweep, delta)

        if delta <= threshold:
            logger.info("Value iteration converged in %d sweeps", sweep)
            return ValueIterationResult(
                utilities=MappingProxyType(utilities),
                iterations=sweep,
                deltas=np.asarray(deltas, dtype=float),
                converged=True,
                threshold=threshold,
            )

    if config.raise_on_nonconvergence:
        raise NonConvergenceError(max_sweeps, delta, threshold)

    logger.warning(
        "Value iteration stopped at %d sweeps without converging (delta=%.3e)",
        max_sweeps, delta,
    )
    return ValueIterationResult(
        utilities=MappingProxyType(utilities),
        iterations=max_sweeps,
        deltas=np.asarray(deltas, dtype=float),
        converged=False,
        threshold=threshold,
    )


def solve(
    environment: EnvironmentModel,
    config: Optional[SolverConfig] = None,
    initial_utilities: Optional[UtilityMap] = None,
) -> UtilityMap:
    """
    Compute converged utilities for an environment snapshot.

    No state is kept between calls; the returned mapping is read-only.

    Example:
        >>> env = GridWorld()
        >>> utilities = solve(env, SolverConfig(gamma=0.9))
        >>> policy = extract_policy(utilities, env)
    """
    return value_iteration(environment, config, initial_utilities).utilities


# =============================================================================
# Policy Extraction
# =============================================================================

def extract_policy(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    include_terminals: bool = True,
) -> PolicyMap:
    """
    Greedy policy with respect to converged utilities.

    For every state, directions are scanned in enumeration order and the
    first one with the strictly greatest expected utility wins, so ties go
    to the lower-index direction. Terminal states receive a nominal entry
    computed the same way unless ``include_terminals`` is False.

    Args:
        utilities: Converged utility map
        environment: Environment the utilities were computed for
        include_terminals: Whether terminal states get a policy entry

    Returns:
        Read-only mapping from state to chosen direction.
    """
    policy: Dict[Coordinate, Direction] = {}

    for state in utilities:
        if not include_terminals and environment.is_terminal(state):
            continue

        best_value = float("-inf")
        best_direction = None
        for direction in CARDINAL_DIRECTIONS:
            value = expected_utility(utilities, environment, state, direction)
            if value > best_value:
                best_value = value
                best_direction = direction

        policy[state] = best_direction

    return MappingProxyType(policy)


def compute_q_function(
    utilities: UtilityMap,
    environment: EnvironmentModel,
    gamma: float,
) -> QFunction:
    """
    Action values of every non-terminal state.

    .. math::
        Q(s,a) = R(s) + \\gamma \\sum_{s'} P(s'|s,a) U(s')
    """
    q_function: QFunction = {}

    for state in utilities:
        if environment.is_terminal(state):
            continue
        reward = state_reward(environment, state)
        q_function[state] = {
            direction: reward + gamma * expected_utility(utilities, environment, state, direction)
            for direction in CARDINAL_DIRECTIONS
        }

    return q_function
