"""
Grid-World Value Iteration

Solves finite grid-world MDPs by synchronous value iteration and extracts a
greedy policy from the converged utilities.

Modules:
    environment: Environment model contract and the GridWorld implementation
    algorithms: Bellman sweeps, value iteration, policy extraction
    config: Solver hyperparameters
    errors: Exception taxonomy
    executor: Model-based policy rollouts
    visualization: ASCII and matplotlib rendering of utilities and policies

References:
    [1] Russell & Norvig, "Artificial Intelligence: A Modern Approach", Ch. 17
    [2] Bellman, R. "Dynamic Programming", Princeton University Press, 1957
"""

from .environment import (
    CARDINAL_DIRECTIONS,
    Coordinate,
    Direction,
    EnvironmentModel,
    GridWorld,
    GridWorldConfig,
)
from .config import SolverConfig
from .errors import (
    ContractViolationError,
    DegenerateDiscountError,
    MDPError,
    NonConvergenceError,
)
from .algorithms import (
    PolicyMap,
    UtilityMap,
    ValueIterationResult,
    bellman_sweep,
    compute_q_function,
    expected_utility,
    extract_policy,
    solve,
    value_iteration,
    zero_utilities,
)
from .executor import PolicyExecutor

__version__ = "1.0.0"

__all__ = [
    "CARDINAL_DIRECTIONS",
    "Coordinate",
    "Direction",
    "EnvironmentModel",
    "GridWorld",
    "GridWorldConfig",
    "SolverConfig",
    "MDPError",
    "ContractViolationError",
    "DegenerateDiscountError",
    "NonConvergenceError",
    "PolicyMap",
    "UtilityMap",
    "ValueIterationResult",
    "bellman_sweep",
    "compute_q_function",
    "expected_utility",
    "extract_policy",
    "solve",
    "value_iteration",
    "zero_utilities",
    "PolicyExecutor",
]
