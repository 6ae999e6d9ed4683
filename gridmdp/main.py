"""
Grid-World Value Iteration: Command Line Entry Point

Solves the classic 4×3 grid world (or a variant of it configured on the
command line), then prints utilities, the greedy policy and the action
values of every state.

Usage:
    gridmdp                          # Solve with defaults
    gridmdp --gamma 1.0 --slip 0.2   # Undiscounted, slippery grid
    gridmdp --config solver.json     # Load solver settings from JSON
    gridmdp --plot utilities.png     # Also save heatmap + convergence plot
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .algorithms import compute_q_function, extract_policy, value_iteration
from .config import SolverConfig
from .environment import CARDINAL_DIRECTIONS, GridWorld, GridWorldConfig
from .errors import MDPError
from .visualization import render_policy, render_utilities

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gridmdp",
        description="Value iteration for a stochastic grid world",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    gridmdp --gamma 0.9
    gridmdp --slip 0.0 --step-reward -0.1
    gridmdp --save-config solver.json
        """
    )

    parser.add_argument('--gamma', type=float, default=None, help='Discount factor in (0, 1]')
    parser.add_argument('--epsilon', type=float, default=None, help='Convergence tolerance')
    parser.add_argument('--max-sweeps', type=int, default=None, help='Sweep limit')
    parser.add_argument('--slip', type=float, default=0.2, help='Sideways slip probability')
    parser.add_argument('--step-reward', type=float, default=-0.04, help='Reward of non-terminal cells')
    parser.add_argument('--config', type=str, default=None, help='Load SolverConfig from JSON')
    parser.add_argument('--save-config', type=str, default=None, help='Write the effective SolverConfig to JSON')
    parser.add_argument('--plot', type=str, default=None, help='Save a utility heatmap to this path')
    parser.add_argument('--verbose', action='store_true', help='Log every sweep')

    return parser


def load_config(args: argparse.Namespace) -> SolverConfig:
    """Solver config from JSON (if given) with command-line overrides applied."""
    config = SolverConfig.from_json(args.config) if args.config else SolverConfig()

    if args.gamma is not None:
        config.gamma = args.gamma
    if args.epsilon is not None:
        config.epsilon = args.epsilon
    if args.max_sweeps is not None:
        config.max_sweeps = args.max_sweeps

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args)
        env = GridWorld(GridWorldConfig(
            slip_probability=args.slip,
            step_reward=args.step_reward,
        ))
        result = value_iteration(env, config)
    except (MDPError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    if args.save_config:
        config.to_json(args.save_config)
        logger.info("Solver config written to %s", args.save_config)

    policy = extract_policy(result.utilities, env)

    status = "Converged in" if result.converged else "Did not converge after"
    print(f"\n{status} {result.iterations} sweeps "
          f"(gamma={config.gamma}, threshold={result.threshold:.3e}, "
          f"last delta={result.final_delta:.3e})\n")
    render_utilities(result.utilities, env, stream=print)
    print()
    render_policy(policy, env, stream=print)

    print("\nAction values:")
    header = "".join(f"{d.name:>10}" for d in CARDINAL_DIRECTIONS)
    print(f"{'State':<10}{header}")
    print("-" * (10 + 10 * len(CARDINAL_DIRECTIONS)))
    for state, values in compute_q_function(result.utilities, env, config.gamma).items():
        row = "".join(f"{values[d]:>10.4f}" for d in CARDINAL_DIRECTIONS)
        print(f"{str(tuple(state)):<10}{row}")

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from .visualization import plot_convergence, plot_utilities

        fig, (ax_values, ax_delta) = plt.subplots(1, 2, figsize=(14, 4))
        plot_utilities(result.utilities, env, ax=ax_values)
        plot_convergence(result, ax=ax_delta)
        fig.tight_layout()
        fig.savefig(args.plot, dpi=150)
        plt.close(fig)
        logger.info("Plots written to %s", args.plot)

    return 0 if result.converged else 1


if __name__ == "__main__":
    sys.exit(main())
