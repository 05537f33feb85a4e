"""
Command-line entry point for the quadcopter physics engine.

Run with: python -m quadphys.main

Examples:
    python -m quadphys.main                              # 100 hover steps
    python -m quadphys.main --action 0.1 0 0 0 --steps 50
    python -m quadphys.main --params params.json --plot
    python -m quadphys.main --record-reference fixture.json
    python -m quadphys.main --check-reference fixture.json
"""

import argparse
import sys
from typing import List, Optional

import numpy as np

from quadphys.engine import QuadcopterPhysics
from quadphys.params import SimulationParams, load_params
from quadphys.reference import (
    check_conformance,
    load_reference,
    record_reference,
    save_reference,
)
from quadphys.rollout import constant_policy, print_statistics, run_rollout
from quadphys.types import QuadcopterState

# Ten-step excitation used for recorded fixtures
REFERENCE_ACTIONS = [
    [0.10, 0.00, 0.00, 0.00],
    [0.05, 0.02, 0.00, 0.00],
    [0.00, 0.02, -0.01, 0.05],
    [-0.05, 0.00, -0.02, 0.05],
    [0.00, -0.01, 0.00, 0.00],
    [0.20, -0.02, 0.01, -0.05],
    [0.10, 0.00, 0.02, -0.05],
    [-0.10, 0.01, 0.00, 0.00],
    [0.00, 0.00, -0.01, 0.02],
    [0.05, 0.00, 0.00, 0.00],
]


def default_initial_state() -> QuadcopterState:
    """Start 2.5 m up, level and at rest."""
    state = QuadcopterState.zeros()
    state.position = np.array([0.0, 0.0, 2.5])
    return state


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quadcopter rigid-body dynamics with RK4 integration.",
    )
    parser.add_argument(
        "--steps", type=int, default=100,
        help="Number of integration steps (default: 100).",
    )
    parser.add_argument(
        "--dt", type=float, default=None,
        help="Timestep [s] (default: params dt).",
    )
    parser.add_argument(
        "--action", type=float, nargs=4, default=[0.0, 0.0, 0.0, 0.0],
        metavar=("THROTTLE", "ROLL", "PITCH", "YAW"),
        help="Constant normalized action (default: hover).",
    )
    parser.add_argument(
        "--position", type=float, nargs=3, default=None,
        metavar=("X", "Y", "Z"),
        help="Initial position [m] (default: 0 0 2.5).",
    )
    parser.add_argument(
        "--params", type=str, default=None,
        help="JSON file with simulation parameter overrides.",
    )
    parser.add_argument(
        "--position-limit", type=float, default=4.0,
        help="Stop when any |position| component exceeds this [m].",
    )
    parser.add_argument(
        "--record-reference", type=str, default=None, metavar="PATH",
        help="Record a 10-step reference fixture to PATH and exit.",
    )
    parser.add_argument(
        "--check-reference", type=str, default=None, metavar="PATH",
        help="Replay a reference fixture and report mismatches.",
    )
    parser.add_argument(
        "--plot", action="store_true",
        help="Show trajectory plots.",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Print progress.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    params = load_params(args.params) if args.params else SimulationParams()
    x0 = default_initial_state()
    if args.position is not None:
        x0.position = np.array(args.position, dtype=np.float64)

    if args.check_reference:
        doc = load_reference(args.check_reference)
        report = check_conformance(doc)
        print(f"Checked {report.n_steps} steps from {args.check_reference}")
        for m in report.mismatches:
            print(f"  MISMATCH {m}")
        if not report.passed:
            print(f"  [FAIL] {len(report.mismatches)} mismatches")
            return 1
        print("  [PASS] trajectory matches reference")
        return 0

    if args.record_reference:
        doc = record_reference(x0, REFERENCE_ACTIONS, params)
        save_reference(doc, args.record_reference)
        print(f"Wrote {len(doc['steps'])}-step reference to {args.record_reference}")
        return 0

    engine = QuadcopterPhysics(x0, params)
    log = run_rollout(
        engine,
        constant_policy(args.action),
        n_steps=args.steps,
        dt=args.dt,
        position_limit=args.position_limit,
        verbose=args.verbose,
    )
    print_statistics(log, f"Constant action {args.action}")

    if args.plot:
        from quadphys.plots import plot_all
        plot_all(log)

    return 0


if __name__ == "__main__":
    sys.exit(main())
