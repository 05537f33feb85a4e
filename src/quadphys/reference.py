"""
Reference trajectory fixtures and conformance checking.

A fixture records, for every step of a short trajectory, the action, the
state before and after the step, the mapped forces/torques and the
derivatives evaluated at the pre-step state. Replaying a fixture through a
fresh engine must reproduce states to 1e-10 and derivatives to 1e-8.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from itertools import zip_longest
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np
from numpy.typing import ArrayLike

from quadphys.control import action_to_control
from quadphys.engine import QuadcopterPhysics
from quadphys.params import SimulationParams, resolve_params
from quadphys.types import OMEGA, POS, VEL, Action, QuadcopterState

STATE_TOL = 1e-10
DERIV_TOL = 1e-8

_STATE_FIELDS = ("position", "velocity", "quaternion", "angular_velocity")


@dataclass
class Mismatch:
    step: int
    field: str
    index: int
    expected: float
    actual: float

    @property
    def error(self) -> float:
        return abs(self.actual - self.expected)

    def __str__(self) -> str:
        return (f"step {self.step} {self.field}[{self.index}]: "
                f"expected {self.expected!r}, got {self.actual!r} "
                f"(|diff|={self.error:.3e})")


@dataclass
class ConformanceReport:
    n_steps: int = 0
    mismatches: List[Mismatch] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches


def record_reference(
    initial_state: QuadcopterState,
    actions: Sequence[Action],
    params: SimulationParams | None = None,
) -> Dict[str, Any]:
    """
    Step a fresh engine through ``actions`` and record a fixture document.

    Args:
        initial_state: State the trajectory starts from
        actions: One [throttle, roll, pitch, yaw] per step
        params: Simulation parameters (defaults if None)

    Returns:
        JSON-serializable fixture dict
    """
    params = resolve_params(params)
    engine = QuadcopterPhysics(initial_state, params)

    steps = []
    for i, action in enumerate(actions):
        before = engine.get_state()
        control = action_to_control(action, params)
        result = engine.step(action, params.dt)
        steps.append({
            "step": i,
            "action": [float(a) for a in action],
            "state_before": before.to_dict(),
            "normalized_state": before.to_array().tolist(),
            "forces_torques": {
                "thrust_magnitude": control.thrust_N,
                "torques_body": control.moments_Nm.tolist(),
                "thrust_world": result.debug.thrust_world.tolist(),
            },
            "derivatives": {
                "acceleration": result.debug.acceleration.tolist(),
                "angular_acceleration": result.debug.angular_acceleration.tolist(),
            },
            "state_after": result.state.to_dict(),
        })

    return {"simulation_params": params.to_dict(), "steps": steps}


def save_reference(doc: Dict[str, Any], path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        # repr-precision floats so a reload is bit-exact
        json.dump(doc, f, indent=2, default=_json_default)


def load_reference(path: str | Path) -> Dict[str, Any]:
    with open(path) as f:
        doc = json.load(f)
    if "simulation_params" not in doc or "steps" not in doc:
        raise ValueError(f"{path} is not a reference trajectory file")
    return doc


def _json_default(obj):
    """Fallback serialiser for numpy types."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _compare(
    report: ConformanceReport,
    step: int,
    name: str,
    expected: ArrayLike,
    actual: ArrayLike,
    tol: float,
) -> None:
    expected = np.atleast_1d(np.asarray(expected, dtype=np.float64))
    actual = np.atleast_1d(np.asarray(actual, dtype=np.float64))
    # A missing component on either side is NaN and always mismatches
    for i, (e, a) in enumerate(zip_longest(expected, actual, fillvalue=np.nan)):
        if not abs(a - e) <= tol:
            report.mismatches.append(Mismatch(step, name, i, float(e), float(a)))


def check_conformance(
    doc: Dict[str, Any],
    state_tol: float = STATE_TOL,
    deriv_tol: float = DERIV_TOL,
) -> ConformanceReport:
    """
    Replay a fixture through a fresh engine and collect every mismatch.

    The engine starts from the first step's ``state_before`` and is then
    driven only by the recorded actions, so errors accumulate exactly as
    they would in a live run. Every recorded quantity is checked: the
    pre-step state and mapped forces/torques at ``state_tol``, the
    world-frame thrust and derivatives at ``deriv_tol``, and the
    post-step state at ``state_tol``.
    """
    params = resolve_params(doc["simulation_params"])
    steps = doc["steps"]
    report = ConformanceReport(n_steps=len(steps))
    if not steps:
        return report

    engine = QuadcopterPhysics(QuadcopterState.from_dict(steps[0]["state_before"]), params)
    for i, rec in enumerate(steps):
        _compare(report, i, "normalized_state", rec["normalized_state"],
                 engine.get_state_array(), state_tol)

        control = action_to_control(rec["action"], params)
        result = engine.step(rec["action"], params.dt)

        forces = rec["forces_torques"]
        _compare(report, i, "thrust_magnitude", forces["thrust_magnitude"],
                 control.thrust_N, state_tol)
        _compare(report, i, "torques_body", forces["torques_body"],
                 control.moments_Nm, state_tol)
        _compare(report, i, "thrust_world", forces["thrust_world"],
                 result.debug.thrust_world, deriv_tol)

        derivs = rec["derivatives"]
        _compare(report, i, "acceleration", derivs["acceleration"],
                 result.debug.acceleration, deriv_tol)
        _compare(report, i, "angular_acceleration", derivs["angular_acceleration"],
                 result.debug.angular_acceleration, deriv_tol)

        expected = QuadcopterState.from_dict(rec["state_after"])
        for name in _STATE_FIELDS:
            _compare(report, i, name, getattr(expected, name),
                     getattr(result, name), state_tol)

    return report


def state_errors(current: ArrayLike, reference: ArrayLike) -> Dict[str, float]:
    """Euclidean position / velocity / angular velocity errors between two state vectors."""
    diff = np.asarray(current, dtype=np.float64) - np.asarray(reference, dtype=np.float64)
    return {
        "position": float(np.linalg.norm(diff[POS])),
        "velocity": float(np.linalg.norm(diff[VEL])),
        "angular_velocity": float(np.linalg.norm(diff[OMEGA])),
    }
