"""
Fixed-cadence rollout loop.

Drives one or more engines with a policy that maps the flat state vector to
an action, and records the resulting trajectory into pre-allocated arrays.

The pipeline per timestep is:
    1. Policy  →  normalized action [throttle, roll, pitch, yaw]
    2. Engine step (control mapping + RK4)  →  next state
    3. Record state, action, mapped control and debug derivatives
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from quadphys.control import action_to_control
from quadphys.engine import QuadcopterPhysics
from quadphys.types import Action, QuadcopterState, StepDebug

Policy = Callable[[NDArray[np.float64]], Action]


@dataclass
class TrajectoryLog:
    """
    Time histories of a rollout.

    Row 0 is the initial state (zero action, derivatives of the first step
    left at zero); row k > 0 is the state after step k together with the
    action, control and debug values of that step.
    """

    t: NDArray[np.float64]  # (N,)

    p: NDArray[np.float64]  # (N, 3)
    v: NDArray[np.float64]  # (N, 3)
    q: NDArray[np.float64]  # (N, 4)
    w: NDArray[np.float64]  # (N, 3)

    action: NDArray[np.float64]  # (N, 4)
    thrust: NDArray[np.float64]  # (N,)
    moments: NDArray[np.float64]  # (N, 3)

    thrust_world: NDArray[np.float64]  # (N, 3)
    acceleration: NDArray[np.float64]  # (N, 3)
    angular_acceleration: NDArray[np.float64]  # (N, 3)

    terminated_early: bool = False
    _idx: int = field(default=0, repr=False)

    @staticmethod
    def allocate(n_points: int) -> "TrajectoryLog":
        """Pre-allocate arrays for n_points rows."""
        return TrajectoryLog(
            t=np.zeros(n_points),
            p=np.zeros((n_points, 3)),
            v=np.zeros((n_points, 3)),
            q=np.zeros((n_points, 4)),
            w=np.zeros((n_points, 3)),
            action=np.zeros((n_points, 4)),
            thrust=np.zeros(n_points),
            moments=np.zeros((n_points, 3)),
            thrust_world=np.zeros((n_points, 3)),
            acceleration=np.zeros((n_points, 3)),
            angular_acceleration=np.zeros((n_points, 3)),
            _idx=0,
        )

    def __len__(self) -> int:
        return self._idx

    def record(
        self,
        t: float,
        state: QuadcopterState,
        action: Action,
        thrust: float = 0.0,
        moments: Optional[NDArray[np.float64]] = None,
        debug: Optional[StepDebug] = None,
    ) -> None:
        """Record one row."""
        i = self._idx
        self.t[i] = t
        self.p[i] = state.position
        self.v[i] = state.velocity
        self.q[i] = state.quaternion
        self.w[i] = state.angular_velocity
        self.action[i] = action
        self.thrust[i] = thrust
        if moments is not None:
            self.moments[i] = moments
        if debug is not None:
            self.thrust_world[i] = debug.thrust_world
            self.acceleration[i] = debug.acceleration
            self.angular_acceleration[i] = debug.angular_acceleration
        self._idx += 1

    def trim(self) -> "TrajectoryLog":
        """Trim arrays to actual recorded length."""
        n = self._idx
        return TrajectoryLog(
            t=self.t[:n],
            p=self.p[:n],
            v=self.v[:n],
            q=self.q[:n],
            w=self.w[:n],
            action=self.action[:n],
            thrust=self.thrust[:n],
            moments=self.moments[:n],
            thrust_world=self.thrust_world[:n],
            acceleration=self.acceleration[:n],
            angular_acceleration=self.angular_acceleration[:n],
            terminated_early=self.terminated_early,
            _idx=n,
        )


def constant_policy(action: Action) -> Policy:
    """Policy that ignores the state and always returns ``action``."""
    fixed = np.array(action, dtype=np.float64)

    def policy(_state: NDArray[np.float64]) -> NDArray[np.float64]:
        return fixed.copy()

    return policy


def out_of_bounds(position: NDArray[np.float64], limit: float) -> bool:
    return bool(np.any(np.abs(position) > limit))


def run_rollout(
    engine: QuadcopterPhysics,
    policy: Policy,
    n_steps: int,
    dt: Optional[float] = None,
    position_limit: Optional[float] = 4.0,
    verbose: bool = False,
) -> TrajectoryLog:
    """
    Roll an engine forward under a policy.

    Args:
        engine: Engine to drive (its state is advanced in place)
        policy: Maps the (13,) state vector to an action
        n_steps: Maximum number of engine steps
        dt: Step size [s] (default: engine params.dt)
        position_limit: Stop early once any |position| component exceeds
            this [m]; None disables the check
        verbose: Print progress updates

    Returns:
        Trimmed TrajectoryLog with up to n_steps + 1 rows
    """
    params = engine.params
    step_dt = params.dt if dt is None else dt

    log = TrajectoryLog.allocate(n_steps + 1)
    log.record(0.0, engine.get_state(), np.zeros(4))

    if verbose:
        print(f"Starting rollout: steps={n_steps}, dt={step_dt*1000:.1f}ms")

    t = 0.0
    for k in range(n_steps):
        action = np.asarray(policy(engine.get_state_array()), dtype=np.float64)
        control = action_to_control(action, params)
        result = engine.step(action, step_dt)
        t += step_dt

        log.record(t, result.state, action, control.thrust_N,
                   control.moments_Nm, result.debug)

        if position_limit is not None and out_of_bounds(result.position, position_limit):
            log.terminated_early = True
            if verbose:
                print(f"  Out of bounds at step {k + 1}: p={np.round(result.position, 3)}")
            break

    if verbose:
        print(f"Rollout complete: {len(log)} points, t={t:.2f}s")

    return log.trim()


def run_fleet(
    engines: Sequence[QuadcopterPhysics],
    policy: Policy,
    n_steps: int,
    dt: Optional[float] = None,
    position_limit: Optional[float] = 4.0,
) -> List[TrajectoryLog]:
    """Roll out several independent vehicles with the same policy, one engine each."""
    return [
        run_rollout(engine, policy, n_steps, dt=dt, position_limit=position_limit)
        for engine in engines
    ]


def compute_statistics(log: TrajectoryLog) -> Dict[str, Any]:
    """
    Compute summary statistics from a rollout log.

    Returns:
        Dictionary with duration, final position, altitude extent, peak
        speed / angular rate, mean thrust and the largest quaternion norm
        error over the trajectory.
    """
    speed = np.linalg.norm(log.v, axis=1)
    rate = np.linalg.norm(log.w, axis=1)
    q_norm_err = np.abs(np.linalg.norm(log.q[1:], axis=1) - 1.0) if len(log) > 1 else np.zeros(1)

    return {
        "duration": float(log.t[-1]) if len(log.t) > 0 else 0.0,
        "n_steps": max(len(log) - 1, 0),
        "final_position": log.p[-1].tolist(),
        "min_z": float(np.min(log.p[:, 2])),
        "max_z": float(np.max(log.p[:, 2])),
        "max_speed": float(np.max(speed)),
        "max_angular_rate": float(np.max(rate)),
        "mean_thrust": float(np.mean(log.thrust[1:])) if len(log) > 1 else 0.0,
        "max_quat_norm_error": float(np.max(q_norm_err)),
        "terminated_early": log.terminated_early,
    }


def print_statistics(log: TrajectoryLog, name: str = "Rollout") -> None:
    """Print summary statistics to console."""
    stats = compute_statistics(log)
    p = stats["final_position"]

    print(f"\n{name} Statistics:")
    print(f"  Duration:          {stats['duration']:.2f} s ({stats['n_steps']} steps)")
    print(f"  Final position:    [{p[0]:.3f}, {p[1]:.3f}, {p[2]:.3f}] m")
    print(f"  Altitude range:    [{stats['min_z']:.3f}, {stats['max_z']:.3f}] m")
    print(f"  Max speed:         {stats['max_speed']:.3f} m/s")
    print(f"  Max angular rate:  {stats['max_angular_rate']:.3f} rad/s")
    print(f"  Mean thrust:       {stats['mean_thrust']:.3f} N")
    print(f"  Max |q|-1:         {stats['max_quat_norm_error']:.2e}")
    if stats["terminated_early"]:
        print("  Terminated early (out of bounds)")
