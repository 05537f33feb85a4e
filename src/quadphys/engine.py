"""
Single-vehicle physics engine.

Owns one mutable QuadcopterState and advances it with RK4 under a
normalized 4-D action. One engine per simulated vehicle; instances share
no mutable data and are not safe to step concurrently.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import numpy as np
from numpy.typing import NDArray

from quadphys.control import action_to_control
from quadphys.dynamics import quadcopter_dynamics, rk4_step, thrust_world
from quadphys.math3d import quat_normalize
from quadphys.params import SimulationParams, resolve_params
from quadphys.types import (
    OMEGA,
    QUAT,
    VEL,
    Action,
    PhysicsStepResult,
    QuadcopterState,
    StepDebug,
)


def _checked_state(state: QuadcopterState) -> QuadcopterState:
    """Copy and validate a caller-supplied state."""
    if not isinstance(state, QuadcopterState):
        state = QuadcopterState.from_dict(state)
    state = state.copy()
    if not np.all(np.isfinite(state.to_array())):
        raise ValueError("State contains non-finite values")
    # Non-unit quaternions are accepted; a zero one can never be normalized
    quat_normalize(state.quaternion)
    return state


class QuadcopterPhysics:
    """
    Rigid-body quadcopter integrator.

    Parameters
    ----------
    initial_state : QuadcopterState
        Starting state (deep-copied; a mapping with the same keys is accepted).
    params : SimulationParams or mapping, optional
        Parameters or overrides merged over the defaults.
    """

    def __init__(
        self,
        initial_state: QuadcopterState,
        params: Optional[Union[SimulationParams, Mapping[str, Any]]] = None,
    ):
        self._params = resolve_params(params)
        self._state = _checked_state(initial_state)
        self._step_count = 0

    @property
    def params(self) -> SimulationParams:
        """Copy of the resolved parameters; the engine's own set is never exposed."""
        return self._params.copy()

    @property
    def step_count(self) -> int:
        """Number of steps taken since construction or the last reset."""
        return self._step_count

    def step(self, action: Action, dt: Optional[float] = None) -> PhysicsStepResult:
        """
        Advance the state by one timestep.

        Args:
            action: [throttle, roll, pitch, yaw], not clamped
            dt: Time step [s]; defaults to ``params.dt``

        Returns:
            The new state and the debug quantities evaluated at the
            state this step started from.
        """
        timestep = self._params.dt if dt is None else float(dt)
        if not np.isfinite(timestep) or timestep < 0.0:
            raise ValueError(f"dt must be finite and >= 0, got {dt!r}")

        control = action_to_control(action, self._params)
        x = self._state.to_array()

        # Debug values use the pre-step state. thrust_world is rotated by the
        # normalized quaternion, as the dynamics are; fixtures rotated by the
        # raw stored quaternion agree only when it is unit length.
        du = quadcopter_dynamics(x, control, self._params)
        debug = StepDebug(
            thrust_world=thrust_world(quat_normalize(x[QUAT]), control.thrust_N),
            acceleration=du[VEL].copy(),
            angular_acceleration=du[OMEGA].copy(),
        )

        x_next = rk4_step(x, control, self._params, timestep)
        self._state = QuadcopterState.from_array(x_next)
        self._step_count += 1

        return PhysicsStepResult(
            position=self._state.position.copy(),
            velocity=self._state.velocity.copy(),
            quaternion=self._state.quaternion.copy(),
            angular_velocity=self._state.angular_velocity.copy(),
            debug=debug,
        )

    def get_state(self) -> QuadcopterState:
        """Return an independent copy of the current state."""
        return self._state.copy()

    def get_state_array(self) -> NDArray[np.float64]:
        """Return the state as a new (13,) array: [pos, vel, quat, angvel]."""
        return self._state.to_array()

    def reset(self, state: QuadcopterState) -> None:
        """Replace the current state with a copy of ``state``."""
        self._state = _checked_state(state)
        self._step_count = 0

    def get_params(self) -> SimulationParams:
        """Return a copy of the resolved parameters."""
        return self._params.copy()
