"""
Normalized action to physical control mapping.

Action layout: [throttle, roll, pitch, yaw], nominally in [-1, 1].
Throttle maps linearly onto [0, 2] x hover thrust; torques use fixed
per-axis scales that do not depend on mass, inertia or arm length.
Actions are never clamped here.
"""

import numpy as np

from quadphys.params import SimulationParams
from quadphys.types import ACTION_DIM, Action, Control

MAX_ROLL_TORQUE = 0.5  # N·m
MAX_PITCH_TORQUE = 0.5  # N·m
MAX_YAW_TORQUE = 0.1  # N·m


def action_to_control(action: Action, params: SimulationParams) -> Control:
    """
    Convert a normalized action into thrust and body torques.

    throttle = -1 gives zero thrust, 0 gives hover thrust (m·g),
    +1 gives twice hover thrust. Thrust is floored at zero.

    Args:
        action: [throttle, roll, pitch, yaw]
        params: Simulation parameters (mass, gravity)

    Returns:
        Control with thrust [N] and body moments [N·m]
    """
    if len(action) != ACTION_DIM:
        raise ValueError(f"Action must have {ACTION_DIM} components, got {len(action)}")
    throttle, roll, pitch, yaw = (float(a) for a in action)

    thrust = max(0.0, (throttle + 1.0) * params.mass * params.gravity)
    moments = np.array([
        roll * MAX_ROLL_TORQUE,
        pitch * MAX_PITCH_TORQUE,
        yaw * MAX_YAW_TORQUE,
    ])
    return Control(thrust_N=thrust, moments_Nm=moments)
