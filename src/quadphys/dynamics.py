"""
Quadcopter rigid body dynamics.

Implements the continuous-time dynamics on the flat 13-element state and a
classical RK4 step. World z points up; thrust acts along body z.
"""

import numpy as np
from numpy.typing import NDArray

from quadphys.math3d import cross, mat_vec_mul, quat_normalize, quat_to_R
from quadphys.params import SimulationParams
from quadphys.types import OMEGA, POS, QUAT, STATE_DIM, VEL, Control


def thrust_world(q: NDArray[np.float64], thrust: float) -> NDArray[np.float64]:
    """
    Rotate the body thrust vector [0, 0, T] into the world frame.

    Args:
        q: Unit quaternion [w, x, y, z], shape (4,)
        thrust: Thrust magnitude [N]

    Returns:
        Thrust vector in world frame [N], shape (3,)
    """
    R = quat_to_R(q)
    return mat_vec_mul(R, np.array([0.0, 0.0, thrust]))


def quadcopter_dynamics(
    x: NDArray[np.float64],
    control: Control,
    params: SimulationParams,
) -> NDArray[np.float64]:
    """
    Compute the time derivative of the flat state.

    Dynamics:
        p_dot = v
        v_dot = (1/m) * R(q) @ [0, 0, T] - [0, 0, g]
        q_dot = 0.5 * q ⊗ [0, w]
        w_dot = J^{-1} @ (tau - w × (J @ w))

    The quaternion is normalized on a local copy; ``x`` is not modified.

    Args:
        x: State vector, shape (13,)
        control: Thrust and body torques, constant over the evaluation
        params: System parameters

    Returns:
        State derivative, shape (13,)
    """
    du = np.zeros(STATE_DIM)

    # Position derivative
    du[POS] = x[VEL]

    # Velocity derivative
    q = quat_normalize(x[QUAT])
    f_world = thrust_world(q, control.thrust_N)
    du[3] = f_world[0] / params.mass
    du[4] = f_world[1] / params.mass
    du[5] = f_world[2] / params.mass - params.gravity

    # Quaternion kinematics
    qw, qx, qy, qz = q
    wx, wy, wz = x[OMEGA]
    du[6] = 0.5 * (-qx*wx - qy*wy - qz*wz)
    du[7] = 0.5 * ( qw*wx + qy*wz - qz*wy)
    du[8] = 0.5 * ( qw*wy - qx*wz + qz*wx)
    du[9] = 0.5 * ( qw*wz + qx*wy - qy*wx)

    # Euler's equation: tau = J @ w_dot + w × (J @ w)
    w = x[OMEGA]
    Jw = mat_vec_mul(params.inertia_matrix, w)
    gyroscopic = cross(w, Jw)
    du[OMEGA] = mat_vec_mul(params.inertia_inv, control.moments_Nm - gyroscopic)

    return du


def rk4_step(
    x: NDArray[np.float64],
    control: Control,
    params: SimulationParams,
    dt: float,
) -> NDArray[np.float64]:
    """
    4th-order Runge-Kutta integration step.

    Control is held constant over the timestep. The quaternion of the
    result is renormalized; intermediate stages are not.

    Args:
        x: State vector, shape (13,)
        control: Control inputs
        params: System parameters
        dt: Time step [s]

    Returns:
        New state vector after dt, shape (13,)
    """
    k1 = quadcopter_dynamics(x, control, params)
    k2 = quadcopter_dynamics(x + 0.5 * dt * k1, control, params)
    k3 = quadcopter_dynamics(x + 0.5 * dt * k2, control, params)
    k4 = quadcopter_dynamics(x + dt * k3, control, params)

    x_next = x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)
    x_next[QUAT] = quat_normalize(x_next[QUAT])
    return x_next
