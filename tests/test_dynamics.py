"""Tests for the continuous-time dynamics and the RK4 step."""

import numpy as np
import pytest

from quadphys.dynamics import quadcopter_dynamics, rk4_step, thrust_world
from quadphys.math3d import DegenerateQuaternionError
from quadphys.params import SimulationParams
from quadphys.types import Control, QuadcopterState


@pytest.fixture
def params():
    return SimulationParams()


def _state(p=(0, 0, 1), v=(0, 0, 0), q=(1, 0, 0, 0), w=(0, 0, 0)):
    return QuadcopterState(position=p, velocity=v, quaternion=q,
                           angular_velocity=w).to_array()


# ---- Translational dynamics -------------------------------------------------

def test_hover_equilibrium(params):
    x = _state()
    du = quadcopter_dynamics(x, Control(params.hover_thrust, np.zeros(3)), params)
    assert np.allclose(du, 0.0, atol=1e-12)


def test_free_fall(params):
    x = _state(v=(1.0, -2.0, 0.5))
    du = quadcopter_dynamics(x, Control.zeros(), params)
    assert np.array_equal(du[0:3], [1.0, -2.0, 0.5])
    assert np.array_equal(du[3:6], [0.0, 0.0, -params.gravity])


def test_tilted_thrust_direction(params):
    s = np.sqrt(0.5)
    x = _state(q=(s, s, 0.0, 0.0))  # 90 deg about x: body z -> world -y
    du = quadcopter_dynamics(x, Control(params.hover_thrust, np.zeros(3)), params)
    assert du[3] == pytest.approx(0.0, abs=1e-12)
    assert du[4] == pytest.approx(-params.gravity, abs=1e-12)
    assert du[5] == pytest.approx(-params.gravity, abs=1e-12)


def test_thrust_world_identity():
    assert np.array_equal(thrust_world(np.array([1.0, 0, 0, 0]), 7.0), [0.0, 0.0, 7.0])


# ---- Attitude kinematics ----------------------------------------------------

def test_quaternion_derivative(params):
    w = (0.3, -0.2, 0.5)
    du = quadcopter_dynamics(_state(w=w), Control.zeros(), params)
    # identity attitude: q_dot = 0.5 * [0, w]
    assert np.allclose(du[6:10], [0.0, 0.15, -0.1, 0.25])


def test_quaternion_derivative_orthogonal_to_q(params):
    q = np.array([0.9, -0.2, 0.3, 0.1])
    q = q / np.linalg.norm(q)
    du = quadcopter_dynamics(_state(q=q, w=(1.0, 2.0, -0.5)), Control.zeros(), params)
    assert abs(np.dot(du[6:10], q)) < 1e-14


def test_non_unit_quaternion_is_normalized_locally(params):
    q = np.array([0.8, 0.1, -0.3, 0.2])
    q_unit = q / np.linalg.norm(q)
    c = Control(30.0, np.array([0.1, -0.2, 0.05]))
    x_scaled = _state(q=3.0 * q_unit, w=(0.4, 0.1, -0.2))
    x_unit = _state(q=q_unit, w=(0.4, 0.1, -0.2))
    before = x_scaled.copy()

    du_scaled = quadcopter_dynamics(x_scaled, c, params)
    du_unit = quadcopter_dynamics(x_unit, c, params)

    assert np.allclose(du_scaled, du_unit, atol=1e-12)
    assert np.array_equal(x_scaled, before), "input state must not be mutated"


def test_zero_quaternion_rejected(params):
    with pytest.raises(DegenerateQuaternionError):
        quadcopter_dynamics(_state(q=(0, 0, 0, 0)), Control.zeros(), params)


# ---- Rotational dynamics ----------------------------------------------------

def test_torque_only_angular_acceleration(params):
    tau = np.array([0.5, -0.5, 0.1])
    du = quadcopter_dynamics(_state(), Control(0.0, tau), params)
    assert np.allclose(du[10:13], tau / params.inertia)


def test_gyroscopic_term_sign(params):
    w = np.array([1.0, 2.0, 3.0])
    I = params.inertia
    du = quadcopter_dynamics(_state(w=w), Control.zeros(), params)

    gyro = np.cross(w, I * w)  # w x (I w)
    assert np.allclose(du[10:13], -gyro / I)
    # Ixx == Iyy, so the yaw axis has no coupling
    assert du[12] == pytest.approx(0.0, abs=1e-12)
    assert du[10] == pytest.approx(-(2.0 * 0.004 * 3.0 - 3.0 * 0.0023 * 2.0) / 0.0023)


# ---- RK4 ------------------------------------------------------------------

def test_rk4_exact_for_constant_acceleration(params):
    # level attitude, no rotation: z(t) is quadratic, which RK4 integrates exactly
    x = _state(p=(0.0, 0.0, 2.0), v=(0.0, 0.0, 0.5))
    thrust = 1.5 * params.hover_thrust
    a = thrust / params.mass - params.gravity
    dt = 0.04

    x_next = rk4_step(x, Control(thrust, np.zeros(3)), params, dt)

    assert x_next[2] == pytest.approx(2.0 + 0.5 * dt + 0.5 * a * dt**2, abs=1e-14)
    assert x_next[5] == pytest.approx(0.5 + a * dt, abs=1e-14)
    assert np.array_equal(x_next[6:10], [1.0, 0.0, 0.0, 0.0])


def test_rk4_does_not_mutate_input(params):
    x = _state(w=(0.2, 0.1, 0.0))
    before = x.copy()
    rk4_step(x, Control(20.0, np.array([0.1, 0.0, 0.0])), params, 0.04)
    assert np.array_equal(x, before)


def test_rk4_renormalizes_quaternion(params):
    x = _state(q=(2.0, 0.0, 0.0, 0.0), w=(3.0, -1.0, 2.0))
    x_next = rk4_step(x, Control(10.0, np.array([0.2, 0.1, -0.05])), params, 0.04)
    assert abs(np.linalg.norm(x_next[6:10]) - 1.0) < 1e-12


def test_rk4_constant_yaw_rate(params):
    # pure yaw spin with no torque: attitude rotates at a constant rate about z
    rate = 0.5
    x = _state(w=(0.0, 0.0, rate))
    dt = 0.01
    for _ in range(100):
        x = rk4_step(x, Control.zeros(), params, dt)
    angle = rate * 1.0
    assert np.allclose(x[6:10], [np.cos(angle / 2), 0.0, 0.0, np.sin(angle / 2)], atol=1e-9)
    assert np.allclose(x[10:13], [0.0, 0.0, rate])
