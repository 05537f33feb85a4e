"""Tests for normalized action -> thrust/torque mapping."""

import numpy as np
import pytest

from quadphys.control import (
    MAX_PITCH_TORQUE,
    MAX_ROLL_TORQUE,
    MAX_YAW_TORQUE,
    action_to_control,
)
from quadphys.params import SimulationParams


@pytest.fixture
def params():
    return SimulationParams()


def test_throttle_endpoints(params):
    mg = params.mass * params.gravity
    assert action_to_control([-1, 0, 0, 0], params).thrust_N == 0.0
    assert action_to_control([0, 0, 0, 0], params).thrust_N == mg
    assert action_to_control([1, 0, 0, 0], params).thrust_N == pytest.approx(2 * mg, abs=1e-12)


def test_throttle_monotonic(params):
    thrusts = [action_to_control([t, 0, 0, 0], params).thrust_N
               for t in np.linspace(-1.0, 1.0, 41)]
    assert all(b >= a for a, b in zip(thrusts, thrusts[1:]))


def test_thrust_floor_below_minus_one(params):
    # out-of-range actions are accepted; thrust is floored at zero
    assert action_to_control([-3.0, 0, 0, 0], params).thrust_N == 0.0


def test_thrust_not_clamped_above_one(params):
    mg = params.mass * params.gravity
    assert action_to_control([2.0, 0, 0, 0], params).thrust_N == pytest.approx(3 * mg)


@pytest.mark.parametrize("action", [
    [0.0, 1.0, 0.0, 0.0],
    [0.5, -0.3, 0.7, 0.2],
    [-1.0, 0.25, -0.5, -1.0],
    [1.0, 2.0, -3.0, 4.0],
])
def test_torque_mapping_independent_of_throttle(params, action):
    c = action_to_control(action, params)
    assert np.array_equal(
        c.moments_Nm, [action[1] * 0.5, action[2] * 0.5, action[3] * 0.1]
    )


def test_torque_constants_ignore_vehicle_geometry():
    heavy = SimulationParams(mass=10.0, inertia=[1.0, 1.0, 2.0], arm_length=1.0)
    c = action_to_control([0.0, 1.0, 1.0, 1.0], heavy)
    assert np.array_equal(c.moments_Nm, [MAX_ROLL_TORQUE, MAX_PITCH_TORQUE, MAX_YAW_TORQUE])


def test_wrong_action_length(params):
    with pytest.raises(ValueError):
        action_to_control([0.0, 0.0, 0.0], params)
