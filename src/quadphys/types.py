"""
Core data types for the quadcopter physics engine.

All arrays are float64 numpy arrays with explicit shapes noted in comments.
Quaternion convention: [w, x, y, z] (scalar-first).

Flat state layout (13,), consumed directly as policy input:
    [0:3]   position [m]
    [3:6]   velocity [m/s]
    [6:10]  quaternion [w, x, y, z]
    [10:13] angular velocity [rad/s]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

STATE_DIM = 13
ACTION_DIM = 4

POS = slice(0, 3)
VEL = slice(3, 6)
QUAT = slice(6, 10)
OMEGA = slice(10, 13)

# Action: [throttle, roll, pitch, yaw], nominally in [-1, 1]
Action = Sequence[float]


def _vec(value: ArrayLike, n: int, name: str) -> NDArray[np.float64]:
    """Copy ``value`` into a fresh float64 array of shape (n,)."""
    arr = np.array(value, dtype=np.float64).reshape(-1)
    if arr.shape != (n,):
        raise ValueError(f"{name} must have {n} components, got {arr.size}")
    return arr


@dataclass
class QuadcopterState:
    """
    Complete quadcopter state.

    Attributes:
        position: Position in world frame [m], shape (3,)
        velocity: Velocity in world frame [m/s], shape (3,)
        quaternion: Attitude quaternion [w, x, y, z], shape (4,)
        angular_velocity: Angular velocity in body frame [rad/s], shape (3,)
    """

    position: NDArray[np.float64]  # (3,)
    velocity: NDArray[np.float64]  # (3,)
    quaternion: NDArray[np.float64]  # (4,) [w, x, y, z]
    angular_velocity: NDArray[np.float64]  # (3,)

    def __post_init__(self) -> None:
        self.position = _vec(self.position, 3, "position")
        self.velocity = _vec(self.velocity, 3, "velocity")
        self.quaternion = _vec(self.quaternion, 4, "quaternion")
        self.angular_velocity = _vec(self.angular_velocity, 3, "angular_velocity")

    def copy(self) -> "QuadcopterState":
        """Create a deep copy of this state."""
        return QuadcopterState(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            quaternion=self.quaternion.copy(),
            angular_velocity=self.angular_velocity.copy(),
        )

    def to_array(self) -> NDArray[np.float64]:
        """Flatten to the (13,) state vector."""
        return np.concatenate([
            self.position,
            self.velocity,
            self.quaternion,
            self.angular_velocity,
        ])

    @staticmethod
    def from_array(x: ArrayLike) -> "QuadcopterState":
        """Build a state from a (13,) vector (values are copied)."""
        x = _vec(x, STATE_DIM, "state vector")
        return QuadcopterState(
            position=x[POS],
            velocity=x[VEL],
            quaternion=x[QUAT],
            angular_velocity=x[OMEGA],
        )

    def to_dict(self) -> Dict[str, list]:
        return {
            "position": self.position.tolist(),
            "velocity": self.velocity.tolist(),
            "quaternion": self.quaternion.tolist(),
            "angular_velocity": self.angular_velocity.tolist(),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "QuadcopterState":
        """Build a state from a mapping; ``angularVelocity`` is also accepted."""
        if "angular_velocity" in d:
            omega = d["angular_velocity"]
        else:
            omega = d["angularVelocity"]
        return QuadcopterState(
            position=d["position"],
            velocity=d["velocity"],
            quaternion=d["quaternion"],
            angular_velocity=omega,
        )

    @staticmethod
    def zeros() -> "QuadcopterState":
        """Create a zero state with identity quaternion."""
        return QuadcopterState(
            position=np.zeros(3),
            velocity=np.zeros(3),
            quaternion=np.array([1.0, 0.0, 0.0, 0.0]),  # Identity quaternion
            angular_velocity=np.zeros(3),
        )


@dataclass
class Control:
    """
    Physical control inputs, held constant over one integration step.

    Attributes:
        thrust_N: Total thrust magnitude along body z [N]
        moments_Nm: Body-frame torques [N·m], shape (3,)
    """

    thrust_N: float
    moments_Nm: NDArray[np.float64]  # (3,)

    @staticmethod
    def zeros() -> "Control":
        """Create zero control input."""
        return Control(thrust_N=0.0, moments_Nm=np.zeros(3))


@dataclass
class StepDebug:
    """Derived quantities evaluated at the state a step started from."""

    thrust_world: NDArray[np.float64]  # (3,) [N]
    acceleration: NDArray[np.float64]  # (3,) [m/s²]
    angular_acceleration: NDArray[np.float64]  # (3,) [rad/s²]

    def to_dict(self) -> Dict[str, list]:
        return {
            "thrust_world": self.thrust_world.tolist(),
            "acceleration": self.acceleration.tolist(),
            "angular_acceleration": self.angular_acceleration.tolist(),
        }


@dataclass
class PhysicsStepResult:
    """New state produced by one engine step plus its debug bundle."""

    position: NDArray[np.float64]  # (3,)
    velocity: NDArray[np.float64]  # (3,)
    quaternion: NDArray[np.float64]  # (4,)
    angular_velocity: NDArray[np.float64]  # (3,)
    debug: StepDebug = field(repr=False)

    @property
    def state(self) -> QuadcopterState:
        return QuadcopterState(
            position=self.position,
            velocity=self.velocity,
            quaternion=self.quaternion,
            angular_velocity=self.angular_velocity,
        )
