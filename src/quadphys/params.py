"""
Quadcopter simulation parameters.

Default values match the reference trajectory generator (2.5 kg airframe).
The motor-level fields (arm_length, thrust_coefficient, torque_coefficient,
max_motor_speed) are carried in the configuration surface but are not used
by any equation in the engine.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
from numpy.typing import NDArray


class InvalidParameterError(ValueError):
    """Raised when a simulation parameter is missing, unknown or out of range."""


# camelCase names used by the original configuration surface
_KEY_ALIASES = {
    "armLength": "arm_length",
    "thrustCoefficient": "thrust_coefficient",
    "torqueCoefficient": "torque_coefficient",
    "maxMotorSpeed": "max_motor_speed",
}


@dataclass
class SimulationParams:
    """
    Complete parameter set for the physics engine.

    Physical Parameters:
        mass: Vehicle mass [kg]
        inertia: Diagonal moments of inertia [kg·m²], shape (3,)
        gravity: Gravitational acceleration magnitude [m/s²]
        dt: Default integration timestep [s]

    Motor model (stored, not used by the dynamics):
        arm_length: Motor arm length [m]
        thrust_coefficient: Rotor thrust coefficient [N/(rad/s)²]
        torque_coefficient: Rotor drag torque coefficient [N·m/(rad/s)²]
        max_motor_speed: Motor speed limit [rad/s]
    """

    mass: float = 2.5  # kg
    inertia: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0023, 0.0023, 0.004])
    )  # kg·m²
    gravity: float = 9.81  # m/s²
    dt: float = 0.04  # s, 25 Hz

    arm_length: float = 0.25  # m
    thrust_coefficient: float = 8.54858e-06
    torque_coefficient: float = 2.137e-07
    max_motor_speed: float = 10000.0  # rad/s

    def __post_init__(self) -> None:
        """Validate parameters and cache the inertia matrices."""
        self.inertia = np.array(self.inertia, dtype=np.float64).reshape(-1)
        if self.inertia.shape != (3,):
            raise InvalidParameterError(
                f"inertia must have 3 components, got {self.inertia.size}"
            )

        for name in ("mass", "gravity", "dt"):
            value = getattr(self, name)
            if not _is_positive(value):
                raise InvalidParameterError(f"{name} must be finite and > 0, got {value!r}")
            setattr(self, name, float(value))
        for i, value in enumerate(self.inertia):
            if not _is_positive(value):
                raise InvalidParameterError(
                    f"inertia[{i}] must be finite and > 0, got {value!r}"
                )

        for name in ("arm_length", "thrust_coefficient", "torque_coefficient",
                     "max_motor_speed"):
            try:
                setattr(self, name, float(getattr(self, name)))
            except (TypeError, ValueError) as exc:
                raise InvalidParameterError(f"{name} must be a number") from exc

        # Computed once; the engine never re-derives them
        self._inertia_matrix = np.diag(self.inertia)
        self._inertia_inv = np.diag(1.0 / self.inertia)

    @property
    def inertia_matrix(self) -> NDArray[np.float64]:
        """Diagonal inertia matrix, shape (3, 3)."""
        return self._inertia_matrix

    @property
    def inertia_inv(self) -> NDArray[np.float64]:
        """Inverse of the inertia matrix (cached), shape (3, 3)."""
        return self._inertia_inv

    @property
    def hover_thrust(self) -> float:
        """Thrust required for hover."""
        return self.mass * self.gravity

    def copy(self) -> "SimulationParams":
        return SimulationParams.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["inertia"] = self.inertia.tolist()
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "SimulationParams":
        return resolve_params(d)


def _is_positive(value: Any) -> bool:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0.0


def resolve_params(
    overrides: Optional[Union[SimulationParams, Mapping[str, Any]]] = None,
) -> SimulationParams:
    """
    Merge overrides over the default parameters.

    Args:
        overrides: None (defaults), an existing SimulationParams (copied) or a
            mapping of field names to values. camelCase keys such as
            ``armLength`` are accepted.

    Returns:
        A new, validated SimulationParams

    Raises:
        InvalidParameterError: on unknown keys or invalid values
    """
    if overrides is None:
        return SimulationParams()
    if isinstance(overrides, SimulationParams):
        return overrides.copy()

    known = {f.name for f in fields(SimulationParams)}
    kwargs: Dict[str, Any] = {}
    for key, value in overrides.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in known:
            raise InvalidParameterError(f"Unknown simulation parameter '{key}'")
        kwargs[name] = value
    return SimulationParams(**kwargs)


def save_params(params: SimulationParams, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(params.to_dict(), f, indent=2)


def load_params(path: str | Path) -> SimulationParams:
    """Load parameters from a JSON file; missing keys take their defaults."""
    with open(path) as f:
        return resolve_params(json.load(f))


def default_params() -> SimulationParams:
    """Create the default parameter set."""
    return SimulationParams()
