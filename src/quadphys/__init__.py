"""
Quadcopter rigid-body flight dynamics.

Maps a normalized 4-D action to thrust and body torques and advances the
13-element state with fixed-step RK4.
"""

from quadphys.types import QuadcopterState, Control, PhysicsStepResult, StepDebug
from quadphys.params import (
    InvalidParameterError,
    SimulationParams,
    default_params,
    resolve_params,
)
from quadphys.math3d import DegenerateQuaternionError
from quadphys.engine import QuadcopterPhysics

__version__ = "0.1.0"

__all__ = [
    "QuadcopterState",
    "Control",
    "PhysicsStepResult",
    "StepDebug",
    "SimulationParams",
    "InvalidParameterError",
    "DegenerateQuaternionError",
    "default_params",
    "resolve_params",
    "QuadcopterPhysics",
]
