"""
Gymnasium environments for policy training against the physics engine.
"""

from quadphys.envs.hover_env import EnvConfig, QuadcopterHoverEnv

__all__ = [
    "EnvConfig",
    "QuadcopterHoverEnv",
]
