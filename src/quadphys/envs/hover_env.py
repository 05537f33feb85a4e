"""
Gymnasium environment around a single physics engine.

Observations are the engine's flat state vector, unnormalized:
    [0:3]   position
    [3:6]   velocity
    [6:10]  quaternion [w, x, y, z]
    [10:13] angular velocity
Actions are [throttle, roll, pitch, yaw] in [-1, 1]. The engine does not
clamp actions, so the environment clips them before stepping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

import gymnasium as gym
from gymnasium import spaces

from quadphys.engine import QuadcopterPhysics
from quadphys.params import SimulationParams, resolve_params
from quadphys.rollout import out_of_bounds
from quadphys.types import ACTION_DIM, STATE_DIM, QuadcopterState


@dataclass
class EnvConfig:
    """Configuration for :class:`QuadcopterHoverEnv`.

    target_position : list of float
        Hover setpoint [m]; also the spawn point.
    spawn_noise : float
        Half-width of the uniform position offset applied at reset [m].
    max_steps : int
        Episode length in env steps (one engine step each).
    position_limit : float
        Episode terminates when any |position| component exceeds this [m].
    k_action : float
        Coefficient for the action-norm penalty.
    """

    target_position: List[float] = field(default_factory=lambda: [0.0, 0.0, 2.5])
    spawn_noise: float = 0.0
    max_steps: int = 500               # 20 s at 25 Hz
    position_limit: float = 4.0
    k_action: float = 0.01


class QuadcopterHoverEnv(gym.Env):
    """Gymnasium environment: hold the quadcopter at a target position.

    Reward per step is ``-||p - p_target|| - k_action * ||a||²``.

    Parameters
    ----------
    params : SimulationParams or mapping, optional
        Physics parameters (defaults if None).
    config : EnvConfig, optional
        Environment configuration.
    render_mode : str, optional
        ``"ansi"`` returns a status string from :meth:`render`.
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 25}

    def __init__(
        self,
        params: Optional[SimulationParams] = None,
        config: Optional[EnvConfig] = None,
        render_mode: Optional[str] = None,
    ):
        super().__init__()

        self.cfg = config or EnvConfig()
        self.params = resolve_params(params)
        self.render_mode = render_mode
        self._target = np.array(self.cfg.target_position, dtype=np.float64)

        hi = np.full(STATE_DIM, np.inf)
        self.observation_space = spaces.Box(low=-hi, high=hi, dtype=np.float64)
        self.action_space = spaces.Box(
            low=-1.0, high=1.0, shape=(ACTION_DIM,), dtype=np.float32,
        )

        self._engine = QuadcopterPhysics(self._spawn_state(np.zeros(3)), self.params)
        self._step_count: int = 0

    @property
    def engine(self) -> QuadcopterPhysics:
        return self._engine

    def _spawn_state(self, offset: NDArray[np.float64]) -> QuadcopterState:
        state = QuadcopterState.zeros()
        state.position = self._target + offset
        return state

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[NDArray[np.float64], Dict[str, Any]]:
        super().reset(seed=seed)

        if options and "state" in options:
            state = options["state"]
        else:
            noise = self.cfg.spawn_noise
            offset = self.np_random.uniform(-noise, noise, size=3) if noise > 0 else np.zeros(3)
            state = self._spawn_state(offset)

        self._engine.reset(state)
        self._step_count = 0
        return self._engine.get_state_array(), self._info()

    def step(
        self, action: NDArray[np.float32],
    ) -> Tuple[NDArray[np.float64], float, bool, bool, Dict[str, Any]]:
        action = np.asarray(action, dtype=np.float64).clip(-1.0, 1.0)

        try:
            result = self._engine.step(action)
        except ValueError:
            # Integration blew up (degenerate quaternion); the engine keeps
            # its last valid state
            result = None
        self._step_count += 1
        obs = self._engine.get_state_array()

        position = obs[0:3] if result is None else result.position
        dist = float(np.linalg.norm(position - self._target))
        reward = -dist - self.cfg.k_action * float(np.dot(action, action))

        terminated = False
        term_reason = ""
        if result is None or not np.all(np.isfinite(obs)):
            terminated = True
            term_reason = "diverged"
        elif out_of_bounds(result.position, self.cfg.position_limit):
            terminated = True
            term_reason = "out_of_bounds"

        truncated = not terminated and self._step_count >= self.cfg.max_steps
        if truncated:
            term_reason = "max_steps"

        info = self._info()
        info["term_reason"] = term_reason
        info["acceleration"] = (np.full(3, np.nan) if result is None
                                else result.debug.acceleration)
        return obs, float(reward), terminated, truncated, info

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi":
            s = self._engine.get_state()
            p = s.position
            return (f"step={self._step_count:4d}  "
                    f"p=[{p[0]:+.2f}, {p[1]:+.2f}, {p[2]:+.2f}]  "
                    f"|v|={np.linalg.norm(s.velocity):.2f}")
        return None

    def _info(self) -> Dict[str, Any]:
        p = self._engine.get_state().position
        return {
            "step": self._step_count,
            "distance_to_target": float(np.linalg.norm(p - self._target)),
        }
