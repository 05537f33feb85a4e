"""Tests for the gymnasium hover environment."""

import numpy as np
import pytest

from quadphys.envs import EnvConfig, QuadcopterHoverEnv
from quadphys.types import QuadcopterState


def test_reset_observation_is_state_array():
    env = QuadcopterHoverEnv()
    obs, info = env.reset(seed=0)
    assert obs.shape == (13,)
    assert obs.dtype == np.float64
    assert np.array_equal(obs, [0, 0, 2.5, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0])
    assert info["distance_to_target"] == 0.0
    assert env.observation_space.contains(obs)


def test_hover_action_keeps_reward_near_zero():
    env = QuadcopterHoverEnv()
    env.reset(seed=0)
    for _ in range(20):
        obs, reward, terminated, truncated, _ = env.step(np.zeros(4, dtype=np.float32))
        assert not terminated
        assert not truncated
        assert reward == pytest.approx(0.0, abs=1e-9)


def test_actions_are_clipped_before_engine():
    env_a = QuadcopterHoverEnv()
    env_b = QuadcopterHoverEnv()
    env_a.reset(seed=0)
    env_b.reset(seed=0)
    obs_a, *_ = env_a.step(np.array([5.0, -3.0, 0.0, 2.0]))
    obs_b, *_ = env_b.step(np.array([1.0, -1.0, 0.0, 1.0]))
    assert np.array_equal(obs_a, obs_b)


def test_free_fall_terminates_out_of_bounds():
    env = QuadcopterHoverEnv(config=EnvConfig(target_position=[0.0, 0.0, 0.0]))
    env.reset(seed=0)
    terminated = False
    info = {}
    for _ in range(100):
        _, _, terminated, truncated, info = env.step(np.array([-1.0, 0.0, 0.0, 0.0]))
        if terminated or truncated:
            break
    assert terminated
    assert info["term_reason"] == "out_of_bounds"


def test_truncation_at_max_steps():
    env = QuadcopterHoverEnv(config=EnvConfig(max_steps=5))
    env.reset(seed=0)
    for i in range(5):
        _, _, terminated, truncated, info = env.step(np.zeros(4))
    assert truncated
    assert not terminated
    assert info["term_reason"] == "max_steps"


def test_spawn_noise_is_seeded():
    cfg = EnvConfig(spawn_noise=0.3)
    obs1, _ = QuadcopterHoverEnv(config=cfg).reset(seed=123)
    obs2, _ = QuadcopterHoverEnv(config=cfg).reset(seed=123)
    assert np.array_equal(obs1, obs2)
    assert np.all(np.abs(obs1[0:3] - [0.0, 0.0, 2.5]) <= 0.3)


def test_reset_with_explicit_state():
    env = QuadcopterHoverEnv()
    s = QuadcopterState(position=[1.0, -1.0, 2.0], velocity=[0.5, 0.0, 0.0],
                        quaternion=[1.0, 0.0, 0.0, 0.0], angular_velocity=[0.0, 0.0, 0.1])
    obs, _ = env.reset(options={"state": s})
    assert np.array_equal(obs, s.to_array())


def test_numerical_blow_up_terminates_as_diverged():
    env = QuadcopterHoverEnv()
    s = QuadcopterState(position=[0.0, 0.0, 2.5], velocity=[0.0, 0.0, 0.0],
                        quaternion=[1.0, 0.0, 0.0, 0.0],
                        angular_velocity=[1e200, 1e200, 1e200])
    env.reset(options={"state": s})

    with np.errstate(all="ignore"):
        obs, _, terminated, truncated, info = env.step(np.zeros(4))

    assert terminated
    assert not truncated
    assert info["term_reason"] == "diverged"
    # the engine keeps the last valid state
    assert np.array_equal(obs, s.to_array())


def test_render_ansi():
    env = QuadcopterHoverEnv(render_mode="ansi")
    env.reset(seed=0)
    env.step(np.zeros(4))
    text = env.render()
    assert text.startswith("step=   1")


def test_passes_gymnasium_env_checker():
    from gymnasium.utils.env_checker import check_env

    check_env(QuadcopterHoverEnv(config=EnvConfig(max_steps=20)), skip_render_check=True)
