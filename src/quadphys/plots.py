"""
Visualization functions for rollout logs.
"""

import numpy as np

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from quadphys.math3d import quat_to_euler
from quadphys.rollout import TrajectoryLog


def plot_pos_time(
    log: TrajectoryLog,
    title: str = "Position vs Time",
    show: bool = False,
) -> Figure:
    """
    Plot position components over time.

    Args:
        log: Rollout log
        title: Plot title
        show: If True, call plt.show()

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(3, 1, figsize=(10, 8), sharex=True)

    labels = ['X', 'Y', 'Z']
    colors = ['r', 'g', 'b']

    for i, (ax, label, color) in enumerate(zip(axes, labels, colors)):
        ax.plot(log.t, log.p[:, i], '-', color=color, linewidth=1.5)
        ax.set_ylabel(f'{label} [m]')
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Time [s]')
    axes[0].set_title(title)

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def plot_3d_path(
    log: TrajectoryLog,
    title: str = "3D Path",
    show: bool = False,
) -> Figure:
    """Plot the 3D flight path with start and end markers."""
    fig = plt.figure(figsize=(10, 8))
    ax = fig.add_subplot(111, projection='3d')

    ax.plot(log.p[:, 0], log.p[:, 1], log.p[:, 2],
            'r-', label='Path', linewidth=1.5)

    ax.scatter(*log.p[0], c='g', s=100, label='Start', marker='o')
    ax.scatter(*log.p[-1], c='r', s=100, label='End', marker='x')

    ax.set_xlabel('X [m]')
    ax.set_ylabel('Y [m]')
    ax.set_zlabel('Z [m]')
    ax.set_title(title)
    ax.legend()

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def plot_euler_angles(
    log: TrajectoryLog,
    title: str = "Euler Angles",
    show: bool = False,
) -> Figure:
    """
    Plot Euler angles (roll, pitch, yaw) over time.

    Euler angles are derived from the logged quaternions for display only.
    """
    euler = np.array([quat_to_euler(q) for q in log.q])
    euler_deg = np.rad2deg(euler)

    fig, axes = plt.subplots(3, 1, figsize=(10, 8), sharex=True)

    labels = ['Roll (φ)', 'Pitch (θ)', 'Yaw (ψ)']
    colors = ['r', 'g', 'b']

    for i, (ax, label, color) in enumerate(zip(axes, labels, colors)):
        ax.plot(log.t, euler_deg[:, i], color=color, linewidth=1.5)
        ax.set_ylabel(f'{label} [deg]')
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Time [s]')
    axes[0].set_title(title)

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def plot_controls(
    log: TrajectoryLog,
    title: str = "Control Inputs",
    show: bool = False,
) -> Figure:
    """Plot mapped thrust and body torques over time (row 0 carries no control)."""
    fig, axes = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    t = log.t[1:]

    axes[0].plot(t, log.thrust[1:], 'k-', linewidth=1.5)
    axes[0].set_ylabel('Thrust [N]')
    axes[0].set_title(title)
    axes[0].grid(True, alpha=0.3)

    labels = ['τ_x (roll)', 'τ_y (pitch)', 'τ_z (yaw)']
    colors = ['r', 'g', 'b']
    for i, (label, color) in enumerate(zip(labels, colors)):
        axes[1].plot(t, log.moments[1:, i], color=color,
                     label=label, linewidth=1.5)
    axes[1].set_ylabel('Torque [N·m]')
    axes[1].set_xlabel('Time [s]')
    axes[1].legend(loc='upper right')
    axes[1].grid(True, alpha=0.3)

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def plot_all(log: TrajectoryLog, prefix: str = "", show: bool = True) -> list:
    """Create every rollout figure; optionally show them."""
    figs = [
        plot_pos_time(log, f"{prefix}Position vs Time"),
        plot_3d_path(log, f"{prefix}3D Path"),
        plot_euler_angles(log, f"{prefix}Euler Angles"),
        plot_controls(log, f"{prefix}Control Inputs"),
    ]
    if show:
        plt.show()
    return figs
