"""
3D math utilities for quaternions and rotations.

Quaternion convention: [w, x, y, z] (scalar-first, Hamilton convention).
Rotation convention: R rotates vectors from body to world frame.
Matrices are row-major.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


class DegenerateQuaternionError(ValueError):
    """Raised when a quaternion with zero or non-finite norm is normalized."""


def cross(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    """
    Cross product a × b of two 3D vectors.

    Args:
        a: First vector, shape (3,)
        b: Second vector, shape (3,)

    Returns:
        a × b, shape (3,)
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return np.array([
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    ])


def mat_vec_mul(M: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
    """
    Multiply a 3x3 matrix by a 3D vector.

    Args:
        M: Matrix, shape (3, 3)
        v: Vector, shape (3,)

    Returns:
        M @ v, shape (3,)
    """
    M = np.asarray(M, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    return np.array([
        M[0, 0] * v[0] + M[0, 1] * v[1] + M[0, 2] * v[2],
        M[1, 0] * v[0] + M[1, 1] * v[1] + M[1, 2] * v[2],
        M[2, 0] * v[0] + M[2, 1] * v[1] + M[2, 2] * v[2],
    ])


def quat_normalize(q: ArrayLike) -> NDArray[np.float64]:
    """
    Normalize a quaternion to unit length.

    Args:
        q: Quaternion [w, x, y, z], shape (4,)

    Returns:
        New normalized quaternion, shape (4,)

    Raises:
        DegenerateQuaternionError: if the norm is zero or not finite
    """
    w, x, y, z = np.asarray(q, dtype=np.float64)
    norm = np.sqrt(w * w + x * x + y * y + z * z)
    if norm == 0.0 or not np.isfinite(norm):
        raise DegenerateQuaternionError(
            f"Cannot normalize quaternion {[w, x, y, z]} (norm={norm})"
        )
    return np.array([w / norm, x / norm, y / norm, z / norm])


def quat_to_R(q: ArrayLike) -> NDArray[np.float64]:
    """
    Convert quaternion to rotation matrix.

    The rotation matrix R rotates vectors from body to world frame:
        v_world = R @ v_body

    The quaternion is used as given; callers normalize first.

    Args:
        q: Unit quaternion [w, x, y, z], shape (4,)

    Returns:
        Rotation matrix, shape (3, 3)
    """
    w, x, y, z = np.asarray(q, dtype=np.float64)

    xx = x * x
    yy = y * y
    zz = z * z
    xy = x * y
    xz = x * z
    yz = y * z
    wx = w * x
    wy = w * y
    wz = w * z

    return np.array([
        [1 - 2*yy - 2*zz,     2*xy - 2*wz,     2*xz + 2*wy],
        [    2*xy + 2*wz, 1 - 2*xx - 2*zz,     2*yz - 2*wx],
        [    2*xz - 2*wy,     2*yz + 2*wx, 1 - 2*xx - 2*yy],
    ])


def quat_to_euler(q: ArrayLike) -> NDArray[np.float64]:
    """
    Convert quaternion to Euler angles (roll, pitch, yaw).

    Uses ZYX convention (yaw-pitch-roll).
    Only for reporting/plotting purposes.

    Args:
        q: Quaternion [w, x, y, z], shape (4,)

    Returns:
        Euler angles [roll, pitch, yaw] in radians, shape (3,)
    """
    w, x, y, z = quat_normalize(q)

    # Roll (x-axis rotation)
    sinr_cosp = 2 * (w * x + y * z)
    cosr_cosp = 1 - 2 * (x * x + y * y)
    roll = np.arctan2(sinr_cosp, cosr_cosp)

    # Pitch (y-axis rotation), clamped at gimbal lock
    sinp = 2 * (w * y - z * x)
    if np.abs(sinp) >= 1:
        pitch = np.copysign(np.pi / 2, sinp)
    else:
        pitch = np.arcsin(sinp)

    # Yaw (z-axis rotation)
    siny_cosp = 2 * (w * z + x * y)
    cosy_cosp = 1 - 2 * (y * y + z * z)
    yaw = np.arctan2(siny_cosp, cosy_cosp)

    return np.array([roll, pitch, yaw])


if __name__ == "__main__":
    print("Running math3d sanity checks...")

    R_id = quat_to_R([1.0, 0.0, 0.0, 0.0])
    assert np.allclose(R_id, np.eye(3)), "Identity quaternion should give identity matrix"
    print("  [PASS] quat_to_R identity")

    R_test = quat_to_R(quat_normalize([0.5, 0.5, 0.5, 0.5]))
    assert np.allclose(R_test @ R_test.T, np.eye(3)), "R should be orthonormal"
    print("  [PASS] quat_to_R orthonormality")

    assert np.allclose(cross([1, 0, 0], [0, 1, 0]), [0, 0, 1])
    print("  [PASS] cross")

    print("\nAll math3d checks passed!")
