"""
Least-squares quadratic fitting for track points.

Each axis is fitted independently with ``position(t) = a*t**2 + b*t + c``
where ``t`` is seconds since the first point. The normal equations

    |  n     sum t    sum t^2 | | c |   | sum x     |
    | sum t  sum t^2  sum t^3 | | b | = | sum t*x   |
    | sum t^2 sum t^3 sum t^4 | | a |   | sum t^2*x |

share one coefficient matrix for X and Y, so both right-hand sides are
solved together.
"""

from typing import Sequence

import numpy as np

from flowcast.core.errors import InsufficientPointsError, SingularSystemError
from flowcast.tracking.models import Point, Polynomial


MIN_POINTS = 3

# Relative pivot tolerance on the unit-diagonal (equilibrated) system.
# Pivots at or below this value are treated as a singular system.
SINGULAR_TOLERANCE = 1e-12


def normal_equations(points: Sequence[Point]) -> tuple[np.ndarray, np.ndarray]:
    """
    Build the normal equations for a quadratic fit.

    Returns:
        Tuple of (3x3 coefficient matrix, 3x2 right-hand side for X and Y).
        Rows and columns are ordered (c, b, a).
    """
    t0 = points[0].time
    t = np.array([p.time - t0 for p in points], dtype=np.float64)
    xy = np.array([p.position for p in points], dtype=np.float64)

    t2 = t * t
    sum_t, sum_t2, sum_t3, sum_t4 = t.sum(), t2.sum(), (t2 * t).sum(), (t2 * t2).sum()

    matrix = np.array([
        [float(len(points)), sum_t, sum_t2],
        [sum_t, sum_t2, sum_t3],
        [sum_t2, sum_t3, sum_t4],
    ])
    rhs = np.vstack([xy.sum(axis=0), t @ xy, t2 @ xy])
    return matrix, rhs


def solve_normal_equations(
    matrix: np.ndarray,
    rhs: np.ndarray,
    tolerance: float = SINGULAR_TOLERANCE,
) -> np.ndarray:
    """
    Solve a small symmetric system by Gaussian elimination.

    The system is first equilibrated to a unit diagonal so the pivot
    tolerance does not depend on the time scale of the samples, then
    eliminated with partial pivoting.

    Args:
        matrix: NxN coefficient matrix (a Gram matrix)
        rhs: N or NxK right-hand side
        tolerance: Relative pivot threshold below which the system is singular

    Returns:
        Solution with the same shape as ``rhs``

    Raises:
        SingularSystemError: If the matrix has no unique solution
    """
    a = np.array(matrix, dtype=np.float64)
    b = np.array(rhs, dtype=np.float64)
    vector_rhs = b.ndim == 1
    if vector_rhs:
        b = b[:, np.newaxis]

    diag = np.diag(a)
    if np.any(diag <= 0.0):
        raise SingularSystemError("Failed to fit curve (singular matrix)")

    scale = 1.0 / np.sqrt(diag)
    a = a * np.outer(scale, scale)
    b = b * scale[:, np.newaxis]

    n = a.shape[0]
    for col in range(n):
        pivot = col + int(np.argmax(np.abs(a[col:, col])))
        if abs(a[pivot, col]) <= tolerance:
            raise SingularSystemError("Failed to fit curve (singular matrix)")
        if pivot != col:
            a[[col, pivot]] = a[[pivot, col]]
            b[[col, pivot]] = b[[pivot, col]]
        for row in range(col + 1, n):
            factor = a[row, col] / a[col, col]
            a[row, col:] -= factor * a[col, col:]
            b[row] -= factor * b[col]

    x = np.zeros_like(b)
    for row in range(n - 1, -1, -1):
        x[row] = (b[row] - a[row, row + 1:] @ x[row + 1:]) / a[row, row]

    x = x * scale[:, np.newaxis]
    return x[:, 0] if vector_rhs else x


def fit_quadratic(points: Sequence[Point]) -> tuple[Polynomial, Polynomial]:
    """
    Fit one quadratic per axis to a sequence of points.

    Args:
        points: Time-ordered points of a track

    Returns:
        Tuple of (poly_x, poly_y)

    Raises:
        InsufficientPointsError: If fewer than 3 points are given
        SingularSystemError: If the sample times cannot determine a quadratic
            (e.g. duplicate timestamps, fewer than 3 distinct times)

    Example:
        >>> pts = [Point(t, (t * t, t * t)) for t in (0.0, 1.0, 2.0, 3.0)]
        >>> poly_x, poly_y = fit_quadratic(pts)
        >>> round(poly_x.eval(4.0), 6)
        16.0
    """
    if len(points) < MIN_POINTS:
        raise InsufficientPointsError(
            "Not enough points to fit quadratic", num_points=len(points)
        )

    matrix, rhs = normal_equations(points)
    coeffs = solve_normal_equations(matrix, rhs)

    (cx, cy), (bx, by), (ax, ay) = coeffs
    return (
        Polynomial(a=float(ax), b=float(bx), c=float(cx)),
        Polynomial(a=float(ay), b=float(by), c=float(cy)),
    )
