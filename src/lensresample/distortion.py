"""Radial-tangential (Brown-Conrady) lens distortion on normalized coordinates.

The forward model maps an undistorted normalized point (x, y) to::

    s = 1 + k1 r^2 + k2 r^4 + ...
    xd = x s + 2 t1 x y + t2 (r^2 + 2 x^2)
    yd = y s + t1 (r^2 + 2 y^2) + 2 t2 x y

with any number of radial coefficients. There is no closed form inverse;
undistortion runs a fixed-point iteration to get close, then polishes with
Newton steps using the analytic Jacobian. Points where this does not reach the
tolerance are reported as not converged and the best estimate is returned.
"""

import numba
import numpy as np


def get_radial_coeffs(radial):
    return np.ascontiguousarray(np.ravel(np.asarray(radial, dtype=np.float64)))


def distort_points(pn, radial, t1=0.0, t2=0.0, dst=None):
    """Apply lens distortion to normalized points of shape (N, 2)."""
    pn = np.asarray(pn, dtype=np.float64)
    return _distort_points(pn, get_radial_coeffs(radial), float(t1), float(t2), dst)


def distort_points_with_jacobian(pn, radial, t1=0.0, t2=0.0):
    """Apply lens distortion and return the Jacobian of the mapping at each point.

    Returns:
        (dst, jac) where dst has shape (N, 2) and jac has shape (N, 4) holding
        [dxd/dx, dxd/dy, dyd/dx, dyd/dy].
    """
    pn = np.asarray(pn, dtype=np.float64)
    return _distort_points_with_jacobian(pn, get_radial_coeffs(radial), float(t1), float(t2))


def undistort_points(
        pn, radial, t1=0.0, t2=0.0, n_iter_fixed_point=20, n_iter_newton=10, tol=1e-10,
        return_converged=False):
    """Remove lens distortion from normalized points of shape (N, 2).

    Args:
        pn: Distorted normalized points.
        radial: Radial coefficients k1, k2, ...
        t1, t2: Tangential coefficients.
        n_iter_fixed_point: Maximum number of fixed-point iterations.
        n_iter_newton: Maximum number of Newton iterations after the fixed-point phase.
        tol: Convergence threshold on the distance between the re-distorted
            estimate and the input, in normalized units.
        return_converged: Also return a boolean array telling which points converged.

    Returns:
        The undistorted points, and if requested, the convergence flags. For points
        whose estimate is not finite the input point is returned unchanged.
    """
    pn = np.asarray(pn, dtype=np.float64)
    pun, converged = _undistort_points(
        pn, get_radial_coeffs(radial), float(t1), float(t2),
        n_iter_fixed_point, n_iter_newton, float(tol))
    if return_converged:
        return pun, converged
    return pun


@numba.njit(error_model='numpy', cache=True)
def _radial_factor(r2, radial):
    # s(r2) = 1 + sum_i k_i r2^i and its derivative ds/dr2
    s = 1.0
    ds = 0.0
    r2_pow = 1.0
    for i in range(radial.shape[0]):
        ds += (i + 1) * radial[i] * r2_pow
        r2_pow *= r2
        s += radial[i] * r2_pow
    return s, ds


@numba.njit(error_model='numpy', cache=True)
def _distort_one(x, y, radial, t1, t2):
    r2 = x * x + y * y
    s, ds = _radial_factor(r2, radial)
    xy = x * y
    x_d = x * s + 2.0 * t1 * xy + t2 * (r2 + 2.0 * x * x)
    y_d = y * s + t1 * (r2 + 2.0 * y * y) + 2.0 * t2 * xy

    _2_xy_ds = 2.0 * xy * ds
    j00 = s + 2.0 * x * x * ds + 2.0 * t1 * y + 6.0 * t2 * x
    j01 = _2_xy_ds + 2.0 * t1 * x + 2.0 * t2 * y
    j10 = j01
    j11 = s + 2.0 * y * y * ds + 6.0 * t1 * y + 2.0 * t2 * x
    return x_d, y_d, j00, j01, j10, j11


@numba.njit(error_model='numpy', cache=True)
def _distort_points(pun, radial, t1, t2, dst):
    if dst is None:
        dst = np.empty_like(pun)

    for i in range(pun.shape[0]):
        x = pun[i, 0]
        y = pun[i, 1]
        r2 = x * x + y * y
        s, _ = _radial_factor(r2, radial)
        xy = x * y
        dst[i, 0] = x * s + 2.0 * t1 * xy + t2 * (r2 + 2.0 * x * x)
        dst[i, 1] = y * s + t1 * (r2 + 2.0 * y * y) + 2.0 * t2 * xy
    return dst


@numba.njit(error_model='numpy', cache=True)
def _distort_points_with_jacobian(pun, radial, t1, t2):
    dst = np.empty_like(pun)
    jac_dst = np.empty((pun.shape[0], 4), dtype=np.float64)
    for i in range(pun.shape[0]):
        x_d, y_d, j00, j01, j10, j11 = _distort_one(pun[i, 0], pun[i, 1], radial, t1, t2)
        dst[i, 0] = x_d
        dst[i, 1] = y_d
        jac_dst[i, 0] = j00
        jac_dst[i, 1] = j01
        jac_dst[i, 2] = j10
        jac_dst[i, 3] = j11
    return dst, jac_dst


@numba.njit(error_model='numpy', cache=True)
def _undistort_points(pn, radial, t1, t2, n_iter_fixed_point, n_iter_newton, tol):
    tol2 = tol * tol
    # Levenberg style damping for nearly singular Jacobians
    lambda_ = 0.5
    pun_hat = np.empty_like(pn)
    converged = np.zeros(pn.shape[0], dtype=np.bool_)

    for i in range(pn.shape[0]):
        pnx = pn[i, 0]
        pny = pn[i, 1]
        x = pnx
        y = pny
        err2 = np.inf

        # Fixed point iteration
        for _ in range(n_iter_fixed_point):
            r2 = x * x + y * y
            s, _ds = _radial_factor(r2, radial)
            xy = x * y
            dx = 2.0 * t1 * xy + t2 * (r2 + 2.0 * x * x)
            dy = t1 * (r2 + 2.0 * y * y) + 2.0 * t2 * xy
            err_x = pnx - (x * s + dx)
            err_y = pny - (y * s + dy)
            err2 = err_x * err_x + err_y * err_y
            if err2 < tol2:
                break
            x = (pnx - dx) / s
            y = (pny - dy) / s

        # Newton iteration
        if not err2 < tol2:
            for _ in range(n_iter_newton):
                x_d, y_d, j00, j01, j10, j11 = _distort_one(x, y, radial, t1, t2)
                err_x = pnx - x_d
                err_y = pny - y_d
                err2 = err_x * err_x + err_y * err_y
                if err2 < tol2:
                    break
                det = j00 * j11 - j01 * j10
                if np.fabs(det) < 0.05:
                    j00 += lambda_
                    j11 += lambda_
                    det = j00 * j11 - j01 * j10
                inv_det = 1.0 / det
                x += inv_det * (j11 * err_x - j01 * err_y)
                y += inv_det * (j00 * err_y - j10 * err_x)

            # residual of the final estimate
            x_d, y_d, j00, j01, j10, j11 = _distort_one(x, y, radial, t1, t2)
            err_x = pnx - x_d
            err_y = pny - y_d
            err2 = err_x * err_x + err_y * err_y

        if np.isfinite(x) and np.isfinite(y):
            pun_hat[i, 0] = x
            pun_hat[i, 1] = y
            converged[i] = err2 < tol2
        else:
            pun_hat[i, 0] = pnx
            pun_hat[i, 1] = pny

    return pun_hat, converged
