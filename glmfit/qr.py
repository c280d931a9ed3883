# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Tuple

from .errors import DimensionError
from .matrix import Matrix
from .utils import is_equal


def householder_reflection(v: Matrix, i: int) -> Matrix:
    """
    Householder matrix reflecting the vector v onto basis direction i.

    H = I - 2 u uᵀ
    u = w / ‖w‖,  w = v + sign(v_i) ‖v‖ e_i

    The sign follows v_i (0 counts as positive) so w never cancels to 0.

    Parameters
    ----------
    v : Matrix   (n, 1), non-zero length
    i : int      0 <= i < n

    Returns
    -------
    H : Matrix   (n, n) symmetric and orthogonal
    """
    if not v.is_vector():
        raise DimensionError(
            f"Householder reflection needs a vector, got {v.n_rows}x{v.n_cols}"
        )
    if not 0 <= i < v.n_rows:
        raise DimensionError(f"direction {i} outside [0, {v.n_rows - 1}]")
    norm_v = v.norm()
    if is_equal(norm_v, 0.0):
        raise DimensionError("a zero length vector has no Householder reflection")

    sign = 1.0 if v[i, 0] >= 0 else -1.0
    w = v.map_elem(lambda x: x + sign * norm_v, i, 0)
    u = w.unit_vec()
    projection = u.outer_product(u)
    # H = I - 2 * u * uᵀ
    return projection.map(lambda x: -2.0 * x).map_diag(lambda x: 1.0 + x)


def householder_qr(A: Matrix) -> Tuple[Matrix, Matrix]:
    """
    Compute the QR decomposition of an m-by-n matrix A using
    Householder transformations.

    A = QR

    For every diagonal d the column d of R, with the entries above row d
    zeroed, is reflected onto e_d:
        Q <- Q H
        R <- H R

    Parameters
    ----------
    A : (m, n) Matrix

    Returns
    -------
    Q : (m, m) Matrix | orthogonal
    R : (m, n) Matrix | upper-triangular (row-echelon when m != n)
    """
    m, n = A.shape
    Q = Matrix.identity(m)
    R = A

    for d in range(min(m, n)):
        # ---- column d with rows [0, d) zeroed ---------------------------------
        x = R.col(d)
        if d > 0:
            x = x.map_sub_matrix(lambda _: 0.0, 0, 0, d, 1)
        if is_equal(x.norm(), 0.0):  # already reduced
            continue

        H = householder_reflection(x, d)
        Q = Q @ H
        R = H @ R

    return Q, R
