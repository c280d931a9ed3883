# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .elimination import solve
from .errors import DimensionError, NotSymmetricError
from .matrix import Matrix
from .qr import householder_qr
from .utils import is_equal

logger = logging.getLogger(__name__)

MAX_EIGEN_ITERATIONS: int = 1000


def eigenvalues(A: Matrix, max_iter: int = MAX_EIGEN_ITERATIONS) -> Matrix:
    """
    Eigenvalues of a symmetric matrix using the (unshifted) QR algorithm.

    A_0 = A,  A_k = Q_k R_k,  A_{k+1} = R_k Q_k

    Stops once A_k is upper-triangular within tolerance or after
    `max_iter` iterations.

    Parameters
    ----------
    A : (n,n) Matrix
        Symmetric, so every eigenvalue is real.
    max_iter : int
        Maximum number of QR iterations.

    Returns
    -------
    lam : (n,1) Matrix
        Diagonal of the converged A_k in descending order.

    Raises
    ------
    NotSymmetricError
        If A is not symmetric.
    """
    if not A.is_symmetric():
        raise NotSymmetricError(
            f"eigenvalues require a symmetric matrix ({A.n_rows}x{A.n_cols} given)"
        )

    iters = 0
    while iters < max_iter and not A.is_upper_tri():
        Q, R = householder_qr(A)
        A = R @ Q
        iters += 1

    if iters == max_iter and not A.is_upper_tri():
        logger.warning(
            f"QR algorithm did not converge in {max_iter} iterations; "
            "eigenvalues may be inaccurate"
        )
    logger.debug(f"QR algorithm finished after {iters} iteration(s)")

    # An A that starts upper-triangular never iterates, so sort explicitly
    lam = A.diag().to_numpy()[:, 0]
    return Matrix.vector(np.sort(lam)[::-1])


def eigenvector(A: Matrix, eigenvalue: float) -> Matrix:
    """
    Unit eigenvector of A for `eigenvalue`.

    Solves (A - λI) v = 0, where the free unknowns default to 1, and
    normalises the result.
    """
    if not A.is_square():
        raise DimensionError(
            f"eigenvectors require a square matrix, got {A.n_rows}x{A.n_cols}"
        )
    shifted = A.map_diag(lambda x: x - eigenvalue)
    v = solve(shifted, Matrix.zeros(A.n_rows, 1))
    return v.unit_vec()


def is_eigenvalue(A: Matrix, eigenvalue: float) -> bool:
    """True when det(A - λI) ≈ 0."""
    if not A.is_square():
        raise DimensionError(
            f"only square matrices have eigenvalues, got {A.n_rows}x{A.n_cols}"
        )
    return is_equal(A.map_diag(lambda x: x - eigenvalue).determinant(), 0.0)
