# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .elimination import lup_decomposition
from .errors import DimensionError
from .matrix import Matrix
from .svd import singular
from .utils import is_equal, permutation_sign

logger = logging.getLogger(__name__)


def det(A: Matrix) -> float:
    """
    Calculate the determinant of n-by-n matrix A using elimination.

    det(A) = sign(P) * prod(diag(U)) since P A = L U and L has a unit
    diagonal. O(n³) where ``Matrix.determinant`` is O(n!).
    """
    if not A.is_square():
        raise DimensionError("The determinant is undefined for non-square matrices.")
    L, U, P = lup_decomposition(A)
    # row i of P A is row perm[i] of A
    perm = [int(i) for i in np.argmax(P.to_numpy(), axis=1)]
    sign = permutation_sign(perm)
    diag_prod = float(np.prod(U.diag().to_numpy()))
    return sign * diag_prod


def rank(A: Matrix) -> int:
    """Number of singular values of A that are not ≈ 0."""
    s, _V = singular(A)
    r = sum(1 for i in range(s.n_rows) if not is_equal(s[i, 0], 0.0))
    logger.debug(f"rank: singular values {s.tolist()} -> {r}")
    return r
