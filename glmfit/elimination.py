# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Tuple

import numpy as np

from .errors import DimensionError, NoSolutionError
from .matrix import Matrix
from .utils import is_equal

logger = logging.getLogger(__name__)


def _check_rhs(A: Matrix, b: Matrix) -> None:
    if not b.is_vector() or b.n_rows != A.n_rows:
        raise DimensionError(
            f"b must be a vector of {A.n_rows} elements, got {b.n_rows}x{b.n_cols}"
        )


def lup_decomposition(A: Matrix) -> Tuple[Matrix, Matrix, Matrix]:
    """
    LU decomposition with partial (row) pivoting of a square matrix A.

    P @ A = L @ U

    Parameters
    ----------
    A : Matrix          (n, n)

    Returns
    -------
    L : Matrix          (n, n)
        Unit lower-triangular.
    U : Matrix          (n, n)
        Upper-triangular. Row-echelon unless a column was skipped.
    P : Matrix          (n, n)
        Permutation matrix recording every row swap.
    """
    if not A.is_square():
        raise DimensionError(
            f"LUP decomposition requires a square matrix, got {A.n_rows}x{A.n_cols}"
        )
    n = A.n_rows
    L = np.zeros((n, n))
    U = A.to_numpy()
    P = np.eye(n)

    for d in range(n - 1):
        # The computation is more stable if the pivot is the largest
        # absolute value in column d at or below row d. L, U and P take
        # the same swap so their permutations stay aligned.
        pivot_row = d + int(np.abs(U[d:, d]).argmax())
        if pivot_row != d:
            L[[d, pivot_row]] = L[[pivot_row, d]]
            U[[d, pivot_row]] = U[[pivot_row, d]]
            P[[d, pivot_row]] = P[[pivot_row, d]]

        pivot = U[d, d]
        if is_equal(pivot, 0.0):
            # column already reduced
            continue

        for row in range(d + 1, n):
            factor = U[row, d] / pivot
            L[row, d] = factor
            U[row, :] -= factor * U[d, :]

    L[np.diag_indices(n)] = 1.0
    return Matrix(L), Matrix(U), Matrix(P)


def forward_substitute(L: Matrix, b: Matrix) -> Matrix:
    """
    Solve L x = b for L in column-echelon (or lower-triangular) form, top
    row first.

    Each row's pivot is its first non-zero element scanning from the
    diagonal towards column 0. An unknown without a pivot keeps the value 1,
    so a homogeneous system never collapses to the zero vector.

    Raises
    ------
    DimensionError : L is neither column-echelon nor lower-triangular, or b
        has the wrong shape.
    NoSolutionError : a zero row of L meets a non-zero value of b.
    """
    if not (L.is_col_echelon() or L.is_lower_tri()):
        raise DimensionError(
            "forward substitution requires a column-echelon or lower-triangular matrix"
        )
    _check_rhs(L, b)

    A = L.to_numpy()
    c = b.to_numpy()[:, 0]
    m, n = A.shape
    x = np.ones(n)

    for r in range(m):
        i_pivot = min(r, n - 1)
        while i_pivot > 0 and is_equal(A[r, i_pivot], 0.0):
            i_pivot -= 1
        pivot = A[r, i_pivot]

        if is_equal(pivot, 0.0):
            if not is_equal(c[r], 0.0):
                raise NoSolutionError(
                    f"inconsistent system (no solution): row {r} is all zeros "
                    f"but b[{r}] = {c[r]}"
                )
            continue

        known = A[r, :i_pivot] @ x[:i_pivot]
        x[i_pivot] = (c[r] - known) / pivot

    return Matrix(x.reshape(-1, 1))


def back_substitute(U: Matrix, b: Matrix) -> Matrix:
    """
    Solve U x = b for U in row-echelon form, bottom row first.

    Upper-triangular matrices with zero pivots are accepted as well, which
    is what lup_decomposition leaves behind when a column is already reduced.

    Parameters
    ----------
    U : Matrix          (m, n)
        Row-echelon or upper-triangular matrix (output of lup_decomposition).
    b : Matrix          (m, 1)
        Right-hand side after identical row operations.

    Returns
    -------
    x : Matrix          (n, 1)
        Unknowns without a pivot are left at 1.

    Raises
    ------
    DimensionError : U is neither row-echelon nor upper-triangular, or b
        has the wrong shape.
    NoSolutionError : a zero row of U meets a non-zero value of b.
    """
    if not (U.is_row_echelon() or U.is_upper_tri()):
        raise DimensionError(
            "back substitution requires a row-echelon or upper-triangular matrix"
        )
    _check_rhs(U, b)

    A = U.to_numpy()
    c = b.to_numpy()[:, 0]
    m, n = A.shape
    x = np.ones(n)

    for r in reversed(range(m)):
        i_pivot = min(r, n - 1)
        while i_pivot < n - 1 and is_equal(A[r, i_pivot], 0.0):
            i_pivot += 1
        pivot = A[r, i_pivot]

        if is_equal(pivot, 0.0):
            if not is_equal(c[r], 0.0):
                raise NoSolutionError(
                    f"inconsistent system (no solution): row {r} is all zeros "
                    f"but b[{r}] = {c[r]}"
                )
            continue

        known = A[r, i_pivot + 1 :] @ x[i_pivot + 1 :]
        x[i_pivot] = (c[r] - known) / pivot

    return Matrix(x.reshape(-1, 1))


def solve(A: Matrix, b: Matrix) -> Matrix:
    """
    Solve the square system A x = b through LUP.

    P A = L U, so L y = P b and then U x = y.
    """
    if not A.is_square():
        raise DimensionError(
            f"solve requires a square matrix, got {A.n_rows}x{A.n_cols}"
        )
    _check_rhs(A, b)

    L, U, P = lup_decomposition(A)
    y = forward_substitute(L, P @ b)
    x = back_substitute(U, y)
    logger.debug(f"solve: L=\n{L}\nU=\n{U}\nx=\n{x}")
    return x
