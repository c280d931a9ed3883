# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Tuple

import numpy as np

from .eigen import eigenvalues, eigenvector
from .matrix import Matrix
from .utils import is_equal


def _invert_diag(S: Matrix) -> Matrix:
    # Moore-Penrose: zero singular values stay zero
    return S.map_diag(lambda x: 0.0 if is_equal(x, 0.0) else 1.0 / x)


def singular(A: Matrix) -> Tuple[Matrix, Matrix]:
    """
    Singular values and right-singular vectors of A from its Gram matrix.

    AᵀA is symmetric positive semi-definite, so its eigenvalues are real
    and non-negative. They are the squared singular values and its
    eigenvectors are the right-singular vectors.

    Returns
    -------
    s : (n,1) Matrix
        Singular values in descending order.
    V : (n,n) Matrix
        Right-singular vectors as columns. Columns past the last non-zero
        singular value are left as zeros.
    """
    gram = A.T @ A
    lam = eigenvalues(gram)
    V = Matrix.zeros(gram.n_rows, gram.n_cols)

    for i in range(gram.n_rows):
        eigenvalue = lam[i, 0]
        # eigenvalues are descending and non-negative: the first 0 is only
        # padding for singular values that do not exist
        if is_equal(eigenvalue, 0.0):
            break

        # a repeated eigenvalue would solve to the same vector again, so the
        # directions already found for it are deflated (λ v vᵀ removed)
        target = gram
        for j in range(i):
            if is_equal(lam[j, 0], eigenvalue):
                v_j = V.col(j)
                target = target.zip(
                    v_j.outer_product(v_j), lambda g, p: g - eigenvalue * p
                )
        V = V.set_sub_matrix(eigenvector(target, eigenvalue), 0, i)

    # round-off can leave tiny negative eigenvalues
    s = lam.map(lambda x: np.sqrt(max(x, 0.0)))
    return s, V


def svd(A: Matrix) -> Tuple[Matrix, Matrix, Matrix]:
    """
    Singular Value Decomposition built from the Gram matrix's
    eigen-decomposition.

        A = U S Vᵀ

    Algorithm outline
    -----------------
    1.  Form AᵀA and find its eigenvalues with the QR algorithm.
    2.  Eigenvectors become the right-singular vectors V, singular values
        are the square roots of the eigenvalues.
    3.  U = A V S⁻¹, where S⁻¹ only inverts the non-zero diagonal entries.

    Returns
    -------
    U  : (m,n) Matrix
    S  : (n,n) Matrix   diagonal, descending
    Vt : (n,n) Matrix
    """
    s, V = singular(A)
    S = s.diagonalize()
    U = A @ V @ _invert_diag(S)
    return U, S, V.T


def pseudoinverse(A: Matrix) -> Matrix:
    """
    Moore-Penrose pseudoinverse, (U S⁻¹ Vᵀ)ᵀ.

    Always defined. Matches the exact inverse when A is square and
    invertible.
    """
    U, S, Vt = svd(A)
    return (U @ _invert_diag(S) @ Vt).T
