# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from glmfit.elimination import (
    back_substitute,
    forward_substitute,
    lup_decomposition,
    solve,
)
from glmfit.errors import DimensionError, NoSolutionError
from glmfit.matrix import Matrix

logger = logging.getLogger(__name__)


@pytest.mark.parametrize("n", [2, 4, 6])
def test_lup_reconstructs(n):
    rng = np.random.default_rng(seed=10 + n)
    A = Matrix(rng.normal(size=(n, n)))

    L, U, P = lup_decomposition(A)
    logger.debug(f"L=\n{L}\nU=\n{U}\nP=\n{P}")

    np.testing.assert_allclose((P @ A).to_numpy(), (L @ U).to_numpy(), atol=1e-10)
    assert L.is_lower_tri()
    np.testing.assert_array_equal(L.diag().to_numpy(), np.ones((n, 1)))
    assert U.is_upper_tri()
    # every row and column of P holds exactly one 1
    np.testing.assert_array_equal(P.to_numpy().sum(axis=0), np.ones(n))
    np.testing.assert_array_equal(P.to_numpy().sum(axis=1), np.ones(n))


def test_lup_known_pivot():
    L, U, P = lup_decomposition(Matrix([[1, 2], [3, 4]]))
    assert P.tolist() == [[0, 1], [1, 0]]
    np.testing.assert_allclose(L.to_numpy(), [[1, 0], [1 / 3, 1]], atol=1e-12)
    np.testing.assert_allclose(U.to_numpy(), [[3, 4], [0, 2 - 4 / 3]], atol=1e-12)


def test_lup_skips_reduced_column():
    A = Matrix([[0, 1], [0, 2]])
    L, U, P = lup_decomposition(A)
    assert U.tolist() == A.tolist()
    assert L.is_equal(Matrix.identity(2))
    assert P.is_equal(Matrix.identity(2))


def test_lup_requires_square():
    with pytest.raises(DimensionError):
        lup_decomposition(Matrix([[1, 2, 3], [4, 5, 6]]))


def test_forward_substitute():
    x = forward_substitute(Matrix([[2, 0], [1, 1]]), Matrix.vector([4, 3]))
    assert x.tolist() == [[2.0], [1.0]]


def test_back_substitute():
    x = back_substitute(Matrix([[2, 1], [0, 4]]), Matrix.vector([5, 8]))
    assert x.tolist() == [[1.5], [2.0]]


def test_free_unknown_defaults_to_one():
    x = back_substitute(Matrix([[1, 2], [0, 0]]), Matrix.vector([3, 0]))
    assert x.tolist() == [[1.0], [1.0]]


def test_inconsistent_system_raises():
    with pytest.raises(NoSolutionError):
        back_substitute(Matrix([[1, 2], [0, 0]]), Matrix.vector([1, 1]))
    with pytest.raises(NoSolutionError):
        forward_substitute(Matrix([[1, 0], [0, 0]]), Matrix.vector([1, 1]))


def test_substitution_rejects_unreduced_matrix():
    A = Matrix([[0, 1], [1, 0]])
    b = Matrix.vector([1, 1])
    with pytest.raises(DimensionError):
        back_substitute(A, b)
    with pytest.raises(DimensionError):
        forward_substitute(A, b)


def test_substitution_rejects_bad_rhs():
    U = Matrix([[2, 1], [0, 4]])
    with pytest.raises(DimensionError):
        back_substitute(U, Matrix.vector([1, 2, 3]))
    with pytest.raises(DimensionError):
        back_substitute(U, Matrix([[1, 2], [3, 4]]))


@pytest.mark.parametrize("n", [3, 5, 8])
def test_solve_matches_numpy(n):
    rng = np.random.default_rng(seed=n)
    a = rng.normal(size=(n, n)) + n * np.eye(n)
    b = rng.normal(size=(n, 1))

    x = solve(Matrix(a), Matrix(b))
    np.testing.assert_allclose(x.to_numpy(), np.linalg.solve(a, b), atol=1e-8)


def test_solve_homogeneous_singular_system():
    A = Matrix([[1, 2], [2, 4]])
    x = solve(A, Matrix.zeros(2, 1))
    assert x[1, 0] == 1.0
    np.testing.assert_allclose((A @ x).to_numpy(), np.zeros((2, 1)), atol=1e-12)


def test_solve_with_skipped_pivot():
    A = Matrix([[0, 1], [0, 2]])
    b = Matrix.vector([1, 2])
    x = solve(A, b)
    np.testing.assert_allclose((A @ x).to_numpy(), b.to_numpy(), atol=1e-12)


def test_solve_validates_shapes():
    with pytest.raises(DimensionError):
        solve(Matrix([[1, 2, 3], [4, 5, 6]]), Matrix.vector([1, 2]))
    with pytest.raises(DimensionError):
        solve(Matrix([[1, 2], [3, 4]]), Matrix.vector([1, 2, 3]))
