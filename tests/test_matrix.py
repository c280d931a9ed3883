# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
import math
import operator

import numpy as np
import pytest

from glmfit.errors import DimensionError, SingularMatrixError
from glmfit.matrix import Matrix

logger = logging.getLogger(__name__)

A3 = [[1, 2, 3], [0, 4, 5], [1, 0, 6]]


# ----- Construction -----


@pytest.mark.parametrize(
    "data",
    [
        [],
        [[]],
        [[1, 2], [3]],
        [1, 2, 3],
        np.zeros(3),
        np.zeros((0, 3)),
        np.zeros((2, 2, 2)),
    ],
)
def test_invalid_construction_raises(data):
    with pytest.raises(DimensionError):
        Matrix(data)


def test_construction_copies_input():
    rows = [[1.0, 2.0], [3.0, 4.0]]
    arr = np.array(rows)
    A = Matrix(rows)
    B = Matrix(arr)
    rows[0][0] = 99.0
    arr[0, 0] = 99.0
    assert A[0, 0] == 1.0
    assert B[0, 0] == 1.0


def test_exported_arrays_are_copies():
    A = Matrix([[1, 2], [3, 4]])
    arr = A.to_numpy()
    arr[0, 0] = 42.0
    as_array = np.asarray(A)
    as_array[1, 1] = 42.0
    assert A.tolist() == [[1.0, 2.0], [3.0, 4.0]]


def test_no_new_attributes():
    A = Matrix([[1]])
    with pytest.raises(AttributeError):
        A.extra = 1


def test_operations_leave_receiver_unchanged():
    A = Matrix(A3)
    before = A.tolist()
    A.map(lambda x: x * 2)
    A.map_diag(lambda x: 0.0)
    A.set_sub_matrix(Matrix([[9]]), 0, 0)
    A.row_swap(0, 2)
    assert A.tolist() == before


def test_factories():
    assert Matrix.identity(3).tolist() == np.eye(3).tolist()
    assert Matrix.zeros(2, 3).shape == (2, 3)
    v = Matrix.vector([1, 2, 3])
    assert v.shape == (3, 1)
    assert v.is_vector()
    with pytest.raises(DimensionError):
        Matrix.identity(0)
    with pytest.raises(DimensionError):
        Matrix.zeros(0, 2)
    with pytest.raises(DimensionError):
        Matrix.vector([])


# ----- Getters -----


def test_getters():
    A = Matrix([[1, 2, 3], [4, 5, 6]])
    assert A.n_rows == 2 and A.n_cols == 3
    assert A.elem(1, 2) == 6.0
    assert A[0, 1] == 2.0
    assert A.row(1).tolist() == [[4.0], [5.0], [6.0]]
    assert A.col(2).tolist() == [[3.0], [6.0]]
    assert A.diag().tolist() == [[1.0], [5.0]]


@pytest.mark.parametrize("i_row,i_col", [(2, 0), (0, 3), (-1, 0), (0, -1)])
def test_out_of_range_index_raises(i_row, i_col):
    A = Matrix([[1, 2, 3], [4, 5, 6]])
    with pytest.raises(DimensionError):
        A[i_row, i_col]


# ----- Copy-with-change -----


def test_set_sub_matrix():
    A = Matrix.zeros(3, 3).set_sub_matrix(Matrix([[1, 2], [3, 4]]), 1, 1)
    assert A.tolist() == [[0, 0, 0], [0, 1, 2], [0, 3, 4]]
    with pytest.raises(DimensionError):
        Matrix.zeros(3, 3).set_sub_matrix(Matrix([[1, 2], [3, 4]]), 2, 2)


def test_row_swap():
    A = Matrix([[1, 2], [3, 4], [5, 6]]).row_swap(0, 2)
    assert A.tolist() == [[5, 6], [3, 4], [1, 2]]


# ----- Checks -----


@pytest.mark.parametrize(
    "data,square,symmetric,lower,upper",
    [
        ([[1, 2], [2, 1]], True, True, False, False),
        ([[1, 0], [5, 1]], True, False, True, False),
        ([[1, 5], [0, 1]], True, False, False, True),
        ([[2, 0], [0, 3]], True, True, True, True),
        ([[1, 2, 3], [4, 5, 6]], False, False, False, False),
    ],
)
def test_structural_predicates(data, square, symmetric, lower, upper):
    A = Matrix(data)
    assert A.is_square() is square
    assert A.is_symmetric() is symmetric
    assert A.is_lower_tri() is lower
    assert A.is_upper_tri() is upper


def test_predicates_use_tolerance():
    assert Matrix([[1, 2], [2 + 1e-5, 1]]).is_symmetric()
    assert Matrix([[1, 2], [1e-5, 1]]).is_upper_tri()
    assert not Matrix([[1, 2], [1e-3, 1]]).is_upper_tri()


@pytest.mark.parametrize(
    "data,expected",
    [
        ([[1, 2, 3], [0, 1, 4], [0, 0, 0]], True),
        ([[1, 2], [0, 0], [0, 0]], True),
        ([[0, 1, 2], [0, 0, 3]], True),
        ([[0, 1], [1, 0]], False),
        ([[0, 0], [1, 2]], False),
        ([[1, 2], [0, 3], [0, 4]], False),
    ],
)
def test_is_row_echelon(data, expected):
    assert Matrix(data).is_row_echelon() is expected


@pytest.mark.parametrize(
    "data,expected",
    [
        ([[1, 0, 0], [2, 3, 0], [4, 5, 6]], True),
        ([[1, 0], [2, 3]], True),
        ([[1, 0, 0], [0, 0, 1]], True),
        ([[0, 1], [1, 0]], False),
        ([[1, 1], [1, 0]], False),
    ],
)
def test_is_col_echelon(data, expected):
    assert Matrix(data).is_col_echelon() is expected


def test_is_equal_matrix():
    A = Matrix([[1, 2], [3, 4]])
    assert A.is_equal(Matrix([[1 + 1e-5, 2], [3, 4 - 1e-5]]))
    assert not A.is_equal(Matrix([[1.1, 2], [3, 4]]))
    assert not A.is_equal(Matrix([[1, 2, 0], [3, 4, 0]]))


# ----- Functionals -----


def test_maps():
    A = Matrix([[1, 2], [3, 4]])
    assert A.map(lambda x: 2 * x).tolist() == [[2, 4], [6, 8]]
    assert A.map_elem(lambda x: 10 * x, 0, 1).tolist() == [[1, 20], [3, 4]]
    assert A.map_row(operator.neg, 1).tolist() == [[1, 2], [-3, -4]]
    assert A.map_col(lambda x: x + 1, 0).tolist() == [[2, 2], [4, 4]]
    assert A.map_diag(lambda x: 0.0).tolist() == [[0, 2], [3, 0]]


def test_map_sub_matrix():
    A = Matrix(np.arange(12).reshape(3, 4))
    B = A.map_sub_matrix(lambda x: -1.0, 1, 1, 2, 2)
    expected = np.arange(12, dtype=float).reshape(3, 4)
    expected[1:3, 1:3] = -1.0
    np.testing.assert_array_equal(B.to_numpy(), expected)
    with pytest.raises(DimensionError):
        A.map_sub_matrix(lambda x: x, 2, 2, 2, 2)


def test_zips():
    A = Matrix([[1, 2], [3, 4]])
    B = Matrix([[10, 20], [30, 40]])
    assert A.zip(B, operator.add).tolist() == [[11, 22], [33, 44]]

    v = Matrix.vector([10, 20])
    assert A.zip_row(v, operator.add, 0).tolist() == [[11, 22], [3, 4]]
    assert A.zip_col(v, operator.mul, 1).tolist() == [[1, 20], [3, 80]]

    with pytest.raises(DimensionError):
        A.zip(Matrix([[1, 2, 3], [4, 5, 6]]), operator.add)
    with pytest.raises(DimensionError):
        A.zip_row(Matrix.vector([1, 2, 3]), operator.add, 0)


def test_fold_vec():
    v = Matrix.vector([1, 2, 3, 4])
    assert v.fold_vec(operator.add, 0.0) == 10.0
    assert v.fold_vec(operator.mul, 1.0) == 24.0
    with pytest.raises(DimensionError):
        Matrix([[1, 2], [3, 4]]).fold_vec(operator.add, 0.0)


# ----- Operations -----


def test_matrix_product_matches_numpy():
    rng = np.random.default_rng(0)
    a = rng.normal(size=(4, 3))
    b = rng.normal(size=(3, 5))
    C = Matrix(a) @ Matrix(b)
    np.testing.assert_allclose(C.to_numpy(), a @ b, rtol=1e-12)
    assert Matrix(a).matrix_product(Matrix(b)).is_equal(C)


def test_matrix_product_shape_mismatch():
    with pytest.raises(DimensionError):
        Matrix([[1, 2, 3]]) @ Matrix([[1, 2, 3]])


def test_transpose():
    A = Matrix([[1, 2, 3], [4, 5, 6]])
    assert A.T.tolist() == [[1, 4], [2, 5], [3, 6]]
    assert A.transpose().T.is_equal(A)


def test_inner_and_outer_product():
    u = Matrix.vector([1, 2, 3])
    v = Matrix.vector([4, 5, 6])
    assert u.inner_product(v) == 32.0
    assert u.outer_product(v).tolist() == np.outer([1, 2, 3], [4, 5, 6]).tolist()
    with pytest.raises(DimensionError):
        u.inner_product(Matrix.vector([1, 2]))


def test_trace_norm_unit_vec():
    assert Matrix(A3).trace() == 11.0
    v = Matrix.vector([3, 4])
    assert v.norm() == 5.0
    np.testing.assert_allclose(v.unit_vec().to_numpy(), [[0.6], [0.8]])
    with pytest.raises(DimensionError):
        Matrix.vector([0, 0]).unit_vec()
    with pytest.raises(DimensionError):
        Matrix([[1, 2], [3, 4]]).norm()


def test_partial_pivot_first_occurrence():
    A = Matrix([[1, 0], [-5, 0], [5, 1]])
    assert A.partial_pivot(0) == 1
    assert A.partial_pivot(1) == 2


def test_diagonalize():
    assert Matrix.vector([1, 2]).diagonalize().tolist() == [[1, 0], [0, 2]]
    with pytest.raises(DimensionError):
        Matrix([[1, 2]]).diagonalize()


# ----- Determinant, minors and inverse -----


def test_minor_and_cofactor():
    A = Matrix(A3)
    assert A.minor(0, 0).tolist() == [[4, 5], [0, 6]]
    assert A.minor(1, 2).tolist() == [[1, 2], [1, 0]]
    assert A.cofactor(0, 0) == 24.0
    assert A.cofactor(0, 1) == 5.0


def test_determinant_known_values():
    assert Matrix([[7]]).determinant() == 7.0
    assert Matrix([[1, 2], [3, 4]]).determinant() == -2.0
    assert Matrix(A3).determinant() == 22.0


@pytest.mark.parametrize("n", [2, 3, 4, 5])
def test_determinant_matches_numpy(n):
    rng = np.random.default_rng(seed=n)
    a = rng.normal(size=(n, n))
    assert math.isclose(
        Matrix(a).determinant(), np.linalg.det(a), rel_tol=1e-9, abs_tol=1e-10
    )


def test_adjugate():
    a = np.array(A3, dtype=float)
    adj = Matrix(a).adjugate()
    np.testing.assert_allclose(
        adj.to_numpy(), np.linalg.det(a) * np.linalg.inv(a), atol=1e-10
    )


def test_inverse():
    A = Matrix([[4, 7, 2], [3, 6, 1], [2, 5, 3]])
    assert A.is_invertible()
    assert (A @ A.inverse()).is_equal(Matrix.identity(3))
    np.testing.assert_allclose(
        A.inverse().to_numpy(), np.linalg.inv(A.to_numpy()), atol=1e-10
    )


def test_inverse_of_singular_matrix_raises():
    A = Matrix([[1, 2, 3], [2, 4, 6], [1, 0, 1]])
    assert not A.is_invertible()
    with pytest.raises(SingularMatrixError):
        A.inverse()


@pytest.mark.parametrize(
    "method", ["trace", "determinant", "inverse", "cofactor_matrix"]
)
def test_square_only_operations(method):
    with pytest.raises(DimensionError):
        getattr(Matrix([[1, 2, 3], [4, 5, 6]]), method)()


# ----- Display -----


def test_str_aligns_columns():
    A = Matrix([[1, 22.5], [-3, 4]])
    logger.debug(f"\n{A}")
    assert str(A) == "{ 1.0 22.5}\n{-3.0  4.0}"


def test_str_rounds_for_display_only():
    A = Matrix([[1.23456]])
    assert str(A) == "{1.235}"
    assert A[0, 0] == 1.23456
