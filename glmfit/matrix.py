# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Immutable dense matrices.

A ``Matrix`` wraps a read-only float64 ndarray. Every operation returns a
new ``Matrix``; nothing is modified in place. A matrix with exactly one
column is treated as a vector.
"""

import functools
from typing import Callable, Iterable, Sequence, Tuple, Union

import numpy as np

from .errors import DimensionError, SingularMatrixError
from .utils import EPSILON, is_equal, round_to_precision


UnaryOp = Callable[[float], float]
BinaryOp = Callable[[float, float], float]


def _is_zero(values: np.ndarray) -> np.ndarray:
    """Elementwise comparator check against zero."""
    return np.abs(values) < EPSILON


class Matrix:
    """
    Immutable, rectangular, row-major matrix of real numbers.

    Parameters
    ----------
    data : nested sequence, 2-D ndarray or Matrix
        At least one row and one column, every row the same length.

    Raises
    ------
    DimensionError
        If ``data`` is empty, jagged or not two-dimensional.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Union["Matrix", np.ndarray, Sequence[Sequence[float]]]):
        if isinstance(data, Matrix):
            self._data = data._data
            return

        if isinstance(data, np.ndarray):
            if data.ndim != 2:
                raise DimensionError(
                    f"matrix data must be 2-dimensional, got {data.ndim} dimension(s)"
                )
            arr = np.array(data, dtype=float)
        else:
            try:
                rows = [list(row) for row in data]
            except TypeError:
                raise DimensionError("matrix data must be a sequence of rows") from None
            if not rows or not rows[0]:
                raise DimensionError("matrix must have at least 1 row and 1 column")
            n_cols = len(rows[0])
            for r, row in enumerate(rows):
                if len(row) != n_cols:
                    raise DimensionError(
                        f"every row must have {n_cols} columns, row {r} has {len(row)}"
                    )
            arr = np.array(rows, dtype=float)

        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise DimensionError("matrix must have at least 1 row and 1 column")
        arr.flags.writeable = False
        self._data = arr

    @classmethod
    def _wrap(cls, arr: np.ndarray) -> "Matrix":
        # arr must be freshly allocated; ownership passes to the new Matrix
        obj = cls.__new__(cls)
        arr = np.asarray(arr, dtype=float)
        arr.flags.writeable = False
        obj._data = arr
        return obj

    # ------------------------------------------------------------------
    # Special matrices
    # ------------------------------------------------------------------
    @classmethod
    def identity(cls, n: int) -> "Matrix":
        """n-by-n identity matrix."""
        if n < 1:
            raise DimensionError(f"identity size must be positive, got {n}")
        return cls._wrap(np.eye(n))

    @classmethod
    def zeros(cls, n_rows: int, n_cols: int) -> "Matrix":
        if n_rows < 1 or n_cols < 1:
            raise DimensionError(
                f"zeros needs positive dimensions, got {n_rows}x{n_cols}"
            )
        return cls._wrap(np.zeros((n_rows, n_cols)))

    @classmethod
    def vector(cls, values: Iterable[float]) -> "Matrix":
        """Column vector built from a flat sequence of values."""
        arr = np.array(list(values), dtype=float)
        if arr.ndim != 1 or arr.size == 0:
            raise DimensionError("a vector needs a non-empty flat sequence of values")
        return cls._wrap(arr.reshape(-1, 1))

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------
    @property
    def n_rows(self) -> int:
        return self._data.shape[0]

    @property
    def n_cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    def _check_row(self, i_row: int) -> None:
        if not 0 <= i_row < self.n_rows:
            raise DimensionError(
                f"row index {i_row} outside [0, {self.n_rows - 1}]"
            )

    def _check_col(self, i_col: int) -> None:
        if not 0 <= i_col < self.n_cols:
            raise DimensionError(
                f"column index {i_col} outside [0, {self.n_cols - 1}]"
            )

    def _require_square(self, operation: str) -> None:
        if not self.is_square():
            raise DimensionError(
                f"{operation} requires a square matrix, got {self.n_rows}x{self.n_cols}"
            )

    def _require_vector(self, operation: str) -> None:
        if not self.is_vector():
            raise DimensionError(
                f"{operation} requires a vector, got {self.n_rows}x{self.n_cols}"
            )

    def elem(self, i_row: int, i_col: int) -> float:
        self._check_row(i_row)
        self._check_col(i_col)
        return float(self._data[i_row, i_col])

    def __getitem__(self, key: Tuple[int, int]) -> float:
        i_row, i_col = key
        return self.elem(i_row, i_col)

    def row(self, i_row: int) -> "Matrix":
        """Row ``i_row`` returned as a column vector."""
        self._check_row(i_row)
        return Matrix._wrap(self._data[i_row, :].reshape(-1, 1).copy())

    def col(self, i_col: int) -> "Matrix":
        """Column ``i_col`` returned as a column vector."""
        self._check_col(i_col)
        return Matrix._wrap(self._data[:, i_col].reshape(-1, 1).copy())

    def diag(self) -> "Matrix":
        """Diagonal top-left to bottom-right as a vector (min(rows, cols) long)."""
        return Matrix._wrap(np.diag(self._data).reshape(-1, 1).copy())

    def to_numpy(self) -> np.ndarray:
        """Writable copy of the underlying array."""
        return self._data.copy()

    def tolist(self) -> list:
        return self._data.tolist()

    def __array__(self, dtype=None, copy=None):
        return np.array(self._data, dtype=dtype, copy=True)

    # ------------------------------------------------------------------
    # Copy-with-change
    # ------------------------------------------------------------------
    def set_sub_matrix(self, sub: "Matrix", i_row: int, i_col: int) -> "Matrix":
        """Copy of this matrix with ``sub`` placed at top-left (i_row, i_col)."""
        if (
            i_row < 0
            or i_col < 0
            or i_row + sub.n_rows > self.n_rows
            or i_col + sub.n_cols > self.n_cols
        ):
            raise DimensionError(
                f"{sub.n_rows}x{sub.n_cols} sub-matrix at ({i_row}, {i_col}) "
                f"does not fit in a {self.n_rows}x{self.n_cols} matrix"
            )
        arr = self.to_numpy()
        arr[i_row : i_row + sub.n_rows, i_col : i_col + sub.n_cols] = sub._data
        return Matrix._wrap(arr)

    def row_swap(self, i_row0: int, i_row1: int) -> "Matrix":
        self._check_row(i_row0)
        self._check_row(i_row1)
        arr = self.to_numpy()
        arr[[i_row0, i_row1]] = arr[[i_row1, i_row0]]
        return Matrix._wrap(arr)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def is_square(self) -> bool:
        return self.n_rows == self.n_cols

    def is_vector(self) -> bool:
        return self.n_cols == 1

    def is_symmetric(self) -> bool:
        if not self.is_square():
            return False
        return bool(np.all(_is_zero(self._data - self._data.T)))

    def is_lower_tri(self) -> bool:
        """Square with every element above the diagonal ≈ 0."""
        if not self.is_square():
            return False
        return bool(np.all(_is_zero(np.triu(self._data, k=1))))

    def is_upper_tri(self) -> bool:
        """Square with every element below the diagonal ≈ 0."""
        if not self.is_square():
            return False
        return bool(np.all(_is_zero(np.tril(self._data, k=-1))))

    def is_row_echelon(self) -> bool:
        """
        Every row's left-most non-zero element (pivot) lies strictly to the
        right of the pivot of the row above. All-zero rows have no pivot and
        may only sit at the bottom.
        """
        prev_pivot = self.n_cols
        for r in reversed(range(self.n_rows)):
            c = 0
            while c < prev_pivot and is_equal(self._data[r, c], 0.0):
                c += 1
            if c == prev_pivot and c != self.n_cols:
                return False
            prev_pivot = c
        return True

    def is_col_echelon(self) -> bool:
        """
        Every row's right-most non-zero element (pivot) lies strictly to the
        right of the pivot of the row above, scanning top to bottom.
        """
        prev_pivot = -1
        for r in range(self.n_rows):
            c = self.n_cols - 1
            while c > prev_pivot and is_equal(self._data[r, c], 0.0):
                c -= 1
            if c == prev_pivot and c != -1:
                return False
            prev_pivot = c
        return True

    def is_invertible(self) -> bool:
        return self.is_square() and not is_equal(self.determinant(), 0.0)

    def is_equal(self, other: "Matrix") -> bool:
        """Same shape and every pair of elements equal within EPSILON."""
        if self.shape != other.shape:
            return False
        return bool(np.all(_is_zero(self._data - other._data)))

    # ------------------------------------------------------------------
    # Functionals
    # ------------------------------------------------------------------
    @staticmethod
    def _apply(f: Callable, *arrays: np.ndarray) -> np.ndarray:
        return np.vectorize(f, otypes=[float])(*arrays)

    def map(self, f: UnaryOp) -> "Matrix":
        """Apply ``f`` to every element."""
        return Matrix._wrap(self._apply(f, self._data))

    def map_elem(self, f: UnaryOp, i_row: int, i_col: int) -> "Matrix":
        self._check_row(i_row)
        self._check_col(i_col)
        arr = self.to_numpy()
        arr[i_row, i_col] = f(arr[i_row, i_col])
        return Matrix._wrap(arr)

    def map_row(self, f: UnaryOp, i_row: int) -> "Matrix":
        self._check_row(i_row)
        arr = self.to_numpy()
        arr[i_row, :] = self._apply(f, arr[i_row, :])
        return Matrix._wrap(arr)

    def map_col(self, f: UnaryOp, i_col: int) -> "Matrix":
        self._check_col(i_col)
        arr = self.to_numpy()
        arr[:, i_col] = self._apply(f, arr[:, i_col])
        return Matrix._wrap(arr)

    def map_diag(self, f: UnaryOp) -> "Matrix":
        """Apply ``f`` to the min(rows, cols) diagonal elements."""
        arr = self.to_numpy()
        idx = np.arange(min(self.shape))
        arr[idx, idx] = self._apply(f, arr[idx, idx])
        return Matrix._wrap(arr)

    def map_sub_matrix(
        self, f: UnaryOp, i_row: int, i_col: int, n_rows: int, n_cols: int
    ) -> "Matrix":
        """Apply ``f`` to the n_rows-by-n_cols block at top-left (i_row, i_col)."""
        if n_rows <= 0 or n_cols <= 0:
            raise DimensionError(
                f"sub-matrix needs positive dimensions, got {n_rows}x{n_cols}"
            )
        if (
            i_row < 0
            or i_col < 0
            or i_row + n_rows > self.n_rows
            or i_col + n_cols > self.n_cols
        ):
            raise DimensionError(
                f"{n_rows}x{n_cols} sub-matrix at ({i_row}, {i_col}) "
                f"does not fit in a {self.n_rows}x{self.n_cols} matrix"
            )
        arr = self.to_numpy()
        block = (slice(i_row, i_row + n_rows), slice(i_col, i_col + n_cols))
        arr[block] = self._apply(f, arr[block])
        return Matrix._wrap(arr)

    def zip(self, other: "Matrix", f: BinaryOp) -> "Matrix":
        """Combine corresponding elements, ``f(self[r, c], other[r, c])``."""
        if self.shape != other.shape:
            raise DimensionError(
                f"cannot zip a {self.n_rows}x{self.n_cols} matrix "
                f"with a {other.n_rows}x{other.n_cols} matrix"
            )
        return Matrix._wrap(self._apply(f, self._data, other._data))

    def zip_row(self, other: "Matrix", f: BinaryOp, i_row: int) -> "Matrix":
        """Combine the vector ``other`` onto row ``i_row``."""
        if not other.is_vector() or other.n_rows != self.n_cols:
            raise DimensionError(
                f"zip_row needs a vector of {self.n_cols} elements, "
                f"got {other.n_rows}x{other.n_cols}"
            )
        self._check_row(i_row)
        arr = self.to_numpy()
        arr[i_row, :] = self._apply(f, arr[i_row, :], other._data[:, 0])
        return Matrix._wrap(arr)

    def zip_col(self, other: "Matrix", f: BinaryOp, i_col: int) -> "Matrix":
        """Combine the vector ``other`` onto column ``i_col``."""
        if not other.is_vector() or other.n_rows != self.n_rows:
            raise DimensionError(
                f"zip_col needs a vector of {self.n_rows} elements, "
                f"got {other.n_rows}x{other.n_cols}"
            )
        self._check_col(i_col)
        arr = self.to_numpy()
        arr[:, i_col] = self._apply(f, arr[:, i_col], other._data[:, 0])
        return Matrix._wrap(arr)

    def fold_vec(self, f: Callable, init):
        """Left-to-right reduction over the elements of a vector."""
        self._require_vector("fold_vec")
        return functools.reduce(f, (float(x) for x in self._data[:, 0]), init)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def matrix_product(self, other: "Matrix") -> "Matrix":
        if self.n_cols != other.n_rows:
            raise DimensionError(
                f"cannot multiply a {self.n_rows}x{self.n_cols} matrix "
                f"by a {other.n_rows}x{other.n_cols} matrix"
            )
        return Matrix._wrap(self._data @ other._data)

    def __matmul__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.matrix_product(other)

    def inner_product(self, other: "Matrix") -> float:
        """Dot product of two vectors of equal length."""
        if not self.is_vector() or not other.is_vector() or self.n_rows != other.n_rows:
            raise DimensionError(
                f"inner product needs two vectors of equal length, got "
                f"{self.n_rows}x{self.n_cols} and {other.n_rows}x{other.n_cols}"
            )
        return float(self._data[:, 0] @ other._data[:, 0])

    def outer_product(self, other: "Matrix") -> "Matrix":
        """``self @ other.T`` for two vectors."""
        if not self.is_vector() or not other.is_vector():
            raise DimensionError("outer product needs two vectors")
        return Matrix._wrap(np.outer(self._data[:, 0], other._data[:, 0]))

    def transpose(self) -> "Matrix":
        return Matrix._wrap(self._data.T.copy())

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    # ------------------------------------------------------------------
    # Derived single values
    # ------------------------------------------------------------------
    def trace(self) -> float:
        self._require_square("trace")
        return float(np.trace(self._data))

    def determinant(self) -> float:
        """
        Determinant by cofactor expansion along row 0.

        Exponential in the matrix size; see ``matrix_functions.det`` for the
        elimination based version.
        """
        self._require_square("determinant")
        if self.n_rows == 1:
            return float(self._data[0, 0])
        det = 0.0
        for c in range(self.n_cols):
            det += self._data[0, c] * self.cofactor(0, c)
        return float(det)

    def cofactor(self, i_row: int, i_col: int) -> float:
        sign = 1.0 if (i_row + i_col) % 2 == 0 else -1.0
        return sign * self.minor(i_row, i_col).determinant()

    def norm(self) -> float:
        """Euclidean length of a vector."""
        self._require_vector("norm")
        return float(np.linalg.norm(self._data[:, 0]))

    def partial_pivot(self, i_pivot: int) -> int:
        """
        Row index of the largest absolute value in column ``i_pivot`` at or
        below row ``i_pivot``. Ties resolve to the first occurrence.
        """
        if not 0 <= i_pivot < min(self.shape):
            raise DimensionError(
                f"pivot {i_pivot} outside diagonal [0, {min(self.shape) - 1}]"
            )
        col_slice = np.abs(self._data[i_pivot:, i_pivot])
        return i_pivot + int(col_slice.argmax())

    # ------------------------------------------------------------------
    # Derived matrices
    # ------------------------------------------------------------------
    def minor(self, i_row: int, i_col: int) -> "Matrix":
        """This matrix with row ``i_row`` and column ``i_col`` removed."""
        self._check_row(i_row)
        self._check_col(i_col)
        if self.n_rows < 2 or self.n_cols < 2:
            raise DimensionError(
                f"a {self.n_rows}x{self.n_cols} matrix has no minors"
            )
        arr = np.delete(np.delete(self._data, i_row, axis=0), i_col, axis=1)
        return Matrix._wrap(arr)

    def cofactor_matrix(self) -> "Matrix":
        self._require_square("cofactor matrix")
        n = self.n_rows
        if n == 1:
            return Matrix._wrap(np.ones((1, 1)))
        C = np.empty((n, n))
        for i in range(n):
            for j in range(n):
                C[i, j] = self.cofactor(i, j)
        return Matrix._wrap(C)

    def adjugate(self) -> "Matrix":
        """Transpose of the cofactor matrix."""
        return self.cofactor_matrix().transpose()

    def inverse(self) -> "Matrix":
        """
        Exact inverse, ``adjugate / determinant``.

        Raises
        ------
        SingularMatrixError
            If the determinant is ≈ 0.
        """
        self._require_square("inverse")
        det = self.determinant()
        if is_equal(det, 0.0):
            raise SingularMatrixError(
                f"matrix is not invertible (determinant = {det})"
            )
        return Matrix._wrap(self.adjugate()._data / det)

    def unit_vec(self) -> "Matrix":
        """This vector scaled to length 1."""
        dist = self.norm()
        if is_equal(dist, 0.0):
            raise DimensionError("cannot normalise a vector of length 0")
        return Matrix._wrap(self._data / dist)

    def diagonalize(self) -> "Matrix":
        """Square matrix with this vector on the diagonal and 0 elsewhere."""
        self._require_vector("diagonalize")
        return Matrix._wrap(np.diag(self._data[:, 0]))

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.tolist()})"

    def __str__(self) -> str:
        cells = [[str(round_to_precision(x)) for x in row] for row in self._data]
        widths = [max(len(row[c]) for row in cells) for c in range(self.n_cols)]
        lines = []
        for row in cells:
            padded = " ".join(cell.rjust(w) for cell, w in zip(row, widths))
            lines.append("{" + padded + "}")
        return "\n".join(lines)
