# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exceptions raised by the matrix engine and the fitting loop.

All of them derive from ``ValueError`` (through ``LinalgError``) so callers
that only care about "bad input" can keep catching ``ValueError``.
"""


class LinalgError(ValueError):
    """Base class for every error raised by glmfit."""


class DimensionError(LinalgError):
    """Shapes or indices are incompatible with the requested operation."""


class SingularMatrixError(LinalgError):
    """An exact inverse was requested for a matrix with a zero determinant."""


class NotSymmetricError(LinalgError):
    """Eigenvalues were requested for a non-symmetric matrix."""


class NoSolutionError(LinalgError):
    """A triangular system has a zero row with a non-zero right-hand side."""


class NotFittedError(LinalgError, AttributeError):
    """A fitted quantity was requested before the model was fitted."""
