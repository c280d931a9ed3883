# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
glmfit
======

Generalized Linear Models fitted by Iteratively reWeighted Least Squares
(IWLS), on top of a small immutable matrix engine written from scratch.

Public API
~~~~~~~~~~
- Matrix engine
    - `Matrix`
- Decompositions
    - `lup_decomposition`, `householder_qr`, `svd`
- Eigen problems
    - `eigenvalues`, `eigenvector`, `is_eigenvalue`
- Linear systems
    - `solve`, `forward_substitute`, `back_substitute`, `pseudoinverse`
- Models
    - `Distribution`, `fit_iwls`
    - families `Gaussian`, `Poisson`, `Binomial`, `get_family`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import glmfit as gf
>>> ys = gf.Matrix([[32], [6], [25], [17], [10], [10]])
>>> xs = gf.Matrix([[1, 1, 1], [1, 2, 1], [1, 1, 2],
...                 [1, 2, 2], [1, 1, 3], [1, 2, 3]])
>>> model = gf.Distribution(gf.Poisson(), ys, xs)
>>> model.converged
True
"""

from importlib.metadata import version as _pkg_version

from .distribution import Distribution, IWLSResult, fit_iwls
from .eigen import eigenvalues, eigenvector, is_eigenvalue
from .elimination import (
    back_substitute,
    forward_substitute,
    lup_decomposition,
    solve,
)
from .errors import (
    DimensionError,
    LinalgError,
    NoSolutionError,
    NotFittedError,
    NotSymmetricError,
    SingularMatrixError,
)
from .families import Binomial, Family, Gaussian, Poisson, get_family
from .matrix import Matrix
from .matrix_functions import det, rank
from .qr import householder_qr, householder_reflection
from .svd import pseudoinverse, singular, svd
from .utils import EPSILON, is_equal, round_to_precision

__all__ = [
    "Matrix",
    "lup_decomposition",
    "forward_substitute",
    "back_substitute",
    "solve",
    "householder_qr",
    "householder_reflection",
    "eigenvalues",
    "eigenvector",
    "is_eigenvalue",
    "singular",
    "svd",
    "pseudoinverse",
    "det",
    "rank",
    "Family",
    "Gaussian",
    "Poisson",
    "Binomial",
    "get_family",
    "Distribution",
    "IWLSResult",
    "fit_iwls",
    "LinalgError",
    "DimensionError",
    "SingularMatrixError",
    "NotSymmetricError",
    "NoSolutionError",
    "NotFittedError",
    "EPSILON",
    "is_equal",
    "round_to_precision",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show glmfit”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Library default: stay silent unless the application configures logging.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
