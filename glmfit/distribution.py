# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Generalized linear models fitted by Iteratively reWeighted Least Squares.

Example
-------
>>> from glmfit import Binomial, Distribution, Matrix
>>> ys = Matrix([[32], [25], [10]])
>>> xs = Matrix([[1, 1], [1, 2], [1, 3]])
>>> ms = Matrix([[38], [42], [20]])
>>> model = Distribution(Binomial(ms), ys, xs)
>>> model.betas[1, 0] < 0
True
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .errors import DimensionError, NotFittedError
from .families import Family
from .matrix import Matrix
from .svd import pseudoinverse
from .utils import round_to_precision

logger = logging.getLogger(__name__)

# minimum change in log-likelihood between two iterations before stopping
LOG_LIKE_EPSILON: float = 1e-4


@dataclass
class IWLSResult:
    """Results from one IWLS fit."""

    betas: Matrix  # Coefficients (p, 1)
    mus: Matrix  # Fitted expected values (n, 1)
    iterations: int  # Number of IWLS iterations
    log_like: float  # Final log-likelihood
    aic: float  # 2 (p - logLike)
    converged: bool  # False only when max_iter stopped the loop


def _weights(family: Family, mus: Matrix, g_diffs: Matrix) -> Matrix:
    """W = diag(1 / (g'(μ)² v(μ)))"""
    return g_diffs.zip(
        family.variance(mus), lambda g, var: 1.0 / (g * g * var)
    ).diagonalize()


def _working_response(
    ys: Matrix, etas: Matrix, mus: Matrix, g_diffs: Matrix
) -> Matrix:
    """z = η + g'(μ) (y - μ)"""
    errors = ys.zip(mus, lambda y, mu: y - mu)
    scaled = errors.zip(g_diffs, lambda err, g: err * g)
    return etas.zip(scaled, lambda eta, s: eta + s)


def fit_iwls(
    family: Family,
    ys: Matrix,
    xs: Matrix,
    tol: float = LOG_LIKE_EPSILON,
    max_iter: Optional[int] = None,
) -> IWLSResult:
    """
    Maximum likelihood estimates of the coefficients by IWLS.

    Starting from μ = y, every iteration re-linearises the model around the
    current μ and solves the weighted least squares problem

        β = (Xᵀ W X)⁺ Xᵀ W z

    The pseudoinverse keeps rank-deficient designs from failing. The loop
    stops when the log-likelihood changes by no more than `tol`.

    Parameters
    ----------
    family : Family
        Supplies link, link derivative, inverse link, variance and
        log-likelihood.
    ys : Matrix  (n, 1)
    xs : Matrix  (n, p)
    tol : float
        Convergence tolerance on the log-likelihood.
    max_iter : int, optional
        Upper bound on iterations. ``None`` iterates until convergence,
        which never happens for inputs such as separable binomial data.

    Returns
    -------
    result : IWLSResult
    """
    xs_t = xs.T

    # initial expected values are the observations themselves
    mus = ys
    log_like = family.log_like(ys, mus)
    iterations = 0
    converged = False

    while True:
        etas = family.link(mus)
        g_diffs = family.link_diff(mus)
        ws = _weights(family, mus, g_diffs)
        zs = _working_response(ys, etas, mus, g_diffs)

        xs_t_ws = xs_t @ ws
        betas = pseudoinverse(xs_t_ws @ xs) @ xs_t_ws @ zs

        etas = xs @ betas
        mus = family.link_inv(etas)

        log_like_prev = log_like
        log_like = family.log_like(ys, mus)
        iterations += 1
        logger.debug(
            f"IWLS iteration {iterations}: log-likelihood {log_like:.6f} "
            f"(change {log_like - log_like_prev:.3g})"
        )

        if abs(log_like - log_like_prev) <= tol:
            converged = True
            break
        if max_iter is not None and iterations >= max_iter:
            logger.warning(
                f"IWLS stopped after {iterations} iterations without converging "
                f"(last log-likelihood change {log_like - log_like_prev:.3g})"
            )
            break

    aic = 2 * (xs.n_cols - log_like)
    return IWLSResult(
        betas=betas,
        mus=mus,
        iterations=iterations,
        log_like=log_like,
        aic=aic,
        converged=converged,
    )


class Distribution:
    """
    A generalized linear model of one exponential-family distribution.

    The model owns the response vector and the explanatory matrix and is
    fitted once, when constructed. Columns of ``xs`` may hold continuous
    values, factor indicators or interactions, e.g. with an intercept,
    a continuous B and a three level factor C (level 1 as the base):

        1,   B, C=2, C=3
      {{1, 1.0,   0,   0},
       {1, 1.1,   1,   0},
       {1, 1.2,   0,   1}}

    Parameters
    ----------
    family : Family
        Distribution strategy (``Gaussian()``, ``Poisson()``, ``Binomial(ms)``).
    ys : Matrix  (n, 1)
        Response vector.
    xs : Matrix  (n, p), p <= n
        Explanatory matrix, one column per coefficient.
    max_iter : int, optional
        Passed to :func:`fit_iwls`.
    fit : bool, default=True
        Fit immediately. With ``False`` the model waits for :meth:`fit`.

    Raises
    ------
    DimensionError
        If ys is not a vector, the row counts differ, xs has more columns
        than rows, or the family rejects its own inputs.
    """

    def __init__(
        self,
        family: Family,
        ys: Matrix,
        xs: Matrix,
        *,
        max_iter: Optional[int] = None,
        fit: bool = True,
    ):
        ys = Matrix(ys)
        xs = Matrix(xs)

        if ys.n_rows != xs.n_rows:
            raise DimensionError(
                f"`ys` and `xs` must have the same number of rows "
                f"({ys.n_rows} != {xs.n_rows})"
            )
        if not ys.is_vector():
            raise DimensionError(
                f"`ys` must be a vector (single column), got {ys.n_rows}x{ys.n_cols}"
            )
        if xs.n_cols > xs.n_rows:
            raise DimensionError(
                f"`xs` cannot have more columns than rows ({xs.n_rows}x{xs.n_cols})"
            )
        family.validate(ys)

        self.family = family
        self.ys = ys
        self.xs = xs
        self.max_iter = max_iter
        self._result: Optional[IWLSResult] = None

        if fit:
            self.fit()

    def fit(self) -> "Distribution":
        """Run IWLS. Fitting happens once; later calls keep the first result."""
        if self._result is not None:
            logger.debug("model already fitted, keeping existing estimates")
            return self
        self._result = fit_iwls(self.family, self.ys, self.xs, max_iter=self.max_iter)
        logger.debug(
            f"{self.family.name} model fitted in {self._result.iterations} iteration(s)"
        )
        return self

    @property
    def is_fitted(self) -> bool:
        return self._result is not None

    def _fitted(self) -> IWLSResult:
        if self._result is None:
            raise NotFittedError(
                f"this {self.family.name} model is not fitted yet; call fit() first"
            )
        return self._result

    @property
    def betas(self) -> Matrix:
        """Estimated coefficients (p, 1)."""
        return self._fitted().betas

    @property
    def iterations(self) -> int:
        return self._fitted().iterations

    @property
    def aic(self) -> float:
        return self._fitted().aic

    @property
    def log_likelihood(self) -> float:
        return self._fitted().log_like

    @property
    def fitted_values(self) -> Matrix:
        return self._fitted().mus

    @property
    def converged(self) -> bool:
        return self._fitted().converged

    def point_estimate(self, x: Union[Matrix, Sequence[float]]) -> float:
        """
        Linear predictor xᵀβ for one observation.

        ``x`` holds one value per coefficient, as a vector or a flat sequence.
        """
        betas = self.betas
        x = x if isinstance(x, Matrix) else Matrix.vector(x)
        if not x.is_vector() or x.n_rows != betas.n_rows:
            raise DimensionError(
                f"point estimate needs {betas.n_rows} values, got {x.n_rows}x{x.n_cols}"
            )
        return x.inner_product(betas)

    def __str__(self) -> str:
        lines = [
            f"Distribution: {self.family.name}",
            f"Link function: {self.family.link_name}",
        ]
        if self._result is None:
            lines.append("Not fitted")
            return "\n".join(lines)
        lines += [
            f"Iterations: {self._result.iterations}",
            f"AIC: {round_to_precision(self._result.aic)}",
            "Betas:",
            str(self._result.betas),
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        state = "fitted" if self.is_fitted else "unfitted"
        return (
            f"{self.__class__.__name__}({self.family!r}, "
            f"n={self.xs.n_rows}, p={self.xs.n_cols}, {state})"
        )
