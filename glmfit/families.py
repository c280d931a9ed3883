# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
GLM family objects.

A family bundles the link function, its derivative and inverse, the
variance function and the log-likelihood that the IWLS loop needs.
All of them take and return column-vector ``Matrix`` objects.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional

from .errors import DimensionError
from .matrix import Matrix

# nudge applied to expected values sitting exactly on a boundary
NORMALISATION_EPSILON: float = 1e-5


def _xlogy(x: float, y: float) -> float:
    """x * log(y) with 0 * log(0) taken as 0."""
    return 0.0 if x == 0 else x * math.log(y)


def _log_choose(m: float, y: float) -> float:
    """log of the binomial coefficient m choose y."""
    return math.lgamma(m + 1) - math.lgamma(y + 1) - math.lgamma(m - y + 1)


class Family(ABC):
    """Base class for GLM families."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Family name."""

    @property
    @abstractmethod
    def link_name(self) -> str:
        """Link function name."""

    def validate(self, ys: Matrix) -> None:
        """Check family specific inputs against the response vector."""

    @abstractmethod
    def link(self, mus: Matrix) -> Matrix:
        """Link function: η = g(μ)"""

    @abstractmethod
    def link_diff(self, mus: Matrix) -> Matrix:
        """Link derivative: g'(μ)"""

    @abstractmethod
    def link_inv(self, etas: Matrix) -> Matrix:
        """Inverse link: μ = g⁻¹(η)"""

    @abstractmethod
    def variance(self, mus: Matrix) -> Matrix:
        """Variance function: V(μ)"""

    @abstractmethod
    def log_like(self, ys: Matrix, mus: Matrix) -> float:
        """Log-likelihood of ys given expected values mus."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Gaussian(Family):
    """
    Gaussian family with identity link.

    The variance is assumed known and constant (homoscedastic), so fits are
    ordinary least squares.
    """

    VARIANCE = 1.0

    @property
    def name(self) -> str:
        return "Gaussian"

    @property
    def link_name(self) -> str:
        return "Identity"

    def link(self, mus: Matrix) -> Matrix:
        return mus

    def link_diff(self, mus: Matrix) -> Matrix:
        return mus.map(lambda _: 1.0)

    def link_inv(self, etas: Matrix) -> Matrix:
        return etas

    def variance(self, mus: Matrix) -> Matrix:
        return mus.map(lambda _: self.VARIANCE)

    def log_like(self, ys: Matrix, mus: Matrix) -> float:
        # C = -n log(2 pi sigma^2) / 2 is kept so the value is a true
        # log-likelihood (and AIC is comparable), though it cancels in the loop
        constant = -(ys.n_rows * math.log(2 * math.pi * self.VARIANCE)) / 2
        squares = ys.zip(mus, lambda y, mu: (y - mu) ** 2)
        rss = squares.fold_vec(lambda acc, x: acc + x, 0.0)
        return constant - rss / (2 * self.VARIANCE)


class Poisson(Family):
    """Poisson family with log link."""

    @property
    def name(self) -> str:
        return "Poisson"

    @property
    def link_name(self) -> str:
        return "Log"

    @staticmethod
    def _normalise(mu: float) -> float:
        # exact comparison: only an exact 0 breaks log and 1 / mu
        return mu + NORMALISATION_EPSILON if mu == 0 else mu

    def link(self, mus: Matrix) -> Matrix:
        return mus.map(lambda mu: math.log(self._normalise(mu)))

    def link_diff(self, mus: Matrix) -> Matrix:
        return mus.map(lambda mu: 1.0 / self._normalise(mu))

    def link_inv(self, etas: Matrix) -> Matrix:
        return etas.map(math.exp)

    def variance(self, mus: Matrix) -> Matrix:
        return mus.map(self._normalise)

    def log_like(self, ys: Matrix, mus: Matrix) -> float:
        """logLike = Σ y log(μ) - μ - log(y!)"""
        terms = ys.zip(mus, lambda y, mu: _xlogy(y, mu) - mu - math.lgamma(y + 1))
        return terms.fold_vec(lambda acc, x: acc + x, 0.0)


class Binomial(Family):
    """
    Binomial family with logit link on counts.

    Parameters
    ----------
    ms : Matrix  (n, 1)
        Number of trials behind each observation of the response.
    """

    def __init__(self, ms: Matrix):
        self.ms = Matrix(ms)

    @property
    def name(self) -> str:
        return "Binomial"

    @property
    def link_name(self) -> str:
        return "Logit"

    def validate(self, ys: Matrix) -> None:
        if not self.ms.is_vector():
            raise DimensionError(
                f"`ms` must be a vector (single column), got "
                f"{self.ms.n_rows}x{self.ms.n_cols}"
            )
        if self.ms.n_rows != ys.n_rows:
            raise DimensionError(
                f"`ys` and `ms` must have the same number of rows "
                f"({ys.n_rows} != {self.ms.n_rows})"
            )

    @staticmethod
    def _normalise(mu: float, m: float) -> float:
        # exact comparison: only exactly 0 or m divide by zero
        if mu == 0:
            return mu + NORMALISATION_EPSILON
        if mu == m:
            return mu - NORMALISATION_EPSILON
        return mu

    def _normalised(self, mus: Matrix) -> Matrix:
        return mus.zip(self.ms, self._normalise)

    def link(self, mus: Matrix) -> Matrix:
        """η = log(μ) - log(m - μ)"""
        return self._normalised(mus).zip(
            self.ms, lambda mu, m: math.log(mu) - math.log(m - mu)
        )

    def link_diff(self, mus: Matrix) -> Matrix:
        """g'(μ) = m / (μ (m - μ))"""
        return self._normalised(mus).zip(self.ms, lambda mu, m: m / (mu * (m - mu)))

    def link_inv(self, etas: Matrix) -> Matrix:
        """μ = m / (1 + e^(-η))"""
        return etas.zip(self.ms, lambda eta, m: m / (1 + math.exp(-eta)))

    def variance(self, mus: Matrix) -> Matrix:
        """V(μ) = μ (1 - μ / m)"""
        return self._normalised(mus).zip(self.ms, lambda mu, m: mu * (1 - mu / m))

    def log_like(self, ys: Matrix, mus: Matrix) -> float:
        """
        logLike = Σ y log(p) + (m - y) log(1 - p) + log(m choose y),  p = μ / m

        The combinations term cancels when log-likelihoods are compared but
        keeps AIC on the usual scale.
        """
        ps = mus.zip(self.ms, lambda mu, m: mu / m)
        successes = ys.zip(ps, _xlogy)
        failures = self.ms.zip(ys, lambda m, y: m - y).zip(
            ps, lambda k, p: _xlogy(k, 1 - p)
        )
        combinations = self.ms.zip(ys, _log_choose)
        terms = successes.zip(failures, lambda a, b: a + b).zip(
            combinations, lambda a, b: a + b
        )
        return terms.fold_vec(lambda acc, x: acc + x, 0.0)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(ms={self.ms.tolist()})"


_FAMILIES = {
    "gaussian": Gaussian,
    "poisson": Poisson,
    "binomial": Binomial,
}


def get_family(name: str, ms: Optional[Matrix] = None) -> Family:
    """
    Resolve a family by name (case-insensitive).

    ``ms`` (trials per observation) is required for ``"binomial"``.
    """
    key = name.strip().lower()
    if key not in _FAMILIES:
        raise ValueError(f"Unknown family '{name}'. Choose from: {sorted(_FAMILIES)}")
    if key == "binomial":
        if ms is None:
            raise ValueError("the binomial family needs the trials vector `ms`")
        return Binomial(ms)
    return _FAMILIES[key]()
