#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Command line front end.

    glmfit example
    glmfit fit data.csv --family poisson --response count --predictors dose
"""

import argparse
import logging
from typing import List, Optional

import numpy as np
import pandas as pd

from .distribution import Distribution
from .errors import LinalgError
from .families import Binomial, Poisson, get_family
from .matrix import Matrix

logger = logging.getLogger(__name__)

# fertiliser trial: survivors out of trials at strengths 1, 2 and 3
YS_BINOMIAL = [[32], [25], [10]]
XS_BINOMIAL = [[1, 1], [1, 2], [1, 3]]
MS_BINOMIAL = [[38], [42], [20]]

# the same counts unrolled by outcome (column 1) and strength (column 2)
YS_POISSON = [[32], [6], [25], [17], [10], [10]]
XS_POISSON = [[1, 1, 1], [1, 2, 1], [1, 1, 2], [1, 2, 2], [1, 1, 3], [1, 2, 3]]


def run_example() -> None:
    """Fit the fertiliser data as a Binomial and as a Poisson model."""
    binomial = Distribution(
        Binomial(Matrix(MS_BINOMIAL)), Matrix(YS_BINOMIAL), Matrix(XS_BINOMIAL)
    )
    poisson = Distribution(Poisson(), Matrix(YS_POISSON), Matrix(XS_POISSON))
    print(binomial)
    print()
    print(poisson)


def _design(
    df: pd.DataFrame, predictors: List[str], intercept: bool
) -> tuple[Matrix, List[str]]:
    X = df[predictors].to_numpy(dtype=float)
    names = list(predictors)
    if intercept:
        X = np.column_stack([np.ones(len(df)), X])
        names = ["(Intercept)"] + names
    return Matrix(X), names


def run_fit(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    df = pd.read_csv(args.data)

    predictors = args.predictors
    if predictors is None:
        predictors = [c for c in df.columns if c not in (args.response, args.trials)]

    missing = [
        c
        for c in [args.response, args.trials, *predictors]
        if c and c not in df.columns
    ]
    if missing:
        parser.error(f"column(s) not found in {args.data}: {', '.join(missing)}")
    if not predictors and args.no_intercept:
        parser.error("the model needs at least one predictor or the intercept")
    if args.family == "binomial" and args.trials is None:
        parser.error("--trials is required for the binomial family")
    if args.family != "binomial" and args.trials is not None:
        parser.error("--trials only applies to the binomial family")

    ys = Matrix(df[[args.response]].to_numpy(dtype=float))
    xs, names = _design(df, predictors, intercept=not args.no_intercept)
    ms = Matrix(df[[args.trials]].to_numpy(dtype=float)) if args.trials else None
    logger.debug(f"fitting {args.family} model: n={xs.n_rows}, p={xs.n_cols}")

    try:
        model = Distribution(
            get_family(args.family, ms=ms), ys, xs, max_iter=args.max_iter
        )
    except LinalgError as e:
        parser.exit(2, f"{parser.prog}: error: {e}\n")

    coefs = pd.Series(model.betas.to_numpy()[:, 0], index=names).round(3)
    print(model)
    print("Coefficients:")
    print(coefs.to_string())
    if not model.converged:
        print(
            f"Warning: stopped after {model.iterations} iterations without converging"
        )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="glmfit",
        description="Fit generalized linear models with IWLS.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every IWLS iteration"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("example", help="Fit the bundled fertiliser example")

    fit = sub.add_parser("fit", help="Fit a model to a CSV file")
    fit.add_argument("data", help="CSV file with a header row")
    fit.add_argument(
        "--family", choices=["gaussian", "poisson", "binomial"], default="gaussian"
    )
    fit.add_argument("--response", required=True, help="Response column")
    fit.add_argument(
        "--predictors",
        nargs="*",
        default=None,
        help="Predictor columns (default: every other column)",
    )
    fit.add_argument("--trials", help="Trials column (binomial only)")
    fit.add_argument(
        "--no-intercept", action="store_true", help="Do not add a column of ones"
    )
    fit.add_argument(
        "--max-iter",
        type=int,
        default=None,
        help="Stop IWLS after this many iterations",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    if args.command == "example":
        run_example()
    else:
        run_fit(args, parser)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
