# -*- coding: utf-8 -*-
"""
Curve Fitting

This module fits polynomial trends (degree 1 to 3) between ES accessibility
and land-use density and compares them by information criterion.
"""

from dataclasses import dataclass, field
from typing import Any, List

import numpy as np
import pandas as pd
import statsmodels.api as sm

from .config import INFORMATION_CRITERION, POLY_DEGREES
from .utils import get_logger

logger = get_logger("curve_fitting")

CRITERIA = ("aic", "bic")


@dataclass
class PolynomialFit:
    degree: int
    coefficients: np.ndarray   # constant first, then x, x^2, ...
    aic: float
    bic: float
    r_squared: float
    n_obs: int
    results: Any = field(default=None, repr=False)

    def predict(self, x):
        x = np.asarray(x, dtype=np.float64)
        return np.polynomial.polynomial.polyval(x, self.coefficients)

    def equation(self, precision=4):
        terms = []
        for power, coef in enumerate(self.coefficients):
            if power == 0:
                terms.append(f"{coef:.{precision}f}")
            elif power == 1:
                terms.append(f"{coef:+.{precision}f}x")
            else:
                terms.append(f"{coef:+.{precision}f}x^{power}")
        return "y = " + " ".join(terms)


def _design_matrix(x, degree):
    return np.vander(x, degree + 1, increasing=True)


def fit_polynomial(x, y, degree):
    """
    Fit an ordinary least squares polynomial.

    Args:
        x: Independent values
        y: Dependent values
        degree: Polynomial degree (>= 1)

    Returns:
        PolynomialFit
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"x and y lengths differ: {x.shape} vs {y.shape}")
    if degree < 1:
        raise ValueError(f"Polynomial degree must be at least 1, got {degree}")
    if len(x) <= degree:
        raise ValueError(
            f"Need more than {degree} observations for a degree {degree} fit, got {len(x)}"
        )

    results = sm.OLS(y, _design_matrix(x, degree)).fit()

    fit = PolynomialFit(
        degree=degree,
        coefficients=np.asarray(results.params),
        aic=float(results.aic),
        bic=float(results.bic),
        r_squared=float(results.rsquared),
        n_obs=int(results.nobs),
        results=results,
    )
    logger.info(f"Degree {degree} fit: R²={fit.r_squared:.4f}, AIC={fit.aic:.2f}, BIC={fit.bic:.2f}")
    return fit


def fit_polynomials(x, y, degrees=POLY_DEGREES) -> List[PolynomialFit]:
    """Fit one polynomial per degree."""
    return [fit_polynomial(x, y, degree) for degree in degrees]


def select_best_fit(fits, criterion=INFORMATION_CRITERION):
    """
    Pick the fit with the lowest information criterion.

    Args:
        fits: List of PolynomialFit
        criterion: 'aic' or 'bic'

    Returns:
        Best PolynomialFit
    """
    if criterion not in CRITERIA:
        raise ValueError(f"Unknown information criterion: {criterion}")
    if not fits:
        raise ValueError("No fits to compare")
    best = min(fits, key=lambda fit: getattr(fit, criterion))
    logger.info(f"Best fit by {criterion.upper()}: degree {best.degree}")
    return best


def compare_fits(fits, criterion=INFORMATION_CRITERION):
    """Table of fit statistics with the criterion difference to the best fit."""
    if criterion not in CRITERIA:
        raise ValueError(f"Unknown information criterion: {criterion}")
    table = pd.DataFrame([
        {
            'degree': fit.degree,
            'aic': fit.aic,
            'bic': fit.bic,
            'r_squared': fit.r_squared,
            'n_obs': fit.n_obs,
            'equation': fit.equation(),
        }
        for fit in fits
    ])
    table[f'delta_{criterion}'] = table[criterion] - table[criterion].min()
    return table.sort_values('degree').reset_index(drop=True)
