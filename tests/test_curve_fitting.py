import numpy as np
import pytest

from raster.landuse.pipeline.curve_fitting import (
    PolynomialFit, fit_polynomial, fit_polynomials, select_best_fit, compare_fits
)


@pytest.fixture
def quadratic_samples():
    rng = np.random.default_rng(11)
    x = np.linspace(0, 1, 60)
    y = 1.0 + 2.0 * x - 3.0 * x ** 2 + rng.normal(0, 0.01, x.size)
    return x, y


def test_fit_polynomial_recovers_linear_trend():
    x = np.linspace(0, 1, 30)
    y = 0.5 + 2.0 * x
    fit = fit_polynomial(x, y, 1)
    assert fit.degree == 1
    assert fit.n_obs == 30
    np.testing.assert_allclose(fit.coefficients, [0.5, 2.0], atol=1e-8)
    np.testing.assert_allclose(fit.predict([0.0, 1.0]), [0.5, 2.5], atol=1e-8)


def test_fit_polynomials_quadratic_beats_linear(quadratic_samples):
    x, y = quadratic_samples
    fits = fit_polynomials(x, y, (1, 2, 3))
    assert [f.degree for f in fits] == [1, 2, 3]

    linear, quadratic, _ = fits
    assert quadratic.r_squared > 0.99
    assert quadratic.aic < linear.aic
    np.testing.assert_allclose(quadratic.coefficients, [1.0, 2.0, -3.0], atol=0.1)

    best = select_best_fit(fits, "aic")
    assert best.degree in (2, 3)


def test_select_best_fit_uses_requested_criterion():
    fits = [
        PolynomialFit(degree=1, coefficients=np.zeros(2), aic=10.0, bic=5.0, r_squared=0.5, n_obs=20),
        PolynomialFit(degree=2, coefficients=np.zeros(3), aic=8.0, bic=9.0, r_squared=0.6, n_obs=20),
    ]
    assert select_best_fit(fits, "aic").degree == 2
    assert select_best_fit(fits, "bic").degree == 1


def test_select_best_fit_rejects_bad_input():
    with pytest.raises(ValueError, match="criterion"):
        select_best_fit([], "r2")
    with pytest.raises(ValueError, match="No fits"):
        select_best_fit([], "aic")


def test_fit_polynomial_validates_degree():
    x = np.array([0.0, 1.0, 2.0])
    with pytest.raises(ValueError, match="at least 1"):
        fit_polynomial(x, x, 0)
    with pytest.raises(ValueError, match="observations"):
        fit_polynomial(x, x, 3)
    with pytest.raises(ValueError, match="lengths differ"):
        fit_polynomial(x, x[:2], 1)


def test_compare_fits_table(quadratic_samples):
    x, y = quadratic_samples
    table = compare_fits(fit_polynomials(x, y), "aic")
    assert list(table["degree"]) == [1, 2, 3]
    assert {"aic", "bic", "r_squared", "delta_aic", "equation"} <= set(table.columns)
    assert table["delta_aic"].min() == 0.0
    assert table.loc[0, "equation"].startswith("y = ")
