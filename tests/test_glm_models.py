from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from quake_fatality_glm.constants import LOGIT, POISSON, PREDICTORS
from quake_fatality_glm.glm_models import coefficient_table, fit_glm, fit_logit, fit_poisson


def test_suite_has_six_models_in_order(suite):
    assert list(suite) == [f"{LOGIT}_{p}" for p in PREDICTORS] + [f"{POISSON}_{p}" for p in PREDICTORS]
    for res in suite.values():
        assert set(res.params) == {"const", res.predictor}
        assert res.nobs > 0


def test_logit_magnitude_raises_fatality_odds(suite):
    res = suite["logit_magnitude"]
    assert res.response == "fatal"
    assert res.slope > 0
    assert res.slope_pvalue < 0.05
    assert res.effect == pytest.approx(np.exp(res.slope))
    low, high = res.effect_ci
    assert low < res.effect < high


def test_poisson_magnitude_raises_expected_toll(suite):
    res = suite["poisson_magnitude"]
    assert res.response == "deaths"
    assert res.slope > 0


@pytest.mark.parametrize("name", ["logit_magnitude", "poisson_houses_destroyed"])
def test_canonical_link_reproduces_observed_total(suite, name):
    res = suite[name]
    assert res.fitted.sum() == pytest.approx(res.y.sum(), rel=1e-4)


def test_logit_curve_is_a_probability_band(suite):
    curve = suite["logit_focal_depth"].curve
    assert len(curve) == 200
    assert ((curve["mean"] >= 0) & (curve["mean"] <= 1)).all()
    assert (curve["mean_ci_lower"] <= curve["mean"] + 1e-12).all()
    assert (curve["mean"] <= curve["mean_ci_upper"] + 1e-12).all()


def test_residual_arrays_align_with_observations(suite):
    res = suite["poisson_focal_depth"]
    n = res.nobs
    assert res.x.shape == res.y.shape == res.fitted.shape == (n,)
    assert res.resid_deviance.shape == res.resid_pearson.shape == res.linear_predictor.shape == (n,)
    np.testing.assert_allclose(np.exp(res.linear_predictor), res.fitted, rtol=1e-8)


def test_single_class_logit_raises():
    df = pd.DataFrame({"fatal": [0, 0, 0, 0], "magnitude": [5.0, 6.0, 7.0, 8.0]})
    with pytest.raises(ValueError, match="single class"):
        fit_logit(df, "magnitude")


def test_empty_frame_raises():
    df = pd.DataFrame({"deaths": [], "magnitude": []})
    with pytest.raises(ValueError):
        fit_poisson(df, "magnitude")


def test_unknown_family_raises(dataset):
    with pytest.raises(ValueError, match="Unknown GLM family"):
        fit_glm(dataset.frame, "deaths", "magnitude", "gamma")


def test_coefficient_table(suite):
    table = coefficient_table(suite.values())
    assert len(table) == 2 * len(suite)
    slopes = table[table["term"] != "const"].set_index("model")
    res = suite["logit_houses_destroyed"]
    row = slopes.loc["logit_houses_destroyed"]
    assert row["coef"] == pytest.approx(res.slope)
    assert row["exp_coef"] == pytest.approx(np.exp(res.slope))
    assert row["ci_low"] < row["coef"] < row["ci_high"]
