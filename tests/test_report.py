from __future__ import annotations

import numpy as np
import pandas as pd

from quake_fatality_glm.glm_models import fit_poisson
from quake_fatality_glm.report import interpret_coefficient, interpret_fit
from quake_fatality_glm.stats_analysis import fit_quality_table


def test_interpret_logit_coefficient(suite):
    text = interpret_coefficient(suite["logit_magnitude"])
    assert text.startswith("logit_magnitude:")
    assert "odds ratio" in text
    assert "higher" in text
    assert "is statistically significant" in text


def test_interpret_poisson_coefficient(suite):
    text = interpret_coefficient(suite["poisson_magnitude"])
    assert "expected death toll" in text
    assert "rate ratio" in text


def test_interpret_fit_flags_overdispersion(suite):
    quality = fit_quality_table(suite.values())
    text = interpret_fit(suite["poisson_magnitude"], quality.loc["poisson_magnitude"])
    assert "negative binomial" in text
    logit_text = interpret_fit(suite["logit_magnitude"], quality.loc["logit_magnitude"])
    assert "dispersion" not in logit_text
    assert "likelihood-ratio test against the intercept-only model is significant" in logit_text


def test_interpret_fit_narrates_overdispersed_counts():
    magnitude = np.tile(np.linspace(5.0, 8.0, 10), 4)
    deaths = np.where(np.arange(40) % 4 == 0, 300.0, 0.0)
    res = fit_poisson(pd.DataFrame({"deaths": deaths, "magnitude": magnitude}), "magnitude")
    quality = fit_quality_table([res]).loc[res.model_name]
    text = interpret_fit(res, quality)
    assert "far above 1" in text
    assert "negative binomial" in text
