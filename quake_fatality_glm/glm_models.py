from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm

from .constants import (
    CURVE_POINTS,
    FAMILY_RESPONSE,
    LOGIT,
    NEGATIVE_BINOMIAL,
    POISSON,
    PREDICTORS,
)

logger = logging.getLogger(__name__)


@dataclass
class GLMResult:
    model_name: str
    family: str
    response: str
    predictor: str
    params: Dict[str, float]
    pvalues: Dict[str, float]
    bse: Dict[str, float]
    conf_int: Dict[str, Tuple[float, float]]
    llf: float
    llnull: float
    deviance: float
    null_deviance: float
    pearson_chi2: float
    df_resid: float
    aic: float
    bic: float
    nobs: int
    summary_text: str
    x: np.ndarray
    y: np.ndarray
    fitted: np.ndarray
    linear_predictor: np.ndarray
    resid_deviance: np.ndarray
    resid_pearson: np.ndarray
    curve: pd.DataFrame

    @property
    def slope(self) -> float:
        return self.params[self.predictor]

    @property
    def slope_pvalue(self) -> float:
        return self.pvalues[self.predictor]

    @property
    def effect(self) -> float:
        """Multiplicative effect of a one-unit increase (odds ratio or rate ratio)."""
        return float(np.exp(self.slope))

    @property
    def effect_ci(self) -> Tuple[float, float]:
        low, high = self.conf_int[self.predictor]
        return float(np.exp(low)), float(np.exp(high))


def _family(family: str):
    if family == LOGIT:
        return sm.families.Binomial(link=sm.families.links.Logit())
    if family == POISSON:
        return sm.families.Poisson(link=sm.families.links.Log())
    if family == NEGATIVE_BINOMIAL:
        return sm.families.NegativeBinomial(link=sm.families.links.Log(), alpha=1.0)
    raise ValueError(f"Unknown GLM family: {family!r}")


def fit_glm(df: pd.DataFrame, response: str, predictor: str, family: str,
            model_name: Optional[str] = None, alpha: float = 0.05) -> GLMResult:
    """Fit ``response ~ 1 + predictor`` by IRLS (statsmodels GLM).

    Returns coefficients, p-values, confidence intervals, fit statistics,
    residuals and a fitted curve over the observed predictor range.
    Fitting failures are not caught.
    """
    model_name = model_name or f"{family}_{predictor}"
    if df.empty:
        raise ValueError(f"{model_name}: no records to fit")

    y = df[response].astype(float)
    if family == LOGIT and y.nunique() < 2:
        raise ValueError(f"{model_name}: binary response '{response}' has a single class")

    X_sm = sm.add_constant(df[[predictor]].astype(float), has_constant="add")
    glm_result = sm.GLM(y, X_sm, family=_family(family)).fit()
    logger.debug("%s converged after %s iterations", model_name, glm_result.fit_history.get("iteration"))

    params = {k: float(v) for k, v in glm_result.params.items()}
    pvalues = {k: float(v) for k, v in glm_result.pvalues.items()}
    bse = {k: float(v) for k, v in glm_result.bse.items()}
    ci_df = glm_result.conf_int(alpha=alpha)
    conf_int = {idx: (float(row.iloc[0]), float(row.iloc[1])) for idx, row in ci_df.iterrows()}

    x = df[predictor].to_numpy(dtype=float)
    grid = np.linspace(x.min(), x.max(), CURVE_POINTS)
    grid_sm = sm.add_constant(pd.DataFrame({predictor: grid}), has_constant="add")
    pred = glm_result.get_prediction(grid_sm).summary_frame(alpha=alpha)
    curve = pd.DataFrame({
        predictor: grid,
        "mean": pred["mean"].to_numpy(),
        "mean_ci_lower": pred["mean_ci_lower"].to_numpy(),
        "mean_ci_upper": pred["mean_ci_upper"].to_numpy(),
    })

    return GLMResult(
        model_name=model_name,
        family=family,
        response=response,
        predictor=predictor,
        params=params,
        pvalues=pvalues,
        bse=bse,
        conf_int=conf_int,
        llf=float(glm_result.llf),
        llnull=float(glm_result.llnull),
        deviance=float(glm_result.deviance),
        null_deviance=float(glm_result.null_deviance),
        pearson_chi2=float(glm_result.pearson_chi2),
        df_resid=float(glm_result.df_resid),
        aic=float(glm_result.aic),
        bic=float(glm_result.bic_llf),
        nobs=int(glm_result.nobs),
        summary_text=str(glm_result.summary()),
        x=x,
        y=y.to_numpy(),
        fitted=np.asarray(glm_result.fittedvalues, dtype=float),
        linear_predictor=X_sm.to_numpy(dtype=float) @ glm_result.params.to_numpy(),
        resid_deviance=np.asarray(glm_result.resid_deviance, dtype=float),
        resid_pearson=np.asarray(glm_result.resid_pearson, dtype=float),
        curve=curve,
    )


def fit_logit(df: pd.DataFrame, predictor: str) -> GLMResult:
    """Log-odds of at least one death as a linear function of ``predictor``."""
    return fit_glm(df, FAMILY_RESPONSE[LOGIT], predictor, LOGIT)


def fit_poisson(df: pd.DataFrame, predictor: str) -> GLMResult:
    """Expected death toll as a log-linear function of ``predictor``."""
    return fit_glm(df, FAMILY_RESPONSE[POISSON], predictor, POISSON)


def fit_negative_binomial(df: pd.DataFrame, predictor: str) -> GLMResult:
    return fit_glm(df, FAMILY_RESPONSE[NEGATIVE_BINOMIAL], predictor, NEGATIVE_BINOMIAL)


def fit_model_suite(df: pd.DataFrame, predictors: Iterable[str] = PREDICTORS) -> Dict[str, GLMResult]:
    """Fit the logit and Poisson model of every predictor.

    Keys are ``"<family>_<predictor>"``; all logit models come first, then
    the Poisson models, each in predictor order.
    """
    predictors = list(predictors)
    results: Dict[str, GLMResult] = {}
    for family, fit in ((LOGIT, fit_logit), (POISSON, fit_poisson)):
        for predictor in predictors:
            logger.info("Fitting %s model on %s", family, predictor)
            result = fit(df, predictor)
            results[result.model_name] = result
    return results


def coefficient_table(results: Iterable[GLMResult]) -> pd.DataFrame:
    """One row per model term with coefficient, SE, p-value, CI and exponentiated effect."""
    rows: List[dict] = []
    for res in results:
        for term, coef in res.params.items():
            ci_low, ci_high = res.conf_int.get(term, (float("nan"), float("nan")))
            rows.append({
                "model": res.model_name,
                "family": res.family,
                "predictor": res.predictor,
                "term": term,
                "coef": coef,
                "std_err": res.bse.get(term, float("nan")),
                "p_value": res.pvalues.get(term, float("nan")),
                "ci_low": ci_low,
                "ci_high": ci_high,
                "exp_coef": float(np.exp(coef)) if np.isfinite(coef) else float("nan"),
                "exp_ci_low": float(np.exp(ci_low)) if np.isfinite(ci_low) else float("nan"),
                "exp_ci_high": float(np.exp(ci_high)) if np.isfinite(ci_high) else float("nan"),
            })
    return pd.DataFrame(rows)
