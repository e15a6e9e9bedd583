from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np
import pandas as pd
from scipy.stats import chi2, mannwhitneyu

from .constants import (
    ENGLISH_LABELS,
    LOGIT,
    OVERDISPERSION_THRESHOLD,
    REQUIRED_COLUMNS,
    SIGNIFICANCE_LEVEL,
    TARGET_COLUMN,
)
from .glm_models import GLMResult


@dataclass
class GroupComparison:
    feature: str
    feature_english: str
    group_fatal: str
    group_nonfatal: str
    test_method: str
    p_value: float
    significant: bool


def describe_dataset(df: pd.DataFrame) -> pd.DataFrame:
    """Descriptive statistics of the analysed columns, transposed (one row per column)."""
    cols = [c for c in REQUIRED_COLUMNS + [TARGET_COLUMN] if c in df.columns]
    desc = df[cols].describe().T
    desc.insert(0, "label", [ENGLISH_LABELS.get(c, c) for c in desc.index])
    return desc


def _mean_sd(s: pd.Series) -> str:
    if len(s) == 0:
        return "n/a"
    return f"{float(np.mean(s)):.2f}±{float(np.std(s)):.2f}"


def compare_fatal_groups(df: pd.DataFrame, features: List[str]) -> pd.DataFrame:
    """Compare each feature between fatal and non-fatal earthquakes (Mann-Whitney U)."""
    results = []
    fatal = df[df[TARGET_COLUMN] == 1]
    nonfatal = df[df[TARGET_COLUMN] == 0]

    for feature in features:
        if feature not in df.columns:
            continue
        hi = fatal[feature].dropna().astype(float)
        lo = nonfatal[feature].dropna().astype(float)
        if len(hi) and len(lo):
            _, p = mannwhitneyu(hi, lo, alternative="two-sided")
            method = "Mann-Whitney U"
        else:
            p = float("nan")
            method = "insufficient data for Mann-Whitney U"

        results.append(
            GroupComparison(
                feature=feature,
                feature_english=ENGLISH_LABELS.get(feature, feature),
                group_fatal=_mean_sd(hi),
                group_nonfatal=_mean_sd(lo),
                test_method=method,
                p_value=float(p),
                significant=bool(p < SIGNIFICANCE_LEVEL),
            ).__dict__
        )

    df_res = pd.DataFrame(results)
    if not df_res.empty:
        df_res = df_res.sort_values("p_value")
    return df_res


def likelihood_ratio_test(result: GLMResult) -> Tuple[float, float]:
    """LR statistic and p-value against the intercept-only model (1 df)."""
    stat = max(2.0 * (result.llf - result.llnull), 0.0)
    return float(stat), float(chi2.sf(stat, df=1))


def pseudo_r2(result: GLMResult) -> float:
    """McFadden's pseudo R-squared."""
    if result.llnull == 0:
        return float("nan")
    return float(1.0 - result.llf / result.llnull)


def deviance_explained(result: GLMResult) -> float:
    if result.null_deviance <= 0:
        return float("nan")
    return float(1.0 - result.deviance / result.null_deviance)


def overdispersion_ratio(result: GLMResult) -> float:
    """Pearson chi-square over residual degrees of freedom."""
    if result.df_resid <= 0:
        return float("nan")
    return float(result.pearson_chi2 / result.df_resid)


def is_overdispersed(result: GLMResult, threshold: float = OVERDISPERSION_THRESHOLD) -> bool:
    ratio = overdispersion_ratio(result)
    return bool(np.isfinite(ratio) and ratio > threshold)


def fit_quality_table(results: Iterable[GLMResult]) -> pd.DataFrame:
    """Per-model fit statistics, indexed by model name."""
    rows = []
    for res in results:
        lr_stat, lr_p = likelihood_ratio_test(res)
        rows.append({
            "model": res.model_name,
            "family": res.family,
            "predictor": res.predictor,
            "nobs": res.nobs,
            "aic": res.aic,
            "bic": res.bic,
            "deviance": res.deviance,
            "null_deviance": res.null_deviance,
            "deviance_explained": deviance_explained(res),
            "pseudo_r2": pseudo_r2(res),
            "lr_stat": lr_stat,
            "lr_p_value": lr_p,
            # Dispersion is fixed at 1 for the binomial family
            "overdispersion_ratio": float("nan") if res.family == LOGIT else overdispersion_ratio(res),
        })
    df_fit = pd.DataFrame(rows)
    if not df_fit.empty:
        df_fit = df_fit.set_index("model")
    return df_fit
