from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .constants import DEATHS_COLUMN, ENGLISH_LABELS, LOGIT, POISSON, TARGET_COLUMN
from .evaluation import roc_points
from .glm_models import GLMResult

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")


def _save(fig: plt.Figure, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.debug("Saved figure %s", path)
    return path


def _by_family(results: Dict[str, GLMResult], family: str) -> List[GLMResult]:
    return [r for r in results.values() if r.family == family]


def plot_predictor_distributions(df: pd.DataFrame, predictors: List[str], path: Path) -> Path:
    """Histogram of each predictor split by the fatality flag."""
    fig, axes = plt.subplots(1, len(predictors), figsize=(5 * len(predictors), 4), squeeze=False)
    hue = df[TARGET_COLUMN].map({0: "no deaths", 1: "fatal"})
    for ax, predictor in zip(axes[0], predictors):
        sns.histplot(x=df[predictor], hue=hue, ax=ax, bins=30, element="step", stat="density", common_norm=False)
        ax.set_xlabel(ENGLISH_LABELS.get(predictor, predictor))
        ax.set_title(ENGLISH_LABELS.get(predictor, predictor))
    fig.suptitle("Predictor distributions by fatality")
    return _save(fig, path)


def plot_logit_fits(results: Dict[str, GLMResult], path: Path, seed: int = 0) -> Path:
    """Observed 0/1 outcomes (jittered) with fitted probability curve and 95% band."""
    logits = _by_family(results, LOGIT)
    rng = np.random.default_rng(seed)
    fig, axes = plt.subplots(1, len(logits), figsize=(5 * len(logits), 4), squeeze=False)
    for ax, res in zip(axes[0], logits):
        jitter = rng.uniform(-0.04, 0.04, size=len(res.y))
        ax.scatter(res.x, res.y + jitter, s=8, alpha=0.3, color="grey", label="observed")
        ax.plot(res.curve[res.predictor], res.curve["mean"], color="C3", lw=2, label="fitted P(fatal)")
        ax.fill_between(
            res.curve[res.predictor], res.curve["mean_ci_lower"], res.curve["mean_ci_upper"],
            color="C3", alpha=0.2, label="95% CI",
        )
        ax.set_ylim(-0.1, 1.1)
        ax.set_xlabel(ENGLISH_LABELS.get(res.predictor, res.predictor))
        ax.set_ylabel("P(at least one death)")
        ax.set_title(res.model_name)
        ax.legend(loc="best", fontsize=8)
    fig.suptitle("Logit models")
    return _save(fig, path)


def plot_poisson_fits(results: Dict[str, GLMResult], path: Path) -> Path:
    """Observed death counts with fitted expected toll and 95% band (symlog scale)."""
    poissons = _by_family(results, POISSON)
    fig, axes = plt.subplots(1, len(poissons), figsize=(5 * len(poissons), 4), squeeze=False)
    for ax, res in zip(axes[0], poissons):
        ax.scatter(res.x, res.y, s=8, alpha=0.3, color="grey", label="observed")
        ax.plot(res.curve[res.predictor], res.curve["mean"], color="C0", lw=2, label="fitted E[deaths]")
        ax.fill_between(
            res.curve[res.predictor], res.curve["mean_ci_lower"], res.curve["mean_ci_upper"],
            color="C0", alpha=0.2, label="95% CI",
        )
        ax.set_yscale("symlog", linthresh=1)
        ax.set_xlabel(ENGLISH_LABELS.get(res.predictor, res.predictor))
        ax.set_ylabel(ENGLISH_LABELS[DEATHS_COLUMN])
        ax.set_title(res.model_name)
        ax.legend(loc="best", fontsize=8)
    fig.suptitle("Poisson models")
    return _save(fig, path)


def plot_residual_diagnostics(results: Dict[str, GLMResult], path: Path) -> Path:
    """Deviance residuals against the linear predictor, one panel per model."""
    models = list(results.values())
    ncols = 3
    nrows = int(np.ceil(len(models) / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 4 * nrows), squeeze=False)
    for ax, res in zip(axes.ravel(), models):
        ax.scatter(res.linear_predictor, res.resid_deviance, s=8, alpha=0.4)
        ax.axhline(0.0, color="black", lw=1, ls="--")
        ax.set_xlabel("Linear predictor")
        ax.set_ylabel("Deviance residual")
        ax.set_title(res.model_name)
    for ax in axes.ravel()[len(models):]:
        ax.set_visible(False)
    fig.suptitle("Residual diagnostics")
    return _save(fig, path)


def plot_roc_curves(results: Dict[str, GLMResult], aucs: Dict[str, float], path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(6, 5))
    for res in _by_family(results, LOGIT):
        fpr, tpr = roc_points(res)
        ax.plot(fpr, tpr, lw=2, label=f"{ENGLISH_LABELS.get(res.predictor, res.predictor)} (AUC={aucs.get(res.model_name, float('nan')):.3f})")
    ax.plot([0, 1], [0, 1], color="grey", ls=":", lw=1)
    ax.set_xlabel("False positive rate")
    ax.set_ylabel("True positive rate")
    ax.set_title("ROC curves of logit models")
    ax.legend(loc="lower right", fontsize=8)
    return _save(fig, path)


def render_all(df: pd.DataFrame, predictors: List[str], results: Dict[str, GLMResult],
               aucs: Dict[str, float], out_dir: Path) -> Dict[str, Path]:
    """Write every report figure into ``out_dir``; returns name -> path."""
    out_dir = Path(out_dir)
    return {
        "distributions": plot_predictor_distributions(df, predictors, out_dir / "predictor_distributions.png"),
        "logit_fits": plot_logit_fits(results, out_dir / "logit_fits.png"),
        "poisson_fits": plot_poisson_fits(results, out_dir / "poisson_fits.png"),
        "residuals": plot_residual_diagnostics(results, out_dir / "residual_diagnostics.png"),
        "roc": plot_roc_curves(results, aucs, out_dir / "roc_curves.png"),
    }
