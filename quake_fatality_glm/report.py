"""HTML report and console narration for the earthquake fatality models."""

from __future__ import annotations

import html
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd

from .constants import (
    ENGLISH_LABELS,
    FAMILY_LABELS,
    LOGIT,
    OVERDISPERSION_THRESHOLD,
    PREDICTOR_UNITS,
    SIGNIFICANCE_LEVEL,
)
from .evaluation import EvalResult
from .glm_models import GLMResult
from .preprocessing import EarthquakeDataset


def _fmt(value: float) -> str:
    if value is None or not np.isfinite(value):
        return "n/a"
    return f"{value:.4g}"


def _fmt_p(p: float) -> str:
    if not np.isfinite(p):
        return "p = n/a"
    if p < 0.001:
        return "p < 0.001"
    return f"p = {p:.3f}"


def interpret_coefficient(result: GLMResult) -> str:
    """Narrate the slope of a single-predictor model in plain English."""
    label = ENGLISH_LABELS.get(result.predictor, result.predictor).lower()
    unit = PREDICTOR_UNITS.get(result.predictor, "unit")
    coef = result.slope
    p = result.slope_pvalue
    effect = result.effect
    ci_low, ci_high = result.effect_ci

    if result.family == LOGIT:
        quantity = "the odds of the earthquake causing at least one death"
        ratio_name = "odds ratio"
    else:
        quantity = "the expected death toll"
        ratio_name = "rate ratio"

    direction = "higher" if coef > 0 else "lower"
    pct = (effect - 1.0) * 100.0
    significant = p < SIGNIFICANCE_LEVEL
    verdict = (
        f"The effect is statistically significant at the {SIGNIFICANCE_LEVEL:g} level ({_fmt_p(p)})."
        if significant else
        f"The effect is not statistically significant at the {SIGNIFICANCE_LEVEL:g} level ({_fmt_p(p)}), "
        f"so the data do not rule out that {label} has no association with {quantity}."
    )
    return (
        f"{result.model_name}: the coefficient on {label} is {_fmt(coef)} on the "
        f"{'log-odds' if result.family == LOGIT else 'log'} scale. Each additional {unit} "
        f"multiplies {quantity} by {_fmt(effect)} ({ratio_name}; 95% CI {_fmt(ci_low)} to {_fmt(ci_high)}), "
        f"i.e. {_fmt(abs(pct))}% {direction}. {verdict}"
    )


def interpret_fit(result: GLMResult, quality: Mapping) -> str:
    """Narrate fit quality from a row of the fit quality table."""
    parts = [
        f"{result.model_name} ({FAMILY_LABELS.get(result.family, result.family)}, n = {result.nobs}): "
        f"the predictor reduces deviance from {_fmt(result.null_deviance)} to {_fmt(result.deviance)} "
        f"({_fmt(100.0 * quality['deviance_explained'])}% explained; McFadden pseudo R² = {_fmt(quality['pseudo_r2'])}).",
    ]
    if quality["lr_p_value"] < SIGNIFICANCE_LEVEL:
        parts.append(
            f"The likelihood-ratio test against the intercept-only model is significant "
            f"(LR = {_fmt(quality['lr_stat'])}, {_fmt_p(quality['lr_p_value'])})."
        )
    else:
        parts.append(
            f"The likelihood-ratio test does not favour this model over the intercept-only model "
            f"(LR = {_fmt(quality['lr_stat'])}, {_fmt_p(quality['lr_p_value'])})."
        )
    parts.append(f"AIC = {_fmt(result.aic)}.")

    ratio = quality.get("overdispersion_ratio", float("nan"))
    if result.family != LOGIT and np.isfinite(ratio):
        if ratio > OVERDISPERSION_THRESHOLD:
            parts.append(
                f"The Pearson dispersion ratio is {_fmt(ratio)}, far above 1: death tolls vary much more "
                f"than a Poisson model allows, so its standard errors and p-values are too optimistic. "
                f"A negative binomial fit is reported alongside."
            )
        else:
            parts.append(f"The Pearson dispersion ratio is {_fmt(ratio)}, consistent with Poisson variance.")
    return " ".join(parts)


def _figure_block(title: str, path: Path, out_dir: Path) -> str:
    src = Path(path).relative_to(out_dir) if Path(path).is_relative_to(out_dir) else Path(path)
    return f'<h3>{html.escape(title)}</h3>\n<img src="{html.escape(src.as_posix())}" alt="{html.escape(title)}">'


def build_report(dataset: EarthquakeDataset,
                 results: Dict[str, GLMResult],
                 coef_df: pd.DataFrame,
                 fit_df: pd.DataFrame,
                 group_df: pd.DataFrame,
                 desc_df: pd.DataFrame,
                 evals: Dict[str, EvalResult],
                 negbin_results: Optional[Dict[str, GLMResult]] = None,
                 figures: Optional[Dict[str, Path]] = None,
                 out_dir: Path = Path("."),
                 source: str = "") -> str:
    """Assemble the full HTML report."""
    negbin_results = negbin_results or {}
    figures = figures or {}
    out_dir = Path(out_dir)
    df = dataset.frame

    eval_df = pd.DataFrame({
        name: {k: v for k, v in ev.as_dict().items() if k != "confusion_matrix"}
        for name, ev in evals.items()
    }).T

    coef_paragraphs = "\n".join(f"<p>{html.escape(interpret_coefficient(r))}</p>" for r in results.values())
    fit_paragraphs = "\n".join(
        f"<p>{html.escape(interpret_fit(r, fit_df.loc[name]))}</p>" for name, r in results.items()
    )

    negbin_html = ""
    if negbin_results:
        nb_rows = "\n".join(f"<p>{html.escape(interpret_coefficient(r))}</p>" for r in negbin_results.values())
        negbin_html = f"<h2>Negative binomial follow-up</h2>\n{nb_rows}"

    mapping_items = "\n".join(
        f"<li><strong>{html.escape(ENGLISH_LABELS.get(k, k))}:</strong> {html.escape(str(v))}</li>"
        for k, v in dataset.column_mapping.items()
    )
    figure_html = "\n".join(
        _figure_block(title, figures[key], out_dir)
        for key, title in (
            ("distributions", "Predictor distributions"),
            ("logit_fits", "Logit model fits"),
            ("poisson_fits", "Poisson model fits"),
            ("residuals", "Residual diagnostics"),
            ("roc", "ROC curves"),
        )
        if key in figures
    )

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Earthquake Fatality GLM Report</title>
    <style>
        body {{ font-family: 'Segoe UI', Arial, sans-serif; background: #f5f5f5; margin: 0; padding: 30px; }}
        .container {{ max-width: 1200px; margin: 0 auto; background: #fff; padding: 30px; }}
        h1 {{ color: #2c3e50; border-bottom: 3px solid #3498db; padding-bottom: 10px; }}
        h2 {{ color: #34495e; margin-top: 30px; border-bottom: 2px solid #95a5a6; padding-bottom: 5px; }}
        table {{ border-collapse: collapse; width: 100%; margin: 20px 0; }}
        th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
        th {{ background-color: #3498db; color: white; }}
        .metric {{ display: inline-block; margin: 10px 20px 10px 0; padding: 10px 15px; background: #ecf0f1; }}
        img {{ max-width: 100%; border: 1px solid #ddd; margin: 20px 0; }}
        pre {{ background: #f8f8f8; padding: 10px; overflow-x: auto; }}
    </style>
</head>
<body>
<div class="container">

<h1>Earthquake Fatality GLM Report</h1>
<p><em>Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</em></p>

<h2>Data</h2>
<div class="metric"><strong>Source:</strong> {html.escape(source)}</div>
<div class="metric"><strong>Records read:</strong> {dataset.rows_read:,}</div>
<div class="metric"><strong>Records analysed:</strong> {dataset.n_records:,}</div>
<div class="metric"><strong>Fatality rate:</strong> {dataset.fatality_rate * 100:.1f}%</div>
<p>Missing death counts were treated as zero ({dataset.deaths_imputed:,} records).
Records missing any predictor were discarded ({dataset.rows_dropped:,} records).</p>
<ul>
{mapping_items}
</ul>

<h2>Descriptive statistics</h2>
{desc_df.to_html(float_format=lambda v: f"{v:.4g}")}

<h2>Fatal vs non-fatal earthquakes</h2>
{group_df.to_html(index=False)}

<h2>Model coefficients</h2>
{coef_df.to_html(index=False, float_format=lambda v: f"{v:.4g}")}

<h2>Interpretation of coefficients</h2>
{coef_paragraphs}

<h2>Fit quality</h2>
{fit_df.to_html(float_format=lambda v: f"{v:.4g}")}
{fit_paragraphs}

<h2>Logit classification metrics (threshold 0.5, in-sample)</h2>
{eval_df.to_html(float_format=lambda v: f"{v:.3f}")}

{negbin_html}

<h2>Figures</h2>
{figure_html}

</div>
</body>
</html>"""


def write_report(html_text: str, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html_text, encoding="utf-8")
    return path


def print_console_summary(dataset: EarthquakeDataset,
                          results: Dict[str, GLMResult],
                          fit_df: pd.DataFrame,
                          evals: Dict[str, EvalResult],
                          negbin_results: Optional[Dict[str, GLMResult]] = None) -> None:
    """Print the console summary of every model, negative binomial follow-ups included."""
    print("=" * 80)
    print("EARTHQUAKE FATALITY GLM REPORT")
    print("=" * 80)
    print(f"Records analysed: {dataset.n_records} of {dataset.rows_read}")
    print(f"Fatality rate: {dataset.fatality_rate:.2%}")

    for name, res in results.items():
        print("\n" + "-" * 80)
        print(name)
        print("-" * 80)
        print(res.summary_text)
        print(interpret_coefficient(res))
        print(interpret_fit(res, fit_df.loc[name]))
        if name in evals:
            ev = evals[name]
            print(f"AUC: {_fmt(ev.auc)}  accuracy: {_fmt(ev.accuracy)}  "
                  f"sensitivity: {_fmt(ev.recall)}  specificity: {_fmt(ev.specificity)}")

    for name, res in (negbin_results or {}).items():
        print("\n" + "-" * 80)
        print(f"{name} (overdispersion follow-up)")
        print("-" * 80)
        print(res.summary_text)
        print(interpret_coefficient(res))
