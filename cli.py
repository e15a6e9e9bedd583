from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from quake_fatality_glm.constants import (
    DEFAULT_INPUT,
    DEFAULT_OUTPUT_DIR,
    LOGIT,
    POISSON,
    PREDICTORS,
    REQUIRED_COLUMNS,
)
from quake_fatality_glm.evaluation import evaluate_logit
from quake_fatality_glm.glm_models import coefficient_table, fit_model_suite, fit_negative_binomial
from quake_fatality_glm.plotting import render_all
from quake_fatality_glm.preprocessing import prepare_dataset
from quake_fatality_glm.report import build_report, print_console_summary, write_report
from quake_fatality_glm.stats_analysis import (
    compare_fatal_groups,
    describe_dataset,
    fit_quality_table,
    is_overdispersed,
)

logger = logging.getLogger(__name__)


def parse_column_overrides(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``canonical=source`` flags."""
    overrides: Dict[str, str] = {}
    for item in values or []:
        canonical, sep, source = item.partition("=")
        canonical = canonical.strip()
        if not sep or not source.strip():
            raise argparse.ArgumentTypeError(f"Expected canonical=source, got {item!r}")
        if canonical not in REQUIRED_COLUMNS:
            raise argparse.ArgumentTypeError(
                f"Unknown column {canonical!r}; choose from {', '.join(REQUIRED_COLUMNS)}"
            )
        overrides[canonical] = source.strip()
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Earthquake fatality GLM report")
    parser.add_argument("--input", default=DEFAULT_INPUT, help="Input CSV file of historical earthquakes")
    parser.add_argument("--out", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    parser.add_argument(
        "--column", action="append", metavar="CANONICAL=SOURCE",
        help=f"Map a canonical column ({', '.join(REQUIRED_COLUMNS)}) to a CSV header; repeatable",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip rendering figures")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def run(input_path, out_dir, overrides: Optional[Dict[str, str]] = None, plots: bool = True) -> Dict:
    """Run the whole report: load, clean, fit, summarize, plot and write."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    dataset = prepare_dataset(input_path, overrides)
    df = dataset.frame

    desc_df = describe_dataset(df)
    group_df = compare_fatal_groups(df, PREDICTORS)
    desc_df.to_csv(out_dir / "descriptive_stats.csv", encoding="utf-8")
    group_df.to_csv(out_dir / "group_comparison.csv", index=False, encoding="utf-8")

    results = fit_model_suite(df, PREDICTORS)
    coef_df = coefficient_table(results.values())
    fit_df = fit_quality_table(results.values())
    coef_df.to_csv(out_dir / "coefficients.csv", index=False, encoding="utf-8")
    fit_df.to_csv(out_dir / "fit_quality.csv", encoding="utf-8")
    for name, res in results.items():
        with open(out_dir / f"{name}_summary.txt", "w", encoding="utf-8") as f:
            f.write(res.summary_text)

    evals = {name: evaluate_logit(res) for name, res in results.items() if res.family == LOGIT}

    # Negative binomial follow-up for overdispersed count models
    negbin_results = {}
    for res in results.values():
        if res.family == POISSON and is_overdispersed(res):
            logger.info("%s is overdispersed; fitting negative binomial", res.model_name)
            nb = fit_negative_binomial(df, res.predictor)
            negbin_results[nb.model_name] = nb

    figures = {}
    if plots:
        figures = render_all(df, PREDICTORS, results, {k: v.auc for k, v in evals.items()}, out_dir)

    html_text = build_report(
        dataset, results, coef_df, fit_df, group_df, desc_df, evals,
        negbin_results=negbin_results, figures=figures, out_dir=out_dir, source=str(input_path),
    )
    report_path = write_report(html_text, out_dir / "report.html")

    summary = {
        "n_records": dataset.n_records,
        "rows_read": dataset.rows_read,
        "deaths_imputed": dataset.deaths_imputed,
        "rows_dropped": dataset.rows_dropped,
        "fatality_rate": dataset.fatality_rate,
        "column_mapping": dataset.column_mapping,
        "models": {
            name: {
                "family": res.family,
                "predictor": res.predictor,
                "params": res.params,
                "pvalues": res.pvalues,
                "effect": res.effect,
                "effect_ci": list(res.effect_ci),
                "aic": res.aic,
                "deviance": res.deviance,
                **({"classification": evals[name].as_dict()} if name in evals else {}),
            }
            for name, res in results.items()
        },
        "negative_binomial": {
            name: {"params": nb.params, "pvalues": nb.pvalues, "aic": nb.aic}
            for name, nb in negbin_results.items()
        },
        "report": str(report_path),
    }
    with open(out_dir / "results_summary.json", "w", encoding="utf-8") as f:
        json.dump(summary, f, ensure_ascii=False, indent=2)

    print_console_summary(dataset, results, fit_df, evals, negbin_results=negbin_results)
    return summary


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        overrides = parse_column_overrides(args.column)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    run(args.input, args.out, overrides=overrides, plots=not args.no_plots)
    print("Done. Output directory:", str(args.out))


if __name__ == "__main__":
    main()
