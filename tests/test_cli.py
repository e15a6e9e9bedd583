from __future__ import annotations

import argparse
import json

import pandas as pd
import pytest

from cli import main, parse_column_overrides, run


def test_parse_column_overrides():
    assert parse_column_overrides(["magnitude=Mw", " deaths = Total Deaths "]) == {
        "magnitude": "Mw",
        "deaths": "Total Deaths",
    }
    assert parse_column_overrides(None) == {}
    with pytest.raises(argparse.ArgumentTypeError):
        parse_column_overrides(["magnitude"])
    with pytest.raises(argparse.ArgumentTypeError):
        parse_column_overrides(["intensity=MMI"])


def test_run_writes_full_report(earthquake_csv, tmp_path, capsys):
    out_dir = tmp_path / "report"
    summary = run(earthquake_csv, out_dir)

    for name in [
        "report.html",
        "coefficients.csv",
        "fit_quality.csv",
        "group_comparison.csv",
        "descriptive_stats.csv",
        "results_summary.json",
        "logit_magnitude_summary.txt",
        "poisson_houses_destroyed_summary.txt",
        "logit_fits.png",
        "poisson_fits.png",
        "residual_diagnostics.png",
        "roc_curves.png",
        "predictor_distributions.png",
    ]:
        assert (out_dir / name).exists(), name

    assert len(summary["models"]) == 6
    assert "classification" in summary["models"]["logit_magnitude"]
    assert "classification" not in summary["models"]["poisson_magnitude"]
    assert summary["negative_binomial"]

    coef = pd.read_csv(out_dir / "coefficients.csv")
    assert len(coef) == 12

    stored = json.loads((out_dir / "results_summary.json").read_text(encoding="utf-8"))
    assert stored["n_records"] == summary["n_records"]

    html_text = (out_dir / "report.html").read_text(encoding="utf-8")
    assert "Interpretation of coefficients" in html_text
    assert 'src="logit_fits.png"' in html_text

    printed = capsys.readouterr().out
    assert "EARTHQUAKE FATALITY GLM REPORT" in printed
    for name in summary["negative_binomial"]:
        assert f"{name} (overdispersion follow-up)" in printed


def test_main_without_plots(earthquake_csv, tmp_path):
    out_dir = tmp_path / "noplots"
    main(["--input", str(earthquake_csv), "--out", str(out_dir), "--no-plots",
          "--column", "magnitude=Mag"])
    assert (out_dir / "report.html").exists()
    assert not (out_dir / "logit_fits.png").exists()


def test_main_missing_input_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["--input", str(tmp_path / "nope.csv"), "--out", str(tmp_path / "out"), "--no-plots"])
