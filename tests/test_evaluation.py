from __future__ import annotations

import numpy as np
import pytest

from quake_fatality_glm.evaluation import evaluate_logit, evaluate_predictions, roc_points


def test_evaluate_predictions_known_values():
    y = np.array([0, 0, 1, 1])
    prob = np.array([0.1, 0.6, 0.4, 0.9])
    ev = evaluate_predictions(y, prob)
    assert ev.auc == pytest.approx(0.75)
    assert ev.accuracy == pytest.approx(0.5)
    assert ev.precision == pytest.approx(0.5)
    assert ev.recall == pytest.approx(0.5)
    assert ev.specificity == pytest.approx(0.5)
    assert ev.as_dict()["confusion_matrix"] == [[1, 1], [1, 1]]


def test_single_class_auc_is_nan():
    ev = evaluate_predictions(np.array([0, 0, 0]), np.array([0.2, 0.3, 0.7]))
    assert np.isnan(ev.auc)
    assert ev.cm.shape == (2, 2)


def test_evaluate_logit(suite):
    ev = evaluate_logit(suite["logit_magnitude"])
    assert 0.5 < ev.auc <= 1.0
    fpr, tpr = roc_points(suite["logit_magnitude"])
    assert fpr[0] == 0.0 and tpr[-1] == 1.0


def test_evaluate_logit_rejects_count_model(suite):
    with pytest.raises(ValueError):
        evaluate_logit(suite["poisson_magnitude"])


def test_single_class_specificity_is_nan():
    ev = evaluate_predictions(np.array([1, 1, 1]), np.array([0.2, 0.7, 0.9]))
    assert np.isnan(ev.specificity)
    assert ev.recall == pytest.approx(2 / 3)
