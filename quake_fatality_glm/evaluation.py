from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from .constants import LOGIT
from .glm_models import GLMResult


@dataclass
class EvalResult:
    auc: float
    accuracy: float
    precision: float
    recall: float
    specificity: float
    cm: np.ndarray

    def as_dict(self) -> Dict:
        tn, fp, fn, tp = (int(v) for v in self.cm.ravel())
        return {
            "auc": self.auc,
            "accuracy": self.accuracy,
            "precision": self.precision,
            "sensitivity": self.recall,
            "specificity": self.specificity,
            "confusion_matrix": [[tn, fp], [fn, tp]],
        }


def evaluate_predictions(y_true: np.ndarray, y_prob: np.ndarray, threshold: float = 0.5) -> EvalResult:
    """Compute AUC and classification metrics at a fixed threshold (default 0.5)."""
    y_true = np.asarray(y_true).astype(int)
    y_pred = (np.asarray(y_prob) >= threshold).astype(int)
    model_auc = float(roc_auc_score(y_true, y_prob)) if len(np.unique(y_true)) == 2 else float("nan")
    cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
    tn, fp = cm[0, 0], cm[0, 1]
    specificity = float(tn / (tn + fp)) if (tn + fp) > 0 else float("nan")
    return EvalResult(
        auc=model_auc,
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision=float(precision_score(y_true, y_pred, zero_division=0)),
        recall=float(recall_score(y_true, y_pred, zero_division=0)),
        specificity=specificity,
        cm=cm,
    )


def evaluate_logit(result: GLMResult, threshold: float = 0.5) -> EvalResult:
    """In-sample classification metrics of a fitted logit model."""
    if result.family != LOGIT:
        raise ValueError(f"{result.model_name} is not a logit model")
    return evaluate_predictions(result.y, result.fitted, threshold=threshold)


def roc_points(result: GLMResult):
    """False/true positive rates of a logit model's fitted probabilities."""
    fpr, tpr, _ = roc_curve(result.y.astype(int), result.fitted)
    return fpr, tpr
