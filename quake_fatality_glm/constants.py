from __future__ import annotations

# Canonical column names used throughout the package
DEATHS_COLUMN = "deaths"
TARGET_COLUMN = "fatal"

PREDICTORS = [
    "magnitude",
    "focal_depth",
    "houses_destroyed",
]

REQUIRED_COLUMNS = [DEATHS_COLUMN] + PREDICTORS


# Source header aliases; compared after normalize_column_name()
COLUMN_ALIASES = {
    "deaths": ["Deaths", "DEATHS", "Total Deaths", "TOTAL_DEATHS"],
    "magnitude": ["Mag", "Magnitude", "EQ_PRIMARY", "EQ_MAG_MW", "mag"],
    "focal_depth": ["Focal Depth (km)", "FOCAL_DEPTH", "Focal Depth", "depth"],
    "houses_destroyed": [
        "Houses Destroyed",
        "HOUSES_DESTROYED",
        "Total Houses Destroyed",
        "TOTAL_HOUSES_DESTROYED",
    ],
}


# Human-readable labels for tables, plots and narrative
ENGLISH_LABELS = {
    "deaths": "Deaths",
    "fatal": "Fatal (deaths >= 1)",
    "magnitude": "Magnitude",
    "focal_depth": "Focal Depth (km)",
    "houses_destroyed": "Houses Destroyed",
}

PREDICTOR_UNITS = {
    "magnitude": "magnitude unit",
    "focal_depth": "km of focal depth",
    "houses_destroyed": "house destroyed",
}


# GLM families
LOGIT = "logit"
POISSON = "poisson"
NEGATIVE_BINOMIAL = "negbin"

FAMILY_LABELS = {
    LOGIT: "Logit (Binomial, logit link)",
    POISSON: "Poisson (log link)",
    NEGATIVE_BINOMIAL: "Negative binomial (log link)",
}

# Response column fitted by each family
FAMILY_RESPONSE = {
    LOGIT: TARGET_COLUMN,
    POISSON: DEATHS_COLUMN,
    NEGATIVE_BINOMIAL: DEATHS_COLUMN,
}


SIGNIFICANCE_LEVEL = 0.05
OVERDISPERSION_THRESHOLD = 1.5
CURVE_POINTS = 200

DEFAULT_INPUT = "earthquakes.csv"
DEFAULT_OUTPUT_DIR = "earthquake_glm_report"
