"""Earthquake fatality GLM report.

Logit and Poisson models of earthquake fatalities against magnitude, focal
depth and houses destroyed, with diagnostics and a narrated HTML report.
"""

__all__ = [
    "constants",
    "preprocessing",
    "glm_models",
    "stats_analysis",
    "evaluation",
    "plotting",
    "report",
]

__version__ = "0.1.0"
