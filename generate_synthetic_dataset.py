from __future__ import annotations

import numpy as np
import pandas as pd


def make_synthetic_dataset(n_events: int = 600, seed: int = 42) -> pd.DataFrame:
    """Synthetic earthquake table with NOAA-style headers and realistic gaps."""
    rng = np.random.default_rng(seed)

    year = rng.integers(1900, 2024, size=n_events)
    magnitude = np.round(np.clip(rng.gamma(shape=6.0, scale=0.22, size=n_events) + 4.5, 4.5, 9.5), 1)
    focal_depth = np.round(np.clip(rng.gamma(shape=1.6, scale=18.0, size=n_events), 1, 650)).astype(float)

    # Destruction grows with magnitude and shrinks with depth
    log_houses = -6.0 + 1.1 * magnitude - 0.01 * focal_depth + rng.normal(0, 1.2, size=n_events)
    houses_destroyed = np.floor(np.exp(np.clip(log_houses, -5, 12))).astype(float)

    # Latent death rate; overdispersed through a gamma frailty
    log_rate = -6.5 + 0.9 * magnitude - 0.006 * focal_depth + 0.25 * np.log1p(houses_destroyed)
    frailty = rng.gamma(shape=0.8, scale=1 / 0.8, size=n_events)
    deaths = rng.poisson(np.exp(np.clip(log_rate, -20, 12)) * frailty).astype(float)

    # Zero death counts are usually left blank in the source data
    blank_deaths = (deaths == 0) & (rng.random(n_events) < 0.7)
    deaths[blank_deaths] = np.nan
    houses_destroyed[rng.random(n_events) < 0.25] = np.nan
    focal_depth[rng.random(n_events) < 0.08] = np.nan
    magnitude[rng.random(n_events) < 0.03] = np.nan

    return pd.DataFrame({
        "Year": year,
        "Location Name": [f"REGION {i % 40:02d}" for i in range(n_events)],
        "Mag": magnitude,
        "Focal Depth (km)": focal_depth,
        "Deaths": deaths,
        "Houses Destroyed": houses_destroyed,
        "Injuries": rng.poisson(5, size=n_events),
    })


if __name__ == "__main__":
    df = make_synthetic_dataset()
    df.to_csv("earthquakes.csv", index=False)
    print("Synthetic dataset written to earthquakes.csv with shape:", df.shape)
