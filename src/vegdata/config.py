"""Configuration settings for the compositing pipeline."""

from __future__ import annotations

from pathlib import Path


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def data_root() -> Path:
    return project_root() / "data"


def observations_dir(site: str) -> Path:
    return data_root() / "clean" / "observations" / site


def period_composites_dir(site: str, year: int) -> Path:
    return data_root() / "composites" / "period" / site / str(year)


def composite_path(site: str, year: int) -> Path:
    return data_root() / "composites" / "yearly" / site / f"L3_{year}_{site}.parquet"
