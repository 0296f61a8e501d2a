#!/usr/bin/env python3
"""
Data Loader - Handles dataset loading, cleaning, and canonical column typing
"""

from pathlib import Path
from typing import Dict, Any, List, Optional

import numpy as np
import pandas as pd
from sklearn.datasets import load_iris

from .base_component import BaseComponent
from .constants import (
    CASE_COLUMNS,
    CASES_DATASET,
    CONFIG_KEY_DATA_QUALITY,
    CONFIG_KEY_DATASETS,
    CONFIG_KEY_SIMULATION,
    DEFAULT_SIMULATED_COUNTRIES,
    IRIS_DATASET,
    IRIS_MEASUREMENTS,
)
from .exceptions import SchemaMismatch


def load_iris_frame() -> pd.DataFrame:
    """Return the 150-row flower measurement table with canonical column names."""
    bunch = load_iris(as_frame=True)
    df = bunch.frame.rename(columns=dict(zip(bunch.feature_names, IRIS_MEASUREMENTS)))
    df['species'] = pd.Categorical.from_codes(df.pop('target'), bunch.target_names).astype(str)
    return df[IRIS_MEASUREMENTS + ['species']].astype({col: 'float64' for col in IRIS_MEASUREMENTS})


def simulate_case_counts(
    countries: List[str],
    start_date: str = "2020-03-01",
    days: int = 120,
    seed: int = 2020,
) -> pd.DataFrame:
    """
    Build a deterministic daily case-count table shaped like the public
    coronavirus datasets (one row per date, country and case type).

    Each country gets a bell-shaped wave with its own peak day and height;
    daily counts are Poisson draws around that curve. Deaths and recoveries
    follow the confirmed curve with fixed ratios and lags.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start_date, periods=days, freq="D")
    t = np.arange(days)

    frames = []
    for country in countries:
        peak_day = rng.uniform(0.25, 0.6) * days
        width = rng.uniform(0.08, 0.18) * days
        height = rng.uniform(300, 6000)
        expected = height * np.exp(-0.5 * ((t - peak_day) / width) ** 2)

        confirmed = rng.poisson(expected)
        deaths = rng.poisson(np.roll(expected, 7) * 0.03)
        recovered = rng.poisson(np.roll(expected, 14) * 0.85)
        deaths[:7] = 0
        recovered[:14] = 0

        for case_type, counts in (("confirmed", confirmed), ("death", deaths), ("recovered", recovered)):
            frames.append(pd.DataFrame({
                'date': dates,
                'country': country,
                'type': case_type,
                'cases': counts.astype('float64'),
            }))

    if not frames:
        return pd.DataFrame({col: pd.Series(dtype=dtype) for col, dtype in
                             zip(CASE_COLUMNS, ['datetime64[ns]', 'object', 'object', 'float64'])})
    return pd.concat(frames, ignore_index=True)


class DataLoader(BaseComponent):
    """Loads the configured datasets in canonical column-typed form and caches them by name."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        data_directory: Optional[str] = None,
        output_directory: Optional[str] = None,
        context=None,
        config_override=None,
    ):
        super().__init__(config_file, data_directory, output_directory, context=context, config_override=config_override)
        self.datasets: Dict[str, pd.DataFrame] = {}

    @property
    def quality_checks(self) -> Dict[str, Any]:
        return self.global_defaults.get(CONFIG_KEY_DATA_QUALITY, {})

    def load_datasets(self) -> Dict[str, pd.DataFrame]:
        """Load every configured dataset; a dataset that fails is logged and left out."""
        names = list(self.config.get(CONFIG_KEY_DATASETS, {}))
        self.logger.info(f"Loading {len(names)} datasets: {', '.join(names)}")

        for name in names:
            try:
                self.load_dataset(name)
            except (OSError, ValueError, SchemaMismatch) as e:
                self.logger.error(f"Failed to load dataset {name}: {e}")

        total_records = sum(len(df) for df in self.datasets.values())
        self.logger.info(f"Loaded {len(self.datasets)} datasets with {total_records:,} records in total")
        return self.datasets

    def load_dataset(self, dataset_name: str) -> pd.DataFrame:
        """
        Return the dataset called ``dataset_name``, loading it on first use.

        Raises:
            FileNotFoundError: a CSV-backed dataset has no readable file
            SchemaMismatch: the cases file lacks one of the canonical columns
        """
        if dataset_name in self.datasets:
            return self.datasets[dataset_name]

        dataset_config = self.config.get(CONFIG_KEY_DATASETS, {}).get(dataset_name) or {}

        if dataset_name == IRIS_DATASET and dataset_config.get('source', 'sklearn') == 'sklearn':
            df = load_iris_frame()
            self.logger.info(f"Loaded {dataset_name} from scikit-learn: {len(df):,} records")
        elif dataset_name == CASES_DATASET:
            df = self._load_cases(dataset_config)
        else:
            df = self._read_csv(dataset_name, dataset_config)
            if df is None:
                raise FileNotFoundError(f"No readable file configured for dataset {dataset_name}")
            df = self._clean_dataset(df, dataset_name)

        self.datasets[dataset_name] = df
        return df

    def _load_cases(self, dataset_config: Dict[str, Any]) -> pd.DataFrame:
        """Read the case-count CSV, or simulate the table when the file is absent."""
        df = self._read_csv(CASES_DATASET, dataset_config)
        if df is None:
            return self._simulate_cases()

        df = self._clean_dataset(df, CASES_DATASET)
        date_column = dataset_config.get('date_column', 'date')
        if date_column != 'date' and date_column in df.columns:
            df = df.rename(columns={date_column: 'date'})

        missing = [col for col in CASE_COLUMNS if col not in df.columns]
        if missing:
            raise SchemaMismatch(f"load {CASES_DATASET}", missing, df.columns)

        return df.assign(
            date=pd.to_datetime(df['date'], errors='coerce'),
            country=df['country'].astype(str),
            type=df['type'].astype(str),
            cases=pd.to_numeric(df['cases'], errors='coerce').astype('float64'),
        )

    def _simulate_cases(self) -> pd.DataFrame:
        settings = self.global_defaults.get(CONFIG_KEY_SIMULATION, {})
        countries = list(settings.get('countries') or DEFAULT_SIMULATED_COUNTRIES)
        df = simulate_case_counts(
            countries,
            start_date=settings.get('start_date', "2020-03-01"),
            days=int(settings.get('days', 120)),
            seed=int(settings.get('seed', 2020)),
        )
        self.logger.warning(f"Using simulated {CASES_DATASET} table: {len(df):,} records for {len(countries)} countries")
        return df

    def _dataset_path(self, dataset_config: Dict[str, Any]) -> Optional[Path]:
        filename = dataset_config.get('filename') or dataset_config.get('path')
        if not filename:
            return None
        path = Path(filename).expanduser()
        return path if path.is_absolute() else self.data_dir / path

    def _encoding_order(self, preferred: Optional[str]) -> List[str]:
        fallbacks = list(self.quality_checks.get('encoding_fallbacks') or ['utf-8', 'latin-1', 'cp1252'])
        if preferred:
            return [preferred] + [enc for enc in fallbacks if enc != preferred]
        return fallbacks

    def _read_csv(self, dataset_name: str, dataset_config: Dict[str, Any]) -> Optional[pd.DataFrame]:
        """Read a dataset CSV, trying each configured encoding; None when there is no file."""
        path = self._dataset_path(dataset_config)
        if path is None or not path.is_file():
            self.logger.info(f"No file for dataset {dataset_name}" + (f" at {path}" if path else ""))
            return None

        read_params = dict(dataset_config.get('loading_params') or {})
        encodings = self._encoding_order(read_params.pop('encoding', None))

        for encoding in encodings:
            try:
                df = pd.read_csv(path, encoding=encoding, **read_params)
            except UnicodeDecodeError:
                self.logger.debug(f"{path.name} is not {encoding}-encoded")
                continue
            self.logger.info(f"Read {dataset_name} from {path} ({encoding}): {len(df):,} records, {len(df.columns)} columns")
            return df

        self.logger.error(f"Could not decode {path} with any of: {', '.join(encodings)}")
        return None

    def _clean_dataset(self, df: pd.DataFrame, dataset_name: str) -> pd.DataFrame:
        """Turn configured null indicators in text columns into missing values."""
        indicators = self.quality_checks.get('null_indicators', ["", "NULL", "null", "NA", "N/A", "nan", "NaN"])
        text_columns = [col for col in df.columns
                        if pd.api.types.is_object_dtype(df[col]) or pd.api.types.is_string_dtype(df[col])]

        cleaned = df.copy()
        if text_columns:
            cleaned[text_columns] = cleaned[text_columns].mask(cleaned[text_columns].isin(indicators))

        added = int(cleaned.isna().sum().sum() - df.isna().sum().sum())
        if added:
            self.logger.info(f"{dataset_name}: {added:,} null indicator values replaced with missing values")
        return cleaned

    def get_dataset_summary(self) -> Dict[str, Any]:
        """Record counts, columns and missing values per loaded dataset."""
        return {
            name: {
                'total_records': len(df),
                'columns': list(map(str, df.columns)),
                'missing_values': int(df.isna().sum().sum()),
            }
            for name, df in self.datasets.items()
        }
