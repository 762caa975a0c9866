"""
Data cleaning utilities for the OASIS dementia analysis
"""

import pandas as pd
import numpy as np

from .data_loader import REQUIRED_COLUMNS


SCALED_COLUMNS = ['Age', 'MMSE', 'nWBV']


class DataCleaner:
    """Selects, filters and derives the modelling columns"""

    @staticmethod
    def binarize_cdr(cdr_value):
        """
        Collapse the Clinical Dementia Rating into a dementia indicator
        Returns 0 for CDR == 0 (no dementia), 1 for any positive rating
        """
        if pd.isna(cdr_value):
            return np.nan
        return 0 if float(cdr_value) == 0 else 1

    @staticmethod
    def standardize(series):
        """z-score using the sample standard deviation (ddof=1)"""
        return (series - series.mean()) / series.std(ddof=1)

    def clean_dataset(self, df):
        """Build the modelling table from the raw OASIS records"""
        print("=== Data Cleaning ===")
        print(f"Records before cleaning: {len(df)}")

        df_clean = df[REQUIRED_COLUMNS].copy()
        df_clean = df_clean.dropna()
        df_clean = df_clean.rename(columns={'M/F': 'sex'})

        df_clean['dementia_numeric'] = df_clean['CDR'].apply(self.binarize_cdr).astype(int)

        # Standardize continuous predictors for comparable effects
        for col in SCALED_COLUMNS:
            df_clean[f'{col}_scaled'] = self.standardize(df_clean[col].astype(float))

        df_clean = df_clean.reset_index(drop=True)

        print(f"Records after cleaning: {len(df_clean)}")
        print(f"Dropped {len(df) - len(df_clean)} records with missing values")
        return df_clean

    @staticmethod
    def scaling_parameters(df):
        """Mean and sample SD of each scaled predictor, for rescaling new data"""
        return {
            col: {'mean': float(df[col].mean()), 'sd': float(df[col].std(ddof=1))}
            for col in SCALED_COLUMNS
        }

    def generate_quality_report(self, df_raw, df_clean):
        """Generate data quality report"""
        report = []
        report.append("=== DATA QUALITY REPORT ===\n")

        # Basic statistics
        report.append(f"Raw records: {len(df_raw)}")
        report.append(f"Complete records: {len(df_clean)}")
        dropped_pct = (1 - len(df_clean) / len(df_raw)) * 100 if len(df_raw) else 0.0
        report.append(f"Dropped: {len(df_raw) - len(df_clean)} ({dropped_pct:.1f}%)")

        # Missing data analysis
        report.append("\n=== MISSING DATA ANALYSIS ===")
        for col in REQUIRED_COLUMNS:
            missing_count = df_raw[col].isnull().sum()
            missing_pct = (missing_count / len(df_raw)) * 100 if len(df_raw) else 0.0
            report.append(f"{col}: {missing_count} missing ({missing_pct:.1f}%)")

        # Outcome distribution
        report.append("\n=== CDR DISTRIBUTION ===")
        for cdr, count in df_clean['CDR'].value_counts().sort_index().items():
            report.append(f"  CDR {cdr}: {count}")

        prevalence = df_clean['dementia_numeric'].mean() * 100 if len(df_clean) else 0.0
        report.append(f"\nDementia (CDR > 0): {int(df_clean['dementia_numeric'].sum())} "
                      f"of {len(df_clean)} ({prevalence:.1f}%)")

        report.append("\nSex distribution:")
        for sex, count in df_clean['sex'].value_counts().items():
            report.append(f"  {sex}: {count}")

        return '\n'.join(report)
