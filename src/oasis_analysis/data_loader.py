"""
Data loading utilities for the OASIS dementia analysis
"""

import os

import pandas as pd


REQUIRED_COLUMNS = ['Age', 'M/F', 'CDR', 'nWBV', 'MMSE']


class DataLoader:
    """Handles loading and initial exploration of the OASIS CSV"""

    def __init__(self, data_path="data/merged_oasis_data.csv"):
        self.data_path = data_path
        self.df_raw = None

    def _read(self):
        if not os.path.exists(self.data_path):
            raise FileNotFoundError(f"OASIS data file not found: {self.data_path}")
        return pd.read_csv(self.data_path)

    def explore_structure(self):
        """Explore the structure of the CSV file"""
        print("=== CSV File Structure Analysis ===")

        df = self._read()
        print(f"File: {self.data_path}")
        print(f"Raw shape: {df.shape}")
        print(f"Columns: {list(df.columns)}")

        # Display first few rows
        print("First 5 rows:")
        print(df.head())

        structure_info = {
            'shape': df.shape,
            'columns': list(df.columns),
            'missing_required': [col for col in REQUIRED_COLUMNS if col not in df.columns],
            'missing_values': df.isnull().sum().to_dict()
        }

        return structure_info

    def load_data(self):
        """Load the CSV and check the analysis columns are present"""
        print(f"\nLoading {self.data_path}...")

        df = self._read()

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"OASIS data missing required columns: {missing}")

        self.df_raw = df
        print(f"Loaded {len(df)} records with {len(df.columns)} columns")
        return df
