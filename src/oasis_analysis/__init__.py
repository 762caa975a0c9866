"""
Utility modules for the OASIS dementia analysis
"""

from .data_loader import DataLoader
from .data_cleaner import DataCleaner
from .analyzer import StatisticalAnalyzer, BayesianAnalyzer, ReferenceAnalyzer
from .visualizer import Visualizer

__all__ = [
    'DataLoader',
    'DataCleaner',
    'StatisticalAnalyzer',
    'BayesianAnalyzer',
    'ReferenceAnalyzer',
    'Visualizer'
]
