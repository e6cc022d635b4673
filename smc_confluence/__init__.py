"""
Smart Money Concepts confluence engine
"""

from .config import AppConfig, EngineConfig, load_config, save_config
from .data_loader import (
    BarSeries, BarValidationError, bars_to_dataframe, generate_mock_bars, load_csv, validate_bars
)
from .models import (
    AnalysisResult, Bar, ConfluenceDetails, NoTrade, StructureEvent, Trade, Zone
)
from .signal_generator import analyze_price_data

__all__ = [
    'AppConfig', 'EngineConfig', 'load_config', 'save_config',
    'BarSeries', 'BarValidationError', 'bars_to_dataframe', 'generate_mock_bars',
    'load_csv', 'validate_bars',
    'AnalysisResult', 'Bar', 'ConfluenceDetails', 'NoTrade', 'StructureEvent', 'Trade', 'Zone',
    'analyze_price_data'
]
