"""
Parsing Module for consignado reconciliation

Turns the two sides of a payroll-deduction reconciliation into normalized rows:
- Bank fixed-width TXT files
- Municipality reports (CSV, spreadsheets, TXT, PDF)
- Shared pt-BR value helpers
"""

# Base classes
from .base import BaseExtractor

# Configuration
from .config.layout import DEFAULT_BANK_LAYOUT, FieldDef, FixedWidthLayout
from .config.settings import DEFAULT_SETTINGS, ExtractionSettings

# Errors
from .exceptions import ExtractionError, UnsupportedFormatError

# Values
from .money import canonical_matricula, parse_brl

# Banks
from .banks import BankTxtParser, parse_bank_line

# Municipality
from .prefeitura import PrefeituraExtractor, detect_sheet_columns, extract_from_csv_report, parse_text_report

# Facade
from .facade import ExtractionFacade

__all__ = [
    # Base
    'BaseExtractor',
    # Config
    'DEFAULT_BANK_LAYOUT',
    'FieldDef',
    'FixedWidthLayout',
    'DEFAULT_SETTINGS',
    'ExtractionSettings',
    # Errors
    'ExtractionError',
    'UnsupportedFormatError',
    # Values
    'canonical_matricula',
    'parse_brl',
    # Banks
    'BankTxtParser',
    'parse_bank_line',
    # Municipality
    'PrefeituraExtractor',
    'detect_sheet_columns',
    'extract_from_csv_report',
    'parse_text_report',
    # Facade
    'ExtractionFacade',
]
