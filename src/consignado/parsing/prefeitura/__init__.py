from .column_classifier import ColumnDetection, detect_sheet_columns, score_columns, select_columns
from .csv_report import extract_from_csv_report
from .extractor import PrefeituraExtractor
from .sheet_extractor import SheetExtractor, extract_from_grid
from .text_report import parse_column_separated_format, parse_standard_format, parse_text_report

__all__ = [
    'ColumnDetection',
    'detect_sheet_columns',
    'score_columns',
    'select_columns',
    'extract_from_csv_report',
    'PrefeituraExtractor',
    'SheetExtractor',
    'extract_from_grid',
    'parse_column_separated_format',
    'parse_standard_format',
    'parse_text_report',
]
