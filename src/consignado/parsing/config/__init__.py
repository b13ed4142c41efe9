from .layout import FieldDef, FixedWidthLayout, DEFAULT_BANK_LAYOUT
from .settings import ExtractionSettings, DEFAULT_SETTINGS

__all__ = ['FieldDef', 'FixedWidthLayout', 'DEFAULT_BANK_LAYOUT', 'ExtractionSettings', 'DEFAULT_SETTINGS']
