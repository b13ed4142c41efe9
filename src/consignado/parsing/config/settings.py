"""
Extraction thresholds.

Defaults reproduce the production behaviour; each one can be overridden
through a CONSIGNADO_* environment variable.
"""
import os
from dataclasses import dataclass, fields

from consignado.common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtractionSettings:
    max_error_diagnostics: int = 50
    encoding_fallback_threshold: int = 10
    high_ratio: float = 0.7
    medium_ratio: float = 0.4
    optional_column_ratio: float = 0.3
    parcial_ratio: float = 0.5

    @classmethod
    def from_env(cls) -> "ExtractionSettings":
        """
        Build settings from the environment, e.g.
        CONSIGNADO_MAX_ERROR_DIAGNOSTICS=100.
        Invalid values are logged and ignored.
        """
        overrides = {}
        for f in fields(cls):
            env_name = f"CONSIGNADO_{f.name.upper()}"
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                overrides[f.name] = type(f.default)(raw)
            except ValueError:
                logger.warning(f"Ignoring invalid value for {env_name}", value=raw)
        return cls(**overrides)


DEFAULT_SETTINGS = ExtractionSettings()
