"""
Diagnostics Ledger

Append-only trail of what an extraction run could and could not trust.
Every item is mirrored to the structured logger at the matching level.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from consignado.common.logging_config import get_logger
from consignado.common.models import DiagnosticsItem, Severity

logger = get_logger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class DiagnosticsLedger:
    """
    Collects DiagnosticsItem entries for a single extraction call.

    Args:
        origin: Short label added to log records (e.g. "banco").
        error_cap: If set, only the first `error_cap` error items are kept;
            the rest are counted in `omitted_errors`.
    """

    def __init__(self, origin: str = '', error_cap: Optional[int] = None):
        self.origin = origin
        self._logger = logger.bind(origin=origin)
        self.error_cap = error_cap
        self._items: List[DiagnosticsItem] = []
        self.error_count = 0
        self.omitted_errors = 0

    def add(self, item: DiagnosticsItem) -> None:
        if item.severity is Severity.ERROR:
            self.error_count += 1
            if self.error_cap is not None and self.error_count > self.error_cap:
                self.omitted_errors += 1
                return

        self._items.append(item)
        self._logger.log(_LOG_LEVELS[item.severity], item.message, code=item.code)

    def info(self, code: str, message: str, **details: Any) -> DiagnosticsItem:
        return self._emit(Severity.INFO, code, message, details)

    def warn(self, code: str, message: str, **details: Any) -> DiagnosticsItem:
        return self._emit(Severity.WARN, code, message, details)

    def error(self, code: str, message: str, **details: Any) -> DiagnosticsItem:
        return self._emit(Severity.ERROR, code, message, details)

    def _emit(self, severity: Severity, code: str, message: str, details: Dict[str, Any]) -> DiagnosticsItem:
        item = DiagnosticsItem(severity=severity, code=code, message=message, details=details or None)
        self.add(item)
        return item

    @property
    def items(self) -> Tuple[DiagnosticsItem, ...]:
        return tuple(self._items)

    def to_list(self) -> List[DiagnosticsItem]:
        return list(self._items)

    def has_code(self, code: str) -> bool:
        return any(d.code == code for d in self._items)

    def __len__(self) -> int:
        return len(self._items)
