"""
Unit tests for DiagnosticsLedger.
"""
import logging

import pytest

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.models import DiagnosticsItem, Severity


@pytest.fixture
def ledger():
    return DiagnosticsLedger(origin='banco')


class TestDiagnosticsLedger:

    def test_append_order(self, ledger):
        ledger.info('A', "first")
        ledger.warn('B', "second")
        ledger.error('C', "third")
        assert [d.code for d in ledger.items] == ['A', 'B', 'C']
        assert [d.severity for d in ledger.items] == [Severity.INFO, Severity.WARN, Severity.ERROR]

    def test_details(self, ledger):
        item = ledger.info('A', "msg", lineNo=3)
        assert item.details == {'lineNo': 3}
        assert ledger.warn('B', "msg").details is None

    def test_items_is_a_snapshot(self, ledger):
        ledger.info('A', "msg")
        snapshot = ledger.items
        ledger.info('B', "msg")
        assert len(snapshot) == 1
        assert len(ledger) == 2

    def test_has_code(self, ledger):
        ledger.warn('TEXT_COLUMN_MISMATCH', "msg")
        assert ledger.has_code('TEXT_COLUMN_MISMATCH')
        assert not ledger.has_code('TEXT_ZERO_ROWS')

    def test_error_cap(self):
        ledger = DiagnosticsLedger(error_cap=2)
        for i in range(5):
            ledger.error('E', f"error {i}")
        ledger.info('I', "still recorded")

        assert len(ledger) == 3
        assert ledger.error_count == 5
        assert ledger.omitted_errors == 3
        assert ledger.items[-1].code == 'I'

    def test_cap_does_not_apply_to_warnings(self):
        ledger = DiagnosticsLedger(error_cap=0)
        ledger.warn('W', "warn")
        ledger.error('E', "error")
        assert [d.code for d in ledger.items] == ['W']

    def test_add_existing_item(self, ledger):
        ledger.add(DiagnosticsItem(severity=Severity.ERROR, code='X', message="m"))
        assert ledger.error_count == 1

    def test_items_are_logged(self, ledger, caplog):
        with caplog.at_level(logging.INFO, logger='consignado.common.diagnostics'):
            ledger.warn('BANK_UNKNOWN_LINE_TYPE', "tipo desconhecido")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.extra_fields == {'origin': 'banco', 'code': 'BANK_UNKNOWN_LINE_TYPE'}
