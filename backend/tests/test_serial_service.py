# Overview: Pytest coverage for INV-YYMM-SEQ serial allocation.

import re
from datetime import datetime

import pytest

from orderdesk.errors import PersistenceError, ValidationError
from orderdesk.extensions import db
from orderdesk.models import Order, SerialSequence
from orderdesk.services import order_service, serial_service
from orderdesk.time_utils import utcnow, month_period


SERIAL_RE = re.compile(r"^INV-\d{4}-\d{4,}$")


def _period() -> str:
    return month_period(utcnow())


class TestFormatting:

    def test_format_pads_to_four_digits(self):
        assert serial_service.format_serial("INV", "2610", 7) == "INV-2610-0007"

    def test_format_grows_past_padding(self):
        assert serial_service.format_serial("INV", "2610", 12345) == "INV-2610-12345"

    def test_parse_round_trip(self):
        assert serial_service.parse_serial("INV-2610-0042") == ("INV", "2610", 42)

    @pytest.mark.parametrize("value", ["", "INV-26-0001", "inv-2610-0001", "INV-2610-", "ORDER42"])
    def test_parse_rejects_other_shapes(self, value):
        assert serial_service.parse_serial(value) is None


class TestCounterAllocation:

    def test_first_serial_of_month(self, tenant_a):
        serial = serial_service.next_serial(tenant_a.id)
        db.session.commit()
        assert serial == f"INV-{_period()}-0001"
        assert SERIAL_RE.match(serial)

    def test_consecutive_serials_have_no_gaps(self, tenant_a):
        serials = [serial_service.next_serial(tenant_a.id) for _ in range(5)]
        db.session.commit()
        seqs = [serial_service.parse_serial(s)[2] for s in serials]
        assert seqs == [1, 2, 3, 4, 5]
        assert len(set(serials)) == 5

    def test_counter_row_tracks_last_value(self, tenant_a):
        for _ in range(3):
            serial_service.next_serial(tenant_a.id)
        db.session.commit()
        row = db.session.query(SerialSequence).filter_by(tenant_id=tenant_a.id, period=_period()).one()
        assert row.last_value == 3

    def test_tenants_count_independently(self, tenant_a, tenant_b):
        a1 = serial_service.next_serial(tenant_a.id)
        a2 = serial_service.next_serial(tenant_a.id)
        b1 = serial_service.next_serial(tenant_b.id)
        db.session.commit()
        assert a1.endswith("-0001")
        assert a2.endswith("-0002")
        assert b1.endswith("-0001")

    def test_sequence_resets_each_month(self, tenant_a):
        september = datetime(2026, 9, 30, 23, 59)
        october = datetime(2026, 10, 1, 0, 0)
        assert serial_service.next_serial(tenant_a.id, now=september) == "INV-2609-0001"
        assert serial_service.next_serial(tenant_a.id, now=september) == "INV-2609-0002"
        assert serial_service.next_serial(tenant_a.id, now=october) == "INV-2610-0001"
        db.session.commit()

    def test_prefix_is_configurable(self, app, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "SERIAL_PREFIX", "ORD")
        serial = serial_service.next_serial(tenant_a.id, now=datetime(2026, 10, 5))
        db.session.commit()
        assert serial == "ORD-2610-0001"

    def test_tenant_is_required(self, db_session):
        with pytest.raises(ValueError):
            serial_service.next_serial(None)

    def test_new_counter_is_seeded_above_stored_serials(self, tenant_a):
        period = _period()
        db.session.add(Order(
            tenant_id=tenant_a.id,
            serial=f"INV-{period}-0007",
            client_name="Imported",
            phone="0100",
        ))
        db.session.commit()

        assert serial_service.next_serial(tenant_a.id) == f"INV-{period}-0008"
        db.session.commit()


class TestOrdersUseSerials:

    def test_orders_receive_sequential_serials(self, tenant_a, payload):
        first = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        second = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert first.serial == f"INV-{_period()}-0001"
        assert second.serial == f"INV-{_period()}-0002"

    def test_rejected_payload_does_not_consume_a_serial(self, tenant_a, payload):
        bad = dict(payload, clientName="")
        with pytest.raises(ValidationError):
            order_service.create_order(tenant_a.id, bad, source=order_service.SOURCE_UI)

        order = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert order.serial.endswith("-0001")


class TestScanFallback:

    def _break_counter(self, monkeypatch, store_error):
        def failing(*args, **kwargs):
            raise store_error
        monkeypatch.setattr(serial_service, "allocate_sequence", failing)

    def test_fallback_continues_from_stored_maximum(self, tenant_a, payload, monkeypatch, store_error):
        for _ in range(3):
            order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)

        self._break_counter(monkeypatch, store_error)
        order = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert order.serial == f"INV-{_period()}-0004"

    def test_fallback_on_empty_month(self, tenant_a, monkeypatch, store_error):
        self._break_counter(monkeypatch, store_error)
        assert serial_service.next_serial(tenant_a.id) == f"INV-{_period()}-0001"

    def test_fallback_only_scans_own_tenant(self, tenant_a, tenant_b, payload, monkeypatch, store_error):
        order_service.create_order(tenant_b.id, payload, source=order_service.SOURCE_UI)
        order_service.create_order(tenant_b.id, payload, source=order_service.SOURCE_UI)

        self._break_counter(monkeypatch, store_error)
        assert serial_service.next_serial(tenant_a.id).endswith("-0001")

    def test_counter_resumes_after_fallback(self, tenant_a, payload, monkeypatch, store_error):
        self._break_counter(monkeypatch, store_error)
        order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        monkeypatch.undo()

        order = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert order.serial == f"INV-{_period()}-0003"

    def test_existing_counter_skips_fallback_serials(self, tenant_a, payload, monkeypatch, store_error):
        first = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert first.serial == f"INV-{_period()}-0001"

        self._break_counter(monkeypatch, store_error)
        fallback = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert fallback.serial == f"INV-{_period()}-0002"
        monkeypatch.undo()

        serials = [
            order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI).serial
            for _ in range(3)
        ]

        assert serials == [f"INV-{_period()}-{seq:04d}" for seq in (3, 4, 5)]
        row = db.session.query(SerialSequence).filter_by(tenant_id=tenant_a.id, period=_period()).one()
        assert row.last_value == 5

    def test_counter_jumps_past_several_fallback_serials(self, tenant_a, payload, monkeypatch, store_error):
        order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)

        self._break_counter(monkeypatch, store_error)
        for _ in range(3):
            order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        monkeypatch.undo()

        order = order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        assert order.serial == f"INV-{_period()}-0005"
        assert db.session.query(Order).count() == 5

    def test_fallback_is_logged(self, tenant_a, monkeypatch, store_error, caplog):
        self._break_counter(monkeypatch, store_error)
        with caplog.at_level("WARNING"):
            serial_service.next_serial(tenant_a.id)
        assert "non-authoritative scan fallback" in caplog.text

    def test_disabled_fallback_fails_the_write(self, app, tenant_a, payload, monkeypatch, store_error):
        self._break_counter(monkeypatch, store_error)
        monkeypatch.setitem(app.config, "SERIAL_SCAN_FALLBACK", False)

        with pytest.raises(PersistenceError) as exc_info:
            order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)

        assert exc_info.value.retryable is True
        assert db.session.query(Order).count() == 0
