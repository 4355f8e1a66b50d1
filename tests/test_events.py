"""Tests for domain events, the emitter and notification dispatch."""

import json
from decimal import Decimal

import pytest

from payroll_core.collaborators import NotificationBridge, RecordingNotifier, event_kind
from payroll_core.events import (
    EventCategory,
    EventEmitter,
    EventMetadata,
    PayrollRunLocked,
    PayslipPublished,
)
from payroll_core.models import PayslipStatus


def published(payslip_id: str = "PS-0001") -> PayslipPublished:
    return PayslipPublished(
        metadata=EventMetadata.create("HR-1"),
        payslip_id=payslip_id,
        payslip_employee_id="EMP-001",
        net_pay=Decimal("11000"),
    )


def locked() -> PayrollRunLocked:
    return PayrollRunLocked(
        metadata=EventMetadata.create("HR-1"),
        run_id="RUN-2025-03-31",
        locked_by="HR-1",
        snapshot_fingerprint="abc",
    )


class TestDomainEvents:
    def test_routing_properties(self):
        event = published()

        assert event.event_type == "PayslipPublished"
        assert event.category == EventCategory.PAYSLIP
        assert event.employee_id == "EMP-001"
        assert locked().employee_id is None

    def test_serialization(self):
        data = json.loads(published().to_json())

        assert data["payslip_id"] == "PS-0001"
        assert data["net_pay"] == "11000"
        assert data["metadata"]["actor_id"] == "HR-1"

    def test_event_kind(self):
        assert event_kind(published()) == "payslip_published"
        assert event_kind(locked()) == "payroll_run_locked"


class TestEventEmitter:
    """Test handler registration and dispatch."""

    def test_type_filter(self):
        emitter = EventEmitter()
        seen = []
        emitter.on(PayslipPublished, seen.append)

        emitter.emit(published())
        emitter.emit(locked())

        assert [e.event_type for e in seen] == ["PayslipPublished"]

    def test_failing_handler_is_isolated(self):
        emitter = EventEmitter()
        seen = []

        def broken(event):
            raise RuntimeError("handler down")

        emitter.on_all(broken)
        emitter.on_all(seen.append)

        errors = emitter.emit(published())

        assert len(errors) == 1
        assert len(seen) == 1

    def test_batch_emits_on_clean_exit(self):
        emitter = EventEmitter()
        seen = []
        emitter.on_all(seen.append)

        with emitter.batch() as batch:
            batch.add(published("PS-0001"))
            batch.add(published("PS-0002"))
            assert seen == []

        assert [e.payslip_id for e in seen] == ["PS-0001", "PS-0002"]

    def test_batch_discarded_on_error(self):
        emitter = EventEmitter()
        seen = []
        emitter.on_all(seen.append)

        with pytest.raises(ValueError):
            with emitter.batch() as batch:
                batch.add(published())
                raise ValueError("abort")

        assert seen == []
        emitter.emit(published())
        assert len(seen) == 1

    def test_nested_batch_defers_to_outer(self):
        emitter = EventEmitter()
        seen = []
        emitter.on_all(seen.append)

        with emitter.batch():
            with emitter.batch() as inner:
                inner.add(published("PS-0001"))
            assert seen == []
            emitter.emit(published("PS-0002"))

        assert [e.payslip_id for e in seen] == ["PS-0001", "PS-0002"]


class TestNotificationBridge:
    """Test forwarding of employee-facing events."""

    def test_forwards_employee_events_only(self):
        emitter = EventEmitter()
        notifier = RecordingNotifier()
        NotificationBridge(emitter, notifier)

        emitter.emit(published())
        emitter.emit(locked())

        assert notifier.kinds() == ["payslip_published"]
        kind, payload, employee_id = notifier.dispatched[0]
        assert employee_id == "EMP-001"
        assert payload["payslip_id"] == "PS-0001"
        assert "metadata" not in payload

    def test_notifier_failure_does_not_fail_transition(self, payroll, issued_pair):
        class DownNotifier:
            def dispatch(self, event_kind, payload, employee_id):
                raise ConnectionError("notification service unavailable")

        NotificationBridge(payroll.emitter, DownNotifier())
        ana, _ = issued_pair
        payroll.payslips.confirm(ana.id)

        payroll.payslips.publish(ana.id)

        assert ana.status == PayslipStatus.PUBLISHED
