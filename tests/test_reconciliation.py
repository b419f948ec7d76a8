"""
Tests for the Reconciliation Engine

Tests cover:
- Idempotent keyed upsert
- Per-record failure isolation and partial status
- Batch-level failure writes an error log and re-raises
- Sync log invariants
"""

import json
import pytest
from datetime import date
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from channel_sync.models import ChannelBooking, ChannelSyncLog
from channel_sync.schemas.canonical import CanonicalBooking
from channel_sync.services.reconciliation import ReconciliationEngine, derive_run_status


def make_booking(external_id, **overrides):
    values = dict(
        channel_name="agoda",
        external_booking_id=external_id,
        guest_name="Guest " + str(external_id),
        guest_email="guest@example.com",
        room_type="DLX",
        check_in=date(2026, 11, 1),
        check_out=date(2026, 11, 3),
        total_amount=Decimal("200.00"),
        status="confirmed",
        raw_payload={"id": external_id},
    )
    values.update(overrides)
    return CanonicalBooking(**values)


class TestIdempotentUpsert:
    
    def test_reconcile_twice_keeps_one_row_per_key(self, db):
        engine = ReconciliationEngine(db, "agoda")
        batch = [make_booking("A-1"), make_booking("A-2"), make_booking("A-3")]
        
        engine.reconcile(batch)
        engine.reconcile(batch)
        
        assert db.query(ChannelBooking).count() == 3
        assert db.query(ChannelSyncLog).count() == 2
    
    def test_existing_row_is_overwritten(self, db):
        engine = ReconciliationEngine(db, "agoda")
        engine.reconcile([make_booking("A-1")])
        
        engine.reconcile([make_booking(
            "A-1",
            status="cancelled",
            total_amount=Decimal("0.00"),
            guest_name="Renamed Guest",
            raw_payload={"id": "A-1", "rev": 2}
        )])
        
        row = db.query(ChannelBooking).one()
        assert row.status == "cancelled"
        assert row.guest_name == "Renamed Guest"
        assert row.total_amount == Decimal("0.00")
        assert row.sync_status == "synced"
        assert json.loads(row.raw_data) == {"id": "A-1", "rev": 2}
    
    def test_same_external_id_on_other_channel_is_separate(self, db):
        ReconciliationEngine(db, "agoda").reconcile([make_booking("X-1")])
        ReconciliationEngine(db, "expedia").reconcile([make_booking("X-1", channel_name="expedia")])
        
        assert db.query(ChannelBooking).count() == 2
    
    def test_upsert_booking_reports_creation(self, db):
        engine = ReconciliationEngine(db, "agoda")
        
        _, created = engine.upsert_booking(make_booking("A-9"))
        db.commit()
        _, created_again = engine.upsert_booking(make_booking("A-9"))
        
        assert created is True
        assert created_again is False


class TestFailureIsolation:
    
    def test_malformed_third_record_yields_partial(self, db):
        engine = ReconciliationEngine(db, "agoda")
        batch = [
            make_booking("A-1"),
            make_booking("A-2"),
            make_booking(None),
            make_booking("A-4"),
            make_booking("A-5"),
        ]
        
        log = engine.reconcile(batch, channel_id=None)
        
        assert log.status == "partial"
        assert log.records_processed == 5
        assert log.records_success == 4
        assert log.records_failed == 1
        assert "missing external booking id" in log.error_message
        assert {b.external_booking_id for b in db.query(ChannelBooking).all()} == {"A-1", "A-2", "A-4", "A-5"}
    
    def test_errors_are_concatenated(self, db):
        engine = ReconciliationEngine(db, "agoda")
        
        log = engine.reconcile([
            make_booking("A-1", check_in=None),
            make_booking("A-2", total_amount=None),
            make_booking("A-3"),
        ])
        
        assert log.records_failed == 2
        assert log.error_message == (
            "Failed to sync booking A-1: missing stay dates; "
            "Failed to sync booking A-2: missing total amount"
        )
    
    def test_missing_status_is_rejected_not_stored_blank(self, db):
        engine = ReconciliationEngine(db, "agoda")
        
        log = engine.reconcile([make_booking("A-1", status=None), make_booking("A-2", status="")])
        
        assert (log.status, log.records_failed) == ("partial", 2)
        assert log.error_message == (
            "Failed to sync booking A-1: missing status; "
            "Failed to sync booking A-2: missing status"
        )
        assert db.query(ChannelBooking).count() == 0
    
    def test_clean_batch_is_success(self, db):
        log = ReconciliationEngine(db, "agoda").reconcile([make_booking("A-1")])
        
        assert log.status == "success"
        assert log.error_message is None
        assert log.completed_at is not None
        assert log.duration_seconds >= 0
        assert log.sync_type == "bookings"
    
    def test_empty_batch_is_success(self, db):
        log = ReconciliationEngine(db, "agoda").reconcile([])
        assert (log.status, log.records_processed) == ("success", 0)


class TestBatchFailure:
    
    def test_failing_source_writes_error_log_and_reraises(self, db):
        def broken_feed():
            yield make_booking("A-1")
            raise RuntimeError("feed went away")
        
        with pytest.raises(RuntimeError):
            ReconciliationEngine(db, "agoda").reconcile(broken_feed())
        
        log = db.query(ChannelSyncLog).one()
        assert log.status == "error"
        assert (log.records_processed, log.records_success, log.records_failed) == (0, 0, 0)
        assert log.error_message == "feed went away"
        assert db.query(ChannelBooking).count() == 0


class TestRunStatus:
    
    @pytest.mark.parametrize("processed,failed,expected", [
        (0, 0, "success"),
        (5, 0, "success"),
        (5, 1, "partial"),
        (5, 5, "partial"),
    ])
    def test_derive_run_status(self, processed, failed, expected):
        assert derive_run_status(processed, failed) == expected
