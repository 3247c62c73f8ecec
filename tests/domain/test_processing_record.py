"""Unit tests for the ProcessingRecord aggregate."""

import pytest

from bundlesync.domain.exceptions import ValidationError
from bundlesync.domain.model.adjustment import AdjustmentFailure
from bundlesync.domain.model.ledger import LedgerKey, ProcessingRecord, ProcessingStatus

KEY = LedgerKey("E1", "L1", "X")


class TestProcessingRecordTransitions:

    def test_new_record_is_pending(self):
        record = ProcessingRecord(key=KEY)
        assert record.status == ProcessingStatus.PENDING
        assert record.attempts == 1

    def test_mark_applied(self):
        record = ProcessingRecord(key=KEY)
        record.mark_applied(-2)
        assert record.status == ProcessingStatus.APPLIED
        assert record.applied_delta == -2

    def test_mark_failed(self):
        record = ProcessingRecord(key=KEY)
        record.mark_failed(AdjustmentFailure.THROTTLED)
        assert record.status == ProcessingStatus.FAILED
        assert record.failure == AdjustmentFailure.THROTTLED
        assert record.applied_delta == 0

    def test_cannot_finish_twice(self):
        record = ProcessingRecord(key=KEY)
        record.mark_applied(-1)
        with pytest.raises(ValidationError, match="already APPLIED"):
            record.mark_failed(AdjustmentFailure.PERMANENT)


class TestProcessingRecordReadmit:

    @pytest.mark.parametrize(
        "failure",
        [
            AdjustmentFailure.PERMANENT,
            AdjustmentFailure.THROTTLED,
            AdjustmentFailure.UNAVAILABLE,
            AdjustmentFailure.KEY_NOT_FOUND,
        ],
    )
    def test_unapplied_failures_can_be_retried(self, failure):
        record = ProcessingRecord(key=KEY)
        record.mark_failed(failure)
        record.readmit()
        assert record.status == ProcessingStatus.PENDING
        assert record.failure is None
        assert record.attempts == 2

    def test_ambiguous_failure_cannot_be_retried(self):
        record = ProcessingRecord(key=KEY)
        record.mark_failed(AdjustmentFailure.AMBIGUOUS)
        assert not record.can_readmit
        with pytest.raises(ValidationError, match="cannot be retried"):
            record.readmit()

    def test_applied_record_cannot_be_retried(self):
        record = ProcessingRecord(key=KEY)
        record.mark_applied(-1)
        with pytest.raises(ValidationError):
            record.readmit()
