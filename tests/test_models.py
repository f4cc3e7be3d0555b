"""Tests for data models."""

from pipe_client.models import ReadOutcome, ReadStatus, TransferResult, TransferState


class TestReadOutcome:
    """Tests for ReadOutcome constructors."""

    def test_would_block(self):
        outcome = ReadOutcome.would_block()
        assert outcome.status == ReadStatus.WOULD_BLOCK
        assert outcome.data == b""

    def test_end_of_input(self):
        assert ReadOutcome.end_of_input().status == ReadStatus.END_OF_INPUT

    def test_error(self):
        assert ReadOutcome.error().status == ReadStatus.ERROR

    def test_data(self):
        outcome = ReadOutcome(ReadStatus.DATA, b"abc")
        assert outcome.data == b"abc"


class TestTransferState:
    """Tests for TransferState defaults."""

    def test_starts_empty(self):
        state = TransferState()

        assert state.awaiting_input is False
        assert state.transfer is None
        assert state.body_complete is False
        assert state.pauses == 0
        assert state.resumes == 0


class TestTransferResult:
    """Tests for TransferResult serialization."""

    def test_to_dict_success(self):
        result = TransferResult(
            url="https://pipeto.me/x",
            ok=True,
            status_code=200,
            bytes_sent=10,
            bytes_received=3,
            pauses=2,
            resumes=2,
            duration_seconds=1.5,
            timestamp="2026-01-01T00:00:00Z",
        )

        assert result.to_dict() == {
            "timestamp": "2026-01-01T00:00:00Z",
            "url": "https://pipeto.me/x",
            "status": "ok",
            "status_code": 200,
            "error_message": None,
            "bytes_sent": 10,
            "bytes_received": 3,
            "pauses": 2,
            "resumes": 2,
            "duration_seconds": 1.5,
        }

    def test_to_dict_failure(self):
        result = TransferResult(url="u", ok=False, error_message="connection refused")
        data = result.to_dict()

        assert data["status"] == "failed"
        assert data["error_message"] == "connection refused"
        assert data["status_code"] is None

    def test_timestamp_format(self):
        result = TransferResult(url="u", ok=True)
        assert result.timestamp.endswith("Z")
        assert "T" in result.timestamp
