"""Unit tests for stored timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from bizdirectory.store.timestamps import (
    decode_optional_timestamp,
    decode_timestamp,
    encode_timestamp,
)


class TestEncodeTimestamp:

    def test_fixed_width_utc(self):
        """Whole seconds still carry microseconds."""
        value = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

        assert encode_timestamp(value) == "2024-01-15T12:00:00.000000+00:00"

    def test_converts_offsets_to_utc(self):
        """Non-UTC datetimes are normalized."""
        value = datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert encode_timestamp(value) == "2024-01-15T12:00:00.000000+00:00"

    def test_naive_is_treated_as_utc(self):
        value = datetime(2024, 1, 15, 12, 0, 0)

        assert encode_timestamp(value).endswith("+00:00")

    def test_string_order_matches_time_order(self):
        """Lexicographic order of encoded values is chronological."""
        base = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
        values = [base, base + timedelta(microseconds=1), base + timedelta(seconds=1)]

        encoded = [encode_timestamp(v) for v in values]

        assert encoded == sorted(encoded)


class TestDecodeTimestamp:

    def test_round_trip(self):
        value = datetime(2024, 1, 15, 12, 30, 5, 123456, tzinfo=timezone.utc)

        assert decode_timestamp(encode_timestamp(value)) == value

    def test_accepts_z_suffix(self):
        """PostgREST style 'Z' suffix is understood."""
        decoded = decode_timestamp("2024-01-15T12:00:00Z")

        assert decoded == datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_accepts_trimmed_fraction(self):
        """PostgREST drops trailing zeros from the microseconds."""
        decoded = decode_timestamp("2024-01-15T12:00:00.1234+00:00")

        assert decoded == datetime(2024, 1, 15, 12, 0, 0, 123400, tzinfo=timezone.utc)

    def test_accepts_short_fraction_with_z_suffix(self):
        decoded = decode_timestamp("2024-01-15T12:00:00.5Z")

        assert decoded == datetime(2024, 1, 15, 12, 0, 0, 500000, tzinfo=timezone.utc)

    def test_trimmed_and_fixed_width_agree(self):
        stored = datetime(2024, 1, 15, 12, 0, 0, 120000, tzinfo=timezone.utc)

        assert decode_timestamp("2024-01-15T12:00:00.12+00:00") == decode_timestamp(
            encode_timestamp(stored)
        )

    def test_rejects_malformed_string(self):
        with pytest.raises(ValidationError):
            decode_timestamp("yesterday")

    def test_accepts_datetime(self):
        value = datetime(2024, 1, 15, tzinfo=timezone.utc)

        assert decode_timestamp(value) is value

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            decode_timestamp(1705320000)

    def test_optional_passes_none(self):
        assert decode_optional_timestamp(None) is None
