"""
Tests for broadcast payload value objects.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from rates_hub.components.events.types import (
    BroadcastPayload,
    EventType,
    VALID_EVENT_TYPES,
    format_timestamp,
)


class TestFormatTimestamp:
    """Tests for the wire timestamp format."""

    def test_utc_with_z_suffix_and_milliseconds(self):
        at = datetime(2024, 3, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
        assert format_timestamp(at) == "2024-03-01T12:30:45.123Z"

    def test_converts_other_offsets_to_utc(self):
        at = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert format_timestamp(at) == "2024-03-01T12:00:00.000Z"

    def test_naive_datetime_is_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"


class TestBroadcastPayload:
    """Tests for BroadcastPayload."""

    def test_rates_update_factory(self):
        payload = BroadcastPayload.rates_update({"USD": 1.0})
        assert payload.type == "RATES_UPDATE"
        assert payload.data == {"USD": 1.0}
        assert not payload.is_stamped

    def test_event_type_member_is_normalized_to_its_value(self):
        payload = BroadcastPayload(type=EventType.RATES_UPDATE, data={})
        assert payload.type == "RATES_UPDATE"
        assert payload.type in VALID_EVENT_TYPES

    @pytest.mark.parametrize("bad_type", ["", None, 42])
    def test_rejects_missing_type(self, bad_type):
        with pytest.raises(ValueError):
            BroadcastPayload(type=bad_type, data={})

    def test_data_is_copied_on_construction(self):
        rates = {"USD": 1.0, "nested": {"EUR": 0.9}}
        payload = BroadcastPayload.rates_update(rates)

        rates["USD"] = 2.0
        rates["nested"]["EUR"] = 0.1

        assert payload.data == {"USD": 1.0, "nested": {"EUR": 0.9}}

    def test_payload_is_immutable(self):
        payload = BroadcastPayload.rates_update({"USD": 1.0})
        with pytest.raises(AttributeError):
            payload.type = "OTHER"

    def test_stamped_returns_new_payload(self):
        payload = BroadcastPayload.rates_update({"USD": 1.0})
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        stamped = payload.stamped(at)

        assert stamped.timestamp == at
        assert payload.timestamp is None
        assert stamped.data == payload.data

    def test_serializing_unstamped_payload_raises(self):
        payload = BroadcastPayload.rates_update({"USD": 1.0})
        with pytest.raises(ValueError):
            payload.to_json()

    def test_envelope_shape(self):
        at = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)
        payload = BroadcastPayload.rates_update({"USD": 1.0, "EUR": 0.92}).stamped(at)

        envelope = json.loads(payload.to_json())

        assert envelope == {
            "type": "RATES_UPDATE",
            "data": {"USD": 1.0, "EUR": 0.92},
            "timestamp": "2024-01-01T08:00:00.000Z",
        }

    def test_body_is_opaque(self):
        """Any JSON-compatible body is forwarded verbatim."""
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        body = [{"code": "USD", "rate": 1}, None, "text"]

        envelope = BroadcastPayload(type="CUSTOM", data=body).stamped(at).to_dict()

        assert envelope["type"] == "CUSTOM"
        assert envelope["data"] == body
