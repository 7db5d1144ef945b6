"""Unit tests for structured event logging"""

from __future__ import annotations

import logging

from field_explorer.logging import format_event, is_sensitive_field, log_event


def test_format_event_keeps_field_order():
    assert format_event("gateway.cache_hit", {"client": "1.2.3.4", "status": 200}) == (
        "event=gateway.cache_hit client='1.2.3.4' status=200"
    )


def test_credential_fields_are_masked():
    text = format_event("upstream.call", {"api_key": "abc123", "Authorization": "Bearer xyz", "host": "h"})

    assert "abc123" not in text
    assert "xyz" not in text
    assert "api_key='HIDDEN_KEY'" in text
    assert "host='h'" in text


def test_empty_credential_fields_are_left_alone():
    assert format_event("e", {"token": None}) == "event=e token=None"


def test_is_sensitive_field():
    assert is_sensitive_field("X-Api-Token")
    assert is_sensitive_field("client_secret")
    assert not is_sensitive_field("host")
    assert not is_sensitive_field("reset_in")


def test_log_event_writes_to_event_logger(caplog):
    caplog.set_level(logging.INFO, logger="field_explorer.events")

    log_event("upstream.timeout", host="api.example.com", password="hunter2")

    [record] = [r for r in caplog.records if r.name == "field_explorer.events"]
    assert record.getMessage() == "event=upstream.timeout host='api.example.com' password='HIDDEN_KEY'"
