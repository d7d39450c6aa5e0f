"""Tests for device fingerprint resolution."""

import hashlib

import pytest

from couponpool.services.fingerprint_service import (
    FingerprintMode,
    FingerprintResult,
    FingerprintService,
)


class TestGenerate:
    def test_generated_values_are_unique(self):
        values = {FingerprintService.generate("Mozilla/5.0") for _ in range(200)}
        assert len(values) == 200

    def test_includes_user_agent_digest(self):
        ua = "Mozilla/5.0 (X11; Linux x86_64)"
        fingerprint = FingerprintService.generate(ua)
        assert fingerprint.endswith(hashlib.sha256(ua.encode()).hexdigest()[:12])
        assert len(fingerprint.split("-")) == 3

    def test_without_user_agent(self):
        fingerprint = FingerprintService.generate(None)
        timestamp, token = fingerprint.split("-")
        assert timestamp.isdigit()
        assert len(token) == 16

    def test_generated_value_is_cookie_safe(self):
        service = FingerprintService(FingerprintMode.PERSISTED)
        fingerprint = FingerprintService.generate("curl/8.0")
        assert service.resolve(fingerprint).fingerprint == fingerprint


class TestResolvePersisted:
    def test_missing_cookie_mints_new_fingerprint(self):
        result = FingerprintService("persisted").resolve(None, "ua")
        assert isinstance(result, FingerprintResult)
        assert result.is_new is True
        assert result.fingerprint

    def test_existing_cookie_is_reused(self):
        result = FingerprintService("persisted").resolve("device-abc-123", "ua")
        assert result == FingerprintResult(fingerprint="device-abc-123", is_new=False)

    @pytest.mark.parametrize(
        "cookie",
        ["", "has space", "semi;colon", "x" * 129, "<script>"],
    )
    def test_malformed_cookie_is_replaced(self, cookie):
        result = FingerprintService("persisted").resolve(cookie, "ua")
        assert result.is_new is True
        assert result.fingerprint != cookie


class TestResolveFresh:
    def test_cookie_is_ignored(self):
        result = FingerprintService(FingerprintMode.FRESH).resolve("device-abc-123", "ua")
        assert result.is_new is True
        assert result.fingerprint != "device-abc-123"

    def test_every_request_is_a_new_device(self):
        service = FingerprintService(FingerprintMode.FRESH)
        assert service.resolve(None).fingerprint != service.resolve(None).fingerprint


def test_defaults_to_configured_mode():
    assert FingerprintService().mode == FingerprintMode.PERSISTED


def test_rejects_unknown_mode():
    with pytest.raises(ValueError):
        FingerprintService("sometimes")
