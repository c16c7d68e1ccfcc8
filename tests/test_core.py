"""Tests for results, clock, admin role and settings."""

import logging

import pytest

from credtrust import AdminRole, HeightClock, MemoryBackend, Result, Settings, TrustError
from credtrust.config import HeightFilter, setup_logging

from conftest import ADMIN, REGISTRAR, OUTSIDER


# ─── Result ────────────────────────────────────────────────────────

class TestResult:
    def test_success(self):
        r = Result.success(3)
        assert r.ok and bool(r)
        assert r.unwrap() == 3
        assert r.to_dict() == {"value": 3}

    def test_failure_with_codes(self):
        r = Result.failure(TrustError.NOT_FOUND, {TrustError.NOT_FOUND: 3})
        assert not r.ok and not bool(r)
        assert r.code == 3
        assert r.to_dict() == {"error": "not_found", "code": 3}

    def test_failure_without_codes(self):
        assert Result.failure(TrustError.UNAUTHORIZED).code is None

    def test_error_values(self):
        assert TrustError("already_revoked") is TrustError.ALREADY_REVOKED
        assert TrustError.INVALID_INSTITUTION == "invalid_institution"


# ─── HeightClock ───────────────────────────────────────────────────

class TestHeightClock:
    def test_advance(self):
        c = HeightClock(5)
        assert c.advance() == 6
        assert c.advance(4) == 10
        assert c.current() == 10

    def test_never_backwards(self):
        c = HeightClock(10)
        with pytest.raises(ValueError):
            c.set(9)
        with pytest.raises(ValueError):
            c.advance(-1)
        with pytest.raises(ValueError):
            HeightClock(-1)


# ─── AdminRole ─────────────────────────────────────────────────────

class TestAdminRole:
    def test_transfer(self):
        role = AdminRole(ADMIN)
        assert role.transfer(ADMIN, REGISTRAR).ok
        assert role.is_admin(REGISTRAR)
        assert not role.is_admin(ADMIN)

    def test_transfer_denied(self):
        role = AdminRole(ADMIN)
        result = role.transfer(OUTSIDER, OUTSIDER, {TrustError.UNAUTHORIZED: 1})
        assert result.error == TrustError.UNAUTHORIZED
        assert result.code == 1
        assert role.admin == ADMIN

    def test_persisted_admin_wins(self):
        backend = MemoryBackend()
        AdminRole(ADMIN, backend=backend).transfer(ADMIN, REGISTRAR)
        assert AdminRole(ADMIN, backend=backend).admin == REGISTRAR

    def test_reset(self):
        role = AdminRole(ADMIN)
        role.transfer(ADMIN, REGISTRAR)
        role.reset(ADMIN)
        assert role.admin == ADMIN

    def test_empty_admin_rejected(self):
        with pytest.raises(ValueError):
            AdminRole("")

    @pytest.mark.parametrize("bad", ["", None])
    def test_transfer_to_empty_identity(self, bad):
        backend = MemoryBackend()
        role = AdminRole(ADMIN, backend=backend)
        with pytest.raises(ValueError):
            role.transfer(ADMIN, bad)
        assert role.admin == ADMIN
        assert backend.load("config:admin") == {"admin": ADMIN}

    def test_reset_to_empty_identity(self):
        role = AdminRole(ADMIN)
        with pytest.raises(ValueError):
            role.reset("")
        assert role.admin == ADMIN

    def test_blank_stored_admin_ignored(self):
        backend = MemoryBackend()
        backend.save("config:admin", {"admin": ""})
        role = AdminRole(ADMIN, backend=backend)
        assert role.admin == ADMIN
        assert backend.load("config:admin") == {"admin": ADMIN}


# ─── Settings / logging ────────────────────────────────────────────

class TestSettings:
    def test_from_env(self):
        s = Settings.from_env({
            "CREDTRUST_ADMIN": ADMIN,
            "CREDTRUST_DB_PATH": "/tmp/x.db",
            "CREDTRUST_LOG_LEVEL": "DEBUG",
            "CREDTRUST_START_HEIGHT": "77",
        })
        assert s == Settings(admin=ADMIN, db_path="/tmp/x.db", log_level="DEBUG", start_height=77)

    def test_defaults_from_process_env(self):
        s = Settings.from_env()
        assert s.admin == ADMIN
        assert s.db_path == ""
        assert s.start_height == 0

    def test_missing_admin(self):
        with pytest.raises(ValueError):
            Settings.from_env({})

    def test_setup_logging(self):
        logger = setup_logging("warning")
        assert logger.name == "credtrust"
        assert logger.level == logging.WARNING
        assert logger.handlers

    def test_height_filter(self):
        record = logging.LogRecord("credtrust", logging.INFO, __file__, 1, "msg", None, None)
        assert HeightFilter(HeightClock(12)).filter(record)
        assert record.height == 12

    def test_setup_logging_rebinds_clock(self):
        setup_logging("INFO")
        logger = setup_logging("INFO", clock=HeightClock(42))
        filters = [f for h in logger.handlers for f in h.filters if isinstance(f, HeightFilter)]
        assert filters
        record = logging.LogRecord("credtrust", logging.INFO, __file__, 1, "msg", None, None)
        for f in filters:
            f.filter(record)
            assert record.height == 42
