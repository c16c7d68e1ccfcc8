"""Tests for credtrust.credentials — issuance, revocation and derived validity."""

import logging
import threading

import pytest

from credtrust import CredentialLedger, HeightClock, TrustError

from conftest import ADMIN, REGISTRAR, STUDENT, OUTSIDER


def issue(network, expiration_date=None, caller=REGISTRAR, institution_id=1):
    return network.credentials.issue_credential(
        caller,
        institution_id,
        STUDENT,
        "Degree",
        "Bachelor of Science in Computer Science",
        expiration_date,
        "Additional metadata about the degree",
    )


class StubInstitutions:
    """Verification oracle with fixed answers."""

    def __init__(self, verified=(), admins=()):
        self.verified = set(verified)
        self.admins = set(admins)

    def is_institution_verified(self, id):
        return id in self.verified

    def is_institution_admin(self, id, address):
        return (id, address) in self.admins


# ─── Issuance ──────────────────────────────────────────────────────

class TestIssueCredential:
    def test_issue(self, harvard):
        result = issue(harvard)
        assert result.ok
        assert result.value == 1
        cred = harvard.credentials.get_credential(1)
        assert cred.credential_name == "Bachelor of Science in Computer Science"
        assert cred.student_id == STUDENT
        assert cred.institution_id == 1
        assert cred.expiration_date is None
        assert cred.revoked is False

    def test_issue_date_is_current_height(self, harvard):
        harvard.clock.set(123)
        issue(harvard)
        assert harvard.credentials.get_credential(1).issue_date == 123

    def test_ids_are_sequential(self, harvard):
        ids = [issue(harvard).value for _ in range(5)]
        assert ids == [1, 2, 3, 4, 5]
        assert harvard.credentials.credential_count == 5

    def test_counter_is_global_across_institutions(self, harvard):
        inst = harvard.institutions
        inst.register_institution(ADMIN, 2, "MIT", "USA", "https://mit.edu")
        inst.verify_institution(ADMIN, 2)
        inst.add_institution_admin(ADMIN, 2, REGISTRAR)
        assert issue(harvard).value == 1
        assert issue(harvard, institution_id=2).value == 2
        assert issue(harvard).value == 3

    def test_unverified_institution(self, harvard):
        harvard.institutions.register_institution(ADMIN, 2, "Unverified U", "USA", "https://u.example")
        harvard.institutions.add_institution_admin(ADMIN, 2, REGISTRAR)
        result = issue(harvard, institution_id=2)
        assert result.error == TrustError.INVALID_INSTITUTION
        assert result.code == 2
        assert harvard.credentials.credential_count == 0
        assert len(harvard.credentials) == 0

    def test_unknown_institution(self, network):
        result = issue(network, institution_id=2)
        assert result.error == TrustError.INVALID_INSTITUTION

    def test_verification_checked_before_authorization(self, network):
        network.institutions.register_institution(ADMIN, 3, "Other", "UK", "https://o.example")
        result = issue(network, caller=OUTSIDER, institution_id=3)
        assert result.error == TrustError.INVALID_INSTITUTION

    def test_caller_without_grant(self, harvard):
        result = issue(harvard, caller=OUTSIDER)
        assert result.error == TrustError.UNAUTHORIZED
        assert result.code == 1
        assert harvard.credentials.credential_count == 0

    def test_global_admin_needs_grant_too(self, harvard):
        result = issue(harvard, caller=ADMIN)
        assert result.error == TrustError.UNAUTHORIZED

    def test_revoked_grant_cannot_issue(self, harvard):
        harvard.institutions.revoke_institution_admin(ADMIN, 1, REGISTRAR)
        assert issue(harvard).error == TrustError.UNAUTHORIZED

    def test_rejections_do_not_consume_ids(self, harvard):
        issue(harvard)
        issue(harvard, caller=OUTSIDER)
        issue(harvard, institution_id=9)
        assert issue(harvard).value == 2


# ─── Revocation ────────────────────────────────────────────────────

class TestRevokeCredential:
    def test_revoke(self, harvard):
        issue(harvard)
        result = harvard.credentials.revoke_credential(REGISTRAR, 1)
        assert result.ok
        assert result.value is True
        assert harvard.credentials.get_credential(1).revoked is True

    def test_revoke_unknown(self, harvard):
        result = harvard.credentials.revoke_credential(REGISTRAR, 999)
        assert result.error == TrustError.NOT_FOUND
        assert result.code == 3

    def test_revoke_twice(self, harvard):
        issue(harvard)
        harvard.credentials.revoke_credential(REGISTRAR, 1)
        result = harvard.credentials.revoke_credential(REGISTRAR, 1)
        assert result.error == TrustError.ALREADY_REVOKED
        assert result.code == 4
        assert harvard.credentials.get_credential(1).revoked is True

    def test_outsider_on_revoked_credential_is_unauthorized(self, harvard):
        issue(harvard)
        harvard.credentials.revoke_credential(REGISTRAR, 1)
        result = harvard.credentials.revoke_credential(OUTSIDER, 1)
        assert result.error == TrustError.UNAUTHORIZED
        assert result.code == 1

    def test_rejection_logged_by_ledger_module(self, harvard, caplog):
        issue(harvard)
        with caplog.at_level(logging.WARNING, logger="credtrust"):
            harvard.credentials.revoke_credential(OUTSIDER, 1)
        assert [r.name for r in caplog.records] == ["credtrust.credentials"]
        assert "revoke_credential" in caplog.records[0].getMessage()

    def test_revoke_by_outsider(self, harvard):
        issue(harvard)
        result = harvard.credentials.revoke_credential(OUTSIDER, 1)
        assert result.error == TrustError.UNAUTHORIZED
        assert harvard.credentials.get_credential(1).revoked is False

    def test_admin_of_other_institution_cannot_revoke(self, harvard):
        other = "ST9OTHERREGISTRAR"
        harvard.institutions.register_institution(ADMIN, 2, "MIT", "USA", "https://mit.edu")
        harvard.institutions.add_institution_admin(ADMIN, 2, other)
        issue(harvard)
        assert harvard.credentials.revoke_credential(other, 1).error == TrustError.UNAUTHORIZED

    def test_second_admin_of_same_institution_can_revoke(self, harvard):
        dean = "ST8DEAN"
        harvard.institutions.add_institution_admin(ADMIN, 1, dean)
        issue(harvard)
        assert harvard.credentials.revoke_credential(dean, 1).ok

    def test_revoke_does_not_touch_counter(self, harvard):
        issue(harvard)
        harvard.credentials.revoke_credential(REGISTRAR, 1)
        assert issue(harvard).value == 2


# ─── Validity ──────────────────────────────────────────────────────

class TestCredentialValidity:
    def test_never_issued(self, harvard):
        assert harvard.credentials.is_credential_valid(1) is False

    def test_valid_without_expiration(self, harvard):
        issue(harvard)
        harvard.clock.advance(1_000_000)
        assert harvard.credentials.is_credential_valid(1) is True

    def test_invalid_after_revocation(self, harvard):
        issue(harvard, expiration_date=200)
        assert harvard.credentials.is_credential_valid(1) is True
        harvard.credentials.revoke_credential(REGISTRAR, 1)
        assert harvard.credentials.is_credential_valid(1) is False

    @pytest.mark.parametrize("height,valid", [(199, True), (200, True), (201, False)])
    def test_expiration_boundary(self, harvard, height, valid):
        issue(harvard, expiration_date=200)
        harvard.clock.set(height)
        assert harvard.credentials.is_credential_valid(1) is valid

    def test_recomputed_as_height_moves(self, harvard):
        issue(harvard, expiration_date=5)
        assert harvard.credentials.is_credential_valid(1)
        harvard.clock.set(6)
        assert not harvard.credentials.is_credential_valid(1)

    def test_consults_institution_verification(self):
        oracle = StubInstitutions(verified={1}, admins={(1, REGISTRAR)})
        ledger = CredentialLedger(oracle, admin=ADMIN, clock=HeightClock())
        ledger.issue_credential(REGISTRAR, 1, STUDENT, "Degree", "BSc", None, "")
        assert ledger.is_credential_valid(1)
        oracle.verified.clear()
        assert not ledger.is_credential_valid(1)


# ─── Queries and ownership ─────────────────────────────────────────

class TestCredentialQueries:
    def test_get_unknown(self, harvard):
        assert harvard.credentials.get_credential(7) is None
        assert not harvard.credentials.credential_exists(7)

    def test_get_returns_copy(self, harvard):
        issue(harvard)
        cred = harvard.credentials.get_credential(1)
        cred.revoked = True
        assert harvard.credentials.is_credential_valid(1)

    def test_listings(self, harvard):
        issue(harvard)
        harvard.credentials.issue_credential(REGISTRAR, 1, "ST1OTHERSTUDENT", "Certificate", "ML", None, "")
        assert [c.credential_id for c in harvard.credentials.credentials_for_student(STUDENT)] == [1]
        assert [c.credential_id for c in harvard.credentials.credentials_for_institution(1)] == [1, 2]
        assert harvard.credentials.credentials_for_institution(2) == []

    def test_requires_oracle(self):
        with pytest.raises(ValueError):
            CredentialLedger(None, admin=ADMIN)


# ─── Concurrency ───────────────────────────────────────────────────

class TestConcurrentIssuance:
    def test_unique_gap_free_ids(self, harvard):
        ids = []
        lock = threading.Lock()

        def worker():
            for _ in range(25):
                value = issue(harvard).value
                with lock:
                    ids.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(ids) == list(range(1, 201))
        assert harvard.credentials.credential_count == 200

    def test_issue_dates_follow_ids(self, harvard):
        stop = threading.Event()

        def ticker():
            while not stop.is_set():
                harvard.clock.advance()

        def worker():
            for _ in range(50):
                issue(harvard)

        clock_thread = threading.Thread(target=ticker)
        clock_thread.start()
        workers = [threading.Thread(target=worker) for _ in range(4)]
        for t in workers:
            t.start()
        for t in workers:
            t.join()
        stop.set()
        clock_thread.join()

        dates = [c.issue_date for c in harvard.credentials.credentials_for_institution(1)]
        assert len(dates) == 200
        assert dates == sorted(dates)


# ─── Admin ─────────────────────────────────────────────────────────

class TestLedgerAdmin:
    def test_transfer_through_ledger(self, harvard):
        assert harvard.credentials.transfer_admin(ADMIN, REGISTRAR).ok
        assert harvard.admin == REGISTRAR
        assert harvard.fraud.is_admin(REGISTRAR)
        assert harvard.credentials.transfer_admin(ADMIN, OUTSIDER).error == TrustError.UNAUTHORIZED
        assert harvard.admin == REGISTRAR

    def test_transfer_to_empty_identity(self, harvard):
        with pytest.raises(ValueError):
            harvard.credentials.transfer_admin(ADMIN, "")
        assert harvard.admin == ADMIN
