"""
Tests for document verification transitions and expiry checks.

Pure functions only; no database.
"""

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from thiqax.errors import ValidationAPIError
from thiqax.workflow.documents import (
    can_transition,
    days_until_expiry,
    expiry_note,
    expiry_notices,
    is_expired,
    is_expiring,
    parse_verification_status,
    transition_document,
)
from thiqax.workflow.types import Actor, DocumentSnapshot, NotificationType, VerificationStatus

NOW = datetime(2025, 6, 1, 12, 0, 0)
VERIFIER = Actor(id="admin-1", role="admin")


def make_document(**kwargs) -> DocumentSnapshot:
    defaults = {"id": "doc-1", "owner_id": "user-1", "document_type": "passport", "name": "Passport"}
    defaults.update(kwargs)
    return DocumentSnapshot(**defaults)


class TestTransitionDocument:
    """Test moving a document through its verification lifecycle."""

    def test_verify_sets_verifier_and_timestamp(self):
        """Verifying records who verified it and when."""
        result = transition_document(make_document(), "verified", VERIFIER, "", NOW)

        assert result.document.verification_status == "verified"
        assert result.document.verified_by == "admin-1"
        assert result.document.verified_at == NOW
        assert result.previous_status == "pending"
        assert result.history.status == "verified"
        assert result.history.actor_id == "admin-1"
        assert result.history.timestamp == NOW

    def test_input_snapshot_is_not_mutated(self):
        """The input snapshot is left untouched."""
        document = make_document()
        transition_document(document, "verified", VERIFIER, None, NOW)
        assert document.verification_status == "pending"
        assert document.verified_at is None

    def test_under_review_clears_verifier(self):
        """Only verified and rejected record a verifier."""
        result = transition_document(make_document(), "under-review", VERIFIER, None, NOW)
        assert result.document.verified_by is None
        assert result.document.verified_at is None

    @pytest.mark.parametrize("notes", ["", "   ", None])
    def test_reject_requires_notes(self, notes):
        """Rejecting without notes or a reason is a validation error."""
        with pytest.raises(ValidationAPIError) as exc_info:
            transition_document(make_document(), "rejected", VERIFIER, notes, NOW)
        assert exc_info.value.status_code == 400

    def test_reject_with_reason_only(self):
        """A rejection reason stands in for missing notes."""
        result = transition_document(
            make_document(), "rejected", VERIFIER, None, NOW, rejection_reason="Blurry scan"
        )
        assert result.document.verification_status == "rejected"
        assert result.document.verification_notes == "Blurry scan"
        assert result.document.rejection_reason == "Blurry scan"
        assert result.document.verified_by == "admin-1"
        assert result.document.verified_at is None

    def test_reject_notification_includes_reason(self):
        """The owner is told why the document was rejected."""
        result = transition_document(make_document(), "rejected", VERIFIER, "Photo page cut off", NOW)
        (notice,) = result.notifications
        assert notice.recipient_id == "user-1"
        assert notice.type == NotificationType.DOCUMENT_VERIFICATION.value
        assert "Photo page cut off" in notice.message

    def test_invalid_status(self):
        """Unknown statuses are rejected."""
        with pytest.raises(ValidationAPIError, match="Invalid verification status"):
            transition_document(make_document(), "approved", VERIFIER, None, NOW)

    def test_backward_move_rejected(self):
        """A verified document cannot go back to pending."""
        document = make_document(verification_status="verified")
        with pytest.raises(ValidationAPIError, match="Cannot change document status"):
            transition_document(document, "pending", VERIFIER, None, NOW)

    def test_same_status_rejected(self):
        """Re-verifying an already verified document is not a transition."""
        document = make_document(verification_status="verified")
        with pytest.raises(ValidationAPIError):
            transition_document(document, "verified", VERIFIER, None, NOW)

    def test_can_transition_forward_only(self):
        """Steps may be skipped but never reversed."""
        assert can_transition("pending", VerificationStatus.REJECTED)
        assert can_transition("verified", VerificationStatus.EXPIRED)
        assert not can_transition("verified", VerificationStatus.PENDING)
        assert not can_transition("expired", VerificationStatus.VERIFIED)
        assert not can_transition("rejected", VerificationStatus.UNDER_REVIEW)

    def test_rejected_is_final(self):
        """A rejected document never becomes expired; a replacement is uploaded instead."""
        assert not can_transition("rejected", VerificationStatus.EXPIRED)
        document = make_document(verification_status="rejected")
        with pytest.raises(ValidationAPIError, match="from rejected to expired"):
            transition_document(document, "expired", VERIFIER, "Expired automatically", NOW)

    @pytest.mark.parametrize("current", ["pending", "under-review", "verified", "rejected", "expired"])
    def test_pending_is_never_a_target(self, current):
        """Pending parses as a status but no document can be moved to it."""
        assert parse_verification_status("pending") is VerificationStatus.PENDING
        with pytest.raises(ValidationAPIError, match="to pending"):
            transition_document(make_document(verification_status=current), "pending", VERIFIER, None, NOW)


class TestKycSyncFlag:
    """Test which transitions ask for a KYC recomputation."""

    @pytest.mark.parametrize("document_type", ["passport", "national-id", "utility-bill", "bank-statement"])
    def test_kyc_documents_trigger_sync_on_verify(self, document_type):
        result = transition_document(make_document(document_type=document_type), "verified", VERIFIER, None, NOW)
        assert result.needs_kyc_sync is True

    def test_under_review_does_not_trigger_sync(self):
        result = transition_document(make_document(), "under-review", VERIFIER, None, NOW)
        assert result.needs_kyc_sync is False

    @pytest.mark.parametrize("document_type", ["diploma", "employment-letter", "other"])
    def test_non_kyc_documents_never_trigger_sync(self, document_type):
        result = transition_document(make_document(document_type=document_type), "verified", VERIFIER, None, NOW)
        assert result.needs_kyc_sync is False


class TestStatusNotices:
    """Test category-specific owner messages."""

    def test_verified_address_mentions_kyc(self):
        document = make_document(document_type="utility-bill", name="June electricity bill")
        result = transition_document(document, "verified", VERIFIER, None, NOW)
        (notice,) = result.notifications
        assert "proof of address" in notice.message
        assert "June electricity bill" in notice.message
        assert "KYC" in notice.message

    def test_verified_education_does_not_mention_kyc(self):
        document = make_document(document_type="diploma", name="Diploma")
        result = transition_document(document, "verified", VERIFIER, None, NOW)
        assert "KYC" not in result.notifications[0].message

    def test_expired_uses_expired_type(self):
        document = make_document(verification_status="verified")
        result = transition_document(document, "expired", VERIFIER, "Expired automatically", NOW)
        assert result.notifications[0].type == NotificationType.DOCUMENT_EXPIRED.value


class TestExpiry:
    """Test expiry window checks and notices."""

    def test_is_expiring_inside_window(self):
        document = make_document(expiry_date=NOW + timedelta(days=10))
        assert is_expiring(document, NOW, 30)
        assert not is_expiring(document, NOW, 5)

    def test_is_expiring_skips_notified(self):
        document = make_document(expiry_date=NOW + timedelta(days=10), expiry_notified=True)
        assert not is_expiring(document, NOW, 30)

    def test_is_expiring_skips_past_dates(self):
        document = make_document(expiry_date=NOW - timedelta(days=1))
        assert not is_expiring(document, NOW, 30)

    def test_is_expired(self):
        past = make_document(expiry_date=NOW - timedelta(days=1), verification_status="verified")
        assert is_expired(past, NOW)
        assert not is_expired(replace(past, verification_status="expired"), NOW)
        assert not is_expired(make_document(), NOW)

    def test_rejected_documents_are_left_alone(self):
        rejected = make_document(verification_status="rejected")
        assert not is_expired(replace(rejected, expiry_date=NOW - timedelta(days=1)), NOW)
        assert not is_expiring(replace(rejected, expiry_date=NOW + timedelta(days=3)), NOW, 30)

    def test_days_until_expiry_rounds_up(self):
        document = make_document(expiry_date=NOW + timedelta(days=9, hours=1))
        assert days_until_expiry(document, NOW) == 10

    def test_expiry_notices_include_poster(self):
        document = make_document(expiry_date=NOW + timedelta(days=10), application_id="app-1")
        notices = expiry_notices(document, NOW, poster_id="sponsor-1")
        assert [n.recipient_id for n in notices] == ["user-1", "sponsor-1"]
        assert all(n.type == NotificationType.DOCUMENT_EXPIRING.value for n in notices)
        assert "10 days" in notices[0].message

    def test_expiry_notices_owner_only(self):
        document = make_document(expiry_date=NOW + timedelta(days=10))
        assert len(expiry_notices(document, NOW)) == 1
        assert len(expiry_notices(document, NOW, poster_id="user-1")) == 1

    def test_expiry_note(self):
        document = make_document(expiry_date=datetime(2025, 5, 30))
        assert expiry_note(document) == "Expired automatically on 2025-05-30"
