"""
Tests for the integration HTTP endpoints.

Covers auth, role checks, the response envelope and camelCase payloads.
"""

from datetime import timedelta

from thiqax import errors
from thiqax.middleware import error_handler
from thiqax.models import utcnow
from thiqax.workflow import applications, documents

API = "/api/v1/integrations"


class TestAuthAndEnvelope:
    """Test authentication and the error envelope."""

    def test_missing_token(self, client):
        response = client.post(f"{API}/documents/check-expirations")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authenticated"}

    def test_invalid_token(self, client):
        response = client.post(
            f"{API}/documents/check-expirations",
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_health_is_public(self, client):
        assert client.get("/health").json()["status"] == "ok"
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_wrong_role(self, client, auth_headers, seeker):
        response = client.post(f"{API}/documents/check-expirations", headers=auth_headers(seeker))
        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_unknown_route(self, client, auth_headers, admin_user):
        response = client.get(f"{API}/nothing-here", headers=auth_headers(admin_user))
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_engine_errors_use_the_handled_classes(self):
        """Errors raised by the workflow engine are the ones the handlers render."""
        assert documents.ValidationAPIError is errors.ValidationAPIError
        assert applications.ForbiddenError is errors.ForbiddenError
        assert error_handler.APIError is errors.APIError


class TestRequestMiddleware:
    """Test request ids and CORS preflight."""

    def test_request_id_is_propagated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "gw-1234"})
        assert response.headers["X-Request-ID"] == "gw-1234"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_on_rejected_request(self, client):
        response = client.post(f"{API}/documents/check-expirations", headers={"X-Request-ID": "gw-5678"})
        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "gw-5678"

    def test_preflight_skips_auth(self, client):
        response = client.options(
            f"{API}/documents/check-expirations",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestVerificationEndpoint:
    """PUT /integrations/documents/{id}/verification"""

    def test_agent_verifies(self, client, auth_headers, agent_user, seeker, seeker_profile, create_document):
        passport = create_document(seeker, "passport")

        response = client.put(
            f"{API}/documents/{passport.id}/verification",
            json={"verificationStatus": "verified", "verificationNotes": "Matches applicant"},
            headers=auth_headers(agent_user),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["document"]["verificationStatus"] == "verified"
        assert body["data"]["document"]["verifiedBy"] == agent_user.id
        assert body["data"]["document"]["category"] == "identity"
        assert body["data"]["application"] is None

    def test_rejection_without_notes(self, client, auth_headers, admin_user, seeker, create_document):
        passport = create_document(seeker, "passport")
        response = client.put(
            f"{API}/documents/{passport.id}/verification",
            json={"verificationStatus": "rejected"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Verification notes are required when rejecting a document",
        }

    def test_missing_body_field(self, client, auth_headers, admin_user, seeker, create_document):
        passport = create_document(seeker, "passport")
        response = client.put(
            f"{API}/documents/{passport.id}/verification",
            json={"verificationNotes": "ok"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 400
        assert "verificationStatus" in response.json()["message"]

    def test_unknown_document(self, client, auth_headers, admin_user):
        response = client.put(
            f"{API}/documents/nope/verification",
            json={"verificationStatus": "verified"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Document not found"

    def test_job_seeker_cannot_verify(self, client, auth_headers, seeker, create_document):
        passport = create_document(seeker, "passport")
        response = client.put(
            f"{API}/documents/{passport.id}/verification",
            json={"verificationStatus": "verified"},
            headers=auth_headers(seeker),
        )
        assert response.status_code == 403


class TestApplicationEndpoints:
    """Linking documents and changing application status."""

    def test_applicant_links_documents(self, client, auth_headers, seeker, job, create_document, create_application):
        application = create_application(seeker, job)
        a = create_document(seeker, "passport")

        response = client.post(
            f"{API}/applications/{application.id}/documents",
            json={"documentIds": [a.id]},
            headers=auth_headers(seeker),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["documentIds"] == [a.id]
        assert data["history"][0]["event"] == "DOCUMENTS_ADDED"

    def test_empty_document_ids(self, client, auth_headers, seeker, job, create_application):
        application = create_application(seeker, job)
        response = client.post(
            f"{API}/applications/{application.id}/documents",
            json={"documentIds": []},
            headers=auth_headers(seeker),
        )
        assert response.status_code == 400

    def test_foreign_documents(self, client, auth_headers, agent_user, seeker, job, create_user, create_document, create_application):
        application = create_application(seeker, job)
        theirs = create_document(create_user(), "passport")
        response = client.post(
            f"{API}/applications/{application.id}/documents",
            json={"documentIds": [theirs.id]},
            headers=auth_headers(agent_user),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Documents do not belong to the applicant"

    def test_sponsor_cannot_link(self, client, auth_headers, sponsor, seeker, job, create_document, create_application):
        application = create_application(seeker, job)
        a = create_document(seeker, "passport")
        response = client.post(
            f"{API}/applications/{application.id}/documents",
            json={"documentIds": [a.id]},
            headers=auth_headers(sponsor),
        )
        assert response.status_code == 403

    def test_applicant_withdraws(self, client, auth_headers, seeker, job, create_application):
        application = create_application(seeker, job)
        response = client.put(
            f"{API}/applications/{application.id}/status",
            json={"status": "withdrawn"},
            headers=auth_headers(seeker),
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "withdrawn"

    def test_sponsor_shortlists_own_job(self, client, auth_headers, sponsor, seeker, job, create_application):
        application = create_application(seeker, job)
        response = client.put(
            f"{API}/applications/{application.id}/status",
            json={"status": "shortlisted", "notes": "Call back"},
            headers=auth_headers(sponsor),
        )
        assert response.status_code == 200
        assert response.json()["data"]["history"][-1]["notes"] == "Call back"


class TestDocumentEndpoints:
    """Expiry sweep and removal."""

    def test_admin_runs_sweep(self, client, auth_headers, admin_user, seeker, create_document):
        create_document(seeker, "passport", expiry_date=utcnow() + timedelta(days=3))

        response = client.post(f"{API}/documents/check-expirations", headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert response.json()["data"] == {"processedCount": 1, "notifiedCount": 1, "expiredCount": 0}

    def test_sweep_threshold_query(self, client, auth_headers, admin_user, seeker, create_document):
        create_document(seeker, "passport", expiry_date=utcnow() + timedelta(days=10))

        response = client.post(
            f"{API}/documents/check-expirations",
            params={"daysThreshold": 5},
            headers=auth_headers(admin_user),
        )

        assert response.json()["data"]["notifiedCount"] == 0

    def test_owner_removes_document(self, client, auth_headers, seeker, create_document):
        document = create_document(seeker, "diploma")
        response = client.delete(f"{API}/documents/{document.id}", headers=auth_headers(seeker))
        assert response.status_code == 200
        assert response.json()["data"]["id"] == document.id

    def test_stranger_cannot_remove(self, client, auth_headers, seeker, create_user, create_document):
        document = create_document(seeker, "diploma")
        response = client.delete(f"{API}/documents/{document.id}", headers=auth_headers(create_user()))
        assert response.status_code == 403


class TestProfileEndpoints:
    """KYC, eligibility, completeness and application sync."""

    def test_sync_verification(self, client, auth_headers, agent_user, seeker, seeker_profile, create_document):
        create_document(seeker, "passport", verification_status="verified")

        response = client.post(f"{API}/users/{seeker.id}/sync-verification", headers=auth_headers(agent_user))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["kycStatus"] == "partial"
        assert data["missingDocuments"] == ["Proof of Address"]

    def test_sync_verification_missing_profile(self, client, auth_headers, admin_user, create_user):
        response = client.post(f"{API}/users/{create_user().id}/sync-verification", headers=auth_headers(admin_user))
        assert response.status_code == 404

    def test_own_kyc_status(self, client, auth_headers, seeker, seeker_profile):
        response = client.get(f"{API}/users/{seeker.id}/kyc-status", headers=auth_headers(seeker))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["kycStatus"] == "unverified"
        assert data["derivedStatus"] == "pending"
        assert data["inSync"] is False

    def test_other_users_kyc_status(self, client, auth_headers, seeker, seeker_profile, create_user):
        response = client.get(f"{API}/users/{seeker.id}/kyc-status", headers=auth_headers(create_user()))
        assert response.status_code == 403

    def test_eligibility_for_owner(self, client, auth_headers, seeker, seeker_profile, job):
        response = client.get(
            f"{API}/profiles/{seeker_profile.id}/jobs/{job.id}/eligibility",
            headers=auth_headers(seeker),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["eligible"] is False
        assert "KYC verification" in data["missingRequirements"]

    def test_eligibility_for_sponsor_forbidden(self, client, auth_headers, sponsor, seeker_profile, job):
        response = client.get(
            f"{API}/profiles/{seeker_profile.id}/jobs/{job.id}/eligibility",
            headers=auth_headers(sponsor),
        )
        assert response.status_code == 403

    def test_update_completeness(self, client, auth_headers, seeker, create_profile, complete_profile_data):
        profile = create_profile(seeker, **complete_profile_data)
        response = client.post(f"{API}/profiles/{profile.id}/update-completeness", headers=auth_headers(seeker))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isComplete"] is True
        assert data["completionPercentage"] == 100
        assert data["profile"]["profileComplete"] is True

    def test_sync_applications(self, client, auth_headers, agent_user, seeker, seeker_profile, job, create_application):
        create_application(seeker, job)
        response = client.post(f"{API}/profiles/{seeker_profile.id}/sync-applications", headers=auth_headers(agent_user))
        assert response.status_code == 200
        assert response.json()["data"]["updatedCount"] == 1


class TestReconcileEndpoint:
    """POST /integrations/reconcile/{entityType}/{entityId}"""

    def test_agent_reconciles_user(self, client, auth_headers, agent_user, seeker, seeker_profile):
        response = client.post(f"{API}/reconcile/user/{seeker.id}", headers=auth_headers(agent_user))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["entityType"] == "user"
        assert data["kyc"]["kycStatus"] == "pending"

    def test_unknown_type(self, client, auth_headers, admin_user):
        response = client.post(f"{API}/reconcile/job/x", headers=auth_headers(admin_user))
        assert response.status_code == 400

    def test_job_seeker_forbidden(self, client, auth_headers, seeker):
        response = client.post(f"{API}/reconcile/user/{seeker.id}", headers=auth_headers(seeker))
        assert response.status_code == 403
