from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from beaware.models.audit_log import AuditLog
from beaware.models.consolidated_scam import ConsolidatedScam, ScamReportConsolidation
from beaware.models.scam_report import ScamReport

PHONE_REPORT = {
    "scam_type": "phone",
    "scam_phone_number": "+15551234567",
    "incident_date": "2024-05-01",
    "description": "Caller claimed to be from the tax office",
    "city": "Austin",
    "state": "TX",
}


def submit(client, headers, **overrides):
    resp = client.post("/scam-reports", json={**PHONE_REPORT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "beaware-backend", "version": "1.0.0"}
    assert resp.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_submit_requires_auth(client):
    resp = client.post("/scam-reports", json=PHONE_REPORT)
    assert resp.status_code == 401


def test_submit_rejects_unknown_scam_type(client, user_headers):
    resp = client.post("/scam-reports", json={**PHONE_REPORT, "scam_type": "sms"}, headers=user_headers)
    assert resp.status_code == 422


def test_repeat_submissions_consolidate(client, user_headers):
    first = submit(client, user_headers)
    second = submit(client, user_headers, scam_phone_number="  +15551234567")

    assert first["status"] == "reported"
    assert first["report_count"] == 1
    assert second["consolidated_scam_id"] == first["consolidated_scam_id"]
    assert second["report_count"] == 2

    detail = client.get(f"/consolidated-scams/{first['consolidated_scam_id']}").json()
    assert detail["identifier"] == "+15551234567"
    assert detail["report_count"] == 2
    assert len(detail["reports"]) == 2


def test_business_names_consolidate_across_case(client, user_headers):
    body = {
        "scam_type": "business",
        "scam_business_name": "Acme Corp",
        "incident_date": "2024-05-01",
        "description": "Fake invoice",
    }
    first = submit(client, user_headers, **body)
    second = submit(client, user_headers, **{**body, "scam_business_name": "acme corp"})

    assert first["consolidated_scam_id"] == second["consolidated_scam_id"]

    listing = client.get("/consolidated-scams", params={"q": "ACME"}).json()
    assert [s["report_count"] for s in listing] == [2]


def test_report_without_identifier_is_not_consolidated(client, user_headers):
    data = submit(client, user_headers, scam_phone_number=None)

    assert data["consolidated_scam_id"] is None
    assert data["report_count"] is None
    assert client.get("/consolidated-scams").json() == []


def test_proof_reference_sets_flag(client, user_headers):
    data = submit(
        client,
        user_headers,
        proof_file_path="uploads/abc.png",
        proof_file_name="abc.png",
        proof_file_type="image/png",
        proof_file_size=2048,
    )
    assert data["report"]["has_proof_document"] is True


def test_verify_cascades_and_unverify_keeps_aggregate(client, user_headers, admin_headers):
    report = submit(client, user_headers)
    report_id = report["report"]["id"]
    scam_id = report["consolidated_scam_id"]

    resp = client.post(f"/scam-reports/{report_id}/verify", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["report"]["is_verified"] is True
    assert resp.json()["consolidated_scams_verified"] == 1
    assert client.get(f"/consolidated-scams/{scam_id}").json()["is_verified"] is True

    again = client.post(f"/scam-reports/{report_id}/verify", headers=admin_headers)
    assert again.json()["message"] == "Scam report was already verified"

    resp = client.post(f"/scam-reports/{report_id}/unverify", headers=admin_headers)
    assert resp.json()["report"]["is_verified"] is False
    assert client.get(f"/consolidated-scams/{scam_id}").json()["is_verified"] is True


def test_moderation_requires_admin(client, user_headers):
    report_id = submit(client, user_headers)["report"]["id"]

    for action in ("verify", "unverify", "publish", "unpublish"):
        resp = client.post(f"/scam-reports/{report_id}/{action}", headers=user_headers)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Admin privileges required"


def test_verify_unknown_report(client, admin_headers):
    resp = client.post("/scam-reports/999/verify", headers=admin_headers)
    assert resp.status_code == 404


def test_consolidated_scam_can_be_verified_directly(client, user_headers, admin_headers):
    scam_id = submit(client, user_headers)["consolidated_scam_id"]

    resp = client.post(f"/consolidated-scams/{scam_id}/verify", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["consolidated_scam"]["is_verified"] is True


def test_unpublished_reports_are_hidden(client, user_headers, admin_headers):
    report_id = submit(client, user_headers)["report"]["id"]

    client.post(f"/scam-reports/{report_id}/unpublish", headers=admin_headers)

    assert client.get(f"/scam-reports/{report_id}").status_code == 404
    assert client.get("/scam-reports/published").json()["count"] == 0

    unpublished = client.get("/scam-reports/unpublished", headers=admin_headers).json()
    assert [r["id"] for r in unpublished["data"]] == [report_id]

    client.post(f"/scam-reports/{report_id}/publish", headers=admin_headers)
    assert client.get(f"/scam-reports/{report_id}").status_code == 200


def test_comments_and_detail(client, user_headers):
    report = submit(client, user_headers)
    report_id = report["report"]["id"]

    resp = client.post(
        "/scam-comments",
        json={"scam_report_id": report_id, "comment": "Same caller rang me today"},
        headers=user_headers,
    )
    assert resp.status_code == 201

    detail = client.get(f"/scam-reports/{report_id}").json()
    assert [c["comment"] for c in detail["comments"]] == ["Same caller rang me today"]
    assert detail["consolidated_scam_ids"] == [report["consolidated_scam_id"]]


def test_listings_and_stats(client, user_headers):
    submit(client, user_headers)
    submit(
        client,
        user_headers,
        scam_type="email",
        scam_phone_number=None,
        scam_email="refunds@fake-bank.example",
    )

    mine = client.get("/scam-reports/mine", headers=user_headers).json()
    assert mine["count"] == 2

    emails = client.get("/scam-reports/by-type/email").json()
    assert [r["scam_email"] for r in emails["data"]] == ["refunds@fake-bank.example"]

    stats = client.get("/scam-stats").json()
    assert stats["total_reports"] == 2
    assert stats["phone_scams"] == 1
    assert stats["email_scams"] == 1
    assert stats["business_scams"] == 0
    assert stats["verified_reports"] == 0


def test_signup_login_and_me(client):
    resp = client.post(
        "/auth/signup",
        json={
            "email": "New.User@example.com",
            "display_name": "New User",
            "password": "longenough",
            "confirm_password": "longenough",
        },
    )
    assert resp.status_code == 201

    bad = client.post("/auth/login", json={"email": "new.user@example.com", "password": "wrong-one"})
    assert bad.status_code == 401

    login = client.post("/auth/login", json={"email": "new.user@example.com", "password": "longenough"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "new.user@example.com"
    assert me["role"] == "user"


def test_invalid_token_is_rejected(client):
    resp = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def _row_count(db, column) -> int:
    return db.execute(select(func.count(column))).scalar_one()


def test_failed_consolidation_rolls_back_the_report(client, user_headers, db):
    with patch(
        "beaware.routes.scam_reports.consolidate_report",
        side_effect=SQLAlchemyError("store unavailable"),
    ):
        resp = client.post("/scam-reports", json=PHONE_REPORT, headers=user_headers)

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to save scam report"

    assert _row_count(db, ScamReport.id) == 0
    assert _row_count(db, ConsolidatedScam.id) == 0
    assert _row_count(db, ScamReportConsolidation.id) == 0
    assert _row_count(db, AuditLog.id) == 0

    # a later submission goes through normally
    assert submit(client, user_headers)["report_count"] == 1


def test_aggregates_of_unpublished_reports_are_hidden(client, user_headers, admin_headers):
    data = submit(client, user_headers)
    report_id = data["report"]["id"]
    scam_id = data["consolidated_scam_id"]

    client.post(f"/scam-reports/{report_id}/unpublish", headers=admin_headers)

    assert client.get("/consolidated-scams").json() == []
    assert client.get("/consolidated-scams/by-type/phone").json() == []
    assert client.get(f"/consolidated-scams/{scam_id}").status_code == 404

    client.post(f"/scam-reports/{report_id}/publish", headers=admin_headers)

    assert [s["id"] for s in client.get("/consolidated-scams").json()] == [scam_id]
    assert client.get(f"/consolidated-scams/{scam_id}").status_code == 200


def test_aggregate_search_treats_wildcards_literally(client, user_headers):
    submit(client, user_headers, scam_type="business", scam_phone_number=None, scam_business_name="Acme Corp")
    submit(client, user_headers, scam_type="business", scam_phone_number=None, scam_business_name="100% Legit_Deals")

    assert client.get("/consolidated-scams", params={"q": "_"}).json()[0]["identifier"] == "100% Legit_Deals"
    assert len(client.get("/consolidated-scams", params={"q": "_"}).json()) == 1
    assert len(client.get("/consolidated-scams", params={"q": "%"}).json()) == 1
    assert client.get("/consolidated-scams", params={"q": "e_c"}).json() == []


def test_audit_rows_carry_request_id_and_client_ip(client, user_headers, db):
    headers = {**user_headers, "X-Request-ID": "req-42", "X-Forwarded-For": "198.51.100.7, 10.0.0.1"}
    resp = client.post("/scam-reports", json=PHONE_REPORT, headers=headers)
    assert resp.status_code == 201

    entry = db.execute(select(AuditLog)).scalar_one()
    assert entry.event_type == "SCAM_REPORTED"
    assert entry.request_id == "req-42"
    assert entry.ip_address == "198.51.100.7"
