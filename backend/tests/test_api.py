# tests/test_api.py
# HTTP-level smoke: status codes and error mapping across the routers.

from datetime import date

from conftest import FAKE_PDF, make_record
from parish_office.api.certificates import content_disposition
from parish_office.api.deps import get_clock
from parish_office.config import Settings
from parish_office.services import clock as clock_module

CERT_REQUEST = {
    "category": "CERTIFICATE",
    "service_type": "Baptismal Certificate",
    "requester_name": "Maria Dela Cruz",
    "contact_info": "maria@example.com",
    "details": "School requirement",
    "certificate_recipient_name": "Juan Dela Cruz",
    "certificate_recipient_birth_date": "1995-05-01",
}


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["db"]["status"] == "ok"
    assert body["time"]["now"].startswith("2025-01-15T09:00:00")

    r = client.get("/version")
    assert r.status_code == 200
    assert r.json()["app"] == "Parish Office Backend"


def test_auto_rejection_is_still_a_submission(client):
    r = client.post("/requests/", json=CERT_REQUEST)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["auto_rejected"] is True
    assert body["request"]["status"] == "REJECTED"
    assert "05/01/1995" in body["message"]


def test_validation_errors_are_400(client):
    r = client.post("/requests/", json={**CERT_REQUEST, "contact_info": "not a contact"})
    assert r.status_code == 400
    assert "valid email address or mobile number" in r.json()["detail"]

    r = client.post("/requests/", json={"category": "CERTIFICATE"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required fields"


def test_full_certificate_flow(client, db, renderer):
    make_record(db, birth_date=date(1995, 5, 1))

    r = client.post("/requests/", json=CERT_REQUEST)
    assert r.status_code == 201, r.text
    req_id = r.json()["request"]["id"]

    r = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "EMAIL"}, headers={"X-Actor": "Sr. Clara"})
    assert r.status_code == 201, r.text
    cert = r.json()
    assert cert["issued_by"] == "Sr. Clara"
    assert cert["status"] == "PENDING_UPLOAD"
    assert "file_data" not in cert

    r = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "EMAIL", "issued_by": "Staff"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Certificate already issued for this request"

    r = client.get(f"/requests/{req_id}")
    assert r.json()["status"] == "COMPLETED"

    r = client.get(f"/certificates/{cert['id']}/file")
    assert r.status_code == 404

    r = client.post(f"/certificates/{cert['id']}/generate", headers={"X-Actor": "Fr. Ben"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "UPLOADED"
    assert r.json()["uploaded_by"] == "Fr. Ben"
    assert len(renderer.calls) == 1

    r = client.get(f"/certificates/{cert['id']}/file")
    assert r.status_code == 200
    assert r.content == FAKE_PDF
    assert r.headers["content-type"] == "application/pdf"
    assert 'filename="baptism-certificate-juan-dela-cruz.pdf"' in r.headers["content-disposition"]

    r = client.get("/certificates/")
    assert [c["id"] for c in r.json()] == [cert["id"]]

    r = client.get("/certificates/registry")
    assert r.status_code == 200
    assert r.json()["completed_uploads"] == 1


def test_missing_record_on_generate_gives_guidance(client, db):
    rec = make_record(db, birth_date=date(1995, 5, 1))
    req_id = client.post("/requests/", json=CERT_REQUEST).json()["request"]["id"]
    cert_id = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "PICKUP"}).json()["id"]
    client.post(f"/records/{rec.id}/archive")

    r = client.post(f"/certificates/{cert_id}/generate")
    assert r.status_code == 409
    assert r.json()["detail"].startswith("Cannot generate: no baptism record is linked")


def test_render_failure_is_502(client, db, renderer):
    make_record(db, birth_date=date(1995, 5, 1))
    req_id = client.post("/requests/", json=CERT_REQUEST).json()["request"]["id"]
    cert_id = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "PICKUP"}).json()["id"]
    renderer.fail = True

    r = client.post(f"/certificates/{cert_id}/generate")
    assert r.status_code == 502
    assert client.get(f"/certificates/{cert_id}").json()["status"] == "PENDING_UPLOAD"


def test_manual_upload(client, db):
    make_record(db, birth_date=date(1995, 5, 1))
    req_id = client.post("/requests/", json=CERT_REQUEST).json()["request"]["id"]
    cert_id = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "PICKUP"}).json()["id"]

    r = client.post(
        f"/certificates/{cert_id}/upload",
        files={"file": ("signed.pdf", b"%PDF-1.7 signed", "application/pdf")},
        headers={"X-Actor": "Sr. Clara"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["file_name"] == "signed.pdf"
    assert r.json()["uploaded_by"] == "Sr. Clara"
    assert client.get(f"/certificates/{cert_id}/file").content == b"%PDF-1.7 signed"


def test_status_update_and_delete(client):
    r = client.post(
        "/requests/",
        json={
            "category": "SACRAMENT", "service_type": "Baptism", "requester_name": "Maria",
            "contact_info": "+639171234567", "details": "Infant baptism", "preferred_date": "2025-02-01",
        },
    )
    req_id = r.json()["request"]["id"]

    r = client.patch(f"/requests/{req_id}", json={"status": "SCHEDULED"})
    assert r.status_code == 400

    r = client.patch(f"/requests/{req_id}", json={"status": "REJECTED", "admin_notes": "Incomplete documents"})
    assert r.status_code == 200
    r = client.patch(f"/requests/{req_id}", json={"status": "PENDING"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Rejected requests cannot be reopened."

    assert [x["id"] for x in client.get("/requests/?status=REJECTED").json()] == [req_id]

    assert client.delete(f"/requests/{req_id}").status_code == 204
    assert client.get(f"/requests/{req_id}").status_code == 404


def test_download_with_non_ascii_file_name(client, db):
    make_record(db, birth_date=date(1995, 5, 1))
    req_id = client.post("/requests/", json=CERT_REQUEST).json()["request"]["id"]
    cert_id = client.post(f"/requests/{req_id}/issue", json={"delivery_method": "PICKUP"}).json()["id"]
    client.post(
        f"/certificates/{cert_id}/upload",
        files={"file": ("binyag-niño.pdf", b"%PDF-1.7 scanned", "application/pdf")},
    )

    r = client.get(f"/certificates/{cert_id}/file")
    assert r.status_code == 200
    assert r.content == b"%PDF-1.7 scanned"
    disposition = r.headers["content-disposition"]
    assert 'filename="binyag-nino.pdf"' in disposition
    assert "filename*=UTF-8''binyag-ni%C3%B1o.pdf" in disposition


def test_content_disposition_outside_latin1():
    header = content_disposition('洗礼 "copy".pdf')
    header.encode("latin-1")
    assert header == "inline; filename=\"_copy_.pdf\"; filename*=UTF-8''%E6%B4%97%E7%A4%BC%20%22copy%22.pdf"


def test_default_clock_follows_configured_timezone(monkeypatch):
    monkeypatch.setattr(clock_module, "get_settings", lambda: Settings(timezone="Europe/Berlin"))
    assert str(clock_module.parish_clock().tz) == "Europe/Berlin"
    assert str(get_clock().tz) == "Europe/Berlin"
