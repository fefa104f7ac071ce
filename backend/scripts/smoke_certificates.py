# End-to-end smoke test for the certificate flow against a running server
# Run:  python scripts/smoke_certificates.py
# If needed: pip install requests
#
# Creates a baptism record, requests a certificate for it, issues it,
# generates the PDF, downloads it, then asks for a second copy (reissue).

import os
import sys
import uuid

import requests

BASE = os.getenv("BASE_URL", "http://127.0.0.1:8000")
HEADERS = {"X-Actor": "smoke"}


def main():
    print(f"→ Using API {BASE}")
    suffix = uuid.uuid4().hex[:6].upper()
    name = f"Smoke Child {suffix}"

    # 1) Register entry
    rec = {
        "type": "BAPTISM",
        "name": name,
        "date": "2024-02-10",
        "officiant": "Rev. Fr. Smoke",
        "details": "smoke",
        "birth_date": "2023-12-01",
        "father_name": "Smoke Father",
        "mother_name": "Smoke Mother",
    }
    r = requests.post(f"{BASE}/records/", json=rec); r.raise_for_status()
    record_id = r.json()["id"]
    print(f"✓ Created record {record_id}")

    # 2) Certificate request matching it
    req = {
        "category": "CERTIFICATE",
        "service_type": "Baptismal Certificate",
        "requester_name": "Smoke Requester",
        "contact_info": "09171234567",
        "details": "smoke copy",
        "certificate_recipient_name": name.lower(),  # matching ignores case
        "certificate_recipient_birth_date": "2023-12-01",
    }
    r = requests.post(f"{BASE}/requests/", json=req); r.raise_for_status()
    body = r.json()
    assert not body["auto_rejected"], body
    request_id = body["request"]["id"]
    assert body["request"]["record_id"] == record_id, body
    print(f"✓ Request {request_id} matched record {record_id}")

    # 3) Issue
    r = requests.post(
        f"{BASE}/requests/{request_id}/issue",
        json={"delivery_method": "PICKUP"},
        headers=HEADERS,
    )
    r.raise_for_status()
    cert_id = r.json()["id"]
    assert r.json()["status"] == "PENDING_UPLOAD"
    r = requests.post(f"{BASE}/requests/{request_id}/issue", json={"delivery_method": "PICKUP"}, headers=HEADERS)
    assert r.status_code == 409, r.text
    print(f"✓ Issued certificate {cert_id} (second issue rejected)")

    # 4) Generate + download
    r = requests.post(f"{BASE}/certificates/{cert_id}/generate", headers=HEADERS)
    if r.status_code == 502:
        print("! PDF renderer unavailable (is Chromium installed? `playwright install chromium`)")
        sys.exit(1)
    r.raise_for_status()
    assert r.json()["status"] == "UPLOADED"
    r = requests.get(f"{BASE}/certificates/{cert_id}/file"); r.raise_for_status()
    assert r.headers["content-type"].startswith("application/pdf")
    print(f"✓ Generated and downloaded {len(r.content)} bytes")

    # 5) Second request for the same record needs a reason
    r = requests.post(f"{BASE}/requests/", json=req)
    assert r.status_code == 400, r.text
    r = requests.post(f"{BASE}/requests/", json={**req, "reissue_reason": "lost original"}); r.raise_for_status()
    assert r.json()["request"]["is_reissue"] is True
    print("✓ Reissue requires a reason")

    # 6) Registry groups both requests under the record
    r = requests.get(f"{BASE}/certificates/registry"); r.raise_for_status()
    lineage = next(g for g in r.json()["lineages"] if g["key"] == f"record:{record_id}")
    print(f"✓ Registry lineage record:{record_id} issue_count={lineage['issue_count']}")

    print("All good ✅")


if __name__ == "__main__":
    main()
