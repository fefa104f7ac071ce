# tests/test_registry.py
# Reissues of one certificate grouped into a single registry lineage.

from datetime import date, datetime, timedelta

from conftest import StubRenderer, baptism_certificate, make_record, submit
from parish_office.config import Settings
from parish_office.models.issued_certificate import (
    CertificateStatus,
    DeliveryMethod,
    IssuedCertificate,
)
from parish_office.models.sacrament_record import SacramentType
from parish_office.models.service_request import RequestCategory, RequestStatus, ServiceRequest
from parish_office.services.certificates import generate_certificate, issue_certificate
from parish_office.services.registry import build_registry, group_certificates, lineage_key
from parish_office.services.requests import update_status


def _issue(db, clock, request_id):
    return issue_certificate(db, request_id, delivery_method=DeliveryMethod.PICKUP, issued_by="Staff", clock=clock)


def test_reissues_share_one_lineage(db, clock):
    rec = make_record(db, birth_date=date(1995, 5, 1))
    first = submit(db, clock, **baptism_certificate()).request
    first_cert = _issue(db, clock, first.id)
    generate_certificate(db, first_cert.id, actor="Staff", renderer=StubRenderer(), clock=clock, settings=Settings())

    clock.advance(timedelta(days=30))
    second = submit(db, clock, **baptism_certificate(reissue_reason="Lost")).request
    second_cert = _issue(db, clock, second.id)

    registry = build_registry(db, clock=clock, settings=Settings())

    assert registry.total_certificates == 2
    assert registry.pending_uploads == 1
    assert registry.completed_uploads == 1
    assert len(registry.lineages) == 1
    lineage = registry.lineages[0]
    assert lineage.key == f"record:{rec.id}"
    assert lineage.record_id == rec.id
    assert lineage.issue_count == 2
    assert lineage.request_count == 2
    assert lineage.latest.id == second_cert.id
    assert lineage.latest_uploaded.id == first_cert.id
    assert [c.id for c in lineage.certificates] == [second_cert.id, first_cert.id]


def test_approved_reissue_counts_before_it_is_issued(db, clock):
    rec = make_record(db, birth_date=date(1995, 5, 1))
    first = submit(db, clock, **baptism_certificate()).request
    _issue(db, clock, first.id)

    clock.advance(timedelta(days=7))
    reissue = submit(db, clock, **baptism_certificate(reissue_reason="Damaged copy")).request
    assert reissue.is_reissue is True
    update_status(db, reissue.id, status=RequestStatus.APPROVED, clock=clock)

    lineage = build_registry(db, clock=clock, settings=Settings()).lineages[0]
    assert lineage.key == f"record:{rec.id}"
    assert lineage.issue_count == 1
    assert lineage.request_count == 2

    # Pending and rejected requests never count
    submit(db, clock, **baptism_certificate(reissue_reason="Spare copy"))
    assert build_registry(db, clock=clock, settings=Settings()).lineages[0].request_count == 2


def test_registry_is_read_only_and_repeatable(db, clock):
    make_record(db, birth_date=date(1995, 5, 1))
    req = submit(db, clock, **baptism_certificate()).request
    _issue(db, clock, req.id)

    first = build_registry(db, clock=clock, settings=Settings())
    assert not db.dirty and not db.new
    second = build_registry(db, clock=clock, settings=Settings())
    assert first == second


def _cert(id, request, issued, status=CertificateStatus.PENDING_UPLOAD, recipient="Juan Dela Cruz"):
    return IssuedCertificate(
        id=id, request_id=request.id, request=request, type=request.service_type,
        recipient_name=recipient, requester_name=request.requester_name,
        date_issued=issued, issued_by="Staff", delivery_method=DeliveryMethod.PICKUP, status=status,
    )


def _req(id, status=RequestStatus.COMPLETED, name="Juan Dela Cruz", **kw):
    return ServiceRequest(
        id=id, category=RequestCategory.CERTIFICATE, service_type="Baptismal Certificate",
        sacrament_type=SacramentType.BAPTISM, requester_name="Maria", contact_info="09171234567",
        certificate_recipient_name=name, certificate_recipient_birth_date=date(1995, 5, 1),
        status=status, record_id=kw.pop("record_id", None), **kw,
    )


def test_unresolved_requests_group_by_identity_key():
    t0 = datetime(2025, 1, 1, 9, 0)
    a = _cert(1, _req(1), t0)
    b = _cert(2, _req(2, name="  JUAN dela  cruz", status=RequestStatus.PENDING), t0 + timedelta(days=1))
    other = _cert(3, _req(3, name="Pedro Penduko"), t0 + timedelta(days=2))

    lineages = group_certificates([a, b, other])

    assert [g.issue_count for g in lineages] == [1, 2]
    juan = lineages[1]
    assert juan.key == "BAPTISM|juan dela cruz|1995-05-01"
    assert juan.record_id is None
    assert juan.latest is b
    assert juan.latest_uploaded is None
    # Only APPROVED / COMPLETED requests count
    assert juan.request_count == 1


def test_record_id_takes_precedence_over_identity():
    t0 = datetime(2025, 1, 1, 9, 0)
    linked = _cert(1, _req(1, record_id=7), t0)
    assert lineage_key(linked) == "record:7"


def test_untyped_certificates_group_by_type_text():
    t0 = datetime(2025, 1, 1, 9, 0)
    req = ServiceRequest(
        id=1, category=RequestCategory.SACRAMENT, service_type="Mass Intention",
        requester_name="Maria", contact_info="09171234567", status=RequestStatus.COMPLETED,
    )
    cert = _cert(1, req, t0, recipient="Lolo Andres")
    assert lineage_key(cert) == "OTHER|mass intention|lolo andres"
