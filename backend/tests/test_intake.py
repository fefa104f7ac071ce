# tests/test_intake.py
# Public request submission: validation, auto-rejection and reissue detection.

from datetime import date

import pytest

from conftest import baptism_certificate, make_record, submit
from parish_office.models.issued_certificate import DeliveryMethod
from parish_office.models.sacrament_record import SacramentType
from parish_office.models.service_request import RequestCategory, RequestStatus, ServiceRequest
from parish_office.services.certificates import issue_certificate
from parish_office.services.errors import (
    InvalidContact,
    ReissueReasonRequired,
    ValidationError,
)
from parish_office.services.requests import SUBMITTED_MESSAGE


def test_certificate_without_matching_record_is_auto_rejected(db, clock):
    outcome = submit(db, clock, **baptism_certificate())

    assert outcome.auto_rejected is True
    req = outcome.request
    assert req.id is not None
    assert req.status == RequestStatus.REJECTED
    assert "Juan Dela Cruz" in req.admin_notes
    assert "05/01/1995" in req.admin_notes
    # The requester sees the reason, not an error
    assert outcome.message == req.admin_notes


def test_matching_record_links_request(db, clock):
    rec = make_record(db, birth_date=date(1995, 5, 1))

    outcome = submit(db, clock, **baptism_certificate(certificate_recipient_name="  juan  DELA cruz "))

    assert outcome.auto_rejected is False
    assert outcome.message == SUBMITTED_MESSAGE
    assert outcome.request.status == RequestStatus.PENDING
    assert outcome.request.record_id == rec.id
    assert outcome.request.is_reissue is False
    assert outcome.request.sacrament_type == SacramentType.BAPTISM



def test_accepted_submission_keeps_enum_category(db, clock):
    make_record(db, birth_date=date(1995, 5, 1))

    outcome = submit(db, clock, **baptism_certificate(category=RequestCategory.CERTIFICATE))

    assert outcome.auto_rejected is False
    assert outcome.request.category is RequestCategory.CERTIFICATE
    db.expire_all()
    assert db.query(ServiceRequest).count() == 1

def test_archived_record_does_not_satisfy_request(db, clock):
    make_record(db, birth_date=date(1995, 5, 1), is_archived=True)

    outcome = submit(db, clock, **baptism_certificate())

    assert outcome.request.status == RequestStatus.REJECTED


def test_second_request_for_issued_record_needs_reason(db, clock):
    rec = make_record(db, birth_date=date(1995, 5, 1))
    first = submit(db, clock, **baptism_certificate())
    issue_certificate(db, first.request.id, delivery_method=DeliveryMethod.PICKUP, issued_by="Staff", clock=clock)
    before = db.query(ServiceRequest).count()

    with pytest.raises(ReissueReasonRequired):
        submit(db, clock, **baptism_certificate())
    assert db.query(ServiceRequest).count() == before

    again = submit(db, clock, **baptism_certificate(reissue_reason="Original was lost in a flood"))
    assert again.request.is_reissue is True
    assert again.request.record_id == rec.id
    assert again.request.reissue_reason == "Original was lost in a flood"


def test_prior_issuance_without_record_id_is_detected(db, clock):
    # Older request that never stored a record id, but describes the same person
    make_record(db, birth_date=date(1995, 5, 1))
    first = submit(db, clock, **baptism_certificate())
    issue_certificate(db, first.request.id, delivery_method=DeliveryMethod.EMAIL, issued_by="Staff", clock=clock)
    db.query(ServiceRequest).filter_by(id=first.request.id).update({"record_id": None})
    db.commit()

    with pytest.raises(ReissueReasonRequired):
        submit(db, clock, **baptism_certificate())
    assert first.request.record_id is None


@pytest.mark.parametrize("contact", ["12345", "0917123456", "juan@", "+63917123456"])
def test_invalid_contact_is_rejected_before_persisting(db, clock, contact):
    with pytest.raises(InvalidContact):
        submit(db, clock, contact_info=contact, **baptism_certificate())
    assert db.query(ServiceRequest).count() == 0


@pytest.mark.parametrize("contact", ["09171234567", "+639171234567", "juan@example.com"])
def test_valid_contacts(db, clock, contact):
    outcome = submit(db, clock, contact_info=contact, **baptism_certificate())
    assert outcome.request.contact_info == contact


def test_missing_required_fields(db, clock):
    with pytest.raises(ValidationError, match="Missing required fields"):
        submit(db, clock, requester_name="  ", **baptism_certificate())
    with pytest.raises(ValidationError, match="recipient name is required"):
        submit(db, clock, **baptism_certificate(certificate_recipient_name=None))


def test_future_dates_are_rejected(db, clock):
    with pytest.raises(ValidationError, match="Birth date cannot be in the future"):
        submit(db, clock, **baptism_certificate(certificate_recipient_birth_date=date(2030, 1, 1)))


def test_death_certificate_needs_relationship_and_date(db, clock):
    base = {
        "category": "CERTIFICATE",
        "service_type": "Death Certificate",
        "certificate_recipient_name": "Lola Basyang",
    }
    with pytest.raises(ValidationError, match="Date of death"):
        submit(db, clock, requester_relationship="Granddaughter", **base)
    with pytest.raises(ValidationError, match="Relationship"):
        submit(db, clock, certificate_recipient_death_date=date(2024, 3, 1), **base)


def test_marriage_certificate_needs_couple_and_date(db, clock):
    with pytest.raises(ValidationError, match="groom name, bride name, and marriage date"):
        submit(
            db, clock,
            category="CERTIFICATE", service_type="Marriage Certificate",
            marriage_groom_name="Jose Santos",
        )


def test_marriage_certificate_matches_couple(db, clock):
    rec = make_record(
        db, type=SacramentType.MARRIAGE, name="Jose Santos & Ana Reyes", date_=date(2020, 2, 14),
        groom_name="Jose Santos", bride_name="Ana Reyes",
    )
    outcome = submit(
        db, clock,
        category="CERTIFICATE", service_type="Marriage Certificate",
        marriage_groom_name="Jose Santos", marriage_bride_name="Ana Reyes", marriage_date=date(2020, 2, 14),
    )
    assert outcome.request.record_id == rec.id


def test_confirmation_requires_baptism_record(db, clock):
    outcome = submit(
        db, clock,
        category="SACRAMENT", service_type="Confirmation",
        confirmation_candidate_name="Ana Reyes",
        confirmation_candidate_birth_date=date(2010, 7, 9),
    )
    assert outcome.auto_rejected is True
    assert outcome.request.admin_notes == "No matching baptism record found for Ana Reyes (07/09/2010)."


def test_confirmation_with_baptism_record_is_pending(db, clock):
    make_record(db, name="Ana Reyes", date_=date(2010, 9, 1), birth_date=date(2010, 7, 9))
    outcome = submit(
        db, clock,
        category="SACRAMENT", service_type="Confirmation",
        confirmation_candidate_name="ana reyes",
        confirmation_candidate_birth_date=date(2010, 7, 9),
    )
    assert outcome.auto_rejected is False
    assert outcome.request.status == RequestStatus.PENDING


def test_funeral_request_requires_structured_fields(db, clock):
    with pytest.raises(ValidationError, match="Funeral requests require"):
        submit(
            db, clock,
            category="SACRAMENT", service_type="Funeral Mass",
            funeral_deceased_name="Lola Basyang",
            requester_relationship="Granddaughter",
            preferred_date="2025-01-20 9:00 AM",
        )
