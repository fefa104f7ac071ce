# parish_office/services/registry.py
"""
Certificate registry: reissues of one certificate shown as one lineage.

`group_certificates` is a read-time projection over issued certificates
and approved/completed requests; it never writes anything back.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from parish_office.config import Settings
from parish_office.models.issued_certificate import CertificateStatus, IssuedCertificate
from parish_office.models.service_request import RequestCategory, RequestStatus, ServiceRequest
from parish_office.schemas.certificate import CertificateLineageRead, RegistryRead
from parish_office.services.certificates import reminder_threshold, to_read
from parish_office.services.clock import Clock, parish_clock, ensure_aware
from parish_office.services.matching import identity_key, normalize_name, request_identity_key
from parish_office.services.service_types import infer_sacrament_type

logger = logging.getLogger(__name__)

COUNTED_REQUEST_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.COMPLETED})

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CertificateLineage:
    key: str
    record_id: Optional[int]
    certificates: List[IssuedCertificate] = field(default_factory=list)
    # approved/completed requests keyed to this lineage, issued or not
    request_ids: Set[int] = field(default_factory=set)

    @property
    def latest(self) -> IssuedCertificate:
        return max(self.certificates, key=_issued_sort_key)

    @property
    def latest_uploaded(self) -> Optional[IssuedCertificate]:
        uploaded = [c for c in self.certificates if c.status == CertificateStatus.UPLOADED]
        if not uploaded:
            return None
        return max(uploaded, key=_uploaded_sort_key)

    @property
    def issue_count(self) -> int:
        return len(self.certificates)

    @property
    def request_count(self) -> int:
        ids = set(self.request_ids)
        ids.update(
            c.request_id for c in self.certificates
            if c.request is not None and c.request.status in COUNTED_REQUEST_STATUSES
        )
        return len(ids)


def _when(dt: Optional[datetime]) -> datetime:
    return ensure_aware(dt) if dt is not None else _EPOCH


def _issued_sort_key(cert: IssuedCertificate) -> tuple:
    return (_when(cert.date_issued), cert.id or 0)


def _uploaded_sort_key(cert: IssuedCertificate) -> tuple:
    return (_when(cert.uploaded_at or cert.date_issued), cert.id or 0)


def request_lineage_key(req: ServiceRequest) -> Optional[str]:
    if req.record_id is not None:
        return f"record:{req.record_id}"
    if req.category == RequestCategory.CERTIFICATE:
        return request_identity_key(req)
    return None


def lineage_key(cert: IssuedCertificate) -> str:
    """`record:<id>` when the request resolved to a record, else an identity key."""
    req = cert.request
    if req is not None:
        key = request_lineage_key(req)
        if key is not None:
            return key

    sac_type = (req.sacrament_type if req is not None else None) or infer_sacrament_type(cert.type)
    if sac_type is None:
        return f"OTHER|{normalize_name(cert.type)}|{normalize_name(cert.recipient_name)}"
    return identity_key(sac_type, [cert.recipient_name], None)


def group_certificates(
    certificates: Iterable[IssuedCertificate],
    requests: Iterable[ServiceRequest] = (),
) -> List[CertificateLineage]:
    """Group by lineage key; newest lineage first.

    `requests` are approved/completed certificate requests; each one that
    lands on an existing lineage counts towards its `request_count` even
    before anything is issued for it.
    """
    groups: Dict[str, CertificateLineage] = OrderedDict()
    for cert in certificates:
        key = lineage_key(cert)
        lineage = groups.get(key)
        if lineage is None:
            record_id = int(key.split(":", 1)[1]) if key.startswith("record:") else None
            lineage = groups[key] = CertificateLineage(key=key, record_id=record_id)
        lineage.certificates.append(cert)

    for req in requests:
        if req.status not in COUNTED_REQUEST_STATUSES:
            continue
        lineage = groups.get(request_lineage_key(req))
        if lineage is not None:
            lineage.request_ids.add(req.id)

    for lineage in groups.values():
        lineage.certificates.sort(key=_issued_sort_key, reverse=True)
    return sorted(groups.values(), key=lambda g: _issued_sort_key(g.latest), reverse=True)


def build_registry(
    db: Session,
    *,
    clock: Optional[Clock] = None,
    settings: Optional[Settings] = None,
) -> RegistryRead:
    clock = clock or parish_clock()
    now, threshold = clock.now(), reminder_threshold(settings)

    certificates = db.execute(select(IssuedCertificate)).unique().scalars().all()
    requests = db.execute(
        select(ServiceRequest).where(
            ServiceRequest.category == RequestCategory.CERTIFICATE,
            ServiceRequest.status.in_(COUNTED_REQUEST_STATUSES),
        )
    ).scalars().all()
    lineages = group_certificates(certificates, requests)

    def view(cert: Optional[IssuedCertificate]):
        return to_read(cert, now=now, threshold=threshold) if cert is not None else None

    pending = sum(1 for c in certificates if c.status == CertificateStatus.PENDING_UPLOAD)
    logger.debug("registry: %s certificates in %s lineages", len(certificates), len(lineages))
    return RegistryRead(
        pending_uploads=pending,
        completed_uploads=len(certificates) - pending,
        total_certificates=len(certificates),
        lineages=[
            CertificateLineageRead(
                key=g.key,
                record_id=g.record_id,
                latest=view(g.latest),
                latest_uploaded=view(g.latest_uploaded),
                issue_count=g.issue_count,
                request_count=g.request_count,
                certificates=[view(c) for c in g.certificates],
            )
            for g in lineages
        ],
    )
