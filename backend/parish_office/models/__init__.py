# parish_office/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py) so SQLAlchemy sees all
mapped classes before relationships are resolved.
"""
from parish_office.db import Base  # re-export Base

from .sacrament_record import SacramentRecord, SacramentType  # noqa: F401
from .service_request import (  # noqa: F401
    RequestCategory,
    RequestStatus,
    ServiceRequest,
    TERMINAL_STATUSES,
)
from .issued_certificate import (  # noqa: F401
    CertificateStatus,
    DeliveryMethod,
    IssuedCertificate,
)
