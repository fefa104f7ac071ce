"""parish office init: service requests, sacrament register, issued certificates

Revision ID: 5a1c0e7d2b90
Revises:
Create Date: 2025-11-03 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5a1c0e7d2b90"
down_revision = None
branch_labels = None
depends_on = None

SACRAMENT_TYPES = ("BAPTISM", "CONFIRMATION", "MARRIAGE", "FUNERAL")


def upgrade() -> None:
    bind = op.get_bind()

    sacrament_type = sa.Enum(*SACRAMENT_TYPES, name="sacrament_record_type")
    request_category = sa.Enum("SACRAMENT", "CERTIFICATE", name="request_category")
    request_status = sa.Enum(
        "PENDING", "APPROVED", "SCHEDULED", "COMPLETED", "REJECTED", name="request_status"
    )
    delivery_method = sa.Enum("PICKUP", "EMAIL", "COURIER", name="delivery_method")
    certificate_status = sa.Enum("PENDING_UPLOAD", "UPLOADED", name="certificate_status")
    for enum_type in (sacrament_type, request_category, request_status, delivery_method, certificate_status):
        enum_type.create(bind, checkfirst=True)

    # Types already exist; columns must not try to create them again.
    def existing(enum_type):
        if bind.dialect.name != "postgresql":
            return enum_type
        return postgresql.ENUM(*enum_type.enums, name=enum_type.name, create_type=False)

    op.create_table(
        "service_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category", existing(request_category), nullable=False),
        sa.Column("service_type", sa.String(length=120), nullable=False),
        sa.Column("sacrament_type", existing(sacrament_type), nullable=True),
        sa.Column("requester_name", sa.String(length=200), nullable=False),
        sa.Column("contact_info", sa.String(length=200), nullable=False),
        sa.Column("preferred_date", sa.String(length=100), nullable=True),
        sa.Column("details", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("confirmation_candidate_name", sa.String(length=200), nullable=True),
        sa.Column("confirmation_candidate_birth_date", sa.Date(), nullable=True),
        sa.Column("funeral_deceased_name", sa.String(length=200), nullable=True),
        sa.Column("funeral_residence", sa.String(length=255), nullable=True),
        sa.Column("funeral_date_of_death", sa.Date(), nullable=True),
        sa.Column("funeral_place_of_burial", sa.String(length=255), nullable=True),
        sa.Column("marriage_groom_name", sa.String(length=200), nullable=True),
        sa.Column("marriage_bride_name", sa.String(length=200), nullable=True),
        sa.Column("marriage_date", sa.Date(), nullable=True),
        sa.Column("certificate_recipient_name", sa.String(length=200), nullable=True),
        sa.Column("certificate_recipient_birth_date", sa.Date(), nullable=True),
        sa.Column("certificate_recipient_death_date", sa.Date(), nullable=True),
        sa.Column("requester_relationship", sa.String(length=100), nullable=True),
        sa.Column("reissue_reason", sa.Text(), nullable=True),
        sa.Column("is_reissue", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", existing(request_status), nullable=False, server_default="PENDING"),
        sa.Column("submission_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("confirmed_schedule", sa.String(length=100), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("record_id", sa.Integer(), nullable=True),
    )
    op.create_index("ix_service_requests_id", "service_requests", ["id"])
    op.create_index("ix_service_requests_category", "service_requests", ["category"])
    op.create_index("ix_service_requests_sacrament_type", "service_requests", ["sacrament_type"])
    op.create_index("ix_service_requests_status", "service_requests", ["status"])
    op.create_index("ix_service_requests_record_id", "service_requests", ["record_id"])

    op.create_table(
        "sacrament_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", existing(sacrament_type), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("officiant", sa.String(length=200), nullable=False),
        sa.Column("details", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("father_name", sa.String(length=200), nullable=True),
        sa.Column("mother_name", sa.String(length=200), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("birth_place", sa.String(length=200), nullable=True),
        sa.Column("baptism_date", sa.Date(), nullable=True),
        sa.Column("baptism_place", sa.String(length=200), nullable=True),
        sa.Column("sponsors", sa.Text(), nullable=True),
        sa.Column("register_book", sa.String(length=20), nullable=True),
        sa.Column("register_page", sa.String(length=20), nullable=True),
        sa.Column("register_line", sa.String(length=20), nullable=True),
        sa.Column("residence", sa.String(length=255), nullable=True),
        sa.Column("date_of_death", sa.Date(), nullable=True),
        sa.Column("cause_of_death", sa.String(length=255), nullable=True),
        sa.Column("place_of_burial", sa.String(length=255), nullable=True),
        sa.Column("groom_name", sa.String(length=200), nullable=True),
        sa.Column("bride_name", sa.String(length=200), nullable=True),
        sa.Column("groom_age", sa.String(length=10), nullable=True),
        sa.Column("bride_age", sa.String(length=10), nullable=True),
        sa.Column("groom_residence", sa.String(length=255), nullable=True),
        sa.Column("bride_residence", sa.String(length=255), nullable=True),
        sa.Column("groom_nationality", sa.String(length=100), nullable=True),
        sa.Column("bride_nationality", sa.String(length=100), nullable=True),
        sa.Column("groom_father_name", sa.String(length=200), nullable=True),
        sa.Column("bride_father_name", sa.String(length=200), nullable=True),
        sa.Column("groom_mother_name", sa.String(length=200), nullable=True),
        sa.Column("bride_mother_name", sa.String(length=200), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_by", sa.String(length=100), nullable=True),
        sa.Column("archive_reason", sa.Text(), nullable=True),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("service_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_sacrament_records_id", "sacrament_records", ["id"])
    op.create_index("ix_sacrament_records_type", "sacrament_records", ["type"])
    op.create_index("ix_sacrament_records_name", "sacrament_records", ["name"])
    op.create_index("ix_sacrament_records_date", "sacrament_records", ["date"])
    op.create_index("ix_sacrament_records_is_archived", "sacrament_records", ["is_archived"])
    op.create_index("ix_sacrament_records_request_id", "sacrament_records", ["request_id"])

    op.create_table(
        "issued_certificates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("service_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=120), nullable=False),
        sa.Column("recipient_name", sa.String(length=255), nullable=False),
        sa.Column("requester_name", sa.String(length=200), nullable=False),
        sa.Column("date_issued", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("issued_by", sa.String(length=100), nullable=False),
        sa.Column("delivery_method", existing(delivery_method), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", existing(certificate_status), nullable=False, server_default="PENDING_UPLOAD"),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_mime_type", sa.String(length=100), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("file_data", sa.LargeBinary(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("uploaded_by", sa.String(length=100), nullable=True),
        sa.UniqueConstraint("request_id", name="uq_issued_certificates_request_id"),
    )
    op.create_index("ix_issued_certificates_id", "issued_certificates", ["id"])
    op.create_index("ix_issued_certificates_request_id", "issued_certificates", ["request_id"])
    op.create_index("ix_issued_certificates_status", "issued_certificates", ["status"])


def downgrade() -> None:
    op.drop_index("ix_issued_certificates_status", table_name="issued_certificates")
    op.drop_index("ix_issued_certificates_request_id", table_name="issued_certificates")
    op.drop_index("ix_issued_certificates_id", table_name="issued_certificates")
    op.drop_table("issued_certificates")

    for ix in ("request_id", "is_archived", "date", "name", "type", "id"):
        op.drop_index(f"ix_sacrament_records_{ix}", table_name="sacrament_records")
    op.drop_table("sacrament_records")

    for ix in ("record_id", "status", "sacrament_type", "category", "id"):
        op.drop_index(f"ix_service_requests_{ix}", table_name="service_requests")
    op.drop_table("service_requests")

    bind = op.get_bind()
    for name in ("certificate_status", "delivery_method", "request_status", "request_category", "sacrament_record_type"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
