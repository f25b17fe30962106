"""initial COR tables

Revision ID: 0001_initial_cor_tables
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial_cor_tables"
down_revision = None
branch_labels = None
depends_on = None

# SQLAlchemy stores Python enum member names
ENUMS = {
    "cortype": ("OHS", "RTW"),
    "certificatestatus": ("ACTIVE", "EXPIRING", "EXPIRED", "REVOKED"),
    "audittype": ("CERTIFICATION", "MAINTENANCE", "RECERTIFICATION"),
    "auditstatus": ("SCHEDULED", "IN_PROGRESS", "COMPLETED", "PASSED", "FAILED"),
    "auditortype": ("INTERNAL", "EXTERNAL"),
    "auditorstatus": ("ACTIVE", "INACTIVE", "EXPIRED"),
    "deficiencyseverity": ("MINOR", "MAJOR", "CRITICAL"),
    "deficiencystatus": ("OPEN", "CLOSED"),
}


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def _enum(name: str):
    # cortype is shared by two tables; Postgres types are created once up front
    if _is_postgres():
        return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)
    return sa.Enum(*ENUMS[name], name=name)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    if _is_postgres():
        bind = op.get_bind()
        for name, labels in ENUMS.items():
            postgresql.ENUM(*labels, name=name).create(bind, checkfirst=True)

    op.create_table(
        "cor_auditors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("auditor_type", _enum("auditortype"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("certification_number", sa.String(100), nullable=True),
        sa.Column("certified_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recertification_due", sa.DateTime(timezone=True), nullable=True),
        sa.Column("training_hours", sa.Float(), nullable=False),
        sa.Column("audits_completed", sa.Integer(), nullable=False),
        sa.Column("last_audit_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", _enum("auditorstatus"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_cor_auditors_id", "cor_auditors", ["id"])
    op.create_index("ix_cor_auditors_organization_id", "cor_auditors", ["organization_id"])
    op.create_index("ix_cor_auditors_auditor_type", "cor_auditors", ["auditor_type"])
    op.create_index("ix_cor_auditors_name", "cor_auditors", ["name"])

    op.create_table(
        "cor_audits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("audit_number", sa.String(20), nullable=False),
        sa.Column("audit_type", _enum("audittype"), nullable=False),
        sa.Column("cor_type", _enum("cortype"), nullable=False),
        sa.Column("status", _enum("auditstatus"), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("overall_score", sa.Float(), nullable=True),
        sa.Column("element_scores", sa.JSON(), nullable=False),
        sa.Column("report_notes", sa.Text(), nullable=True),
        sa.Column(
            "lead_auditor_id", sa.Integer(),
            sa.ForeignKey("cor_auditors.id", ondelete="SET NULL"), nullable=True,
        ),
        # FK added once cor_certificates exists
        sa.Column("certificate_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("organization_id", "audit_number", name="uq_cor_audits_org_number"),
    )
    op.create_index("ix_cor_audits_id", "cor_audits", ["id"])
    op.create_index("ix_cor_audits_organization_id", "cor_audits", ["organization_id"])
    op.create_index("ix_cor_audits_audit_number", "cor_audits", ["audit_number"])
    op.create_index("ix_cor_audits_audit_type", "cor_audits", ["audit_type"])
    op.create_index("ix_cor_audits_status", "cor_audits", ["status"])
    op.create_index("ix_cor_audits_scheduled_date", "cor_audits", ["scheduled_date"])

    op.create_table(
        "cor_certificates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("cor_type", _enum("cortype"), nullable=False),
        sa.Column("certificate_number", sa.String(100), nullable=True),
        sa.Column("status", _enum("certificatestatus"), nullable=True),
        sa.Column("issue_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "certification_audit_id", sa.Integer(),
            sa.ForeignKey("cor_audits.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("revocation_reason", sa.Text(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_cor_certificates_id", "cor_certificates", ["id"])
    op.create_index("ix_cor_certificates_organization_id", "cor_certificates", ["organization_id"])
    op.create_index("ix_cor_certificates_cor_type", "cor_certificates", ["cor_type"])
    op.create_index("ix_cor_certificates_status", "cor_certificates", ["status"])
    op.create_index("ix_cor_certificates_issue_date", "cor_certificates", ["issue_date"])

    with op.batch_alter_table("cor_audits") as batch_op:
        batch_op.create_foreign_key(
            "fk_cor_audits_certificate_id", "cor_certificates",
            ["certificate_id"], ["id"], ondelete="SET NULL",
        )

    op.create_table(
        "cor_audit_sequences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.UniqueConstraint("organization_id", "year", name="uq_cor_audit_sequences_org_year"),
    )
    op.create_index("ix_cor_audit_sequences_id", "cor_audit_sequences", ["id"])

    op.create_table(
        "cor_deficiencies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column(
            "audit_id", sa.Integer(),
            sa.ForeignKey("cor_audits.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("element_id", sa.String(20), nullable=True),
        sa.Column("severity", _enum("deficiencyseverity"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("corrective_action", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("status", _enum("deficiencystatus"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closed_by", sa.String(255), nullable=True),
        sa.Column("closure_notes", sa.Text(), nullable=True),
        sa.Column("verified_by", sa.String(255), nullable=True),
        sa.Column("closed_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_cor_deficiencies_id", "cor_deficiencies", ["id"])
    op.create_index("ix_cor_deficiencies_organization_id", "cor_deficiencies", ["organization_id"])
    op.create_index("ix_cor_deficiencies_audit_id", "cor_deficiencies", ["audit_id"])
    op.create_index("ix_cor_deficiencies_severity", "cor_deficiencies", ["severity"])
    op.create_index("ix_cor_deficiencies_status", "cor_deficiencies", ["status"])
    op.create_index("ix_cor_deficiencies_due_date", "cor_deficiencies", ["due_date"])
    op.create_index("ix_cor_deficiencies_created_at", "cor_deficiencies", ["created_at"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
    )
    op.create_index("ix_activity_logs_id", "activity_logs", ["id"])
    op.create_index("ix_activity_logs_timestamp", "activity_logs", ["timestamp"])
    op.create_index("ix_activity_logs_organization_id", "activity_logs", ["organization_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_resource_type", "activity_logs", ["resource_type"])
    op.create_index("ix_activity_logs_resource_id", "activity_logs", ["resource_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("cor_deficiencies")
    op.drop_table("cor_audit_sequences")
    with op.batch_alter_table("cor_audits") as batch_op:
        batch_op.drop_constraint("fk_cor_audits_certificate_id", type_="foreignkey")
    op.drop_table("cor_certificates")
    op.drop_table("cor_audits")
    op.drop_table("cor_auditors")

    if _is_postgres():
        bind = op.get_bind()
        for name, labels in ENUMS.items():
            postgresql.ENUM(*labels, name=name).drop(bind, checkfirst=True)
