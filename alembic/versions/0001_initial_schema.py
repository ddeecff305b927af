"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("school", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "role IN ('teacher','admin')", name=op.f("ck_accounts_role_enum")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_accounts")),
    )
    op.create_index(op.f("ix_accounts_email"), "accounts", ["email"], unique=True)
    op.create_index(op.f("ix_accounts_id"), "accounts", ["id"], unique=False)

    op.create_table(
        "stations",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("qr_code", sa.String(length=32), nullable=False),
        sa.Column("educational_info", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("fun_facts", sa.JSON(), nullable=False),
        sa.Column("safety_tips", sa.JSON(), nullable=False),
        sa.Column("learning_objectives", sa.JSON(), nullable=False),
        sa.Column("age_group", sa.String(length=30), nullable=False),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("estimated_time", sa.Integer(), nullable=True),
        sa.Column("activity_type", sa.String(length=30), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "estimated_time IS NULL OR (estimated_time >= 1 AND estimated_time <= 60)",
            name=op.f("ck_stations_estimated_time_range"),
        ),
        sa.CheckConstraint(
            "max_participants >= 1", name=op.f("ck_stations_max_participants_min")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_stations")),
        sa.UniqueConstraint("qr_code", name=op.f("uq_stations_qr_code")),
    )

    op.create_table(
        "classes",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("teacher_id", ID_TYPE, nullable=False),
        sa.Column("class_code", sa.String(length=12), nullable=False),
        sa.Column("school", sa.String(length=255), nullable=False),
        sa.Column("grade", sa.String(length=50), nullable=False),
        sa.Column("student_count", sa.Integer(), nullable=False),
        sa.Column("class_picture", sa.String(length=500), nullable=True),
        sa.Column("description", sa.String(length=300), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_scan_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["teacher_id"],
            ["accounts.id"],
            name=op.f("fk_classes_teacher_id_accounts"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_classes")),
        sa.UniqueConstraint("class_code", name=op.f("uq_classes_class_code")),
    )
    op.create_index(op.f("ix_classes_teacher_id"), "classes", ["teacher_id"], unique=False)

    op.create_table(
        "class_scanned_stations",
        sa.Column("class_id", ID_TYPE, nullable=False),
        sa.Column("station_id", ID_TYPE, nullable=False),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name=op.f("fk_class_scanned_stations_class_id_classes"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["station_id"],
            ["stations.id"],
            name=op.f("fk_class_scanned_stations_station_id_stations"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "class_id", "station_id", name=op.f("pk_class_scanned_stations")
        ),
    )

    op.create_table(
        "scans",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("class_id", ID_TYPE, nullable=False),
        sa.Column("station_id", ID_TYPE, nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scanned_by_id", ID_TYPE, nullable=True),
        sa.Column("device_type", sa.String(length=50), nullable=True),
        sa.Column("device_browser", sa.String(length=100), nullable=True),
        sa.Column("device_ip", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name=op.f("fk_scans_class_id_classes"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["scanned_by_id"],
            ["accounts.id"],
            name=op.f("fk_scans_scanned_by_id_accounts"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["station_id"],
            ["stations.id"],
            name=op.f("fk_scans_station_id_stations"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_scans")),
        sa.UniqueConstraint("class_id", "station_id", name="uq_scan_class_station"),
    )
    op.create_index(op.f("ix_scans_class_id"), "scans", ["class_id"], unique=False)
    op.create_index(op.f("ix_scans_station_id"), "scans", ["station_id"], unique=False)
    op.create_index("ix_scans_scanned_at", "scans", ["scanned_at"], unique=False)

    op.create_table(
        "drawings",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("completion_time_factor", sa.Float(), nullable=True),
        sa.Column("stations_found_factor", sa.Float(), nullable=True),
        sa.Column("created_by_id", ID_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending','completed')", name=op.f("ck_drawings_status_enum")
        ),
        sa.ForeignKeyConstraint(
            ["created_by_id"],
            ["accounts.id"],
            name=op.f("fk_drawings_created_by_id_accounts"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_drawings")),
    )

    op.create_table(
        "drawing_eligible_classes",
        sa.Column("drawing_id", ID_TYPE, nullable=False),
        sa.Column("class_id", ID_TYPE, nullable=False),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name=op.f("fk_drawing_eligible_classes_class_id_classes"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["drawing_id"],
            ["drawings.id"],
            name=op.f("fk_drawing_eligible_classes_drawing_id_drawings"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "drawing_id", "class_id", name=op.f("pk_drawing_eligible_classes")
        ),
    )

    op.create_table(
        "drawing_winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("drawing_id", ID_TYPE, nullable=False),
        sa.Column("class_id", ID_TYPE, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("prize", sa.String(length=255), nullable=False),
        sa.Column("notified", sa.Boolean(), nullable=False),
        sa.Column("notified_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name=op.f("fk_drawing_winners_class_id_classes"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["drawing_id"],
            ["drawings.id"],
            name=op.f("fk_drawing_winners_drawing_id_drawings"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_drawing_winners")),
        sa.UniqueConstraint("drawing_id", "class_id", name="uq_drawing_winner_class"),
        sa.UniqueConstraint("drawing_id", "position", name="uq_drawing_winner_position"),
    )
    op.create_index(
        op.f("ix_drawing_winners_drawing_id"), "drawing_winners", ["drawing_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_drawing_winners_drawing_id"), table_name="drawing_winners")
    op.drop_table("drawing_winners")
    op.drop_table("drawing_eligible_classes")
    op.drop_table("drawings")
    op.drop_index("ix_scans_scanned_at", table_name="scans")
    op.drop_index(op.f("ix_scans_station_id"), table_name="scans")
    op.drop_index(op.f("ix_scans_class_id"), table_name="scans")
    op.drop_table("scans")
    op.drop_table("class_scanned_stations")
    op.drop_index(op.f("ix_classes_teacher_id"), table_name="classes")
    op.drop_table("classes")
    op.drop_table("stations")
    op.drop_index(op.f("ix_accounts_id"), table_name="accounts")
    op.drop_index(op.f("ix_accounts_email"), table_name="accounts")
    op.drop_table("accounts")
