"""add_match_moderation

Revision ID: 002_match_moderation
Revises: 001_league_admin
Create Date: 2026-10-18 12:00:00

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_match_moderation"
down_revision = "001_league_admin"
branch_labels = None
depends_on = None

MATCH_REPORT_CATEGORY = sa.Enum(
    "FAKE_MATCH",
    "RATING_MANIPULATION",
    "INAPPROPRIATE_CONTENT",
    "HARASSMENT",
    "SPAM",
    "OTHER",
    name="matchreportcategory",
)

_OLD_ACTIONS = (
    "EDIT_RESULT",
    "VOID_MATCH",
    "RESOLVE_DISPUTE",
    "APPROVE_LATE_CANCELLATION",
    "DENY_LATE_CANCELLATION",
    "APPLY_PENALTY",
)
_NEW_ACTIONS = (
    "CONVERT_TO_WALKOVER",
    "HIDE_MATCH",
    "UNHIDE_MATCH",
    "REPORT_ABUSE",
    "CLEAR_REPORT",
    "MESSAGE_PARTICIPANTS",
)


def upgrade():
    bind = op.get_bind()
    MATCH_REPORT_CATEGORY.create(bind, checkfirst=True)

    if bind.dialect.name == "postgresql":
        for value in _NEW_ACTIONS:
            op.execute(f"ALTER TYPE adminactiontype ADD VALUE IF NOT EXISTS '{value}'")
    else:
        with op.batch_alter_table("match_admin_action", schema=None) as batch_op:
            batch_op.alter_column(
                "action_type",
                existing_type=sa.Enum(*_OLD_ACTIONS, name="adminactiontype"),
                type_=sa.Enum(*(_OLD_ACTIONS + _NEW_ACTIONS), name="adminactiontype"),
                existing_nullable=False,
            )

    with op.batch_alter_table("match", schema=None) as batch_op:
        batch_op.add_column(
            sa.Column("is_hidden_from_public", sa.Boolean(), nullable=False, server_default=sa.text("false"))
        )
        batch_op.add_column(sa.Column("hidden_at", sa.DateTime(), nullable=True))
        batch_op.add_column(sa.Column("hidden_by_admin_id", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("hidden_reason", sa.String(), nullable=True))
        batch_op.add_column(
            sa.Column("is_reported_for_abuse", sa.Boolean(), nullable=False, server_default=sa.text("false"))
        )
        batch_op.add_column(sa.Column("reported_at", sa.DateTime(), nullable=True))
        batch_op.add_column(sa.Column("reported_by_admin_id", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("report_reason", sa.String(), nullable=True))
        batch_op.add_column(sa.Column("report_category", MATCH_REPORT_CATEGORY, nullable=True))
        batch_op.create_foreign_key("fk_match_hidden_by_admin", "user", ["hidden_by_admin_id"], ["id"])
        batch_op.create_foreign_key("fk_match_reported_by_admin", "user", ["reported_by_admin_id"], ["id"])
        batch_op.create_index("ix_match_is_hidden_from_public", ["is_hidden_from_public"])
        batch_op.create_index("ix_match_is_reported_for_abuse", ["is_reported_for_abuse"])


def downgrade():
    with op.batch_alter_table("match", schema=None) as batch_op:
        batch_op.drop_index("ix_match_is_reported_for_abuse")
        batch_op.drop_index("ix_match_is_hidden_from_public")
        batch_op.drop_constraint("fk_match_reported_by_admin", type_="foreignkey")
        batch_op.drop_constraint("fk_match_hidden_by_admin", type_="foreignkey")
        batch_op.drop_column("report_category")
        batch_op.drop_column("report_reason")
        batch_op.drop_column("reported_by_admin_id")
        batch_op.drop_column("reported_at")
        batch_op.drop_column("is_reported_for_abuse")
        batch_op.drop_column("hidden_reason")
        batch_op.drop_column("hidden_by_admin_id")
        batch_op.drop_column("hidden_at")
        batch_op.drop_column("is_hidden_from_public")

    MATCH_REPORT_CATEGORY.drop(op.get_bind(), checkfirst=True)
    # PostgreSQL cannot drop enum values; the extra adminactiontype labels stay.
