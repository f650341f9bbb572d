"""League admin schema: users, matches, disputes, late cancellations, penalties, audit trail, notifications.

Revision ID: 001_league_admin
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "001_league_admin"
down_revision = None
branch_labels = None
depends_on = None

# Enum columns store member names, matching SQLModel's default sa.Enum mapping
USER_ROLE = sa.Enum("PLAYER", "ADMIN", name="userrole")
MATCH_STATUS = sa.Enum(
    "DRAFT", "SCHEDULED", "ONGOING", "COMPLETED", "UNFINISHED", "CANCELLED", "VOID", "WALKOVER",
    name="matchstatus",
)
TEAM_SIDE = sa.Enum("TEAM1", "TEAM2", name="teamside")
DISPUTE_STATUS = sa.Enum("OPEN", "IN_REVIEW", "RESOLVED", "CLOSED", name="disputestatus")
DISPUTE_PRIORITY = sa.Enum("LOW", "NORMAL", "HIGH", "URGENT", name="disputepriority")
DISPUTE_CATEGORY = sa.Enum("WRONG_SCORE", "NO_SHOW", "BEHAVIOR", "OTHER", name="disputecategory")
RESOLUTION_ACTION = sa.Enum(
    "UPHOLD_ORIGINAL", "UPHOLD_DISPUTER", "CUSTOM_SCORE", "VOID_MATCH", "AWARD_WALKOVER", "REQUEST_MORE_INFO",
    name="resolutionaction",
)
CANCELLATION_STATUS = sa.Enum("PENDING", "APPROVED", "DENIED", name="cancellationstatus")
PENALTY_TYPE = sa.Enum("WARNING", "POINTS_DEDUCTION", "SUSPENSION", "PERMANENT_BAN", name="penaltytype")
PENALTY_SEVERITY = sa.Enum("MINOR", "MODERATE", "MAJOR", "SEVERE", name="penaltyseverity")
ADMIN_ACTION_TYPE = sa.Enum(
    "EDIT_RESULT",
    "VOID_MATCH",
    "RESOLVE_DISPUTE",
    "APPROVE_LATE_CANCELLATION",
    "DENY_LATE_CANCELLATION",
    "APPLY_PENALTY",
    name="adminactiontype",
)
NOTIFICATION_STATUS = sa.Enum("PENDING", "SENT", "FAILED", name="notificationstatus")


def upgrade():
    # -----------------------------------------------------------------------
    # 1. user / match / match_participant
    # -----------------------------------------------------------------------
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_username", "user", ["username"], unique=True)

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("league_id", sa.Integer(), nullable=True),
        sa.Column("season_id", sa.Integer(), nullable=True),
        sa.Column("division_id", sa.Integer(), nullable=True),
        sa.Column("status", MATCH_STATUS, nullable=False),
        sa.Column("sets_to_win", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("team1_score", sa.Integer(), nullable=True),
        sa.Column("team2_score", sa.Integer(), nullable=True),
        sa.Column("set_scores", sa.JSON(), nullable=True),
        sa.Column("outcome", TEAM_SIDE, nullable=True),
        sa.Column("is_walkover", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("walkover_reason", sa.String(), nullable=True),
        sa.Column("is_disputed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("has_late_cancellation", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("admin_notes", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_match_league_id", "match", ["league_id"])
    op.create_index("ix_match_season_id", "match", ["season_id"])
    op.create_index("ix_match_division_id", "match", ["division_id"])
    op.create_index("ix_match_status", "match", ["status"])

    op.create_table(
        "matchparticipant",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("team", TEAM_SIDE, nullable=False),
        sa.UniqueConstraint("match_id", "user_id", name="uq_participant_match_user"),
    )
    op.create_index("ix_matchparticipant_match_id", "matchparticipant", ["match_id"])
    op.create_index("ix_matchparticipant_user_id", "matchparticipant", ["user_id"])

    # -----------------------------------------------------------------------
    # 2. dispute / dispute_note
    # -----------------------------------------------------------------------
    op.create_table(
        "dispute",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=False),
        sa.Column("raised_by_user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("category", DISPUTE_CATEGORY, nullable=False),
        sa.Column("priority", DISPUTE_PRIORITY, nullable=False),
        sa.Column("status", DISPUTE_STATUS, nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("disputer_score", sa.JSON(), nullable=True),
        sa.Column("resolution_action", RESOLUTION_ACTION, nullable=True),
        sa.Column("resolution_reason", sa.String(), nullable=True),
        sa.Column("final_score", sa.JSON(), nullable=True),
        sa.Column("reviewed_by_admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("resolved_by_admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_dispute_match_id", "dispute", ["match_id"])
    op.create_index("ix_dispute_status", "dispute", ["status"])
    # At most one OPEN/IN_REVIEW dispute per match
    op.create_index(
        "uq_dispute_active_match",
        "dispute",
        ["match_id"],
        unique=True,
        sqlite_where=sa.text("status IN ('OPEN', 'IN_REVIEW')"),
        postgresql_where=sa.text("status IN ('OPEN', 'IN_REVIEW')"),
    )

    op.create_table(
        "dispute_note",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dispute_id", sa.Integer(), sa.ForeignKey("dispute.id"), nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("note", sa.String(), nullable=False),
        sa.Column("is_internal_only", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_dispute_note_dispute_id", "dispute_note", ["dispute_id"])

    # -----------------------------------------------------------------------
    # 3. penalty / late_cancellation
    # -----------------------------------------------------------------------
    op.create_table(
        "penalty",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("issued_by_admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("penalty_type", PENALTY_TYPE, nullable=False),
        sa.Column("severity", PENALTY_SEVERITY, nullable=False),
        sa.Column("points_deducted", sa.Integer(), nullable=True),
        sa.Column("suspension_days", sa.Integer(), nullable=True),
        sa.Column("suspension_ends_at", sa.DateTime(), nullable=True),
        sa.Column("related_match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=True),
        sa.Column("related_dispute_id", sa.Integer(), sa.ForeignKey("dispute.id"), nullable=True),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("evidence_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_penalty_user_id", "penalty", ["user_id"])

    op.create_table(
        "late_cancellation",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=False, unique=True),
        sa.Column("cancelled_by_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("status", CANCELLATION_STATUS, nullable=False),
        sa.Column("cancellation_reason", sa.String(), nullable=True),
        sa.Column("reviewed_by_admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("review_reason", sa.String(), nullable=True),
        sa.Column("penalty_id", sa.Integer(), sa.ForeignKey("penalty.id"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_late_cancellation_status", "late_cancellation", ["status"])

    # -----------------------------------------------------------------------
    # 4. match_admin_action (audit trail) / notification (outbox)
    # -----------------------------------------------------------------------
    op.create_table(
        "match_admin_action",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("action_type", ADMIN_ACTION_TYPE, nullable=False),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("affected_user_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_match_admin_action_match_id", "match_admin_action", ["match_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("match.id"), nullable=True),
        sa.Column("status", NOTIFICATION_STATUS, nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_notification_user_id", "notification", ["user_id"])
    op.create_index("ix_notification_status", "notification", ["status"])


def downgrade():
    op.drop_table("notification")
    op.drop_table("match_admin_action")
    op.drop_table("late_cancellation")
    op.drop_table("penalty")
    op.drop_table("dispute_note")
    op.drop_index("uq_dispute_active_match", table_name="dispute")
    op.drop_table("dispute")
    op.drop_table("matchparticipant")
    op.drop_table("match")
    op.drop_table("user")
