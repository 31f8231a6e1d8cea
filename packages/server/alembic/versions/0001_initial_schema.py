"""Initial schema: tenants, catalog, quizzes, score grid, helps, sharing, audit, question bank.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-01 12:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, fk: str | None = None, **kwargs) -> sa.Column:
    args = [sa.ForeignKey(fk)] if fk else []
    return sa.Column(name, postgresql.UUID(as_uuid=True), *args, **kwargs)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _tenant() -> list[sa.Column]:
    return [
        _uuid("org_id", "organizations.id", nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
    ]


# Tables dropped in reverse order on downgrade
TABLES = [
    "organizations",
    "users",
    "memberships",
    "teams",
    "categories",
    "leagues",
    "quizzes",
    "team_aliases",
    "quiz_teams",
    "quiz_categories",
    "score_entries",
    "help_types",
    "help_usages",
    "share_tokens",
    "audit_logs",
    "questions",
    "question_options",
    "org_settings",
]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Tenants and accounts
    # -----------------------------------------------------------------------

    op.create_table(
        "organizations",
        _uuid("id", primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("subscription_plan", sa.Text(), nullable=False, server_default="free"),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("primary_color", sa.Text(), nullable=False, server_default="#5E35B1"),
        *_timestamps(),
        sa.CheckConstraint(
            "subscription_plan IN ('free', 'trial', 'premium')", name="ck_org_plan"
        ),
    )
    op.create_index("idx_organizations_name", "organizations", ["name"])
    # The expiry sweep and the reminder job both scan trials by end date
    op.create_index(
        "idx_organizations_trial_end",
        "organizations",
        ["trial_ends_at"],
        postgresql_where=sa.text("subscription_plan = 'trial'"),
    )

    op.create_table(
        "users",
        _uuid("id", primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("preferred_language", sa.Text(), nullable=False, server_default="sr"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    op.create_table(
        "memberships",
        _uuid("user_id", "users.id", primary_key=True),
        _uuid("org_id", "organizations.id", primary_key=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('owner', 'admin', 'user')", name="ck_membership_role"),
    )
    op.create_index("idx_memberships_org", "memberships", ["org_id"])
    # One owner per organization
    op.create_index(
        "uq_memberships_owner",
        "memberships",
        ["org_id"],
        unique=True,
        postgresql_where=sa.text("role = 'owner'"),
    )

    # -----------------------------------------------------------------------
    # 2. Catalog
    # -----------------------------------------------------------------------

    for table in ("teams", "categories", "leagues"):
        op.create_table(
            table,
            _uuid("id", primary_key=True),
            *_tenant(),
            sa.Column("name", sa.Text(), nullable=False),
            *_timestamps(),
        )
        op.create_index(f"idx_{table}_org_name", table, ["org_id", "name"])

    op.create_table(
        "help_types",
        _uuid("id", primary_key=True),
        *_tenant(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("behavior", sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "behavior IN ('double_score', 'marker_only')", name="ck_help_type_behavior"
        ),
    )
    op.create_index("idx_help_types_org", "help_types", ["org_id"])

    # -----------------------------------------------------------------------
    # 3. Quizzes and the score grid
    # -----------------------------------------------------------------------

    op.create_table(
        "quizzes",
        _uuid("id", primary_key=True),
        *_tenant(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.Text(), nullable=False, server_default="draft"),
        _uuid("league_id", "leagues.id", nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('draft', 'live', 'finished')", name="ck_quiz_status"),
    )
    op.create_index("idx_quizzes_org_date", "quizzes", ["org_id", sa.text("date DESC")])
    op.create_index("idx_quizzes_league", "quizzes", ["league_id"])
    # Monthly quiz limit counts by creation time
    op.create_index(
        "idx_quizzes_org_created",
        "quizzes",
        ["org_id", "created_at"],
        postgresql_where=sa.text("NOT is_deleted"),
    )

    op.create_table(
        "team_aliases",
        _uuid("id", primary_key=True),
        *_tenant(),
        _uuid("team_id", "teams.id", nullable=False),
        _uuid("quiz_id", "quizzes.id", nullable=True),
        sa.Column("alias", sa.Text(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "quiz_id", "alias", name="uq_team_alias"),
    )
    op.create_index("idx_team_aliases_team", "team_aliases", ["team_id"])

    for table, column, target in (
        ("quiz_teams", "team_id", "teams.id"),
        ("quiz_categories", "category_id", "categories.id"),
    ):
        op.create_table(
            table,
            _uuid("quiz_id", "quizzes.id", primary_key=True),
            _uuid(column, target, primary_key=True),
            _uuid("org_id", "organizations.id", nullable=False),
        )
        op.create_index(f"idx_{table}_org", table, ["org_id"])

    op.create_table(
        "score_entries",
        _uuid("id", primary_key=True),
        *_tenant(),
        _uuid("quiz_id", "quizzes.id", nullable=False),
        _uuid("team_id", "teams.id", nullable=False),
        _uuid("category_id", "categories.id", nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bonus_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "quiz_id", "team_id", "category_id", name="uq_score_entry"),
    )
    op.create_index("idx_score_entries_quiz", "score_entries", ["quiz_id"])
    op.create_index("idx_score_entries_team", "score_entries", ["team_id"])

    op.create_table(
        "help_usages",
        _uuid("id", primary_key=True),
        *_tenant(),
        _uuid("quiz_id", "quizzes.id", nullable=False),
        _uuid("team_id", "teams.id", nullable=False),
        _uuid("help_type_id", "help_types.id", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("org_id", "quiz_id", "team_id", "help_type_id", name="uq_help_usage"),
    )
    op.create_index("idx_help_usages_quiz", "help_usages", ["quiz_id"])

    # -----------------------------------------------------------------------
    # 4. Sharing and audit
    # -----------------------------------------------------------------------

    op.create_table(
        "share_tokens",
        _uuid("id", primary_key=True),
        _uuid("org_id", "organizations.id", nullable=False),
        _uuid("quiz_id", "quizzes.id", nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_share_tokens_token", "share_tokens", ["token"], unique=True)

    op.create_table(
        "audit_logs",
        _uuid("id", primary_key=True),
        _uuid("org_id", "organizations.id", nullable=False),
        _uuid("user_id", "users.id", nullable=True),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.Text(), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_audit_logs_org_time", "audit_logs", ["org_id", sa.text("created_at DESC")])

    # -----------------------------------------------------------------------
    # 5. Question bank and quiz defaults
    # -----------------------------------------------------------------------

    op.create_table(
        "questions",
        _uuid("id", primary_key=True),
        *_tenant(),
        _uuid("category_id", "categories.id", nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('open_answer', 'multiple_choice', 'true_false', 'matching')",
            name="ck_question_type",
        ),
    )
    op.create_index("idx_questions_org_category", "questions", ["org_id", "category_id", "order_index"])

    op.create_table(
        "question_options",
        _uuid("id", primary_key=True),
        _uuid("question_id", "questions.id", nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_key", sa.Text(), nullable=True),
    )
    op.create_index("idx_question_options_question", "question_options", ["question_id"])

    op.create_table(
        "org_settings",
        _uuid("id", primary_key=True),
        _uuid("org_id", "organizations.id", nullable=False, unique=True),
        sa.Column("default_categories_count", sa.Integer(), nullable=False, server_default="6"),
        sa.Column("default_questions_per_category", sa.Integer(), nullable=False, server_default="10"),
        *_timestamps(),
    )

    # -----------------------------------------------------------------------
    # 6. Audit immutability trigger
    # -----------------------------------------------------------------------

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_audit_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Audit log entries are immutable. UPDATE and DELETE are not permitted.';
        END;
        $$ LANGUAGE plpgsql
    """)
    op.execute("""
        CREATE TRIGGER audit_logs_immutable
        BEFORE UPDATE OR DELETE ON audit_logs
        FOR EACH ROW EXECUTE FUNCTION prevent_audit_mutation()
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS audit_logs_immutable ON audit_logs")
    op.execute("DROP FUNCTION IF EXISTS prevent_audit_mutation()")

    for table in reversed(TABLES):
        op.drop_table(table)
