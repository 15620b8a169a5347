"""Study scheduler schema

Creates the vocabulary content tables and the SM-2 scheduling tables:
- vocabulary_sets / vocabulary_items: learner-owned collections
- review_states: SM-2 state per (owner, item), unique per pair
- study_sessions / session_cards: bounded review sessions

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ===========================================
    # Vocabulary content
    # ===========================================
    op.create_table(
        "vocabulary_sets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "vocabulary_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "set_id",
            sa.Integer(),
            sa.ForeignKey("vocabulary_sets.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("word", sa.String(200), nullable=False),
        sa.Column("translation", sa.String(500), nullable=False),
        sa.Column("pronunciation", sa.String(200), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # ===========================================
    # SM-2 review state
    # ===========================================
    op.create_table(
        "review_states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("vocabulary_items.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("ease_factor", sa.Float(), nullable=False, server_default="2.5"),
        sa.Column("interval", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("repetitions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("next_review_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("owner_id", "item_id", name="uq_review_states_owner_item"),
    )

    # Due-item lookups scan by owner ordered by next review date
    op.create_index(
        "ix_review_states_owner_next_review",
        "review_states",
        ["owner_id", "next_review_date"],
    )

    # ===========================================
    # Study sessions
    # ===========================================
    op.create_table(
        "study_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column(
            "collection_id",
            sa.Integer(),
            sa.ForeignKey("vocabulary_sets.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("total_cards", sa.Integer(), nullable=False),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "session_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("study_sessions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("vocabulary_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        # Review state as of session start
        sa.Column("initial_ease_factor", sa.Float(), nullable=False),
        sa.Column("initial_interval", sa.Integer(), nullable=False),
        sa.Column("initial_repetitions", sa.Integer(), nullable=False),
        sa.Column("initial_next_review_date", sa.DateTime(timezone=True), nullable=False),
        # Review state after the answer
        sa.Column("result_ease_factor", sa.Float(), nullable=True),
        sa.Column("result_interval", sa.Integer(), nullable=True),
        sa.Column("result_repetitions", sa.Integer(), nullable=True),
        sa.Column("result_next_review_date", sa.DateTime(timezone=True), nullable=True),
        # Answer
        sa.Column("was_correct", sa.Boolean(), nullable=True),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("session_id", "position", name="uq_session_cards_position"),
    )


def downgrade() -> None:
    op.drop_table("session_cards")
    op.drop_table("study_sessions")
    op.drop_index("ix_review_states_owner_next_review", table_name="review_states")
    op.drop_table("review_states")
    op.drop_table("vocabulary_items")
    op.drop_table("vocabulary_sets")
