"""Initial PatrolGate schema."""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create repository tables and the patrol lease table."""
    changetype = sa.Enum("EDIT", "NEW", "LOG", "EXTERNAL", name="changetype")

    op.create_table(
        "pages",
        sa.Column("page_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False, unique=True),
        sa.Column("latest_revision_id", sa.Integer(), nullable=True),
    )

    op.create_table(
        "revisions",
        sa.Column("revision_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "page_id",
            sa.Integer(),
            sa.ForeignKey("pages.page_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parent_revision_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("flags", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_revisions_page", "revisions", ["page_id", "revision_id"])

    op.create_table(
        "changes",
        sa.Column("change_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "page_id",
            sa.Integer(),
            sa.ForeignKey("pages.page_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("change_type", changetype, nullable=False),
        sa.Column("is_bot", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("patrolled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("patrolled_by", sa.String(length=255), nullable=True),
        sa.Column("previous_revision_id", sa.Integer(), nullable=True),
        sa.Column("revision_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_changes_patrol_queue",
        "changes",
        ["patrolled", "is_bot", "change_type", "change_id"],
    )

    op.create_table(
        "reviewers",
        sa.Column("reviewer_id", sa.String(length=255), primary_key=True),
        sa.Column("can_patrol", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    # One row per claimed change; the primary key makes a claim exclusive
    op.create_table(
        "patrol_leases",
        sa.Column("change_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_patrol_leases_claimed", "patrol_leases", ["claimed_at"])


def downgrade() -> None:
    """Drop PatrolGate tables."""
    op.drop_index("idx_patrol_leases_claimed", table_name="patrol_leases")
    op.drop_table("patrol_leases")
    op.drop_table("reviewers")
    op.drop_index("idx_changes_patrol_queue", table_name="changes")
    op.drop_table("changes")
    op.drop_index("idx_revisions_page", table_name="revisions")
    op.drop_table("revisions")
    op.drop_table("pages")
    sa.Enum(name="changetype").drop(op.get_bind(), checkfirst=True)
