from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "2026_10_01_create_listing_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("avatar_url", sa.String(1024), nullable=False),
        sa.Column("is_banned", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("remember_token", sa.String(255), nullable=True),
        sa.Column("remember_token_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_remember_token", "users", ["remember_token"])

    op.create_table(
        "agents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("agency", sa.String(255), nullable=True),
        sa.Column("agency_img", sa.String(1024), nullable=True),
    )
    op.create_index("ix_agents_email", "agents", ["email"])

    op.create_table(
        "properties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Float, nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("images", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("bedrooms", sa.Integer, nullable=True),
        sa.Column("bathrooms", sa.Integer, nullable=True),
        sa.Column("area", sa.Float, nullable=True),
        sa.Column("kind", sa.String(4), nullable=False),
        sa.Column("transaction_type", sa.String(4), nullable=False),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("agent_id", sa.String(36), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(6), nullable=False, server_default="active"),
        sa.Column("waiting_status", sa.String(8), nullable=False, server_default="waiting"),
        sa.Column("amenities", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_properties_agent_id", "properties", ["agent_id"])
    op.create_index("ix_properties_user_id", "properties", ["user_id"])
    op.create_index("ix_properties_created_at", "properties", ["created_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("property_id", sa.String(36), nullable=False),
        sa.Column("sender_name", sa.String(255), nullable=False),
        sa.Column("sender_phone", sa.String(50), nullable=False),
        sa.Column("sender_email", sa.String(255), nullable=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("recipient_user_id", sa.String(36), nullable=False),
        sa.Column("recipient_name", sa.String(255), nullable=True),
        sa.Column("recipient_phone", sa.String(50), nullable=True),
        sa.Column("recipient_email", sa.String(255), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_messages_property_id", "messages", ["property_id"])
    op.create_index("ix_messages_sender_email", "messages", ["sender_email"])
    op.create_index("ix_messages_recipient_user_id", "messages", ["recipient_user_id"])


def downgrade():
    op.drop_table("messages")
    op.drop_table("properties")
    op.drop_table("agents")
    op.drop_table("users")
