"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    UniqueConstraint,
)

# Named constraints so violations can be attributed and migrations stay stable
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# ============================================================================
# USERS TABLE
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("external_identity_ref", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("external_identity_ref"),
)

Index("idx_users_created_at_id", users_table.c.created_at, users_table.c.id)


# ============================================================================
# ROLES TABLE
# ============================================================================
roles_table = Table(
    "roles",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(80), nullable=False),
    # name normalised by the configured case policy; carries the uniqueness
    Column("name_key", String(80), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("name_key"),
)

Index("idx_roles_created_at_id", roles_table.c.created_at, roles_table.c.id)


# ============================================================================
# USER_ROLES TABLE (association)
# ============================================================================
user_roles_table = Table(
    "user_roles",
    metadata,
    Column(
        "user_id",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "role_id",
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("assigned_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("user_id", "role_id"),
)

Index("idx_user_roles_role_id", user_roles_table.c.role_id)
