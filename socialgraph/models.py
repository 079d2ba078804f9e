"""
SQLAlchemy ORM models backing the SQL document store.

Tables:
  accounts      profiles + embedded followers/following sequences
  posts         post body + embedded likes/comments sequences
  comments      comment body + embedded likes sequence
  notifications derived follow/like/comment events

Reference sequences are JSON arrays on the owning row and carry
no foreign keys: deleting an entity leaves dangling references behind, and
pruning them is the caller's job. Uniqueness of external_id, email and
username is enforced here by unique constraints.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from socialgraph.database import Base
from socialgraph.schemas import EntityKind

# MySQL/TiDB DATETIME truncates to whole seconds unless asked for microseconds
Timestamp = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")
RefId = String(36)
# Case-sensitive on MySQL/TiDB too, matching SQLite and the memory store
Handle = String(255).with_variant(mysql.VARCHAR(255, collation="utf8mb4_bin"), "mysql")


class _Timestamps:
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False)


class Account(_Timestamps, Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(RefId, primary_key=True)
    external_id: Mapped[str] = mapped_column(Handle, nullable=False)
    email: Mapped[str] = mapped_column(Handle, nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(Handle, nullable=False)
    # Opaque media-host URLs
    profile_picture: Mapped[str] = mapped_column(Text, nullable=False, default="")
    banner_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    followers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    following: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_accounts_external_id"),
        UniqueConstraint("email", name="uq_accounts_email"),
        UniqueConstraint("username", name="uq_accounts_username"),
    )


class Post(_Timestamps, Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(RefId, primary_key=True)
    user: Mapped[str] = mapped_column(RefId, nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    likes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    comments: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("idx_posts_user", "user"),
        Index("idx_posts_created", "created_at"),
    )


class Comment(_Timestamps, Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(RefId, primary_key=True)
    user: Mapped[str] = mapped_column(RefId, nullable=False)
    post: Mapped[str] = mapped_column(RefId, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    likes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("idx_comments_post", "post"),
        Index("idx_comments_user", "user"),
    )


class Notification(_Timestamps, Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(RefId, primary_key=True)
    from_user: Mapped[str] = mapped_column(RefId, nullable=False)
    to_user: Mapped[str] = mapped_column(RefId, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # 'follow' | 'like' | 'comment'
    post: Mapped[Optional[str]] = mapped_column(RefId)
    comment: Mapped[Optional[str]] = mapped_column(RefId)

    __table_args__ = (
        # Inbox lookup, newest first
        Index("idx_notifications_to", "to_user", "created_at"),
    )


MODELS: dict[EntityKind, type[Base]] = {
    EntityKind.ACCOUNT: Account,
    EntityKind.POST: Post,
    EntityKind.COMMENT: Comment,
    EntityKind.NOTIFICATION: Notification,
}
