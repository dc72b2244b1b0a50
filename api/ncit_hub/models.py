from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base


BLOG_STATUSES = ("draft", "pending", "published", "archived")
EVENT_STATUSES = ("upcoming", "ongoing", "completed", "cancelled")
REGISTRATION_STATUSES = ("registered", "attended", "cancelled")
USER_ROLES = ("user", "admin")


# ============================================================================
# PROFILES & AUTHENTICATION
# ============================================================================


class User(Base):
    """Profile for a portal member (student, faculty or admin)."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="user", index=True)  # "user" | "admin"
    department = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    bio = Column(Text, nullable=True)

    # Disabled profiles cannot log in or use existing tokens
    disabled = Column(Boolean, nullable=False, default=False, index=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships
    blogs = relationship(
        "Blog", back_populates="author", cascade="all, delete-orphan"
    )
    events = relationship(
        "Event", back_populates="organizer", cascade="all, delete-orphan"
    )
    comments = relationship(
        "Comment", back_populates="author", cascade="all, delete-orphan"
    )
    registrations = relationship(
        "EventRegistration", back_populates="user", cascade="all, delete-orphan"
    )
    notifications = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )
    blog_likes = relationship("BlogLike", cascade="all, delete-orphan")
    comment_likes = relationship("CommentLike", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", cascade="all, delete-orphan")
    auth_identities = relationship(
        "AuthIdentity", back_populates="user", cascade="all, delete-orphan"
    )
    refresh_tokens = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthIdentity(Base):
    """Password credential for a profile."""

    __tablename__ = "auth_identities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider = Column(String(50), nullable=False, default="password")
    provider_user_id = Column(String(255), nullable=False, index=True)  # lowercased email
    secret_hash = Column(String(255), nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    user = relationship("User", back_populates="auth_identities")

    __table_args__ = (
        UniqueConstraint(
            "provider", "provider_user_id", name="uq_auth_identity_provider_user"
        ),
    )


class RefreshToken(Base):
    """Refresh token for JWT authentication."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user = relationship("User", back_populates="refresh_tokens")


# ============================================================================
# BLOGS
# ============================================================================


class Category(Base):
    """Category shared by blogs and events."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=False, default="#3b82f6")

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Blog(Base):
    """Markdown blog post with a moderation status."""

    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    author_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    featured_image = Column(String(500), nullable=True)

    # draft | pending | published | archived. Plain column, no transition guard.
    status = Column(String(20), nullable=False, default="draft", index=True)
    rejection_reason = Column(Text, nullable=True)

    # Maintained by the counter functions in services.counters
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    author = relationship("User", back_populates="blogs")
    category = relationship("Category")
    comments = relationship(
        "Comment", back_populates="blog", cascade="all, delete-orphan"
    )
    like_rows = relationship("BlogLike", cascade="all, delete-orphan")
    bookmark_rows = relationship("Bookmark", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_blogs_status_created", status, created_at.desc()),
    )


class BlogLike(Base):
    """A single user's like on a blog."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    blog_id = Column(
        Integer, ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "blog_id", name="uq_likes_user_blog"),
    )


class Bookmark(Base):
    """Blog saved by a user for later reading."""

    __tablename__ = "bookmarks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    blog_id = Column(
        Integer, ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    blog = relationship("Blog", viewonly=True)

    __table_args__ = (
        UniqueConstraint("user_id", "blog_id", name="uq_bookmarks_user_blog"),
    )


class Comment(Base):
    """Comment on a blog. Replies reference a top-level comment via parent_id."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    blog_id = Column(
        Integer, ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    content = Column(Text, nullable=False)

    is_edited = Column(Boolean, nullable=False, default=False)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships
    blog = relationship("Blog", back_populates="comments")
    author = relationship("User", back_populates="comments")
    children = relationship(
        "Comment", cascade="all, delete-orphan"
    )
    like_rows = relationship("CommentLike", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_comments_blog_created", blog_id, created_at),
    )


class CommentLike(Base):
    """A single user's like on a comment."""

    __tablename__ = "comment_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comment_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", name="uq_comment_likes_user_comment"),
    )


# ============================================================================
# EVENTS
# ============================================================================


class Event(Base):
    """Campus event with optional participant capacity."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    organizer_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )

    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)  # multi-day events
    location = Column(String(300), nullable=False)

    # Capacity. current_participants changes only through the counter functions.
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, nullable=False, default=0)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)

    images = Column(JSON, nullable=False, default=list)
    featured_image = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="upcoming", index=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships
    organizer = relationship("User", back_populates="events")
    category = relationship("Category")
    registrations = relationship(
        "EventRegistration", back_populates="event", cascade="all, delete-orphan"
    )


class EventRegistration(Base):
    """One user's registration for one event. Deleted on cancellation."""

    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    registration_date = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    status = Column(String(20), nullable=False, default="registered")
    reminded_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_event_registration_user_event"),
    )


# ============================================================================
# NOTIFICATIONS, TOGGLES & AUDIT
# ============================================================================


class Notification(Base):
    """In-app notification addressed to one profile."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("ix_notifications_user_read", user_id, is_read),
    )


class FeatureToggle(Base):
    """Site-wide on/off switch for a feature."""

    __tablename__ = "feature_toggles"

    feature = Column(String(100), primary_key=True)
    description = Column(Text, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=True, server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(
        Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )


class AuditLog(Base):
    """Audit log for admin actions."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )

    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(20), nullable=True)
    target_id = Column(String(50), nullable=True, index=True)
    note = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    __table_args__ = (
        Index("ix_audit_logs_actor_created", actor_id, created_at.desc()),
    )
