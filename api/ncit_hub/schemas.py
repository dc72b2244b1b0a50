from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BlogStatus = Literal["draft", "pending", "published", "archived"]
EventStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]
Role = Literal["user", "admin"]


# ============================================================================
# HEALTH
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


class ReadinessResponse(BaseModel):
    database: Literal["ok"] = "ok"
    redis: Literal["ok", "unavailable", "disabled"]


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# PROFILE SCHEMAS
# ============================================================================


class ProfileSummary(BaseModel):
    """Author/organizer shown alongside blogs, events and comments."""

    id: int
    full_name: str | None = None
    avatar_url: str | None = None
    role: Role = "user"

    model_config = ConfigDict(from_attributes=True)


class Profile(ProfileSummary):
    """Full profile (for the user themself or an admin)."""

    email: str
    department: str | None = None
    year: int | None = None
    bio: str | None = None
    disabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(None, max_length=200)
    avatar_url: str | None = Field(None, max_length=500)
    department: str | None = Field(None, max_length=100)
    year: int | None = Field(None, ge=1, le=10)
    bio: str | None = Field(None, max_length=2000)


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str | None = Field(None, max_length=200)


class LoginRequest(BaseModel):
    """User login request - email and password."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class TokenResponse(BaseModel):
    """Access + refresh token pair."""

    token: str
    refresh_token: str
    user_id: int
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    """Change password request."""

    current_password: str = Field(..., min_length=1, max_length=100)
    new_password: str = Field(..., min_length=8, max_length=100)


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class Category(BaseModel):
    id: int
    name: str
    description: str | None = None
    color: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: str | None = Field(None, max_length=1000)
    color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")


# ============================================================================
# BLOG SCHEMAS
# ============================================================================


class Blog(BaseModel):
    """Blog with author and category."""

    id: int
    title: str
    content: str
    excerpt: str | None = None
    author_id: int
    category_id: int | None = None
    tags: list[str] = []
    images: list[str] = []
    featured_image: str | None = None
    status: BlogStatus
    rejection_reason: str | None = None
    views: int = 0
    likes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    published_at: datetime | None = None
    author: ProfileSummary | None = None
    category: Category | None = None

    model_config = ConfigDict(from_attributes=True)


class BlogCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    category_id: int | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)
    images: list[str] = Field(default_factory=list, max_length=20)
    featured_image: str | None = Field(None, max_length=500)
    status: BlogStatus = "draft"


class BlogUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    category_id: int | None = None
    tags: list[str] | None = Field(None, max_length=20)
    images: list[str] | None = Field(None, max_length=20)
    featured_image: str | None = Field(None, max_length=500)
    status: BlogStatus | None = None


class RejectRequest(BaseModel):
    reason: str = Field("", max_length=2000)


class ViewCountResponse(BaseModel):
    views: int


class LikeResponse(BaseModel):
    liked: bool
    likes: int


class IdList(BaseModel):
    ids: list[int]


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class CommentRead(BaseModel):
    id: int
    blog_id: int
    author_id: int
    parent_id: int | None = None
    content: str
    is_edited: bool = False
    edited_at: datetime | None = None
    likes_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    author: ProfileSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentThread(CommentRead):
    """A comment with its replies, one level deep."""

    is_liked: bool = False
    replies: list[CommentThread] = Field(default_factory=list)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CountResponse(BaseModel):
    count: int


class CommentLikeResponse(BaseModel):
    comment_id: int
    likes_count: int
    liked: bool


# ============================================================================
# BOOKMARK SCHEMAS
# ============================================================================


class BookmarkStatus(BaseModel):
    blog_id: int
    bookmarked: bool
    count: int


# ============================================================================
# EVENT SCHEMAS
# ============================================================================


class Event(BaseModel):
    """Event with organizer and category."""

    id: int
    title: str
    slug: str
    description: str
    organizer_id: int
    category_id: int | None = None
    event_date: datetime
    end_date: datetime | None = None
    location: str
    max_participants: int | None = None
    current_participants: int = 0
    registration_deadline: datetime | None = None
    images: list[str] = []
    featured_image: str | None = None
    status: EventStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    organizer: ProfileSummary | None = None
    category: Category | None = None

    model_config = ConfigDict(from_attributes=True)


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category_id: int | None = None
    event_date: datetime
    end_date: datetime | None = None
    location: str = Field(..., min_length=1, max_length=300)
    max_participants: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    images: list[str] = Field(default_factory=list, max_length=20)
    featured_image: str | None = Field(None, max_length=500)
    status: EventStatus = "upcoming"


class EventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    category_id: int | None = None
    event_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = Field(None, min_length=1, max_length=300)
    max_participants: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    images: list[str] | None = Field(None, max_length=20)
    featured_image: str | None = Field(None, max_length=500)
    status: EventStatus | None = None


class Registration(BaseModel):
    id: int
    user_id: int
    event_id: int
    registration_date: datetime | None = None
    status: Literal["registered", "attended", "cancelled"]
    reminded_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationWithEvent(Registration):
    event: Event


class Participant(Registration):
    user: ProfileSummary


class RegistrationStatus(BaseModel):
    event_id: int
    registered: bool


class RemindersSent(BaseModel):
    sent: int


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


NotificationType = Literal[
    "blog_comment",
    "blog_like",
    "event_reminder",
    "registration_confirmation",
    "blog_published",
    "blog_approved",
    "blog_rejected",
    "blog_submitted",
]


class Notification(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    link: str | None = None
    is_read: bool
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationCreate(BaseModel):
    """Admin-issued notification."""

    user_id: int
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    link: str | None = Field(None, max_length=500)


class UnreadCountResponse(BaseModel):
    unread_count: int


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class RoleUpdate(BaseModel):
    role: Role


class DisabledUpdate(BaseModel):
    disabled: bool


class FeatureToggle(BaseModel):
    feature: str
    description: str | None = None
    is_enabled: bool
    updated_at: datetime | None = None
    updated_by: int | None = None

    model_config = ConfigDict(from_attributes=True)


class FeatureToggleUpdate(BaseModel):
    is_enabled: bool
    description: str | None = Field(None, max_length=1000)


class DashboardStats(BaseModel):
    total_users: int
    total_admins: int
    total_blogs: int
    blogs_by_status: dict[str, int]
    pending_reviews: int
    total_events: int
    upcoming_events: int
    total_registrations: int
    total_comments: int
