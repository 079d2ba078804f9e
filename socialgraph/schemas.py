"""
Pydantic records and request schemas.

Records are what the engine hands back to callers; they serialise with
`model_dump(by_alias=True)` to the camelCase storage/wire shapes that the
HTTP layer, identity provider and media host rely on. Request schemas are
loose: field rules live in the validator, not here.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityKind(str, Enum):
    ACCOUNT = "account"
    POST = "post"
    COMMENT = "comment"
    NOTIFICATION = "notification"


class NotificationType(str, Enum):
    FOLLOW = "follow"
    LIKE = "like"
    COMMENT = "comment"


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ──────────────────────────── Records ─────────────────────────────────────

class Record(_Schema):
    id: str
    created_at: datetime
    updated_at: datetime


class AccountRecord(Record):
    external_id: str
    email: str
    first_name: str
    last_name: str
    username: str
    profile_picture: str = ""
    banner_image: str = ""
    bio: str = ""
    location: str = ""
    followers: list[str] = Field(default_factory=list)
    following: list[str] = Field(default_factory=list)


class PostRecord(Record):
    user: str
    content: Optional[str] = None
    image: str = ""
    likes: list[str] = Field(default_factory=list)
    comments: list[str] = Field(default_factory=list)


class CommentRecord(Record):
    user: str
    post: str
    content: str
    likes: list[str] = Field(default_factory=list)


class NotificationRecord(Record):
    from_user: str = Field(alias="from")
    to_user: str = Field(alias="to")
    type: NotificationType
    post: Optional[str] = None
    comment: Optional[str] = None


RECORD_TYPES: dict[EntityKind, type[Record]] = {
    EntityKind.ACCOUNT: AccountRecord,
    EntityKind.POST: PostRecord,
    EntityKind.COMMENT: CommentRecord,
    EntityKind.NOTIFICATION: NotificationRecord,
}


# ──────────────────────────── Requests ────────────────────────────────────

class AccountCreate(_Schema):
    external_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    profile_picture: Optional[str] = None
    banner_image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None


class AccountUpdate(_Schema):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    profile_picture: Optional[str] = None
    banner_image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None


class FollowRequest(_Schema):
    follower_id: str
    followee_id: str


class PostCreate(_Schema):
    user: Optional[str] = None
    content: Optional[str] = None
    # Opaque URL handed out by the media host
    image: Optional[str] = None


class LikeRequest(_Schema):
    user_id: str


class CommentCreate(_Schema):
    user_id: str
    content: Optional[str] = None
