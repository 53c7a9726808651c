"""
Plain records held by the client-side stores.

Records are immutable snapshots of remote rows. Stores swap records
rather than mutating them, so a reference taken before a refresh keeps
describing the old state.
"""
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .conf import blog_settings
from .models import PostStatus

CONTENT_FIELDS = ("title", "content", "excerpt", "cover_image", "category", "hashtags")
REVIEW_FIELDS = ("status", "published", "reviewed_by", "reviewed_at", "review_notes")


def normalize_hashtags(tags):
    """Strip tags, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for tag in tags or ():
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def _optional(value):
    if value in (None, ""):
        return None
    return str(value)


@dataclass(frozen=True)
class PostRecord:
    """Cached copy of a post row joined with its author and hashtags."""

    id: str
    title: str
    content: str
    excerpt: str
    author_id: str
    category: str
    status: str = PostStatus.PENDING.value
    published: bool = False
    hashtags: Tuple[str, ...] = ()
    cover_image: Optional[str] = None
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        author = row.get("author") or {}
        return cls(
            id=str(row["id"]),
            title=row["title"],
            content=row["content"],
            excerpt=row["excerpt"],
            author_id=str(row["author_id"]),
            category=row["category"],
            status=str(row.get("status") or PostStatus.PENDING),
            published=bool(row.get("published")),
            hashtags=normalize_hashtags(row.get("hashtags")),
            cover_image=_optional(row.get("cover_image")),
            author_name=author.get("name") or row.get("author_name"),
            author_role=author.get("role") or row.get("author_role"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            reviewed_by=_optional(row.get("reviewed_by")),
            reviewed_at=row.get("reviewed_at"),
            review_notes=_optional(row.get("review_notes")),
        )

    def as_row(self):
        """Return the record in the remote row shape."""
        row = dataclasses.asdict(self)
        row["hashtags"] = list(self.hashtags)
        row["author"] = {
            "name": row.pop("author_name"),
            "role": row.pop("author_role"),
        }
        return row

    def merge(self, **changes):
        """Return a copy with ``changes`` applied."""
        if "hashtags" in changes:
            changes["hashtags"] = normalize_hashtags(changes["hashtags"])
        return dataclasses.replace(self, **changes)

    @property
    def is_public(self):
        """Approved and published posts are visible to everyone."""
        return self.published and self.status == PostStatus.APPROVED

    @property
    def is_draft(self):
        return self.status == PostStatus.DRAFT

    def matches(self, term):
        """Case-insensitive match on title, excerpt and hashtags."""
        term = term.lower()
        return (
            term in self.title.lower()
            or term in self.excerpt.lower()
            or any(term in tag.lower() for tag in self.hashtags)
        )


@dataclass(frozen=True)
class Identity:
    """The signed-in user as the client knows it."""

    id: str
    email: str
    name: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    role: str = field(default_factory=lambda: blog_settings.DEFAULT_ROLE)
    is_admin: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_profile(cls, user, profile):
        """Build an identity from an auth user and a profile row."""
        return cls(
            id=str(user["id"]),
            email=user.get("email") or "",
            name=profile["name"],
            bio=_optional(profile.get("bio")),
            avatar=_optional(profile.get("avatar_url")),
            role=profile.get("role") or blog_settings.DEFAULT_ROLE,
            is_admin=bool(profile.get("is_admin")),
            created_at=profile.get("created_at"),
        )

    def as_dict(self):
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(**data)
