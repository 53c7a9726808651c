"""
Post store for community_blog.

The store is the client's single in-memory copy of posts and drafts.
Every mutation goes intent -> remote call -> reconciliation: the remote
write happens first and the cache is updated from the canonical row the
remote store returns. Content edits are applied optimistically and
rolled back on failure; moderation transitions never are.

The cache is replaced wholesale by ``fetch_all``; callers must re-read
after a refresh rather than hold on to records.
"""
import logging

from django.dispatch import Signal
from django.utils import timezone

from ..conf import blog_settings
from ..exceptions import (
    AuthError,
    BlogError,
    NotFoundError,
    RemoteError,
    TransitionError,
    ValidationError,
)
from ..models import PostStatus
from ..records import CONTENT_FIELDS, REVIEW_FIELDS, PostRecord, normalize_hashtags

logger = logging.getLogger(__name__)

# Cache change actions sent with ``PostStore.changed``
HYDRATE = "hydrate"
REPLACE = "replace"
INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

REVIEW_TRANSITIONS = {
    (PostStatus.PENDING.value, PostStatus.APPROVED.value),
    (PostStatus.PENDING.value, PostStatus.REJECTED.value),
}
RESUBMIT_FROM = (PostStatus.APPROVED, PostStatus.REJECTED)
REQUIRED_FIELDS = (
    ("title", "Title is required"),
    ("content", "Content is required"),
    ("excerpt", "Excerpt is required"),
)


def _newest_first(records):
    return sorted(
        records,
        key=lambda record: (record.created_at is not None, record.created_at),
        reverse=True,
    )


def clean_post_fields(fields):
    """
    Validate and normalize content fields.

    Only the keys present in ``fields`` are checked, so the same rules
    serve both creation and partial updates.
    """
    cleaned = {}
    for name, message in REQUIRED_FIELDS:
        if name not in fields:
            continue
        value = fields[name] or ""
        if not value.strip():
            raise ValidationError(message, details={"field": name})
        cleaned[name] = value if name == "content" else value.strip()

    if "category" in fields:
        category = fields["category"] or blog_settings.DEFAULT_CATEGORY
        if category not in blog_settings.CATEGORY_NAMES:
            raise ValidationError(
                f"Unknown category: {category}",
                details={"field": "category"},
            )
        cleaned["category"] = category

    if "cover_image" in fields:
        cleaned["cover_image"] = (fields["cover_image"] or "").strip() or None

    if "hashtags" in fields:
        cleaned["hashtags"] = normalize_hashtags(fields["hashtags"])
    return cleaned


class PostStore:
    """
    In-memory cache of posts, synchronized with the remote data service.

    Subscribers connect to ``changed``; it is sent with ``action`` (one of
    hydrate, replace, insert, update, delete) and ``post_id`` after every
    cache change.
    """

    def __init__(self, remote, session, local_state):
        self.remote = remote
        self.session = session
        self.local_state = local_state
        self.changed = Signal()
        self.is_provisional = False
        self._posts = {}
        self._generation = 0

    # Cache plumbing

    def _commit(self, posts, action, post_id=None):
        self._posts = posts
        self.local_state.save(
            blog_settings.POSTS_STORAGE_KEY,
            [record.as_row() for record in _newest_first(posts.values())],
        )
        self.changed.send(sender=self, action=action, post_id=post_id)

    def _put(self, record, action):
        posts = dict(self._posts)
        posts[record.id] = record
        self._commit(posts, action, record.id)

    def hydrate(self):
        """Load the last persisted cache. The data is provisional."""
        rows = self.local_state.load(blog_settings.POSTS_STORAGE_KEY) or []
        self._posts = {str(row["id"]): PostRecord.from_row(row) for row in rows}
        self.is_provisional = True
        self.changed.send(sender=self, action=HYDRATE, post_id=None)
        logger.debug("Hydrated %d cached posts", len(self._posts))
        return len(self._posts)

    def close(self):
        """Discard the result of any fetch still in flight."""
        self._generation += 1

    def fetch_all(self):
        """
        Replace the cache with every post visible to the session.

        On failure the cache is left as it was and the error propagates.
        """
        generation = self._generation
        rows = self.remote.select_posts()
        if generation != self._generation:
            logger.info("Discarding %d posts fetched after the store was closed", len(rows))
            return None
        posts = {}
        for row in rows:
            record = PostRecord.from_row(row)
            posts[record.id] = record
        self.is_provisional = False
        self._commit(posts, REPLACE)
        logger.debug("Fetched %d posts", len(posts))
        return self.all()

    # Reads

    def all(self):
        return _newest_first(self._posts.values())

    @property
    def posts(self):
        """Submitted posts (everything except drafts), newest first."""
        return [record for record in self.all() if not record.is_draft]

    @property
    def drafts(self):
        return [record for record in self.all() if record.is_draft]

    def get_by_id(self, post_id):
        """Return the cached record, or None. Never fetches."""
        return self._posts.get(str(post_id))

    def published(self):
        return [record for record in self.posts if record.is_public]

    def by_author(self, author_id):
        return [record for record in self.published() if record.author_id == str(author_id)]

    def by_category(self, category):
        return [record for record in self.published() if record.category == category]

    def by_hashtag(self, hashtag):
        return [record for record in self.published() if hashtag in record.hashtags]

    def search(self, term):
        term = (term or "").strip()
        if not term:
            return self.published()
        return [record for record in self.published() if record.matches(term)]

    def pending(self):
        return [record for record in self.posts if record.status == PostStatus.PENDING]

    def pending_for_author(self, author_id):
        return [record for record in self.pending() if record.author_id == str(author_id)]

    # Mutations

    def _require(self, post_id):
        record = self.get_by_id(post_id)
        if record is None:
            raise NotFoundError("Post", post_id)
        return record

    def _insert(self, status, fields):
        cleaned = clean_post_fields(fields)
        identity = self.session.require_identity()
        tags = cleaned.pop("hashtags", ())
        values = dict(cleaned, author_id=identity.id, status=status, published=False)

        row = self.remote.insert_post(values)
        if tags:
            try:
                row["hashtags"] = self.remote.insert_hashtags(row["id"], list(tags))
            except RemoteError as exc:
                logger.error("Error saving hashtags for post %s: %s", row["id"], exc)
        record = PostRecord.from_row(row)
        self._put(record, INSERT)
        logger.info("User %s created post %s (%s)", identity.id, record.id, status)
        return record

    def create(self, title, content, excerpt, category=None, hashtags=(), cover_image=None):
        """Submit a new post for review."""
        return self._insert(PostStatus.PENDING, {
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "category": category,
            "hashtags": hashtags,
            "cover_image": cover_image,
        })

    def save_draft(self, title, content, excerpt, category=None, hashtags=(), cover_image=None):
        """Store a new post as a draft, not yet submitted."""
        return self._insert(PostStatus.DRAFT, {
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "category": category,
            "hashtags": hashtags,
            "cover_image": cover_image,
        })

    def publish_draft(self, post_id):
        """Submit one of the author's drafts for review."""
        identity = self.session.require_identity()
        record = self._require(post_id)
        if not self.session.is_author(record):
            raise AuthError("Only the author can submit this draft")
        if record.status != PostStatus.DRAFT:
            raise TransitionError(record.status, PostStatus.PENDING)
        row = self.remote.update_post(record.id, {
            "status": PostStatus.PENDING.value,
            "published": False,
            "updated_at": timezone.now(),
        })
        record = PostRecord.from_row(row)
        self._put(record, UPDATE)
        logger.info("User %s submitted draft %s", identity.id, record.id)
        return record

    def update(self, post_id, **fields):
        """
        Edit content fields of the author's own post.

        Editing an approved or rejected post sends it back for review.
        """
        review = set(fields) & set(REVIEW_FIELDS)
        if review:
            raise ValidationError(
                "Status and review fields can only be changed through moderation",
                details={"fields": sorted(review)},
            )
        unknown = set(fields) - set(CONTENT_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown post fields: {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )
        self.session.require_identity()
        previous = self._require(post_id)
        if not self.session.is_author(previous):
            raise AuthError("Only the author can edit this post")

        changes = clean_post_fields(fields)
        optimistic = previous.merge(**changes)
        self._put(optimistic, UPDATE)

        values = {key: value for key, value in changes.items() if key != "hashtags"}
        if previous.status in RESUBMIT_FROM:
            # Only the canonical row may move the cached status
            values.update(status=PostStatus.PENDING.value, published=False)
        values["updated_at"] = timezone.now()
        try:
            with self.remote.atomic():
                if "hashtags" in changes:
                    self.remote.delete_hashtags(previous.id)
                    if changes["hashtags"]:
                        self.remote.insert_hashtags(previous.id, list(changes["hashtags"]))
                row = self.remote.update_post(previous.id, values)
        except BlogError:
            if self._posts.get(previous.id) is optimistic:
                self._put(previous, UPDATE)
            raise

        record = PostRecord.from_row(row)
        self._put(record, UPDATE)
        if previous.status != record.status:
            logger.info("Post %s resubmitted for review", record.id)
        return record

    def delete(self, post_id):
        """
        Delete a post and its hashtags.

        Returns False when the post was already gone. The cache only
        changes once the remote delete has succeeded.
        """
        self.session.require_identity()
        post_id = str(post_id)
        record = self.get_by_id(post_id)
        if record is not None and not (self.session.is_author(record) or self.session.is_admin()):
            raise AuthError("Only the author or an admin can delete this post")

        with self.remote.atomic():
            self.remote.delete_hashtags(post_id)
            deleted = self.remote.delete_post(post_id)

        if post_id in self._posts:
            posts = dict(self._posts)
            del posts[post_id]
            self._commit(posts, DELETE, post_id)
        if not deleted:
            logger.info("Post %s was already deleted", post_id)
        return bool(deleted)

    # Moderation

    def transition_status(self, post_id, new_status, reviewer_id, notes=None):
        """
        Move a pending post to approved or rejected.

        Admin only. The remote write happens first; the cache is updated
        from the returned row, never speculatively.
        """
        identity = self.session.require_identity()
        if not self.session.is_admin():
            raise AuthError("Only admins can review posts")
        if str(reviewer_id) != identity.id:
            raise AuthError("Reviews must be recorded under the acting admin")

        record = self._require(post_id)
        if (record.status, str(new_status)) not in REVIEW_TRANSITIONS:
            raise TransitionError(record.status, new_status)

        notes = (notes or "").strip()
        if new_status == PostStatus.REJECTED and not notes:
            raise ValidationError(
                "Please provide review notes explaining why the post was rejected",
                details={"field": "review_notes"},
            )
        if not notes:
            notes = blog_settings.DEFAULT_APPROVAL_NOTES

        now = timezone.now()
        row = self.remote.update_post(record.id, {
            "status": str(new_status),
            "published": new_status == PostStatus.APPROVED,
            "reviewed_by": identity.id,
            "reviewed_at": now,
            "review_notes": notes,
            "updated_at": now,
        })
        record = PostRecord.from_row(row)
        self._put(record, UPDATE)
        logger.info("Admin %s marked post %s as %s", identity.id, record.id, record.status)
        return record

    def approve(self, post_id, notes=None):
        identity = self.session.require_identity()
        return self.transition_status(post_id, PostStatus.APPROVED, identity.id, notes)

    def reject(self, post_id, notes):
        identity = self.session.require_identity()
        return self.transition_status(post_id, PostStatus.REJECTED, identity.id, notes)
