"""
Post and hashtag models for community_blog.
"""
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from ..conf import blog_settings


class PostStatus(models.TextChoices):
    """Moderation state of a post."""

    DRAFT = "draft", "Draft"
    PENDING = "pending", "Pending review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Post(models.Model):
    """
    Community blog post.

    A post moves through the moderation lifecycle:
    draft -> pending -> approved / rejected, and back to pending when the
    author edits a reviewed post. Only approved posts may be published.
    """

    CATEGORY_CHOICES = [(name, name) for name in blog_settings.CATEGORY_NAMES]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Content
    title = models.CharField(max_length=255)
    content = models.TextField()
    excerpt = models.TextField()
    cover_image = models.CharField(
        max_length=500,
        blank=True,
        help_text="Public URL of the cover image",
    )
    category = models.CharField(
        max_length=50,
        choices=CATEGORY_CHOICES,
        default=blog_settings.DEFAULT_CATEGORY,
    )

    # Author - uses Django's AUTH_USER_MODEL
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="community_posts",
    )

    # Moderation
    published = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=PostStatus.choices,
        default=PostStatus.PENDING,
        db_index=True,
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reviewed_community_posts",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"]),
            models.Index(fields=["author", "-created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(published=False) | models.Q(status="approved"),
                name="community_post_published_requires_approval",
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def preview(self):
        """Return the excerpt, or a truncated body when it is blank."""
        if self.excerpt:
            return self.excerpt
        limit = blog_settings.EXCERPT_LENGTH
        if len(self.content) > limit:
            return self.content[:limit] + "..."
        return self.content

    @property
    def is_public(self):
        """Check if post is approved and visible to everyone."""
        return self.published and self.status == PostStatus.APPROVED

    @property
    def hashtag_list(self):
        """Return hashtags in the order they were attached."""
        return [row.hashtag for row in self.hashtags.all()]

    def review(self, reviewer, status, notes=""):
        """
        Record a moderation decision.

        Approving publishes the post; rejecting unpublishes it.
        """
        self.status = status
        self.published = status == PostStatus.APPROVED
        self.reviewed_by = reviewer
        self.reviewed_at = timezone.now()
        self.review_notes = notes
        self.save(update_fields=[
            "status",
            "published",
            "reviewed_by",
            "reviewed_at",
            "review_notes",
            "updated_at",
        ])


class PostHashtag(models.Model):
    """
    Hashtag attached to a post.

    Tags are free text; rows live and die with their post.
    """

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name="hashtags",
    )
    hashtag = models.CharField(max_length=100, db_index=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["post", "hashtag"],
                name="community_post_hashtag_unique",
            ),
        ]

    def __str__(self):
        return f"#{self.hashtag}"
