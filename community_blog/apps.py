"""Django app configuration for community_blog."""
from django.apps import AppConfig


class CommunityBlogConfig(AppConfig):
    """Configuration for the community blog app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "community_blog"
    verbose_name = "Community Blog"

    def ready(self):
        """Connect the post change feed."""
        from . import signals  # noqa: F401
