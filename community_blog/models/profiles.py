"""
Profile model for community_blog.
"""
from django.conf import settings
from django.db import models

from ..conf import blog_settings


class Profile(models.Model):
    """
    Public profile of a community member.

    Shares its primary key with the auth user. The admin flag stored here
    is the authority for moderation rights.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        primary_key=True,
        on_delete=models.CASCADE,
        related_name="blog_profile",
    )
    name = models.CharField(max_length=150)
    bio = models.TextField(blank=True)
    avatar_url = models.CharField(max_length=500, blank=True)
    role = models.CharField(
        max_length=100,
        blank=True,
        default=blog_settings.DEFAULT_ROLE,
    )
    is_admin = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def display_role(self):
        """Return the role label, falling back to the default."""
        return self.role or blog_settings.DEFAULT_ROLE
