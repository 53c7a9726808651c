"""
Models for community_blog.

All models are importable from community_blog.models:

    from community_blog.models import Post, PostHashtag, PostStatus, Profile
"""
from .posts import Post, PostHashtag, PostStatus
from .profiles import Profile

__all__ = [
    # Posts
    "Post",
    "PostHashtag",
    "PostStatus",
    # Profiles
    "Profile",
]
