"""
Configuration settings for community_blog.

Override these in your Django settings.py:

    COMMUNITY_BLOG = {
        'REFRESH_INTERVAL': 30,
        'STORAGE_BUCKET': 'blog-images',
        'LOCAL_STATE_CACHE': 'default',
        ...
    }

The local state cache should point at a persistent cache backend
(e.g. FileBasedCache) so the session and post cache survive restarts.
"""
from django.conf import settings

DEFAULTS = {
    # Categories, in display order
    "CATEGORIES": [
        ("Latest Roots", "Latest"),
        ("Culture & Identity", "Culture"),
        ("Education & Opportunity", "Education"),
        ("Gender & Expression", "Gender"),
        ("Climate & Planet", "Climate"),
        ("Health & Hope", "Health"),
        ("Governance & Voice", "Governance"),
        ("Justice & Rights", "Justice"),
        ("Civic Spark", "Civic Rights"),
    ],
    "DEFAULT_CATEGORY": "Latest Roots",

    # Profiles
    "DEFAULT_ROLE": "Community Contributor",

    # Moderation
    "REFRESH_INTERVAL": 30,
    "DEFAULT_APPROVAL_NOTES": "Approved",

    # Storage
    "STORAGE_BUCKET": "blog-images",
    "MAX_IMAGE_SIZE_MB": 5,

    # Local persisted state
    "LOCAL_STATE_CACHE": "default",
    "SESSION_STORAGE_KEY": "auth-storage",
    "POSTS_STORAGE_KEY": "blog-storage",

    # Posts
    "EXCERPT_LENGTH": 280,
}


class CommunityBlogSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from community_blog.conf import blog_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid community_blog setting: {name}")

        user_settings = getattr(settings, "COMMUNITY_BLOG", {})
        return user_settings.get(name, DEFAULTS[name])

    @property
    def CATEGORY_NAMES(self):
        """Return the category values without their short labels."""
        return [name for name, _short in self.CATEGORIES]


blog_settings = CommunityBlogSettings()
