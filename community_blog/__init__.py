"""
community-blog - A moderated community blogging app for Django.

Features:
- Post lifecycle with moderation (draft, pending, approved, rejected)
- Client-side post cache kept in sync with the remote store
- Role-aware session store with remote admin verification
- Admin moderation workflow with periodic and push-driven refresh
- Hashtags and a fixed set of categories
- Cover image uploads through Django storages
"""

__version__ = "0.1.0"
__author__ = "Nestor Wheelock"
