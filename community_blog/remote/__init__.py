"""
Remote data service backends for community_blog.

    from community_blog.remote import DjangoRemoteDataService, RemoteDataService
"""
from .base import RemoteDataService
from .django_backend import DjangoRemoteDataService

__all__ = [
    "RemoteDataService",
    "DjangoRemoteDataService",
]
