"""
Remote data service backed by the Django ORM.

Row-level access control lives here and is the authorization boundary:

- anonymous sessions see approved, published posts only
- members also see their own posts; admins see everything
- content fields are writable by the author, review fields by admins
- an author may move their own post back to draft/pending, unpublished
- profile rows are writable by their owner, never the admin flag
"""
import functools
import logging

from django.contrib.auth import authenticate, get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import DatabaseError, transaction
from django.db.models import Q

from ..conf import blog_settings
from ..exceptions import AuthError, NotFoundError, RemoteError
from ..models import Post, PostHashtag, PostStatus, Profile
from ..signals import posts_changed
from .base import RemoteDataService

logger = logging.getLogger(__name__)

POST_CONTENT_COLUMNS = ("title", "content", "excerpt", "cover_image", "category")
POST_REVIEW_COLUMNS = ("reviewed_by", "reviewed_at", "review_notes")
POST_STATE_COLUMNS = ("status", "published")
PROFILE_COLUMNS = ("name", "bio", "avatar_url", "role")
AUTHOR_STATUSES = (PostStatus.DRAFT, PostStatus.PENDING)


def translate_errors(method):
    """Re-raise database, validation and storage failures as RemoteError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except DjangoValidationError as exc:
            logger.error("%s rejected: %s", method.__name__, exc.messages)
            raise RemoteError("; ".join(exc.messages)) from exc
        except (DatabaseError, OSError) as exc:
            logger.error("%s failed: %s", method.__name__, exc)
            raise RemoteError(str(exc)) from exc

    return wrapper


class DjangoRemoteDataService(RemoteDataService):
    """
    RemoteDataService implementation on top of the Django ORM.

    Each instance carries its own session, like a hosted-backend client.
    """

    def __init__(self, storage=None):
        self._storage = storage
        self._user_id = None

    @property
    def storage(self):
        return self._storage or default_storage

    # Session helpers

    def _session_user(self):
        if self._user_id is None:
            return None
        return get_user_model().objects.filter(pk=self._user_id, is_active=True).first()

    def _require_user(self):
        user = self._session_user()
        if user is None:
            raise AuthError("No active session")
        return user

    def _is_admin(self, user):
        return Profile.objects.filter(user=user, is_admin=True).exists()

    def _user_row(self, user):
        return {"id": str(user.pk), "email": user.email}

    # Rows

    def _posts(self):
        return Post.objects.select_related("author__blog_profile").prefetch_related("hashtags")

    def _post_row(self, post):
        try:
            profile = post.author.blog_profile
            author = {"name": profile.name, "role": profile.display_role}
        except Profile.DoesNotExist:
            author = {"name": post.author.get_username(), "role": blog_settings.DEFAULT_ROLE}
        return {
            "id": str(post.pk),
            "title": post.title,
            "content": post.content,
            "excerpt": post.excerpt,
            "cover_image": post.cover_image or None,
            "author_id": str(post.author_id),
            "category": post.category,
            "published": post.published,
            "status": post.status,
            "reviewed_by": str(post.reviewed_by_id) if post.reviewed_by_id else None,
            "reviewed_at": post.reviewed_at,
            "review_notes": post.review_notes or None,
            "created_at": post.created_at,
            "updated_at": post.updated_at,
            "hashtags": [row.hashtag for row in post.hashtags.all()],
            "author": author,
        }

    def _canonical_post(self, post_id):
        return self._post_row(self._posts().get(pk=post_id))

    def _profile_row(self, profile):
        return {
            "id": str(profile.pk),
            "name": profile.name,
            "bio": profile.bio or None,
            "avatar_url": profile.avatar_url or None,
            "role": profile.display_role,
            "is_admin": profile.is_admin,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
        }

    # Posts

    @translate_errors
    def select_posts(self):
        posts = self._posts()
        user = self._session_user()
        public = Q(status=PostStatus.APPROVED, published=True)
        if user is None:
            posts = posts.filter(public)
        elif not self._is_admin(user):
            posts = posts.filter(public | Q(author=user))
        return [self._post_row(post) for post in posts.order_by("-created_at")]

    @translate_errors
    def insert_post(self, values):
        user = self._require_user()
        if str(values.get("author_id")) != str(user.pk):
            raise AuthError("Posts must be authored by the signed-in user")
        status = values.get("status", PostStatus.PENDING)
        if status not in AUTHOR_STATUSES or values.get("published"):
            raise AuthError("New posts must be submitted for review")

        post = Post(author=user, status=status, published=False)
        for column in POST_CONTENT_COLUMNS:
            if column in values:
                setattr(post, column, values[column] or "")
        post.full_clean()
        post.save()
        logger.info("Inserted post %s by user %s", post.pk, user.pk)
        return self._canonical_post(post.pk)

    @translate_errors
    def update_post(self, post_id, values):
        user = self._require_user()
        post = Post.objects.filter(pk=post_id).first()
        if post is None:
            raise NotFoundError("Post", post_id)

        allowed = POST_CONTENT_COLUMNS + POST_REVIEW_COLUMNS + POST_STATE_COLUMNS + ("updated_at",)
        unknown = set(values) - set(allowed)
        if unknown:
            raise RemoteError(f"Unknown post fields: {', '.join(sorted(unknown))}")

        is_admin = self._is_admin(user)
        is_author = post.author_id == user.pk
        if any(column in values for column in POST_CONTENT_COLUMNS) and not is_author:
            raise AuthError("Only the author can edit this post")
        if any(column in values for column in POST_REVIEW_COLUMNS) and not is_admin:
            raise AuthError("Only admins can review posts")
        if any(column in values for column in POST_STATE_COLUMNS) and not is_admin:
            status = values.get("status", post.status)
            if not is_author or status not in AUTHOR_STATUSES or values.get("published"):
                raise AuthError("Only admins can change the review status")

        user_pk = get_user_model()._meta.pk
        for column, value in values.items():
            if column == "updated_at":
                continue
            if column == "reviewed_by":
                post.reviewed_by_id = user_pk.to_python(value) if value else None
            elif column in ("review_notes", "cover_image"):
                setattr(post, column, value or "")
            else:
                setattr(post, column, value)
        post.full_clean()
        post.save()
        logger.info("Updated post %s fields %s", post.pk, sorted(values))
        return self._canonical_post(post.pk)

    @translate_errors
    def delete_post(self, post_id):
        user = self._require_user()
        post = Post.objects.filter(pk=post_id).first()
        if post is None:
            return 0
        if post.author_id != user.pk and not self._is_admin(user):
            raise AuthError("Only the author or an admin can delete this post")
        _total, per_model = post.delete()
        logger.info("Deleted post %s", post_id)
        return per_model.get(Post._meta.label, 0)

    @translate_errors
    def delete_hashtags(self, post_id):
        user = self._require_user()
        post = Post.objects.filter(pk=post_id).first()
        if post is None:
            return 0
        if post.author_id != user.pk and not self._is_admin(user):
            raise AuthError("Only the author or an admin can change hashtags")
        deleted, _per_model = PostHashtag.objects.filter(post=post).delete()
        return deleted

    @translate_errors
    def insert_hashtags(self, post_id, tags):
        user = self._require_user()
        post = Post.objects.filter(pk=post_id).first()
        if post is None:
            raise NotFoundError("Post", post_id)
        if post.author_id != user.pk:
            raise AuthError("Only the author can tag this post")
        rows = [PostHashtag(post=post, hashtag=tag) for tag in tags]
        PostHashtag.objects.bulk_create(rows, ignore_conflicts=True)
        return list(post.hashtags.values_list("hashtag", flat=True))

    def atomic(self):
        return transaction.atomic()

    # Profiles

    @translate_errors
    def get_profile(self, user_id):
        profile = Profile.objects.filter(pk=user_id).first()
        if profile is None:
            return None
        return self._profile_row(profile)

    @translate_errors
    def insert_profile(self, values):
        user = self._require_user()
        if str(values.get("id")) != str(user.pk):
            raise AuthError("Profiles can only be created for the signed-in user")
        if values.get("is_admin"):
            raise AuthError("The admin flag cannot be set by clients")
        profile = Profile(user=user, name=(values.get("name") or "").strip())
        for column in ("bio", "avatar_url", "role"):
            if values.get(column):
                setattr(profile, column, values[column])
        profile.full_clean()
        profile.save()
        logger.info("Created profile for user %s", user.pk)
        return self._profile_row(profile)

    @translate_errors
    def update_profile(self, user_id, values):
        user = self._require_user()
        if str(user_id) != str(user.pk):
            raise AuthError("Profiles can only be edited by their owner")
        if "is_admin" in values:
            raise AuthError("The admin flag cannot be set by clients")
        unknown = set(values) - set(PROFILE_COLUMNS)
        if unknown:
            raise RemoteError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        profile = Profile.objects.filter(pk=user.pk).first()
        if profile is None:
            raise NotFoundError("Profile", user_id)
        for column, value in values.items():
            value = (value or "").strip()
            if column == "role" and not value:
                value = blog_settings.DEFAULT_ROLE
            setattr(profile, column, value)
        profile.full_clean()
        profile.save()
        return self._profile_row(profile)

    # Auth

    @translate_errors
    def sign_in(self, email, password):
        user = get_user_model().objects.filter(email__iexact=email).first()
        if user is None or authenticate(username=user.get_username(), password=password) is None:
            raise AuthError("Invalid login credentials")
        self._user_id = user.pk
        logger.info("User %s signed in", user.pk)
        return self._user_row(user)

    @translate_errors
    def sign_up(self, email, password):
        User = get_user_model()
        email = User.objects.normalize_email(email or "")
        if not email or not password:
            raise AuthError("Email and password are required")
        if User.objects.filter(email__iexact=email).exists():
            raise AuthError("User already registered")
        user = User.objects.create_user(**{
            "email": email,
            User.USERNAME_FIELD: email,
            "password": password,
        })
        self._user_id = user.pk
        logger.info("User %s signed up", user.pk)
        return self._user_row(user)

    def sign_out(self):
        self._user_id = None

    @translate_errors
    def get_session(self):
        user = self._session_user()
        if user is None:
            return None
        return self._user_row(user)

    # Storage

    @translate_errors
    def upload(self, bucket, path, data, content_type):
        name = self.storage.save(f"{bucket}/{path}", ContentFile(data))
        logger.info("Uploaded %s (%s, %d bytes)", name, content_type, len(data))
        return self.storage.url(name)

    # Change feed

    def subscribe_posts(self, callback):
        def receiver(sender, event, **kwargs):
            callback(event)

        posts_changed.connect(receiver, weak=False)

        def unsubscribe():
            posts_changed.disconnect(receiver)

        return unsubscribe
