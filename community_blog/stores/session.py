"""
Auth/session store for community_blog.

Holds the signed-in identity and answers the role questions every
mutating operation asks. The admin flag cached here is a UI hint only;
``verify_admin`` re-reads it from the remote store, which stays the
authority.
"""
import dataclasses
import logging

from django.db import models
from django.dispatch import Signal

from ..conf import blog_settings
from ..exceptions import AuthError, ValidationError
from ..records import Identity

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "bio", "avatar", "role")


class AdminStatus(models.TextChoices):
    """What the client currently knows about the admin flag."""

    UNKNOWN = "unknown", "Unknown"
    USER = "user", "User"
    ADMIN = "admin", "Admin"


class SessionStore:
    """
    Current identity plus role-check predicates.

    Subscribers connect to ``changed``; it is sent with ``identity`` after
    every login, logout, profile update and admin verification.
    """

    def __init__(self, remote, local_state):
        self.remote = remote
        self.local_state = local_state
        self.identity = None
        self.admin_status = AdminStatus.UNKNOWN
        self.changed = Signal()

    @property
    def is_authenticated(self):
        return self.identity is not None

    def _set_identity(self, identity, admin_status=AdminStatus.UNKNOWN):
        self.identity = identity
        self.admin_status = admin_status if identity else AdminStatus.UNKNOWN
        key = blog_settings.SESSION_STORAGE_KEY
        if identity is None:
            self.local_state.clear(key)
        else:
            self.local_state.save(key, identity.as_dict())
        self.changed.send(sender=self, identity=identity)

    @staticmethod
    def _status_for(profile):
        if profile and profile.get("is_admin"):
            return AdminStatus.ADMIN
        return AdminStatus.USER

    def restore(self):
        """Hydrate the identity from local state; it stays unverified."""
        data = self.local_state.load(blog_settings.SESSION_STORAGE_KEY)
        if data:
            self.identity = Identity.from_dict(data)
            self.admin_status = AdminStatus.UNKNOWN
            logger.debug("Restored session for user %s", self.identity.id)
        return self.identity

    def refresh_session(self):
        """Reconcile the local identity with the remote session."""
        user = self.remote.get_session()
        if user is None:
            if self.identity is not None:
                logger.info("Remote session for user %s is gone", self.identity.id)
                self._set_identity(None)
            return None
        if self.identity is None or self.identity.id != user["id"]:
            profile = self.remote.get_profile(user["id"])
            if profile is None:
                raise AuthError("No profile found for the current session")
            self._set_identity(Identity.from_profile(user, profile), self._status_for(profile))
        return self.identity

    def login(self, email, password):
        user = self.remote.sign_in(email, password)
        profile = self.remote.get_profile(user["id"])
        if profile is None:
            logger.warning("No profile for user %s, creating one", user["id"])
            profile = self.remote.insert_profile({
                "id": user["id"],
                "name": email.split("@")[0],
            })
        identity = Identity.from_profile(user, profile)
        self._set_identity(identity, self._status_for(profile))
        logger.info("User %s logged in", identity.id)
        return identity

    def register(self, name, email, password):
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        user = self.remote.sign_up(email, password)
        profile = self.remote.insert_profile({
            "id": user["id"],
            "name": name,
            "is_admin": False,
        })
        identity = Identity.from_profile(user, profile)
        self._set_identity(identity, AdminStatus.USER)
        logger.info("User %s registered", identity.id)
        return identity

    def logout(self):
        self.remote.sign_out()
        if self.identity is not None:
            logger.info("User %s logged out", self.identity.id)
        self._set_identity(None)

    def update_profile(self, **fields):
        """
        Persist profile changes and adopt the canonical result.

        The remote store may normalize values, so the returned identity
        is the one to use, not the fields passed in.
        """
        identity = self.require_identity()
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update profile fields: {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("Name is required")

        values = dict(fields)
        if "avatar" in values:
            values["avatar_url"] = values.pop("avatar")
        profile = self.remote.update_profile(identity.id, values)
        updated = Identity.from_profile({"id": identity.id, "email": identity.email}, profile)
        self._set_identity(updated, self._status_for(profile))
        return updated

    def verify_admin(self):
        """
        Ask the remote store whether the identity is an admin.

        The user id comes from the remote session, not the cached
        identity. A cached identity that does not match the remote
        session is never an admin.
        """
        identity = self.identity
        if identity is None:
            self.admin_status = AdminStatus.UNKNOWN
            return False
        user = self.remote.get_session()
        if user is None or str(user["id"]) != identity.id:
            logger.warning(
                "Cached identity %s does not match the remote session %s",
                identity.id, user and user["id"],
            )
            self._set_identity(dataclasses.replace(identity, is_admin=False), AdminStatus.UNKNOWN)
            return False
        profile = self.remote.get_profile(user["id"])
        status = self._status_for(profile)
        is_admin = status == AdminStatus.ADMIN
        if identity.is_admin != is_admin:
            logger.warning(
                "Cached admin flag for user %s was %s, remote says %s",
                identity.id, identity.is_admin, is_admin,
            )
            identity = dataclasses.replace(identity, is_admin=is_admin)
        self._set_identity(identity, status)
        return is_admin

    def is_admin(self):
        return self.identity is not None and self.identity.is_admin

    def is_author(self, post):
        return self.identity is not None and post.author_id == self.identity.id

    def require_identity(self):
        if self.identity is None:
            raise AuthError("You must be signed in")
        return self.identity
