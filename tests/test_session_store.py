"""
Tests for the auth/session store.
"""
import dataclasses

import pytest

from community_blog.exceptions import AuthError, RemoteError, ValidationError
from community_blog.models import Profile
from community_blog.records import PostRecord
from community_blog.stores import AdminStatus, LocalState, SessionStore

from .conftest import PASSWORD, FlakyRemote, User


@pytest.fixture
def session(db):
    return SessionStore(FlakyRemote(), LocalState())


class TestLogin:
    """Tests for login and register."""

    def test_login(self, session, author):
        """Test login fills the identity from the profile."""
        identity = session.login(author.email, PASSWORD)

        assert identity.id == str(author.pk)
        assert identity.email == "author@example.com"
        assert identity.name == "Ada Author"
        assert identity.role == "Community Contributor"
        assert not identity.is_admin
        assert session.is_authenticated
        assert session.admin_status == AdminStatus.USER

    def test_login_admin(self, session, moderator):
        session.login(moderator.email, PASSWORD)
        assert session.is_admin()
        assert session.admin_status == AdminStatus.ADMIN

    def test_bad_credentials(self, session, author):
        with pytest.raises(AuthError):
            session.login(author.email, "nope")
        assert session.identity is None

    def test_login_creates_missing_profile(self, session, db):
        """Test a user without a profile gets one named after the email."""
        User.objects.create_user(username="lone@example.com", email="lone@example.com", password=PASSWORD)
        identity = session.login("lone@example.com", PASSWORD)

        assert identity.name == "lone"
        assert Profile.objects.get(pk=identity.id).name == "lone"

    def test_register(self, session, db):
        identity = session.register("  New Member ", "new@example.com", "pw-12345")

        assert identity.name == "New Member"
        assert not identity.is_admin
        assert Profile.objects.get(pk=identity.id).is_admin is False

    def test_register_requires_name(self, session, db):
        with pytest.raises(ValidationError):
            session.register("   ", "new@example.com", "pw-12345")
        assert not User.objects.filter(email="new@example.com").exists()

    def test_logout(self, session, author):
        session.login(author.email, PASSWORD)
        session.logout()

        assert session.identity is None
        assert session.remote.get_session() is None
        assert LocalState().load("auth-storage") is None

    def test_changed_signal(self, session, author):
        seen = []
        session.changed.connect(lambda sender, identity, **kwargs: seen.append(identity), weak=False)
        session.login(author.email, PASSWORD)
        session.logout()
        assert [identity and identity.name for identity in seen] == ["Ada Author", None]


class TestUpdateProfile:
    """Tests for update_profile."""

    def test_adopts_canonical_row(self, session, author):
        session.login(author.email, PASSWORD)
        identity = session.update_profile(name="  Ada L.  ", bio="Writer", avatar="/media/a.png")

        assert identity.name == "Ada L."
        assert identity.bio == "Writer"
        assert identity.avatar == "/media/a.png"
        assert session.identity == identity
        assert Profile.objects.get(pk=author.pk).avatar_url == "/media/a.png"

    def test_requires_session(self, session):
        with pytest.raises(AuthError):
            session.update_profile(name="Ghost")

    def test_admin_flag_is_not_editable(self, session, author):
        session.login(author.email, PASSWORD)
        with pytest.raises(ValidationError):
            session.update_profile(is_admin=True)
        assert not Profile.objects.get(pk=author.pk).is_admin

    def test_blank_name(self, session, author):
        session.login(author.email, PASSWORD)
        with pytest.raises(ValidationError):
            session.update_profile(name="  ")

    def test_remote_failure_keeps_identity(self, session, author):
        session.login(author.email, PASSWORD)
        before = session.identity
        session.remote.fail_on.add("update_profile")

        with pytest.raises(RemoteError):
            session.update_profile(name="Changed")
        assert session.identity == before


class TestRestore:
    """Tests for hydration and admin verification."""

    def test_restore_is_unverified(self, session, moderator):
        session.login(moderator.email, PASSWORD)

        restored = SessionStore(FlakyRemote(), LocalState())
        identity = restored.restore()

        assert identity == session.identity
        assert restored.admin_status == AdminStatus.UNKNOWN

    def test_refresh_session_drops_stale_identity(self, session, author):
        session.login(author.email, PASSWORD)

        restored = SessionStore(FlakyRemote(), LocalState())
        restored.restore()
        assert restored.refresh_session() is None
        assert restored.identity is None

    def test_refresh_session_adopts_remote_session(self, author):
        remote = FlakyRemote()
        remote.sign_in(author.email, PASSWORD)
        session = SessionStore(remote, LocalState())

        identity = session.refresh_session()
        assert identity.id == str(author.pk)
        assert session.admin_status == AdminStatus.USER

    def test_verify_admin_overrides_forged_flag(self, session, author):
        """Test a tampered local admin flag is corrected by the remote store."""
        session.login(author.email, PASSWORD)
        session.identity = dataclasses.replace(session.identity, is_admin=True)
        assert session.is_admin()

        assert session.verify_admin() is False
        assert not session.is_admin()
        assert session.admin_status == AdminStatus.USER

    def test_verify_admin_uses_remote_session(self, session, author, moderator):
        """Test a cached id that is not the remote session user is refused."""
        session.login(author.email, PASSWORD)
        session.identity = dataclasses.replace(
            session.identity, id=str(moderator.pk), is_admin=True
        )

        assert session.verify_admin() is False
        assert not session.is_admin()
        assert session.admin_status == AdminStatus.UNKNOWN

    def test_verify_admin_restored_without_remote_session(self, session, moderator):
        session.login(moderator.email, PASSWORD)
        restored = SessionStore(FlakyRemote(), LocalState())
        restored.restore()

        assert restored.verify_admin() is False
        assert not restored.is_admin()

    def test_verify_admin_without_session(self, session):
        assert session.verify_admin() is False
        assert session.admin_status == AdminStatus.UNKNOWN


class TestPredicates:
    def test_is_author(self, session, author, reader):
        session.login(author.email, PASSWORD)

        def post_by(user):
            return PostRecord(
                id="p1",
                title="T",
                content="C",
                excerpt="E",
                author_id=str(user.pk),
                category="Civic Spark",
            )

        assert session.is_author(post_by(author))
        assert not session.is_author(post_by(reader))

    def test_require_identity(self, session):
        with pytest.raises(AuthError):
            session.require_identity()
