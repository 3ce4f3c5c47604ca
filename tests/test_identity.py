"""Tests for cart identity resolution."""

from storefront.domain.identity import GuestIdentity, UserIdentity, describe, resolve_identity


class TestResolveIdentity:
    def test_user_only(self):
        assert resolve_identity("u-1", None) == UserIdentity(user_id="u-1")

    def test_session_only(self):
        assert resolve_identity(None, "sess-1") == GuestIdentity(session_id="sess-1")

    def test_user_wins_over_session(self):
        assert resolve_identity("u-1", "sess-1") == UserIdentity(user_id="u-1")

    def test_neither_is_anonymous(self):
        assert resolve_identity(None, None) is None
        assert resolve_identity("", "") is None


class TestDescribe:
    def test_labels(self):
        assert describe(UserIdentity("u-1")) == "user:u-1"
        assert describe(GuestIdentity("s-1")) == "session:s-1"
        assert describe(None) == "anonymous"
