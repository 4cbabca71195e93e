"""Unit tests for UserRepository."""

import pytest
from authserver.repositories.user import UserRepository
from sqlalchemy.exc import IntegrityError
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` fulfils the user store contract against SQL."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def test_create_and_find(self, repo, session):
        """Create a user and fetch it by id, email and username."""
        user = repo.create(email="alice@example.com", password_digest="digest", username="alice")
        session.commit()

        assert repo.find_by_id(user.id).email == "alice@example.com"
        assert repo.find_by_email("alice@example.com").id == user.id
        assert repo.find_by_username("alice").id == user.id
        assert user.is_active is True
        assert user.created_at is not None

    def test_lookups_return_none_for_missing(self, repo):
        assert repo.find_by_id("missing") is None
        assert repo.find_by_email("nobody@example.com") is None
        assert repo.find_by_username("nobody") is None

    def test_exists_helpers(self, repo):
        """Return existence flags for known and unknown keys."""
        UserFactory(email="bob@example.com", username="bob")

        assert repo.email_exists("bob@example.com")
        assert not repo.email_exists("nonexistent@example.com")
        assert repo.username_exists("bob")
        assert not repo.username_exists("Bob")

    def test_duplicate_email_violates_unique_constraint(self, repo, session):
        UserFactory(email="dup@example.com")
        with pytest.raises(IntegrityError):
            repo.create(email="dup@example.com", password_digest="digest")
        session.rollback()

    def test_many_users_without_username(self, repo, session):
        repo.create(email="a@example.com", password_digest="digest")
        repo.create(email="b@example.com", password_digest="digest")
        session.commit()

    def test_update_by_id_whitelists_profile_fields(self, repo, session):
        """Assign profile fields and reject credential columns."""
        user = UserFactory()

        updated = repo.update_by_id(user.id, {"name": "New Name", "phone": "+34600000000"})
        session.commit()
        assert updated.name == "New Name"
        assert updated.phone == "+34600000000"

        with pytest.raises(ValueError):
            repo.update_by_id(user.id, {"password_digest": "x"})
        with pytest.raises(ValueError):
            repo.update_by_id(user.id, {"email": "x@example.com"})

    def test_update_unknown_user(self, repo):
        assert repo.update_by_id("missing", {"name": "x"}) is None

    def test_set_active(self, repo, session):
        user = UserFactory()
        repo.set_active(user.id, False)
        session.commit()
        assert repo.find_by_id(user.id).is_active is False
        assert repo.set_active("missing", True) is None
