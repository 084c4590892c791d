"""Tests for user accounts and credential checks."""

import pytest

from mediagate.core.core import Core
from mediagate.core.modules.user.models import UserRole
from mediagate.core.modules.user.service import UserService
from mediagate.core.modules.user.validators import validate_password
from mediagate.errors import ConflictError, ValidationError


class TestValidators:
    @pytest.mark.parametrize("password", ["abc", "has space", "tab\there"])
    def test_invalid_passwords(self, password: str):
        with pytest.raises(ValidationError):
            validate_password(password)

    def test_valid_password(self):
        validate_password("s3cret!")


class TestUserService:
    """Tests for UserService on the in-memory backend."""

    @pytest.fixture(autouse=True)
    def setup(self, core: Core):
        self.service: UserService = core.services.user

    async def test_create_and_verify(self):
        user = await self.service.create_user("Admin@Example.com", "s3cret!", UserRole.ADMIN)
        assert user.email == "admin@example.com"
        assert user.password_hash != "s3cret!"
        assert self.service.has_admin()

        assert await self.service.verify_credentials("admin@example.com", "s3cret!") == user
        assert await self.service.verify_credentials("admin@example.com", "wrong") is None
        assert await self.service.verify_credentials("nobody@example.com", "s3cret!") is None

    async def test_duplicate_email(self):
        await self.service.create_user("a@example.com", "s3cret!")
        with pytest.raises(ConflictError):
            await self.service.create_user("A@example.com", "other-pass")

    async def test_invalid_email(self):
        with pytest.raises(ValidationError):
            await self.service.create_user("not-an-email", "s3cret!")

    async def test_find_by_subject(self):
        user = await self.service.create_user("a@example.com", "s3cret!")
        assert self.service.find_user_by_subject(user.subject_id) == user
        assert self.service.find_user_by_subject("not-a-uuid") is None
        assert not self.service.has_admin()
