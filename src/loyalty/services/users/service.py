"""User registration, authentication and points."""

import asyncio
import logging
from datetime import datetime

from loyalty.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationFailedError,
)
from loyalty.core.validator import Validator
from loyalty.domain import (
    User,
    validate_email,
    validate_password_plaintext,
    validate_points,
    validate_user,
)
from loyalty.repositories import UnitOfWorkFactory
from loyalty.services.auth import (
    ADMIN_ROLE,
    JWTService,
    hash_password,
    verify_password,
)
from loyalty.services.auth.passwords import BCRYPT_ROUNDS

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts and their points balance.

    Password hashing runs in a worker thread so bcrypt never blocks the
    event loop.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        jwt_service: JWTService,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        """Initialize user service.

        @param uow_factory - Factory producing units of work
        @param jwt_service - Token issuer for login and registration
        @param bcrypt_rounds - bcrypt cost factor
        """
        self._uow_factory = uow_factory
        self._jwt = jwt_service
        self._bcrypt_rounds = bcrypt_rounds

    async def register(
        self, name: str, email: str, password: str, is_admin: bool = False
    ) -> User:
        """Create a user account.

        @param name - Display name
        @param email - Unique email address
        @param password - Plaintext password
        @param is_admin - Grant the admin role
        @returns Stored user
        @raises ValidationFailedError - invalid fields or email already taken
        """
        v = Validator()
        validate_email(v, email)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        password_hash = await asyncio.to_thread(
            hash_password, password, self._bcrypt_rounds
        )
        user = User(
            name=name, email=email, password_hash=password_hash, is_admin=is_admin
        )

        validate_user(v, user, password)
        v.raise_if_invalid()

        try:
            async with self._uow_factory() as uow:
                stored = await uow.users.insert(user)
                await uow.commit()
        except DuplicateEmailError:
            raise ValidationFailedError(
                {"email": "a user with this email address already exists"}
            ) from None

        logger.info(f"Registered user {stored.id}")
        return stored

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the matching user.

        @raises ValidationFailedError - malformed email or password
        @raises InvalidCredentialsError - unknown email or wrong password
        """
        v = Validator()
        validate_email(v, email)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        try:
            async with self._uow_factory() as uow:
                user = await uow.users.get_by_email(email)
        except NotFoundError:
            logger.warning("Authentication attempt for unknown email")
            raise InvalidCredentialsError() from None

        matched = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not matched:
            logger.warning(f"Authentication failed for user {user.id}")
            raise InvalidCredentialsError()
        return user

    def issue_token(self, user: User) -> tuple[str, datetime]:
        """Create an access token for ``user``.

        @returns (token, expiry)
        """
        roles = [ADMIN_ROLE] if user.is_admin else []
        return self._jwt.issue(user.id, roles)

    async def get_user(self, user_id: str) -> User:
        async with self._uow_factory() as uow:
            return await uow.users.get_by_id(user_id)

    async def get_points(self, user_id: str) -> int:
        user = await self.get_user(user_id)
        return user.points

    async def add_points(self, user_id: str, points: int) -> int:
        """Credit ``points`` to the user.

        @returns New balance
        @raises ValidationFailedError - negative points
        @raises NotFoundError - unknown user
        """
        v = Validator()
        validate_points(v, points)
        v.raise_if_invalid()

        async with self._uow_factory() as uow:
            balance = await uow.users.add_points(user_id, points)
            await uow.commit()

        logger.info(f"Added {points} points to user {user_id}, balance {balance}")
        return balance
