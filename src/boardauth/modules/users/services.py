"""User account services."""

from sqlalchemy.ext.asyncio import AsyncSession

from boardauth.core.auth.passwords import hash_password
from boardauth.core.errors import ConflictError
from boardauth.modules.users.models import User
from boardauth.modules.users.repos import UserRepository
from boardauth.modules.users.schemas import UserCreate


class UserService:
    """Service for account provisioning."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.user_repo = UserRepository(db)

    async def create_user(self, data: UserCreate) -> User:
        """Create a local account with a bcrypt-hashed password.

        Raises:
            ConflictError: If the username is already taken
        """
        existing = await self.user_repo.get_by_username(data.username)
        if existing:
            raise ConflictError(
                "Username already taken",
                error_code="username_taken",
                details={"username": data.username},
            )

        user = User(
            username=data.username,
            password_hash=hash_password(data.password),
            email=data.email,
            display_name=data.display_name,
            role=data.role,
        )
        return await self.user_repo.create(user)
