import html
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from shiftr.core.exceptions import AuthenticationError, ValidationError
from shiftr.core.security import verify_password, create_access_token
from shiftr.models.auth.user import User
from shiftr.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)

    async def authenticate_user(
        self,
        name: Optional[str],
        password: Optional[str],
        ip_address: Optional[str] = None,
    ) -> User:
        """Authenticate user with login name and password"""
        if not name or not password:
            raise ValidationError("you must provide valid credentials")

        # Names are stored trimmed and escaped
        user = await self.user_service.get_user_by_name(html.escape(name.strip()))

        if user is None:
            logger.warning(f"Failed login for unknown user '{name}' from {ip_address}")
            raise AuthenticationError("Incorrect user name or password")

        if not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for user {user.id} from {ip_address}")
            raise AuthenticationError("Incorrect user name or password")

        logger.info(f"User {user.id} logged in from {ip_address}")
        return user

    def create_token(self, user: User) -> str:
        """Create an access token carrying the user's id, name and role"""
        return create_access_token(
            data={
                "sub": user.id,
                "id": user.id,
                "name": user.name,
                "role": user.role,
            }
        )
