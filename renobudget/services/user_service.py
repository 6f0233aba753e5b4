# renobudget/services/user_service.py
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import bcrypt
from sqlalchemy.orm import Session

from renobudget.db.enums import UserRole
from renobudget.errors import Conflict, NotFound, PermissionDenied, Unauthenticated, ValidationFailure
from renobudget.logger import get_logger
from renobudget.models.user import User
from renobudget.schemas.dto.user_dto import CallerContext

logger = get_logger(__name__)


class UserService:
    """
    Account records behind the auth collaboration.
    Provides:
    - registration
    - lookup by id / email
    - last-login stamp
    - deactivation
    - caller resolution for the request guards

    Sessions and tokens belong to the frontend credential provider, not here.
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _hash_password(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    # ======================================================
    # 👤 User CRUD
    # ======================================================

    def create_user(
        self,
        *,
        email: str,
        password: str,
        name: str,
        username: Optional[str] = None,
        role: UserRole = UserRole.user,
    ) -> User:
        """
        Register a new user.

        :param email: Login email (unique, stored lower-cased)
        :type email: str
        :param password: Plaintext password
        :type password: str
        :param name: Display name
        :type name: str
        :param username: Handle; derived from the email when omitted
        :type username: Optional[str]
        :param role: admin or user
        :type role: UserRole
        """
        email = self._normalize_email(email)
        if not email or "@" not in email:
            raise ValidationFailure("Invalid email", {"email": "must be a valid email address"})
        if not password:
            raise ValidationFailure("Password required", {"password": "must not be empty"})

        username = (username or email.split("@", 1)[0]).strip().lower()[:30]

        # 1️⃣ 唯一性校验
        if self.get_user_by_email(email):
            raise Conflict(f"Email '{email}' already registered")
        if self.db.query(User).filter(User.username == username).first():
            raise Conflict(f"Username '{username}' already taken")

        # 2️⃣ 创建用户
        user = User(
            id=str(uuid4()),
            email=email,
            username=username,
            name=name or username,
            password_hash=self._hash_password(password),
            role=UserRole(role),
            is_active=True,
        )

        self.db.add(user)
        self.db.flush()
        logger.info("User created: %s (%s, role=%s)", email, user.id, user.role.value)

        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.id == user_id)
            .first()
        )

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == self._normalize_email(email))
            .first()
        )

    def has_admin(self) -> bool:
        return self.db.query(User).filter(User.role == UserRole.admin).first() is not None

    # ======================================================
    # 🔁 Account maintenance
    # ======================================================

    def update_last_login(self, *, user_id: str) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")

        user.last_login = datetime.now(timezone.utc)
        return user

    def deactivate_user(self, *, user_id: str) -> None:
        """
        Deactivate (soft delete) user.

        :param user_id: ID of the user to deactivate
        :type user_id: str
        """

        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found")

        user.is_active = False

    # ======================================================
    # 🪪 Caller resolution
    # ======================================================

    def resolve_caller(self, user_id: Optional[str]) -> CallerContext:
        '''
        Turn the identity supplied by the auth provider into a CallerContext.

        :raises Unauthenticated: no id, or no such user
        :raises PermissionDenied: user deactivated
        '''
        if not user_id:
            raise Unauthenticated("Authentication required")
        user = self.get_user_by_id(user_id)
        if user is None:
            raise Unauthenticated("Unknown user")
        if not user.is_active:
            raise PermissionDenied("User account is deactivated")
        return CallerContext(caller_id=user.id, role=user.role)
