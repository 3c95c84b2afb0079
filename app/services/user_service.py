import logging
from typing import Any

from fastapi import status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select
from werkzeug.security import check_password_hash, generate_password_hash

from app.core.errors import AppError, ConflictError, ForbiddenError, NotFoundError

# Layer 4: Data Access
from app.data_access.database import transaction
from app.data_access.models import User, utcnow

# Layer 3: Domain Entities
from app.domain.common import Page
from app.domain.user import UserDomain, UserLogin, UserRegister, UserRole

# Layer 2: Supporting Services
from app.services.query_builder import QueryBuilder
from app.services.sequence_service import SequenceService


logger = logging.getLogger(__name__)

# Map role -> prefix (A00001 / E00001)
ROLE_PREFIX: dict[UserRole, str] = {
    UserRole.ADMIN: "A",
    UserRole.EMPLOYEE: "E",
}
HUMAN_ID_PADDING = 5


class UserService:
    """Service layer for user registration, login and lookup.

    Human-readable IDs are minted from a per-role sequence inside the same
    transaction as the insert, so a failed registration does not consume a
    number.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.sequences = SequenceService(session)

    def _map_to_domain(self, db_user: User) -> UserDomain:
        return UserDomain.model_validate(db_user)

    def _get_user_or_404(self, id: int) -> User:
        user = self.session.get(User, id)
        if not user:
            raise NotFoundError(f"User with ID {id} not found.")
        return user

    def register_user(self, user_in: UserRegister) -> UserDomain:
        """Registers a new user with a role-prefixed human ID.

        Args:
            user_in (UserRegister): Validated registration payload.

        Returns:
            UserDomain: The created user (without password data).

        Raises:
            ConflictError: 409 if the email is already registered.
        """
        email = user_in.email.strip().lower()
        try:
            with transaction(self.session):
                existing = self.session.exec(select(User.id).where(User.email == email)).first()
                if existing is not None:
                    raise ConflictError("Email already registered.")

                role = UserRole(user_in.role)
                human_id = self.sequences.next_custom_id(
                    key=f"USER:{role.value.upper()}",
                    prefix=ROLE_PREFIX.get(role, "U"),
                    padding=HUMAN_ID_PADDING,
                )
                user = User(
                    human_id=human_id,
                    name=user_in.name,
                    email=email,
                    phone=user_in.phone,
                    password_hash=generate_password_hash(user_in.password),
                    role=role.value,
                    client_info=user_in.client_info.model_dump(by_alias=True),
                    last_login=utcnow(),
                )
                self.session.add(user)
                self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error during registration: {e.orig!s}")
            raise ConflictError("Email already registered.")
        except SQLAlchemyError as e:
            logger.error(f"Failed to register user: {e!s}")
            raise AppError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal database error during registration."
            )

        self.session.refresh(user)
        logger.info(f"User {user.human_id} registered.")
        return self._map_to_domain(user)

    def login(self, credentials: UserLogin) -> UserDomain:
        """Verifies a user's password and records the login.

        Args:
            credentials (UserLogin): Email, plain password and optional client info.

        Returns:
            UserDomain: The user with ``last_login`` refreshed.

        Raises:
            NotFoundError: 404 if no user has this email.
            ForbiddenError: 403 if the user is inactive or the password does not match.
        """
        email = credentials.email.strip().lower()
        with transaction(self.session):
            user = self.session.exec(select(User).where(User.email == email)).first()
            if user is None:
                raise NotFoundError("This user is not found!")
            if not user.is_active:
                raise ForbiddenError("This user is not active!")
            if not check_password_hash(user.password_hash, credentials.password):
                raise ForbiddenError("Password does not match")

            user.last_login = utcnow()
            if credentials.client_info is not None:
                user.client_info = credentials.client_info.model_dump(by_alias=True)
            self.session.add(user)

        self.session.refresh(user)
        logger.info(f"User {user.human_id} logged in.")
        return self._map_to_domain(user)

    def get_user(self, id: int) -> UserDomain:
        return self._map_to_domain(self._get_user_or_404(id))

    def list_users(self, query: dict[str, Any]) -> Page[UserDomain]:
        """Searches, filters, sorts and paginates users (newest first by default)."""
        builder = (
            QueryBuilder(self.session, User, query)
            .search(["name", "email", "phone"])
            .filter()
            .sort()
            .paginate()
        )
        items = [self._map_to_domain(u) for u in builder.all()]
        return Page[UserDomain](items=items, meta=builder.count_total())
