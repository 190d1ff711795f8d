"""Identity store and the signup/login operations built on it."""
import logging
import re

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.core.config import Settings
from geoquiz.core.errors import ConstraintViolation, Conflict, InvalidInput, Unauthorized
from geoquiz.core.security import create_access_token, hash_password, verify_password
from geoquiz.db.session import transaction
from geoquiz.models.user import User

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt hard limit


class IdentityStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    def transaction(self):
        return transaction(self.session)

    async def create_user(self, username: str, password_hash: str) -> User:
        user = User(username=username, password_hash=password_hash)
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConstraintViolation(f"User {username!r} already exists") from exc
        return user

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def ensure_user(self, username: str, password_hash: str) -> int:
        """INSERT OR IGNORE the account, then return its id either way."""
        dialect = self.session.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        await self.session.execute(
            insert(User)
            .values(username=username, password_hash=password_hash)
            .on_conflict_do_nothing(index_elements=["username"])
        )
        user = await self.get_by_username(username)
        return user.id


def _issue_token(user: User, settings: Settings) -> str:
    return create_access_token(user.id, {"username": user.username}, settings=settings)


def validate_credentials(username: str, password: str) -> None:
    if not username or not password:
        raise InvalidInput("Username and password required")
    if len(username) < MIN_USERNAME_LENGTH:
        raise InvalidInput(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidInput(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if not USERNAME_RE.match(username):
        raise InvalidInput("Username can only contain letters, numbers, underscores, and hyphens")


async def signup(store: IdentityStore, username: str, password: str, settings: Settings) -> tuple[User, str]:
    """Create an account; return it with a fresh session token."""
    validate_credentials(username, password)
    password_hash = await run_in_threadpool(hash_password, password)
    try:
        async with store.transaction():
            user = await store.create_user(username, password_hash)
    except ConstraintViolation as exc:
        raise Conflict("Username already exists") from exc
    logger.info("User %r signed up (id=%s)", username, user.id)
    return user, _issue_token(user, settings)


async def login(store: IdentityStore, username: str, password: str, settings: Settings) -> tuple[User, str]:
    if not username or not password:
        raise InvalidInput("Username and password required")
    user = await store.get_by_username(username)
    if user is None or not await run_in_threadpool(verify_password, password, user.password_hash):
        raise Unauthorized("Invalid username or password")
    return user, _issue_token(user, settings)
