from datetime import datetime, timedelta, timezone
from functools import lru_cache

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from taskflow.config import Settings, settings as default_settings
from taskflow.exceptions import Unauthorized

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=default_settings.BCRYPT_ROUNDS,
)


@lru_cache
def _context_for(rounds: int) -> CryptContext:
    if rounds == default_settings.BCRYPT_ROUNDS:
        return pwd_context
    return pwd_context.copy(bcrypt__rounds=rounds)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Cost is read back from the hash itself
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str, rounds: int | None = None) -> str:
    return _context_for(rounds or default_settings.BCRYPT_ROUNDS).hash(password)


def dummy_verify() -> None:
    """Burn the same time as a real verification (unknown-account logins)."""
    pwd_context.dummy_verify()


def create_access_token(
    user_id: int,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    settings = settings or default_settings
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings | None = None) -> int:
    """Return the user id carried by ``token`` or raise ``Unauthorized``."""
    settings = settings or default_settings
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except JWTError:
        raise Unauthorized("Invalid token")

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise Unauthorized("Invalid token")
    return int(subject)
