from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from upi_tracker.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from upi_tracker.exceptions import InvalidCredentialsError, InvalidTokenError
from upi_tracker.models import User
from upi_tracker.repository import Repository
from upi_tracker.utils.logger import logger

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Hash em formato desconhecido
        return False


@dataclass(frozen=True)
class TokenIdentity:
    id: int
    username: str


class AuthService:
    """Cadastro, login e tokens bearer sobre o repositório configurado."""

    def __init__(
        self,
        repository: Repository,
        secret_key: str = JWT_SECRET,
        expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.repository = repository
        self.secret_key = secret_key
        self.expire_minutes = expire_minutes

    def register(
        self,
        username: str,
        password: str,
        upi_id: Optional[str] = None,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> User:
        """Grava o usuário com a senha em hash; ``UsernameTakenError`` se já existe."""
        user = User(
            username=username,
            password=hash_password(password),
            upi_id=upi_id,
            email=email,
            full_name=full_name,
        )
        return self.repository.create_user(user)

    def login(self, username: str, password: str) -> tuple[User, str]:
        user = self.repository.get_user_by_username(username)
        if user is None:
            # Mesmo custo de hash que uma senha errada
            pwd_context.dummy_verify()
        if user is None or not verify_password(password, user.password):
            logger.info(f"Falha de login para o usuário {username!r}")
            raise InvalidCredentialsError("Invalid credentials")

        return user, self.create_token(user)

    def create_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode = {"sub": str(user.id), "username": user.username, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenIdentity:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[JWT_ALGORITHM])
            return TokenIdentity(id=int(payload["sub"]), username=payload["username"])
        except (JWTError, KeyError, TypeError, ValueError):
            raise InvalidTokenError("Invalid token")

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.repository.get_user(user_id)
