import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext


# ─── Password Hashing ─────────────────────────────────────────────────────────
class PasswordHasher:
    """Argon2 hashing through passlib. Cost parameters come from settings."""

    def __init__(self, time_cost: int = 2, memory_cost: int = 19456, parallelism: int = 1):
        self.context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=time_cost,
            argon2__memory_cost=memory_cost,
            argon2__parallelism=parallelism,
        )

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password using argon2."""
        return self.context.hash(plain_password)

    def verify(self, hashed_password: str, plain_password: str) -> bool:
        """
        Verify a plain-text password against an argon2 hash.
        A malformed or unknown hash counts as a mismatch.
        """
        try:
            return self.context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False


# ─── JWT ──────────────────────────────────────────────────────────────────────
class TokenCodec:
    """
    Signs and verifies HMAC JWTs for a single secret.
    Access and refresh tokens each get their own codec so one secret
    can never be used to forge the other kind of token.
    """

    def __init__(self, secret: str, ttl: timedelta, algorithm: str = "HS256"):
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm

    def sign(self, claims: dict, expires_delta: timedelta | None = None) -> str:
        """
        Encode claims with iat, exp and a random jti.
        The jti keeps two tokens minted in the same second distinct.
        """
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload.update({
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.ttl),
            "jti": uuid.uuid4().hex,
        })
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict:
        """
        Decode and validate a token.
        Raises jose.ExpiredSignatureError if expired, jose.JWTError otherwise.
        """
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])


def build_claims(user_id: int, username: str, email: str) -> dict:
    """Identity claims carried by both access and refresh tokens."""
    return {"sub": str(user_id), "username": username, "email": email}
