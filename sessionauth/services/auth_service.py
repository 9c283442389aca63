import logging
from datetime import datetime, timezone

from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sessionauth.config import Settings, settings
from sessionauth.models.user import User
from sessionauth.models.refresh_session import RefreshSession
from sessionauth.utils.security import PasswordHasher, TokenCodec, build_claims
from sessionauth.utils.exceptions import (
    BadRequestException, ConflictException, UnauthorizedException,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _serialize_user(u: User) -> dict:
    return {
        "id":       u.id,
        "email":    u.email,
        "username": u.username,
    }


class AuthService:
    """
    Registration, login, refresh-token rotation, logout and password change.

    Built once from an explicit Settings object. The access and refresh
    codecs use independent secrets and TTLs.
    """

    def __init__(self, config: Settings):
        self.config = config
        self.hasher = PasswordHasher(
            time_cost=config.ARGON2_TIME_COST,
            memory_cost=config.ARGON2_MEMORY_COST,
            parallelism=config.ARGON2_PARALLELISM,
        )
        self.access_codec = TokenCodec(config.JWT_SECRET, config.access_token_ttl, config.ALGORITHM)
        self.refresh_codec = TokenCodec(config.JWT_REFRESH_SECRET, config.refresh_token_ttl, config.ALGORITHM)

    # ─── Register ─────────────────────────────────────────────────────────────
    def register(self, db: Session, email: str, username: str, password: str) -> dict:
        try:
            if db.query(User).filter(User.email == email).first():
                raise ConflictException("Email already exists", field="email")

            user = User(
                email=email,
                username=username,
                password=self.hasher.hash(password),
                isLocked=False,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        except ConflictException:
            raise
        except SQLAlchemyError as e:
            db.rollback()
            if isinstance(e, IntegrityError) and db.query(User).filter(User.email == email).first():
                # A concurrent registration took the email after our pre-check
                raise ConflictException("Email already exists", field="email")
            logger.warning(f"Registration failed for {email}: {e}")
            raise BadRequestException("Failed to register user")

        logger.info(f"New user registered: id={user.id} email={user.email}")
        return {**_serialize_user(user), "createdAt": user.createdAt}

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(
        self,
        db: Session,
        email: str,
        password: str,
        user_agent: str,
        ip_address: str,
        device_info: str | None = None,
    ) -> dict:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            logger.info(f"Failed login for unknown email {email}")
            raise UnauthorizedException(INVALID_CREDENTIALS)

        if user.isLocked:
            logger.info(f"Login refused for locked account id={user.id}")
            raise UnauthorizedException("Account is locked")

        if not self.hasher.verify(user.password, password):
            logger.info(f"Failed login for id={user.id}: bad password")
            raise UnauthorizedException(INVALID_CREDENTIALS)

        tokens = self._generate_tokens(user)

        now = datetime.now(timezone.utc)
        db.add(RefreshSession(
            userId=user.id,
            refreshToken=tokens["refreshToken"],
            userAgent=user_agent,
            ipAddress=ip_address,
            deviceInfo=device_info or user_agent,
            lastUsedAt=now,
            expiresAt=now + self.config.refresh_token_ttl,
        ))
        db.commit()

        logger.info(f"User id={user.id} logged in from {ip_address}")
        return {"user": _serialize_user(user), **tokens}

    # ─── Refresh Token ────────────────────────────────────────────────────────
    def refresh(self, db: Session, refresh_token_str: str) -> dict:
        """
        Exchange a refresh token for a new access/refresh pair.

        The session row is rotated in place: its token value is overwritten,
        so the presented token stops working as soon as this call succeeds.
        """
        stored = db.query(RefreshSession).filter(
            RefreshSession.refreshToken == refresh_token_str,
        ).first()
        if not stored:
            raise UnauthorizedException(INVALID_REFRESH_TOKEN)

        now = datetime.now(timezone.utc)
        if now > as_utc(stored.expiresAt):
            logger.info(f"Reaping expired session id={stored.id} for user id={stored.userId}")
            db.delete(stored)
            db.commit()
            raise UnauthorizedException("Refresh token expired")

        try:
            self.refresh_codec.verify(refresh_token_str)
        except JWTError:
            raise UnauthorizedException(INVALID_REFRESH_TOKEN)

        tokens = self._generate_tokens(stored.user)

        # Compare-and-swap on the old value: of two concurrent refreshes
        # with the same token only one can match.
        rotated = (
            db.query(RefreshSession)
            .filter(
                RefreshSession.id == stored.id,
                RefreshSession.refreshToken == refresh_token_str,
            )
            .update(
                {
                    RefreshSession.refreshToken: tokens["refreshToken"],
                    RefreshSession.lastUsedAt: now,
                    RefreshSession.expiresAt: now + self.config.refresh_token_ttl,
                },
                synchronize_session="fetch",
            )
        )
        if rotated != 1:
            db.rollback()
            logger.warning(f"Concurrent refresh lost the race on session id={stored.id}")
            raise UnauthorizedException(INVALID_REFRESH_TOKEN)
        db.commit()

        logger.info(f"Rotated session id={stored.id} for user id={stored.userId}")
        return tokens

    # ─── Logout ───────────────────────────────────────────────────────────────
    def logout(self, db: Session, user_id: int, refresh_token_str: str) -> int:
        """Delete the caller's session. Returns the number of rows removed (0 or 1)."""
        deleted = db.query(RefreshSession).filter(
            RefreshSession.userId == user_id,
            RefreshSession.refreshToken == refresh_token_str,
        ).delete(synchronize_session=False)
        db.commit()

        logger.info(f"User id={user_id} logged out ({deleted} session(s) removed)")
        return deleted

    # ─── Change Password ──────────────────────────────────────────────────────
    def change_password(
        self,
        db: Session,
        user_id: int,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        if new_password != confirm_password:
            raise ConflictException("New passwords do not match")

        if current_password == new_password:
            raise ConflictException("New password must be different from current password")

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UnauthorizedException("User not found")

        if not self.hasher.verify(user.password, current_password):
            raise UnauthorizedException("Current password is incorrect")

        user.password = self.hasher.hash(new_password)

        # Every device has to log in again
        revoked = db.query(RefreshSession).filter(
            RefreshSession.userId == user_id,
        ).delete(synchronize_session=False)
        db.commit()

        logger.info(f"User id={user_id} changed password; {revoked} session(s) revoked")

    # ─── Internals ────────────────────────────────────────────────────────────
    def _generate_tokens(self, user: User) -> dict:
        claims = build_claims(user.id, user.username, user.email)
        return {
            "accessToken":  self.access_codec.sign(claims),
            "refreshToken": self.refresh_codec.sign(claims),
        }


auth_service = AuthService(settings)
