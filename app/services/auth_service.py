"""
Authentication Service - sign-up, sign-in, sign-out and session events
"""
import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import AlreadyExists, InvalidInput, NotAuthenticated
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.models.profile import Account, Profile, RevokedToken
from app.services.base import StoreService
from app.services.profile_service import validate_username

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


class AuthEvent(str, Enum):
    SIGNED_UP = "SIGNED_UP"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, UUID], None]


class AuthEvents:
    """Session change notifications"""

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: AuthEvent, account_id: UUID) -> None:
        logger.info(f"Auth event {event.value} for {account_id}")
        for listener in list(self._listeners):
            try:
                listener(event, account_id)
            except Exception:
                logger.exception(f"Auth listener failed on {event.value}")

    def clear(self) -> None:
        self._listeners.clear()


class AuthService(StoreService):
    """Service for authentication operations"""

    def __init__(self, db: Session, settings: Settings, events: Optional[AuthEvents] = None):
        super().__init__(db)
        self.settings = settings
        self.events = events

    def _emit(self, event: AuthEvent, account_id: UUID) -> None:
        if self.events is not None:
            self.events.emit(event, account_id)

    def get_account_by_email(self, email: str) -> Optional[Account]:
        """Get account by email"""
        with self._remote("fetch account"):
            return self.db.query(Account).filter(Account.email == email.lower()).first()

    def _create_profile_via_function(self, account_id: UUID, username: str) -> Optional[Profile]:
        """
        Create the profile through the store's server-side function.

        Returns None when the function is unavailable or fails, leaving the
        caller to insert the row itself.
        """
        function_name = self.settings.PROFILE_FUNCTION_NAME
        dialect = self.db.get_bind().dialect.name
        if dialect != "postgresql" or not _IDENTIFIER.match(function_name):
            logger.info(f"Profile function {function_name} unavailable on {dialect}, using manual insert")
            return None

        try:
            self.db.execute(
                text(f"SELECT {function_name}(:user_id, :username, :full_name)"),
                {"user_id": str(account_id), "username": username, "full_name": username}
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database function error, falling back to manual profile creation: {e}")
            return None

        profile = self.db.get(Profile, account_id)
        if profile is None:
            logger.warning(f"Profile function {function_name} did not create a profile for {account_id}")
        return profile

    def _create_profile_manually(self, account_id: UUID, username: str) -> Profile:
        profile = Profile(id=account_id, username=username, full_name=username)
        with self._remote("create profile"):
            self.db.add(profile)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise AlreadyExists("Username already taken")
            self.db.refresh(profile)
        logger.info(f"Profile created manually for {account_id}")
        return profile

    def sign_up(self, email: str, password: str, username: str) -> Tuple[Account, Profile, str]:
        """
        Register an account and its profile.

        Returns:
            (account, profile, access_token)
        """
        is_valid, error_msg = validate_username(username)
        if not is_valid:
            raise InvalidInput(error_msg)

        email = email.strip().lower()
        if self.get_account_by_email(email):
            raise AlreadyExists("Email already registered")
        with self._remote("check username"):
            if self.db.query(Profile.id).filter(Profile.username == username).first():
                raise AlreadyExists("Username already taken")

        account = Account(email=email, password_hash=hash_password(password))
        with self._remote("create account"):
            self.db.add(account)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise AlreadyExists("Email already registered")
            self.db.refresh(account)
        logger.info(f"User account created successfully: {account.id}")

        profile = self._create_profile_via_function(account.id, username)
        if profile is None:
            try:
                profile = self._create_profile_manually(account.id, username)
            except AlreadyExists:
                # Do not leave an account without a profile behind
                with self._remote("remove account"):
                    self.db.delete(account)
                    self.db.commit()
                raise

        self._emit(AuthEvent.SIGNED_UP, account.id)
        return account, profile, self.create_access_token_for(account.id)

    def sign_in(self, email: str, password: str) -> Tuple[Account, str]:
        """Check credentials; returns (account, access_token)"""
        account = self.get_account_by_email(email.strip())
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Sign in rejected: invalid credentials")
            raise NotAuthenticated("Invalid email or password")

        self._emit(AuthEvent.SIGNED_IN, account.id)
        return account, self.create_access_token_for(account.id)

    def sign_out(self, claims: Dict[str, Any]) -> None:
        """Revoke the session token described by claims"""
        account_id = UUID(claims["sub"])
        with self._remote("sign out"):
            if self.db.get(RevokedToken, claims["jti"]) is None:
                self.db.add(RevokedToken(jti=claims["jti"], account_id=account_id))
                self.db.commit()
        self._emit(AuthEvent.SIGNED_OUT, account_id)
        logger.info(f"User signed out: {account_id}")

    def resolve_token(self, token: str) -> Tuple[Profile, Dict[str, Any]]:
        """
        Map a bearer token to the viewer's profile.

        Raises NotAuthenticated for malformed, expired or revoked tokens.
        """
        claims = decode_access_token(token)
        if not claims or "sub" not in claims or "jti" not in claims:
            raise NotAuthenticated("Invalid or expired token")
        try:
            account_id = UUID(claims["sub"])
        except (ValueError, TypeError):
            raise NotAuthenticated("Invalid token payload")

        with self._remote("resolve session"):
            if self.db.get(RevokedToken, claims["jti"]) is not None:
                raise NotAuthenticated("Session has been signed out")
            profile = self.db.get(Profile, account_id)
        if profile is None:
            raise NotAuthenticated("User not found")
        return profile, claims

    def create_access_token_for(self, account_id: UUID) -> str:
        """Create JWT access token for an account"""
        return create_access_token(data={"sub": str(account_id)})
