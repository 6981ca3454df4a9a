"""Password auth provider backing the admin dashboard.

The rest of the application treats this module as an external identity
service: it only signs people in and out, resolves the current identity from
the session cookie, sends recovery links and exposes a small admin API for
provisioning accounts. Profile data for admins lives in the ``users`` table
and is managed by ``app.actions``, not here.
"""
import hashlib
import logging
import secrets
from datetime import timedelta

from fastapi import Request
from sqlmodel import Session, select
from starlette.datastructures import URL

from app.config import RECOVERY_TOKEN_TTL_MINUTES
from app.models import Identity, utcnow

logger = logging.getLogger(__name__)

SESSION_KEY = "user_id"
MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 260_000


class AuthError(Exception):
    """Error returned by the auth provider; ``message`` is user-presentable."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =========================================================
# MOTS DE PASSE
# =========================================================

def hash_password(pwd: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", pwd.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(pwd: str, hashed: str) -> bool:
    try:
        _, iterations, salt, expected = hashed.split("$", 3)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", pwd.encode(), salt.encode(), int(iterations))
    return secrets.compare_digest(digest.hex(), expected)


def _check_password(pwd: str) -> None:
    if not pwd or len(pwd) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")


# =========================================================
# FOURNISSEUR D’IDENTITÉ
# =========================================================

class AuthProvider:
    def __init__(self, session: Session):
        self.session = session

    def _find_by_email(self, email: str) -> Identity | None:
        return self.session.exec(
            select(Identity).where(Identity.email == email.strip().lower())
        ).first()

    def _save(self, identity: Identity) -> Identity:
        identity.updated_at = utcnow()
        self.session.add(identity)
        self.session.commit()
        self.session.refresh(identity)
        return identity

    # --- session-bound calls ---

    def get_user(self, request: Request) -> Identity | None:
        user_id = request.session.get(SESSION_KEY)
        if not user_id:
            return None
        return self.session.get(Identity, user_id)

    def sign_in_with_password(self, request: Request, email: str, password: str) -> Identity:
        identity = self._find_by_email(email or "")
        if not identity or not verify_password(password or "", identity.password_hash):
            raise AuthError("Invalid login credentials")
        if identity.email_confirmed_at is None:
            raise AuthError("Email not confirmed")

        identity.last_sign_in_at = utcnow()
        self._save(identity)
        request.session[SESSION_KEY] = identity.id
        return identity

    def sign_out(self, request: Request) -> None:
        request.session.clear()

    def update_user(self, request: Request, password: str) -> Identity:
        identity = self.get_user(request)
        if not identity:
            raise AuthError("Auth session missing!")
        _check_password(password)
        identity.password_hash = hash_password(password)
        return self._save(identity)

    # --- password recovery ---

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        identity = self._find_by_email(email)
        if not identity:
            # Unknown addresses get the same answer as known ones
            logger.info("Password recovery requested for unknown email %s", email)
            return

        identity.recovery_token = secrets.token_urlsafe(32)
        identity.recovery_sent_at = utcnow()
        self._save(identity)

        link = URL(redirect_to).include_query_params(token=identity.recovery_token)
        logger.info("Password recovery link for %s: %s", identity.email, link)

    def exchange_recovery_token(self, request: Request, token: str) -> Identity:
        identity = None
        if token:
            identity = self.session.exec(
                select(Identity).where(Identity.recovery_token == token)
            ).first()
        if not identity or identity.recovery_sent_at is None:
            raise AuthError("Email link is invalid or has expired")

        sent_at = identity.recovery_sent_at
        if sent_at.tzinfo is None:
            sent_at = sent_at.replace(tzinfo=utcnow().tzinfo)
        if utcnow() - sent_at > timedelta(minutes=RECOVERY_TOKEN_TTL_MINUTES):
            raise AuthError("Email link is invalid or has expired")

        identity.recovery_token = None
        identity.last_sign_in_at = utcnow()
        self._save(identity)
        request.session[SESSION_KEY] = identity.id
        return identity

    # --- admin API ---

    def admin_create_user(self, email: str, password: str, email_confirm: bool = False) -> Identity:
        email = (email or "").strip().lower()
        if not email:
            raise AuthError("Email is required")
        _check_password(password)
        if self._find_by_email(email):
            raise AuthError("A user with this email address has already been registered")

        identity = Identity(
            email=email,
            password_hash=hash_password(password),
            email_confirmed_at=utcnow() if email_confirm else None,
        )
        return self._save(identity)

    def admin_update_user_by_id(
        self, user_id: str, email: str | None = None, password: str | None = None
    ) -> Identity:
        identity = self.session.get(Identity, user_id)
        if not identity:
            raise AuthError("User not found")

        if email:
            email = email.strip().lower()
            other = self._find_by_email(email)
            if other and other.id != identity.id:
                raise AuthError("A user with this email address has already been registered")
            identity.email = email
        if password:
            _check_password(password)
            identity.password_hash = hash_password(password)
        return self._save(identity)

    def admin_delete_user(self, user_id: str) -> None:
        identity = self.session.get(Identity, user_id)
        if not identity:
            raise AuthError("User not found")
        self.session.delete(identity)
        self.session.commit()