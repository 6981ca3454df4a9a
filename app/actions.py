"""Form actions that talk to the auth provider.

Each action takes the submitted fields, performs the provider and database
calls, writes the audit trail and answers with an encoded redirect carrying a
success or error banner.
"""
import logging

from fastapi import Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.audit import AdminAction, log_admin_action
from app.auth import AuthError, AuthProvider
from app.config import SITE_URL
from app.models import Message, User, row_data, utcnow
from app.utils import encoded_redirect, safe_path

logger = logging.getLogger(__name__)

ADMIN_PAGE = "/dashboard/admin"
RESET_PAGE = "/dashboard/reset-password"


def _display_name(user: User | None) -> str:
    if not user:
        return "Unknown"
    return user.full_name or user.name or "Unknown"


def _origin(request: Request) -> str:
    return request.headers.get("origin") or SITE_URL.rstrip("/")


def admin_profile(session: Session, identity, email: str | None = None) -> User | None:
    """The ``users`` row backing ``identity`` when its email matches ``email``."""
    if identity is None:
        return None
    profile = session.get(User, identity.id)
    expected = (email if email is not None else identity.email) or ""
    if not profile or (profile.email or "").lower() != expected.strip().lower():
        return None
    return profile


def current_admin(request, session: Session):
    identity = AuthProvider(session).get_user(request)
    if admin_profile(session, identity) is None:
        return None
    return identity


def _deny(request: Request, session: Session, identity, email: str):
    reason = "No admin record found" if not session.get(User, identity.id) else "Email mismatch"
    log_admin_action(
        request, session, AdminAction.LOGIN_DENIED,
        f"Access denied for user: {email} - Admin privileges required",
        "auth", identity.id, None, {"email": email, "reason": reason},
    )
    AuthProvider(session).sign_out(request)
    return encoded_redirect("error", "/sign-in", "Access denied. Admin privileges required.")


# =========================================================
# CONNEXION / DÉCONNEXION
# =========================================================

def sign_in(request: Request, session: Session, email: str, password: str):
    auth = AuthProvider(session)

    try:
        identity = auth.sign_in_with_password(request, email, password)
    except AuthError as exc:
        log_admin_action(
            request, session, AdminAction.LOGIN_FAILED,
            f"Failed login attempt for email: {email} - {exc.message}",
            "auth", None, None, {"email": email, "error": exc.message},
        )
        return encoded_redirect("error", "/sign-in", exc.message)

    profile = admin_profile(session, identity, email or "")
    if not profile:
        return _deny(request, session, identity, email)

    log_admin_action(
        request, session, AdminAction.LOGIN,
        f"Admin user logged in: {_display_name(profile)} ({identity.email})",
        "auth", identity.id, None,
        {"email": identity.email, "userId": identity.id, "loginTime": utcnow().isoformat()},
    )
    return encoded_redirect("success", "/dashboard", "Signed in")


def sign_out(request: Request, session: Session):
    auth = AuthProvider(session)
    identity = auth.get_user(request)

    if identity:
        profile = session.get(User, identity.id)
        log_admin_action(
            request, session, AdminAction.LOGOUT,
            f"Admin user logged out: {_display_name(profile)} ({identity.email})",
            "auth", identity.id, None,
            {"email": identity.email, "userId": identity.id, "logoutTime": utcnow().isoformat()},
        )

    auth.sign_out(request)
    return encoded_redirect("message", "/sign-in", "You have been signed out")


# =========================================================
# MOTS DE PASSE
# =========================================================

def forgot_password(request: Request, session: Session, email: str, callback_url: str | None = None):
    if not email:
        return encoded_redirect("error", "/forgot-password", "Email is required")

    redirect_to = f"{_origin(request)}/auth/callback?redirect_to={RESET_PAGE}"
    try:
        AuthProvider(session).reset_password_for_email(email, redirect_to)
    except (AuthError, SQLAlchemyError) as exc:
        session.rollback()
        logger.error("Could not reset password for %s: %s", email, getattr(exc, "message", exc))
        return encoded_redirect("error", "/forgot-password", "Could not reset password")

    callback_url = safe_path(callback_url)
    if callback_url:
        return encoded_redirect("message", callback_url, "Check your email for a link to reset your password.")

    return encoded_redirect(
        "success", "/forgot-password", "Check your email for a link to reset your password."
    )


def recovery_callback(request: Request, session: Session, token: str, redirect_to: str):
    try:
        identity = AuthProvider(session).exchange_recovery_token(request, token)
    except AuthError as exc:
        return encoded_redirect("error", "/sign-in", exc.message)

    if not admin_profile(session, identity):
        return _deny(request, session, identity, identity.email)

    return RedirectResponse(safe_path(redirect_to, "/dashboard"), status_code=302)


def reset_password(request: Request, session: Session, password: str, confirm_password: str):
    if not password or not confirm_password:
        return encoded_redirect("error", RESET_PAGE, "Password and confirm password are required")

    if password != confirm_password:
        return encoded_redirect("error", RESET_PAGE, "Passwords do not match")

    try:
        AuthProvider(session).update_user(request, password)
    except AuthError as exc:
        logger.error("Password update failed: %s", exc.message)
        return encoded_redirect("error", RESET_PAGE, "Password update failed")

    return encoded_redirect("success", RESET_PAGE, "Password updated")


# =========================================================
# FORMULAIRE DE CONTACT
# =========================================================

def submit_contact_message(
    request: Request, session: Session, name: str, email: str, subject: str, message: str
):
    if not name or not email or not message:
        return encoded_redirect("error", "/contact", "All fields are required")

    try:
        inserted = Message(name=name, email=email, subject=subject or None, message=message, status="unread")
        session.add(inserted)
        session.commit()
        session.refresh(inserted)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error inserting message: %s", exc)
        return encoded_redirect("error", "/contact", "Failed to send message. Please try again.")

    log_admin_action(
        request, session, AdminAction.MESSAGE_RECEIVED,
        f"New contact message received from {name} ({email})",
        "messages", inserted.id, None, inserted,
    )
    return encoded_redirect("success", "/contact", "Thank you for your message! We'll get back to you soon.")


# =========================================================
# ADMINISTRATEURS
# =========================================================

def create_admin_user(
    request: Request, session: Session, email: str, password: str, full_name: str, name: str | None
):
    if not email or not password or not full_name:
        return encoded_redirect("error", ADMIN_PAGE, "All fields are required")

    auth = AuthProvider(session)
    try:
        try:
            identity = auth.admin_create_user(email, password, email_confirm=True)
        except AuthError as exc:
            logger.error("Error creating auth user: %s", exc.message)
            log_admin_action(
                request, session, AdminAction.CREATE_FAILED,
                f"Failed to create admin user: {email} - {exc.message}",
                "users", None, None, {"email": email, "fullName": full_name, "error": exc.message},
            )
            return encoded_redirect("error", ADMIN_PAGE, "Failed to create admin user: " + exc.message)

        identity_id = identity.id
        profile = User(
            id=identity.id,
            email=identity.email,
            full_name=full_name,
            name=name or full_name,
            token_identifier=identity.id,
            user_id=identity.id,
        )
        try:
            session.add(profile)
            session.commit()
            session.refresh(profile)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Error creating user record: %s", exc)
            # No auth-only accounts: drop the identity that was just provisioned
            auth.admin_delete_user(identity_id)
            log_admin_action(
                request, session, AdminAction.CREATE_FAILED,
                f"Failed to create user record for: {full_name} ({email}) - {exc}",
                "users", identity_id, None, {"email": email, "fullName": full_name, "error": str(exc)},
            )
            return encoded_redirect("error", ADMIN_PAGE, f"Failed to create user record: {exc}")

        log_admin_action(
            request, session, AdminAction.CREATE,
            f"Created new admin user: {full_name} ({email})",
            "users", profile.id, None, profile,
        )
        return encoded_redirect("success", ADMIN_PAGE, "Admin user created successfully")
    except Exception as exc:
        session.rollback()
        logger.exception("Unexpected error creating admin user %s", email)
        log_admin_action(
            request, session, AdminAction.CREATE_ERROR,
            f"Unexpected error creating admin user: {full_name} ({email}) - {exc}",
            "users", None, None, {"email": email, "fullName": full_name, "error": str(exc)},
        )
        return encoded_redirect("error", ADMIN_PAGE, "An unexpected error occurred. Please try again.")


def update_admin_user(
    request: Request,
    session: Session,
    user_id: str,
    email: str,
    full_name: str,
    name: str | None,
    password: str | None,
):
    if not user_id or not email or not full_name:
        log_admin_action(
            request, session, AdminAction.UPDATE_FAILED,
            "Failed to update admin user - missing required fields",
            "users", user_id or None, None,
            {"userId": user_id, "email": email, "fullName": full_name, "error": "Required fields missing"},
        )
        return encoded_redirect("error", ADMIN_PAGE, "Required fields are missing")

    auth = AuthProvider(session)
    try:
        current = session.get(User, user_id)
        if not current:
            log_admin_action(
                request, session, AdminAction.UPDATE_FAILED,
                f"Failed to get user data for update: {user_id} - not found",
                "users", user_id, None, {"userId": user_id, "error": "User not found"},
            )
            return encoded_redirect("error", ADMIN_PAGE, "Failed to get user data")
        before = row_data(current)

        try:
            auth.admin_update_user_by_id(user_id, email=email, password=password or None)
        except AuthError as exc:
            logger.error("Error updating auth user: %s", exc.message)
            log_admin_action(
                request, session, AdminAction.UPDATE_FAILED,
                f"Failed to update auth user: {full_name} ({email}) - {exc.message}",
                "users", user_id, before, {"email": email, "fullName": full_name, "error": exc.message},
            )
            return encoded_redirect("error", ADMIN_PAGE, "Failed to update auth user: " + exc.message)

        try:
            current.email = email.strip().lower()
            current.full_name = full_name
            current.name = name or full_name
            current.updated_at = utcnow()
            session.add(current)
            session.commit()
            session.refresh(current)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Error updating user record: %s", exc)
            log_admin_action(
                request, session, AdminAction.UPDATE_FAILED,
                f"Failed to update user record: {full_name} ({email}) - {exc}",
                "users", user_id, before, {"email": email, "fullName": full_name, "error": str(exc)},
            )
            return encoded_redirect("error", ADMIN_PAGE, f"Failed to update user record: {exc}")

        suffix = " (password changed)" if password else ""
        log_admin_action(
            request, session, AdminAction.UPDATE,
            f"Updated admin user: {full_name} ({email}){suffix}",
            "users", user_id, before, current,
        )
        return encoded_redirect("success", ADMIN_PAGE, "Admin user updated successfully")
    except Exception as exc:
        session.rollback()
        logger.exception("Unexpected error updating admin user %s", user_id)
        log_admin_action(
            request, session, AdminAction.UPDATE_ERROR,
            f"Unexpected error updating admin user: {full_name} ({email}) - {exc}",
            "users", user_id, None, {"email": email, "fullName": full_name, "error": str(exc)},
        )
        return encoded_redirect("error", ADMIN_PAGE, "An unexpected error occurred. Please try again.")


def delete_admin_user(request: Request, session: Session, user_id: str):
    if not user_id:
        log_admin_action(
            request, session, AdminAction.DELETE_FAILED,
            "Failed to delete admin user - User ID is required",
            "users", None, None, {"error": "User ID is required"},
        )
        return encoded_redirect("error", ADMIN_PAGE, "User ID is required")

    auth = AuthProvider(session)
    try:
        current = session.get(User, user_id)
        if not current:
            log_admin_action(
                request, session, AdminAction.DELETE_FAILED,
                f"Failed to get user data for deletion: {user_id} - not found",
                "users", user_id, None, {"userId": user_id, "error": "User not found"},
            )
            return encoded_redirect("error", ADMIN_PAGE, "Failed to get user data")
        before = row_data(current)
        label = f"{_display_name(current)} ({current.email})"

        actor = auth.get_user(request)
        if actor and actor.id == user_id:
            log_admin_action(
                request, session, AdminAction.DELETE_FAILED,
                f"Attempted to delete own account: {label}",
                "users", user_id, before, {"error": "Cannot delete own account"},
            )
            return encoded_redirect("error", ADMIN_PAGE, "Cannot delete your own account")

        try:
            session.delete(current)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Error deleting user record: %s", exc)
            log_admin_action(
                request, session, AdminAction.DELETE_FAILED,
                f"Failed to delete user record: {label} - {exc}",
                "users", user_id, before, {"error": str(exc)},
            )
            return encoded_redirect("error", ADMIN_PAGE, f"Failed to delete user record: {exc}")

        auth_failed = False
        try:
            auth.admin_delete_user(user_id)
        except AuthError as exc:
            # Profile is already gone; report the orphaned identity but keep going
            auth_failed = True
            logger.error("Error deleting auth user: %s", exc.message)
            log_admin_action(
                request, session, AdminAction.DELETE_PARTIAL,
                f"Deleted user record but failed to delete auth user: {label} - {exc.message}",
                "users", user_id, before, {"authError": exc.message},
            )

        suffix = " (auth deletion failed)" if auth_failed else ""
        log_admin_action(
            request, session, AdminAction.DELETE,
            f"Deleted admin user: {label}{suffix}",
            "users", user_id, before, None,
        )
        return encoded_redirect("success", ADMIN_PAGE, "Admin user deleted successfully")
    except Exception as exc:
        session.rollback()
        logger.exception("Unexpected error deleting admin user %s", user_id)
        log_admin_action(
            request, session, AdminAction.DELETE_ERROR,
            f"Unexpected error deleting admin user: {user_id} - {exc}",
            "users", user_id, None, {"userId": user_id, "error": str(exc)},
        )
        return encoded_redirect("error", ADMIN_PAGE, "An unexpected error occurred. Please try again.")


def bootstrap_admin(session: Session, email: str | None, password: str | None, full_name: str) -> None:
    """Create the first admin from the environment while ``users`` is empty."""
    if session.exec(select(User)).first():
        return
    if not email or not password:
        logger.warning("No admin users exist; set ADMIN_EMAIL and ADMIN_PASSWORD to create one")
        return

    try:
        identity = AuthProvider(session).admin_create_user(email, password, email_confirm=True)
    except AuthError as exc:
        logger.error("Could not create bootstrap admin %s: %s", email, exc.message)
        return
    session.add(User(
        id=identity.id,
        email=identity.email,
        full_name=full_name,
        name=full_name,
        token_identifier=identity.id,
        user_id=identity.id,
    ))
    session.commit()
    logger.info("Created bootstrap admin %s", identity.email)
