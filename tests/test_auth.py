import logging
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlmodel import Session
from starlette.websockets import WebSocketDisconnect

from app.auth import AuthError, AuthProvider, hash_password, verify_password
from app.models import AdminLog, Identity, User, utcnow

ADMIN_EMAIL = "admin@example.com"


def banner(response, kind):
    return parse_qs(urlsplit(response.headers["location"]).query).get(kind, [None])[0]


def test_password_hash_round_trip():
    hashed = hash_password("hunter22")
    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)
    assert not verify_password("hunter22", "garbage")


def test_admin_create_user_rejects_duplicates_and_short_passwords(engine):
    with Session(engine) as session:
        auth = AuthProvider(session)
        auth.admin_create_user("Someone@Example.com", "secret123", email_confirm=True)
        with pytest.raises(AuthError):
            auth.admin_create_user("someone@example.com", "secret123")
        with pytest.raises(AuthError):
            auth.admin_create_user("other@example.com", "123")


def test_dashboard_requires_sign_in(client):
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/sign-in"


def test_sign_in_logs_login(admin_client, rows, admin_id):
    [entry] = rows(AdminLog, AdminLog.action == "LOGIN")
    assert entry.user_id == admin_id
    assert entry.table_name == "auth"
    assert entry.new_data["email"] == ADMIN_EMAIL

    assert admin_client.get("/dashboard").status_code == 200


def test_bad_credentials(client, admin_id, rows):
    response = client.post(
        "/sign-in", data={"email": ADMIN_EMAIL, "password": "wrong-password"}, follow_redirects=False
    )
    assert banner(response, "error") == "Invalid login credentials"
    # Nobody is signed in, so there is no actor to attribute the failure to
    assert rows(AdminLog) == []


def test_identity_without_profile_is_denied(client, engine, rows):
    with Session(engine) as session:
        identity = AuthProvider(session).admin_create_user("ghost@example.com", "secret123", email_confirm=True)
        ghost_id = identity.id

    response = client.post(
        "/sign-in", data={"email": "ghost@example.com", "password": "secret123"}, follow_redirects=False
    )
    assert banner(response, "error") == "Access denied. Admin privileges required."
    [entry] = rows(AdminLog, AdminLog.action == "LOGIN_DENIED")
    assert entry.user_id == ghost_id
    assert client.get("/dashboard", follow_redirects=False).status_code == 302


def test_unconfirmed_email_cannot_sign_in(client, engine):
    with Session(engine) as session:
        AuthProvider(session).admin_create_user("new@example.com", "secret123")

    response = client.post(
        "/sign-in", data={"email": "new@example.com", "password": "secret123"}, follow_redirects=False
    )
    assert banner(response, "error") == "Email not confirmed"


def test_sign_out_logs_and_clears_session(admin_client, rows):
    response = admin_client.post("/sign-out", follow_redirects=False)
    assert banner(response, "message") == "You have been signed out"
    assert len(rows(AdminLog, AdminLog.action == "LOGOUT")) == 1
    assert admin_client.get("/dashboard", follow_redirects=False).status_code == 302


def test_recovery_link_signs_in(client, admin_id, rows, caplog):
    with caplog.at_level(logging.INFO, logger="app.auth"):
        response = client.post("/forgot-password", data={"email": ADMIN_EMAIL}, follow_redirects=False)
    assert banner(response, "success") == "Check your email for a link to reset your password."

    [identity] = rows(Identity, Identity.id == admin_id)
    assert identity.recovery_token
    assert identity.recovery_token in caplog.text

    response = client.get(
        "/auth/callback",
        params={"token": identity.recovery_token, "redirect_to": "/dashboard/reset-password"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/dashboard/reset-password"

    response = client.post(
        "/dashboard/reset-password",
        data={"password": "brand-new-pw", "confirmPassword": "brand-new-pw"},
        follow_redirects=False,
    )
    assert banner(response, "success") == "Password updated"
    [identity] = rows(Identity, Identity.id == admin_id)
    assert identity.recovery_token is None
    assert verify_password("brand-new-pw", identity.password_hash)


def test_expired_recovery_token_is_rejected(client, engine, admin_id):
    with Session(engine) as session:
        identity = session.get(Identity, admin_id)
        identity.recovery_token = "stale-token"
        identity.recovery_sent_at = utcnow() - timedelta(days=1)
        session.add(identity)
        session.commit()

    response = client.get("/auth/callback", params={"token": "stale-token"}, follow_redirects=False)
    assert banner(response, "error") == "Email link is invalid or has expired"


def test_callback_ignores_offsite_redirect(client, engine, admin_id):
    with Session(engine) as session:
        identity = session.get(Identity, admin_id)
        identity.recovery_token = "fresh-token"
        identity.recovery_sent_at = utcnow()
        session.add(identity)
        session.commit()

    response = client.get(
        "/auth/callback",
        params={"token": "fresh-token", "redirect_to": "//evil.example.com"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/dashboard"


def test_recovery_link_without_profile_is_denied(client, engine, rows):
    with Session(engine) as session:
        identity = AuthProvider(session).admin_create_user("ghost@example.com", "secret123", email_confirm=True)
        identity.recovery_token = "ghost-token"
        identity.recovery_sent_at = utcnow()
        session.add(identity)
        session.commit()
        ghost_id = identity.id

    response = client.get(
        "/auth/callback",
        params={"token": "ghost-token", "redirect_to": "/dashboard/admin"},
        follow_redirects=False,
    )
    assert banner(response, "error") == "Access denied. Admin privileges required."
    [entry] = rows(AdminLog, AdminLog.action == "LOGIN_DENIED")
    assert entry.user_id == ghost_id
    assert entry.new_data["reason"] == "No admin record found"

    response = client.get("/dashboard/admin", follow_redirects=False)
    assert response.headers["location"] == "/sign-in"


def test_session_without_profile_loses_access(admin_client, engine, admin_id):
    # The identity outlives its users row, as after a partial deletion
    with Session(engine) as session:
        session.delete(session.get(User, admin_id))
        session.commit()

    response = admin_client.get("/dashboard", follow_redirects=False)
    assert response.headers["location"] == "/sign-in"
    assert admin_client.post("/api/admin-log", json={"action": "VIEW"}).status_code == 401
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with admin_client.websocket_connect("/realtime/messages"):
            pass
    assert excinfo.value.code == 1008


def test_forgot_password_follows_same_site_callback(client, admin_id):
    response = client.post(
        "/forgot-password",
        data={"email": ADMIN_EMAIL, "callbackUrl": "/sign-in"},
        follow_redirects=False,
    )
    assert response.headers["location"].startswith("/sign-in?")
    assert banner(response, "message") == "Check your email for a link to reset your password."


@pytest.mark.parametrize(
    "callback_url", ["https://evil.example/phish", "//evil.example/phish", "/\\evil.example"]
)
def test_forgot_password_ignores_offsite_callback(client, admin_id, callback_url):
    response = client.post(
        "/forgot-password",
        data={"email": ADMIN_EMAIL, "callbackUrl": callback_url},
        follow_redirects=False,
    )
    assert response.headers["location"].startswith("/forgot-password?")
    assert banner(response, "success") == "Check your email for a link to reset your password."


def test_reset_password_mismatch(admin_client):
    response = admin_client.post(
        "/dashboard/reset-password",
        data={"password": "abcdefg", "confirmPassword": "abcdefh"},
        follow_redirects=False,
    )
    assert banner(response, "error") == "Passwords do not match"
