"""Append-only trail of admin actions.

``log_admin_action`` records who did what, to which table row, with
before/after snapshots of the data and the requester's address. Logging is
best effort: a missing actor or a failed insert is reported on the module
logger and never interrupts the action being logged. The returned row (or
``None``) lets a caller check whether the entry was stored.
"""
import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from app.auth import AuthProvider
from app.models import AdminLog, row_data

logger = logging.getLogger(__name__)


class AdminAction(str, Enum):
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_DENIED = "LOGIN_DENIED"
    LOGOUT = "LOGOUT"
    CREATE = "CREATE"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_ERROR = "CREATE_ERROR"
    UPDATE = "UPDATE"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_ERROR = "UPDATE_ERROR"
    DELETE = "DELETE"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_PARTIAL = "DELETE_PARTIAL"
    DELETE_ERROR = "DELETE_ERROR"
    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"
    VIEW = "VIEW"


class AdminLogEntry(BaseModel):
    """Body accepted by the ``/api/admin-log`` relay."""

    model_config = ConfigDict(populate_by_name=True)

    action: str
    description: str | None = None
    table_name: str | None = Field(default=None, alias="tableName")
    record_id: str | int | None = Field(default=None, alias="recordId")
    old_data: Any = Field(default=None, alias="oldData")
    new_data: Any = Field(default=None, alias="newData")


def _to_json(value):
    if isinstance(value, SQLModel):
        return row_data(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    # Anything else has no JSON form and is stored as null
    return None


def snapshot(data: Any) -> Any:
    """Deep-copy ``data`` through JSON, keeping only what JSON can hold.

    Empty payloads are stored as NULL.
    """
    if not data:
        return None
    return json.loads(json.dumps(data, default=_to_json))


def client_ip(request: Request) -> str | None:
    return request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or None


def log_admin_action(
    request: Request,
    session: Session,
    action: str,
    description: str | None = None,
    table_name: str | None = None,
    record_id: Any = None,
    old_data: Any = None,
    new_data: Any = None,
) -> AdminLog | None:
    if isinstance(action, AdminAction):
        action = action.value

    try:
        user = AuthProvider(session).get_user(request)
        if not user:
            logger.warning("No authenticated user for admin action logging (%s)", action)
            return None

        entry = AdminLog(
            user_id=user.id,
            action=action,
            description=description,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_data=snapshot(old_data),
            new_data=snapshot(new_data),
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent") or None,
        )
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error logging admin action %s: %s", action, exc)
    except Exception:
        logger.exception("Unexpected error logging admin action %s", action)
    return None
