import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


def row_data(row: SQLModel) -> dict[str, Any]:
    """Column values of ``row`` as JSON-ready data.

    Attributes are read one by one so that columns expired by a commit are
    loaded again; ``model_dump`` would leave them out.
    """
    return to_jsonable_python({name: getattr(row, name) for name in type(row).model_fields})


# =========================================================
# CONTENU PUBLIC
# =========================================================

class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str
    image: str | None = None
    technologies: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    category: str = ""
    live_url: str | None = None
    github_url: str | None = None
    featured: bool = False
    date: str = Field(default_factory=lambda: str(utcnow().year))
    status: str = "Completed"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Skill(SQLModel, table=True):
    __tablename__ = "skills"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    level: int = 50
    category: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AboutContent(SQLModel, table=True):
    __tablename__ = "about_content"

    id: int | None = Field(default=None, primary_key=True)
    section: str = Field(index=True)
    title: str | None = None
    content: str = ""
    data: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class HomeContent(SQLModel, table=True):
    __tablename__ = "home_content"

    id: int | None = Field(default=None, primary_key=True)
    section: str = Field(index=True)
    title: str | None = None
    content: str = ""
    data: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ContactInfo(SQLModel, table=True):
    __tablename__ = "contact_info"

    id: int | None = Field(default=None, primary_key=True)
    type: str
    title: str
    value: str
    link: str | None = None
    icon: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str
    subject: str | None = None
    message: str
    status: str = "unread"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =========================================================
# ADMINS & IDENTITÉS
# =========================================================

class Identity(SQLModel, table=True):
    """Credentials owned by the auth provider, one per admin account."""

    __tablename__ = "auth_users"

    id: str = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    email_confirmed_at: datetime | None = None
    recovery_token: str | None = Field(default=None, index=True)
    recovery_sent_at: datetime | None = None
    last_sign_in_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class User(SQLModel, table=True):
    """Admin profile mirrored from an identity; shares its id."""

    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: str
    name: str | None = None
    token_identifier: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AdminLog(SQLModel, table=True):
    __tablename__ = "admin_logs"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    action: str = Field(index=True)
    description: str | None = None
    table_name: str | None = None
    record_id: str | None = None
    old_data: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    new_data: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
