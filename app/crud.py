"""Insert-or-update and delete-by-id for dashboard content, with audit rows."""
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from sqlmodel import Session, SQLModel

from app.audit import AdminAction, log_admin_action
from app.models import AboutContent, ContactInfo, HomeContent, Message, Project, Skill, row_data, utcnow

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    pass


@dataclass(frozen=True)
class Resource:
    model: type[SQLModel]
    noun: str
    label_field: str
    page: str

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def label(self, record: SQLModel) -> str:
        return str(getattr(record, self.label_field, "") or "")


RESOURCES = {
    "projects": Resource(Project, "project", "title", "/dashboard/projects"),
    "skills": Resource(Skill, "skill", "name", "/dashboard/skills"),
    "about_content": Resource(AboutContent, "about content section", "section", "/dashboard/about"),
    "home_content": Resource(HomeContent, "home content section", "section", "/dashboard/home"),
    "contact_info": Resource(ContactInfo, "contact info", "title", "/dashboard/contact"),
    "messages": Resource(Message, "message", "name", "/dashboard/contact"),
}


def get_record(session: Session, resource: Resource, record_id: int) -> SQLModel:
    record = session.get(resource.model, record_id)
    if record is None:
        raise RecordNotFound(f"{resource.noun} {record_id} not found")
    return record


def save_record(
    request: Request,
    session: Session,
    resource: Resource,
    values: dict[str, Any],
    record_id: int | None = None,
    description: str | None = None,
) -> SQLModel:
    """Insert ``values`` or, with ``record_id``, update that row.

    Database errors are rolled back and re-raised; the audit row is only
    attempted once the change is committed.
    """
    try:
        if record_id is None:
            record = resource.model(**values)
            old_data = None
            action = AdminAction.CREATE
        else:
            record = get_record(session, resource, record_id)
            old_data = row_data(record)
            for key, value in values.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            action = AdminAction.UPDATE

        session.add(record)
        session.commit()
        session.refresh(record)
    except Exception:
        session.rollback()
        raise

    if description is None:
        verb = "Created new" if action is AdminAction.CREATE else "Updated"
        description = f"{verb} {resource.noun}: {resource.label(record)}"

    log_admin_action(
        request,
        session,
        action,
        description,
        resource.table,
        record.id,
        old_data,
        row_data(record),
    )
    return record


def delete_record(
    request: Request,
    session: Session,
    resource: Resource,
    record_id: int,
    description: str | None = None,
) -> dict[str, Any]:
    record = get_record(session, resource, record_id)
    old_data = row_data(record)
    description = description or f"Deleted {resource.noun}: {resource.label(record)}"
    try:
        session.delete(record)
        session.commit()
    except Exception:
        session.rollback()
        raise

    log_admin_action(
        request,
        session,
        AdminAction.DELETE,
        description,
        resource.table,
        record_id,
        old_data,
        None,
    )
    return old_data
