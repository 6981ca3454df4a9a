import logging
from typing import Any

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from app import actions
from app.crud import RESOURCES, RecordNotFound, delete_record, save_record
from app.database import get_session
from app.display import (
    CONTACT_TYPES,
    HOME_SECTIONS,
    PROJECT_CATEGORIES,
    PROJECT_STATUSES,
    SKILL_CATEGORIES,
    contact_type_defaults,
)
from app.forms import InvalidJSON, blank_to_none, parse_json_field, parse_technologies
from app.models import (
    AboutContent,
    AdminLog,
    ContactInfo,
    HomeContent,
    Message,
    Project,
    Skill,
    User,
)
from app.templating import templates_admin
from app.utils import banner_from, encoded_redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard")

LOG_LIMIT = 100


def admin_page(request: Request, name: str, active: str, user, **context):
    context.update(active=active, user=user, banner=banner_from(request.query_params))
    return templates_admin.TemplateResponse(request, name, context)


def signed_in(request: Request, session: Session):
    return actions.current_admin(request, session)


def to_sign_in():
    return RedirectResponse("/sign-in", status_code=302)


def _editing(session: Session, model, edit: int | None):
    return session.get(model, edit) if edit is not None else None


def _list(session: Session, model, *order_by) -> list[Any]:
    try:
        return list(session.exec(select(model).order_by(*order_by)).all())
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error fetching %s: %s", model.__tablename__, exc)
        return []


def _save(request, session, table, values, record_id=None, description=None):
    resource = RESOURCES[table]
    noun = resource.noun[0].upper() + resource.noun[1:]
    try:
        save_record(request, session, resource, values, record_id, description)
    except RecordNotFound:
        return encoded_redirect("error", resource.page, f"{noun} not found")
    except SQLAlchemyError as exc:
        logger.error("Error saving %s: %s", resource.noun, exc)
        return encoded_redirect("error", resource.page, f"Failed to save {resource.noun}")
    verb = "updated" if record_id is not None else "created"
    return encoded_redirect("success", resource.page, f"{noun} {verb}")


def _delete(request, session, table, record_id, description=None):
    resource = RESOURCES[table]
    noun = resource.noun[0].upper() + resource.noun[1:]
    try:
        delete_record(request, session, resource, record_id, description)
    except RecordNotFound:
        return encoded_redirect("error", resource.page, f"{noun} not found")
    except SQLAlchemyError as exc:
        logger.error("Error deleting %s: %s", resource.noun, exc)
        return encoded_redirect("error", resource.page, f"Failed to delete {resource.noun}")
    return encoded_redirect("success", resource.page, f"{noun} deleted")


# =========================================================
# 🖥️ TABLEAU DE BORD
# =========================================================

def dashboard_stats(session: Session) -> dict[str, Any]:
    stats = {"total_projects": 0, "skills_listed": 0, "total_messages": 0, "last_updated": "No data"}
    try:
        stats["total_projects"] = session.exec(select(func.count()).select_from(Project)).one()
        stats["skills_listed"] = session.exec(select(func.count()).select_from(Skill)).one()
        stats["total_messages"] = session.exec(select(func.count()).select_from(Message)).one()
        last = session.exec(
            select(Project.updated_at).order_by(col(Project.updated_at).desc()).limit(1)
        ).first()
        if last:
            stats["last_updated"] = last.strftime("%d/%m/%Y")
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error fetching stats: %s", exc)
    return stats


@router.get("", response_class=HTMLResponse)
async def dashboard(request: Request, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(request, "dashboard.html", "dashboard", user, stats=dashboard_stats(session))


# =========================================================
# 🧰 COMPÉTENCES
# =========================================================

@router.get("/skills", response_class=HTMLResponse)
async def dashboard_skills(request: Request, edit: int | None = None, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(
        request, "skills.html", "skills", user,
        skills=_list(session, Skill, Skill.category, col(Skill.level).desc()),
        editing=_editing(session, Skill, edit),
        categories=SKILL_CATEGORIES,
    )


@router.post("/skills/add")
async def add_skill(
    request: Request,
    name: str = Form(...),
    category: str = Form(...),
    level: int = Form(50, ge=0, le=100),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return _save(request, session, "skills", {"name": name, "level": level, "category": category})


@router.post("/skills/edit/{skill_id}")
async def edit_skill(
    skill_id: int,
    request: Request,
    name: str = Form(...),
    category: str = Form(...),
    level: int = Form(50, ge=0, le=100),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return _save(request, session, "skills", {"name": name, "level": level, "category": category}, skill_id)


@router.post("/skills/delete/{skill_id}")
async def delete_skill(skill_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return _delete(request, session, "skills", skill_id)


# =========================================================
# 📁 PROJETS
# =========================================================

def _project_values(title, description, image, technologies, category, live_url, github_url,
                    featured, date, status) -> dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "image": blank_to_none(image),
        "technologies": parse_technologies(technologies),
        "category": category,
        "live_url": blank_to_none(live_url),
        "github_url": blank_to_none(github_url),
        "featured": featured,
        "date": date,
        "status": status,
    }


@router.get("/projects", response_class=HTMLResponse)
async def dashboard_projects(request: Request, edit: int | None = None, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(
        request, "projects.html", "projects", user,
        projects=_list(session, Project, col(Project.featured).desc(), col(Project.created_at).desc()),
        editing=_editing(session, Project, edit),
        categories=PROJECT_CATEGORIES,
        statuses=PROJECT_STATUSES,
    )


@router.post("/projects/add")
async def add_project(
    request: Request,
    title: str = Form(...),
    description: str = Form(...),
    image: str = Form(""),
    technologies: str = Form(""),
    category: str = Form(...),
    live_url: str = Form(""),
    github_url: str = Form(""),
    featured: bool = Form(False),
    date: str = Form(""),
    status: str = Form("Completed"),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    values = _project_values(title, description, image, technologies, category, live_url,
                             github_url, featured, date, status)
    if not values["date"]:
        values.pop("date")
    return _save(request, session, "projects", values)


@router.post("/projects/edit/{project_id}")
async def edit_project(
    project_id: int,
    request: Request,
    title: str = Form(...),
    description: str = Form(...),
    image: str = Form(""),
    technologies: str = Form(""),
    category: str = Form(...),
    live_url: str = Form(""),
    github_url: str = Form(""),
    featured: bool = Form(False),
    date: str = Form(""),
    status: str = Form("Completed"),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    values = _project_values(title, description, image, technologies, category, live_url,
                             github_url, featured, date, status)
    if not values["date"]:
        values.pop("date")
    return _save(request, session, "projects", values, project_id)


@router.post("/projects/delete/{project_id}")
async def delete_project(project_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return _delete(request, session, "projects", project_id)


# =========================================================
# 🙋 À PROPOS & ACCUEIL
# =========================================================

def _section_values(section, title, content, data):
    return {"section": section, "title": blank_to_none(title), "content": content, "data": data}


@router.get("/about", response_class=HTMLResponse)
async def dashboard_about(request: Request, edit: int | None = None, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(
        request, "content.html", "about", user,
        heading="About Content",
        base="/dashboard/about",
        rows=_list(session, AboutContent, AboutContent.section),
        editing=_editing(session, AboutContent, edit),
        sections=[],
    )


@router.post("/about/add")
async def add_about(
    request: Request,
    section: str = Form(...),
    title: str = Form(""),
    content: str = Form(""),
    data: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    try:
        parsed = parse_json_field(data)
    except InvalidJSON as exc:
        return encoded_redirect("error", "/dashboard/about", str(exc))
    return _save(request, session, "about_content", _section_values(section, title, content, parsed))


@router.post("/about/edit/{content_id}")
async def edit_about(
    content_id: int,
    request: Request,
    section: str = Form(...),
    title: str = Form(""),
    content: str = Form(""),
    data: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    try:
        parsed = parse_json_field(data)
    except InvalidJSON as exc:
        return encoded_redirect("error", f"/dashboard/about?edit={content_id}", str(exc))
    return _save(request, session, "about_content", _section_values(section, title, content, parsed), content_id)


@router.post("/about/delete/{content_id}")
async def delete_about(content_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return _delete(request, session, "about_content", content_id)


@router.get("/home", response_class=HTMLResponse)
async def dashboard_home(request: Request, edit: int | None = None, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(
        request, "content.html", "home", user,
        heading="Home Content",
        base="/dashboard/home",
        rows=_list(session, HomeContent, HomeContent.section),
        editing=_editing(session, HomeContent, edit),
        sections=HOME_SECTIONS,
    )


@router.post("/home/add")
async def add_home(
    request: Request,
    section: str = Form(...),
    title: str = Form(""),
    content: str = Form(""),
    data: str = Form("{}"),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    try:
        parsed = parse_json_field(data, empty={})
    except InvalidJSON as exc:
        return encoded_redirect("error", "/dashboard/home", str(exc))
    return _save(request, session, "home_content", _section_values(section, title, content, parsed))


@router.post("/home/edit/{content_id}")
async def edit_home(
    content_id: int,
    request: Request,
    section: str = Form(...),
    title: str = Form(""),
    content: str = Form(""),
    data: str = Form("{}"),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    try:
        parsed = parse_json_field(data, empty={})
    except InvalidJSON as exc:
        return encoded_redirect("error", f"/dashboard/home?edit={content_id}", str(exc))
    return _save(request, session, "home_content", _section_values(section, title, content, parsed), content_id)


@router.post("/home/delete/{content_id}")
async def delete_home(content_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return _delete(request, session, "home_content", content_id)


# =========================================================
# ✉️ CONTACT & MESSAGES
# =========================================================

def _contact_values(type_, title, value, link, icon) -> dict[str, Any]:
    defaults = contact_type_defaults(type_)
    return {
        "type": type_,
        "title": title or defaults["title"] or type_,
        "value": value,
        "link": blank_to_none(link),
        "icon": icon or defaults["icon"] or None,
    }


@router.get("/contact", response_class=HTMLResponse)
async def dashboard_contact(request: Request, edit: int | None = None, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    messages = _list(session, Message, col(Message.created_at).desc())
    return admin_page(
        request, "contact.html", "contact", user,
        contact_info=_list(session, ContactInfo, ContactInfo.type),
        editing=_editing(session, ContactInfo, edit),
        contact_types=CONTACT_TYPES,
        messages=messages,
        unread=sum(1 for m in messages if m.status == "unread"),
    )


@router.post("/contact/add")
async def add_contact_info(
    request: Request,
    type: str = Form(...),
    title: str = Form(""),
    value: str = Form(...),
    link: str = Form(""),
    icon: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return _save(request, session, "contact_info", _contact_values(type, title, value, link, icon))


@router.post("/contact/edit/{contact_id}")
async def edit_contact_info(
    contact_id: int,
    request: Request,
    type: str = Form(...),
    title: str = Form(""),
    value: str = Form(...),
    link: str = Form(""),
    icon: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return _save(request, session, "contact_info", _contact_values(type, title, value, link, icon), contact_id)


@router.post("/contact/delete/{contact_id}")
async def delete_contact_info(contact_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return _delete(request, session, "contact_info", contact_id)


def _mark_read(request: Request, session: Session, message: Message):
    return _save(
        request, session, "messages", {"status": "read"}, message.id,
        description=f"Marked message as read from: {message.name}",
    )


@router.get("/messages/{msg_id}", response_class=HTMLResponse)
async def view_message(msg_id: int, request: Request, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    message = session.get(Message, msg_id)
    if not message:
        return encoded_redirect("error", "/dashboard/contact", "Message not found")
    if message.status == "unread":
        _mark_read(request, session, message)
        session.refresh(message)

    return admin_page(request, "message.html", "contact", user, message=message)


@router.post("/messages/read/{msg_id}")
async def mark_message_read(msg_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    message = session.get(Message, msg_id)
    if not message:
        return encoded_redirect("error", "/dashboard/contact", "Message not found")
    return _mark_read(request, session, message)


@router.post("/messages/delete/{msg_id}")
async def delete_message(msg_id: int, request: Request, session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    message = session.get(Message, msg_id)
    if not message:
        return encoded_redirect("error", "/dashboard/contact", "Message not found")
    return _delete(
        request, session, "messages", msg_id,
        description=f"Deleted message from: {message.name} ({message.email})",
    )


# =========================================================
# 🛡️ ADMINISTRATEURS ET JOURNAL
# =========================================================

def fetch_logs(session: Session, action: str = "all", search: str = "") -> list[AdminLog]:
    query = select(AdminLog).order_by(col(AdminLog.created_at).desc(), col(AdminLog.id).desc())
    if action and action != "all":
        query = query.where(AdminLog.action == action)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            col(AdminLog.action).ilike(pattern),
            col(AdminLog.description).ilike(pattern),
            col(AdminLog.table_name).ilike(pattern),
        ))
    try:
        return list(session.exec(query.limit(LOG_LIMIT)).all())
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Error fetching logs: %s", exc)
        return []


@router.get("/admin", response_class=HTMLResponse)
async def dashboard_admin(
    request: Request,
    action: str = "all",
    q: str = "",
    edit: str | None = None,
    session: Session = Depends(get_session),
):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    logs = fetch_logs(session, action, q)
    return admin_page(
        request, "admin.html", "admin", user,
        logs=logs,
        actions=sorted({log.action for log in logs} | ({action} - {"all"})),
        action=action,
        q=q,
        users=_list(session, User, col(User.created_at).desc()),
        editing=session.get(User, edit) if edit else None,
    )


@router.get("/admin/logs/{log_id}", response_class=HTMLResponse)
async def view_log(log_id: int, request: Request, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    log = session.get(AdminLog, log_id)
    if not log:
        return encoded_redirect("error", "/dashboard/admin", "Log entry not found")
    return admin_page(request, "log.html", "admin", user, log=log)


@router.post("/admin/users/add")
async def add_admin_user(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    fullName: str = Form(""),
    name: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return actions.create_admin_user(request, session, email, password, fullName, name or None)


@router.post("/admin/users/edit")
async def edit_admin_user(
    request: Request,
    userId: str = Form(""),
    email: str = Form(""),
    fullName: str = Form(""),
    name: str = Form(""),
    password: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return actions.update_admin_user(request, session, userId, email, fullName, name or None, password or None)


@router.post("/admin/users/delete")
async def delete_admin_user(request: Request, userId: str = Form(""), session: Session = Depends(get_session)):
    if not signed_in(request, session):
        return to_sign_in()

    return actions.delete_admin_user(request, session, userId)


# =========================================================
# ⚙️ MOT DE PASSE
# =========================================================

@router.get("/reset-password", response_class=HTMLResponse)
async def reset_password_page(request: Request, session: Session = Depends(get_session)):
    user = signed_in(request, session)
    if not user:
        return to_sign_in()

    return admin_page(request, "reset-password.html", "settings", user)


@router.post("/reset-password")
async def reset_password(
    request: Request,
    password: str = Form(""),
    confirmPassword: str = Form(""),
    session: Session = Depends(get_session),
):
    if not signed_in(request, session):
        return to_sign_in()

    return actions.reset_password(request, session, password, confirmPassword)
