import asyncio
import logging

from fastapi import Depends, FastAPI, Form, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlmodel import Session
from starlette.middleware.sessions import SessionMiddleware

from app import actions, config
from app.audit import AdminLogEntry, log_admin_action
from app.content import (
    filter_projects,
    load_about,
    load_contact_info,
    load_hero,
    load_projects,
    load_skills,
)
from app.dashboard import router as dashboard_router
from app.database import engine, get_session, init_db
from app.display import PROJECT_FILTER_CATEGORIES
from app.realtime import feed
from app.templating import BASE_DIR, templates, templates_admin
from app.utils import banner_from

logger = logging.getLogger(__name__)


# =========================================================
# 🔧 CONFIGURATION DE L’APPLICATION
# =========================================================

app = FastAPI()

app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

app.include_router(dashboard_router)


def page(request: Request, name: str, **context):
    context.setdefault("banner", banner_from(request.query_params))
    return templates.TemplateResponse(request, name, context)


# =========================================================
# 🗄️ INITIALISATION DE LA BASE + ADMIN PAR DÉFAUT
# =========================================================

@app.on_event("startup")
def on_startup():
    config.configure_logging()
    init_db()

    with Session(engine) as session:
        actions.bootstrap_admin(session, config.ADMIN_EMAIL, config.ADMIN_PASSWORD, config.ADMIN_NAME)


# =========================================================
# 🌍 ROUTES PUBLIQUES
# =========================================================

@app.get("/", response_class=HTMLResponse)
async def home(request: Request, session: Session = Depends(get_session)):
    projects = load_projects(session)
    return page(
        request,
        "index.html",
        hero=load_hero(session),
        featured=[p for p in projects if p.featured],
        others=[p for p in projects if not p.featured],
    )


@app.get("/projects", response_class=HTMLResponse)
async def projects(
    request: Request,
    q: str = "",
    category: str = "All",
    session: Session = Depends(get_session),
):
    return page(
        request,
        "projects.html",
        projects=filter_projects(load_projects(session), q, category),
        q=q,
        category=category,
        categories=PROJECT_FILTER_CATEGORIES,
    )


@app.get("/skills", response_class=HTMLResponse)
async def skills(request: Request, session: Session = Depends(get_session)):
    return page(request, "skills.html", skills=load_skills(session))


@app.get("/about", response_class=HTMLResponse)
async def about(request: Request, session: Session = Depends(get_session)):
    return page(request, "about.html", **load_about(session))


@app.get("/contact", response_class=HTMLResponse)
async def contact(request: Request, session: Session = Depends(get_session)):
    return page(request, "contact.html", contact_info=load_contact_info(session))


@app.post("/contact")
async def submit_contact(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    subject: str = Form(""),
    message: str = Form(""),
    session: Session = Depends(get_session),
):
    return actions.submit_contact_message(request, session, name, email, subject, message)


# =========================================================
# 🔑 AUTHENTIFICATION
# =========================================================

@app.get("/sign-in", response_class=HTMLResponse)
async def sign_in_page(request: Request):
    return templates_admin.TemplateResponse(
        request, "sign-in.html", {"banner": banner_from(request.query_params)}
    )


@app.post("/sign-in")
async def sign_in(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    session: Session = Depends(get_session),
):
    return actions.sign_in(request, session, email, password)


@app.api_route("/sign-out", methods=["GET", "POST"])
async def sign_out(request: Request, session: Session = Depends(get_session)):
    return actions.sign_out(request, session)


@app.get("/forgot-password", response_class=HTMLResponse)
async def forgot_password_page(request: Request):
    return templates_admin.TemplateResponse(
        request, "forgot-password.html", {"banner": banner_from(request.query_params)}
    )


@app.post("/forgot-password")
async def forgot_password(
    request: Request,
    email: str = Form(""),
    callbackUrl: str = Form(""),
    session: Session = Depends(get_session),
):
    return actions.forgot_password(request, session, email, callbackUrl or None)


@app.get("/auth/callback")
async def auth_callback(
    request: Request,
    token: str = "",
    redirect_to: str = "/dashboard",
    session: Session = Depends(get_session),
):
    return actions.recovery_callback(request, session, token, redirect_to)


# =========================================================
# 📜 JOURNAL ADMIN (relais client)
# =========================================================

@app.post("/api/admin-log")
async def admin_log_relay(request: Request, session: Session = Depends(get_session)):
    if not actions.current_admin(request, session):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        entry = AdminLogEntry.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        logger.error("Unexpected error logging admin action: %s", exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    stored = log_admin_action(
        request,
        session,
        entry.action,
        entry.description,
        entry.table_name,
        entry.record_id,
        entry.old_data,
        entry.new_data,
    )
    if stored is None:
        return JSONResponse({"error": "Failed to log action"}, status_code=500)

    return {"success": True}


# =========================================================
# 📡 TEMPS RÉEL
# =========================================================

PUBLIC_TABLES = {"projects", "skills", "about_content", "home_content", "contact_info"}
PRIVATE_TABLES = {"messages", "users", "admin_logs"}


@app.websocket("/realtime/{table}")
async def realtime(
    websocket: WebSocket,
    table: str,
    event: str = "*",
    session: Session = Depends(get_session),
):
    if table not in PUBLIC_TABLES | PRIVATE_TABLES:
        await websocket.close(code=1008)
        return

    allowed = table in PUBLIC_TABLES or actions.current_admin(websocket, session) is not None
    session.close()
    if not allowed:
        await websocket.close(code=1008)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    events = None if event == "*" else {event.upper()}
    # Subscribed before the handshake completes so no change is missed
    subscription = feed.subscribe(
        table, lambda change: loop.call_soon_threadsafe(queue.put_nowait, change), events
    )

    async def forward():
        while True:
            change = await queue.get()
            await websocket.send_json(change.as_dict())

    sender = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(forward())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if sender:
            sender.cancel()
        subscription.unsubscribe()
