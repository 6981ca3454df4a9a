from datetime import datetime, timezone

from sqlmodel import Session
from starlette.requests import Request

from app.audit import AdminAction, AdminLogEntry, log_admin_action, snapshot
from app.models import AdminLog, Skill


def make_request(user_id=None, headers=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    session = {"user_id": user_id} if user_id else {}
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw, "session": session})


def test_snapshot_converts_models_and_dates():
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    data = snapshot({"skill": Skill(name="Go", level=80, category="Language"), "when": when, "tags": ("a", "b")})
    assert data["skill"]["name"] == "Go"
    assert data["when"] == when.isoformat()
    assert data["tags"] == ["a", "b"]
    assert snapshot(None) is None
    assert snapshot({}) is None


def test_snapshot_is_a_copy():
    original = {"nested": {"value": 1}}
    copied = snapshot(original)
    original["nested"]["value"] = 2
    assert copied == {"nested": {"value": 1}}


def test_no_actor_writes_nothing(engine, rows):
    with Session(engine) as session:
        assert log_admin_action(make_request(), session, AdminAction.CREATE, "Created") is None
    assert rows(AdminLog) == []


def test_entry_captures_actor_and_request(engine, rows, admin_id):
    request = make_request(admin_id, {"X-Forwarded-For": "203.0.113.7", "User-Agent": "pytest-agent"})
    with Session(engine) as session:
        entry = log_admin_action(
            request, session, AdminAction.UPDATE, "Updated skill: Go", "skills", 5,
            {"level": 70}, {"level": 80},
        )
        assert entry is not None

    [stored] = rows(AdminLog)
    assert stored.user_id == admin_id
    assert stored.action == "UPDATE"
    assert stored.table_name == "skills"
    assert stored.record_id == "5"
    assert stored.old_data == {"level": 70}
    assert stored.new_data == {"level": 80}
    assert stored.ip_address == "203.0.113.7"
    assert stored.user_agent == "pytest-agent"


def test_real_ip_used_without_forwarded_header(engine, rows, admin_id):
    with Session(engine) as session:
        log_admin_action(make_request(admin_id, {"X-Real-IP": "198.51.100.2"}), session, "VIEW")
    [stored] = rows(AdminLog)
    assert stored.ip_address == "198.51.100.2"
    assert stored.user_agent is None


def test_failed_insert_is_swallowed(engine, admin_id):
    AdminLog.__table__.drop(engine)
    with Session(engine) as session:
        assert log_admin_action(make_request(admin_id), session, AdminAction.DELETE, "Deleted") is None


def test_relay_entry_accepts_camel_case():
    entry = AdminLogEntry.model_validate(
        {"action": "VIEW", "tableName": "messages", "recordId": 3, "newData": {"a": 1}}
    )
    assert entry.table_name == "messages"
    assert entry.record_id == 3
    assert entry.new_data == {"a": 1}
