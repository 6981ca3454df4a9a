from app.models import AdminLog


def test_relay_requires_session(client, rows):
    response = client.post("/api/admin-log", json={"action": "VIEW"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert rows(AdminLog) == []


def test_relay_stores_entry(admin_client, rows, admin_id):
    response = admin_client.post(
        "/api/admin-log",
        json={
            "action": "VIEW",
            "description": "Viewed message from: Grace",
            "tableName": "messages",
            "recordId": 7,
            "newData": {"seen": True},
        },
        headers={"X-Forwarded-For": "192.0.2.10", "User-Agent": "relay-test"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    [entry] = rows(AdminLog, AdminLog.action == "VIEW")
    assert entry.user_id == admin_id
    assert entry.table_name == "messages"
    assert entry.record_id == "7"
    assert entry.new_data == {"seen": True}
    assert entry.ip_address == "192.0.2.10"
    assert entry.user_agent == "relay-test"


def test_relay_malformed_body_is_a_server_error(admin_client, rows):
    response = admin_client.post(
        "/api/admin-log", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}

    response = admin_client.post("/api/admin-log", json={"description": "no action"})
    assert response.status_code == 500
    assert rows(AdminLog, AdminLog.action != "LOGIN") == []


def test_relay_reports_storage_failure(admin_client, engine):
    AdminLog.__table__.drop(engine)
    response = admin_client.post("/api/admin-log", json={"action": "VIEW"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to log action"}


def test_relay_keeps_free_text_actions_and_empty_payloads(admin_client, rows):
    response = admin_client.post(
        "/api/admin-log", json={"action": "EXPORT", "oldData": {}, "newData": ""}
    )
    assert response.status_code == 200
    [entry] = rows(AdminLog, AdminLog.action == "EXPORT")
    assert entry.old_data is None
    assert entry.new_data is None
