"""
권한(Permission) API 테스트.
- id = "{action}_{entity}_{role}", 이름 = "{action 이름} {entity 이름}"
- 중복 조합 409, 잘못된 참조 400
"""

from tests.helpers import admin_header, claims_header, create_action, create_entity, create_role


def _setup_catalog(db_session):
    create_action(db_session, "READ", name="Read")
    create_action(db_session, "EXPORT", name="Export", is_active=False)
    create_entity(db_session, "Students", name="Students")
    create_role(db_session, "Nurse")


def test_create_permission_derives_id_and_name(client, db_session):
    _setup_catalog(db_session)

    r = client.post(
        "/permissions",
        json={"action_id": "READ", "entity_id": "Students", "role_id": "Nurse"},
        headers=admin_header(),
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["id"] == "READ_Students_Nurse"
    assert data["name"] == "Read Students"
    assert data["code"] == "READ.Students"
    assert data["is_active"] is True

    r = client.post("/permissions", json={"action_id": "READ", "entity_id": "Students"}, headers=admin_header())
    assert r.status_code == 201, r.text
    assert r.json()["data"]["id"] == "READ_Students"

    exists = client.get("/permissions/exists/READ_Students_Nurse", headers=admin_header()).json()
    assert exists["exists"] is True


def test_duplicate_permission_is_409(client, db_session):
    _setup_catalog(db_session)
    body = {"action_id": "READ", "entity_id": "Students", "role_id": "Nurse"}

    assert client.post("/permissions", json=body, headers=admin_header()).status_code == 201
    r = client.post("/permissions", json=body, headers=admin_header())
    assert r.status_code == 409


def test_bad_references_are_400(client, db_session):
    _setup_catalog(db_session)

    cases = [
        {"action_id": "NOPE", "entity_id": "Students"},
        {"action_id": "EXPORT", "entity_id": "Students"},
        {"action_id": "READ", "entity_id": "Nowhere"},
        {"action_id": "READ", "entity_id": "Students", "role_id": "Ghost"},
        {"action_id": "READ", "entity_id": "Students", "time_active_id": "never"},
    ]
    for body in cases:
        r = client.post("/permissions", json=body, headers=admin_header())
        assert r.status_code == 400, body

    assert client.get("/permissions", headers=admin_header()).json()["meta"]["total_count"] == 0


def test_deactivate_and_hard_delete_permission(client, db_session):
    _setup_catalog(db_session)
    client.post("/permissions", json={"action_id": "READ", "entity_id": "Students", "role_id": "Nurse"}, headers=admin_header())

    assert [p["id"] for p in client.get("/permissions/by-role/Nurse", headers=admin_header()).json()["data"]] == [
        "READ_Students_Nurse"
    ]

    r = client.delete("/permissions/READ_Students_Nurse/inactive", headers=admin_header())
    assert r.status_code == 200, r.text
    assert r.json()["data"]["is_active"] is False

    # by-* 조회는 활성 권한만
    assert client.get("/permissions/by-role/Nurse", headers=admin_header()).json()["data"] == []
    assert client.get("/permissions/by-action/READ", headers=admin_header()).json()["data"] == []

    listed = client.get("/permissions?include_inactive=false", headers=admin_header()).json()
    assert listed["meta"]["total_count"] == 0

    r = client.delete("/permissions/READ_Students_Nurse/hard", headers=admin_header())
    assert r.status_code == 200, r.text
    assert client.get("/permissions/READ_Students_Nurse", headers=admin_header()).status_code == 404


def test_update_permission_rekeys_id_and_name(client, db_session):
    _setup_catalog(db_session)
    create_action(db_session, "UPDATE", name="Update")
    client.post("/permissions", json={"action_id": "READ", "entity_id": "Students"}, headers=admin_header())

    r = client.put("/permissions/READ_Students", json={"action_id": "UPDATE"}, headers=admin_header())
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["id"] == "UPDATE_Students"
    assert data["name"] == "Update Students"
    assert data["code"] == "UPDATE.Students"

    assert client.get("/permissions/READ_Students", headers=admin_header()).status_code == 404
    assert client.get("/permissions/UPDATE_Students", headers=admin_header()).status_code == 200


def test_update_permission_role_change_moves_role_links(client, db_session):
    _setup_catalog(db_session)
    create_role(db_session, "Doctor")
    client.post("/permissions", json={"action_id": "READ", "entity_id": "Students"}, headers=admin_header())
    r = client.put("/roles/Doctor", json={"permission_ids": ["READ_Students"]}, headers=admin_header())
    assert r.status_code == 200, r.text

    r = client.put("/permissions/READ_Students", json={"role_id": "Nurse"}, headers=admin_header())
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["id"] == "READ_Students_Nurse"
    assert data["role_id"] == "Nurse"

    linked = client.get("/roles/Doctor/permissions", headers=admin_header()).json()
    assert linked["permission_ids"] == ["READ_Students_Nurse"]

    # 역할 해제 시 id 도 역할 없는 형태로 돌아감
    r = client.put("/permissions/READ_Students_Nurse", json={"role_id": None}, headers=admin_header())
    assert r.status_code == 200, r.text
    assert r.json()["data"]["id"] == "READ_Students"


def test_update_permission_into_existing_id_is_409(client, db_session):
    _setup_catalog(db_session)
    client.post("/permissions", json={"action_id": "READ", "entity_id": "Students"}, headers=admin_header())
    client.post("/permissions", json={"action_id": "READ", "entity_id": "Students", "role_id": "Nurse"}, headers=admin_header())

    r = client.put("/permissions/READ_Students", json={"role_id": "Nurse"}, headers=admin_header())
    assert r.status_code == 409

    # 기존 두 권한 모두 그대로 유지
    assert client.get("/permissions/READ_Students", headers=admin_header()).json()["data"]["role_id"] is None
    assert client.get("/permissions/READ_Students_Nurse", headers=admin_header()).status_code == 200


def test_available_actions_and_entities(client, db_session):
    _setup_catalog(db_session)

    actions = client.get("/permissions/available-actions", headers=admin_header()).json()["data"]
    assert [a["id"] for a in actions] == ["READ"]

    entities = client.get("/permissions/available-entities", headers=admin_header()).json()["data"]
    assert [e["id"] for e in entities] == ["Students"]


def test_permission_search_and_paging(client, db_session):
    _setup_catalog(db_session)
    for entity_id in ("Department", "TestTypes", "AssessmentBatch"):
        create_entity(db_session, entity_id)
        client.post("/permissions", json={"action_id": "READ", "entity_id": entity_id}, headers=admin_header())

    page = client.get("/permissions?page=1&page_size=2", headers=admin_header()).json()
    assert len(page["data"]) == 2
    assert page["meta"]["total_count"] == 3
    assert page["meta"]["total_pages"] == 2
    assert page["meta"]["has_next_page"] is True

    found = client.get("/permissions?search=Test", headers=admin_header()).json()["data"]
    assert [p["id"] for p in found] == ["READ_TestTypes"]


def test_permission_endpoints_require_permission_claims(client):
    assert client.get("/permissions", headers=claims_header("READ.ROLES")).status_code == 403
    assert (
        client.post("/permissions", json={"action_id": "READ", "entity_id": "Students"}, headers=claims_header("READ.PERMISSIONS")).status_code
        == 403
    )
