from fastapi.testclient import TestClient

from propertyhub.api.dependencies import get_db
from propertyhub.auth.jwt import get_current_user
from propertyhub.constants import EVENT_UNIT_ASSIGNED, ROLE_LANDLORD, ROLE_TENANT, STATUS_ACTIVE, STATUS_INACTIVE
from propertyhub.main import app
from propertyhub.models.models import ActivityLog, Notification, Property, Unit, UserPropertyRole


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


def _override_user(user):
    def _provider():
        return user

    return _provider


PROPERTY_PAYLOAD = {
    "property_code": "SUN-01",
    "name": "Sunset Apartments",
    "address": "1 Ocean Drive",
    "type": "apartment",
}


def test_landlord_creates_property_with_landlord_assignment(db_session, create_user):
    landlord = create_user(email="landlord@example.com", account_role="landlord")

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(landlord)
    client = TestClient(app)
    try:
        response = client.post("/properties/", json=PROPERTY_PAYLOAD)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["owner_id"] == landlord.id
        assert data["receipt_serial_counter"] == 0
    finally:
        client.close()
        app.dependency_overrides.clear()

    assignment = db_session.query(UserPropertyRole).filter(UserPropertyRole.property_id == data["id"]).one()
    assert (assignment.user_id, assignment.role, assignment.status) == (landlord.id, ROLE_LANDLORD, STATUS_ACTIVE)


def test_tenant_account_cannot_create_property(db_session, create_user):
    tenant = create_user(email="tenant@example.com")

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(tenant)
    client = TestClient(app)
    try:
        response = client.post("/properties/", json=PROPERTY_PAYLOAD)
        assert response.status_code == 403
        assert response.json()["error"] == "Only landlords can create properties"
    finally:
        client.close()
        app.dependency_overrides.clear()

    assert db_session.query(Property).count() == 0


def test_property_update_requires_landlord_on_that_property(db_session, create_user, create_property, assign_role):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    other_landlord = create_user(email="other@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    prop = create_property(landlord)
    create_property(other_landlord)
    assign_role(tenant, prop, ROLE_TENANT)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    client = TestClient(app)
    try:
        for outsider in (tenant, other_landlord):
            app.dependency_overrides[get_current_user] = _override_user(outsider)
            denied = client.put("/properties/", json={"id": prop.id, "name": "Hijacked"})
            assert denied.status_code == 403

        app.dependency_overrides[get_current_user] = _override_user(landlord)
        updated = client.put("/properties/", json={"id": prop.id, "name": "Renamed"})
        assert updated.status_code == 200
        assert updated.json()["data"]["name"] == "Renamed"

        missing = client.put("/properties/", json={"id": "5c4b3a29-1807-4f6e-9d5c-4b3a29180766", "name": "Ghost"})
        assert missing.status_code == 404
    finally:
        client.close()
        app.dependency_overrides.clear()


def test_property_listing_is_scoped_and_logs_view(db_session, create_user, create_property, assign_role):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    other_landlord = create_user(email="other@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    mine = create_property(landlord, name="Mine")
    create_property(other_landlord, name="Theirs")
    assign_role(tenant, mine, ROLE_TENANT)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    client = TestClient(app)
    try:
        app.dependency_overrides[get_current_user] = _override_user(landlord)
        assert [item["name"] for item in client.get("/properties/").json()["data"]] == ["Mine"]

        app.dependency_overrides[get_current_user] = _override_user(tenant)
        assert [item["name"] for item in client.get("/properties/").json()["data"]] == ["Mine"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    views = db_session.query(ActivityLog).filter(ActivityLog.action == "VIEW", ActivityLog.entity == "Properties")
    assert views.count() == 2


def test_units_and_tenant_assignment(db_session, create_user, create_property, assign_role):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    newcomer = create_user(email="newcomer@example.com")
    prop = create_property(landlord)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(landlord)
    client = TestClient(app)
    try:
        created = client.post("/units/", json={"property_id": prop.id, "unit_name": "2B"})
        assert created.status_code == 200
        unit = created.json()["data"]
        assert unit["status"] == "vacant"
        assert unit["invite_link"].startswith("/invite/")

        assigned = client.post(f"/units/{unit['id']}/assign-tenant", json={"tenant_id": tenant.id})
        assert assigned.status_code == 200
        assert assigned.json()["data"]["tenant_id"] == tenant.id
        assert assigned.json()["data"]["status"] == "occupied"

        replaced = client.post(f"/units/{unit['id']}/assign-tenant", json={"tenant_id": newcomer.id})
        assert replaced.status_code == 200

        missing_tenant = client.post(
            f"/units/{unit['id']}/assign-tenant",
            json={"tenant_id": "0f1e2d3c-4b5a-4697-8877-665544332211"},
        )
        assert missing_tenant.status_code == 404
    finally:
        client.close()
        app.dependency_overrides.clear()

    old = db_session.query(UserPropertyRole).filter(UserPropertyRole.user_id == tenant.id).one()
    new = db_session.query(UserPropertyRole).filter(UserPropertyRole.user_id == newcomer.id).one()
    assert (old.role, old.status) == (ROLE_TENANT, STATUS_INACTIVE)
    assert (new.role, new.status, new.unit_id) == (ROLE_TENANT, STATUS_ACTIVE, unit["id"])
    assigned_events = db_session.query(Notification).filter(Notification.event_type == EVENT_UNIT_ASSIGNED)
    assert {item.user_id for item in assigned_events} == {tenant.id, newcomer.id}


def test_tenant_cannot_create_units(db_session, create_user, create_property, assign_role):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    prop = create_property(landlord)
    assign_role(tenant, prop, ROLE_TENANT)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(tenant)
    client = TestClient(app)
    try:
        response = client.post("/units/", json={"property_id": prop.id, "unit_name": "3C"})
        assert response.status_code == 403
    finally:
        client.close()
        app.dependency_overrides.clear()


def test_moving_tenant_to_another_unit_vacates_the_old_one(db_session, create_user, create_property, create_unit):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    prop = create_property(landlord)
    first = create_unit(prop, "1A")
    second = create_unit(prop, "1B")

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(landlord)
    client = TestClient(app)
    try:
        assert client.post(f"/units/{first.id}/assign-tenant", json={"tenant_id": tenant.id}).status_code == 200
        moved = client.post(f"/units/{second.id}/assign-tenant", json={"tenant_id": tenant.id})
        assert moved.status_code == 200
        assert moved.json()["data"]["tenant_id"] == tenant.id

        app.dependency_overrides[get_current_user] = _override_user(tenant)
        listing = client.get("/units/")
        assert [item["unit_name"] for item in listing.json()["data"]] == ["1B"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    db_session.expire_all()
    old_unit = db_session.get(Unit, first.id)
    assert (old_unit.tenant_id, old_unit.status) == (None, "vacant")
    assignment = db_session.query(UserPropertyRole).filter(UserPropertyRole.user_id == tenant.id).one()
    assert (assignment.unit_id, assignment.status) == (second.id, STATUS_ACTIVE)
