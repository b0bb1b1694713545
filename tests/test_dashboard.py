from fastapi.testclient import TestClient

from propertyhub.api.dependencies import get_db
from propertyhub.auth.jwt import get_current_user
from propertyhub.constants import ROLE_TENANT
from propertyhub.main import app
from propertyhub.models.models import ActivityLog, Announcement, MaintenanceRequest, Payment


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


def _seed(db_session, create_user, create_property, create_unit, assign_role):
    landlord = create_user(email="landlord@example.com", account_role="landlord")
    tenant = create_user(email="tenant@example.com")
    neighbour = create_user(email="neighbour@example.com")
    prop = create_property(landlord, name="Maple House")
    unit = create_unit(prop, "1A", tenant=tenant)
    create_unit(prop, "1B")
    assign_role(tenant, prop, ROLE_TENANT, unit=unit)
    assign_role(neighbour, prop, ROLE_TENANT)
    db_session.add_all(
        [
            MaintenanceRequest(tenant_id=tenant.id, property_id=prop.id, title="Mine", description="x", urgency="low"),
            MaintenanceRequest(tenant_id=neighbour.id, property_id=prop.id, title="Theirs", description="x", urgency="low"),
            Payment(tenant_id=tenant.id, property_id=prop.id, amount=100, reference="P-1", payment_method="card"),
            Announcement(property_id=prop.id, created_by=landlord.id, body="Welcome"),
        ]
    )
    db_session.commit()
    return landlord, tenant, prop


def test_tenant_dashboard_shows_tenancy_and_own_rows(db_session, create_user, create_property, create_unit, assign_role):
    _, tenant, prop = _seed(db_session, create_user, create_property, create_unit, assign_role)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(tenant)
    client = TestClient(app)
    try:
        response = client.get("/dashboard/")
        assert response.status_code == 200
        data = response.json()["data"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    assert data["view"] == "tenant"
    assert data["user"]["email"] == "tenant@example.com"
    assert data["properties"][0]["property"]["id"] == prop.id
    assert data["properties"][0]["unit"]["unit_name"] == "1A"
    assert [item["title"] for item in data["maintenance_requests"]] == ["Mine"]
    assert [item["reference"] for item in data["payments"]] == ["P-1"]
    assert [item["body"] for item in data["announcements"]] == ["Welcome"]
    assert data["users"] == []

    views = db_session.query(ActivityLog).filter(ActivityLog.action == "VIEW", ActivityLog.entity == "Dashboard")
    assert views.count() == 1


def test_landlord_dashboard_summarises_managed_properties(
    db_session, create_user, create_property, create_unit, assign_role
):
    landlord, _, prop = _seed(db_session, create_user, create_property, create_unit, assign_role)

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(landlord)
    client = TestClient(app)
    try:
        data = client.get("/dashboard/").json()["data"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    assert data["view"] == "landlord"
    assert [(item["id"], item["unit_count"]) for item in data["properties"]] == [(prop.id, 2)]
    assert sorted(item["title"] for item in data["maintenance_requests"]) == ["Mine", "Theirs"]


def test_admin_dashboard_lists_users(db_session, create_user, create_property, create_unit, assign_role):
    _seed(db_session, create_user, create_property, create_unit, assign_role)
    admin = create_user(email="admin@example.com", account_role="admin")

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(admin)
    client = TestClient(app)
    try:
        data = client.get("/dashboard/").json()["data"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    assert data["view"] == "admin"
    assert len(data["users"]) == 4
    assert len(data["maintenance_requests"]) == 2


def test_dashboard_without_assignments_is_empty(db_session, create_user):
    loner = create_user(email="loner@example.com")

    app.dependency_overrides[get_db] = _override_get_db(db_session)
    app.dependency_overrides[get_current_user] = _override_user(loner)
    client = TestClient(app)
    try:
        data = client.get("/dashboard/").json()["data"]
    finally:
        client.close()
        app.dependency_overrides.clear()

    assert data["view"] == "member"
    assert data["maintenance_requests"] == []
    assert data["announcements"] == []
