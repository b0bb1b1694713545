from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from propertyhub.api.dependencies import get_db
from propertyhub.auth.jwt import get_current_user, require_account_roles
from propertyhub.core.errors import register_exception_handlers
from propertyhub.main import app as main_app
from propertyhub.models.models import Property


class DummyUser:
    def __init__(self, account_role: str):
        self.account_role = account_role

    def has_account_role(self, *role_names: str) -> bool:
        return self.account_role in role_names


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/properties")
    def create_route(_: object = Depends(require_account_roles("landlord", detail="Only landlords can create properties"))):
        return {"ok": True}

    return app


def test_property_creation_requires_landlord_account():
    app = _build_app()
    client = TestClient(app)

    app.dependency_overrides[get_current_user] = lambda: DummyUser("tenant")
    response = client.post("/properties")
    assert response.status_code == 403
    assert response.json() == {"success": False, "data": None, "error": "Only landlords can create properties"}

    app.dependency_overrides[get_current_user] = lambda: DummyUser("landlord")
    response = client.post("/properties")
    assert response.status_code == 200


def test_admin_account_cannot_create_properties(db_session, create_user):
    admin = create_user(email="admin@example.com", account_role="admin")
    property_payload = {"property_code": "ADM-01", "name": "Admin Court", "address": "2 Main St", "type": "apartment"}

    main_app.dependency_overrides[get_db] = _override_get_db(db_session)
    main_app.dependency_overrides[get_current_user] = lambda: admin
    client = TestClient(main_app)
    try:
        response = client.post("/properties/", json=property_payload)
        assert response.status_code == 403
        assert response.json()["error"] == "Only landlords can create properties"
    finally:
        client.close()
        main_app.dependency_overrides.clear()

    assert db_session.query(Property).count() == 0
