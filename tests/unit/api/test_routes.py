"""
Unit tests for the HTTP surface with FastAPI TestClient.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from keepsake.api import deps
from keepsake.api.main import app
from keepsake.core.database import get_sync_db
from keepsake.integrations.supabase.auth import AuthenticatedIdentity
from keepsake.models import AdminUser, DeceasedConfirmation, User
from keepsake.models.enums import AdminRole, ConfirmationOutcome, InvitationStatus, TrustedRole

AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture
def identity():
    """Identity the mocked auth provider returns for every request."""
    return {"value": None}


@pytest.fixture
def queued_tasks():
    """Celery tasks the API enqueues, replaced with mocks."""
    with patch.object(deps, "link_account_contacts_task") as link, \
         patch.object(deps, "send_invitation_email_task") as invite, \
         patch.object(deps, "send_release_notifications_task") as release:
        yield {"link": link, "invite": invite, "release": release}


@pytest.fixture
def client(db, identity, queued_tasks):
    auth_client = MagicMock()
    auth_client.get_identity.side_effect = lambda token: identity["value"]

    def override_db():
        yield db

    app.dependency_overrides[get_sync_db] = override_db
    app.dependency_overrides[deps.get_auth_client] = lambda: auth_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def login(identity, user: User | None = None, email: str | None = None, verified: bool = True):
    identity["value"] = AuthenticatedIdentity(
        user_id=str(user.id if user else uuid.uuid4()),
        email=email or user.email,
        email_verified=verified,
    )


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com", display_name="Olivia Owner")


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/contacts")
        assert response.status_code == 401

    def test_unverified_email_rejected(self, client, identity, owner):
        login(identity, owner, verified=False)
        assert client.get("/contacts", headers=AUTH).status_code == 401

    def test_first_login_provisions_account(self, client, db, identity, queued_tasks):
        login(identity, email="Fresh@Example.com")

        response = client.get("/contacts", headers=AUTH)

        assert response.status_code == 200
        user = db.query(User).filter(User.email == "fresh@example.com").one()
        queued_tasks["link"].delay.assert_called_once_with(str(user.id))

    def test_changed_provider_email_updates_existing_account(self, client, db, identity, owner, queued_tasks):
        login(identity, owner, email="Renamed@Example.com")

        response = client.get("/contacts", headers=AUTH)

        assert response.status_code == 200
        db.refresh(owner)
        assert owner.email == "renamed@example.com"
        assert db.query(User).count() == 1
        queued_tasks["link"].delay.assert_called_once_with(str(owner.id))



class TestContactRoutes:
    def test_add_list_update_delete(self, client, identity, owner):
        login(identity, owner)

        created = client.post(
            "/contacts",
            json={"email": "Sis@Example.com", "full_name": "Sis", "contact_type": "trusted", "role": "guardian"},
            headers=AUTH,
        )
        assert created.status_code == 201
        body = created.json()
        assert body["email"] == "sis@example.com"
        assert body["invitation_status"] == "pending_confirmation"

        listed = client.get("/contacts", params={"contact_type": "trusted"}, headers=AUTH)
        assert [c["id"] for c in listed.json()] == [body["id"]]

        patched = client.patch(f"/contacts/{body['id']}", json={"relationship_label": "sister"}, headers=AUTH)
        assert patched.json()["relationship_label"] == "sister"

        assert client.delete(f"/contacts/{body['id']}", headers=AUTH).status_code == 204
        assert client.get("/contacts", headers=AUTH).json() == []

    def test_duplicate_is_409(self, client, identity, owner):
        login(identity, owner)
        payload = {"email": "dup@example.com", "full_name": "Dup"}
        assert client.post("/contacts", json=payload, headers=AUTH).status_code == 201

        response = client.post("/contacts", json={**payload, "email": " DUP@example.com"}, headers=AUTH)

        assert response.status_code == 409
        assert response.json() == {"detail": "A contact with this email already exists"}

    def test_role_rule_is_422(self, client, identity, owner):
        login(identity, owner)
        response = client.post(
            "/contacts", json={"email": "t@example.com", "full_name": "T", "contact_type": "trusted"}, headers=AUTH
        )
        assert response.status_code == 422

    def test_recheck(self, client, identity, owner, make_contact, make_user):
        contact = make_contact(owner, "late@example.com")
        make_user("late@example.com")
        login(identity, owner)

        response = client.post(f"/contacts/{contact.id}/recheck", headers=AUTH)

        assert response.json()["invitation_status"] == InvitationStatus.REGISTERED.value


class TestRelationshipRoutes:
    def test_my_trusted_relationships(self, client, identity, owner, make_user, make_contact):
        helper = make_user("helper@example.com")
        make_contact(owner, helper.email, role=TrustedRole.EXECUTOR, account=helper)
        login(identity, helper)

        response = client.get("/relationships/trusted", headers=AUTH)

        assert response.status_code == 200
        [rel] = response.json()
        assert rel["owner_display_name"] == "Olivia Owner"
        assert rel["role"] == "executor"

    def test_other_email_is_generic_403(self, client, identity, make_user):
        helper = make_user("helper@example.com")
        login(identity, helper)

        response = client.get("/relationships/trusted", params={"email": "victim@example.com"}, headers=AUTH)

        assert response.status_code == 403
        assert response.json() == {"detail": "Not authorized to perform this action"}


class TestLegacyRoutes:
    def test_confirm_then_repeat(self, client, queued_tasks, identity, owner, make_user, make_contact, make_video):
        executor = make_user("executor@example.com")
        make_contact(owner, executor.email, role=TrustedRole.EXECUTOR, account=executor)
        make_video(owner)
        login(identity, executor)
        payload = {
            "target_owner_id": str(owner.id),
            "verification_method": "official_document",
            "confirmation_text": "I confirm that Olivia Owner has passed away",
        }

        first = client.post("/legacy/confirm-deceased", json=payload, headers=AUTH)
        second = client.post("/legacy/confirm-deceased", json=payload, headers=AUTH)

        assert first.status_code == 200
        assert first.json()["already_confirmed"] is False
        assert second.json()["success"] is True
        assert second.json()["already_confirmed"] is True
        queued_tasks["release"].delay.assert_called_once()

    def test_unauthorized_confirmation(self, client, identity, owner, make_user):
        outsider = make_user("outsider@example.com")
        login(identity, outsider)

        response = client.post(
            "/legacy/confirm-deceased",
            json={
                "target_owner_id": str(owner.id),
                "verification_method": "other",
                "confirmation_text": "I confirm that Olivia Owner has passed away",
            },
            headers=AUTH,
        )

        assert response.status_code == 403

    def test_unknown_verification_method_is_422(self, client, identity, owner):
        login(identity, owner)
        response = client.post(
            "/legacy/confirm-deceased",
            json={"target_owner_id": str(owner.id), "verification_method": "rumor", "confirmation_text": "x"},
            headers=AUTH,
        )
        assert response.status_code == 422

    def test_released_videos_denied_while_alive(self, client, identity, owner, make_user, make_contact):
        helper = make_user("helper@example.com")
        make_contact(owner, helper.email, role=TrustedRole.GUARDIAN, account=helper)
        login(identity, helper)

        assert client.get(f"/legacy/owners/{owner.id}/videos", headers=AUTH).status_code == 403


class TestAdminRoutes:
    def test_non_admin_denied(self, client, identity, owner):
        login(identity, owner)
        assert client.get(f"/admin/confirmations/{owner.id}", headers=AUTH).status_code == 403

    def test_confirmation_history(self, client, db, identity, owner, make_user):
        admin = make_user("admin@example.com")
        db.add(AdminUser(user_id=admin.id, role=AdminRole.MODERATOR))
        db.add(
            DeceasedConfirmation(
                target_owner_id=owner.id,
                caller_id=uuid.uuid4(),
                outcome=ConfirmationOutcome.REJECTED_UNAUTHORIZED,
            )
        )
        db.commit()
        login(identity, admin)

        response = client.get(f"/admin/confirmations/{owner.id}", headers=AUTH)

        assert response.status_code == 200
        assert [r["outcome"] for r in response.json()] == ["rejected_unauthorized"]

    def test_reconcile_enqueues_task(self, client, db, identity, make_user):
        admin = make_user("admin@example.com")
        db.add(AdminUser(user_id=admin.id, role=AdminRole.SUPER_ADMIN))
        db.commit()
        login(identity, admin)

        with patch("keepsake.api.routers.admin.reconcile_contacts_task") as task:
            task.delay.return_value.id = "task-123"
            response = client.post("/admin/reconcile", headers=AUTH)

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-123", "status": "queued"}


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json()["status"] == "healthy"

    def test_health_checks_database(self, client):
        assert client.get("/health").json() == {"status": "healthy", "database": "connected"}


class TestDependencyCleanup:
    def test_auth_client_is_closed_after_request(self):
        with patch.object(deps, "SupabaseAuthClient") as client_cls:
            dependency = deps.get_auth_client()
            assert next(dependency) is client_cls.return_value
            dependency.close()
        client_cls.return_value.close.assert_called_once()

    def test_media_access_is_closed_after_request(self, db):
        with patch.object(deps, "MediaAccess") as media_cls:
            dependency = deps.get_media_access(db)
            next(dependency)
            dependency.close()
        media_cls.return_value.close.assert_called_once()
