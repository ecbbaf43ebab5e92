import pytest

from conftest import csrf_headers, login
from models.account import Role
from security import session as sessions
from security.rbac import Access, Decision, authorize, decide, is_allowed
from utils.audit import ACCESS_CONTROL, SUCCESS, FAILURE


@pytest.fixture
def accounts(make_account):
    return {
        Role.ADMIN: make_account("root", role=Role.ADMIN),
        Role.MANAGER: make_account("mgr", role=Role.MANAGER),
        Role.CUSTOMER: make_account("alice"),
    }


@pytest.mark.parametrize("required", list(Role))
@pytest.mark.parametrize("actual", list(Role))
def test_roles_match_exactly(accounts, required, actual):
    assert is_allowed(accounts[actual], required) is (required is actual)


@pytest.mark.parametrize("required", list(Role))
def test_guest_never_has_a_role(app, required):
    assert is_allowed(None, required) is False


def test_any_and_none(accounts):
    customer = accounts[Role.CUSTOMER]
    assert is_allowed(customer, Access.ANY)
    assert not is_allowed(None, Access.ANY)
    assert is_allowed(None, Access.NONE)
    assert not is_allowed(customer, Access.NONE)


def test_unknown_requirement_is_rejected(accounts):
    with pytest.raises(ValueError):
        is_allowed(accounts[Role.ADMIN], "admin")


def test_each_decision_writes_one_audit_entry(accounts, audit_rows):
    customer = accounts[Role.CUSTOMER]
    first = decide(customer, Role.CUSTOMER, "GET /orders", ip="10.0.0.1")
    second = decide(customer, Role.CUSTOMER, "GET /orders", ip="10.0.0.1")

    assert first is second is Decision.ALLOW
    rows = audit_rows(event_type=ACCESS_CONTROL)
    assert len(rows) == 2
    assert all(r.status == SUCCESS and r.user_id == customer.id for r in rows)


def test_guest_denial_is_audited_as_guest(app, audit_rows):
    assert decide(None, Access.ANY, "GET /account") is Decision.DENY

    row = audit_rows(event_type=ACCESS_CONTROL)[0]
    assert row.status == FAILURE
    assert row.user_id is None
    assert row.username == "Guest"


def test_customer_on_manager_operation_is_denied_with_internal_reason(accounts, audit_rows):
    customer = accounts[Role.CUSTOMER]
    assert decide(customer, Role.MANAGER, "POST /manage/products") is Decision.DENY

    row = audit_rows(event_type=ACCESS_CONTROL, status=FAILURE)[0]
    assert row.user_id == customer.id
    assert "role mismatch" in row.description
    assert "POST /manage/products" in row.description


def test_authorize_resolves_session(accounts):
    token = sessions.establish(accounts[Role.MANAGER])

    assert authorize(token, Role.MANAGER, "GET /manage") is Decision.ALLOW
    assert authorize(token, Role.ADMIN, "GET /admin") is Decision.DENY
    assert authorize("forged", Access.NONE, "GET /login") is Decision.ALLOW


class TestHttpGate:
    def test_guest_redirected_to_generic_error(self, client):
        resp = client.get("/auth/me")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/error")

    def test_customer_on_admin_route_gets_same_redirect(self, client, accounts):
        login(client)
        resp = client.get("/admin/dashboard")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/error")

    def test_error_surface_is_generic(self, client):
        resp = client.get("/error")
        assert resp.status_code == 403
        assert "role" not in resp.get_json()["error"].lower()

    def test_logged_in_user_kept_off_login(self, client, accounts):
        login(client)
        resp = client.post("/auth/login", json={"username": "alice", "password": "x"}, headers=csrf_headers(client))
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/auth/me")

    def test_admin_allowed(self, client, accounts):
        login(client, "root")
        resp = client.get("/admin/dashboard")
        assert resp.status_code == 200
