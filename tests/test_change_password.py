from datetime import datetime, timedelta

import pytest

from conftest import STRONG_PASSWORD, reload
from models.password_history import PasswordHistory
from security import session as sessions
from security.errors import (
    InputValidationError,
    PolicyViolation,
    NEW_PASSWORD_SAME_AS_OLD,
    INVALID_OLD_PASSWORD,
    PASSWORD_TOO_RECENT,
    PASSWORD_IN_HISTORY,
)
from security.password import verify_secret
from security.recovery import change_password
from utils.audit import ACCOUNT_MANAGEMENT, INPUT_VALIDATION, FAILURE, SUCCESS

NEW_PASSWORD = "N3w!Passw0rd"


def test_change_succeeds_and_records_history(make_account, audit_rows):
    account = make_account()
    change_password(account, STRONG_PASSWORD, NEW_PASSWORD, ip="10.0.0.1")

    fresh = reload(account)
    assert verify_secret(NEW_PASSWORD, fresh.password_hash)
    assert fresh.last_password_change > datetime.utcnow() - timedelta(minutes=1)
    assert PasswordHistory.query.filter_by(account_id=account.id).count() == 2
    assert audit_rows(event_type=ACCOUNT_MANAGEMENT, status=SUCCESS)[-1].description == "User successfully changed their password."


def test_identical_new_password_is_a_policy_violation(make_account, audit_rows):
    account = make_account()
    with pytest.raises(PolicyViolation) as exc:
        change_password(account, STRONG_PASSWORD, STRONG_PASSWORD)

    assert exc.value.code == NEW_PASSWORD_SAME_AS_OLD
    assert "same as your current" in exc.value.message
    assert len(audit_rows(event_type=INPUT_VALIDATION, status=FAILURE)) == 1


def test_wrong_old_password(make_account, audit_rows):
    account = make_account()
    with pytest.raises(PolicyViolation) as exc:
        change_password(account, "Wr0ng!Pass", NEW_PASSWORD)

    assert exc.value.code == INVALID_OLD_PASSWORD
    assert exc.value.message == "Current password is incorrect."
    assert "incorrect current password" in audit_rows(event_type=ACCOUNT_MANAGEMENT, status=FAILURE)[-1].description
    assert verify_secret(STRONG_PASSWORD, reload(account).password_hash)


def test_too_recent(make_account):
    account = make_account(password_age_hours=0)
    with pytest.raises(PolicyViolation) as exc:
        change_password(account, STRONG_PASSWORD, NEW_PASSWORD)
    assert exc.value.code == PASSWORD_TOO_RECENT


def test_reuse_of_history(make_account, db):
    account = make_account()
    change_password(account, STRONG_PASSWORD, NEW_PASSWORD)
    account = reload(account)
    account.last_password_change = datetime.utcnow() - timedelta(days=2)
    db.session.commit()

    with pytest.raises(PolicyViolation) as exc:
        change_password(account, NEW_PASSWORD, STRONG_PASSWORD)
    assert exc.value.code == PASSWORD_IN_HISTORY


def test_composition_policy(make_account):
    account = make_account()
    with pytest.raises(InputValidationError) as exc:
        change_password(account, STRONG_PASSWORD, "alllowercase1!")
    assert exc.value.details == ["Password must contain an uppercase letter."]


def test_change_keeps_current_session_only(app, make_account):
    app.config["SESSION_SINGLE_LOGIN"] = False
    account = make_account()
    current = sessions.establish(account)
    other = sessions.establish(account)

    change_password(account, STRONG_PASSWORD, NEW_PASSWORD, keep_token=current)

    assert sessions.current_identity(current) is not None
    assert sessions.current_identity(other) is None
