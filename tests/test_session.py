from datetime import datetime, timedelta

from models.session import Session
from security import session as sessions
from security.session import hash_token


def test_establish_stores_only_token_hash(make_account):
    account = make_account()
    token = sessions.establish(account, ip="10.0.0.1")

    row = Session.query.filter_by(account_id=account.id).one()
    assert row.token_hash == hash_token(token)
    assert row.token_hash != token
    assert row.role is account.role


def test_current_identity_resolves_account(make_account):
    account = make_account()
    token = sessions.establish(account)

    assert sessions.current_identity(token).id == account.id


def test_unknown_or_missing_token_resolves_nothing(app):
    assert sessions.current_identity(None) is None
    assert sessions.current_identity("") is None
    assert sessions.current_identity("forged-token") is None


def test_destroy_ends_session(make_account):
    account = make_account()
    token = sessions.establish(account)

    assert sessions.destroy(token) is True
    assert sessions.current_identity(token) is None
    assert sessions.destroy("forged-token") is False


def test_expired_session_is_ignored(make_account, db):
    account = make_account()
    token = sessions.establish(account)
    row = Session.query.filter_by(account_id=account.id).one()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert sessions.current_identity(token) is None


def test_idle_session_is_ignored(app, make_account, db):
    account = make_account()
    token = sessions.establish(account)
    row = Session.query.filter_by(account_id=account.id).one()
    row.last_seen_at = datetime.utcnow() - timedelta(seconds=app.config["IDLE_TIMEOUT_SECONDS"] + 1)
    db.session.commit()

    assert sessions.current_identity(token) is None


def test_login_report_is_read_once(make_account):
    account = make_account()
    token = sessions.establish(account, login_report="This is your first login.")

    assert sessions.take_login_report(token) == "This is your first login."
    assert sessions.take_login_report(token) is None
    # reading the report leaves the session alive
    assert sessions.current_identity(token).id == account.id


def test_login_report_needs_a_live_session(make_account):
    account = make_account()
    token = sessions.establish(account, login_report="This is your first login.")
    sessions.destroy(token)

    assert sessions.take_login_report(token) is None


def test_new_login_revokes_older_sessions(make_account):
    account = make_account()
    first = sessions.establish(account)
    second = sessions.establish(account)

    assert sessions.current_identity(first) is None
    assert sessions.current_identity(second).id == account.id


def test_revoke_all_can_keep_current(app, make_account):
    app.config["SESSION_SINGLE_LOGIN"] = False
    account = make_account()
    keep = sessions.establish(account)
    other = sessions.establish(account)

    assert sessions.revoke_all_sessions(account.id, except_token=keep) == 1
    assert sessions.current_identity(keep) is not None
    assert sessions.current_identity(other) is None
