from conftest import STRONG_PASSWORD
from models.account import Account, Role
from models.password_history import PasswordHistory


def test_create_account_command(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-account", "root", "--role", "admin", "--password", STRONG_PASSWORD])

    assert result.exit_code == 0, result.output
    account = Account.query.filter_by(username="root").one()
    assert account.role is Role.ADMIN
    assert PasswordHistory.query.filter_by(account_id=account.id).count() == 1


def test_create_account_rejects_weak_password(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-account", "root", "--password", "weak"])

    assert result.exit_code != 0
    assert Account.query.filter_by(username="root").first() is None
