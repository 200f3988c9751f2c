"""
CLI command tests (flask system/users/categories/shifts).
"""

from studiopos.models import Category, User
from studiopos.services import shift_service


def test_init_db_seeds_defaults_once(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init-db"])
    assert first.exit_code == 0, first.output
    assert "PASS Created user: admin@studiopos.local" in first.output

    second = runner.invoke(args=["system", "init-db"])
    assert second.exit_code == 0
    assert "already exists, skipping" in second.output

    assert db_session.query(User).count() == 2
    assert {c.type for c in db_session.query(Category)} == {"STUDIO", "FB"}


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--name", "Rina", "--email", "rina@studio.test",
        "--password", "Str0ng!Pass", "--role", "admin",
    ])
    assert result.exit_code == 0, result.output

    listing = runner.invoke(args=["users", "list"])
    assert "rina@studio.test" in listing.output
    assert "ADMIN" in listing.output


def test_users_create_weak_password_fails(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--name", "Rina", "--email", "rina@studio.test", "--password", "weak",
    ])
    assert result.exit_code != 0
    assert "at least 8 characters" in result.output


def test_categories_create(app, db_session):
    result = app.test_cli_runner().invoke(args=["categories", "create", "--name", "Frames", "--type", "studio"])

    assert result.exit_code == 0, result.output
    assert db_session.query(Category).filter_by(name="Frames").one().type == "STUDIO"


def test_shifts_list_shows_variance(app, db_session, cashier):
    shift_service.open_shift(cashier, 1000)
    shift_service.close_shift(cashier, 900)

    result = app.test_cli_runner().invoke(args=["shifts", "list"])

    assert result.exit_code == 0, result.output
    assert "CLOSED" in result.output
    assert "-100" in result.output
