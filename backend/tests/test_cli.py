from gatepass.models import Destination, User


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()
    args = ["system", "init", "--admin-email", "admin@example.com", "--admin-password", "Password123!"]

    first = runner.invoke(args=args)
    second = runner.invoke(args=args)

    assert first.exit_code == 0, first.output
    assert "Created default destination: General" in first.output
    assert "Using existing admin: admin@example.com" in second.output
    assert db_session.query(Destination).count() == 1
    assert db_session.query(User).count() == 1


def test_destinations_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["destinations", "create", "--name", "Central Lab", "--code", "clab"])
    assert "PASS Created destination CLAB" in result.output

    duplicate = runner.invoke(args=["destinations", "create", "--name", "Other", "--code", "CLAB"])
    assert "FAIL" in duplicate.output

    listing = runner.invoke(args=["destinations", "list"])
    assert "Central Lab" in listing.output


def test_users_create_rejects_weak_password(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "create", "--email", "desk@example.com", "--password", "weak"])
    assert "FAIL Password validation failed" in result.output
    assert db_session.query(User).count() == 0


def test_passes_next_number(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["passes", "next-number", "--date", "05-03-2024"])
    assert result.output.strip() == "SDLGP05032024-0001"


def test_passes_next_number_bad_date(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["passes", "next-number", "--date", "soon"])
    assert result.exit_code != 0
