from wolo.extensions import db
from wolo.models import Setting


def test_settings_set_and_get(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["settings", "set", "theme", "dark"])
    assert result.exit_code == 0
    assert "PASS theme = dark" in result.output

    result = runner.invoke(args=["settings", "get", "theme"])
    assert "theme = dark" in result.output

    result = runner.invoke(args=["settings", "get", "absent"])
    assert "absent is not set" in result.output


def test_schema_commands(file_app):
    runner = file_app.test_cli_runner()

    with file_app.app_context():
        ensure = runner.invoke(args=["db-schema", "ensure"])
        status = runner.invoke(args=["db-schema", "status"])

    assert ensure.exit_code == 0
    assert "already up to date" in ensure.output
    assert "Pending: -" in status.output


def test_backup_commands(file_app):
    runner = file_app.test_cli_runner()

    with file_app.app_context():
        created = runner.invoke(args=["backup", "create"])
        listed = runner.invoke(args=["backup", "list"])

    assert created.exit_code == 0, created.output
    assert "PASS Backup written to" in created.output
    assert "wolo-inventory_" in listed.output


def test_restore_requires_confirmation(file_app):
    runner = file_app.test_cli_runner()

    with file_app.app_context():
        runner.invoke(args=["settings", "set", "theme", "dark"])
        backup = runner.invoke(args=["backup", "create"])
        assert backup.exit_code == 0
        path = backup.output.split("PASS Backup written to ")[1].split(" (")[0]

        refused = runner.invoke(args=["backup", "restore", path])
        assert refused.exit_code == 1

        runner.invoke(args=["settings", "set", "theme", "light"])
        restored = runner.invoke(args=["backup", "restore", path, "--yes"])
        assert restored.exit_code == 0, restored.output

        assert db.session.get(Setting, "theme").value == "dark"


def test_export_inventory_command(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["export", "inventory"])

    assert result.exit_code == 0
    assert "PASS Wrote 0 rows to" in result.output
