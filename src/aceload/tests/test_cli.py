from sqlalchemy import create_engine, text
from typer.testing import CliRunner

from aceload import __version__
from aceload.cli import app

runner = CliRunner()


def _counts(url):
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return {
                table: conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
                for table in ("users", "groups", "user_groups", "resources", "aces")
            }
    finally:
        engine.dispose()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_custom_load_leaves_store_empty(tmp_path):
    url = f"sqlite:///{tmp_path / 'custom.db'}"
    result = runner.invoke(
        app,
        [
            "load",
            "--database-url",
            url,
            "--custom",
            "--users",
            "2",
            "--groups",
            "1",
            "--members",
            "1",
            "--user-permissions",
            "1",
            "--group-permissions",
            "1",
            "--verbose",
        ],
    )
    assert result.exit_code == 0, result.output
    assert set(_counts(url).values()) == {0}


def test_scheduled_load_stops_after_max_iterations(tmp_path):
    url = f"sqlite:///{tmp_path / 'schedule.db'}"
    result = runner.invoke(
        app, ["load", "--database-url", url, "--start", "3", "--max-iterations", "2"]
    )
    assert result.exit_code == 0, result.output
    assert "Completed 2 iterations." in result.output
    assert set(_counts(url).values()) == {0}


def test_init_schema_creates_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'schema.db'}"
    result = runner.invoke(app, ["init-schema", "--database-url", url])
    assert result.exit_code == 0, result.output
    assert set(_counts(url).values()) == {0}


def test_query_with_attempt_limit(tmp_path):
    url = f"sqlite:///{tmp_path / 'query.db'}"
    assert runner.invoke(app, ["init-schema", "--database-url", url]).exit_code == 0

    result = runner.invoke(app, ["query", "--database-url", url, "--max-queries", "2"])

    assert result.exit_code == 0, result.output
    assert "Success" in result.output


def test_bad_tls_settings_exit_non_zero(monkeypatch):
    monkeypatch.delenv("ACELOAD_DATABASE_URL", raising=False)
    result = runner.invoke(app, ["load", "--tls-key-file", "/certs/client.key"])
    assert result.exit_code == 1
    assert "certificate" in result.output


def test_missing_tables_exit_non_zero(tmp_path):
    url = f"sqlite:///{tmp_path / 'empty.db'}"
    result = runner.invoke(
        app, ["load", "--database-url", url, "--skip-schema", "--custom", "--users", "1"]
    )
    assert result.exit_code == 1
    assert "Error:" in result.output
