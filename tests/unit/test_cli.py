"""CLI command tests for CredStore."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from credstore.cli.main import app

runner = CliRunner()


@pytest.fixture
def temp_db(tmp_path: Path) -> str:
    """URL of a temporary SQLite database file."""
    return f"sqlite:///{tmp_path / 'credstore.db'}"


def _json(temp_db: str, *args: str) -> dict:
    result = runner.invoke(app, ["-d", temp_db, "--json", *args])
    assert result.exit_code == 0, f"Failed with: {result.output}"
    return json.loads(result.stdout)


class TestVersionCommand:
    """Test the version command."""

    def test_version_output(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "credstore v" in result.stdout


class TestSchemaCommands:
    """Schema inspection commands."""

    def test_schema_list_json(self) -> None:
        result = runner.invoke(app, ["-d", "memory://", "--json", "schema", "list"])
        assert result.exit_code == 0
        names = json.loads(result.stdout)
        assert "Facilities" in names
        assert len(names) == 10

    def test_schema_list_table(self) -> None:
        result = runner.invoke(app, ["-d", "memory://", "schema", "list"])
        assert result.exit_code == 0
        assert "Users" in result.stdout

    def test_schema_describe_json(self) -> None:
        result = runner.invoke(
            app, ["-d", "memory://", "--json", "schema", "describe", "ProviderAffiliations"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["table"] == "Provider Affiliations"
        assert {"entity": "Facilities", "key": "affiliations"} in data["parents"]

    def test_schema_describe_table(self) -> None:
        result = runner.invoke(app, ["-d", "memory://", "schema", "describe", "Requests"])
        assert result.exit_code == 0
        assert "Payload (JSON)" in result.stdout

    def test_schema_describe_unknown(self) -> None:
        result = runner.invoke(app, ["-d", "memory://", "schema", "describe", "Widgets"])
        assert result.exit_code == 1

    def test_schema_init(self, temp_db: str) -> None:
        first = _json(temp_db, "schema", "init")
        assert first["success"] is True
        assert "Facilities" in first["created"]
        second = _json(temp_db, "schema", "init")
        assert second["created"] == []
        assert second["tables"] == 10


class TestDataCommands:
    """Record commands against a SQLite file."""

    def test_create_and_get(self, temp_db: str) -> None:
        created = _json(temp_db, "data", "create", "Facilities", '{"name": "Acme", "state": "NY"}')
        assert created["success"] is True
        facility_id = created["data"]["id"]

        _json(
            temp_db,
            "data",
            "create",
            "FacilitySpecialties",
            json.dumps({"facilityId": facility_id, "taxonomyId": "T1"}),
        )

        fetched = _json(temp_db, "data", "get", "Facilities", facility_id)
        assert fetched["data"]["name"] == "Acme"
        assert [s["taxonomyId"] for s in fetched["data"]["specialties"]] == ["T1"]

    def test_create_from_file(self, temp_db: str, tmp_path: Path) -> None:
        path = tmp_path / "facility.json"
        path.write_text('{"name": "From File"}')
        created = _json(temp_db, "data", "create", "Facilities", "--from-file", str(path))
        assert created["data"]["name"] == "From File"

    def test_create_invalid_json(self, temp_db: str) -> None:
        result = runner.invoke(app, ["-d", temp_db, "data", "create", "Facilities", "{nope"])
        assert result.exit_code == 1

    def test_create_requires_actor_for_requests(self, temp_db: str) -> None:
        result = runner.invoke(app, ["-d", temp_db, "data", "create", "Requests", "{}"])
        assert result.exit_code == 1

        created = _json(temp_db, "--actor", "cli@example.com", "data", "create", "Requests", "{}")
        assert created["data"]["createdBy"] == "cli@example.com"

    def test_list_with_filters(self, temp_db: str) -> None:
        for name, state in (("B", "NY"), ("A", "NY"), ("C", "NJ")):
            record = json.dumps({"name": name, "state": state})
            _json(temp_db, "data", "create", "Facilities", record)

        listing = _json(
            temp_db, "data", "list", "Facilities", "--filter", "state=NY", "--sort", "name"
        )
        assert [r["name"] for r in listing["data"]["data"]] == ["A", "B"]
        assert listing["data"]["total_records"] == 2

        desc = _json(temp_db, "data", "list", "Facilities", "--sort", "name", "--desc")
        assert [r["name"] for r in desc["data"]["data"]] == ["C", "B", "A"]

    def test_list_table_output(self, temp_db: str) -> None:
        _json(temp_db, "data", "create", "Users", '{"email": "a@x.io", "name": "Ann"}')
        result = runner.invoke(app, ["-d", temp_db, "data", "list", "Users"])
        assert result.exit_code == 0
        assert "Ann" in result.stdout

    def test_list_bad_filter(self, temp_db: str) -> None:
        result = runner.invoke(app, ["-d", temp_db, "data", "list", "Facilities", "-f", "state"])
        assert result.exit_code == 1

    def test_patch(self, temp_db: str) -> None:
        facility_id = _json(temp_db, "data", "create", "Facilities", "{}")["data"]["id"]
        patched = _json(temp_db, "data", "patch", "Facilities", facility_id, '{"status": "Active"}')
        assert patched["data"]["changed"] == ["status"]
        again = _json(temp_db, "data", "patch", "Facilities", facility_id, '{"status": "Active"}')
        assert again["message"] == "No changes detected"

    def test_delete_cascades(self, temp_db: str) -> None:
        facility_id = _json(temp_db, "data", "create", "Facilities", "{}")["data"]["id"]
        _json(
            temp_db,
            "data",
            "create",
            "FacilityContacts",
            json.dumps({"facilityId": facility_id, "name": "Kim"}),
        )
        deleted = _json(temp_db, "data", "delete", "Facilities", facility_id)
        assert deleted["data"]["deleted_children"]["contacts"] == 1

        result = runner.invoke(app, ["-d", temp_db, "data", "get", "Facilities", facility_id])
        assert result.exit_code == 1

    def test_delete_confirmation(self, temp_db: str) -> None:
        facility_id = _json(temp_db, "data", "create", "Facilities", "{}")["data"]["id"]
        aborted = runner.invoke(
            app, ["-d", temp_db, "data", "delete", "Facilities", facility_id], input="n\n"
        )
        assert aborted.exit_code == 1
        assert _json(temp_db, "data", "get", "Facilities", facility_id)["success"] is True

        confirmed = runner.invoke(
            app, ["-d", temp_db, "data", "delete", "Facilities", facility_id, "--force"]
        )
        assert confirmed.exit_code == 0

    def test_get_missing(self, temp_db: str) -> None:
        result = runner.invoke(app, ["-d", temp_db, "data", "get", "Facilities", "missing"])
        assert result.exit_code == 1


class TestRequestCommands:
    """Request desk commands."""

    def _seed(self, temp_db: str) -> str:
        _json(
            temp_db,
            "data",
            "create",
            "Users",
            '{"email": "ann@example.com", "name": "Ann Lee"}',
        )
        created = _json(
            temp_db,
            "--actor",
            "ops@example.com",
            "data",
            "create",
            "Requests",
            '{"status": "New", "ownerEmail": "ann@example.com", "type": "Initial"}',
        )
        return created["data"]["id"]

    def test_list_and_counts(self, temp_db: str) -> None:
        self._seed(temp_db)
        listing = _json(temp_db, "requests", "list")
        assert listing["data"]["data"][0]["ownerName"] == "Ann Lee"

        counts = _json(temp_db, "requests", "counts")
        assert counts["data"]["counts"]["New"] == 1
        assert counts["data"]["open"] == 1

    def test_transition(self, temp_db: str) -> None:
        request_id = self._seed(temp_db)
        result = _json(
            temp_db, "--actor", "ops@example.com", "requests", "transition", request_id, "Approved"
        )
        assert result["data"]["changed"] == ["status"]
        counts = _json(temp_db, "requests", "counts")
        assert counts["data"]["counts"]["Approved"] == 1
