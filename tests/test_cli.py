"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from slotmatch.cli.app import app, parse_selection_args, parse_slot_arg

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("owner: alice\nstore_file: slots.json\n", encoding="utf-8")
    return path


def invoke(config_path, *args):
    return runner.invoke(app, [*args, "--config", str(config_path)])


def stored(config_path):
    return json.loads((config_path.parent / "slots.json").read_text(encoding="utf-8"))


class TestArgumentParsing:
    """Tests for command line slot notation."""

    def test_parse_slot_arg(self):
        assert parse_slot_arg("mon=09:00-11:00") == {
            "day_of_week": 1,
            "start_time": "09:00",
            "end_time": "11:00",
        }

    def test_parse_selection_args(self):
        assert parse_selection_args(["mon=09:00,10:00", "sun=12:00", "mon=13:00"]) == {
            1: ["09:00", "10:00", "13:00"],
            0: ["12:00"],
        }


class TestCommands:
    """End-to-end runs against a JSON-file store."""

    def test_add_and_list(self, config_path):
        result = invoke(config_path, "add", "mon=09:00-11:00", "wed=14:00-15:00")

        assert result.exit_code == 0, result.output
        assert "created 2" in result.output

        listing = invoke(config_path, "list")

        assert listing.exit_code == 0
        assert "Monday" in listing.output
        assert "Wednesday" in listing.output

    def test_conflicting_add_is_rejected(self, config_path):
        invoke(config_path, "add", "mon=09:00-11:00")

        result = invoke(config_path, "add", "tue=09:00-10:00", "mon=10:00-12:00")

        assert result.exit_code == 1
        assert "conflict" in result.output
        assert len(stored(config_path)) == 1

    def test_invalid_slot_notation(self, config_path):
        result = invoke(config_path, "add", "monday-09:00")

        assert result.exit_code == 2

    def test_update_and_delete(self, config_path):
        invoke(config_path, "add", "mon=09:00-11:00")
        slot_id = stored(config_path)[0]["id"]

        updated = invoke(config_path, "update", slot_id, "--day", "fri", "--end", "12:00")

        assert updated.exit_code == 0, updated.output
        assert stored(config_path)[0]["day_of_week"] == 5
        assert stored(config_path)[0]["end_time"] == "12:00"

        deleted = invoke(config_path, "delete", slot_id)

        assert deleted.exit_code == 0
        assert stored(config_path) == []

    def test_delete_foreign_slot(self, config_path):
        invoke(config_path, "add", "mon=09:00-11:00", "--as", "bob")
        slot_id = stored(config_path)[0]["id"]

        result = invoke(config_path, "delete", slot_id)

        assert result.exit_code == 1
        assert "authorization" in result.output

    def test_select_and_compare(self, config_path):
        selected = invoke(config_path, "select", "mon=09:00,10:00,11:00")
        invoke(config_path, "add", "mon=10:00-13:00", "--as", "bob")

        assert selected.exit_code == 0, selected.output
        assert "Saved 1 slot(s)" in selected.output

        compared = invoke(config_path, "compare", "bob")

        assert compared.exit_code == 0, compared.output
        assert "120 min/week" in compared.output

    def test_select_outside_grid(self, config_path):
        result = invoke(config_path, "select", "mon=06:00")

        assert result.exit_code == 1
        assert "outside the grid" in result.output

    def test_list_other_owner(self, config_path):
        invoke(config_path, "add", "sat=10:00-11:00", "--as", "bob")

        result = invoke(config_path, "list", "bob")

        assert result.exit_code == 0
        assert "Saturday" in result.output

    def test_missing_owner_is_unauthenticated(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("store_file: slots.json\n", encoding="utf-8")

        result = invoke(path, "add", "mon=09:00-11:00")

        assert result.exit_code == 1
        assert "unauthenticated" in result.output

    def test_missing_config_file(self, tmp_path):
        result = invoke(tmp_path / "nope.yaml", "list")

        assert result.exit_code == 1

    def test_today(self, config_path):
        result = invoke(config_path, "today")

        assert result.exit_code == 0

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "slotmatch" in result.output
