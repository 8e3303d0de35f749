"""Tests for the migration runner."""

import logging

import pytest

from profilestore import MigrationFailed, run_migrations


def add_gems(data):
    data["Resources"]["Gems"] = 0


def double_cash(data):
    data["Resources"]["Cash"] *= 2


def broken(data):
    raise KeyError("Missing")


class TestRunMigrations:

    def test_new_entity_skips_migrations(self):
        data = {"Resources": {"Cash": 1}}
        assert run_migrations([add_gems, double_cash], -1, data) == 2
        assert data == {"Resources": {"Cash": 1}}

    def test_applies_every_pending_migration_in_order(self):
        data = {"Resources": {"Cash": 5}}
        assert run_migrations([add_gems, double_cash], 0, data) == 2
        assert data == {"Resources": {"Cash": 10, "Gems": 0}}

    def test_applies_only_newer_migrations(self):
        data = {"Resources": {"Cash": 5}}
        assert run_migrations([add_gems, double_cash], 1, data) == 2
        assert data == {"Resources": {"Cash": 10}}

    def test_up_to_date_data_is_untouched(self):
        data = {"Resources": {"Cash": 5}}
        assert run_migrations([add_gems, double_cash], 2, data) == 2
        assert data == {"Resources": {"Cash": 5}}

    def test_no_migrations(self):
        assert run_migrations([], 0, {}) == 0

    def test_newer_data_keeps_its_version(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert run_migrations([add_gems], 3, {}) == 3
        assert "newer" in caplog.text

    def test_failure_names_the_migration(self):
        data = {"Resources": {"Cash": 5}}

        with pytest.raises(MigrationFailed) as excinfo:
            run_migrations([double_cash, broken], 0, data)

        assert excinfo.value.index == 2
        assert isinstance(excinfo.value.cause, KeyError)
        assert data["Resources"]["Cash"] == 10
