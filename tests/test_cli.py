"""Tests for the command line interface."""

import pytest
import structlog
import typer
from typer.testing import CliRunner

import work_item_splitter.cli as cli
from work_item_splitter.split.errors import StoreError
from work_item_splitter.wit.enums import CoreFields

from tests.conftest import make_work_item

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def launched(monkeypatch):
    urls = []
    monkeypatch.setattr(typer, "launch", lambda url: urls.append(url))
    return urls


@pytest.fixture
def use_store(monkeypatch):
    def install(store):
        monkeypatch.setattr(cli, "store_factory", lambda settings: store)
        return store

    return install


class TestPreview:
    def test_lists_eligible_children(self, feature_store, use_store):
        use_store(feature_store)
        result = runner.invoke(cli.app, ["preview", "100"])

        assert result.exit_code == 0
        assert "101" in result.output
        assert "103" in result.output
        assert "Task 102" not in result.output
        assert "Checkout redesign" in result.output

    def test_no_children(self, store, use_store):
        use_store(store).add(make_work_item(1))
        result = runner.invoke(cli.app, ["preview", "1"])

        assert result.exit_code == 0
        assert "no children" in result.output

    def test_missing_work_item(self, store, use_store):
        use_store(store)
        result = runner.invoke(cli.app, ["preview", "404"])
        assert result.exit_code == 1


class TestSplit:
    def test_moves_default_selection(self, feature_store, use_store, launched):
        use_store(feature_store)
        result = runner.invoke(cli.app, ["split", "100"])

        assert result.exit_code == 0, result.output
        assert "Created work item 500 in Sprint 2" in result.output
        assert feature_store.items[500].child_ids() == [101, 103]
        assert feature_store.items[500].get_field(CoreFields.TAGS) == "web; q3"
        assert launched == [feature_store.work_item_web_url(500)]

    def test_explicit_children_and_options(self, feature_store, use_store, launched):
        use_store(feature_store)
        result = runner.invoke(
            cli.app,
            [
                "split", "100", "--child", "103", "--title", "Checkout, part 2",
                "--no-copy-tags", "--no-open",
            ],
        )

        assert result.exit_code == 0, result.output
        target = feature_store.items[500]
        assert target.child_ids() == [103]
        assert target.title == "Checkout, part 2"
        assert target.get_field(CoreFields.TAGS) is None
        assert feature_store.items[100].child_ids() == [101, 102]
        assert launched == []

    def test_child_failure_is_reported(self, feature_store, use_store):
        use_store(feature_store).fail_updates[101] = StoreError("rule violation", 400)
        result = runner.invoke(cli.app, ["split", "100"])

        assert result.exit_code == 0
        assert "not updated" in result.output

    def test_no_children_fails(self, store, use_store):
        use_store(store).add(make_work_item(1))
        result = runner.invoke(cli.app, ["split", "1"])

        assert result.exit_code == 1
        assert store.mutations == []

    def test_unknown_child_fails(self, feature_store, use_store):
        use_store(feature_store)
        result = runner.invoke(cli.app, ["split", "100", "--child", "7"])

        assert result.exit_code == 1
        assert feature_store.mutations == []

    def test_failed_split_opens_nothing(self, feature_store, use_store, launched):
        use_store(feature_store).fail_updates[100] = StoreError("conflict", 409)
        result = runner.invoke(cli.app, ["split", "100"])

        assert result.exit_code == 1
        assert "was created" in result.output
        assert launched == []
