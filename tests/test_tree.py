"""Tests for the Signal primitive and the observable tree."""

import logging

import pytest

from profilestore import (
    ObservableTree,
    PathNotFound,
    ReadOnlyTree,
    Signal,
    StoreError,
    TypeMismatch,
    ValidationRejected,
)


def make_tree(**kwargs):
    return ObservableTree({"Resources": {"Cash": 0, "XP": 0}, "Inventory": {}}, **kwargs)


class Recorder:
    """Collects listener invocations."""

    def __init__(self, name=None, log=None):
        self.name = name
        self.log = log if log is not None else []
        self.calls = []

    def __call__(self, value, path, changed_value, changed_path):
        self.calls.append((value, path, changed_value, changed_path))
        self.log.append(self.name)


class TestSignal:

    def test_fire_calls_listeners_in_order(self):
        signal = Signal()
        seen = []
        signal.connect(lambda value: seen.append(("first", value)))
        signal.connect(lambda value: seen.append(("second", value)))

        signal.fire(1)

        assert seen == [("first", 1), ("second", 1)]

    def test_disconnect_is_idempotent(self):
        signal = Signal()
        seen = []
        disconnect = signal.connect(seen.append)

        disconnect()
        disconnect()
        signal.fire("ignored")

        assert seen == []
        assert signal.listener_count == 0

    def test_destroy_turns_disconnects_into_noops(self):
        signal = Signal()
        seen = []
        disconnect = signal.connect(seen.append)

        signal.destroy()
        disconnect()
        signal.fire("ignored")

        assert seen == []
        assert signal.is_destroyed

    def test_failing_listener_does_not_stop_fan_out(self, caplog):
        signal = Signal()
        seen = []

        def broken(value):
            raise RuntimeError("boom")

        signal.connect(broken)
        signal.connect(seen.append)

        with caplog.at_level(logging.ERROR):
            signal.fire(5)

        assert seen == [5]
        assert "raised" in caplog.text


class TestReadsAndWrites:

    def test_get_root_nested_and_missing(self):
        tree = make_tree()
        assert tree.get() == {"Resources": {"Cash": 0, "XP": 0}, "Inventory": {}}
        assert tree.get("") is tree.get()
        assert tree.get("Resources/Cash") == 0
        assert tree.get("Resources/Gold") is None
        assert tree.get("Resources/Cash/Deeper") is None

    def test_get_returns_live_references(self):
        tree = make_tree()
        tree.get("Resources")["Cash"] = 3
        assert tree.get("Resources/Cash") == 3

    def test_set_existing_and_new_leaf(self):
        tree = make_tree()
        tree.set("Resources/Cash", 100)
        tree.set("Inventory/sword", 1)
        assert tree.get("Resources/Cash") == 100
        assert tree.get("Inventory") == {"sword": 1}

    def test_paths_are_normalized(self):
        tree = make_tree()
        tree.set("/Resources//Cash/", 7)
        assert tree.get("Resources/Cash") == 7

    def test_set_requires_intermediate_nodes(self):
        tree = make_tree()
        with pytest.raises(PathNotFound) as excinfo:
            tree.set("Quests/Main/Step", 1)
        assert excinfo.value.missing == "Quests"
        assert "Quests" not in tree.get()

    def test_set_through_a_leaf_fails(self):
        tree = make_tree()
        with pytest.raises(PathNotFound):
            tree.set("Resources/Cash/Cents", 5)

    def test_apply_update_creates_missing_nodes(self):
        tree = make_tree()
        tree.apply_update("Quests/Main/Step", 2)
        tree.apply_update("Resources/Cash/Cents", 5)
        assert tree.get("Quests") == {"Main": {"Step": 2}}
        assert tree.get("Resources/Cash") == {"Cents": 5}

    def test_root_write_replaces_data(self):
        tree = make_tree()
        tree.set(None, {"Other": True})
        assert tree.get() == {"Other": True}


class TestHierarchicalNotification:

    def test_ancestors_fire_root_first(self):
        tree = make_tree()
        order = []
        root = Recorder("root", order)
        resources = Recorder("resources", order)
        cash = Recorder("cash", order)
        xp = Recorder("xp", order)
        tree.listen(None, root)
        tree.listen("Resources/Cash", cash)
        tree.listen("Resources", resources)
        tree.listen("Resources/XP", xp)

        tree.set("Resources/Cash", 100)

        assert order == ["root", "resources", "cash"]
        assert xp.calls == []

    def test_each_listener_sees_its_own_value(self):
        tree = make_tree()
        root, resources, cash = Recorder(), Recorder(), Recorder()
        tree.listen("", root)
        tree.listen("Resources", resources)
        tree.listen("Resources/Cash", cash)

        tree.set("Resources/Cash", 100)

        assert root.calls == [(tree.get(), "", 100, "Resources/Cash")]
        assert resources.calls == [({"Cash": 100, "XP": 0}, "Resources", 100, "Resources/Cash")]
        assert cash.calls == [(100, "Resources/Cash", 100, "Resources/Cash")]

    def test_descendants_do_not_fire(self):
        tree = make_tree()
        cash = Recorder()
        tree.listen("Resources/Cash", cash)

        tree.set("Resources", {"Cash": 5, "XP": 1})

        assert cash.calls == []

    def test_root_write_only_notifies_root(self):
        tree = make_tree()
        root, resources = Recorder(), Recorder()
        tree.listen(None, root)
        tree.listen("Resources", resources)

        tree.set("", {"Resources": {"Cash": 1, "XP": 1}, "Inventory": {}})

        assert len(root.calls) == 1
        assert resources.calls == []

    def test_apply_update_notifies_like_set(self):
        tree = make_tree()
        order = []
        tree.listen(None, Recorder("root", order))
        tree.listen("Quests", Recorder("quests", order))
        tree.listen("Quests/Main", Recorder("main", order))

        tree.apply_update("Quests/Main", {"Step": 1})

        assert order == ["root", "quests", "main"]

    def test_bind_fires_immediately_then_on_changes(self):
        tree = make_tree()
        cash = Recorder()

        tree.bind("Resources/Cash", cash)
        assert cash.calls == [(0, "Resources/Cash", 0, "Resources/Cash")]

        tree.set("Resources/Cash", 9)
        assert cash.calls[-1] == (9, "Resources/Cash", 9, "Resources/Cash")
        assert len(cash.calls) == 2

    def test_bind_failure_disconnects_callback(self):
        tree = make_tree()
        calls = []

        def broken(value, path, changed_value, changed_path):
            calls.append(value)
            raise RuntimeError("render failed")

        with pytest.raises(RuntimeError):
            tree.bind("Resources/Cash", broken)
        tree.set("Resources/Cash", 5)

        assert calls == [0]

    def test_unsubscribe_stops_notifications(self):
        tree = make_tree()
        cash = Recorder()
        unsubscribe = tree.listen("Resources/Cash", cash)

        unsubscribe()
        unsubscribe()
        tree.set("Resources/Cash", 1)

        assert cash.calls == []

    def test_listener_may_unsubscribe_during_fan_out(self):
        tree = make_tree()
        seen = []
        handles = {}

        def once(value, path, changed_value, changed_path):
            seen.append("once")
            handles["once"]()

        handles["once"] = tree.listen(None, once)
        tree.listen(None, lambda *args: seen.append("always"))

        tree.set("Resources/Cash", 1)
        tree.set("Resources/Cash", 2)

        assert seen == ["once", "always", "always"]


class TestValidatorInjection:

    def test_rejected_write_raises_and_leaves_data(self):
        tree = make_tree(validator=lambda path, value: (value >= 0, "negative cash"))
        root = Recorder()
        tree.listen(None, root)

        with pytest.raises(ValidationRejected) as excinfo:
            tree.set("Resources/Cash", -5)

        assert excinfo.value.reason == "negative cash"
        assert tree.get("Resources/Cash") == 0
        assert root.calls == []

    def test_validator_is_called_with_normalized_path(self):
        calls = []
        tree = make_tree(validator=lambda path, value: calls.append((path, value)) or (True, None))

        tree.set("/Resources/Cash", 3)

        assert calls == [("Resources/Cash", 3)]

    def test_validator_exceptions_propagate(self):
        def validator(path, value):
            raise TypeMismatch(path, "number", "string")

        tree = make_tree(validator=validator)

        with pytest.raises(TypeMismatch):
            tree.set("Resources/Cash", "lots")

    def test_apply_update_skips_validator(self):
        tree = make_tree(validator=lambda path, value: (False, "never"))
        tree.apply_update("Resources/Cash", 50)
        assert tree.get("Resources/Cash") == 50


class TestDestroy:

    def test_destroy_releases_listeners(self):
        tree = make_tree()
        root = Recorder()
        unsubscribe = tree.listen(None, root)

        tree.destroy()
        unsubscribe()
        tree.set("Resources/Cash", 1)

        assert root.calls == []
        assert tree.is_destroyed
        assert tree.get("Resources/Cash") == 1

    def test_listen_after_destroy_fails(self):
        tree = make_tree()
        tree.destroy()
        with pytest.raises(StoreError):
            tree.listen(None, Recorder())


class TestReadOnlyTree:

    def test_exposes_reads_and_observation_only(self):
        tree = make_tree()
        view = ReadOnlyTree(tree)
        cash = Recorder()

        view.bind("Resources/Cash", cash)
        tree.set("Resources/Cash", 4)

        assert view.get("Resources/Cash") == 4
        assert len(cash.calls) == 2
        assert not hasattr(view, "set")
        assert not hasattr(view, "apply_update")
