from pathlib import Path

import pytest
import yaml

from ecsctl.contexts import ContextStore, Target
from ecsctl.exceptions import NoActiveContextError, NotFoundError, ValidationError


@pytest.fixture()
def store(tmp_path: Path) -> ContextStore:
    return ContextStore(tmp_path / "ecsctl" / "config.yaml")


def _target(name: str, cluster: str = "cluster-a", **kw) -> Target:
    return Target(name=name, cluster_id=cluster, **kw)


def test_missing_file_is_empty_registry(store: ContextStore) -> None:
    targets, active = store.list_all()
    assert targets == []
    assert active == ""
    with pytest.raises(NoActiveContextError, match="set-context"):
        store.get_active()


def test_set_target_persists_and_activates(store: ContextStore) -> None:
    target = _target("prod", "prod-cluster", credential_profile="ops", region="eu-west-1")

    store.set_target(target)

    assert store.get_active() == target
    on_disk = yaml.safe_load(store.path.read_text())
    assert on_disk == {
        "current-context": "prod",
        "contexts": {
            "prod": {
                "name": "prod",
                "cluster": "prod-cluster",
                "profile": "ops",
                "region": "eu-west-1",
            }
        },
    }
    assert [p.name for p in store.path.parent.iterdir()] == ["config.yaml"]


def test_set_target_replaces_in_place(store: ContextStore) -> None:
    store.set_target(_target("a"))
    store.set_target(_target("b"))
    store.set_target(_target("a", "cluster-z"))

    targets, active = store.list_all()

    assert [t.name for t in targets] == ["a", "b"]
    assert targets[0].cluster_id == "cluster-z"
    assert active == "a"


def test_use_switches_active(store: ContextStore) -> None:
    store.set_target(_target("a"))
    store.set_target(_target("b"))

    store.use("a")

    assert store.get_active().name == "a"


def test_use_unknown_leaves_registry_untouched(store: ContextStore) -> None:
    store.set_target(_target("a"))
    before = store.path.read_text()

    with pytest.raises(NotFoundError, match="context 'nope' not found"):
        store.use("nope")

    assert store.path.read_text() == before


def test_delete_active_clears_selection(store: ContextStore) -> None:
    store.set_target(_target("a"))
    store.set_target(_target("b"))

    store.delete("b")

    targets, active = store.list_all()
    assert [t.name for t in targets] == ["a"]
    assert active == ""
    with pytest.raises(NoActiveContextError):
        store.get_active()


def test_delete_inactive_keeps_selection(store: ContextStore) -> None:
    store.set_target(_target("a"))
    store.set_target(_target("b"))

    store.delete("a")

    assert store.get_active().name == "b"


def test_delete_unknown_raises(store: ContextStore) -> None:
    with pytest.raises(NotFoundError):
        store.delete("ghost")


@pytest.mark.parametrize(
    "target, message",
    [
        (Target(name="", cluster_id="c"), "context name cannot be empty"),
        (Target(name="x", cluster_id=""), "cluster name cannot be empty"),
    ],
)
def test_invalid_target_is_rejected_before_writing(
    store: ContextStore, target: Target, message: str
) -> None:
    with pytest.raises(ValidationError, match=message):
        store.set_target(target)
    assert not store.path.exists()


def test_dangling_current_context(store: ContextStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("current-context: gone\ncontexts: {}\n")

    with pytest.raises(NotFoundError, match="current context 'gone' not found"):
        store.get_active()


def test_entries_fall_back_to_default_profile_and_region(store: ContextStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        "current-context: legacy\ncontexts:\n  legacy:\n    cluster: old\n"
    )

    target = store.get_active()

    assert target == Target(
        name="legacy", cluster_id="old", credential_profile="default", region="us-east-1"
    )


@pytest.mark.parametrize("content", ["contexts: [1, 2]\n", "- just\n- a list\n", "{: bad"])
def test_malformed_registry_raises_validation_error(store: ContextStore, content: str) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content)

    with pytest.raises(ValidationError):
        store.load()


def test_concurrent_writer_temp_file_does_not_corrupt_registry(store: ContextStore) -> None:
    store.set_target(_target("a"))
    # Another invocation is halfway through writing its own temp sibling.
    other = (store.path.parent / "config.yaml.tmp").open("w", encoding="utf-8")
    legacy = store.path.with_suffix(".tmp").open("w", encoding="utf-8")
    other.write("current-context: b\ncontexts:\n  b:\n")
    legacy.write("current-context: b\ncontexts:\n  b:\n")

    store.set_target(_target("x", "c2"))

    other.write("    cluster: [unfinished\n")
    other.close()
    legacy.write("    cluster: [unfinished\n")
    legacy.close()

    targets, active = store.list_all()
    assert [t.name for t in targets] == ["a", "x"]
    assert active == "x"


def test_entries_are_keyed_by_registry_name(store: ContextStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        "current-context: bar\ncontexts:\n  bar:\n    name: foo\n    cluster: c\n"
    )

    targets, _ = store.list_all()
    assert [t.name for t in targets] == ["bar"]
    assert store.get_active().name == "bar"

    store.use("bar")
    assert store.get_active().name == "bar"
