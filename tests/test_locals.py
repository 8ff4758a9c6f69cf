"""Tests for sprig.locals — typed request-scoped storage."""

import pytest

from sprig.locals import Locals


class TestLocals:
    def test_set_and_read(self) -> None:
        store = Locals()
        store["id"] = 1
        store.set("name", "mid Man")
        assert store["id"] == 1
        assert store.get("name") == "mid Man"
        assert "id" in store
        assert sorted(store) == ["id", "name"]
        assert len(store) == 2

    def test_missing_key(self) -> None:
        store = Locals()
        with pytest.raises(KeyError, match="No local 'user'"):
            store["user"]
        assert store.get("user") is None
        assert store.get("user", "anon") == "anon"

    def test_require_checks_type(self) -> None:
        store = Locals()
        store["id"] = 1
        assert store.require("id", int) == 1
        with pytest.raises(TypeError, match="is int, expected str"):
            store.require("id", str)

    def test_require_without_type(self) -> None:
        store = Locals()
        store["anything"] = [1, 2]
        assert store.require("anything") == [1, 2]

    def test_require_missing(self) -> None:
        with pytest.raises(KeyError):
            Locals().require("id", int)

    def test_overwrite_and_delete(self) -> None:
        store = Locals()
        store["k"] = "a"
        store["k"] = "b"
        assert store["k"] == "b"
        del store["k"]
        assert "k" not in store

    def test_instances_are_independent(self) -> None:
        first, second = Locals(), Locals()
        first["k"] = 1
        assert "k" not in second
