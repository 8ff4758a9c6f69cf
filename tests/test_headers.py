"""Tests for sprig.http.headers — immutable, case-insensitive Headers."""

import pytest

from sprig._internal.multimap import MultiValueMapping
from sprig.http.headers import Headers


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_case_insensitive(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"
        assert "content-TYPE" in h

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            _h(("Accept", "*/*"))["X-Missing"]

    def test_get_default(self) -> None:
        h = _h()
        assert h.get("x") is None
        assert h.get("x", "d") == "d"

    def test_repeated_values(self) -> None:
        h = _h(("X-Forwarded-For", "1.1.1.1"), ("x-forwarded-for", "2.2.2.2"))
        assert h["X-Forwarded-For"] == "1.1.1.1"
        assert h.get_list("x-forwarded-for") == ["1.1.1.1", "2.2.2.2"]
        assert len(h) == 1

    def test_from_mapping(self) -> None:
        h = Headers.from_mapping({"Host": "localhost:8000"})
        assert h["host"] == "localhost:8000"
        assert h.raw == ((b"host", b"localhost:8000"),)

    def test_non_string_not_contained(self) -> None:
        assert 1 not in _h(("a", "b"))

    def test_multivalue_protocol(self) -> None:
        assert isinstance(_h(), MultiValueMapping)
