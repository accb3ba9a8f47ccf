"""Tests for default item names."""

from pebble_tree.core.naming import new_name, untitled


def test_untitled() -> None:
    assert untitled(1) == "untitled-1"
    assert untitled(4, "xml") == "untitled-4.xml"


def test_new_name_picks_lowest_accepted() -> None:
    rejected = {"untitled-1", "untitled-2"}
    asked: list[str] = []

    def accept(name: str) -> bool:
        asked.append(name)
        return name not in rejected

    assert new_name(accept) == "untitled-3"
    assert asked == ["untitled-1", "untitled-2", "untitled-3"]


def test_new_name_with_extension() -> None:
    assert new_name(lambda name: True, "xqm") == "untitled-1.xqm"
