# tests/3_independent/test_plural.py

import pytest

import minipack.utils as mod_utils


@pytest.mark.parametrize(
    ("obj", "suffix"),
    [(0, "s"), (1, ""), (2, "s"), (1.0, ""), ([], "s"), (["a"], ""), ("ab", "s")],
)
def test_plural(obj: object, suffix: str) -> None:
    assert mod_utils.plural(obj) == suffix


def test_unsized_non_number_counts_as_zero() -> None:
    assert mod_utils.plural(object()) == "s"
