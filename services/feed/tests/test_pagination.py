import pytest

from app.pagination import decode_cursor, dedupe_by_id, encode_cursor, next_cursor, paginate
from tests.factories import make_candidate


@pytest.mark.parametrize("n", [0, 1, 20, 500, 10**9])
def test_cursor_round_trip(n: int) -> None:
    assert decode_cursor(encode_cursor(n)) == n


def test_cursor_is_base64_of_decimal_offset() -> None:
    assert encode_cursor(500) == "NTAw"


@pytest.mark.parametrize("bad", ["", "not base64!", "LTE=", "YWJj"])
def test_malformed_cursor_raises(bad: str) -> None:
    with pytest.raises(ValueError):
        decode_cursor(bad)


def test_encode_rejects_negative_offsets() -> None:
    with pytest.raises(ValueError):
        encode_cursor(-1)


def test_last_partial_page_has_no_next_cursor() -> None:
    items = list(range(600))
    page = paginate(items, offset=500, limit=500)
    assert len(page.items) == 100
    assert page.next_cursor is None
    assert page.has_more is False
    assert page.total == 600


def test_next_cursor_points_at_next_offset() -> None:
    page = paginate(list(range(50)), offset=0, limit=20)
    assert page.items == list(range(20))
    assert decode_cursor(page.next_cursor) == 20
    assert page.has_more is True


@pytest.mark.parametrize(
    ("offset", "limit", "total", "expected_null"),
    [(0, 10, 10, True), (0, 10, 11, False), (5, 5, 9, True), (90, 20, 100, True), (0, 0, 1, False)],
)
def test_next_cursor_null_iff_end_reached(offset, limit, total, expected_null) -> None:
    assert (next_cursor(offset, limit, total) is None) is expected_null


def test_paging_is_idempotent() -> None:
    items = list(range(35))
    assert paginate(items, 10, 10) == paginate(items, 10, 10)


def test_dedupe_keeps_first_occurrence() -> None:
    first = make_candidate("abc", title="first")
    second = make_candidate("abc", title="second")
    other = make_candidate("def")
    result = dedupe_by_id([first, other, second])
    assert [c.id for c in result] == ["abc", "def"]
    assert result[0].title == "first"


def test_dedupe_is_idempotent() -> None:
    items = [make_candidate(i) for i in ["a", "b", "a", "c", "b"]]
    once = dedupe_by_id(items)
    assert dedupe_by_id(once) == once


def test_dedupe_with_custom_key() -> None:
    assert dedupe_by_id([1, 2, 3, 4], key=lambda n: n % 2) == [1, 2]
