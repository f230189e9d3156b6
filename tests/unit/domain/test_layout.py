import pytest
from courtside.domain.venue import layout


@pytest.mark.parametrize("seat_id, expected", [
    ("110-A1", layout.SeatRef("110", "A", 1)),
    ("216-j20", layout.SeatRef("216", "J", 20)),
    ("101-AB3", layout.SeatRef("101", "AB", 3)),
])
def test_parse_seat_id_valid(seat_id, expected):
    assert layout.parse_seat_id(seat_id) == expected


@pytest.mark.parametrize("seat_id", ["", "110", "110-1", "110-A0", "110-ABC1", "110_A1", "-A1"])
def test_parse_seat_id_malformed_returns_none(seat_id):
    assert layout.parse_seat_id(seat_id) is None


@pytest.mark.parametrize("section, total", [("101", 288), ("115", 288), ("201", 200), ("108", 0), ("212", 0)])
def test_total_seats_for_section(section, total):
    assert layout.total_seats_for_section(section) == total


@pytest.mark.parametrize("seat_id, exists", [
    ("110-P18", True),
    ("110-Q1", False),
    ("110-A19", False),
    ("210-J20", True),
    ("210-K1", False),
    ("212-A1", False),
])
def test_seat_exists_follows_section_geometry(seat_id, exists):
    assert layout.seat_exists(layout.parse_seat_id(seat_id)) is exists


def test_row_index_handles_double_letters():
    assert layout.row_index("A") == 1
    assert layout.row_index("z") == 26
    assert layout.row_index("AA") == 27


def test_section_of_and_canonical_seat_id():
    ref = layout.parse_seat_id("110-b5")

    assert layout.canonical_seat_id(ref) == "110-B5"
    assert layout.section_of("110-B5") == "110"
