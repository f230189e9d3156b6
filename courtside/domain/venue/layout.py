"""
Arena section geometry.

Seat IDs are ``<section>-<row><number>``, e.g. ``110-A1``. Section totals are
derived from row/seat geometry and are the only source of the inventory
``total`` counter.
"""
import re
from typing import NamedTuple

SEAT_ID_RE = re.compile(r"^(?P<section>[A-Za-z0-9]+)-(?P<row>[A-Za-z]{1,2})(?P<number>[1-9]\d*)$")
SECTION_SEPARATOR = "-"


class SectionGeometry(NamedTuple):
    rows: int
    seats_per_row: int

    @property
    def total(self) -> int:
        return self.rows * self.seats_per_row


class SeatRef(NamedTuple):
    section: str
    row: str
    number: int


LOWER_BOWL = SectionGeometry(rows=16, seats_per_row=18)
UPPER_BOWL = SectionGeometry(rows=10, seats_per_row=20)

SECTION_LAYOUT: dict[str, SectionGeometry] = {
    **{str(n): LOWER_BOWL for n in (101, 102, 103, 104, 105, 106, 107, 109, 110, 111, 112, 113, 114, 115)},
    **{str(n): UPPER_BOWL for n in (201, 202, 203, 204, 205, 206, 207, 208, 209, 210, 211, 213, 214, 215, 216)},
}


def parse_seat_id(seat_id: str) -> SeatRef | None:
    match = SEAT_ID_RE.match(seat_id or "")
    if not match:
        return None
    return SeatRef(match["section"], match["row"].upper(), int(match["number"]))


def section_of(seat_id: str) -> str:
    return seat_id.split(SECTION_SEPARATOR, 1)[0]


def total_seats_for_section(section_id: str) -> int:
    geometry = SECTION_LAYOUT.get(section_id)
    return geometry.total if geometry else 0


def row_index(row: str) -> int:
    index = 0
    for ch in row.upper():
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index


def seat_exists(ref: SeatRef) -> bool:
    geometry = SECTION_LAYOUT.get(ref.section)
    if geometry is None:
        return False
    return 1 <= row_index(ref.row) <= geometry.rows and 1 <= ref.number <= geometry.seats_per_row


def canonical_seat_id(ref: SeatRef) -> str:
    return f"{ref.section}{SECTION_SEPARATOR}{ref.row}{ref.number}"


def empty_section_counters() -> dict[str, dict[str, int]]:
    """Zeroed counters for every venue section, keyed by section id."""
    return {
        section: {"taken": 0, "unavailable": 0, "total": geometry.total}
        for section, geometry in SECTION_LAYOUT.items()
    }
