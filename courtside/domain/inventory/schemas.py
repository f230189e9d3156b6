from datetime import datetime
from typing import Literal
from pydantic import BaseModel, computed_field
from courtside.core.config import LOW_INVENTORY_THRESHOLD
from courtside.domain.venue.layout import SECTION_LAYOUT


class SectionInventoryDTO(BaseModel):
    taken: int = 0
    unavailable: int = 0
    total: int = 0

    @computed_field
    @property
    def available(self) -> int:
        return max(0, self.total - self.taken - self.unavailable)

    @computed_field
    @property
    def sold_out(self) -> bool:
        return self.total > 0 and self.available == 0

    @computed_field
    @property
    def low_inventory(self) -> bool:
        if self.total <= 0 or self.sold_out:
            return False
        return self.available / self.total <= LOW_INVENTORY_THRESHOLD


class EventInventoryDTO(BaseModel):
    event_id: str
    sections: dict[str, SectionInventoryDTO]
    total_seats_sold: int = 0
    updated_at: datetime | None = None
    source: Literal["projection", "ledger"] = "projection"

    @computed_field
    @property
    def sold_out(self) -> bool:
        # A venue section missing from the map has no tickets, so it is not sold out
        if any(section not in self.sections for section in SECTION_LAYOUT):
            return False
        return all(s.sold_out for s in self.sections.values() if s.total > 0)
