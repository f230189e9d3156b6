from .events.models import Event
from .tickets.models import Ticket

__all__ = ("Event", "Ticket")
