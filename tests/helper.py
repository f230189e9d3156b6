from datetime import datetime, timezone
from courtside.domain.tickets.models import Ticket, TicketStatus, Owner, OwnerKind, ticket_key
from courtside.domain.venue.layout import section_of

_COLUMNS = [c.key for c in Ticket.__table__.columns]


def db_with_scalars_first(mocker, value):
    res = mocker.Mock()
    res.scalars.return_value.first.return_value = value
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_with_scalars_all(mocker, values):
    res = mocker.Mock()
    res.scalars.return_value.all.return_value = values
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def create_event(mocker, event_id: str = "evt1", title: str = "Finals"):
    return mocker.Mock(
        id=event_id,
        title=title,
        start_time=datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc),
        end_time=None,
    )


def make_ticket(
        event_id: str,
        seat_id: str,
        owner: Owner,
        status: TicketStatus = TicketStatus.ISSUED,
        order_id: str = "ord_seed"
) -> Ticket:
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    return Ticket(
        id=ticket_key(event_id, seat_id),
        event_id=event_id,
        seat_id=seat_id,
        section=section_of(seat_id),
        owner_kind=owner.kind,
        owner_uid=owner.uid,
        status=status,
        order_id=order_id,
        created_at=now,
        updated_at=now,
    )


class FakeLedger:
    """
    In-memory stand-in for the tickets crud layer.
    Rows are snapshotted on commit and restored on rollback, like a transaction.
    `concurrent_inserts` are written just before the next insert, as if another
    claim committed between our lock query and our insert.
    """

    def __init__(self):
        self.rows: dict[str, Ticket] = {}
        self.concurrent_inserts: list[Ticket] = []
        self.insert_calls: list[list[str]] = []
        self._committed: dict[str, dict] = {}

    def seed(self, *tickets: Ticket) -> "FakeLedger":
        for t in tickets:
            self.rows[t.id] = t
        self._checkpoint()
        return self

    def get(self, event_id: str, seat_id: str) -> Ticket | None:
        return self.rows.get(ticket_key(event_id, seat_id))

    def _checkpoint(self) -> None:
        self._committed = {k: {c: getattr(t, c) for c in _COLUMNS} for k, t in self.rows.items()}

    def _restore(self) -> None:
        self.rows = {k: Ticket(**values) for k, values in self._committed.items()}

    def session(self, mocker):
        db = mocker.Mock()
        db.commit = mocker.AsyncMock(side_effect=self._checkpoint)
        db.rollback = mocker.AsyncMock(side_effect=self._restore)
        db.flush = mocker.AsyncMock()
        return db

    async def lock_tickets(self, db, keys):
        return {k: self.rows[k] for k in sorted(set(keys)) if k in self.rows}

    async def insert_tickets_if_absent(self, db, rows):
        self.insert_calls.append([values["id"] for values in rows])
        for t in self.concurrent_inserts:
            self.rows.setdefault(t.id, t)
        self.concurrent_inserts = []

        inserted = set()
        for values in rows:
            if values["id"] in self.rows:
                continue
            self.rows[values["id"]] = Ticket(**values)
            inserted.add(values["id"])
        return inserted

    async def get_ticket(self, db, event_id, seat_id, *, for_update=False):
        return self.get(event_id, seat_id)

    async def delete_ticket(self, db, ticket):
        self.rows.pop(ticket.id, None)

    async def count_active_by_section(self, db, event_id):
        counts: dict[tuple[str, OwnerKind], int] = {}
        for t in self.rows.values():
            if t.event_id == event_id and t.status == TicketStatus.ISSUED:
                counts[(t.section, t.owner_kind)] = counts.get((t.section, t.owner_kind), 0) + 1
        return [(section, kind, cnt) for (section, kind), cnt in counts.items()]

    def install(self, mocker) -> None:
        for name in ("lock_tickets", "insert_tickets_if_absent", "get_ticket", "delete_ticket",
                     "count_active_by_section"):
            mocker.patch(f"courtside.domain.tickets.crud.{name}", new=getattr(self, name))
