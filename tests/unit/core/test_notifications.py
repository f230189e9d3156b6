import json
import pytest
from redis.exceptions import RedisError
from courtside.core import notifications
from courtside.core.config import NOTIFICATION_STREAM


@pytest.mark.asyncio
async def test_notify_tickets_issued_writes_to_stream(mocker):
    r = mocker.Mock()
    r.xadd = mocker.AsyncMock(return_value="1-0")
    mocker.patch("courtside.core.notifications.get_redis", return_value=r)

    msg_id = await notifications.notify_tickets_issued(
        "uid-1", [{"ticket_id": "evt1_110-A1", "seat_id": "110-A1"}], "Finals", "ord_1"
    )

    assert msg_id == "1-0"
    stream, fields = r.xadd.await_args.args
    payload = json.loads(fields["json"])
    assert stream == NOTIFICATION_STREAM
    assert payload["uid"] == "uid-1"
    assert payload["tickets"][0]["seat_id"] == "110-A1"
    assert payload["order_id"] == "ord_1"


@pytest.mark.asyncio
async def test_notify_tickets_issued_drops_on_redis_error(mocker):
    r = mocker.Mock()
    r.xadd = mocker.AsyncMock(side_effect=RedisError("down"))
    mocker.patch("courtside.core.notifications.get_redis", return_value=r)

    assert await notifications.notify_tickets_issued("uid-1", [], None, "ord_1") is None
