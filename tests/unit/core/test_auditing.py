import json
import pytest
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from courtside.core import auditing
from courtside.core.config import AUDIT_STREAM
from courtside.core.ctx import REQUEST_ID_CTX


@pytest.mark.asyncio
async def test_audit_span_emits_success_with_context(mocker):
    r = mocker.Mock()
    r.xadd = mocker.AsyncMock(return_value="1-0")
    mocker.patch("courtside.core.auditing.get_redis", return_value=r)
    token = REQUEST_ID_CTX.set("req-1")
    try:
        async with auditing.AuditSpan(scope="SEATS", action="CLAIM", event_id="evt1", meta={"n": 1}) as span:
            span.order_id = "ord_1"
    finally:
        REQUEST_ID_CTX.reset(token)

    stream, fields = r.xadd.await_args.args
    payload = json.loads(fields["json"])
    assert stream == AUDIT_STREAM
    assert payload["status"] == auditing.AuditStatus.SUCCESS
    assert payload["request_id"] == "req-1"
    assert payload["order_id"] == "ord_1"
    assert "duration_ms" in payload["meta"]


@pytest.mark.asyncio
async def test_audit_span_emits_failure_and_reraises(mocker):
    emit = mocker.patch("courtside.core.auditing.audit_emit", new=mocker.AsyncMock())

    with pytest.raises(ValueError):
        async with auditing.AuditSpan(scope="SEATS", action="CLAIM"):
            raise ValueError("nope")

    assert emit.await_args.kwargs["status"] == auditing.AuditStatus.FAIL
    assert emit.await_args.kwargs["reason"] == "nope"


@pytest.mark.asyncio
async def test_audit_emit_without_redis_is_a_no_op(mocker):
    mocker.patch("courtside.core.auditing.get_redis", return_value=None)

    assert await auditing.audit_emit(scope="SEATS", action="CLAIM", status="SUCCESS") is None


@pytest.mark.asyncio
async def test_audit_emit_swallows_redis_errors(mocker):
    r = mocker.Mock()
    r.xadd = mocker.AsyncMock(side_effect=RedisError("down"))
    mocker.patch("courtside.core.auditing.get_redis", return_value=r)

    assert await auditing.audit_emit(scope="SEATS", action="CLAIM", status="SUCCESS") is None


def test_reason_from_integrity_error_hides_details():
    exc = IntegrityError("insert", {}, Exception("duplicate key evt1_110-A1"))

    assert auditing._reason_from_exception(exc) == "Integrity error"
    assert auditing._reason_from_exception(None) is None
