import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from courtside.api.exceptions import register_error_handler
from courtside.api.v1.routes import seats, tickets, admin
from courtside.core.middleware.http_ctx import HttpContextMiddleware
from courtside.core.redis import create_redis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    try:
        yield
    finally:
        await r.aclose()


app = FastAPI(lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, request_id_header="X-Request-ID")
register_error_handler(app)
app.include_router(seats.router)
app.include_router(tickets.router)
app.include_router(admin.router)
