from fastapi import Request
from redis import Redis

from .config import Settings


def create_redis(settings: Settings) -> Redis:
    return Redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
    )


def get_redis(request: Request) -> Redis:
    return request.app.state.redis
