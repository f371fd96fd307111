"""Redis Rate Window Store — janelas deslizantes em sorted sets.

Cada sessão tem um ZSET cujo score é o timestamp do envio admitido.
Poda via ZREMRANGEBYSCORE e leitura via ZRANGE na mesma pipeline.

A serialização por sessão continua sendo do rate limiter (lock por id
no processo); múltiplas réplicas compartilhando o mesmo Redis podem
admitir envios concorrentes na borda do limite.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import TYPE_CHECKING

from app.protocols.rate_window_store import RateWindowStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

RATE_WINDOW_PREFIX = "ratewin:"


class RedisRateWindowStore(RateWindowStoreProtocol):
    """Store de janelas usando Redis (ZSET por sessão).

    Args:
        async_redis_client: Cliente Redis assíncrono
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    def _key(self, session_id: str) -> str:
        return f"{RATE_WINDOW_PREFIX}{session_id}"

    async def prune_and_list(self, session_id: str, cutoff: float) -> list[float]:
        key = self._key(session_id)
        try:
            pipeline = self._redis.pipeline()
            pipeline.zremrangebyscore(key, "-inf", cutoff)
            pipeline.zrange(key, 0, -1, withscores=True)
            _removed, entries = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao podar janela de rate limit no Redis") from exc
        return [float(score) for _member, score in entries]

    async def append(self, session_id: str, timestamp: float, ttl_seconds: float) -> None:
        key = self._key(session_id)
        member = f"{timestamp:.6f}:{uuid.uuid4().hex[:8]}"
        try:
            pipeline = self._redis.pipeline()
            pipeline.zadd(key, {member: timestamp})
            pipeline.expire(key, max(1, math.ceil(ttl_seconds)))
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao registrar envio na janela do Redis") from exc

    async def delete(self, session_id: str) -> bool:
        try:
            removed = await self._redis.delete(self._key(session_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao remover janela de rate limit no Redis") from exc
        logger.debug("rate_window_deleted", extra={"session_id": session_id, "removed": bool(removed)})
        return bool(removed)
