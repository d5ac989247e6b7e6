"""Redis-backed request quotas keyed by cultivar and caller identity."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from catalog.auth.dependencies import extract_identity_hint, extract_request_cultivar_id
from catalog.config import get_settings

logger = structlog.get_logger("catalog.rate_limit")

_BYPASS_PREFIXES = ("/docs", "/redoc", "/openapi", "/health")


def quota_for(identity: str) -> int:
	settings = get_settings()
	if identity == "api_key":
		return settings.rate_limit_api_key_per_minute
	if identity == "jwt":
		return settings.rate_limit_user_per_minute
	return settings.rate_limit_anonymous_per_minute


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Fixed one-minute window per cultivar, counted with Redis INCR."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if request.url.path.startswith(_BYPASS_PREFIXES):
			return await call_next(request)

		cultivar_id = extract_request_cultivar_id(request)
		redis_client = getattr(request.app.state, "redis", None)
		if cultivar_id is None or redis_client is None:
			return await call_next(request)

		identity = extract_identity_hint(request)
		quota = quota_for(identity)
		window = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:cultivar:{cultivar_id}:{identity}:{window}"

		count = await redis_client.incr(key)
		if count == 1:
			await redis_client.expire(key, 65)
		if count > quota:
			logger.warning("rate_limited", cultivar_id=cultivar_id, identity=identity, quota=quota)
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Cultivar request quota exceeded",
						"cultivar_id": cultivar_id,
						"quota": quota,
					}
				},
			)
		return await call_next(request)
