from __future__ import annotations

import math
import typing as t

from .models import ONE_DAY_SECONDS

MIN_TTL_SECONDS = 1


def compute_ttl(
    cookie_max_age_ms: t.Optional[float] = None,
    store_ttl: t.Optional[int] = None,
) -> int:
    """Effective TTL in seconds.

    A store-level override wins, then the session cookie's max-age, then one day.
    Never less than one second.
    """
    if store_ttl:
        return max(MIN_TTL_SECONDS, int(store_ttl))
    if isinstance(cookie_max_age_ms, (int, float)) and not isinstance(cookie_max_age_ms, bool):
        return max(MIN_TTL_SECONDS, int(math.floor(cookie_max_age_ms / 1000)))
    return ONE_DAY_SECONDS


def cookie_max_age(payload: t.Optional[t.Mapping[str, t.Any]]) -> t.Optional[float]:
    if not payload:
        return None
    cookie = payload.get("cookie")
    if not isinstance(cookie, t.Mapping):
        return None
    max_age = cookie.get("maxAge", cookie.get("max_age"))
    # A zero or missing max-age means "no cookie expiry", same as absent.
    return max_age or None
