"""IP address extraction and GeoIP enrichment for device records."""

import ipaddress
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import geoip2.database
import geoip2.errors
from fastapi import Request
from maxminddb.errors import InvalidDatabaseError

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoResult:
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None


EMPTY_GEO = GeoResult()


class GeoIPLookup:
    """Resolve an IP to country/region/city using a MaxMind City database.

    Lookups never raise: a missing database, an unknown address or a broken
    record all produce an empty ``GeoResult``.
    """

    def __init__(self, db_path: Optional[str] = None):
        self._reader = None
        if not db_path:
            return
        try:
            self._reader = geoip2.database.Reader(db_path)
        except (OSError, ValueError, InvalidDatabaseError) as e:
            logger.warning("GeoIP database unavailable: %s", e, extra={"db_path": db_path})

    @property
    def enabled(self) -> bool:
        return self._reader is not None

    def lookup(self, ip: Optional[str]) -> GeoResult:
        if self._reader is None or not ip:
            return EMPTY_GEO
        try:
            response = self._reader.city(ip)
        except geoip2.errors.AddressNotFoundError:
            return EMPTY_GEO
        except (ValueError, InvalidDatabaseError, geoip2.errors.GeoIP2Error) as e:
            logger.debug("GeoIP lookup failed for %s: %s", ip, e)
            return EMPTY_GEO

        subdivision = response.subdivisions.most_specific
        return GeoResult(
            country=response.country.iso_code,
            region=subdivision.iso_code,
            city=response.city.names.get("en"),
        )

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None


@lru_cache(maxsize=1)
def get_geoip() -> GeoIPLookup:
    """Dependency returning the process-wide GeoIP reader."""
    return GeoIPLookup(config.GEOIP_DB_PATH)


def extract_client_ip(request: Request, trust_proxy: bool = False) -> Optional[str]:
    """Return the caller's IP, preferring X-Forwarded-For behind a trusted proxy."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if _is_ip(first):
                return first

    if request.client and _is_ip(request.client.host):
        return request.client.host
    return None


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True
