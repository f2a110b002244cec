# src/nightlight/lookup.py: HTTP clients for the geocoding and daylight services.
# Two remote lookups feed the remote time source: OpenWeatherMap's direct
# geocoding turns a free-text location into coordinates, and
# sunrise-sunset.org reports civil twilight for a given day. Both are bounded
# by a request timeout and every failure (transport, HTTP status, payload
# shape) is raised as RemoteLookupError.

from datetime import date, datetime
from typing import Optional

import httpx

from .models import Coordinates, TwilightTimes
from .util.errors import RemoteLookupError
from .util.log import get_logger

logger = get_logger(__name__)

GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
SUNRISE_SUNSET_URL = "https://api.sunrise-sunset.org/json"
HTTP_TIMEOUT = 10.0

# with formatted=0 sunrise-sunset.org reports full ISO 8601 timestamps,
# e.g. "2026-06-16T03:38:12+00:00", so the calendar date is never ambiguous
UNFORMATTED = 0


def _get_json(client: httpx.Client, url: str, params: dict):
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        raise RemoteLookupError(f"{url} returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise RemoteLookupError(f"Request to {url} failed: {e}") from e
    except ValueError as e:
        raise RemoteLookupError(f"Response from {url} is not valid JSON: {e}") from e


def geocode(location: str, api_key: str, client: Optional[httpx.Client] = None) -> Coordinates:
    """
    Resolve a location name to coordinates.

    Raises:
        RemoteLookupError: If the request fails or the payload has no usable entry.
    """
    params = {"q": location, "limit": 1, "appid": api_key}
    logger.info(f"Resolving coordinates for '{location}'")

    if client is None:
        with httpx.Client(timeout=HTTP_TIMEOUT) as own_client:
            data = _get_json(own_client, GEOCODING_URL, params)
    else:
        data = _get_json(client, GEOCODING_URL, params)

    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise RemoteLookupError(f"No geocoding result for '{location}'")

    lat, lon = data[0].get("lat"), data[0].get("lon")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lat, lon)):
        raise RemoteLookupError(f"Invalid geocoding result for '{location}': {data[0]!r}")

    return Coordinates(float(lat), float(lon))


def parse_twilight_instant(value) -> datetime:
    """Parse an ISO 8601 timestamp that carries a UTC offset."""
    if not isinstance(value, str):
        raise RemoteLookupError(f"Expected a timestamp string, got {value!r}")
    try:
        instant = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise RemoteLookupError(f"Unparsable twilight timestamp {value!r}") from e
    if instant.tzinfo is None:
        raise RemoteLookupError(f"Twilight timestamp {value!r} has no UTC offset")
    return instant


def fetch_twilight(
    coordinates: Coordinates,
    day: date,
    tzid: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> TwilightTimes:
    """
    Fetch first and last light for `day`.

    Both values are absolute instants. Their offset is that of `tzid` when
    given, otherwise UTC, and the date part is whatever calendar day the
    event falls on in that offset. Last light is the end of civil twilight,
    or astronomical twilight if the service does not report the civil value.
    Days without twilight come back as the Unix epoch and are rejected.

    Raises:
        RemoteLookupError: On any transport, status or payload problem.
    """
    params = {
        "lat": coordinates.latitude,
        "lng": coordinates.longitude,
        "date": day.isoformat(),
        "formatted": UNFORMATTED,
    }
    if tzid:
        params["tzid"] = tzid

    if client is None:
        with httpx.Client(timeout=HTTP_TIMEOUT) as own_client:
            data = _get_json(own_client, SUNRISE_SUNSET_URL, params)
    else:
        data = _get_json(client, SUNRISE_SUNSET_URL, params)

    if not isinstance(data, dict) or not isinstance(data.get("results"), dict):
        raise RemoteLookupError(f"Unexpected sunrise/sunset payload for {day}")
    if data.get("status", "OK") != "OK":
        raise RemoteLookupError(f"Sunrise/sunset service reported status {data['status']!r}")

    results = data["results"]
    last_light = results.get("civil_twilight_end") or results.get("astronomical_twilight_end")
    times = TwilightTimes(
        first_light=parse_twilight_instant(results.get("civil_twilight_begin")),
        last_light=parse_twilight_instant(last_light),
    )
    for instant in (times.first_light, times.last_light):
        if abs((instant.date() - day).days) > 1:
            raise RemoteLookupError(f"No twilight on {day} at {coordinates} (got {instant.isoformat()})")
    return times
