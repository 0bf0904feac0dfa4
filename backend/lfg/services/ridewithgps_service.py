"""RideWithGPS route links.

RideWithGPS has no API access here, so metadata is scraped from the public
route page on a best-effort basis and falls back to placeholder values.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx


logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; LFG-Cycling-App/1.0)"

METERS_PER_MILE = 1609.34
METERS_PER_FOOT = 0.3048

TITLE_RE = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
DISTANCE_RE = re.compile(r"(\d+\.?\d*)\s*(mi|miles|km|kilometers)\b", re.IGNORECASE)
ELEVATION_RE = re.compile(r"(\d+,?\d*)\s*(ft|feet|m|meters)\b", re.IGNORECASE)


@dataclass
class RideWithGPSRouteData:
    id: str
    name: str
    description: Optional[str] = None
    distance: float = 0
    elevation_gain: float = 0
    estimated_time: int = 0


def parse_route_url(url: str) -> Optional[str]:
    """Extract the numeric route id from a RideWithGPS route URL.

    Accepts ``https://ridewithgps.com/routes/12345`` with optional ``www.``
    and trailing path segments.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError:
        return None
    if hostname != "ridewithgps.com" and not hostname.endswith(".ridewithgps.com"):
        return None

    segments = parts.path.split("/")
    if "routes" not in segments:
        return None
    index = segments.index("routes")
    if index + 1 < len(segments) and re.fullmatch(r"[0-9]+", segments[index + 1]):
        return segments[index + 1]
    return None


def _scrape(html: str, data: RideWithGPSRouteData, keep_name: bool) -> None:
    title = TITLE_RE.search(html)
    if title and not keep_name:
        data.name = title.group(1).replace(" | RideWithGPS", "").strip()

    distance = DISTANCE_RE.search(html)
    if distance:
        value = float(distance.group(1))
        unit = distance.group(2).lower()
        data.distance = value * METERS_PER_MILE if unit.startswith("mi") else value * 1000

    elevation = ELEVATION_RE.search(html)
    if elevation:
        value = float(elevation.group(1).replace(",", ""))
        unit = elevation.group(2).lower()
        data.elevation_gain = value * METERS_PER_FOOT if unit.startswith("f") else value


async def fetch_route_metadata(url: str, custom_name: Optional[str] = None) -> RideWithGPSRouteData:
    """Build route data for a RideWithGPS URL, scraping what the page offers.

    Raises:
        ValueError: If the URL is not a RideWithGPS route URL.
    """
    route_id = parse_route_url(url)
    if not route_id:
        raise ValueError("Invalid RideWithGPS URL format")

    data = RideWithGPSRouteData(
        id=route_id,
        name=custom_name or f"RideWithGPS Route {route_id}",
        description=f"Imported from RideWithGPS: {url}",
    )

    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": USER_AGENT})
        if response.status_code == 200:
            _scrape(response.text, data, keep_name=bool(custom_name))
        else:
            logger.warning(f"RideWithGPS page for route {route_id} returned {response.status_code}")
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch RideWithGPS metadata for route {route_id}: {e}")

    return data
