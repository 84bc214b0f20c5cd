from __future__ import annotations

import logging
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .errors import EpisodeLookupError


logger = logging.getLogger(__name__)


def find_episode_href(html: str, link_selector: str) -> str | None:
    soup = BeautifulSoup(html, "html.parser")
    link = soup.select_one(link_selector)
    if link is None:
        return None
    href = link.get("href")
    if not isinstance(href, str) or not href.strip():
        return None
    return href.strip()


def get_latest_episode_url(
    listing_url: str,
    *,
    base_url: str,
    link_selector: str,
    timeout: float = 30.0,
    session: requests.Session | None = None,
) -> str:
    try:
        if session is not None:
            resp = session.get(listing_url, timeout=timeout)
        else:
            with requests.Session() as http:
                resp = http.get(listing_url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise EpisodeLookupError(f"Could not fetch listing page {listing_url}: {exc}") from exc

    href = find_episode_href(resp.text, link_selector)
    if href is None:
        raise EpisodeLookupError(f"Replay URL not found in HTML content (selector {link_selector!r})")
    url = urljoin(base_url, href)
    logger.info("Latest episode resolved to %s", url)
    return url
