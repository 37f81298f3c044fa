"""
Low-level HTTP fetcher for site probes. Plain idempotent GETs with a bounded
timeout; every failure is reported as "nothing fetched", never raised.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests

from config import DEFAULT_USER_AGENT, PROBE_TIMEOUT

logger = logging.getLogger(__name__)


def make_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "text/plain,application/xml,text/xml;q=0.9,*/*;q=0.8",
    })
    return session


def fetch(
    url: str,
    session: requests.Session,
    timeout: float = PROBE_TIMEOUT,
) -> Optional[requests.Response]:
    """
    GET `url` and return the response when it is 2xx.
    Timeouts, connection errors and non-success statuses all yield None.
    """
    try:
        resp = session.get(url, timeout=timeout, allow_redirects=True)
    except requests.exceptions.Timeout:
        logger.debug("Probe timed out: %s", url)
        return None
    except requests.exceptions.RequestException as exc:
        logger.debug("Probe failed: %s (%s)", url, exc)
        return None

    if not 200 <= resp.status_code < 300:
        logger.debug("Probe %s returned HTTP %s", url, resp.status_code)
        return None
    return resp
