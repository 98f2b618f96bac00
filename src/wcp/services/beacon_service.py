# src/wcp/services/beacon_service.py
import logging
import threading
import time
from typing import Callable, Dict, Optional

import requests
from bs4 import Tag

from wcp.managers.config_manager import config_manager

logger = logging.getLogger(__name__)


class AdoptionBeacon:
    """
    Best-effort adoption ping for pages that opt in with
    <meta name="wcp-registry" content="<url>">.

    At most one GET per registry URL per interval, carrying only the domain
    and the protocol version. Failures are logged and otherwise ignored;
    the beacon never influences parsing or querying.
    """

    def __init__(
            self,
            domain: str,
            enabled: Optional[bool] = None,
            interval_hours: Optional[float] = None,
            timeout: Optional[float] = None,
            background: bool = False,
            clock: Callable[[], float] = time.time
    ):
        self.domain = domain
        self.enabled = config_manager.get_nested("beacon.enabled", False) if enabled is None else enabled
        hours = config_manager.get_nested("beacon.interval_hours", 24) if interval_hours is None else interval_hours
        self.interval_seconds = float(hours) * 3600
        self.timeout = config_manager.get_nested("beacon.timeout_seconds", 3.0) if timeout is None else timeout
        self.version = config_manager.get_nested("protocol.version", "1.0")
        self.meta_name = config_manager.get_nested("protocol.registry_meta_name", "wcp-registry")
        self.background = background
        self._clock = clock
        self._last_sent: Dict[str, float] = {}
        self._lock = threading.Lock()

    def registry_url(self, document: Optional[Tag]) -> Optional[str]:
        """Retrieves the content of the registry <meta> tag, if present."""
        if document is None:
            return None
        meta = document.find("meta", attrs={"name": self.meta_name})
        if not meta:
            return None
        url = (meta.get("content") or "").strip()
        return url or None

    def maybe_ping(self, document: Optional[Tag]) -> bool:
        """
        Sends the ping when enabled, opted in and not sent within the interval.
        Returns True if a ping was dispatched (not whether it succeeded).
        """
        if not self.enabled:
            return False
        url = self.registry_url(document)
        if not url:
            return False

        now = self._clock()
        with self._lock:
            last = self._last_sent.get(url)
            if last is not None and now - last < self.interval_seconds:
                return False
            self._last_sent[url] = now

        if self.background:
            threading.Thread(target=self._send, args=(url,), daemon=True).start()
        else:
            self._send(url)
        return True

    def _send(self, url: str) -> None:
        try:
            resp = requests.get(
                url,
                params={"domain": self.domain, "version": self.version},
                timeout=self.timeout
            )
            resp.raise_for_status()
            logger.debug("Adoption beacon sent to %s (%s).", url, resp.status_code)
        except requests.RequestException as e:
            logger.debug("Adoption beacon to %s failed: %s", url, e)
