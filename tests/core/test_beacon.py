# tests/core/test_beacon.py
from unittest.mock import MagicMock

import pytest
import requests
from bs4 import BeautifulSoup

from wcp.services import beacon_service
from wcp.services.beacon_service import AdoptionBeacon

OPTED_IN = '<html><head><meta name="wcp-registry" content="https://registry.example/ping"></head></html>'


class FakeClock:
    def __init__(self):
        self.now = 1_000_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def fake_get(monkeypatch):
    """Vervangt requests.get zodat er geen netwerkverkeer plaatsvindt."""
    mock = MagicMock()
    monkeypatch.setattr(beacon_service.requests, "get", mock)
    return mock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def beacon(clock):
    return AdoptionBeacon("shop.example", enabled=True, interval_hours=24, timeout=2.0, clock=clock)


def test_ping_sends_only_domain_and_version(beacon, fake_get):
    soup = BeautifulSoup(OPTED_IN, "html.parser")

    assert beacon.maybe_ping(soup) is True
    fake_get.assert_called_once_with(
        "https://registry.example/ping",
        params={"domain": "shop.example", "version": beacon.version},
        timeout=2.0,
    )


def test_ping_at_most_once_per_interval(beacon, fake_get, clock):
    soup = BeautifulSoup(OPTED_IN, "html.parser")
    assert beacon.maybe_ping(soup)
    clock.now += 3600
    assert not beacon.maybe_ping(soup)
    clock.now += 24 * 3600
    assert beacon.maybe_ping(soup)
    assert fake_get.call_count == 2


def test_no_meta_no_ping(beacon, fake_get):
    assert beacon.maybe_ping(BeautifulSoup("<html><head></head></html>", "html.parser")) is False
    assert beacon.maybe_ping(None) is False
    fake_get.assert_not_called()


def test_disabled_beacon_never_pings(clock, fake_get):
    beacon = AdoptionBeacon("shop.example", enabled=False, clock=clock)
    assert beacon.maybe_ping(BeautifulSoup(OPTED_IN, "html.parser")) is False
    fake_get.assert_not_called()


def test_network_failure_is_silent(beacon, fake_get):
    """Fouten van het netwerk mogen nooit naar de aanroeper lekken."""
    fake_get.side_effect = requests.ConnectionError("unreachable")
    assert beacon.maybe_ping(BeautifulSoup(OPTED_IN, "html.parser")) is True


def test_http_error_is_silent(beacon, fake_get):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("500")
    fake_get.return_value = response
    assert beacon.maybe_ping(BeautifulSoup(OPTED_IN, "html.parser")) is True


def test_empty_meta_content(beacon, fake_get):
    soup = BeautifulSoup('<meta name="wcp-registry" content="  ">', "html.parser")
    assert beacon.registry_url(soup) is None
    assert beacon.maybe_ping(soup) is False
