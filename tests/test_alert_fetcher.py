from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import alerts_payload
from weathercore.domain import AlertSeverity
from weathercore.ingestors.alerts import AlertFetcher, convert_alert, map_severity
from weathercore.models import Coordinate
from weathercore.models.nws import AlertProperties

SEATTLE = Coordinate(latitude=47.6062, longitude=-122.3321)


@pytest.mark.anyio
async def test_alert_fetcher_parses_active_alerts():
    def handler(request: httpx.Request):
        assert request.url.path == "/alerts/active"
        assert request.url.params["point"] == "47.6062,-122.3321"
        return httpx.Response(200, json=alerts_payload())

    fetcher = AlertFetcher(base_url="https://nws.test", transport=httpx.MockTransport(handler))

    alerts = await fetcher.fetch_alerts(SEATTLE)

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.event == "Wind Advisory"
    assert alert.headline == "Wind Advisory issued for Seattle"
    assert alert.severity is AlertSeverity.MODERATE
    assert alert.start == datetime(2024, 1, 15, 10, 0, tzinfo=timezone(timedelta(hours=-8)))
    assert alert.end == datetime(2024, 1, 16, 4, 0, tzinfo=timezone(timedelta(hours=-8)))


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"features": [{"properties": {"headline": "no id"}}]}),
    ],
)
async def test_alert_fetcher_degrades_to_empty_list(response):
    fetcher = AlertFetcher(
        base_url="https://nws.test", transport=httpx.MockTransport(lambda request: response)
    )

    assert await fetcher.fetch_alerts(SEATTLE) == []


@pytest.mark.anyio
async def test_alert_fetcher_degrades_on_transport_failure():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("offline", request=request)

    fetcher = AlertFetcher(base_url="https://nws.test", transport=httpx.MockTransport(handler))

    assert await fetcher.fetch_alerts(SEATTLE) == []


def test_convert_alert_fallbacks():
    props = AlertProperties(
        id="a1",
        event="Flood Watch",
        severity="Unknown",
        onset="2024-03-01T12:00:00Z",
        ends="2024-03-02T12:00:00Z",
    )

    alert = convert_alert(props)

    assert alert.headline == "Flood Watch"
    assert alert.severity is AlertSeverity.MINOR
    assert alert.start == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert alert.end == datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc)


def test_convert_alert_without_times_starts_now():
    before = datetime.now(tz=timezone.utc)

    alert = convert_alert(AlertProperties(id="a2", event="Special Weather Statement"))

    assert alert.start >= before
    assert alert.end is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Extreme", AlertSeverity.EXTREME),
        ("SEVERE", AlertSeverity.SEVERE),
        ("moderate", AlertSeverity.MODERATE),
        ("Minor", AlertSeverity.MINOR),
        (None, AlertSeverity.MINOR),
    ],
)
def test_map_severity(raw, expected):
    assert map_severity(raw) is expected
