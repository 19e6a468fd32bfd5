import datetime as dt
import unittest

import requests

from rxfire.data_sources import nws_client
from rxfire.data_sources.base import UpstreamPayloadError

POINTS_URL_FRAGMENT = "/points/"
GRID_URL = "https://api.weather.gov/gridpoints/JAN/60,70"
FORECAST_URL = "https://api.weather.gov/gridpoints/JAN/60,70/forecast"


class DummyResp:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self._payload


def _points_payload(**overrides):
    props = {
        "cwa": "JAN",
        "gridId": "JAN",
        "forecastGridData": GRID_URL,
        "forecast": FORECAST_URL,
        "timeZone": "America/Chicago",
        "forecastZone": "https://api.weather.gov/zones/forecast/MSZ044",
        "relativeLocation": {"properties": {"city": "Jackson", "state": "MS"}},
    }
    props.update(overrides)
    return {"properties": props}


def _grid_payload():
    return {
        "properties": {
            "temperature": {
                "uom": "wmoUnit:degC",
                "values": [
                    {"validTime": "2024-05-01T15:00:00+00:00/PT2H", "value": 20.0},
                    {"validTime": "2024-05-01T17:00:00+00:00/PT1H", "value": 22.0},
                ],
            },
            "relativeHumidity": {
                "uom": "wmoUnit:percent",
                "values": [{"validTime": "2024-05-01T15:00:00+00:00/PT3H", "value": 40}],
            },
            "windSpeed": {
                "uom": "wmoUnit:km_h-1",
                "values": [{"validTime": "2024-05-01T15:00:00+00:00/PT3H", "value": 16.0}],
            },
            "transportWindSpeed": {
                "uom": "wmoUnit:km_h-1",
                "values": [{"validTime": "2024-05-01T15:00:00+00:00/PT3H", "value": 18.52}],
            },
            "weather": {
                "values": [
                    {"validTime": "2024-05-01T15:00:00+00:00/PT1H", "value": [{"weather": "rain_showers"}]},
                    {"validTime": "2024-05-01T16:00:00+00:00/PT2H", "value": [{"weather": None}]},
                ],
            },
        }
    }


def _narrative_payload():
    return {
        "properties": {
            "periods": [
                {
                    "name": "This Afternoon",
                    "detailedForecast": "Sunny, with a high near 72.",
                    "shortForecast": "Sunny",
                    "temperature": 72,
                    "temperatureUnit": "F",
                    "windSpeed": "5 to 10 mph",
                    "windDirection": "SW",
                    "isDaytime": True,
                },
            ]
        }
    }


def _alerts_payload():
    return {
        "features": [
            {"properties": {"event": "Red Flag Warning", "headline": "RFW until 8 PM", "severity": "Severe"}},
            {"properties": {"event": "Flood Watch", "headline": "Flooding possible"}},
            {"properties": {"event": "Wind Advisory", "headline": "Gusts to 45 mph"}},
        ]
    }


def _routing_session(routes, calls=None):
    """A stand-in session whose get() answers by URL substring."""
    def get(url, *args, **kwargs):
        if calls is not None:
            calls.append((url, kwargs))
        for fragment, resp in routes.items():
            if fragment in url:
                return resp
        raise AssertionError(f"unexpected url {url}")
    return type("S", (), {"get": staticmethod(get)})()


class TestNwsClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = nws_client.session

    def tearDown(self):
        nws_client.session = self._orig_session

    def test_fetch_grid_forecast_normalizes_payload(self):
        calls = []
        nws_client.session = _routing_session(
            {
                "/forecast": DummyResp(_narrative_payload()),
                POINTS_URL_FRAGMENT: DummyResp(_points_payload()),
                "/gridpoints/": DummyResp(_grid_payload()),
            },
            calls,
        )

        grid = nws_client.fetch_grid_forecast(32.2988, -90.1848)

        self.assertEqual(grid.timezone, "America/Chicago")
        self.assertEqual(grid.office, "JAN")
        self.assertEqual(grid.city, "Jackson")
        self.assertEqual(grid.forecast_zone, "MSZ044")
        self.assertEqual([e.hours for e in grid.temperature], [2, 1])
        self.assertEqual(grid.temperature[0].start, dt.datetime(2024, 5, 1, 15, tzinfo=dt.timezone.utc))
        self.assertEqual([e.value for e in grid.weather], ["rain_showers", ""])
        self.assertEqual(grid.mixing_height, [])
        self.assertEqual(grid.narrative[0].name, "This Afternoon")
        self.assertEqual(grid.narrative[0].wind_direction_degrees, 225)

        self.assertIn("/points/32.2988,-90.1848", calls[0][0])
        headers = calls[0][1]["headers"]
        self.assertEqual(headers["Accept"], "application/geo+json")
        self.assertIn("User-Agent", headers)

    def test_transport_wind_converted_to_knots(self):
        nws_client.session = _routing_session(
            {
                "/forecast": DummyResp(_narrative_payload()),
                POINTS_URL_FRAGMENT: DummyResp(_points_payload()),
                "/gridpoints/": DummyResp(_grid_payload()),
            }
        )
        grid = nws_client.fetch_grid_forecast(32.3, -90.2)
        # 18.52 km/h is 10 knots
        self.assertAlmostEqual(grid.transport_wind_speed[0].value, 10.0, places=2)
        self.assertEqual(grid.wind_speed[0].value, 16.0)

    def test_missing_grid_url_raises(self):
        payload = _points_payload()
        del payload["properties"]["forecastGridData"]
        nws_client.session = type("S", (), {"get": lambda *a, **k: DummyResp(payload)})()

        with self.assertRaises(UpstreamPayloadError):
            nws_client.fetch_grid_forecast(0, 0)

    def test_http_error_propagates(self):
        nws_client.session = type("S", (), {"get": lambda *a, **k: DummyResp({}, status=500)})()

        with self.assertRaises(requests.HTTPError):
            nws_client.fetch_grid_forecast(0, 0)

    def test_narrative_failure_is_not_fatal(self):
        nws_client.session = _routing_session(
            {
                "/forecast": DummyResp({}, status=503),
                POINTS_URL_FRAGMENT: DummyResp(_points_payload()),
                "/gridpoints/": DummyResp(_grid_payload()),
            }
        )
        grid = nws_client.fetch_grid_forecast(32.3, -90.2)
        self.assertEqual(grid.narrative, [])
        self.assertEqual(len(grid.temperature), 2)

    def test_fetch_alerts_filters_to_fire_relevant(self):
        calls = []
        nws_client.session = _routing_session(
            {
                "/alerts/active/zone/MSZ044": DummyResp(_alerts_payload()),
                POINTS_URL_FRAGMENT: DummyResp(_points_payload()),
            },
            calls,
        )
        alerts = nws_client.fetch_alerts(32.3, -90.2)
        self.assertEqual([a.event for a in alerts], ["Red Flag Warning", "Wind Advisory"])
        self.assertEqual(alerts[0].severity, "Severe")

    def test_fetch_alerts_failure_returns_empty(self):
        nws_client.session = type("S", (), {"get": lambda *a, **k: DummyResp({}, status=500)})()
        self.assertEqual(nws_client.fetch_alerts(0, 0), [])

FWF_TEXT = """FNUS54 KJAN 011500
FWFJAN

Fire Weather Planning Forecast for Mississippi
National Weather Service Jackson MS

.DISCUSSION...Dry high pressure keeps afternoon humidity near 30 percent
with light southwest winds.

MSZ044-011200-
Hinds-
Max temperature.....78.
$$

MSZ045-011200-
Rankin-
Max temperature.....79.
$$
"""

FWN_TEXT = "Statewide burn ban in effect for Hinds and Rankin counties until further notice."


def _product_listing(product_id):
    return {"@graph": [{"@id": f"https://api.weather.gov/products/{product_id}"}]}


class TestFireWeatherProducts(unittest.TestCase):
    def setUp(self):
        self._orig_session = nws_client.session

    def tearDown(self):
        nws_client.session = self._orig_session

    def test_fetch_fire_weather_products(self):
        calls = []
        nws_client.session = _routing_session(
            {
                "/products/types/FWF/locations/JAN": DummyResp(_product_listing("fwf-1")),
                "/products/types/FWN/locations/JAN": DummyResp(_product_listing("fwn-1")),
                "/products/fwf-1": DummyResp({"productText": FWF_TEXT}),
                "/products/fwn-1": DummyResp({"productText": FWN_TEXT}),
            },
            calls,
        )

        products = nws_client.fetch_fire_weather_products("JAN")

        self.assertEqual(
            products.fire_discussion,
            ".DISCUSSION...Dry high pressure keeps afternoon humidity near 30 percent\nwith light southwest winds.",
        )
        self.assertIn("MSZ045", products.zone_forecast)
        self.assertNotIn("DISCUSSION", products.zone_forecast)
        self.assertEqual(products.burn_ban_info, FWN_TEXT)
        self.assertEqual(len(calls), 4)

    def test_notification_without_burn_ban_is_ignored(self):
        nws_client.session = _routing_session(
            {
                "/products/types/FWN/locations/JAN": DummyResp(_product_listing("fwn-1")),
                "/products/fwn-1": DummyResp({"productText": "Spot forecast requests resume Monday."}),
            }
        )
        self.assertEqual(nws_client.fetch_burn_ban("JAN"), "")

    def test_empty_listing_yields_empty_text(self):
        nws_client.session = _routing_session({"/products/types/": DummyResp({"@graph": []})})
        self.assertEqual(nws_client.fetch_fire_discussion("JAN"), ("", ""))
        self.assertEqual(nws_client.fetch_burn_ban("JAN"), "")

    def test_failures_are_not_fatal(self):
        nws_client.session = type("S", (), {"get": lambda *a, **k: DummyResp({}, status=503)})()
        products = nws_client.fetch_fire_weather_products("JAN")
        self.assertEqual(products.fire_discussion, "")
        self.assertEqual(products.zone_forecast, "")
        self.assertEqual(products.burn_ban_info, "")

    def test_blank_office_skips_lookup(self):
        nws_client.session = _routing_session({})
        self.assertEqual(nws_client.fetch_fire_discussion(""), ("", ""))
        self.assertEqual(nws_client.fetch_burn_ban(""), "")


def test_parse_fire_weather_forecast_splits_zones():
    assert nws_client.parse_fire_weather_forecast("HEADER$$ZONE A$$ZONE B") == ("", "ZONE A\n---\nZONE B")
    assert nws_client.parse_fire_weather_forecast("") == ("", "")


def test_parse_grid_properties_defaults_timezone():
    grid = nws_client.parse_grid_properties({})
    assert grid.timezone == "America/Chicago"
    assert grid.temperature == []


def test_fahrenheit_temperatures_are_converted():
    props = {
        "temperature": {
            "uom": "wmoUnit:degF",
            "values": [{"validTime": "2024-05-01T15:00:00+00:00/PT1H", "value": 212}],
        }
    }
    grid = nws_client.parse_grid_properties(props)
    assert grid.temperature[0].value == 100
