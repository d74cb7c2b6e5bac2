#!/usr/bin/env python
"""
Tests del cliente síncrono WebService con una sesión de requests simulada.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
import requests

from amap import WebService
from amap.endpoints import API_V3_URL, API_V4_URL
from amap.exceptions import (
    DecodeError,
    InvalidParameterError,
    RequestConnectionError,
    RequestFailedError,
    RequestHTTPError,
    RequestTimeoutError,
)
from amap.signature import signature
from tests.helpers import make_response, sent_params


class TestValidationBeforeNetwork:
    """Los errores de parámetros se lanzan antes de cualquier petición."""

    def test_get_geo_empty_address(self, amap, session):
        with pytest.raises(InvalidParameterError, match="address"):
            amap.get_geo("")
        session.get.assert_not_called()

    def test_get_regeo_without_location(self, amap, session):
        with pytest.raises(InvalidParameterError, match="location"):
            amap.get_regeo()
        session.get.assert_not_called()

    def test_get_weather_invalid_type(self, amap, session):
        with pytest.raises(InvalidParameterError, match="invalidtype"):
            amap.get_weather("beijing", "invalidtype")
        session.get.assert_not_called()

    def test_get_request_invalid_format(self, amap, session):
        with pytest.raises(InvalidParameterError, match="yaml"):
            amap.get_request({"key": "k1"}, API_V3_URL + "/ip", "yaml")
        session.get.assert_not_called()

    def test_get_request_empty_url(self, amap, session):
        with pytest.raises(InvalidParameterError, match="URL"):
            amap.get_request({"key": "k1"}, "")
        session.get.assert_not_called()

    def test_operation_invalid_format(self, amap, session):
        with pytest.raises(InvalidParameterError):
            amap.get_geo("beijing", format="yaml")
        session.get.assert_not_called()

    def test_unknown_operation(self, amap, session):
        with pytest.raises(InvalidParameterError, match="desconocida"):
            amap.call("teleport")
        session.get.assert_not_called()


class TestDispatch:

    def test_get_geo_query(self, amap, session):
        amap.get_geo("beijing", city="")

        args, kwargs = session.get.call_args
        assert args[0] == API_V3_URL + "/geocode/geo"
        assert kwargs["params"] == {"key": "k1", "address": "beijing", "output": "json"}
        assert kwargs["timeout"] == 5
        assert kwargs["verify"] is True
        assert kwargs["proxies"] is None

    def test_get_regeo_keeps_homeorcorp_zero(self, amap, session):
        amap.get_regeo("116.48,39.99", "all")
        params = sent_params(session)
        assert params["homeorcorp"] == "0"
        assert params["radius"] == "1000"
        assert params["extensions"] == "all"

    def test_format_is_case_insensitive_and_lowercased(self, amap, session):
        session.get.return_value = make_response("<response><status>1</status></response>")
        amap.get_geo("beijing", format="XML")
        assert sent_params(session)["output"] == "xml"

    def test_get_request_filters_empty_values(self, amap, session):
        amap.get_request({"key": "k1", "city": "", "address": "beijing", "batch": None}, API_V3_URL + "/geocode/geo")
        assert sent_params(session) == {"key": "k1", "address": "beijing", "output": "json"}

    def test_unsigned_requests_have_no_sig(self, amap, session):
        amap.get_request({"key": "k1", "sig": "forged"}, API_V3_URL + "/ip")
        assert "sig" not in sent_params(session)

    def test_signed_request(self, signed_amap, session):
        signed_amap.get_forecast_weather("110101")

        params = sent_params(session)
        assert params["sig"] == "3c54a903e0aad3cda23bc4cc16f7fee8"
        pre_sig = {k: v for k, v in params.items() if k != "sig"}
        assert params["sig"] == signature(pre_sig, "pk")

    def test_signed_request_replaces_given_sig(self, signed_amap, session):
        signed_amap.get_request({"key": "k1", "address": "beijing", "sig": "forged"}, API_V3_URL + "/geocode/geo")
        assert sent_params(session)["sig"] == "348dc83480f167f8f270d365bd007328"

    def test_every_operation_dispatches_to_its_endpoint(self, amap, session):
        calls = [
            (lambda: amap.walking("1,2", "3,4"), "/direction/walking"),
            (lambda: amap.transit("1,2", "3,4", "010"), "/direction/transit/integrated"),
            (lambda: amap.driving("1,2", "3,4", strategy=10), "/direction/driving"),
            (lambda: amap.bicycling("1,2", "3,4"), "/direction/bicycling"),
            (lambda: amap.electrobike("1,2", "3,4"), "/direction/electrobike"),
            (lambda: amap.future_driving("1,2", "3,4", 1700000000, 900, 10), "/etd/driving"),
            (lambda: amap.distance("1,2|5,6", "3,4"), "/distance"),
            (lambda: amap.district("北京"), "/config/district"),
            (lambda: amap.text_search("北京大学"), "/place/text"),
            (lambda: amap.around_search("116.48,39.99", keywords="肯德基"), "/place/around"),
            (lambda: amap.polygon_search("1,2|3,4|5,6"), "/place/polygon"),
            (lambda: amap.detail_search("B000A8URXB"), "/place/detail"),
            (lambda: amap.query_by_adcode("110000"), "/queryByAdcode"),
            (lambda: amap.ip_location("114.247.50.2"), "/ip"),
            (lambda: amap.static_map("116.48,39.99", 10), "/staticmap"),
            (lambda: amap.convert("116.48,39.99", "gps"), "/assistant/coordinate/convert"),
            (lambda: amap.get_live_weather("110101"), "/weather/weatherInfo"),
            (lambda: amap.input_tips("肯德基"), "/assistant/inputtips"),
            (lambda: amap.rectangle_traffic("116.35,39.91;116.45,39.94"), "/traffic/status/rectangle"),
            (lambda: amap.circle_traffic("116.48,39.99"), "/traffic/status/circle"),
            (lambda: amap.road_traffic("北环大道", adcode="440300"), "/traffic/status/road"),
            (lambda: amap.grasp_road([{"x": 1, "y": 2, "sp": 3, "ag": 4, "tm": 5}]), "/grasproad/driving"),
        ]
        for call, path in calls:
            call()
            url = session.get.call_args.args[0]
            assert url.endswith(path), f"{url} no termina en {path}"
            assert sent_params(session)["key"] == "k1"

    def test_weather_wrappers(self, amap, session):
        amap.get_live_weather("110101")
        assert sent_params(session)["extensions"] == "base"
        amap.get_forecast_weather("110101")
        assert sent_params(session)["extensions"] == "all"

    def test_bicycling_uses_v4(self, amap, session):
        amap.bicycling("1,2", "3,4")
        assert session.get.call_args.args[0] == API_V4_URL + "/direction/bicycling"

    def test_unknown_optional_param_rejected(self, amap, session):
        with pytest.raises(InvalidParameterError):
            amap.driving("1,2", "3,4", strategyy=10)
        session.get.assert_not_called()


class TestResponses:

    def test_json_is_decoded(self, amap, session):
        body = {"status": "1", "geocodes": [{"location": "116.48,39.99"}]}
        session.get.return_value = make_response(json.dumps(body))
        assert amap.get_geo("beijing") == body

    def test_xml_is_returned_raw(self, amap, session):
        body = '<?xml version="1.0" encoding="UTF-8"?><response><status>1</status></response>'
        session.get.return_value = make_response(body)
        assert amap.get_geo("beijing", format="xml") == body

    def test_invalid_json(self, amap, session):
        session.get.return_value = make_response("<html>oops</html>")
        with pytest.raises(DecodeError) as exc_info:
            amap.get_geo("beijing")
        assert exc_info.value.response_text == "<html>oops</html>"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_http_error(self, amap, session):
        session.get.return_value = make_response("Bad Gateway", status_code=502)
        with pytest.raises(RequestHTTPError) as exc_info:
            amap.get_geo("beijing")
        assert exc_info.value.status_code == 502
        assert exc_info.value.response_text == "Bad Gateway"

    def test_timeout(self, amap, session):
        session.get.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with pytest.raises(RequestTimeoutError) as exc_info:
            amap.get_geo("beijing")
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)

    def test_connect_timeout_is_a_timeout(self, amap, session):
        session.get.side_effect = requests.exceptions.ConnectTimeout("connect timed out")
        with pytest.raises(RequestTimeoutError):
            amap.get_geo("beijing")

    def test_connection_error(self, amap, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(RequestConnectionError):
            amap.get_geo("beijing")

    def test_other_request_error(self, amap, session):
        session.get.side_effect = requests.exceptions.TooManyRedirects("loop")
        with pytest.raises(RequestFailedError, match="loop"):
            amap.get_geo("beijing")

    def test_last_sent(self, amap, session):
        assert amap.last_sent() is None
        session.get.return_value = make_response("{}", url="http://restapi.amap.com/v3/ip?key=k1&output=json")
        amap.ip_location()
        assert amap.last_sent() == "http://restapi.amap.com/v3/ip?key=k1&output=json"


class TestTransportOptions:

    def test_options_are_passed_to_requests(self, session):
        amap = WebService(
            key="k1", session=session, timeout=3, proxy="http://proxy:3128",
            headers={"X-Test": "1"}, verify_ssl=False,
        )
        amap.ip_location()
        kwargs = session.get.call_args.kwargs
        assert kwargs["timeout"] == 3
        assert kwargs["proxies"] == {"http": "http://proxy:3128", "https": "http://proxy:3128"}
        assert kwargs["headers"] == {"X-Test": "1"}
        assert kwargs["verify"] is False

    def test_set_transport_options_affects_next_requests(self, amap, session):
        amap.ip_location()
        assert session.get.call_args.kwargs["timeout"] == 5

        amap.set_transport_options(timeout=30)
        amap.ip_location()
        assert session.get.call_args.kwargs["timeout"] == 30
        assert amap.key == "k1"


class TestSessionOwnership:

    def test_external_session_is_not_closed(self, session):
        with WebService(key="k1", session=session) as amap:
            amap.ip_location()
        session.close.assert_not_called()

    def test_own_session_is_closed(self):
        amap = WebService(key="k1")
        amap.session = MagicMock(spec=requests.Session)
        amap.close()
        amap.session.close.assert_called_once()


class TestLogging:

    def test_request_is_logged_without_credentials(self, session, caplog):
        amap = WebService(key="secret-key", sign=True, private_key="pk", session=session)
        with caplog.at_level(logging.DEBUG, logger="amap"):
            amap.get_geo("beijing")

        records = [r for r in caplog.records if "[NETWORK_REQ]" in r.getMessage()]
        assert len(records) == 1
        assert records[0].params["key"] == "***"
        assert records[0].params["sig"] == "***"
        assert records[0].params["address"] == "beijing"
        assert "secret-key" not in caplog.text

    def test_custom_logger(self, session):
        logger = MagicMock(spec=logging.Logger)
        amap = WebService(key="k1", session=session, logger=logger)
        amap.ip_location()
        assert amap.log is logger
        logger.debug.assert_called_once()

    def test_errors_are_not_logged(self, amap, session, caplog):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with caplog.at_level(logging.DEBUG, logger="amap"):
            with pytest.raises(RequestConnectionError):
                amap.get_geo("beijing")
        assert caplog.records == []
