"""
Unit tests for XAPI access

Tests:
- Token provider: client-credentials exchange and failures
- XAPI client: query encoding, status classification, transport retries
- Response envelopes: collection / object / boolean / empty / malformed
- Invocation pipeline: binding, zulu rendering, notices, expansion
"""

import json
from dataclasses import fields
from datetime import date, datetime
from unittest.mock import Mock, patch

import pytest
import requests

from xapi_export.api import (
    BooleanEnvelope,
    Bindings,
    CollectionEnvelope,
    InvocationPipeline,
    ObjectEnvelope,
    RequestContext,
    TokenProvider,
    XapiClient,
)
from xapi_export.api.envelope import classify_body, decode_body
from xapi_export.api.xapi_client import build_query
from xapi_export.definitions import EndpointDescriptor, build_definitions
from xapi_export.errors import (
    AuthError,
    EmptyResult,
    Forbidden,
    HttpError,
    InvalidBindings,
    MalformedResponse,
    TransportError,
    UnknownEndpoint,
)


# ============================================================================
# FIXTURES
# ============================================================================


def _response(status_code=200, body=None, text=None):
    response = Mock()
    response.status_code = status_code
    if text is None:
        text = json.dumps(body) if body is not None else ""
    response.text = text
    response.json = Mock(side_effect=lambda: json.loads(text))
    return response


@pytest.fixture
def token_provider():
    provider = Mock(spec=TokenProvider)
    provider.get_token.return_value = "test-token"
    return provider


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(xapi_config, token_provider, session):
    return XapiClient(xapi_config, token_provider=token_provider, session=session)


@pytest.fixture
def pipeline(sample_openapi_spec, client):
    return InvocationPipeline(build_definitions(sample_openapi_spec), client)


@pytest.fixture
def march_bindings():
    return Bindings(date_from=date(2024, 3, 1), date_to=date(2024, 3, 31), top=50, skip=0, queuedn="800")


# ============================================================================
# TOKEN PROVIDER TESTS
# ============================================================================


class TestTokenProvider:
    """Tests for TokenProvider"""

    @patch("requests.Session.post")
    def test_fetch_token(self, mock_post, xapi_config):
        mock_post.return_value = _response(200, {"access_token": "abc", "expires_in": 3600})

        token = TokenProvider(xapi_config).get_token()

        assert token == "abc"
        args, kwargs = mock_post.call_args
        assert args[0] == "https://pbx.example.com:5001/connect/token"
        assert kwargs["data"] == {
            "client_id": "client",
            "client_secret": "secret",
            "grant_type": "client_credentials",
        }
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    @patch("requests.Session.post")
    def test_non_200_status(self, mock_post, xapi_config):
        mock_post.return_value = _response(401, {"error": "invalid_client"})

        with pytest.raises(AuthError, match="401"):
            TokenProvider(xapi_config).get_token()

    @patch("requests.Session.post")
    def test_missing_token(self, mock_post, xapi_config):
        mock_post.return_value = _response(200, {"token_type": "Bearer"})

        with pytest.raises(AuthError, match="Access token not found"):
            TokenProvider(xapi_config).get_token()

    @patch("requests.Session.post")
    def test_unreachable(self, mock_post, xapi_config):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(AuthError):
            TokenProvider(xapi_config).get_token()

    @patch("requests.Session.post")
    def test_new_token_per_call_by_default(self, mock_post, xapi_config):
        mock_post.return_value = _response(200, {"access_token": "abc", "expires_in": 3600})
        provider = TokenProvider(xapi_config)

        provider.get_token()
        provider.get_token()

        assert mock_post.call_count == 2

    @patch("requests.Session.post")
    def test_token_reuse(self, mock_post, xapi_config):
        mock_post.return_value = _response(200, {"access_token": "abc", "expires_in": 3600})
        provider = TokenProvider(xapi_config, reuse_tokens=True)

        provider.get_token()
        provider.get_token()

        assert mock_post.call_count == 1


# ============================================================================
# CLIENT TESTS
# ============================================================================


class TestXapiClient:
    """Tests for XapiClient"""

    def test_query_encoding(self):
        query = build_query({"$filter": "date(StartTime) ge 2024-03-01", "$top": "50"})

        assert query == "%24filter=date%28StartTime%29%20ge%202024-03-01&%24top=50"

    def test_build_url(self, client):
        assert client.build_url("/xapi/v1/Users") == "https://pbx.example.com:5001/xapi/v1/Users"
        assert client.build_url("/xapi/v1/Users", {"$top": "5"}) == (
            "https://pbx.example.com:5001/xapi/v1/Users?%24top=5"
        )

    def test_bearer_request(self, client, session):
        session.get.return_value = _response(200, {"value": []})

        client.get("/xapi/v1/Users", {"$top": "5"})

        args, kwargs = session.get.call_args
        assert args[0].endswith("/xapi/v1/Users?%24top=5")
        assert kwargs["headers"]["Authorization"] == "Bearer test-token"
        assert kwargs["headers"]["Accept"] == "application/json"
        assert kwargs["timeout"] == 5

    def test_204_is_empty_result(self, client, session):
        session.get.return_value = _response(204)

        with pytest.raises(EmptyResult) as exc_info:
            client.get("/xapi/v1/Users")

        assert exc_info.value.is_failure is False

    def test_403_is_forbidden(self, client, session):
        session.get.return_value = _response(403, text="Forbidden")

        with pytest.raises(Forbidden, match="whitelist"):
            client.get("/xapi/v1/Users")

    def test_other_status_is_http_error(self, client, session):
        session.get.return_value = _response(500, text="boom")

        with pytest.raises(HttpError) as exc_info:
            client.get("/xapi/v1/Users")

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    def test_transport_error(self, client, session):
        session.get.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(TransportError):
            client.get("/xapi/v1/Users")

    def test_transport_error_is_retried(self, xapi_config, token_provider, session):
        xapi_config.max_attempts = 3
        session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            _response(200, {"value": [{"Id": 1}]}),
        ]
        client = XapiClient(xapi_config, token_provider=token_provider, session=session)

        response = client.get("/xapi/v1/Users")

        assert response.status_code == 200
        assert session.get.call_count == 2

    def test_http_errors_are_not_retried(self, xapi_config, token_provider, session):
        xapi_config.max_attempts = 3
        session.get.return_value = _response(500, text="boom")
        client = XapiClient(xapi_config, token_provider=token_provider, session=session)

        with pytest.raises(HttpError):
            client.get("/xapi/v1/Users")

        assert session.get.call_count == 1

    def test_auth_failure_stops_request(self, client, token_provider, session):
        token_provider.get_token.side_effect = AuthError("bad credentials")

        with pytest.raises(AuthError):
            client.get("/xapi/v1/Users")

        session.get.assert_not_called()


# ============================================================================
# ENVELOPE TESTS
# ============================================================================


class TestEnvelopes:
    """Tests for response body classification"""

    def test_complete_collection(self):
        notices = []
        envelope = classify_body({"@odata.count": 2, "value": [{"Id": 1}, {"Id": 2}]}, notices)

        assert isinstance(envelope, CollectionEnvelope)
        assert envelope.total_count == 2
        assert not envelope.is_partial
        assert notices == ["OK: The complete dataset has been fetched ( 2 / 2 )."]

    def test_partial_collection(self):
        notices = []
        envelope = classify_body({"@odata.count": 5000, "value": [{"Id": i} for i in range(1000)]}, notices)

        assert envelope.is_partial
        assert len(envelope.rows) == 1000
        assert notices[0].startswith("Warning: The dataset has been partially fetched ( 1000 / 5000 )")

    def test_collection_without_count(self):
        envelope = classify_body({"value": [{"Id": 1}]})

        assert envelope.total_count is None
        assert not envelope.is_partial

    def test_odata_annotations_are_not_carried(self):
        envelope = classify_body(
            {"@odata.context": "$metadata#Users", "@odata.count": 1, "value": [{"Id": 1}]}
        )

        assert envelope.rows == [{"Id": 1}]
        assert envelope.total_count == 1
        assert [f.name for f in fields(envelope)] == ["rows", "total_count", "notices"]

    def test_zero_count_is_empty(self):
        with pytest.raises(EmptyResult, match="No data matching this filter"):
            classify_body({"@odata.count": 0, "value": [{"Id": 1}]})

    def test_empty_collection(self):
        with pytest.raises(EmptyResult):
            classify_body({"value": []})

    def test_boolean_value(self):
        notices = []
        envelope = classify_body({"value": True}, notices)

        assert isinstance(envelope, BooleanEnvelope)
        assert envelope.value is True
        assert "boolean value: true" in notices[0]

    def test_object_response(self):
        notices = []
        envelope = classify_body({"FQDN": "pbx.example.com", "Version": "20.0"}, notices)

        assert isinstance(envelope, ObjectEnvelope)
        assert envelope.row["Version"] == "20.0"
        assert "FQDN, Version" in notices[0]

    def test_value_not_array(self):
        with pytest.raises(MalformedResponse, match="not an array"):
            classify_body({"value": "text"})

    def test_top_level_array(self):
        with pytest.raises(MalformedResponse):
            classify_body([{"Id": 1}])

    def test_decode_body(self):
        assert decode_body('{"value": []}') == {"value": []}
        with pytest.raises(EmptyResult):
            decode_body("   ")
        with pytest.raises(MalformedResponse):
            decode_body("<html>")


# ============================================================================
# BINDINGS TESTS
# ============================================================================


class TestBindings:
    """Tests for request-time bindings"""

    def test_plain_values(self, march_bindings):
        values = march_bindings.values(supports_zulu=False)

        assert values == {
            "from": "2024-03-01",
            "to": "2024-03-31",
            "fromZulu": "2024-03-01",
            "toZulu": "2024-03-31",
            "top": "50",
            "skip": "0",
            "queuedn": "800",
        }

    def test_zulu_values(self, march_bindings):
        values = march_bindings.values(supports_zulu=True)

        assert values["fromZulu"] == "2024-03-01T00:00:00Z"
        assert values["toZulu"] == "2024-03-31T23:59:59Z"
        assert values["from"] == "2024-03-01"

    def test_accepts_strings_and_datetimes(self):
        bindings = Bindings(date_from="2024-03-01", date_to=datetime(2024, 3, 2, 15, 0))

        assert bindings.date_from == date(2024, 3, 1)
        assert bindings.date_to == date(2024, 3, 2)

    def test_from_after_to(self):
        with pytest.raises(InvalidBindings, match="earlier than or equal"):
            Bindings(date_from=date(2024, 3, 2), date_to=date(2024, 3, 1))

    def test_bad_date(self):
        with pytest.raises(InvalidBindings, match="YYYY-MM-DD"):
            Bindings(date_from="03/01/2024")

    @pytest.mark.parametrize("top", [-1, "10", True])
    def test_bad_top(self, top):
        with pytest.raises(InvalidBindings, match="top"):
            Bindings(top=top)

    def test_defaults(self):
        values = Bindings().values(supports_zulu=True)

        assert values["top"] == "1000"
        assert values["skip"] == "0"
        assert values["fromZulu"] is None


# ============================================================================
# PIPELINE TESTS
# ============================================================================


class TestInvocationPipeline:
    """Tests for InvocationPipeline"""

    def test_unknown_endpoint(self, pipeline):
        with pytest.raises(UnknownEndpoint, match="not supported"):
            pipeline.invoke("Nope")

    def test_disabled_endpoint_is_unknown(self, pipeline):
        with pytest.raises(UnknownEndpoint):
            pipeline.invoke("MyUser/MyUser.GetMyUser")

    def test_bind_zulu_endpoint(self, pipeline, march_bindings):
        descriptor = pipeline.definitions.get_descriptor("ReportCallLogData")

        path, params = pipeline.bind(descriptor, march_bindings)

        assert path == (
            "/xapi/v1/ReportCallLogData/Pbx.GetCallLogData(periodFrom=2024-03-01T00:00:00Z,"
            "periodTo=2024-03-31T23:59:59Z,sourceType=0,queueDns='800')"
        )
        assert params == {
            "$filter": "date(StartTime) ge 2024-03-01 and date(StartTime) le 2024-03-31",
            "$count": "true",
            "$skip": "0",
            "$top": "50",
        }

    def test_missing_required_inputs(self, pipeline):
        descriptor = pipeline.definitions.get_descriptor("ReportCallLogData")

        with pytest.raises(InvalidBindings, match="requires a value for: from, to$"):
            pipeline.bind(descriptor, Bindings())

    def test_queuedn_is_optional(self):
        descriptor = EndpointDescriptor(
            name="QueueReport",
            url_template="/xapi/v1/QueueReport/Pbx.GetQueueReport(queueDnStr='{queuedn}',top=1000)",
        )

        path, params = InvocationPipeline.bind(descriptor, Bindings())

        assert path == "/xapi/v1/QueueReport/Pbx.GetQueueReport(queueDnStr='',top=1000)"
        assert params == {}

    def test_queuedn_rendered_when_given(self, pipeline, march_bindings):
        descriptor = pipeline.definitions.get_descriptor("ReportCallLogData")

        path, _ = pipeline.bind(descriptor, Bindings(date_from=date(2024, 3, 1), date_to=date(2024, 3, 1)))

        assert path.endswith("queueDns='')")
        assert pipeline.bind(descriptor, march_bindings)[0].endswith("queueDns='800')")

    def test_invoke_collection(self, pipeline, session):
        session.get.return_value = _response(
            200,
            {
                "@odata.count": 2,
                "value": [
                    {"SegmentId": 1, "SegmentStartTime": "2024-03-15T10:30:00Z", "SrcDn": "100"},
                    {"SegmentId": 2, "SegmentStartTime": None, "SrcDn": "101"},
                ],
            },
        )
        bindings = Bindings(date_from=date(2024, 3, 15), date_to=date(2024, 3, 15))
        context = RequestContext(endpoint="CallHistoryView", bindings=bindings)

        envelope = pipeline.invoke("CallHistoryView", bindings, context=context)

        assert isinstance(envelope, CollectionEnvelope)
        assert envelope.rows[0]["SegmentStartTime_date"] == "2024-03-15"
        assert envelope.rows[0]["SegmentStartTime_dayOfWeekPrimary"] == "Friday"
        assert "SegmentStartTime_date" not in envelope.rows[1]
        assert context.notices == ["OK: The complete dataset has been fetched ( 2 / 2 )."]
        assert context.path == "/xapi/v1/CallHistoryView"
        url = session.get.call_args[0][0]
        assert "%24filter=date%28SegmentStartTime%29%20ge%202024-03-15" in url

    def test_invoke_object(self, pipeline, session):
        session.get.return_value = _response(200, {"FQDN": "pbx.example.com", "Activated": True})

        envelope = pipeline.invoke("SystemStatus")

        assert isinstance(envelope, ObjectEnvelope)
        assert envelope.row["Activated"] is True

    def test_invoke_boolean(self, pipeline, session):
        session.get.return_value = _response(200, {"value": False})

        envelope = pipeline.invoke("SystemStatus")

        assert isinstance(envelope, BooleanEnvelope)
        assert envelope.value is False

    def test_invoke_empty_204(self, pipeline, session):
        session.get.return_value = _response(204)

        with pytest.raises(EmptyResult):
            pipeline.invoke("Users")

    def test_override_notice(self, pipeline, session):
        session.get.return_value = _response(200, {"value": [{"ResellerName": "Acme", "Licenses": 4}]})
        context = RequestContext(endpoint="ReportReseller", bindings=Bindings())

        pipeline.invoke("ReportReseller", context=context)

        assert "changethis" in context.notices[0]
        assert "resellerId='changethis'" in session.get.call_args[0][0]
