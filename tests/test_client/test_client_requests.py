"""
EnhancedClient 请求执行测试

使用 responses 模拟 HTTP 层，覆盖:
- 便捷方法（get / post / put / patch / delete / options / head）
- 条件请求头与查询参数
- 生命周期事件
- 期望校验（expect_success / expect_status / expect_status_in）
- 412 前置条件失败
"""

import json

import pytest
import responses

from condrequest import EnhancedClient
from condrequest.exceptions import APIClientNetworkError, PreconditionFailedError, UnexpectedStatusError
from condrequest.models import Classification, RequestBody
from condrequest.preconditions import IfMatch, IfModifiedSince, IfNoneMatch

BASE_URL = "https://api.example.com"


class WidgetClient(EnhancedClient):
    base_url = BASE_URL + "/"
    bearer_token = "secret-token"


@pytest.fixture
def client():
    with WidgetClient() as client:
        yield client


class TestVerbs:
    """测试便捷方法"""

    @pytest.mark.unit
    @responses.activate
    @pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete", "options", "head"])
    def test_verb_sends_method(self, client, verb):
        # Arrange
        responses.add(verb.upper(), f"{BASE_URL}/widgets", status=200)

        # Act
        outcome = getattr(client, verb)("/widgets")

        # Assert
        assert outcome.status_code == 200
        assert responses.calls[0].request.method == verb.upper()
        assert responses.calls[0].request.headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.unit
    @responses.activate
    def test_query_params_unencoded(self, client):
        responses.add(responses.GET, f"{BASE_URL}/search", json=[])

        client.get("/search", params={"q": "widget", "page": 2})

        assert responses.calls[0].request.url == f"{BASE_URL}/search?q=widget&page=2"

    @pytest.mark.unit
    @responses.activate
    def test_dict_body_encoded_as_json(self, client):
        responses.add(responses.POST, f"{BASE_URL}/widgets", status=201)

        client.post("/widgets", body={"name": "widget"})

        request = responses.calls[0].request
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.body) == {"name": "widget"}

    @pytest.mark.unit
    @responses.activate
    def test_request_body_passed_through(self, client):
        responses.add(responses.PUT, f"{BASE_URL}/blobs/1", status=204)

        client.put("/blobs/1", body=RequestBody(b"\x00\x01", "application/octet-stream"))

        request = responses.calls[0].request
        assert request.body == b"\x00\x01"
        assert request.headers["Content-Type"] == "application/octet-stream"


class TestConditionalRequests:
    """测试条件请求"""

    @pytest.mark.unit
    @responses.activate
    def test_if_none_match_not_modified(self, client):
        """IfNoneMatch 命中缓存时返回 NotModified 分类并广播事件"""
        # Arrange
        responses.add(responses.GET, f"{BASE_URL}/widgets/1", status=304)
        events = []
        client.on_response_received(lambda event: events.append("response_received"))
        client.on_not_modified(lambda event: events.append("not_modified"))
        client.on_error_status(lambda event: events.append("error_status"))

        # Act
        outcome = client.get("/widgets/1", precondition=IfNoneMatch("abc123"))

        # Assert
        assert responses.calls[0].request.headers["If-None-Match"] == 'W/"abc123"'
        assert outcome.classification is Classification.NOT_MODIFIED
        assert events == ["response_received", "not_modified"]

    @pytest.mark.unit
    @responses.activate
    def test_if_modified_since_header(self, client):
        from datetime import datetime, timezone

        responses.add(responses.GET, f"{BASE_URL}/widgets", json=[])

        client.get("/widgets", precondition=IfModifiedSince(datetime(2024, 3, 1, tzinfo=timezone.utc)))

        assert responses.calls[0].request.headers["If-Modified-Since"] == "Fri, 01 Mar 2024 00:00:00 GMT"

    @pytest.mark.unit
    @responses.activate
    def test_precondition_failed_surfaces_subject(self, client):
        responses.add(responses.PUT, f"{BASE_URL}/widgets/1", status=412)

        outcome = client.put("/widgets/1", body={"name": "w"}, precondition=IfMatch("v1", weak=False))

        assert outcome.classification is Classification.PRECONDITION_FAILED
        with pytest.raises(PreconditionFailedError) as exc_info:
            client.expect_success(outcome)
        assert exc_info.value.subject == "v1"
        assert responses.calls[0].request.headers["If-Match"] == '"v1"'


class TestExpectations:
    """测试期望校验"""

    @pytest.mark.unit
    @responses.activate
    def test_raw_outcome_returned_for_errors(self, client):
        responses.add(responses.GET, f"{BASE_URL}/missing", status=404)

        outcome = client.get("/missing")

        assert outcome.classification is Classification.CLIENT_ERROR

    @pytest.mark.unit
    @responses.activate
    def test_expect_helpers(self, client):
        responses.add(responses.POST, f"{BASE_URL}/widgets", status=201)

        outcome = client.post("/widgets", body={"name": "w"})

        assert client.expect_success(outcome) is outcome
        assert client.expect_status(outcome, 201) is outcome
        assert client.expect_status_in(outcome, [200, 201]) is outcome
        assert client.classify(outcome) is outcome
        with pytest.raises(UnexpectedStatusError) as exc_info:
            client.expect_status(outcome, 200)
        assert exc_info.value.status_code == 201

    @pytest.mark.unit
    @responses.activate
    def test_error_status_event(self, client):
        responses.add(responses.DELETE, f"{BASE_URL}/widgets/1", status=500)
        events = []
        client.on_error_status(events.append)

        client.delete("/widgets/1")

        assert len(events) == 1
        assert events[0].status_code == 500
        assert events[0].method == "DELETE"
        assert events[0].url == f"{BASE_URL}/widgets/1"


class TestFailures:
    """测试传输失败"""

    @pytest.mark.unit
    @responses.activate
    def test_network_error_propagates(self, client):
        import requests

        responses.add(responses.GET, f"{BASE_URL}/widgets", body=requests.exceptions.ConnectionError("refused"))
        received = []
        client.on_response_received(received.append)

        with pytest.raises(APIClientNetworkError):
            client.get("/widgets")

        assert received == []

    @pytest.mark.unit
    def test_remove_listener(self, client):
        handler = client.on_request_sent(lambda event: None)

        assert client.remove_listener("request_sent", handler) is True
        assert client.remove_listener("request_sent", handler) is False
