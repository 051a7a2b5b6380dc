"""
通用测试 Fixture 定义

提供测试所需的响应工厂、桩传输层和工具函数
"""

import json
from http import HTTPStatus
from types import SimpleNamespace

import django
import pytest
import requests
from django.conf import settings
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPHeaderDict

# 配置 Django 设置（DRF 实体校验测试需要）
if not settings.configured:
    settings.configure(
        DEBUG=True,
        SECRET_KEY="test-secret-key",
        USE_I18N=True,
        USE_TZ=True,
    )
    django.setup()

from condrequest.models import RequestDescriptor  # noqa: E402
from condrequest.transport import BaseTransport  # noqa: E402

BASE_URL = "https://api.example.com"


def build_response(status_code=200, headers=None, content=b"", url=f"{BASE_URL}/test", reason=None):
    """
    构造真实的 requests.Response 对象

    headers 可以是字典或键值对列表；键值对列表中的重复键会以多值形式保留在 raw.headers 中
    """
    items = list(headers.items()) if isinstance(headers, dict) else list(headers or [])
    raw_headers = HTTPHeaderDict()
    for name, value in items:
        raw_headers.add(name, value)

    response = requests.Response()
    response.status_code = status_code
    response.reason = reason if reason is not None else HTTPStatus(status_code).phrase
    response.url = url
    response.headers = CaseInsensitiveDict(dict(raw_headers.itermerged()))
    response.raw = SimpleNamespace(headers=raw_headers)
    response._content = content
    response._content_consumed = True
    return response


class StubTransport(BaseTransport):
    """按顺序返回预设响应的桩传输层，并记录收到的请求描述符"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent: list[RequestDescriptor] = []
        self.closed = False

    def send(self, descriptor):
        self.sent.append(descriptor)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


class EchoTransport(BaseTransport):
    """把请求头以 JSON 键值对列表的形式回显到响应体中"""

    def __init__(self):
        self.sent: list[RequestDescriptor] = []

    def send(self, descriptor):
        self.sent.append(descriptor)
        content = json.dumps([[name, value] for name, value in descriptor.headers.items()]).encode("utf-8")
        return build_response(200, {"Content-Type": "application/json"}, content, url=descriptor.url)


@pytest.fixture
def make_response():
    """响应工厂"""
    return build_response


@pytest.fixture
def ok_response():
    """标准 200 JSON 响应"""
    return build_response(200, {"Content-Type": "application/json", "ETag": 'W/"abc123"'}, b'{"id": 1, "name": "widget"}')


@pytest.fixture
def not_modified_response():
    """304 响应"""
    return build_response(304, {"ETag": 'W/"abc123"'})


@pytest.fixture
def stub_transport(ok_response):
    """默认返回 200 响应的桩传输层"""
    return StubTransport(ok_response)


@pytest.fixture
def echo_transport():
    return EchoTransport()


@pytest.fixture
def descriptor():
    """基础 GET 请求描述符"""
    return RequestDescriptor(method="GET", url=f"{BASE_URL}/widgets/1")
