"""CORS 预检评估模块

根据预检（OPTIONS）响应头判断一个具体的跨域请求是否会被允许。

纯函数：不访问网络、没有副作用，调用方负责完成实际的预检交换并传入响应。

检查规则:
    - 方法: Access-Control-Allow-Methods 缺失，或其令牌中包含请求方法（区分大小写）
    - 来源: Access-Control-Allow-Origin 缺失，或等于 "*"，或与 origin 完全相等
    - 请求头: Access-Control-Allow-Headers 缺失，或包含所有请求头（不区分大小写）
    - 最终结果为三者的逻辑与；405 响应抛出 MethodDiscoveryError
"""

from __future__ import annotations

from collections.abc import Iterable

import requests
from urllib3 import HTTPHeaderDict

from condrequest.constants import (
    HEADER_AC_ALLOW_HEADERS,
    HEADER_AC_ALLOW_METHODS,
    HEADER_AC_ALLOW_ORIGIN,
    STATUS_METHOD_NOT_ALLOWED,
)
from condrequest.exceptions import MethodDiscoveryError
from condrequest.models import PreflightResult, ResponseOutcome, build_header_dict, response_header_items
from condrequest.utils import split_header_tokens


def _preflight_headers(response: ResponseOutcome | requests.Response) -> HTTPHeaderDict:
    if isinstance(response, ResponseOutcome):
        return response.headers
    return build_header_dict(response_header_items(response))


def method_allowed(headers: HTTPHeaderDict, request_method: str) -> bool:
    if HEADER_AC_ALLOW_METHODS not in headers:
        return True
    return request_method in split_header_tokens(headers.getlist(HEADER_AC_ALLOW_METHODS))


def origin_allowed(headers: HTTPHeaderDict, origin: str) -> bool:
    if HEADER_AC_ALLOW_ORIGIN not in headers:
        return True
    values = [value.strip() for value in headers.getlist(HEADER_AC_ALLOW_ORIGIN)]
    return "*" in values or origin in values


def headers_allowed(headers: HTTPHeaderDict, request_headers: Iterable[str]) -> bool:
    if HEADER_AC_ALLOW_HEADERS not in headers:
        return True
    allowed = {token.lower() for token in split_header_tokens(headers.getlist(HEADER_AC_ALLOW_HEADERS))}
    return all(header.strip().lower() in allowed for header in request_headers)


def evaluate(
    preflight_response: ResponseOutcome | requests.Response,
    origin: str,
    request_method: str,
    request_headers: Iterable[str] = (),
) -> PreflightResult:
    """
    评估预检响应是否允许后续的跨域请求

    参数:
        preflight_response: 预检响应（ResponseOutcome 或 requests.Response）
        origin: 发起请求的来源
        request_method: 后续请求将使用的方法
        request_headers: 后续请求将携带的请求头名称

    返回:
        PreflightResult，包含三个子检查结果

    异常:
        MethodDiscoveryError: 预检响应为 405，没有可用的预检数据
    """
    if preflight_response.status_code == STATUS_METHOD_NOT_ALLOWED:
        raise MethodDiscoveryError(
            "Cannot retrieve CORS preflight headers: OPTIONS method is not allowed.", response=preflight_response
        )

    headers = _preflight_headers(preflight_response)
    return PreflightResult(
        method_allowed=method_allowed(headers, request_method),
        origin_allowed=origin_allowed(headers, origin),
        headers_allowed=headers_allowed(headers, list(request_headers or ())),
    )
