"""请求构建器模块

将 HTTP 方法、目标 URL、请求头（含前置条件）和请求体组合成不可变的 RequestDescriptor

URL 解析规则:
    1. 绝对 URL 原样使用
    2. 相对 URL 拼接到 base_url 上，两侧多余的斜杠会被去掉，只保留一个分隔斜杠
    3. url 为空时使用 base_url 本身
    4. 相对 URL 但未配置 base_url，或拼接结果不是合法的绝对 URL 时抛出 UrlResolutionError

使用示例:
    >>> builder = RequestBuilder(base_url="https://api.example.com/")
    >>> descriptor = builder.build("GET", "/widgets/1", precondition=IfNoneMatch("abc123"))
    >>> descriptor.url
    'https://api.example.com/widgets/1'
    >>> descriptor.headers["If-None-Match"]
    'W/"abc123"'
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from condrequest.constants import SUPPORTED_METHODS
from condrequest.exceptions import APIClientValidationError, UrlResolutionError
from condrequest.models import HeadersInput, RequestBody, RequestDescriptor, normalize_header_items
from condrequest.preconditions import PRECONDITION_TYPES, Precondition
from condrequest.utils import is_absolute_url, join_url

logger = logging.getLogger(__name__)


class RequestBuilder:
    """
    请求构建器

    除了配置的 base_url 外没有任何状态，可在多线程中共享

    参数:
        base_url: 基础 URL，必须是绝对地址；为空时只接受绝对 URL
        encode_query: 是否对查询参数进行百分号编码，默认不编码
    """

    def __init__(self, base_url: str | None = None, encode_query: bool = False):
        base_url = (base_url or "").strip()
        if base_url and not is_absolute_url(base_url):
            raise UrlResolutionError(f"Base URL must be absolute: {base_url} is not an absolute URL", base_url=base_url)
        self.base_url = base_url
        self.encode_query = encode_query

    def resolve_url(self, url: str | None = None) -> str:
        """
        解析目标 URL

        异常:
            UrlResolutionError: 无法解析为合法绝对 URL 时抛出
        """
        if url:
            if is_absolute_url(url):
                return url

            if not self.base_url:
                raise UrlResolutionError(f"URL {url} is not absolute and no base URL was configured", url=url)

            joined = join_url(self.base_url, url)
            if not is_absolute_url(joined):
                raise UrlResolutionError(f"Invalid URL: {url}", url=url, base_url=self.base_url)
            return joined

        if not self.base_url:
            raise UrlResolutionError("No URL found for the current request", url=url)
        return self.base_url

    @staticmethod
    def normalize_method(method: str) -> str:
        normalized = (method or "").strip().upper()
        if normalized not in SUPPORTED_METHODS:
            raise APIClientValidationError(
                f"Unsupported HTTP method: {method}. Must be one of: {sorted(SUPPORTED_METHODS)}"
            )
        return normalized

    def build(
        self,
        method: str,
        url: str | None = None,
        *,
        precondition: Precondition | None = None,
        body: RequestBody | None = None,
        query_params: Mapping[str, Any] | None = None,
        headers: HeadersInput = None,
    ) -> RequestDescriptor:
        """
        构建请求描述符

        参数:
            method: HTTP 方法（不区分大小写）
            url: 绝对或相对 URL，None 时使用 base_url
            precondition: 前置条件（IfMatch / IfNoneMatch / IfModifiedSince / IfUnmodifiedSince）
            body: 请求体描述符
            query_params: 查询参数，整体替换 URL 中已有的查询字符串
            headers: 额外请求头，允许重复键

        返回:
            不可变的 RequestDescriptor

        异常:
            UrlResolutionError: URL 无法解析
            APIClientValidationError: 方法、前置条件或请求体类型不合法
        """
        if precondition is not None and not isinstance(precondition, PRECONDITION_TYPES):
            raise APIClientValidationError(f"Unsupported precondition type: {type(precondition).__name__}")
        if body is not None and not isinstance(body, RequestBody):
            raise APIClientValidationError(
                f"body must be a RequestBody, got {type(body).__name__}; encode it with a body serializer first"
            )

        descriptor = RequestDescriptor(
            method=self.normalize_method(method),
            url=self.resolve_url(url),
            header_items=normalize_header_items(headers),
            body=body,
            precondition=precondition,
        )
        descriptor = descriptor.with_query(query_params, encode=self.encode_query)
        logger.debug(f"Built {descriptor.method} request descriptor for {descriptor.url}")
        return descriptor
