"""
数据模型模块

定义请求描述符、请求体、响应结果、响应体句柄以及 CORS 预检结果等核心数据结构

设计要点:
    - RequestDescriptor / RequestBody / ResponseOutcome 均为不可变对象
    - 请求头是大小写不敏感、允许重复键的多值映射，每次访问返回新的 HTTPHeaderDict 副本
    - ResponseBody 是一次性资源，重复读取会抛出 BodyConsumedError
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, TypeAlias

import requests
from urllib3 import HTTPHeaderDict

from condrequest.constants import DEFAULT_CHUNK_SIZE, HEADER_CONTENT_TYPE
from condrequest.exceptions import BodyConsumedError
from condrequest.preconditions import PRECONDITION_HEADERS, Precondition
from condrequest.utils import render_query_string, replace_query

logger = logging.getLogger(__name__)

# 请求头键值对序列，保持顺序并允许重复键
HeaderItems: TypeAlias = tuple[tuple[str, str], ...]
HeadersInput: TypeAlias = Mapping[str, str] | Iterable[tuple[str, str]] | None


def normalize_header_items(headers: HeadersInput) -> HeaderItems:
    """将字典、HTTPHeaderDict 或键值对序列统一转换为键值对元组"""
    if not headers:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name), str(value)) for name, value in items)


def build_header_dict(items: Iterable[tuple[str, str]]) -> HTTPHeaderDict:
    headers = HTTPHeaderDict()
    for name, value in items:
        headers.add(name, value)
    return headers


@dataclass(frozen=True)
class RequestBody:
    """
    请求体描述符

    属性:
        content: 请求体字节内容
        content_type: 请求体的内容类型（如 application/json）
    """

    content: bytes
    content_type: str

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class RequestDescriptor:
    """
    不可变的请求描述符

    由 RequestBuilder 构建，交给 ExecutionPipeline 执行。所有 with_* 方法都返回新的描述符，
    原对象保持不变。

    属性:
        method: 大写 HTTP 方法
        url: 绝对 URL（可能包含查询字符串）
        header_items: 调用方设置的请求头键值对（不含前置条件头）
        body: 可选的请求体
        precondition: 可选的前置条件，最多一个，后设置的覆盖先设置的
    """

    method: str
    url: str
    header_items: HeaderItems = ()
    body: RequestBody | None = None
    precondition: Precondition | None = None

    @property
    def headers(self) -> HTTPHeaderDict:
        """
        返回完整请求头（调用方请求头 + 前置条件头）的新副本

        设置了前置条件时，调用方手动设置的条件请求头会被丢弃，保证最多一个前置条件生效
        """
        headers = build_header_dict(self.header_items)
        if self.precondition is not None:
            for name in PRECONDITION_HEADERS:
                headers.discard(name)
            headers.add(self.precondition.header_name, self.precondition.header_value)
        return headers

    @property
    def content_type(self) -> str | None:
        return self.body.content_type if self.body is not None else None

    def with_precondition(self, precondition: Precondition | None) -> RequestDescriptor:
        return replace(self, precondition=precondition)

    def with_header(self, name: str, value: str) -> RequestDescriptor:
        return replace(self, header_items=self.header_items + ((str(name), str(value)),))

    def with_headers(self, headers: HeadersInput) -> RequestDescriptor:
        return replace(self, header_items=self.header_items + normalize_header_items(headers))

    def with_body(self, body: RequestBody | None) -> RequestDescriptor:
        return replace(self, body=body)

    def with_query(self, params: Mapping[str, Any] | None, encode: bool = False) -> RequestDescriptor:
        """
        附加查询字符串

        空映射不做任何修改；非空时整体替换已有查询字符串（不合并）
        """
        if not params:
            return self
        return replace(self, url=replace_query(self.url, render_query_string(params, encode=encode)))


class Classification(str, enum.Enum):
    """响应分类标签"""

    INFORMATIONAL = "informational"
    SUCCESS = "success"
    REDIRECT = "redirect"
    NOT_MODIFIED = "not_modified"
    CLIENT_ERROR = "client_error"
    PRECONDITION_FAILED = "precondition_failed"
    SERVER_ERROR = "server_error"


class ResponseBody:
    """
    一次性响应体句柄

    底层流只能被消费一次，第二次读取会显式抛出 BodyConsumedError，而不是静默返回空内容。
    """

    def __init__(self, response: requests.Response | None):
        self._response = response
        self._consumed = False
        self._lock = threading.Lock()

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _consume(self) -> None:
        with self._lock:
            if self._consumed:
                raise BodyConsumedError("Response body has already been consumed")
            self._consumed = True

    def read(self) -> bytes:
        """读取完整响应体字节"""
        self._consume()
        if self._response is None:
            return b""
        return self._response.content or b""

    def text(self) -> str:
        """读取响应体并按响应编码（默认 UTF-8）解码为字符串"""
        content = self.read()
        encoding = (self._response.encoding if self._response is not None else None) or "utf-8"
        return content.decode(encoding, errors="replace")

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """按块迭代响应体，适用于流式响应"""
        self._consume()
        if self._response is None:
            return iter(())
        return (chunk for chunk in self._response.iter_content(chunk_size=chunk_size) if chunk)


@dataclass(frozen=True)
class ResponseOutcome:
    """
    一次请求执行的不可变结果

    属性:
        status_code: HTTP 状态码
        reason: 状态描述
        content_type: 响应内容类型（可能为 None）
        classification: 分类标签
        url: 响应对应的 URL
        header_items: 原始响应头键值对（保留重复）
        body: 一次性响应体句柄
        request: 产生该响应的请求描述符
        raw: 底层 requests.Response 对象
    """

    status_code: int
    reason: str
    content_type: str | None
    classification: Classification
    url: str
    header_items: HeaderItems = ()
    body: ResponseBody = field(default_factory=lambda: ResponseBody(None), compare=False)
    request: RequestDescriptor | None = None
    raw: requests.Response | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_response(
        cls,
        response: requests.Response,
        request: RequestDescriptor | None,
        classification: Classification,
    ) -> ResponseOutcome:
        """由 requests.Response 构建响应结果"""
        header_items = response_header_items(response)
        headers = build_header_dict(header_items)
        return cls(
            status_code=response.status_code,
            reason=response.reason or "",
            content_type=headers.get(HEADER_CONTENT_TYPE),
            classification=classification,
            url=response.url or (request.url if request is not None else ""),
            header_items=header_items,
            body=ResponseBody(response),
            request=request,
            raw=response,
        )

    @property
    def headers(self) -> HTTPHeaderDict:
        return build_header_dict(self.header_items)

    @property
    def is_success(self) -> bool:
        return self.classification is Classification.SUCCESS

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def header_values(self, name: str) -> list[str]:
        """获取指定响应头的所有值"""
        return self.headers.getlist(name)

    def header_value(self, name: str) -> str | None:
        """获取指定响应头的第一个值"""
        values = self.header_values(name)
        return values[0] if values else None

    def close(self) -> None:
        """释放底层响应连接"""
        if self.raw is not None:
            self.raw.close()


@dataclass(frozen=True)
class PreflightResult:
    """
    CORS 预检评估结果

    三个子检查分别保留，便于单独断言
    """

    method_allowed: bool
    origin_allowed: bool
    headers_allowed: bool

    @property
    def allowed(self) -> bool:
        return self.method_allowed and self.origin_allowed and self.headers_allowed

    def __bool__(self) -> bool:
        return self.allowed


def response_header_items(response: requests.Response) -> HeaderItems:
    """
    提取响应头键值对

    优先使用 urllib3 原始响应中的多值头部，requests 会把重复头合并为逗号分隔的单值
    """
    raw_headers = getattr(getattr(response, "raw", None), "headers", None)
    if isinstance(raw_headers, HTTPHeaderDict):
        return normalize_header_items(raw_headers.items())
    return normalize_header_items(response.headers.items())
