"""条件请求前置条件模块

定义 HTTP 条件请求头（RFC 7232）的值对象:
    - IfMatch / IfNoneMatch: 基于实体标签（ETag）的条件
    - IfModifiedSince / IfUnmodifiedSince: 基于修改时间的条件

每个前置条件对象都是不可变的，可以提供请求头名称、请求头值以及条件主体（subject），
主体在 412 响应时会被附加到 PreconditionFailedError 上，便于调用方报告具体是什么没有匹配。

使用示例:
    >>> IfNoneMatch("abc123").header_value
    'W/"abc123"'
    >>> IfMatch("abc123", weak=False).header_value
    '"abc123"'
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

from condrequest.constants import (
    HEADER_IF_MATCH,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_IF_UNMODIFIED_SINCE,
)
from condrequest.exceptions import APIClientValidationError
from condrequest.utils import format_http_date


def format_entity_tag(tag: str, weak: bool = True) -> str:
    """
    将标签字符串格式化为实体标签头部值

    已带引号的标签不会被重复加引号，W/ 前缀由 weak 参数重新决定；"*" 原样返回
    """
    tag = tag.strip()
    if tag == "*":
        return tag
    if tag.startswith("W/"):
        tag = tag[2:]
    if not (len(tag) >= 2 and tag.startswith('"') and tag.endswith('"')):
        tag = f'"{tag}"'
    return f"W/{tag}" if weak else tag


@dataclass(frozen=True)
class _EntityTagPrecondition:
    tag: str
    weak: bool = True

    header_name = ""

    def __post_init__(self):
        if not isinstance(self.tag, str) or not self.tag.strip():
            raise APIClientValidationError(f"{type(self).__name__} requires a non-empty entity tag")

    @property
    def header_value(self) -> str:
        return format_entity_tag(self.tag, self.weak)

    @property
    def subject(self) -> str:
        return self.tag


@dataclass(frozen=True)
class _DatePrecondition:
    timestamp: datetime

    header_name = ""

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime):
            raise APIClientValidationError(f"{type(self).__name__} requires a datetime, got {type(self.timestamp).__name__}")

    @property
    def header_value(self) -> str:
        return format_http_date(self.timestamp)

    @property
    def subject(self) -> datetime:
        return self.timestamp


@dataclass(frozen=True)
class IfMatch(_EntityTagPrecondition):
    """If-Match: 仅当资源当前 ETag 匹配时执行请求（乐观并发控制）"""

    header_name = HEADER_IF_MATCH


@dataclass(frozen=True)
class IfNoneMatch(_EntityTagPrecondition):
    """If-None-Match: 仅当资源当前 ETag 不匹配时执行请求（缓存再验证）"""

    header_name = HEADER_IF_NONE_MATCH


@dataclass(frozen=True)
class IfModifiedSince(_DatePrecondition):
    """If-Modified-Since: 仅当资源在指定时间之后被修改时返回内容"""

    header_name = HEADER_IF_MODIFIED_SINCE


@dataclass(frozen=True)
class IfUnmodifiedSince(_DatePrecondition):
    """If-Unmodified-Since: 仅当资源在指定时间之后未被修改时执行请求"""

    header_name = HEADER_IF_UNMODIFIED_SINCE


Precondition: TypeAlias = IfMatch | IfNoneMatch | IfModifiedSince | IfUnmodifiedSince

PRECONDITION_TYPES = (IfMatch, IfNoneMatch, IfModifiedSince, IfUnmodifiedSince)

PRECONDITION_HEADERS = frozenset(t.header_name.lower() for t in PRECONDITION_TYPES)
