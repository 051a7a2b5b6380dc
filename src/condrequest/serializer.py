"""
请求体序列化器模块

在 RequestBuilder 边界把动态值转换为 RequestBody（字节 + 内容类型），并提供对应的解码能力。
引擎本身不关心 JSON 或表单的具体格式，只和 BaseBodySerializer 的窄接口打交道。

使用示例:
    >>> body = JSONBodySerializer().encode({"name": "widget"})
    >>> body.content_type
    'application/json'
    >>> JSONBodySerializer().decode(body.content, body.content_type)
    {'name': 'widget'}
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from condrequest.constants import CONTENT_TYPE_FORM, CONTENT_TYPE_JSON, CONTENT_TYPE_OCTET_STREAM
from condrequest.exceptions import APIClientValidationError
from condrequest.models import RequestBody


def charset_of(content_type: str | None, default: str = "utf-8") -> str:
    """从 Content-Type 中提取 charset 参数"""
    for param in (content_type or "").split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return default


class BaseBodySerializer(ABC):
    """
    请求体序列化器基类

    子类需要实现 encode 和 decode 方法
    """

    content_type: str = CONTENT_TYPE_OCTET_STREAM

    @abstractmethod
    def encode(self, value: Any) -> RequestBody:
        """将值编码为请求体"""

    @abstractmethod
    def decode(self, content: bytes, content_type: str | None = None) -> Any:
        """将字节内容解码为值"""


class BytesBodySerializer(BaseBodySerializer):
    """原样传递字节内容"""

    def __init__(self, content_type: str | None = None):
        self.content_type = content_type or self.content_type

    def encode(self, value: Any) -> RequestBody:
        if isinstance(value, str):
            value = value.encode("utf-8")
        if not isinstance(value, (bytes, bytearray)):
            raise APIClientValidationError(f"BytesBodySerializer cannot encode {type(value).__name__}")
        return RequestBody(content=bytes(value), content_type=self.content_type)

    def decode(self, content: bytes, content_type: str | None = None) -> bytes:
        return content


class JSONBodySerializer(BaseBodySerializer):
    """
    JSON 序列化器

    参数:
        ensure_ascii: 是否转义非 ASCII 字符
        default: 无法序列化对象时的转换函数（透传给 json.dumps）
    """

    content_type = CONTENT_TYPE_JSON

    def __init__(self, ensure_ascii: bool = False, default=None):
        self.ensure_ascii = ensure_ascii
        self.default = default

    def encode(self, value: Any) -> RequestBody:
        try:
            content = json.dumps(value, ensure_ascii=self.ensure_ascii, default=self.default)
        except (TypeError, ValueError) as e:
            raise APIClientValidationError(f"Entity is not JSON serializable: {e}") from e
        return RequestBody(content=content.encode("utf-8"), content_type=self.content_type)

    def decode(self, content: bytes, content_type: str | None = None) -> Any:
        # 空响应体解码为 None
        if not content:
            return None
        return json.loads(content.decode(charset_of(content_type)))


class FormBodySerializer(BaseBodySerializer):
    """application/x-www-form-urlencoded 表单序列化器"""

    content_type = CONTENT_TYPE_FORM

    def encode(self, value: Mapping[str, Any]) -> RequestBody:
        if not isinstance(value, Mapping):
            raise APIClientValidationError(f"Form values must be a mapping, got {type(value).__name__}")
        return RequestBody(content=urlencode(value).encode("ascii"), content_type=self.content_type)

    def decode(self, content: bytes, content_type: str | None = None) -> dict[str, str]:
        return dict(parse_qsl(content.decode(charset_of(content_type)), keep_blank_values=True))
