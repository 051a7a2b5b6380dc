"""
响应解析器模块

按需解码 ResponseOutcome 的响应体。响应体是一次性资源，每个结果只能被解析一次。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from condrequest.models import ResponseOutcome
from condrequest.serializer import BaseBodySerializer, JSONBodySerializer

logger = logging.getLogger(__name__)


class BaseResponseParser(ABC):
    """响应解析器基类，定义解析 ResponseOutcome 的接口。"""

    @abstractmethod
    def parse(self, outcome: ResponseOutcome) -> Any:
        """消费响应体并返回所需格式的数据。"""


class ContentResponseParser(BaseResponseParser):
    """解析响应为字节数据"""

    def parse(self, outcome: ResponseOutcome) -> bytes:
        logger.debug("Parsing response as content bytes")
        return outcome.body.read()


class TextResponseParser(BaseResponseParser):
    """解析响应为字符串"""

    def parse(self, outcome: ResponseOutcome) -> str:
        logger.debug("Parsing response as text")
        return outcome.body.text()


class SerializerResponseParser(BaseResponseParser):
    """
    使用请求体序列化器解码响应

    参数:
        body_serializer: 提供 decode 能力的序列化器
    """

    def __init__(self, body_serializer: BaseBodySerializer):
        self.body_serializer = body_serializer

    def parse(self, outcome: ResponseOutcome) -> Any:
        logger.debug(f"Parsing response with {type(self.body_serializer).__name__}")
        return self.body_serializer.decode(outcome.body.read(), outcome.content_type)


class JSONResponseParser(SerializerResponseParser):
    """解析响应为 JSON 数据，空响应体返回 None"""

    def __init__(self, body_serializer: BaseBodySerializer | None = None):
        super().__init__(body_serializer or JSONBodySerializer())
