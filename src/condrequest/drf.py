"""
DRF 实体校验模块

使用 Django REST Framework 的 Serializer 对发送的实体和解码后的响应实体进行字段级校验，
相当于为 JSON 实体提供类型约束。

注意:
    使用前需要完成 Django 配置（settings.configure() + django.setup()）

使用示例:
    from rest_framework import serializers

    class WidgetSerializer(serializers.Serializer):
        id = serializers.IntegerField(required=False)
        name = serializers.CharField(max_length=100)

    client.send_entity("PUT", {"name": "widget"}, "/widgets/1",
                       body_serializer=DRFEntitySerializer(WidgetSerializer))
    widget = client.get_entity("/widgets/1", parser=DRFEntityParser(WidgetSerializer))
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from condrequest.exceptions import (
    APIClientRequestValidationError,
    APIClientResponseValidationError,
    APIClientValidationError,
)
from condrequest.models import RequestBody, ResponseOutcome
from condrequest.parser import BaseResponseParser
from condrequest.serializer import JSONBodySerializer


def _resolve_serializer_class(source) -> type[serializers.Serializer]:
    """接受 DRF Serializer 类或实例，返回类"""
    if isinstance(source, type) and issubclass(source, serializers.Serializer):
        return source
    if isinstance(source, serializers.Serializer):
        return source.__class__
    raise APIClientValidationError(
        f"serializer_class must be a DRF Serializer class or instance, got {type(source).__name__}"
    )


class DRFEntitySerializer(JSONBodySerializer):
    """
    带 DRF 校验的 JSON 序列化器

    参数:
        serializer_class: DRF Serializer 类或实例
        many: 是否为实体列表
    """

    def __init__(self, serializer_class, many: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.serializer_class = _resolve_serializer_class(serializer_class)
        self.many = many

    def encode(self, value: Any) -> RequestBody:
        serializer = self.serializer_class(data=value, many=self.many)
        if not serializer.is_valid():
            raise APIClientRequestValidationError("请求实体验证失败", errors=_plain(serializer.errors))
        return super().encode(serializer.data)

    def decode(self, content: bytes, content_type: str | None = None) -> Any:
        value = super().decode(content, content_type)
        if value is None:
            return None
        serializer = self.serializer_class(data=value, many=self.many)
        if not serializer.is_valid():
            raise APIClientResponseValidationError(
                "响应实体验证失败", validation_result={"errors": _plain(serializer.errors)}
            )
        return serializer.validated_data


class DRFEntityParser(BaseResponseParser):
    """
    使用 DRF Serializer 校验并解码响应实体

    参数:
        serializer_class: DRF Serializer 类或实例
        many: 响应是否为实体列表
    """

    def __init__(self, serializer_class, many: bool = False):
        self.entity_serializer = DRFEntitySerializer(serializer_class, many=many)

    def parse(self, outcome: ResponseOutcome) -> Any:
        try:
            return self.entity_serializer.decode(outcome.body.read(), outcome.content_type)
        except APIClientResponseValidationError as e:
            e.response = outcome
            raise


def _plain(errors) -> Any:
    """把 DRF 的 ReturnDict / ReturnList / ErrorDetail 转换为普通的 dict / list / str"""
    if isinstance(errors, dict):
        return {key: _plain(value) for key, value in errors.items()}
    if isinstance(errors, list):
        return [_plain(item) for item in errors]
    return str(errors)
