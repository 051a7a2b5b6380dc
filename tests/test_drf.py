"""
drf.py 模块的单元测试

测试 DRF Serializer 集成:
- 发送实体的字段验证
- 实体列表验证 (many=True)
- 响应实体验证与错误详情
- 非法 serializer_class 配置
"""

import pytest
from rest_framework import serializers

from condrequest.classifier import classify_status
from condrequest.drf import DRFEntityParser, DRFEntitySerializer
from condrequest.exceptions import (
    APIClientRequestValidationError,
    APIClientResponseValidationError,
    APIClientValidationError,
)
from condrequest.models import ResponseOutcome


class WidgetSerializer(serializers.Serializer):
    """测试用的实体序列化器"""

    id = serializers.IntegerField(required=False)
    name = serializers.CharField(max_length=20)
    price = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)

    def validate_name(self, value):
        if value.lower() == "forbidden":
            raise serializers.ValidationError("名称不可用")
        return value


class TestDRFEntitySerializer:
    """测试 DRFEntitySerializer"""

    @pytest.mark.unit
    def test_encode_valid_entity(self):
        # Arrange
        serializer = DRFEntitySerializer(WidgetSerializer)

        # Act
        body = serializer.encode({"name": "widget", "price": "9.5"})

        # Assert
        assert body.content_type == "application/json"
        assert body.content == b'{"name": "widget", "price": "9.50"}'

    @pytest.mark.unit
    def test_encode_invalid_entity_raises(self):
        serializer = DRFEntitySerializer(WidgetSerializer)

        with pytest.raises(APIClientRequestValidationError) as exc_info:
            serializer.encode({"price": "abc"})

        assert set(exc_info.value.errors) == {"name", "price"}
        assert all(isinstance(message, str) for message in exc_info.value.errors["name"])

    @pytest.mark.unit
    def test_custom_field_validation(self):
        with pytest.raises(APIClientRequestValidationError) as exc_info:
            DRFEntitySerializer(WidgetSerializer).encode({"name": "forbidden"})

        assert exc_info.value.errors == {"name": ["名称不可用"]}

    @pytest.mark.unit
    def test_encode_many(self):
        body = DRFEntitySerializer(WidgetSerializer, many=True).encode([{"name": "a"}, {"name": "b"}])

        assert body.content == b'[{"name": "a"}, {"name": "b"}]'

    @pytest.mark.unit
    def test_accepts_serializer_instance(self):
        assert DRFEntitySerializer(WidgetSerializer()).serializer_class is WidgetSerializer

    @pytest.mark.unit
    def test_invalid_serializer_class(self):
        with pytest.raises(APIClientValidationError, match="DRF Serializer"):
            DRFEntitySerializer(dict)

    @pytest.mark.unit
    def test_decode_valid(self):
        entity = DRFEntitySerializer(WidgetSerializer).decode(b'{"id": 3, "name": "widget"}')

        assert entity == {"id": 3, "name": "widget"}

    @pytest.mark.unit
    def test_decode_empty(self):
        assert DRFEntitySerializer(WidgetSerializer).decode(b"") is None


class TestDRFEntityParser:
    """测试 DRFEntityParser"""

    @pytest.mark.unit
    def test_parse_valid(self, make_response):
        response = make_response(200, {"Content-Type": "application/json"}, b'[{"id": 1, "name": "a"}]')
        outcome = ResponseOutcome.from_response(response, None, classify_status(200))

        entities = DRFEntityParser(WidgetSerializer, many=True).parse(outcome)

        assert [dict(entity) for entity in entities] == [{"id": 1, "name": "a"}]

    @pytest.mark.unit
    def test_parse_invalid_attaches_outcome(self, make_response):
        # Arrange
        response = make_response(200, {"Content-Type": "application/json"}, b'{"id": "x"}')
        outcome = ResponseOutcome.from_response(response, None, classify_status(200))

        # Act
        with pytest.raises(APIClientResponseValidationError) as exc_info:
            DRFEntityParser(WidgetSerializer).parse(outcome)

        # Assert
        assert exc_info.value.response is outcome
        assert set(exc_info.value.validation_result["errors"]) == {"id", "name"}
