"""响应期望验证器模块

提供响应状态期望的基类和常用验证器实现，由 ResponseClassifier 在 classify 时调用
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from condrequest.exceptions import PreconditionFailedError, UnexpectedStatusError
from condrequest.models import Classification, ResponseOutcome

logger = logging.getLogger(__name__)


def unexpected_status(outcome: ResponseOutcome, message: str) -> UnexpectedStatusError:
    """
    构造状态不符合预期的异常

    412 且原始请求携带前置条件时返回 PreconditionFailedError，附带前置条件主体
    """
    if outcome.classification is Classification.PRECONDITION_FAILED and outcome.request is not None:
        precondition = outcome.request.precondition
        return PreconditionFailedError(
            f"{message}; precondition {precondition.header_name}: {precondition.header_value} failed",
            response=outcome,
            precondition=precondition,
        )
    return UnexpectedStatusError(message, response=outcome)


class BaseResponseValidator(ABC):
    """
    响应验证器基类

    用于验证响应是否符合预期，不符合时抛出 UnexpectedStatusError
    """

    @abstractmethod
    def validate(self, outcome: ResponseOutcome) -> None:
        """
        验证响应

        异常:
            UnexpectedStatusError: 当验证失败时抛出
        """


class SuccessValidator(BaseResponseValidator):
    """要求响应分类为 Success（2xx）"""

    def validate(self, outcome: ResponseOutcome) -> None:
        if outcome.classification is not Classification.SUCCESS:
            raise unexpected_status(
                outcome,
                f"HTTP {outcome.status_code}: {outcome.reason} (expected success, got {outcome.classification.value})",
            )


class StatusCodeValidator(BaseResponseValidator):
    """
    状态码验证器

    验证响应状态码是否在允许的集合内

    参数:
        allowed_codes: 允许的状态码列表或集合，默认只允许 200

    使用示例:
        >>> validator = StatusCodeValidator(allowed_codes=[200, 201, 204])
        >>> validator.validate(outcome)
    """

    def __init__(self, allowed_codes: Iterable[int] | None = None):
        self.allowed_codes = set(allowed_codes) if allowed_codes else {200}

    def validate(self, outcome: ResponseOutcome) -> None:
        if outcome.status_code not in self.allowed_codes:
            raise unexpected_status(
                outcome,
                f"HTTP {outcome.status_code}: {outcome.reason} (expected one of {sorted(self.allowed_codes)})",
            )
