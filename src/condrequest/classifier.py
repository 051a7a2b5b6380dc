"""响应分类器模块

将状态码转换为结构化的分类标签，并根据调用方的期望抛出类型化异常

分类规则:
    - 100-199: Informational
    - 200-299: Success
    - 304: NotModified，其余 300-399: Redirect
    - 412 且请求携带前置条件: PreconditionFailed，其余 400-499: ClientError
    - 500-599: ServerError
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from condrequest.constants import (
    HEADER_ALLOW,
    MAX_STATUS_CODE,
    MIN_STATUS_CODE,
    STATUS_METHOD_NOT_ALLOWED,
    STATUS_NOT_MODIFIED,
    STATUS_PRECONDITION_FAILED,
)
from condrequest.exceptions import APIClientValidationError, MethodDiscoveryError
from condrequest.models import Classification, ResponseOutcome
from condrequest.utils import split_header_tokens
from condrequest.validator import BaseResponseValidator, StatusCodeValidator, SuccessValidator

logger = logging.getLogger(__name__)


def classify_status(status_code: int, has_precondition: bool = False) -> Classification:
    """
    根据状态码计算分类标签

    异常:
        APIClientValidationError: 状态码不在 100-599 范围内
    """
    if not MIN_STATUS_CODE <= status_code <= MAX_STATUS_CODE:
        raise APIClientValidationError(f"Status code {status_code} is outside the range 100-599")
    if status_code < 200:
        return Classification.INFORMATIONAL
    if status_code < 300:
        return Classification.SUCCESS
    if status_code < 400:
        return Classification.NOT_MODIFIED if status_code == STATUS_NOT_MODIFIED else Classification.REDIRECT
    if status_code < 500:
        if status_code == STATUS_PRECONDITION_FAILED and has_precondition:
            return Classification.PRECONDITION_FAILED
        return Classification.CLIENT_ERROR
    return Classification.SERVER_ERROR


class ResponseClassifier:
    """
    响应分类器

    使用示例:
        >>> classifier = ResponseClassifier()
        >>> classifier.expect_success(outcome)
        >>> classifier.expect_status_in(outcome, {200, 304})
    """

    def classify(
        self,
        outcome: ResponseOutcome,
        expectations: Iterable[BaseResponseValidator] | BaseResponseValidator | None = None,
    ) -> ResponseOutcome:
        """
        校验响应结果的分类并逐个执行期望验证器

        参数:
            outcome: 管道返回的响应结果
            expectations: 单个或多个响应验证器，None 表示不做期望校验

        返回:
            原样返回响应结果（分类保证与状态码一致）

        异常:
            UnexpectedStatusError / PreconditionFailedError: 期望不满足
        """
        has_precondition = outcome.request is not None and outcome.request.precondition is not None
        expected = classify_status(outcome.status_code, has_precondition)
        if outcome.classification is not expected:
            raise APIClientValidationError(
                f"Outcome classification {outcome.classification.value} does not match status "
                f"{outcome.status_code} (expected {expected.value})"
            )

        if expectations is None:
            return outcome
        if isinstance(expectations, BaseResponseValidator):
            expectations = [expectations]

        for validator in expectations:
            validator.validate(outcome)
        return outcome

    def expect_success(self, outcome: ResponseOutcome) -> ResponseOutcome:
        return self.classify(outcome, SuccessValidator())

    def expect_status(self, outcome: ResponseOutcome, code: int) -> ResponseOutcome:
        return self.classify(outcome, StatusCodeValidator([code]))

    def expect_status_in(self, outcome: ResponseOutcome, codes: Iterable[int]) -> ResponseOutcome:
        codes = set(codes)
        if not codes:
            raise APIClientValidationError("expect_status_in requires at least one status code")
        return self.classify(outcome, StatusCodeValidator(codes))

    def allowed_methods(self, outcome: ResponseOutcome) -> list[str]:
        """
        从 OPTIONS 响应中提取允许的方法

        返回:
            Allow 头中的方法令牌，按出现顺序、不区分大小写去重

        异常:
            MethodDiscoveryError: 响应为 405，远端不支持方法发现
        """
        if outcome.status_code == STATUS_METHOD_NOT_ALLOWED:
            raise MethodDiscoveryError(
                "Cannot retrieve allowed HTTP methods: OPTIONS method is not allowed.", response=outcome
            )

        methods: list[str] = []
        seen: set[str] = set()
        for token in split_header_tokens(outcome.header_values(HEADER_ALLOW)):
            if token.upper() not in seen:
                seen.add(token.upper())
                methods.append(token)
        logger.debug(f"Allowed methods for {outcome.url}: {methods}")
        return methods
