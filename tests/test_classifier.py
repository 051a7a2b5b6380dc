"""
classifier.py 模块的单元测试

测试用例:
- 状态码分类规则（全范围）
- classify 的分类一致性校验与期望执行
- expect_success / expect_status / expect_status_in
- 412 附带前置条件主体
- allowed_methods 的 Allow 头解析与 405 处理
"""

from datetime import datetime, timezone

import pytest

from condrequest.classifier import ResponseClassifier, classify_status
from condrequest.exceptions import (
    APIClientValidationError,
    MethodDiscoveryError,
    PreconditionFailedError,
    UnexpectedStatusError,
)
from condrequest.models import Classification, RequestDescriptor, ResponseOutcome
from condrequest.preconditions import IfNoneMatch, IfUnmodifiedSince
from condrequest.validator import StatusCodeValidator

URL = "https://api.example.com/widgets/1"


def make_outcome(make_response, status_code, headers=None, precondition=None, reason=None):
    """按真实分类规则构造 ResponseOutcome"""
    request = RequestDescriptor(method="GET", url=URL, precondition=precondition)
    response = make_response(status_code, headers, url=URL, reason=reason)
    return ResponseOutcome.from_response(response, request, classify_status(status_code, precondition is not None))


@pytest.fixture
def classifier():
    return ResponseClassifier()


class TestClassifyStatus:
    """测试 classify_status 分类规则"""

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", range(100, 200))
    def test_informational(self, status_code):
        assert classify_status(status_code) is Classification.INFORMATIONAL

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", range(200, 300))
    def test_success(self, status_code):
        assert classify_status(status_code) is Classification.SUCCESS
        assert classify_status(status_code, has_precondition=True) is Classification.SUCCESS

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [s for s in range(300, 400) if s != 304])
    def test_redirect(self, status_code):
        assert classify_status(status_code) is Classification.REDIRECT

    @pytest.mark.unit
    @pytest.mark.parametrize("has_precondition", [True, False])
    def test_not_modified(self, has_precondition):
        assert classify_status(304, has_precondition) is Classification.NOT_MODIFIED

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", range(400, 500))
    def test_client_error_without_precondition(self, status_code):
        assert classify_status(status_code) is Classification.CLIENT_ERROR

    @pytest.mark.unit
    def test_precondition_failed_requires_precondition(self):
        assert classify_status(412, has_precondition=True) is Classification.PRECONDITION_FAILED
        assert classify_status(412, has_precondition=False) is Classification.CLIENT_ERROR
        assert classify_status(409, has_precondition=True) is Classification.CLIENT_ERROR

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", range(500, 600))
    def test_server_error(self, status_code):
        assert classify_status(status_code) is Classification.SERVER_ERROR

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [0, 99, 600, 999])
    def test_out_of_range_raises(self, status_code):
        with pytest.raises(APIClientValidationError, match="outside the range"):
            classify_status(status_code)


class TestClassify:
    """测试 classify 方法"""

    @pytest.mark.unit
    def test_returns_outcome_without_expectations(self, classifier, make_response):
        """未声明期望时任何状态都原样返回"""
        outcome = make_outcome(make_response, 500)

        assert classifier.classify(outcome) is outcome

    @pytest.mark.unit
    def test_inconsistent_classification_raises(self, classifier, make_response):
        outcome = ResponseOutcome(
            status_code=200, reason="OK", content_type=None, classification=Classification.SERVER_ERROR, url=URL
        )

        with pytest.raises(APIClientValidationError, match="does not match status"):
            classifier.classify(outcome)

    @pytest.mark.unit
    def test_runs_validator_list(self, classifier, make_response):
        outcome = make_outcome(make_response, 201)

        assert classifier.classify(outcome, [StatusCodeValidator([200, 201])]) is outcome
        with pytest.raises(UnexpectedStatusError):
            classifier.classify(outcome, StatusCodeValidator([200]))


class TestExpectations:
    """测试 expect_* 辅助方法"""

    @pytest.mark.unit
    def test_expect_success_passes(self, classifier, make_response):
        outcome = make_outcome(make_response, 204)

        assert classifier.expect_success(outcome) is outcome

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [304, 404, 503])
    def test_expect_success_fails(self, classifier, make_response, status_code):
        # Arrange
        outcome = make_outcome(make_response, status_code)

        # Act
        with pytest.raises(UnexpectedStatusError) as exc_info:
            classifier.expect_success(outcome)

        # Assert
        assert exc_info.value.status_code == status_code
        assert exc_info.value.reason == outcome.reason
        assert exc_info.value.response is outcome

    @pytest.mark.unit
    def test_expect_status(self, classifier, make_response):
        outcome = make_outcome(make_response, 201)

        assert classifier.expect_status(outcome, 201) is outcome
        with pytest.raises(UnexpectedStatusError, match="HTTP 201"):
            classifier.expect_status(outcome, 200)

    @pytest.mark.unit
    def test_expect_status_in(self, classifier, make_response):
        outcome = make_outcome(make_response, 304, precondition=IfNoneMatch("abc123"))

        assert classifier.expect_status_in(outcome, {200, 304}) is outcome
        with pytest.raises(UnexpectedStatusError):
            classifier.expect_status_in(outcome, [200])

    @pytest.mark.unit
    def test_expect_status_in_empty_raises(self, classifier, make_response):
        with pytest.raises(APIClientValidationError, match="at least one"):
            classifier.expect_status_in(make_outcome(make_response, 200), [])


class TestPreconditionFailure:
    """测试 412 前置条件失败"""

    @pytest.mark.unit
    def test_if_none_match_subject_attached(self, classifier, make_response):
        outcome = make_outcome(make_response, 412, precondition=IfNoneMatch("abc123"))

        with pytest.raises(PreconditionFailedError) as exc_info:
            classifier.expect_success(outcome)

        assert exc_info.value.subject == "abc123"
        assert exc_info.value.precondition == IfNoneMatch("abc123")
        assert exc_info.value.status_code == 412
        assert "If-None-Match" in str(exc_info.value)

    @pytest.mark.unit
    def test_if_unmodified_since_subject_attached(self, classifier, make_response):
        timestamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        outcome = make_outcome(make_response, 412, precondition=IfUnmodifiedSince(timestamp))

        with pytest.raises(PreconditionFailedError) as exc_info:
            classifier.expect_status(outcome, 200)

        assert exc_info.value.subject == timestamp

    @pytest.mark.unit
    def test_412_without_precondition_is_plain_unexpected_status(self, classifier, make_response):
        outcome = make_outcome(make_response, 412)

        with pytest.raises(UnexpectedStatusError) as exc_info:
            classifier.expect_success(outcome)

        assert not isinstance(exc_info.value, PreconditionFailedError)


class TestAllowedMethods:
    """测试 allowed_methods 方法"""

    @pytest.mark.unit
    def test_splits_and_deduplicates_case_insensitively(self, classifier, make_response):
        outcome = make_outcome(make_response, 200, [("Allow", "GET, POST, get"), ("Allow", "OPTIONS, post")])

        assert classifier.allowed_methods(outcome) == ["GET", "POST", "OPTIONS"]

    @pytest.mark.unit
    def test_missing_allow_header(self, classifier, make_response):
        assert classifier.allowed_methods(make_outcome(make_response, 204)) == []

    @pytest.mark.unit
    def test_405_raises_method_discovery_error(self, classifier, make_response):
        """405 不返回空列表，而是抛出 MethodDiscoveryError"""
        outcome = make_outcome(make_response, 405, [("Allow", "GET")])

        with pytest.raises(MethodDiscoveryError) as exc_info:
            classifier.allowed_methods(outcome)

        assert exc_info.value.status_code == 405
