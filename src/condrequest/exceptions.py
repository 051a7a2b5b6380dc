"""
HTTP 客户端异常模块

定义条件请求引擎相关的异常类，提供统一的错误处理机制

异常层级:
    APIClientError
    ├── APIClientValidationError
    │   └── UrlResolutionError
    ├── APIClientNetworkError
    ├── APIClientTimeoutError
    ├── APIClientHTTPError
    │   ├── UnexpectedStatusError
    │   │   └── PreconditionFailedError
    │   └── MethodDiscoveryError
    ├── APIClientRequestValidationError
    ├── APIClientResponseValidationError
    └── BodyConsumedError
"""

from __future__ import annotations

from typing import Any


class APIClientError(Exception):
    """
    API 客户端异常基类

    所有自定义异常的基类，用于统一捕获和处理客户端相关错误
    """


class APIClientValidationError(APIClientError):
    """
    输入验证异常

    当请求参数、配置等输入数据验证失败时抛出此异常
    """


class UrlResolutionError(APIClientValidationError):
    """
    URL 解析异常

    当目标 URL 为相对路径但未配置 base_url，或拼接结果不是合法的绝对 URL 时抛出

    属性:
        url: 调用方传入的原始 URL
        base_url: 当前配置的基础 URL
    """

    def __init__(self, message: str, url: str | None = None, base_url: str | None = None):
        super().__init__(message)
        self.url = url
        self.base_url = base_url


class APIClientNetworkError(APIClientError):
    """
    网络连接异常

    当网络连接失败、DNS 解析失败等网络层面问题时由传输层抛出
    """


class APIClientTimeoutError(APIClientError):
    """
    请求超时异常

    当请求执行时间超过传输层设定的超时时间时抛出
    """


class APIClientHTTPError(APIClientError):
    """
    HTTP 状态异常基类

    参数:
        message: 错误描述信息
        response: 响应对象（ResponseOutcome 或 requests.Response，可选）

    属性:
        response: 保存原始响应对象，便于获取详细错误信息
        status_code: HTTP 状态码
        reason: 状态描述
    """

    def __init__(self, message: str, response: Any = None):
        super().__init__(message)
        self.response = response
        self.status_code = getattr(response, "status_code", None) if response is not None else None
        self.reason = getattr(response, "reason", None) if response is not None else None


class UnexpectedStatusError(APIClientHTTPError):
    """
    状态码不符合预期异常

    当调用方通过 expect_* 系列方法声明了期望，而响应状态不满足时抛出
    """


class PreconditionFailedError(UnexpectedStatusError):
    """
    前置条件失败异常（412）

    携带原始请求的前置条件，以便调用方报告具体是哪个 ETag 或时间戳未匹配

    属性:
        precondition: 原始请求携带的前置条件对象
        subject: 前置条件的主体（实体标签字符串或时间戳）
    """

    def __init__(self, message: str, response: Any = None, precondition: Any = None):
        super().__init__(message, response=response)
        self.precondition = precondition
        self.subject = getattr(precondition, "subject", None)


class MethodDiscoveryError(APIClientHTTPError):
    """
    方法发现异常

    当 OPTIONS 请求返回 405，表示远端不支持方法发现（含 CORS 预检）时抛出
    """


class APIClientRequestValidationError(APIClientError):
    """
    请求实体验证异常

    当请求实体不符合序列化器定义的验证规则时抛出

    属性:
        errors: 验证失败的详细错误信息，格式为 {field_name: [error_messages]}
    """

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class APIClientResponseValidationError(APIClientError):
    """
    响应实体验证异常

    当解码后的响应实体不符合预期的验证规则时抛出

    属性:
        response: 保存原始响应对象
        validation_result: 验证失败的详细信息
    """

    def __init__(
        self,
        message: str,
        response: Any = None,
        validation_result: dict | None = None,
    ):
        super().__init__(message)
        self.response = response
        self.validation_result = validation_result or {}


class BodyConsumedError(APIClientError):
    """
    响应体重复读取异常

    响应体是一次性资源，底层流被读取后再次读取时抛出，而不是静默返回空内容
    """
