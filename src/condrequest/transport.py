"""传输层模块

ExecutionPipeline 依赖的传输协作者。传输层负责所有网络相关配置：超时、TLS 校验、代理、
默认请求头、认证头注入以及连接池和重试策略。

默认实现 RequestsTransport 基于 requests.Session。
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase
from urllib3.util.retry import Retry

from condrequest.constants import (
    CONTENT_TYPE_JSON,
    DEFAULT_POOL_CONFIG,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_CONFIG,
    DEFAULT_TIMEOUT,
    HEADER_ACCEPT,
    HEADER_CONTENT_TYPE,
    HEADER_USER_AGENT,
)
from condrequest.exceptions import APIClientNetworkError, APIClientTimeoutError, APIClientValidationError
from condrequest.models import RequestDescriptor

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """
    传输层基类

    每次调用 send 恰好返回一个原始响应；传输失败以异常形式抛出
    """

    @abstractmethod
    def send(self, descriptor: RequestDescriptor) -> requests.Response:
        """发送请求描述符并返回原始响应"""

    def close(self) -> None:
        """释放传输层资源"""


def build_accept_header(accept: Iterable[str] | None) -> str:
    """以 application/json 开头，追加额外的可接受类型并去重"""
    types = [CONTENT_TYPE_JSON]
    for media_type in accept or ():
        media_type = media_type.strip()
        if media_type and media_type not in types:
            types.append(media_type)
    return ", ".join(types)


def build_user_agent(user_agent: str | None, version: str | None = None) -> str | None:
    if not user_agent:
        return None
    return f"{user_agent}/{version}" if version else user_agent


class RequestsTransport(BaseTransport):
    """
    基于 requests.Session 的传输实现

    参数:
        headers: 默认请求头（会与 Accept / User-Agent 合并）
        timeout: 请求超时时间（秒）
        verify: SSL 证书验证开关，False 表示跳过证书校验
        authentication: requests 认证实例
        enable_retry: 是否启用 urllib3 重试
        max_retries: 最大重试次数
        retry_config: 重试策略配置字典（覆盖默认配置）
        pool_config: 连接池配置字典（覆盖默认配置）
        proxies: 代理配置，如 {"https": "http://proxy:8080"}
        accept: 额外的可接受内容类型
        user_agent: User-Agent 产品名
        user_agent_version: User-Agent 产品版本
        allow_redirects: 是否由 requests 跟随重定向（默认跟随）
        stream: 是否以流式方式读取响应体
    """

    default_timeout: int = DEFAULT_TIMEOUT
    verify: bool = True
    enable_retry: bool = False
    max_retries: int = DEFAULT_RETRIES
    retry_config: dict[str, Any] = DEFAULT_RETRY_CONFIG
    pool_config: dict[str, Any] = DEFAULT_POOL_CONFIG
    allow_redirects: bool = True
    stream: bool = False

    def __init__(
        self,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        verify: bool | None = None,
        authentication: AuthBase | None = None,
        enable_retry: bool | None = None,
        max_retries: int | None = None,
        retry_config: dict[str, Any] | None = None,
        pool_config: dict[str, Any] | None = None,
        proxies: dict[str, str] | None = None,
        accept: Iterable[str] | None = None,
        user_agent: str | None = None,
        user_agent_version: str | None = None,
        allow_redirects: bool | None = None,
        stream: bool | None = None,
    ):
        self.timeout = timeout if timeout is not None else self.default_timeout
        self.verify = verify if verify is not None else self.verify
        self.enable_retry = enable_retry if enable_retry is not None else self.enable_retry
        self.max_retries = max_retries if max_retries is not None else self.max_retries
        self.allow_redirects = allow_redirects if allow_redirects is not None else self.allow_redirects
        self.stream = stream if stream is not None else self.stream
        self.proxies = dict(proxies or {})

        if authentication is not None and not isinstance(authentication, AuthBase):
            raise APIClientValidationError("authentication must be a requests.auth.AuthBase instance")
        self.authentication = authentication

        self.retry_config = {**self.retry_config, **(retry_config or {})}
        if max_retries is not None:
            self.retry_config["total"] = max_retries
        self.pool_config = {**self.pool_config, **(pool_config or {})}

        self.session_headers = {HEADER_ACCEPT: build_accept_header(accept)}
        if agent := build_user_agent(user_agent, user_agent_version):
            self.session_headers[HEADER_USER_AGENT] = agent
        self.session_headers.update(headers or {})

        self.session = self._create_session()
        self._session_lock = threading.RLock()

    def _create_session(self) -> requests.Session:
        """
        创建并配置 requests.Session 对象

        执行步骤:
            1. 创建新的 Session 对象
            2. 设置默认请求头、认证、代理和证书校验
            3. 启用重试时为 HTTP 和 HTTPS 挂载带重试策略的适配器
        """
        session = requests.Session()
        session.headers.update(self.session_headers)
        session.verify = self.verify
        if self.authentication:
            session.auth = self.authentication
        if self.proxies:
            session.proxies.update(self.proxies)

        if self.enable_retry and self.max_retries > 0:
            retry_strategy = Retry(**self.retry_config)
            adapter = HTTPAdapter(max_retries=retry_strategy, **self.pool_config)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        return session

    def build_request_kwargs(self, descriptor: RequestDescriptor) -> dict[str, Any]:
        """将请求描述符转换为 requests.Session.request 参数"""
        headers = descriptor.headers
        if descriptor.body is not None and HEADER_CONTENT_TYPE not in headers:
            headers[HEADER_CONTENT_TYPE] = descriptor.body.content_type

        return {
            "method": descriptor.method,
            "url": descriptor.url,
            # requests 的请求头是普通字典，重复的头合并为逗号分隔的单值
            "headers": dict(headers.itermerged()),
            "data": descriptor.body.content if descriptor.body is not None else None,
            "timeout": self.timeout,
            "allow_redirects": self.allow_redirects,
            "stream": self.stream,
        }

    def send(self, descriptor: RequestDescriptor) -> requests.Response:
        """
        发送请求

        异常:
            APIClientTimeoutError: 请求超时
            APIClientNetworkError: 连接失败、DNS 解析失败等网络异常
        """
        try:
            return self.session.request(**self.build_request_kwargs(descriptor))
        except requests.exceptions.Timeout as e:
            raise APIClientTimeoutError(f"Request to {descriptor.url} timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise APIClientNetworkError(f"Request to {descriptor.url} failed: {e}") from e

    def close(self) -> None:
        with self._session_lock:
            if self.session:
                self.session.close()
                logger.info("Session closed")
