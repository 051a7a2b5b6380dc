"""认证模块

提供基于 requests.auth.AuthBase 的认证实现，以及根据配置选择认证方式的解析函数

认证方式优先级: Bearer Token > Basic（用户名+密码）> 自定义方案
"""

from __future__ import annotations

import logging

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from condrequest.constants import AUTH_SCHEME_BEARER, HEADER_AUTHORIZATION

logger = logging.getLogger(__name__)


class SchemeAuth(AuthBase):
    """
    自定义方案认证

    为每个请求设置 Authorization: <scheme> <credentials>

    参数:
        scheme: 认证方案名称（如 Token、ApiKey）
        credentials: 认证凭据
    """

    def __init__(self, scheme: str, credentials: str):
        self.scheme = scheme
        self.credentials = credentials

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers[HEADER_AUTHORIZATION] = f"{self.scheme} {self.credentials}"
        return request

    def __eq__(self, other):
        return (
            isinstance(other, SchemeAuth)
            and type(self) is type(other)
            and (self.scheme, self.credentials) == (other.scheme, other.credentials)
        )

    def __ne__(self, other):
        return not self == other


class BearerTokenAuth(SchemeAuth):
    """Bearer Token 认证"""

    def __init__(self, token: str):
        super().__init__(AUTH_SCHEME_BEARER, token)


def resolve_authentication(
    bearer_token: str | None = None,
    username: str | None = None,
    password: str | None = None,
    custom_scheme: str | None = None,
    custom_credentials: str | None = None,
) -> AuthBase | None:
    """
    根据配置选择认证方式

    返回:
        AuthBase 实例；配置不完整或未配置时返回 None
    """
    if bearer_token:
        return BearerTokenAuth(bearer_token)
    if username:
        if password:
            return HTTPBasicAuth(username, password)
        logger.warning("Basic authentication requested without a password; no Authorization header will be sent")
        return None
    if custom_scheme:
        if custom_credentials:
            return SchemeAuth(custom_scheme, custom_credentials)
        logger.warning(f"Custom authentication scheme {custom_scheme} has no credentials; skipping")
    return None
