"""
统一异常处理器，挂在 settings.REST_FRAMEWORK['EXCEPTION_HANDLER'] 上。

前端只看一个字段：响应里有 type 就是出错了，没有就是成功。
不管错误来自 service 层（BaseAppException）还是 DRF 自己（JSON 解析失败、
405、415 ...），都渲染成同一个信封：

{
    "type":    "block",
    "code":    "BENEFIT_EXHAUSTED",
    "message": "This benefit has been fully used for the year.",
    "detail":  { ... }  // 可选
}

非 API 异常（代码 bug）返回 None，交给 Django 走 500，不在这里吞掉。
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse
from rest_framework import exceptions as drf_exceptions
from rest_framework.views import set_rollback

from .exceptions import BaseAppException

logger = logging.getLogger(__name__)

# DRF 异常 → (type, code)；没列出来的按 request_error + default_code 处理
DRF_ERROR_TYPES = {
    drf_exceptions.ValidationError: ('validation_error', 'VALIDATION_ERROR'),
    drf_exceptions.ParseError: ('validation_error', 'INVALID_PAYLOAD'),
    drf_exceptions.NotFound: ('not_found', 'NOT_FOUND'),
}


def _envelope(error_type, code, message, detail=None, status=400, headers=None):
    body = {'type': error_type, 'code': code, 'message': message}
    if detail is not None:
        body['detail'] = detail
    response = JsonResponse(body, status=status)
    for name, value in (headers or {}).items():
        response[name] = value
    return response


def _from_app_exception(exc):
    # persistence 是基础设施问题，其他都是用户可修正的输入 / 状态
    log = logger.warning if exc.type == 'persistence' else logger.info
    log("[%s] %s: %s", exc.type, exc.code, exc.message)
    return _envelope(exc.type, exc.code, exc.message, exc.detail, exc.http_status)


def _from_drf_exception(exc):
    error_type, code = 'request_error', str(exc.default_code).upper()
    for exc_class, mapped in DRF_ERROR_TYPES.items():
        if isinstance(exc, exc_class):
            error_type, code = mapped
            break

    if isinstance(exc, drf_exceptions.ValidationError):
        message, detail = 'Request validation failed.', exc.detail
    else:
        message, detail = str(exc.detail), None

    headers = {}
    if getattr(exc, 'auth_header', None):
        headers['WWW-Authenticate'] = exc.auth_header
    if getattr(exc, 'wait', None):
        headers['Retry-After'] = '%d' % exc.wait

    logger.info("[%s] %s: %s", error_type, code, message)
    return _envelope(error_type, code, message, detail, exc.status_code, headers)


def unified_exception_handler(exc, context):
    """DRF exception handler entry point."""
    if isinstance(exc, BaseAppException):
        set_rollback()
        return _from_app_exception(exc)

    # 和 DRF 默认处理器一样，先把 Django 原生的 404 / 403 转成 API 异常
    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound(*exc.args)
    elif isinstance(exc, PermissionDenied):
        exc = drf_exceptions.PermissionDenied(*exc.args)

    if isinstance(exc, drf_exceptions.APIException):
        set_rollback()
        return _from_drf_exception(exc)

    return None
