"""
Best-effort key-value 存储（get / set / remove），底层是 Django cache framework。

- 不是权威数据源：数据库才是。这里只放会话间需要保留的快照
  （例如 client_<orderNumber> 注册快照）
- 读不到或后端出错 → 返回 default
- 写失败 → 记日志返回 False；strict=True 时抛 PersistenceError（给重试任务用）
"""

import logging

from django.conf import settings
from django.core.cache import cache

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

KEY_PREFIX = 'loyalty:'


def _key(key):
    return f'{KEY_PREFIX}{key}'


def _timeout():
    # None = 永不过期
    return getattr(settings, 'LOYALTY_STORAGE_TIMEOUT', None)


def get_value(key, default=None):
    try:
        value = cache.get(_key(key))
    except Exception as exc:
        logger.warning("[storage] read %s failed: %s", key, exc)
        return default
    return default if value is None else value


def set_value(key, value, strict=False):
    try:
        cache.set(_key(key), value, timeout=_timeout())
        return True
    except Exception as exc:
        if strict:
            raise PersistenceError(
                message=f'Failed to persist {key!r}.',
                detail={'key': key, 'error': str(exc)},
            ) from exc
        logger.warning("[storage] write %s failed: %s", key, exc)
        return False


def remove_value(key):
    try:
        cache.delete(_key(key))
        return True
    except Exception as exc:
        logger.warning("[storage] remove %s failed: %s", key, exc)
        return False
