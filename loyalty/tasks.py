import logging
from celery import shared_task

from loyalty.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # 初始重试延迟（秒），指数退避会乘以 2^retry_count
    acks_late=True,           # 任务执行完才 ack，防止 worker 崩溃时任务丢失
    reject_on_worker_lost=True,
)
def persist_client_snapshot(self, client_id: int):
    """
    把名单客户的注册快照写入 best-effort 存储（key = client_<orderNumber>）。

    在注册事务提交之后由 transaction.on_commit 派发，所以数据库状态已经确定；
    这里失败只会重试，永远不会回滚注册本身。

    重试策略：
      - 最多重试 3 次
      - 指数退避：10s → 20s → 40s
      - 超出次数后记 error 日志，数据库仍是权威数据
    """
    from loyalty.models import ClientRecord
    from loyalty.serializers import serialize_client_snapshot
    from loyalty.storage import set_value

    logger.info("[Celery][persist_client_snapshot] client_id=%s (attempt %d/%d)",
                client_id, self.request.retries + 1, self.max_retries + 1)

    try:
        client = ClientRecord.objects.get(id=client_id)
    except ClientRecord.DoesNotExist:
        logger.error("[Celery] ClientRecord %s 不存在，跳过", client_id)
        return None  # 不重试，直接结束

    key = f"client_{client.order_number}"
    try:
        set_value(key, serialize_client_snapshot(client), strict=True)
    except PersistenceError as exc:
        logger.warning(
            "[Celery] client_id=%s 快照写入失败 (attempt %d): %s",
            client_id, self.request.retries + 1, exc.message,
        )

        if self.request.retries < self.max_retries:
            # 指数退避：countdown = 10 * 2^retries → 10s, 20s, 40s
            countdown = self.default_retry_delay * (2 ** self.request.retries)
            logger.info("[Celery] 将在 %ds 后重试 (第 %d 次)...", countdown, self.request.retries + 1)
            raise self.retry(exc=exc, countdown=countdown)

        logger.error("[Celery] client_id=%s 已达最大重试次数，快照未写入", client_id)
        return None

    logger.info("[Celery] client_id=%s 快照写入完成 key=%s", client_id, key)
    return key
