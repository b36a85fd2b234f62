"""
Unit tests for the Celery snapshot task.

直接调用 task 函数（同步执行，不经过 broker），
重试路径用 .apply() 模拟 retries 计数。
"""
import pytest
from unittest.mock import patch

from celery.exceptions import Retry

from loyalty.exceptions import PersistenceError
from loyalty.storage import get_value
from loyalty.tasks import persist_client_snapshot
from tests.conftest import ClientRecordFactory


@pytest.mark.django_db
class TestPersistClientSnapshot:

    def test_writes_snapshot_without_password(self):
        client = ClientRecordFactory(order_number='ORD-7001', has_registered=True, password='hashed')

        key = persist_client_snapshot(client.id)

        assert key == 'client_ORD-7001'
        snapshot = get_value('client_ORD-7001')
        assert snapshot['order_number'] == 'ORD-7001'
        assert snapshot['has_registered'] is True
        assert 'password' not in snapshot

    def test_missing_client_is_skipped(self):
        assert persist_client_snapshot(999999) is None

    @patch('loyalty.storage.set_value')
    def test_failure_schedules_retry_with_backoff(self, mock_set):
        mock_set.side_effect = PersistenceError('down')
        client = ClientRecordFactory()

        with patch.object(persist_client_snapshot, 'retry', side_effect=Retry()) as mock_retry:
            with pytest.raises(Retry):
                persist_client_snapshot(client.id)

        assert mock_retry.call_args.kwargs['countdown'] == 10

    @patch('loyalty.storage.set_value')
    def test_gives_up_after_max_retries(self, mock_set, caplog):
        mock_set.side_effect = PersistenceError('down')
        client = ClientRecordFactory()

        result = persist_client_snapshot.apply(args=(client.id,), retries=3)

        assert result.result is None
        assert '已达最大重试次数' in caplog.text
