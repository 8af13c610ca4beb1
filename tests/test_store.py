import uuid
from decimal import Decimal

import pytest

from payments.errors import NotFoundError
from payments.models import Transaction
from payments.store import TransactionStore

pytestmark = pytest.mark.django_db


def _create(store, checkout_id='ws_CO_1'):
    return store.create(
        user_id='u1',
        phone='254712345678',
        amount=Decimal('500'),
        checkout_request_id=checkout_id,
    )


def test_create_assigns_id_and_pending_status():
    store = TransactionStore()
    first = _create(store, 'ws_CO_1')
    second = _create(store, 'ws_CO_2')

    assert first.id != second.id
    assert first.status == Transaction.Status.PENDING
    assert first.created_at is not None
    assert store.get(first.id) == first


def test_get_unknown_id():
    with pytest.raises(NotFoundError):
        TransactionStore().get(uuid.uuid4())


def test_get_malformed_id():
    with pytest.raises(NotFoundError):
        TransactionStore().get('not-a-uuid')


def test_update_pending_record():
    store = TransactionStore()
    record = _create(store)

    updated, applied = store.find_and_update_by_key(
        'ws_CO_1', status=Transaction.Status.SUCCESS, transaction_id='ABC123'
    )

    assert applied
    assert updated.id == record.id
    assert updated.status == Transaction.Status.SUCCESS
    assert updated.transaction_id == 'ABC123'
    assert updated.updated_at >= record.updated_at


def test_resolved_record_is_not_overwritten():
    store = TransactionStore()
    _create(store)
    store.find_and_update_by_key('ws_CO_1', status=Transaction.Status.SUCCESS, transaction_id='ABC123')

    record, applied = store.find_and_update_by_key('ws_CO_1', status=Transaction.Status.FAILED)

    assert not applied
    assert record.status == Transaction.Status.SUCCESS
    assert record.transaction_id == 'ABC123'


def test_update_unknown_key():
    store = TransactionStore()
    _create(store)

    with pytest.raises(NotFoundError):
        store.find_and_update_by_key('ws_CO_missing', status=Transaction.Status.FAILED)
    assert Transaction.objects.get().status == Transaction.Status.PENDING


def test_update_without_key():
    with pytest.raises(NotFoundError):
        TransactionStore().find_and_update_by_key(None, status=Transaction.Status.FAILED)
