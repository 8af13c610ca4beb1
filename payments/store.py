import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction as db_transaction
from django.utils import timezone

from .errors import NotFoundError, PersistenceError
from .models import Transaction

logger = logging.getLogger(__name__)


class TransactionStore:
    """Persistence for :class:`Transaction` records.

    Records are only ever moved out of ``pending`` once: updates are issued
    as a single conditional ``UPDATE ... WHERE status = 'pending'`` so a
    duplicate callback cannot overwrite an earlier resolution.
    """

    model = Transaction

    def create(self, **fields):
        fields.setdefault('status', Transaction.Status.PENDING)
        try:
            return self.model.objects.create(**fields)
        except DatabaseError as e:
            raise PersistenceError(f"Failed to save transaction: {e}") from e

    def get(self, payment_id):
        try:
            return self.model.objects.get(id=payment_id)
        except (self.model.DoesNotExist, ValidationError):
            raise NotFoundError(f"Transaction {payment_id} not found")
        except DatabaseError as e:
            raise PersistenceError(f"Failed to load transaction {payment_id}: {e}") from e

    def find_and_update_by_key(self, key, **patch):
        """Apply ``patch`` to the pending record whose checkout id is ``key``.

        Returns ``(record, applied)``; ``applied`` is False when the record
        had already left ``pending`` and was left untouched.
        """
        if not key:
            raise NotFoundError("Missing correlation key")
        try:
            with db_transaction.atomic():
                applied = self.model.objects.filter(
                    checkout_request_id=key,
                    status=Transaction.Status.PENDING,
                ).update(updated_at=timezone.now(), **patch)
                record = self.model.objects.filter(checkout_request_id=key).first()
        except DatabaseError as e:
            raise PersistenceError(f"Failed to update transaction {key}: {e}") from e

        if record is None:
            raise NotFoundError(f"No transaction with CheckoutRequestID {key}")
        if not applied:
            logger.warning(
                "Transaction %s already %s; ignoring update for %s", record.id, record.status, key
            )
        return record, bool(applied)
