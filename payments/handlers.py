import logging
import math
import numbers
from decimal import Decimal

from .callbacks import parse_stk_callback
from .errors import (
    CallbackProcessingError,
    InitiationFailedError,
    NotFoundError,
    PaymentError,
    PaymentValidationError,
    TransactionConflictError,
)
from .models import Transaction
from .store import TransactionStore

logger = logging.getLogger(__name__)

# Daraja only charges whole shillings, up to its per-transaction limit
MIN_AMOUNT = 1
MAX_AMOUNT = 250000

# STK query result codes that settle a transaction as failed
QUERY_FAILED_CODES = {'1', '2', '1032', '1037', '2001'}


def validate_initiation(data):
    if not isinstance(data, dict):
        raise PaymentValidationError("Request body must be a JSON object")
    user_id = data.get('userId')
    phone = data.get('phone')
    amount = data.get('amount')

    if not isinstance(user_id, str) or not user_id.strip():
        raise PaymentValidationError("userId is required")
    if not isinstance(phone, str) or not phone.strip():
        raise PaymentValidationError("phone is required in MSISDN format e.g. 2547XXXXXXXX")
    if isinstance(amount, bool) or not isinstance(amount, numbers.Real):
        raise PaymentValidationError("amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise PaymentValidationError("amount must be positive")
    if amount != int(amount):
        raise PaymentValidationError("amount must be a whole number")
    if not MIN_AMOUNT <= amount <= MAX_AMOUNT:
        raise PaymentValidationError(f"amount must be between {MIN_AMOUNT} and {MAX_AMOUNT}")
    return user_id.strip(), phone.strip(), int(amount)


def initiate_payment(client, user_id, phone, amount, store=None):
    """Trigger an STK push and record the pending transaction.

    The record is written only after Daraja accepts the push, keyed by the
    ``CheckoutRequestID`` it returns. Every failure surfaces as
    :class:`InitiationFailedError`.
    """
    store = store or TransactionStore()
    reference = f"{client.config.account_reference}-{user_id}"
    try:
        body = client.initiate(phone=phone, amount=amount, reference=reference)
        return store.create(
            user_id=user_id,
            phone=phone,
            amount=Decimal(amount),
            merchant_request_id=body.get('MerchantRequestID'),
            checkout_request_id=body.get('CheckoutRequestID'),
        )
    except PaymentError as e:
        logger.error("STK push for user %s failed: %s: %s", user_id, type(e).__name__, e)
        raise InitiationFailedError("STK Push failed") from e


def process_callback(payload, store=None):
    """Resolve the pending transaction a Daraja callback reports on.

    Returns ``(record, applied)``. Raises :class:`CallbackProcessingError`
    for malformed payloads and unknown checkout ids.
    """
    store = store or TransactionStore()
    callback = parse_stk_callback(payload)
    patch = {
        'status': callback.status,
        'result_code': str(callback.result_code),
        'result_desc': callback.result_desc,
        'raw_callback': payload,
    }
    if callback.receipt:
        patch['transaction_id'] = str(callback.receipt)

    try:
        record, applied = store.find_and_update_by_key(callback.checkout_request_id, **patch)
    except NotFoundError as e:
        raise CallbackProcessingError(str(e)) from e

    if applied:
        logger.info(
            "Transaction %s resolved as %s (receipt=%s)", record.id, record.status, record.transaction_id
        )
    return record, applied


def query_payment(client, payment_id, store=None):
    """Poll Daraja for a pending transaction and settle it if final.

    Returns ``(record, body)`` where ``body`` is the raw STK query response.
    """
    store = store or TransactionStore()
    record = store.get(payment_id)
    if record.is_resolved:
        raise TransactionConflictError(f"Transaction {record.id} is already {record.status}")
    if not record.checkout_request_id:
        raise TransactionConflictError("Cannot query status: missing CheckoutRequestID on this transaction.")

    body = client.query(record.checkout_request_id)
    result_code = str(body.get('ResultCode'))
    if result_code == '0':
        status = Transaction.Status.SUCCESS
    elif result_code in QUERY_FAILED_CODES:
        status = Transaction.Status.FAILED
    else:
        logger.info("STK query for %s returned %s; still pending", record.id, result_code)
        return record, body

    record, _ = store.find_and_update_by_key(
        record.checkout_request_id,
        status=status,
        result_code=result_code,
        result_desc=body.get('ResultDesc'),
    )
    return record, body
