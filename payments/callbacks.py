import re
from dataclasses import dataclass, field

from .errors import CallbackProcessingError
from .models import Transaction

RECEIPT_ITEM = 'MpesaReceiptNumber'


@dataclass
class StkCallback:
    checkout_request_id: str
    result_code: int
    merchant_request_id: str = None
    result_desc: str = None
    metadata: dict = field(default_factory=dict)

    @property
    def succeeded(self):
        return self.result_code == 0

    @property
    def status(self):
        return Transaction.Status.SUCCESS if self.succeeded else Transaction.Status.FAILED

    @property
    def receipt(self):
        return self.metadata.get(RECEIPT_ITEM) if self.succeeded else None


def _result_code(value):
    # ResultCode arrives as an int, occasionally as a digit string
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"-?[0-9]+", value.strip()):
        return int(value)
    return None


def parse_stk_callback(payload):
    """Read the ``Body.stkCallback`` envelope Daraja posts to CallBackURL."""
    if not isinstance(payload, dict):
        raise CallbackProcessingError("Callback payload is not a JSON object")
    body = payload.get('Body')
    stk = body.get('stkCallback') if isinstance(body, dict) else None
    if not isinstance(stk, dict):
        raise CallbackProcessingError("Callback payload missing Body.stkCallback")

    checkout_id = stk.get('CheckoutRequestID')
    if not checkout_id:
        raise CallbackProcessingError("Callback missing CheckoutRequestID")

    result_code = _result_code(stk.get('ResultCode'))
    if result_code is None:
        raise CallbackProcessingError(f"Callback {checkout_id} has no integer ResultCode")

    metadata = {}
    callback_metadata = stk.get('CallbackMetadata')
    items = callback_metadata.get('Item') if isinstance(callback_metadata, dict) else None
    if not isinstance(items, list):
        items = []
    for item in items:
        if isinstance(item, dict) and item.get('Name'):
            metadata[item['Name']] = item.get('Value')

    callback = StkCallback(
        checkout_request_id=checkout_id,
        result_code=result_code,
        merchant_request_id=stk.get('MerchantRequestID'),
        result_desc=stk.get('ResultDesc'),
        metadata=metadata,
    )
    if callback.succeeded and not callback.receipt:
        raise CallbackProcessingError(f"Successful callback {checkout_id} carries no {RECEIPT_ITEM}")
    return callback
