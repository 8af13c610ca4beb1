import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from payments.conf import MpesaConfig

CHECKOUT_ID = 'ws_CO_191220191020363925'
MERCHANT_ID = '29115-34620561-1'


def stk_accepted(checkout_id=CHECKOUT_ID, merchant_id=MERCHANT_ID):
    return {
        'MerchantRequestID': merchant_id,
        'CheckoutRequestID': checkout_id,
        'ResponseCode': '0',
        'ResponseDescription': 'Success. Request accepted for processing',
        'CustomerMessage': 'Success. Request accepted for processing',
    }


def stk_callback(checkout_id=CHECKOUT_ID, result_code=0, receipt='ABC123'):
    stk = {
        'MerchantRequestID': MERCHANT_ID,
        'CheckoutRequestID': checkout_id,
        'ResultCode': result_code,
        'ResultDesc': 'The service request is processed successfully.' if result_code == 0
        else 'Request cancelled by user',
    }
    if result_code == 0:
        stk['CallbackMetadata'] = {
            'Item': [
                {'Name': 'Amount', 'Value': 500},
                {'Name': 'MpesaReceiptNumber', 'Value': receipt},
                {'Name': 'TransactionDate', 'Value': 20191219102115},
                {'Name': 'PhoneNumber', 'Value': 254712345678},
            ]
        }
    return {'Body': {'stkCallback': stk}}


@pytest.fixture(autouse=True)
def mpesa_settings(settings):
    settings.MPESA_ENV = 'sandbox'
    settings.MPESA_CONSUMER_KEY = 'consumer-key'
    settings.MPESA_CONSUMER_SECRET = 'consumer-secret'
    settings.MPESA_SHORTCODE = '174379'
    settings.MPESA_PASSKEY = 'passkey'
    settings.MPESA_CALLBACK_URL = 'https://example.com/api/payment/callback'
    settings.MPESA_ACCOUNT_REFERENCE = 'JobPortal'
    settings.MPESA_TRANSACTION_DESC = 'Job application fee'
    settings.MPESA_TIMEOUT = 5
    return settings


@pytest.fixture
def mpesa_config():
    return MpesaConfig(
        consumer_key='consumer-key',
        consumer_secret='consumer-secret',
        shortcode='174379',
        passkey='passkey',
        callback_url='https://example.com/api/payment/callback',
        timeout=5,
    )


@pytest.fixture
def make_response():
    def _make(status_code=200, body=None, text=None):
        response = MagicMock()
        response.status_code = status_code
        if body is None:
            response.json.side_effect = ValueError('No JSON object could be decoded')
            response.text = text or ''
        else:
            response.json.return_value = body
            response.text = text or json.dumps(body)
        return response
    return _make


@pytest.fixture
def daraja(make_response):
    """Patch outbound Daraja calls: a valid token and an accepted STK push."""
    with patch('payments.services.mpesa.requests.get') as get, \
            patch('payments.services.mpesa.requests.post') as post:
        get.return_value = make_response(200, {'access_token': 'token-123', 'expires_in': '3599'})
        post.return_value = make_response(200, stk_accepted())
        yield SimpleNamespace(get=get, post=post)
