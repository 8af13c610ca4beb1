import base64
import datetime as dt
import logging
from zoneinfo import ZoneInfo

import requests
from requests.auth import HTTPBasicAuth

from ..errors import ProviderRequestError, UpstreamAuthError
from .base import PaymentProvider

logger = logging.getLogger(__name__)

TOKEN_PATH = '/oauth/v1/generate?grant_type=client_credentials'
STK_PUSH_PATH = '/mpesa/stkpush/v1/processrequest'
STK_QUERY_PATH = '/mpesa/stkpushquery/v1/query'

# Daraja answers a query for an unfinished push with this error instead of a ResultCode
STILL_PROCESSING_CODE = '500.001.1001'


def current_timestamp(tz='Africa/Nairobi', now=None):
    """Daraja timestamp, ``YYYYMMDDHHmmss`` in the provider's local time."""
    now = now or dt.datetime.now(dt.timezone.utc)
    return now.astimezone(ZoneInfo(tz)).strftime('%Y%m%d%H%M%S')


def derive_password(shortcode, passkey, timestamp):
    raw = f"{shortcode}{passkey}{timestamp}".encode('utf-8')
    return base64.b64encode(raw).decode('utf-8')


class MpesaDarajaClient(PaymentProvider):
    def __init__(self, config):
        self.config = config

    def access_token(self):
        url = f"{self.config.base_url}{TOKEN_PATH}"
        try:
            response = requests.get(
                url,
                auth=HTTPBasicAuth(self.config.consumer_key, self.config.consumer_secret),
                headers={"Accept": "application/json"},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamAuthError(f"MPESA OAuth request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamAuthError(
                f"MPESA OAuth error: status={response.status_code}, body={response.text}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamAuthError(
                f"MPESA OAuth returned non-JSON body: status={response.status_code}, body={response.text}"
            ) from e
        token = data.get('access_token') if isinstance(data, dict) else None
        if not token:
            raise UpstreamAuthError(f"MPESA OAuth JSON missing access_token: {data}")
        return token

    def password(self, now=None):
        timestamp = current_timestamp(self.config.timezone, now=now)
        return derive_password(self.config.shortcode, self.config.passkey, timestamp), timestamp

    def _post(self, path, payload):
        token = self.access_token()
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            response = requests.post(
                f"{self.config.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise ProviderRequestError(f"Failed to reach MPESA API: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderRequestError(
                "MPESA API returned non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not isinstance(body, dict):
            raise ProviderRequestError(
                "MPESA API returned unexpected body", status_code=response.status_code, body=body
            )
        return response.status_code, body

    def stk_push(self, phone, amount, reference):
        """Send a Lipa na M-Pesa Online prompt to ``phone``.

        Returns the provider body once Daraja has accepted the request
        (HTTP 200 and ``ResponseCode == "0"``); anything else is raised as
        :class:`ProviderRequestError` carrying the status and body.
        """
        password, timestamp = self.password()
        payload = {
            "BusinessShortCode": self.config.shortcode,
            "Password": password,
            "Timestamp": timestamp,
            "TransactionType": self.config.transaction_type,
            "Amount": int(amount),
            "PartyA": phone,
            "PartyB": self.config.shortcode,
            "PhoneNumber": phone,
            "CallBackURL": self.config.callback_url,
            "AccountReference": reference,
            "TransactionDesc": self.config.transaction_desc,
        }
        status_code, body = self._post(STK_PUSH_PATH, payload)
        if status_code != 200 or str(body.get('ResponseCode')) != '0':
            message = body.get('errorMessage') or body.get('ResponseDescription') or "STK Push was not accepted"
            raise ProviderRequestError(message, status_code=status_code, body=body)

        logger.info(
            "STK push accepted: checkout_request_id=%s merchant_request_id=%s",
            body.get('CheckoutRequestID'), body.get('MerchantRequestID'),
        )
        return body

    def stk_query(self, checkout_request_id):
        password, timestamp = self.password()
        payload = {
            "BusinessShortCode": self.config.shortcode,
            "Password": password,
            "Timestamp": timestamp,
            "CheckoutRequestID": checkout_request_id,
        }
        status_code, body = self._post(STK_QUERY_PATH, payload)
        if 'ResultCode' not in body and body.get('errorCode') == STILL_PROCESSING_CODE:
            logger.info("STK push %s is still being processed", checkout_request_id)
            return body
        if 'ResultCode' not in body:
            message = body.get('errorMessage') or "STK query returned no ResultCode"
            raise ProviderRequestError(message, status_code=status_code, body=body)
        return body

    def initiate(self, phone, amount, reference):
        return self.stk_push(phone, amount, reference)

    def query(self, reference):
        return self.stk_query(reference)
