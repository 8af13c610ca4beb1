from dataclasses import dataclass

from django.core.exceptions import ImproperlyConfigured

BASE_URLS = {
    'sandbox': 'https://sandbox.safaricom.co.ke',
    'production': 'https://api.safaricom.co.ke',
}


@dataclass(frozen=True)
class MpesaConfig:
    """Static Daraja credentials and call settings.

    Built once from Django settings and handed to the client at construction
    time, so nothing downstream reads ``django.conf.settings`` directly.
    """

    consumer_key: str
    consumer_secret: str
    shortcode: str
    passkey: str
    callback_url: str
    environment: str = 'sandbox'
    account_reference: str = 'JobPortal'
    transaction_desc: str = 'Job application fee'
    transaction_type: str = 'CustomerPayBillOnline'
    timezone: str = 'Africa/Nairobi'
    # seconds, applied to every outbound call; calls are never retried
    timeout: float = 30

    def __post_init__(self):
        if self.environment not in BASE_URLS:
            raise ImproperlyConfigured(
                f"MPESA_ENV must be one of {sorted(BASE_URLS)}, got {self.environment!r}"
            )
        if self.timeout <= 0:
            raise ImproperlyConfigured("MPESA_TIMEOUT must be a positive number of seconds")

    @property
    def base_url(self):
        return BASE_URLS[self.environment]

    @classmethod
    def from_settings(cls, settings=None):
        if settings is None:
            from django.conf import settings
        return cls(
            consumer_key=getattr(settings, 'MPESA_CONSUMER_KEY', ''),
            consumer_secret=getattr(settings, 'MPESA_CONSUMER_SECRET', ''),
            shortcode=str(getattr(settings, 'MPESA_SHORTCODE', '')),
            passkey=getattr(settings, 'MPESA_PASSKEY', ''),
            callback_url=getattr(settings, 'MPESA_CALLBACK_URL', ''),
            environment=getattr(settings, 'MPESA_ENV', 'sandbox'),
            account_reference=getattr(settings, 'MPESA_ACCOUNT_REFERENCE', 'JobPortal'),
            transaction_desc=getattr(settings, 'MPESA_TRANSACTION_DESC', 'Job application fee'),
            transaction_type=getattr(settings, 'MPESA_TRANSACTION_TYPE', 'CustomerPayBillOnline'),
            timezone=getattr(settings, 'MPESA_TIMEZONE', 'Africa/Nairobi'),
            timeout=float(getattr(settings, 'MPESA_TIMEOUT', 30)),
        )
