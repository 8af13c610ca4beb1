import uuid
from django.db import models


class Transaction(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SUCCESS = 'success', 'Success'
        FAILED = 'failed', 'Failed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=128)
    phone = models.CharField(max_length=20)  # e.g. 2547XXXXXXXX
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)

    # Daraja references; checkout_request_id correlates the async callback
    merchant_request_id = models.CharField(max_length=128, blank=True, null=True)
    checkout_request_id = models.CharField(max_length=128, unique=True, blank=True, null=True)
    transaction_id = models.CharField(max_length=64, blank=True, null=True)  # MpesaReceiptNumber
    result_code = models.CharField(max_length=16, blank=True, null=True)
    result_desc = models.CharField(max_length=256, blank=True, null=True)

    raw_callback = models.JSONField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.phone} - {self.amount} - {self.status}"

    @property
    def is_resolved(self):
        return self.status != self.Status.PENDING

    def as_dict(self):
        return {
            'paymentId': str(self.id),
            'userId': self.user_id,
            'phone': self.phone,
            'amount': str(self.amount),
            'status': self.status,
            'transactionId': self.transaction_id,
            'checkoutRequestId': self.checkout_request_id,
            'resultCode': self.result_code,
            'resultDesc': self.result_desc,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
