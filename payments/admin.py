from django.contrib import admin
from .models import Transaction

@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user_id', 'phone', 'amount', 'status', 'transaction_id', 'created_at')
    list_filter = ('status',)
    search_fields = ('id', 'user_id', 'phone', 'checkout_request_id', 'transaction_id')
    readonly_fields = ('raw_callback', 'created_at', 'updated_at')
