import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .conf import MpesaConfig
from .errors import (
    CallbackProcessingError,
    InitiationFailedError,
    NotFoundError,
    PaymentValidationError,
    PersistenceError,
    ProviderRequestError,
    TransactionConflictError,
    UpstreamAuthError,
)
from .handlers import initiate_payment, process_callback, query_payment, validate_initiation
from .services.mpesa import MpesaDarajaClient
from .store import TransactionStore

logger = logging.getLogger(__name__)


def get_client():
    return MpesaDarajaClient(MpesaConfig.from_settings())


def _json_body(request):
    return json.loads(request.body.decode('utf-8'))


@csrf_exempt
@require_POST
def stk_push(request):
    try:
        user_id, phone, amount = validate_initiation(_json_body(request))
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    except PaymentValidationError as e:
        return JsonResponse({'error': str(e)}, status=400)

    try:
        payment = initiate_payment(get_client(), user_id, phone, amount)
    except InitiationFailedError:
        return JsonResponse({'error': 'STK Push failed'}, status=500)

    return JsonResponse({'message': 'STK Push initiated', 'paymentId': str(payment.id)})


@csrf_exempt
@require_POST
def stk_callback(request):
    try:
        payload = _json_body(request)
        _, applied = process_callback(payload)
    except (ValueError, UnicodeDecodeError) as e:
        logger.error("Callback body is not valid JSON: %s", e)
        return JsonResponse({'error': 'Callback error'}, status=500)
    except (CallbackProcessingError, PersistenceError) as e:
        logger.error("Callback could not be processed: %s", e)
        return JsonResponse({'error': 'Callback error'}, status=500)

    if not applied:
        return JsonResponse({'message': 'Callback already processed'})
    return JsonResponse({'message': 'Callback received'})


@require_GET
def payment_status(request, payment_id):
    try:
        payment = TransactionStore().get(payment_id)
    except NotFoundError as e:
        return JsonResponse({'error': str(e)}, status=404)
    except PersistenceError as e:
        logger.error("Status lookup for %s failed: %s", payment_id, e)
        return JsonResponse({'error': 'Failed to load transaction'}, status=500)
    return JsonResponse(payment.as_dict())


@csrf_exempt
@require_POST
def query_stk_status(request, payment_id):
    try:
        payment, body = query_payment(get_client(), payment_id)
    except NotFoundError as e:
        return JsonResponse({'error': str(e)}, status=404)
    except TransactionConflictError as e:
        return JsonResponse({'error': str(e)}, status=409)
    except (UpstreamAuthError, ProviderRequestError) as e:
        logger.error("STK query for %s failed: %s", payment_id, e)
        return JsonResponse({'error': 'Failed to reach MPESA STK Query API', 'details': str(e)}, status=502)
    except PersistenceError as e:
        logger.error("STK query for %s could not be saved: %s", payment_id, e)
        return JsonResponse({'error': 'Failed to update transaction'}, status=500)

    return JsonResponse({'payment': payment.as_dict(), 'query_result': body})
