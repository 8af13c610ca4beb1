from django.http import JsonResponse

def index(request):
    return JsonResponse({
        "message": "Job Portal Payments API",
        "endpoints": {
            "admin": "/admin/",
            "stk_push": "/api/payment/stkpush",
            "stk_callback": "/api/payment/callback",
            "payment_status": "/api/payment/<payment_id>/status/",
            "stk_query": "/api/payment/<payment_id>/query/",
        }
    })
