from django.urls import path, re_path
from . import views

urlpatterns = [
    re_path(r'^stkpush/?$', views.stk_push, name='stk_push'),
    re_path(r'^callback/?$', views.stk_callback, name='stk_callback'),
    path('<uuid:payment_id>/status/', views.payment_status, name='payment_status'),
    path('<uuid:payment_id>/query/', views.query_stk_status, name='query_stk_status'),
]
