# orders/urls.py

from django.urls import path

from orders.views.status import OrderStatusView

app_name = "orders"

urlpatterns = [
    path("<str:order_id>/status/", OrderStatusView.as_view(), name="order-status"),
]
