from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # Delivery analytics
    path('delivered-orders/', views.delivered_orders, name='delivered-orders'),
    path('weekly-delivered-orders/', views.weekly_delivered_orders, name='weekly-delivered-orders'),
]
