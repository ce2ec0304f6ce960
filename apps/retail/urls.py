from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'retail'

router = DefaultRouter()
router.register(r'orders', views.RetailOrderViewSet, basename='order')

urlpatterns = [
    # Order ViewSet routes
    # GET    /api/retail/orders/              - List orders
    # POST   /api/retail/orders/              - Place order
    # GET    /api/retail/orders/{id}/         - Get order details
    # POST   /api/retail/orders/{id}/status/  - Change order status

    path('pending-summary/', views.pending_orders_summary, name='pending-summary'),
    path('shops/<uuid:shop_id>/inventory/', views.shop_inventory, name='shop-inventory'),
    path('inventory/<uuid:inventory_id>/', views.inventory_update, name='inventory-update'),

    path('', include(router.urls)),
]
