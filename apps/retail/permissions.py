"""
Custom permission classes for retail app.

Permission Classes:
    CanPlaceRetailOrders - Everyone except roasters may place orders
    CanAdjustRetailInventory - Everyone except roasters may correct inventory
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS

from apps.accounts.models import UserRole


class CanPlaceRetailOrders(BasePermission):
    """
    Roasters fulfil orders but cannot place them.

    Read-only requests are always allowed; object-level checks are left
    to IsAuthenticated.

    Usage:
        class RetailOrderViewSet(viewsets.ReadOnlyModelViewSet):
            permission_classes = [IsAuthenticated, CanPlaceRetailOrders]
    """

    message = 'Roasters cannot place retail orders.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        if getattr(view, 'action', None) != 'create':
            return True
        return request.user.role != UserRole.ROASTER


class CanAdjustRetailInventory(BasePermission):
    """
    Shop staff and management may correct inventory by hand; roasters may not.

    Usage:
        @permission_classes([IsAuthenticated, CanAdjustRetailInventory])
        def inventory_update(request, inventory_id): ...
    """

    message = 'You do not have permission to update inventory.'

    ALLOWED_ROLES = (UserRole.ADMIN, UserRole.OWNER, UserRole.RETAILER, UserRole.BARISTA)

    def has_permission(self, request, view):
        user = request.user
        if user.is_superuser:
            return True
        return user.role in self.ALLOWED_ROLES
