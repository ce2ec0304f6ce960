"""
Custom permission classes for analytics app.

Permission Classes:
    CanViewRetailAnalytics - Delivery analytics for admins, owners and retailers

Usage:
    from apps.analytics.permissions import CanViewRetailAnalytics

    @api_view(['GET'])
    @permission_classes([IsAuthenticated, CanViewRetailAnalytics])
    def delivered_orders(request):
        ...
"""

from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


ANALYTICS_ROLES = (UserRole.ADMIN, UserRole.OWNER, UserRole.RETAILER)


class CanViewRetailAnalytics(BasePermission):
    """
    Permission check for delivery analytics access.

    Roasters and baristas get 403; superusers are always allowed.
    """

    message = 'Only admins, owners and retailers can view delivery analytics.'

    def has_permission(self, request, view):
        user = request.user
        if user.is_superuser:
            return True
        return user.role in ANALYTICS_ROLES
