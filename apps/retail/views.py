from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .serializers import (
    # Input serializers
    OrderFilterSerializer,
    OrderCreateSerializer,
    OrderStatusUpdateSerializer,
    PendingSummaryQuerySerializer,
    InventoryUpdateSerializer,
    STATUS_ALL,
    # Response serializers
    RetailOrderSerializer,
    AggregationResultSerializer,
    ShopInventorySerializer,
    RetailInventorySerializer,
)
from .permissions import CanPlaceRetailOrders, CanAdjustRetailInventory

from apps.retail.services import (
    KeyStrategy,
    aggregate_orders,
    create_order,
    default_fallback_policy,
    get_orders,
    get_shop_inventory,
    update_order_status,
    update_inventory,
    # Exceptions
    CoffeeNotFoundError,
    InsufficientCoffeeError,
    InvalidQuantityError,
    InvalidStatusTransitionError,
    InventoryNotFoundError,
    OrderNotFoundError,
    ShopNotFoundError,
)


class OrderPagination(PageNumberPagination):
    """Custom pagination for retail orders."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class RetailOrderViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         viewsets.GenericViewSet):
    """
    ViewSet for retail orders.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get orders (filterable by status and shop)
    create: Place an order and reserve green coffee
    retrieve: Get a specific order
    update_status: Move an order to a new status
    """

    serializer_class = RetailOrderSerializer
    permission_classes = [IsAuthenticated, CanPlaceRetailOrders]
    pagination_class = OrderPagination
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        """Filter orders using input serializer validation."""
        if self.action != 'list':
            return get_orders()

        filter_serializer = OrderFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        return get_orders(status=params.get('status'), shop_id=params.get('shop'))

    @extend_schema(
        request=OrderCreateSerializer,
        responses={201: RetailOrderSerializer},
        tags=['retail'],
    )
    def create(self, request, *args, **kwargs):
        """Place a new order."""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = create_order(
                shop_id=serializer.validated_data['shop_id'],
                ordered_by=request.user,
                items=serializer.validated_data['items']
            )
        except InvalidQuantityError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except (ShopNotFoundError, CoffeeNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientCoffeeError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        output_serializer = RetailOrderSerializer(order)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=OrderStatusUpdateSerializer,
        responses={200: RetailOrderSerializer},
        tags=['retail'],
    )
    @action(detail=True, methods=['post'], url_path='status', url_name='status')
    def update_status(self, request, pk=None):
        """
        Move an order to a new status.

        POST /api/retail/orders/{id}/status/
        Body: {"status": "DELIVERED", "fallback_to_stored_total": false}
        """
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = update_order_status(
                order_id=pk,
                status=serializer.validated_data['status'],
                fallback_to_stored_total=serializer.validated_data.get('fallback_to_stored_total')
            )
        except OrderNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidStatusTransitionError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(RetailOrderSerializer(order).data)


@extend_schema(
    parameters=[
        OpenApiParameter('status', OpenApiTypes.STR, description='Order status, or ALL (default PENDING)'),
        OpenApiParameter('key', OpenApiTypes.STR, description='coffee, coffee_shop or coffee_grade'),
        OpenApiParameter('shop_breakdown', OpenApiTypes.BOOL, description='Include per-shop sub-totals'),
        OpenApiParameter('fallback_to_stored_total', OpenApiTypes.BOOL,
                         description='Count stored totals of items without bag counts'),
    ],
    responses={200: AggregationResultSerializer},
    description="Bag counts and kilograms of orders per coffee, with optional per-shop detail.",
    tags=['retail'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_orders_summary(request):
    """Aggregate orders into per-coffee totals - thin HTTP handler."""
    query_serializer = PendingSummaryQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    status_filter = None if params['status'] == STATUS_ALL else params['status']
    fallback = params.get('fallback_to_stored_total')
    if fallback is None:
        fallback = default_fallback_policy()

    result = aggregate_orders(
        get_orders(status=status_filter),
        status_filter=status_filter,
        key_strategy=KeyStrategy(params['key']),
        include_shop_breakdown=params['shop_breakdown'],
        fallback_to_stored_total=fallback,
    )

    return Response(AggregationResultSerializer(result).data)


@extend_schema(
    responses={200: ShopInventorySerializer},
    description="Get a shop's coffee inventory with low stock alerts.",
    tags=['retail'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shop_inventory(request, shop_id):
    """Get shop inventory - thin HTTP handler."""
    try:
        data = get_shop_inventory(shop_id=shop_id)
    except ShopNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(ShopInventorySerializer(data).data)


@extend_schema(
    request=InventoryUpdateSerializer,
    responses={200: RetailInventorySerializer},
    description="Correct the bag counts of a shop inventory row; the total is recomputed from the bags.",
    tags=['retail'],
)
@api_view(['PUT'])
@permission_classes([IsAuthenticated, CanAdjustRetailInventory])
def inventory_update(request, inventory_id):
    """Correct an inventory row - thin HTTP handler."""
    serializer = InventoryUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        inventory = update_inventory(
            inventory_id=inventory_id,
            counts=serializer.validated_data,
            adjusted_by=request.user
        )
    except InvalidQuantityError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except InventoryNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(RetailInventorySerializer(inventory).data)
