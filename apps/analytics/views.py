from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.retail.services import default_fallback_policy
from .analytics import RetailAnalytics
from .serializers import (
    # Input serializers
    DeliveredOrdersQuerySerializer,
    WeeklyDeliveredQuerySerializer,
    # Response serializers
    DeliveredOrdersResponseSerializer,
    WeeklyDeliveredResponseSerializer,
    ErrorSerializer,
)
from .permissions import CanViewRetailAnalytics
from .exceptions import AnalyticsServiceError


@extend_schema(
    parameters=[
        OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM)'),
        OpenApiParameter('start_date', OpenApiTypes.DATE, description='Start date (YYYY-MM-DD)'),
        OpenApiParameter('end_date', OpenApiTypes.DATE, description='End date (YYYY-MM-DD)'),
        OpenApiParameter('fallback_to_stored_total', OpenApiTypes.BOOL,
                         description='Count stored totals of items without bag counts'),
    ],
    responses={
        200: DeliveredOrdersResponseSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description="Get delivered coffee per grade for a period.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewRetailAnalytics])
def delivered_orders(request):
    """Get delivered orders per grade - thin HTTP handler."""
    query_serializer = DeliveredOrdersQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    fallback = params.get('fallback_to_stored_total')
    if fallback is None:
        fallback = default_fallback_policy()

    try:
        data = RetailAnalytics.delivered_by_grade(
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
            fallback_to_stored_total=fallback,
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(DeliveredOrdersResponseSerializer(data).data)


@extend_schema(
    parameters=[
        OpenApiParameter('weeks', OpenApiTypes.INT, description='Weeks to look back, 1-52 (default 8)'),
        OpenApiParameter('fallback_to_stored_total', OpenApiTypes.BOOL,
                         description='Count stored totals of items without bag counts'),
    ],
    responses={
        200: WeeklyDeliveredResponseSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description="Get delivered coffee per grade and shop for each recent week.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewRetailAnalytics])
def weekly_delivered_orders(request):
    """Get weekly delivered orders - thin HTTP handler."""
    query_serializer = WeeklyDeliveredQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    fallback = params.get('fallback_to_stored_total')
    if fallback is None:
        fallback = default_fallback_policy()

    try:
        data = RetailAnalytics.weekly_delivered(
            weeks=params['weeks'],
            fallback_to_stored_total=fallback,
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(WeeklyDeliveredResponseSerializer(data).data)
