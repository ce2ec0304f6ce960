from rest_framework import serializers

from apps.accounts.models import User
from apps.coffee.models import GreenCoffee
from apps.shops.models import Shop
from .models import RetailOrder, RetailOrderItem, RetailInventory, OrderStatus
from .services import KeyStrategy, normalize_line_item


STATUS_ALL = 'ALL'


# =============================================================================
# Input Serializers
# =============================================================================

class OrderFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for order listing.

    Query Parameters:
        status (str): Filter by order status
        shop (UUID): Filter by shop ID
    """

    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    shop = serializers.UUIDField(required=False)


class OrderItemInputSerializer(serializers.Serializer):
    """
    One line item of a new order.

    Either the split small bag fields or the legacy ``small_bags`` field
    may be sent, not both.
    """

    coffee_id = serializers.UUIDField()
    small_bags = serializers.IntegerField(min_value=0, required=False)
    small_bags_espresso = serializers.IntegerField(min_value=0, required=False)
    small_bags_filter = serializers.IntegerField(min_value=0, required=False)
    medium_bags_espresso = serializers.IntegerField(min_value=0, required=False)
    medium_bags_filter = serializers.IntegerField(min_value=0, required=False)
    large_bags = serializers.IntegerField(min_value=0, required=False)


class OrderCreateSerializer(serializers.Serializer):
    """Validate input for placing a retail order."""

    shop_id = serializers.UUIDField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)


class OrderStatusUpdateSerializer(serializers.Serializer):
    """
    Validate input for changing an order's status.

    Fields:
        status (str): Target status
        fallback_to_stored_total (bool): Credit stored totals of items
            without bag counts on delivery (defaults to project setting)
    """

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    fallback_to_stored_total = serializers.BooleanField(required=False, allow_null=True)


class PendingSummaryQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the pending orders summary.

    Query Parameters:
        status (str): Order status to include, ``ALL`` for every status
        key (str): Grouping, one of coffee, coffee_shop, coffee_grade
        shop_breakdown (bool): Include per-shop sub-totals
        fallback_to_stored_total (bool): Count stored totals of items
            without bag counts (defaults to project setting)
    """

    status = serializers.ChoiceField(
        choices=OrderStatus.choices + [(STATUS_ALL, 'All')],
        required=False,
        default=OrderStatus.PENDING
    )
    key = serializers.ChoiceField(
        choices=[strategy.value for strategy in KeyStrategy],
        required=False,
        default=KeyStrategy.COFFEE.value
    )
    shop_breakdown = serializers.BooleanField(required=False, default=False)
    fallback_to_stored_total = serializers.BooleanField(required=False, allow_null=True)


class InventoryUpdateSerializer(serializers.Serializer):
    """
    Validate a manual inventory correction.

    Counts left out keep their current value. ``small_bags`` is the
    undivided small bag count and cannot be combined with the split fields.
    """

    small_bags = serializers.IntegerField(min_value=0, required=False)
    small_bags_espresso = serializers.IntegerField(min_value=0, required=False)
    small_bags_filter = serializers.IntegerField(min_value=0, required=False)
    medium_bags_espresso = serializers.IntegerField(min_value=0, required=False)
    medium_bags_filter = serializers.IntegerField(min_value=0, required=False)
    large_bags = serializers.IntegerField(min_value=0, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one bag count must be provided")
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class ShopMinimalSerializer(serializers.ModelSerializer):
    """Minimal shop info for nested serialization."""

    class Meta:
        model = Shop
        fields = ['id', 'name']
        read_only_fields = fields


class CoffeeMinimalSerializer(serializers.ModelSerializer):
    """Minimal green coffee info for nested serialization."""

    class Meta:
        model = GreenCoffee
        fields = ['id', 'name', 'grade']
        read_only_fields = fields


class RetailOrderItemSerializer(serializers.ModelSerializer):
    """Line item with its stored and recomputed weight."""

    coffee = CoffeeMinimalSerializer(read_only=True)
    counted_kg = serializers.SerializerMethodField()

    class Meta:
        model = RetailOrderItem
        fields = [
            'id',
            'coffee',
            'small_bags',
            'small_bags_espresso',
            'small_bags_filter',
            'medium_bags_espresso',
            'medium_bags_filter',
            'large_bags',
            'total_quantity',
            'counted_kg',
        ]
        read_only_fields = fields

    def get_counted_kg(self, obj):
        return str(normalize_line_item(obj).total_kg)


class RetailOrderSerializer(serializers.ModelSerializer):
    """Main serializer for retail orders."""

    shop = ShopMinimalSerializer(read_only=True)
    ordered_by = UserMinimalSerializer(read_only=True)
    items = RetailOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = RetailOrder
        fields = [
            'id',
            'shop',
            'ordered_by',
            'status',
            'items',
            'created_at',
            'updated_at',
            'delivered_at',
        ]
        read_only_fields = fields


class BucketTotalsSerializer(serializers.Serializer):
    """Bag counts and weights of one aggregate bucket."""

    coffee_id = serializers.CharField(allow_null=True)
    coffee_name = serializers.CharField()
    grade = serializers.CharField()
    shop_id = serializers.CharField(allow_null=True)
    shop_name = serializers.CharField()
    small_bags_espresso = serializers.IntegerField()
    small_bags_filter = serializers.IntegerField()
    small_bags = serializers.IntegerField()
    medium_bags_espresso = serializers.IntegerField()
    medium_bags_filter = serializers.IntegerField()
    medium_bags = serializers.IntegerField()
    large_bags = serializers.IntegerField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    espresso_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    filter_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    medium_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    item_count = serializers.IntegerField()
    flagged_count = serializers.IntegerField()


class AggregateBucketSerializer(BucketTotalsSerializer):
    """Aggregate bucket with its optional per-shop breakdown."""

    shop_breakdown = BucketTotalsSerializer(many=True)


class SkippedItemSerializer(serializers.Serializer):
    order_id = serializers.CharField(allow_null=True)
    shop_name = serializers.CharField()
    reason = serializers.CharField()


class FlaggedItemSerializer(serializers.Serializer):
    order_id = serializers.CharField(allow_null=True)
    shop_name = serializers.CharField()
    coffee_id = serializers.CharField(allow_null=True)
    coffee_name = serializers.CharField()
    stored_total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    counted_kg = serializers.DecimalField(max_digits=12, decimal_places=3)


class AggregationResultSerializer(serializers.Serializer):
    """
    Aggregation output.

    ``partial`` is true when line items were skipped or flagged, so the
    totals should be read alongside ``skipped`` and ``flagged``.
    """

    key_strategy = serializers.SerializerMethodField()
    fallback_to_stored_total = serializers.BooleanField()
    order_count = serializers.IntegerField()
    partial = serializers.BooleanField(source='has_warnings')
    buckets = AggregateBucketSerializer(many=True)
    grand_total = BucketTotalsSerializer()
    shop_subtotals = serializers.SerializerMethodField()
    skipped = SkippedItemSerializer(many=True)
    flagged = FlaggedItemSerializer(many=True)

    def get_key_strategy(self, obj):
        return KeyStrategy(obj.key_strategy).value

    def get_shop_subtotals(self, obj):
        if obj.shop_subtotals is None:
            return None
        return {
            shop_name: BucketTotalsSerializer(subtotal).data
            for shop_name, subtotal in obj.shop_subtotals.items()
        }


class InventoryRowSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    coffee_id = serializers.UUIDField()
    coffee_name = serializers.CharField()
    grade = serializers.CharField()
    small_bags_espresso = serializers.IntegerField()
    small_bags_filter = serializers.IntegerField()
    small_bags = serializers.IntegerField()
    medium_bags_espresso = serializers.IntegerField()
    medium_bags_filter = serializers.IntegerField()
    medium_bags = serializers.IntegerField()
    large_bags = serializers.IntegerField()
    total_quantity = serializers.DecimalField(max_digits=10, decimal_places=3)
    last_order_date = serializers.DateTimeField(allow_null=True)
    small_bags_alert = serializers.CharField()
    large_bags_alert = serializers.CharField()


class RetailInventorySerializer(serializers.ModelSerializer):
    """Serializer for a single inventory row."""

    shop = ShopMinimalSerializer(read_only=True)
    coffee = CoffeeMinimalSerializer(read_only=True)
    small_bags = serializers.IntegerField(read_only=True)

    class Meta:
        model = RetailInventory
        fields = [
            'id',
            'shop',
            'coffee',
            'small_bags_espresso',
            'small_bags_filter',
            'small_bags',
            'medium_bags_espresso',
            'medium_bags_filter',
            'large_bags',
            'total_quantity',
            'last_order_date',
            'updated_at',
        ]
        read_only_fields = fields


class ShopInventorySerializer(serializers.Serializer):
    """Serializer for a shop's inventory with stock alerts."""

    shop_id = serializers.UUIDField()
    shop_name = serializers.CharField()
    min_small_bags = serializers.IntegerField()
    min_large_bags = serializers.IntegerField()
    total_small_bags = serializers.IntegerField()
    total_medium_bags = serializers.IntegerField()
    total_large_bags = serializers.IntegerField()
    small_bags_percentage = serializers.FloatField()
    large_bags_percentage = serializers.FloatField()
    small_bags_alert = serializers.CharField()
    large_bags_alert = serializers.CharField()
    items = InventoryRowSerializer(many=True)
