from django.contrib import admin

from orders.models import CheckoutSession, Order, OrderLine, PaymentTransaction


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    can_delete = False
    readonly_fields = ("product", "quantity", "unit_price", "line_total")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_no", "customer", "status", "total_amount", "created_at", "paid_at")
    list_filter = ("status", "payment_method", "created_at")
    search_fields = ("order_no", "customer__email", "checkout_link_id")
    ordering = ("-created_at",)
    inlines = [OrderLineInline]

    # Status changes go through the lifecycle endpoint; money and stock are immutable here.
    readonly_fields = (
        "order_no",
        "customer",
        "status",
        "payment_method",
        "freight_name",
        "freight_price",
        "freight_lead_days",
        "delivery_address",
        "subtotal_amount",
        "total_amount",
        "checkout_link_id",
        "created_at",
        "updated_at",
        "paid_at",
    )


@admin.register(CheckoutSession)
class CheckoutSessionAdmin(admin.ModelAdmin):
    list_display = ("link_id", "customer", "total_cents", "freight_name", "created_at")
    search_fields = ("link_id", "customer__email")
    readonly_fields = [f.name for f in CheckoutSession._meta.fields]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ("gateway_link_id", "order", "status", "payment_method", "amount_cents", "created_at")
    search_fields = ("gateway_link_id", "gateway_transaction_id", "order__order_no")
    readonly_fields = [f.name for f in PaymentTransaction._meta.fields]

    def has_delete_permission(self, request, obj=None):
        return False
