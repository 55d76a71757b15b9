from django.contrib import admin

from cart.models import Cart, CartLine


class CartLineInline(admin.TabularInline):
    model = CartLine
    extra = 0
    readonly_fields = ("product", "quantity", "unit_price", "created_at")
    can_delete = False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "item_count", "updated_at")
    search_fields = ("customer__email",)
    readonly_fields = ("customer", "created_at", "updated_at")
    inlines = [CartLineInline]
