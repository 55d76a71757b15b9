# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Catalog upkeep happens here. Stock is editable by staff for restocking;
checkout paths decrement it only through products.services.inventory.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "unit_price",
        "stock",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "created_at")
    search_fields = ("sku", "name")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("sku", "name", "unit_price", "stock", "is_active")}),
        ("Shipping", {"fields": ("weight_kg", "height_cm", "width_cm", "length_cm")}),
        ("Audit", {"fields": ("created_at", "updated_at")}),
    )
