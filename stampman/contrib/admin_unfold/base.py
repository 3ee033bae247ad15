"""Unfold base classes shared by the stampman admins."""

from unfold.admin import ModelAdmin, TabularInline


class BaseModelAdmin(ModelAdmin):
    compressed_fields = True
    list_per_page = 50


class BaseTabularInline(TabularInline):
    extra = 0
