from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "full_name", "ward",
                    "is_active", "role")
    search_fields = ("username", "email", "full_name", "phone_number")
    list_filter = ("is_active", "is_staff", "role", "ward")
    filter_horizontal = ("groups", "user_permissions")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Portal", {"fields": ("full_name", "phone_number", "ward", "role")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Portal", {"fields": ("email", "full_name", "phone_number",
                               "ward", "role")}),
    )
