from django.contrib import admin

from .models import Complaint, ComplaintStatusLog, ComplaintType


class ComplaintStatusLogInline(admin.TabularInline):
    model = ComplaintStatusLog
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "actor",
                       "comment", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("complaint_id", "type", "area", "status", "priority",
                    "ward_officer", "maintenance_team", "submitted_on")
    list_filter = ("status", "priority", "needs_team_assignment")
    search_fields = ("complaint_id", "type", "description", "area")
    readonly_fields = ("status", "version", "submitted_on", "assigned_on",
                       "resolved_on", "closed_on")
    inlines = [ComplaintStatusLogInline]


@admin.register(ComplaintType)
class ComplaintTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "priority", "sla_hours", "is_active")
    list_filter = ("is_active", "priority")
    search_fields = ("name",)


@admin.register(ComplaintStatusLog)
class ComplaintStatusLogAdmin(admin.ModelAdmin):
    list_display = ("complaint", "from_status", "to_status",
                    "actor", "created_at")
    list_filter = ("to_status",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
