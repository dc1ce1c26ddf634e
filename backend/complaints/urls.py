"""
Complaints app URL configuration.

All routes are registered under the ``/api/complaints/`` prefix.

Route Hierarchy
---------------
  /api/complaints/                          → list / register
  /api/complaints/{id}/                     → retrieve

  ── Lifecycle @actions ──────────────────────────────────────────
  POST /api/complaints/{id}/update-status/  → validated status / assignment update
  POST /api/complaints/{id}/reopen/         → administrator reopen cascade

  ── Read-only sub-resources ─────────────────────────────────────
  GET  /api/complaints/{id}/sla/
  GET  /api/complaints/{id}/status-options/
  GET  /api/complaints/{id}/status-log/
"""

from rest_framework.routers import DefaultRouter

from .views import ComplaintViewSet

router = DefaultRouter()
router.register(
    prefix=r"complaints",
    viewset=ComplaintViewSet,
    basename="complaint",
)

urlpatterns = router.urls
