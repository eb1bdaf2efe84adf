"""API routes."""

from ecoconsole_core.api.routes import applications, campaigns, copywriting, dashboard, partners

__all__ = ["applications", "campaigns", "copywriting", "dashboard", "partners"]
