# integrations/apps.py

"""
INTEGRATIONS APP CONFIG

External collaborators consumed by the order workflow:
- payment gateway (hosted checkout sessions, status query, refunds)
- shipping aggregator (shipments, AWB, serviceability, tracking)
- notification dispatcher (email + SMS)

Registered as an app so email templates resolve through APP_DIRS.
"""

from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "integrations"
    verbose_name = "External Integrations"
