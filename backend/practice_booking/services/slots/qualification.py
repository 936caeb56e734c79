# backend/practice_booking/services/slots/qualification.py
"""Which active providers of a tenant may perform a service."""

from .entities import Provider, ScheduleSnapshot


def resolve_qualified_providers(
    snapshot: ScheduleSnapshot,
    tenant_id: int,
    service_id: int,
) -> list[Provider]:
    """
    Active providers of tenant_id qualified for service_id.

    Ordered by provider id so assignment is stable across calls.
    An empty list is not an error here; callers decide what it means.
    """
    qualified_ids = {
        provider_id
        for provider_id, qualified_service_id in snapshot.qualifications
        if qualified_service_id == service_id
    }
    providers = [
        p for p in snapshot.providers
        if p.id in qualified_ids and p.is_active and p.tenant_id == tenant_id
    ]
    return sorted(providers, key=lambda p: p.id)
