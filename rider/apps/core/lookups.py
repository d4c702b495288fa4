from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError

from apps.core.exceptions import NotFound


def get_object_or_not_found(queryset, label, **lookup):
    """``queryset.get(**lookup)`` raising the domain NotFound (malformed ids included)"""
    try:
        return queryset.get(**lookup)
    except (ObjectDoesNotExist, DjangoValidationError, ValueError):
        raise NotFound(f"{label} not found", **lookup)
