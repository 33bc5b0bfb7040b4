"""FilterSet for the administrator's request list."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Case, IntegerField, Value, When  # type: ignore

from .models import RentalRequest

ORDERINGS = {
    "newest": ("-date_of_request", "-id"),
    "oldest": ("date_of_request", "id"),
    # pending first, then approved, then declined
    "status": ("status_rank", "-date_of_request"),
}


class RentalRequestFilterSet(django_filters.FilterSet):
    filter = django_filters.ChoiceFilter(
        method="filter_state",
        choices=[("all", "All"), ("pending", "Pending"), ("processed", "Processed")],
        empty_label=None,
    )
    ordering = django_filters.ChoiceFilter(
        method="apply_ordering",
        choices=[(key, key.capitalize()) for key in ORDERINGS],
        empty_label=None,
    )
    vehicle = django_filters.NumberFilter(field_name="vehicle_id", lookup_expr="exact")
    status = django_filters.ChoiceFilter(choices=RentalRequest.Status.choices)
    pick_up_from = django_filters.DateFilter(field_name="pick_up_date", lookup_expr="gte")
    pick_up_to = django_filters.DateFilter(field_name="pick_up_date", lookup_expr="lte")

    class Meta:
        model = RentalRequest
        fields = ["vehicle", "status"]

    def filter_state(self, queryset, name, value):  # type: ignore
        if value == "pending":
            return queryset.filter(status=RentalRequest.Status.PENDING)
        if value == "processed":
            return queryset.exclude(status=RentalRequest.Status.PENDING)
        return queryset

    def apply_ordering(self, queryset, name, value):  # type: ignore
        if value == "status":
            queryset = queryset.annotate(
                status_rank=Case(
                    When(status=RentalRequest.Status.PENDING, then=Value(0)),
                    When(status=RentalRequest.Status.APPROVED, then=Value(1)),
                    default=Value(2),
                    output_field=IntegerField(),
                )
            )
        return queryset.order_by(*ORDERINGS.get(value, ORDERINGS["newest"]))
