"""API views for the reservation domain."""

from __future__ import annotations

from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import generics, mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.fleet.models import Vehicle
from apps.fleet.serializers import VehicleSerializer
from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    AlreadyTerminalError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from shared.infrastructure.middleware import LogContextMixin

from .application.command_handlers import (
    ApproveRequestCommand,
    CreateRequestCommand,
    DeclineRequestCommand,
    DeleteRequestCommand,
    RescheduleRequestCommand,
)
from .filters import RentalRequestFilterSet
from .models import RentalRequest
from .serializers import (
    BookingPeriodSerializer,
    DateWindowSerializer,
    RentalRequestSerializer,
    RentalRequestWriteSerializer,
)
from .services import available_vehicles, conflicting_periods


def is_administrator(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


def error_response(exc: DomainError) -> Response:
    """Translate a domain error into the API's status codes."""

    if isinstance(exc, AlreadyTerminalError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, PermissionDeniedError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, StorageError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({"detail": exc.message or str(exc), "code": exc.code}, status=code)


class IsRequestOwnerOrAdmin(permissions.BasePermission):
    """Only the author of a request and administrators may see or change it."""

    def has_object_permission(self, request, view, obj: RentalRequest):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_administrator(user):
            return True
        return obj.user_id == str(user.pk)


class RentalRequestViewSet(
    LogContextMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Rental requests

    Writes go through the message bus; the ORM is only read here.
    """

    queryset = RentalRequest.objects.select_related("vehicle", "booking_period").all()
    serializer_class = RentalRequestSerializer
    permission_classes = [permissions.IsAuthenticated, IsRequestOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_class = RentalRequestFilterSet
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if self.action == "mine" or (self.action == "list" and not is_administrator(user)):
            return qs.filter(user_id=str(user.pk))
        return qs

    def get_permissions(self):  # type: ignore
        if self.action in {"approve", "decline"}:
            return [permissions.IsAdminUser()]
        return super().get_permissions()

    def _render(self, request_id, code=status.HTTP_200_OK) -> Response:
        instance = RentalRequest.objects.select_related("vehicle", "booking_period").get(pk=request_id)
        serializer = RentalRequestSerializer(instance, context=self.get_serializer_context())
        return Response(serializer.data, status=code)

    @extend_schema(request=RentalRequestWriteSerializer, responses={201: RentalRequestSerializer})
    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = RentalRequestWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            rental_request = message_bus.handle_command(CreateRequestCommand(
                user_id=str(request.user.pk),
                vehicle_id=data["vehicle"].pk,
                pick_up_date=data["pick_up_date"],
                return_date=data["return_date"],
            ))
        except DomainError as exc:
            return error_response(exc)
        return self._render(rental_request.id, status.HTTP_201_CREATED)

    @extend_schema(request=RentalRequestWriteSerializer, responses={200: RentalRequestSerializer})
    def partial_update(self, request, *args, **kwargs):  # type: ignore
        instance: RentalRequest = self.get_object()  # type: ignore
        payload = {
            "vehicle": instance.vehicle_id,
            "pick_up_date": instance.pick_up_date,
            "return_date": instance.return_date,
        }
        payload.update({key: request.data[key] for key in payload if key in request.data})
        serializer = RentalRequestWriteSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            message_bus.handle_command(RescheduleRequestCommand(
                request_id=instance.pk,
                requested_by=str(request.user.pk),
                vehicle_id=data["vehicle"].pk,
                pick_up_date=data["pick_up_date"],
                return_date=data["return_date"],
                is_administrator=is_administrator(request.user),
            ))
        except DomainError as exc:
            return error_response(exc)
        return self._render(instance.pk)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        instance: RentalRequest = self.get_object()  # type: ignore
        try:
            message_bus.handle_command(DeleteRequestCommand(
                request_id=instance.pk,
                requested_by=str(request.user.pk),
                is_administrator=is_administrator(request.user),
            ))
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def mine(self, request):  # type: ignore
        queryset = self.get_queryset().order_by("-date_of_request", "-id")
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(self.get_serializer(queryset, many=True).data)

    @extend_schema(request=None, responses={200: RentalRequestSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        try:
            result = message_bus.handle_command(ApproveRequestCommand(request_id=pk))
        except DomainError as exc:
            return error_response(exc)

        if result.unavailable:
            conflict = result.conflict
            return Response(
                {
                    "detail": conflict.message,
                    "code": "unavailable",
                    "reason": conflict.reason,
                    "conflicting_periods": conflict.conflicting_period_ids,
                    "status": result.request.status.value,
                },
                status=status.HTTP_409_CONFLICT,
            )
        return self._render(result.request.id)

    @extend_schema(request=None, responses={200: RentalRequestSerializer})
    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):  # type: ignore
        try:
            rental_request = message_bus.handle_command(DeclineRequestCommand(request_id=pk))
        except DomainError as exc:
            return error_response(exc)
        return self._render(rental_request.id)


class AvailableVehiclesView(LogContextMixin, generics.ListAPIView):
    """Vehicles with no booking period inside ``[start, end)``."""

    serializer_class = VehicleSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):  # type: ignore
        window = DateWindowSerializer(data=self.request.query_params)
        window.is_valid(raise_exception=True)
        return available_vehicles(window.validated_data["start"], window.validated_data["end"])


class VehicleAvailabilityView(LogContextMixin, APIView):
    """Can this vehicle be booked over ``[start, end)``?"""

    permission_classes = [permissions.AllowAny]

    @extend_schema(parameters=[DateWindowSerializer])
    def get(self, request, vehicle_id: int):  # type: ignore
        vehicle = get_object_or_404(Vehicle, pk=vehicle_id)
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)
        start, end = window.validated_data["start"], window.validated_data["end"]

        periods = conflicting_periods(vehicle.pk, start, end)
        return Response(
            {
                "vehicle_id": vehicle.pk,
                "start": start,
                "end": end,
                "available": not periods,
                "conflicting_periods": BookingPeriodSerializer(periods, many=True).data,
            }
        )
