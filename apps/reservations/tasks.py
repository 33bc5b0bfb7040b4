"""Celery tasks for the reservation domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.core.mail import send_mail  # type: ignore

from .models import RentalRequest

logger = logging.getLogger(__name__)

DECISION_SUBJECTS = {
    RentalRequest.Status.APPROVED: "Your rental request #{id} was approved",
    RentalRequest.Status.DECLINED: "Your rental request #{id} was declined",
}


def _find_recipient(user_id: str):
    User = get_user_model()
    users = User.objects.filter(pk=user_id) if str(user_id).isdigit() else User.objects.none()
    return users.exclude(email="").first()


@shared_task(name="reservations.notify_request_decision")
def notify_request_decision(request_id: int) -> bool:
    """
    Email the requester about an approval or a decline.

    Runs after the decision has been committed; a failure here never
    changes the request.
    """

    try:
        rental_request = RentalRequest.objects.select_related("vehicle").get(pk=request_id)
    except RentalRequest.DoesNotExist:
        logger.info("Rental request %s no longer exists, nothing to notify", request_id)
        return False

    subject = DECISION_SUBJECTS.get(rental_request.status)
    if subject is None:
        return False

    recipient = _find_recipient(rental_request.user_id)
    if recipient is None:
        logger.info("No e-mail address for user %s, skipping notification", rental_request.user_id)
        return False

    vehicle = rental_request.vehicle
    if rental_request.status == RentalRequest.Status.APPROVED:
        body = (
            f"{vehicle} is reserved for you from {rental_request.pick_up_date:%d.%m.%Y} "
            f"until {rental_request.return_date:%d.%m.%Y}."
        )
    else:
        body = (
            f"{vehicle} cannot be rented from {rental_request.pick_up_date:%d.%m.%Y} "
            f"until {rental_request.return_date:%d.%m.%Y}. Please pick another vehicle or other dates."
        )

    try:
        send_mail(
            subject=subject.format(id=rental_request.pk),
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient.email],
            fail_silently=False,
        )
    except Exception as exc:
        logger.error("Failed to notify %s about request %s: %s", recipient.email, request_id, exc, exc_info=True)
        return False

    logger.info("Decision e-mail for request %s sent to %s", request_id, recipient.email)
    return True
