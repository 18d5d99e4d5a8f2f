"""
Tray lifecycle.

    Preparation Started -> Accuracy Validated -> En Route -> Delivered -> Retrieved

A tray is created in the first status by create_meal_request(). advance_tray()
moves it exactly one step and stamps the timestamp column of the status it
enters; "Retrieved" is terminal. There is no jump-to-status operation.
"""

import logging

from django.utils import timezone

from .constants import TRAY_STATUSES, TRAY_TIMESTAMP_FIELDS
from .exceptions import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


def next_tray_status(status):
    """The status after `status`. Raises InvalidStateError at the end of the sequence."""
    if status not in TRAY_STATUSES:
        raise InvalidStateError(
            message=f"Unknown tray status {status!r}",
            code='UNKNOWN_TRAY_STATUS',
            detail={'status': status},
        )

    index = TRAY_STATUSES.index(status)
    if index == len(TRAY_STATUSES) - 1:
        raise InvalidStateError(
            message='Tray already at final status',
            code='TRAY_ALREADY_FINAL',
            detail={'status': status},
        )
    return TRAY_STATUSES[index + 1]


def advance_tray(storage, tray_id, now=None):
    """
    Move a tray one step along the lifecycle and return it with its
    meal request and patient attached.

    The write only applies while the tray is still in the status that was
    read, so two concurrent advances cannot both succeed and a timestamp is
    never written twice.
    """
    now = now or timezone.now()

    with storage.atomic():
        tray = storage.trays.get(tray_id)
        if tray is None:
            raise NotFoundError(
                message='Tray not found',
                code='TRAY_NOT_FOUND',
                detail={'tray_id': str(tray_id)},
            )

        target = next_tray_status(tray.status)
        field = TRAY_TIMESTAMP_FIELDS.get(target)
        if not storage.trays.transition(tray.id, tray.status, target, field, now):
            raise InvalidStateError(
                message='Tray status changed concurrently, reload and retry',
                code='TRAY_STATUS_CONFLICT',
                detail={'tray_id': str(tray_id), 'expected_status': tray.status},
            )

    logger.info("[Tray] id=%s %s -> %s", tray.id, tray.status, target)
    return storage.trays.get_detail(tray.id)


def list_trays(storage):
    return storage.trays.list_all()
