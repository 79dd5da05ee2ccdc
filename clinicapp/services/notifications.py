"""
Push onboarding events to connected admin dashboards.

Events go out through the Channels layer to the ``admin-updates`` group
served by :class:`clinicapp.realtime.consumers.AdminUpdatesConsumer`.
They are sent only once the surrounding transaction commits, so a
rolled back approval never reaches a dashboard.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

ADMIN_GROUP = 'admin-updates'


def _send(event: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(ADMIN_GROUP, event)
    except (OSError, RuntimeError) as exc:
        # the change is committed already; a dead layer only costs the live update
        logger.warning('could not broadcast %s: %s', event.get('event'), exc)


def broadcast_admin_event(name: str, **payload) -> None:
    """Queue ``name`` for the admin feed once the current transaction commits."""
    event = {
        'type': 'admin.event',
        'event': name,
        'ts': timezone.now().isoformat(),
        'data': payload,
    }
    transaction.on_commit(lambda: _send(event))
