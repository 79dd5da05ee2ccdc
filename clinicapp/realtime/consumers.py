import json
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from clinicapp.authentication import account_from_token
from clinicapp.permissions import ADMIN_ROLES, has_role
from clinicapp.services.notifications import ADMIN_GROUP


@database_sync_to_async
def _admin_from_token(raw_token):
    account = account_from_token(raw_token)
    return account if has_role(account, ADMIN_ROLES) else None


class AdminUpdatesConsumer(AsyncWebsocketConsumer):
    """Live onboarding feed for administrators (``?token=<access token>``)."""
    GROUP = ADMIN_GROUP

    async def connect(self):
        query = parse_qs(self.scope.get("query_string", b"").decode())
        token = (query.get("token") or [""])[0]
        self.account = await _admin_from_token(token) if token else None
        if self.account is None:
            await self.close(code=4003)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        if getattr(self, "account", None) is not None:
            await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def admin_event(self, event):
        # event: {"type": "admin.event", "event": "doctor_request.approved", "ts": "...", "data": {...}}
        await self.send(json.dumps({k: v for k, v in event.items() if k != "type"}))
