# Group chat websocket
import json
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from rest_framework.exceptions import AuthenticationFailed

from authentication.supabase_jwt import user_from_token
from common.errors import ServiceError

from .services import GroupService, chat_group_name

logger = logging.getLogger(__name__)

CLOSE_UNAUTHORIZED = 4001
CLOSE_FORBIDDEN = 4003


class GroupChatConsumer(AsyncWebsocketConsumer):
    """
    Live feed for one group. Clients authenticate with `?token=<jwt>` and
    must be members. Incoming frames `{"content": ..., "consumptionId": ...}`
    are stored as messages; every stored message is relayed to the group.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.group_id = None
        self.group_name = None

    @database_sync_to_async
    def get_user_from_token(self, token):
        try:
            return user_from_token(token)
        except AuthenticationFailed as e:
            logger.warning(f"[GROUPS] Websocket token rejected: {e.detail}")
            return None

    @database_sync_to_async
    def is_member(self):
        return GroupService().is_member(self.user, self.group_id)

    @database_sync_to_async
    def save_message(self, content, consumption_id):
        return GroupService().send_message(self.user, self.group_id, content, consumption_id)

    async def connect(self):
        self.group_id = self.scope['url_route']['kwargs']['group_id']
        self.group_name = chat_group_name(self.group_id)

        query_params = parse_qs(self.scope.get('query_string', b'').decode())
        token = query_params.get('token', [None])[0]

        if token:
            self.user = await self.get_user_from_token(token)
        if self.user is None:
            logger.info(f"[GROUPS] Rejecting unauthenticated socket for group {self.group_id}")
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        if not await self.is_member():
            logger.info(f"[GROUPS] {self.user} is not a member of group {self.group_id}")
            await self.close(code=CLOSE_FORBIDDEN)
            return

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"[GROUPS] {self.user} joined chat for group {self.group_id}")

    async def disconnect(self, close_code):
        if self.group_name and self.channel_layer is not None:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        try:
            payload = json.loads(text_data or '{}')
        except json.JSONDecodeError:
            await self.send(text_data=json.dumps({'type': 'error', 'message': 'Invalid JSON'}))
            return

        content = payload.get('content')
        consumption_id = payload.get('consumptionId')
        if not content and not consumption_id:
            await self.send(text_data=json.dumps({'type': 'error', 'message': 'A message needs content or a consumption'}))
            return

        try:
            await self.save_message(content, consumption_id)
        except ServiceError as e:
            await self.send(text_data=json.dumps({'type': 'error', 'message': e.message}))

    async def chat_message(self, event):
        await self.send(text_data=json.dumps({'type': 'message', 'message': event['message']}))
