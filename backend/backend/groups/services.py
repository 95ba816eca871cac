"""
Group Service
Groups, invitations and the per-group message feed. New messages are pushed
to everyone connected to the group's chat socket.
"""

import logging
import uuid

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import transaction

from common.errors import ConflictError, ForbiddenError, NotFoundError
from consumption.models import Consumption

from .models import Group, Membership, Message

logger = logging.getLogger(__name__)
User = get_user_model()

FEE_MESSAGE = 'sent a fee'


def chat_group_name(group_id):
    return f"group_chat_{group_id}"


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def broadcast_message(message):
    """Push a saved message to the group's channel-layer group"""
    from .serializers import MessageSerializer

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(
            chat_group_name(message.group_id),
            {'type': 'chat.message', 'message': MessageSerializer(message).data},
        )
    except Exception:
        logger.exception(f"[GROUPS] Failed to broadcast message {message.id}")


class GroupService:
    def __init__(self, notifier=None):
        self.notifier = notifier or broadcast_message

    def create(self, user, name):
        with transaction.atomic():
            group = Group.objects.create(name=name)
            Membership.objects.create(user=user, group=group, role=Membership.ROLE_ADMIN)
        logger.info(f"[GROUPS] {user} created group {group.id}")
        return group

    def list_for_user(self, user):
        return (
            Group.objects.filter(memberships__user=user)
            .prefetch_related('memberships__user')
            .order_by('-created_at')
            .distinct()
        )

    def is_member(self, user, group_id):
        group_uuid = _as_uuid(group_id)
        if group_uuid is None:
            return False
        return Membership.objects.filter(user=user, group_id=group_uuid).exists()

    def _require_membership(self, user, group_id, message='Not a member'):
        if not self.is_member(user, group_id):
            raise ForbiddenError(message)
        return _as_uuid(group_id)

    def get(self, user, group_id):
        group_uuid = _as_uuid(group_id)
        group = None
        if group_uuid is not None:
            group = Group.objects.prefetch_related('memberships__user').filter(pk=group_uuid).first()
        if group is None:
            raise NotFoundError('Group not found')
        if not any(m.user_id == user.pk for m in group.memberships.all()):
            raise ForbiddenError('Not a member')
        return group

    def invite(self, user, group_id, email):
        group_uuid = self._require_membership(user, group_id, 'You are not a member of this group')

        invitee = User.objects.filter(email__iexact=email).first()
        if invitee is None:
            raise NotFoundError('User with that email not found. Please ask them to login first.')

        if Membership.objects.filter(user=invitee, group_id=group_uuid).exists():
            raise ConflictError('User is already a member')

        membership = Membership.objects.create(user=invitee, group_id=group_uuid)
        logger.info(f"[GROUPS] {user} invited {invitee} to group {group_uuid}")
        return membership

    def get_messages(self, user, group_id):
        group_uuid = self._require_membership(user, group_id)
        return (
            Message.objects.filter(group_id=group_uuid)
            .select_related('user', 'consumption', 'consumption__user', 'consumption__group')
            .order_by('created_at')
        )

    def send_message(self, user, group_id, content=None, consumption_id=None):
        group_uuid = self._require_membership(user, group_id)

        consumption = None
        if consumption_id:
            consumption = Consumption.objects.filter(pk=_as_uuid(consumption_id)).first()
            if consumption is None:
                raise NotFoundError('Consumption not found')

        message = Message.objects.create(
            content=content or (FEE_MESSAGE if consumption else ''),
            user=user,
            group_id=group_uuid,
            consumption=consumption,
        )
        transaction.on_commit(lambda: self.notifier(message))
        return message
