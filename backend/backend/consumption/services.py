import logging

from django.db.models import Q
from django.utils import timezone

from common.errors import ForbiddenError
from groups.models import Membership

from .models import Consumption

logger = logging.getLogger(__name__)


class ConsumptionService:
    def create(self, user, data):
        group_id = data.get('groupId')
        if group_id and not Membership.objects.filter(user=user, group_id=group_id).exists():
            raise ForbiddenError('Not a member of this group')

        consumption = Consumption.objects.create(
            amount=data['amount'],
            description=data['description'],
            date=data.get('date') or timezone.now(),
            user=user,
            group_id=group_id,
        )
        logger.info(f"[CONSUMPTION] {user} recorded {consumption.amount} ({consumption.id})")
        return consumption

    def list_for_user(self, user):
        """Own consumptions plus those of every group the user belongs to"""
        return (
            Consumption.objects.filter(Q(user=user) | Q(group__memberships__user=user))
            .select_related('user', 'group')
            .distinct()
            .order_by('-date')
        )
