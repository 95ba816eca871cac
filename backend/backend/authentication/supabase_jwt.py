"""
Bearer-token authentication for tokens issued by Supabase Auth.
Tokens are HS256 JWTs signed with the project's JWT secret; `sub` is the
user's UUID and becomes the local primary key.
"""

import logging

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)
User = get_user_model()


def get_jwt_secret():
    raw = getattr(settings, 'SUPABASE_JWT_SECRET', None) or getattr(settings, 'JWT_SECRET', None)
    if not raw:
        return None
    return raw.strip().strip('\'"')


def decode_token(token):
    """Verify signature and expiry; return the payload"""
    secret = get_jwt_secret()
    if not secret:
        logger.error("[AUTH] SUPABASE_JWT_SECRET/JWT_SECRET is not configured. Authorization will fail.")
        raise AuthenticationFailed('Authentication is not configured')
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=['HS256'],
            options={'verify_aud': False, 'require': ['sub', 'exp']},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed('Token has expired')
    except jwt.InvalidTokenError as e:
        raise AuthenticationFailed(f'Invalid token: {e}')


def validate_user(payload):
    """
    Return the user for a verified payload, creating it on first sight.
    A concurrent first login can race the insert; fall back to the row that won.
    """
    subject = payload.get('sub')
    email = payload.get('email')
    metadata = payload.get('user_metadata') or {}

    user = User.objects.filter(pk=subject).first()
    if user:
        return user

    if not email:
        raise AuthenticationFailed('Token has no email claim')

    logger.info(f"[AUTH] User not found in DB. Creating user {subject}")
    try:
        with transaction.atomic():
            user = User.objects.create(
                id=subject,
                username=str(subject),
                email=email,
                name=metadata.get('full_name') or email,
                avatar_url=metadata.get('avatar_url'),
            )
            user.set_unusable_password()
            user.save(update_fields=['password'])
    except IntegrityError:
        user = User.objects.filter(email=email).first() or User.objects.filter(pk=subject).first()
        if user is None:
            raise
        logger.info(f"[AUTH] Using existing user {user.pk}")
    return user


def user_from_token(token):
    return validate_user(decode_token(token))


class SupabaseJWTAuthentication(BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        header = get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise AuthenticationFailed('Invalid authorization header')
        try:
            token = header[1].decode()
        except UnicodeError:
            raise AuthenticationFailed('Invalid authorization header')

        user = user_from_token(token)
        if not user.is_active:
            raise AuthenticationFailed('User inactive or deleted')
        return (user, token)

    def authenticate_header(self, request):
        return self.keyword
