# core/supabase_auth.py
# Custom DRF authentication class to verify Supabase JWTs

import os
import logging
import jwt
from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger("cos")

User = get_user_model()


class SupabaseJWTAuthentication(BaseAuthentication):
    """
    Validates access tokens issued by Supabase Auth.

    1. Extracts the JWT from the Authorization header
    2. Verifies the signature with SUPABASE_JWT_SECRET
    3. Maps the token to a local user by email, creating one on first sight

    The app role is read from `app_metadata.role` (falling back to
    `user_metadata.role`) and synced onto the local user.
    """

    def authenticate(self, request):
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            return None  # Let other auth backends handle it

        token = auth_header.split(" ")[1]

        supabase_jwt_secret = os.environ.get("SUPABASE_JWT_SECRET")
        if not supabase_jwt_secret:
            logger.warning("SUPABASE_JWT_SECRET not configured")
            return None

        try:
            # Supabase uses HS256 by default
            payload = jwt.decode(
                token,
                supabase_jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid Supabase token: {e}")
            return None  # Let other auth backends try

        if not payload.get("sub"):
            raise AuthenticationFailed("Invalid token: missing user ID")

        user = self._get_or_create_user(payload)
        return (user, payload)

    @staticmethod
    def _role_from_payload(payload: dict):
        for claim in ("app_metadata", "user_metadata"):
            role = (payload.get(claim) or {}).get("role")
            if role in dict(User.ROLE_CHOICES):
                return role
        return None

    def _get_or_create_user(self, payload: dict):
        email = payload.get("email")
        if not email:
            raise AuthenticationFailed("Token missing email claim")

        role = self._role_from_payload(payload)

        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            username = email.split("@")[0]
            # Ensure unique username
            base_username = username
            counter = 1
            while User.objects.filter(username=username).exists():
                username = f"{base_username}_{counter}"
                counter += 1

            user = User.objects.create(
                username=username,
                email=email,
                role=role or User.ROLE_DONOR,
            )
            logger.info(f"Created new user from Supabase: {email}")
            return user

        if role and user.role != role:
            user.role = role
            user.save(update_fields=["role"])

        return user
