import logging
import string
from datetime import datetime, timezone
from typing import Optional

from supabase import Client

from app.core.errors import (
    ConflictError, NotFoundError, StoreError, ValidationError, is_invalid_input, is_unique_violation
)
from app.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20
# Suffixes 1..99 are tried after the bare local-part
NICKNAME_MAX_SUFFIX = 99


def _is_nickname_char(char: str) -> bool:
    # Unicode letters (Hangul included), ASCII digits and "_"; not "½" or "²"
    return char == "_" or char.isalpha() or char in string.digits


def has_valid_nickname_chars(nickname: str) -> bool:
    return bool(nickname) and all(_is_nickname_char(c) for c in nickname)


def validate_nickname(nickname: Optional[str]) -> str:
    """Raise ValidationError naming the first violated nickname rule."""
    if nickname is None or not nickname.strip():
        raise ValidationError("Nickname is required")
    if not NICKNAME_MIN_LENGTH <= len(nickname) <= NICKNAME_MAX_LENGTH:
        raise ValidationError(
            f"Nickname must be between {NICKNAME_MIN_LENGTH} and {NICKNAME_MAX_LENGTH} characters"
        )
    if not has_valid_nickname_chars(nickname):
        raise ValidationError("Nickname may only contain letters, digits and underscores")
    return nickname


def _usable_initial_nickname(nickname: str) -> bool:
    """Charset and max-length rules. A one-character local-part is still accepted."""
    return len(nickname) <= NICKNAME_MAX_LENGTH and has_valid_nickname_chars(nickname)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find_user(self, user_id: str) -> Optional[dict]:
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            # users.id is a uuid; a malformed id names no user
            if is_invalid_input(e):
                return None
            raise
        return result.data[0] if result.data else None

    def _nickname_holder(self, nickname: str) -> Optional[str]:
        """Return the id of the user holding nickname, if any."""
        result = self.supabase.table("users")\
            .select("id")\
            .eq("nickname", nickname)\
            .limit(1)\
            .execute()
        return result.data[0]["id"] if result.data else None

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            user = self._find_user(user_id)
        except Exception:
            logger.exception(f"Failed to load user {user_id}")
            raise StoreError()
        if not user:
            raise NotFoundError("User not found")
        return UserResponse(**user)

    def find_user(self, user_id: str) -> Optional[UserResponse]:
        """Like get_user_by_id but returns None for a missing row."""
        try:
            user = self._find_user(user_id)
        except Exception:
            logger.exception(f"Failed to load user {user_id}")
            raise StoreError()
        return UserResponse(**user) if user else None

    def is_nickname_available(self, nickname: str) -> bool:
        validate_nickname(nickname)
        try:
            return self._nickname_holder(nickname) is None
        except Exception:
            logger.exception("Failed to check nickname availability")
            raise StoreError()

    def resolve_initial_nickname(self, email: str) -> Optional[str]:
        """
        Derive a first nickname from the email local-part.

        Returns the local-part itself when unused, otherwise the local-part
        with the smallest free suffix in 1..99. Returns None when all of those
        are taken, or when the local-part breaks the nickname charset or
        length rules (e.g. "john.doe+maps"); the user then has to pick a
        nickname during onboarding. The search stops at the first suffixed
        form longer than the maximum length. The result is only a candidate:
        uniqueness is enforced again when it is written.
        """
        candidate = email.split("@", 1)[0]
        if not _usable_initial_nickname(candidate):
            logger.info(f"Local-part '{candidate}' is not a valid nickname; deferring to onboarding")
            return None
        try:
            if self._nickname_holder(candidate) is None:
                return candidate
            for suffix in range(1, NICKNAME_MAX_SUFFIX + 1):
                nickname = f"{candidate}{suffix}"
                if not _usable_initial_nickname(nickname):
                    break
                if self._nickname_holder(nickname) is None:
                    return nickname
        except Exception:
            logger.exception(f"Failed to resolve initial nickname for {candidate}")
            raise StoreError()
        logger.warning(f"No free nickname for local-part '{candidate}'; deferring to onboarding")
        return None

    def _insert_user(self, user_id: str, email: str, auth_provider: str, nickname: Optional[str]) -> dict:
        result = self.supabase.table("users").insert({
            "id": user_id,
            "email": email,
            "nickname": nickname,
            "auth_provider": auth_provider,
        }).execute()
        if not result.data:
            raise StoreError("Failed to create user")
        return result.data[0]

    def ensure_user(self, user_id: str, email: str, auth_provider: str) -> UserResponse:
        """Return the users row for an authenticated account, creating it on first sign-in."""
        existing = self.find_user(user_id)
        if existing:
            return existing

        nickname = self.resolve_initial_nickname(email)
        try:
            try:
                user = self._insert_user(user_id, email, auth_provider, nickname)
            except Exception as e:
                if not is_unique_violation(e):
                    raise
                # Either another sign-up took the nickname, or this id was
                # inserted concurrently by a parallel callback.
                existing = self._find_user(user_id)
                if existing:
                    return UserResponse(**existing)
                logger.warning(f"Nickname '{nickname}' taken during sign-up of {user_id}; deferring to onboarding")
                user = self._insert_user(user_id, email, auth_provider, None)
        except StoreError:
            raise
        except Exception:
            logger.exception(f"Failed to create user {user_id}")
            raise StoreError()

        logger.info(f"Created user {user_id} with nickname {user['nickname']!r}")
        return UserResponse(**user)

    def set_nickname(self, user_id: str, nickname: str) -> UserResponse:
        """Set or change a user's nickname. Validation happens before any store access."""
        validate_nickname(nickname)
        try:
            user = self._find_user(user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.get("nickname") == nickname:
                return UserResponse(**user)

            holder = self._nickname_holder(nickname)
            if holder is not None and holder != user_id:
                raise ConflictError("Nickname is already taken")

            # The UNIQUE constraint on users.nickname decides concurrent writers
            result = self.supabase.table("users")\
                .update({"nickname": nickname, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
        except (NotFoundError, ConflictError):
            raise
        except Exception as e:
            if is_unique_violation(e):
                logger.warning(f"Nickname '{nickname}' claimed concurrently; rejecting update for {user_id}")
                raise ConflictError("Nickname is already taken")
            logger.exception(f"Failed to update nickname for {user_id}")
            raise StoreError()

        if not result.data:
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} nickname set to {nickname!r}")
        return UserResponse(**result.data[0])
