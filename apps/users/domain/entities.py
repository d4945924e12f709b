"""
Hosted auth mirrors

- AuthUser: the account as returned by the hosted auth service
- AuthSessionToken: an access/refresh token pair with its expiry
- UserProfile: the `user_profiles` row of an account
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone as dt_timezone
from enum import Enum
from typing import List

from django.utils import timezone  # type: ignore

from shared.domain.base import Entity
from shared.infrastructure.rows import row_datetime


class UserType(Enum):
    TRAVELER = 'traveler'
    HOST = 'host'
    BOTH = 'both'


@dataclass(eq=False)
class AuthUser(Entity):
    email: str = ''
    metadata: dict = field(default_factory=dict, repr=False)

    # DRF asks these of request.user
    is_authenticated = True
    is_anonymous = False

    @classmethod
    def from_payload(cls, payload: dict) -> 'AuthUser':
        return cls(
            id=payload['id'],
            created_at=row_datetime(payload.get('created_at')),
            updated_at=row_datetime(payload.get('updated_at')),
            email=payload.get('email') or '',
            metadata=payload.get('user_metadata') or {},
        )

    @property
    def pk(self) -> str:
        return self.id

    def __str__(self):
        return self.email or self.id


@dataclass(frozen=True)
class AuthSessionToken:
    access_token: str
    refresh_token: str = ''
    expires_at: datetime | None = None
    token_type: str = 'bearer'

    @classmethod
    def from_payload(cls, payload: dict) -> 'AuthSessionToken':
        expires_at = None
        if payload.get('expires_at'):
            expires_at = datetime.fromtimestamp(int(payload['expires_at']), tz=dt_timezone.utc)
        elif payload.get('expires_in'):
            expires_at = timezone.now() + timedelta(seconds=int(payload['expires_in']))
        return cls(
            access_token=payload['access_token'],
            refresh_token=payload.get('refresh_token') or '',
            expires_at=expires_at,
            token_type=payload.get('token_type') or 'bearer',
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or timezone.now()) >= self.expires_at


PROFILE_FIELDS = (
    'email', 'username', 'first_name', 'last_name', 'phone', 'avatar_url',
    'bio', 'user_type', 'languages', 'is_verified',
)


@dataclass(eq=False)
class UserProfile(Entity):
    email: str = ''
    username: str = ''
    first_name: str = ''
    last_name: str = ''
    phone: str = ''
    avatar_url: str = ''
    bio: str = ''
    user_type: UserType = UserType.TRAVELER
    languages: List[str] = field(default_factory=list)
    is_verified: bool = False

    @classmethod
    def from_row(cls, row: dict) -> 'UserProfile':
        return cls(
            id=row['id'],
            created_at=row_datetime(row.get('created_at')),
            updated_at=row_datetime(row.get('updated_at')),
            email=row.get('email') or '',
            username=row.get('username') or '',
            first_name=row.get('first_name') or '',
            last_name=row.get('last_name') or '',
            phone=row.get('phone') or '',
            avatar_url=row.get('avatar_url') or '',
            bio=row.get('bio') or '',
            user_type=UserType(row.get('user_type') or UserType.TRAVELER.value),
            languages=list(row.get('languages') or []),
            is_verified=bool(row.get('is_verified')),
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_host(self) -> bool:
        return self.user_type in (UserType.HOST, UserType.BOTH)

    def with_updates(self, updates: dict) -> 'UserProfile':
        changes = {key: value for key, value in updates.items() if key in PROFILE_FIELDS}
        if 'user_type' in changes and not isinstance(changes['user_type'], UserType):
            changes['user_type'] = UserType(changes['user_type'])
        return replace(self, **changes)
