"""
Row change values

- ChangeEvent: one INSERT, UPDATE or DELETE of a row
- RowFilter: the single-column equality filter a subscription listens with
- SubscriptionStatus: channel lifecycle as reported to subscribers
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from shared.domain.base import ValueObject


class ChangeType(Enum):
    INSERT = 'INSERT'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'


class SubscriptionStatus(Enum):
    SUBSCRIBED = 'SUBSCRIBED'
    CHANNEL_ERROR = 'CHANNEL_ERROR'
    TIMED_OUT = 'TIMED_OUT'
    CLOSED = 'CLOSED'


@dataclass(frozen=True)
class ChangeEvent(ValueObject):
    table: str
    event_type: ChangeType
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)
    schema: str = 'public'

    @classmethod
    def from_webhook(cls, payload: dict) -> 'ChangeEvent':
        """Database webhook body: type, table, schema, record, old_record"""
        return cls(
            table=payload['table'],
            event_type=ChangeType(payload['type'].upper()),
            new=payload.get('record') or {},
            old=payload.get('old_record') or {},
            schema=payload.get('schema') or 'public',
        )

    @property
    def row(self) -> Dict[str, Any]:
        """The row as it is after the change, or as it was before a delete"""
        return self.old if self.event_type == ChangeType.DELETE else self.new

    @property
    def row_id(self) -> Any:
        return self.row.get('id')


@dataclass(frozen=True)
class RowFilter(ValueObject):
    column: str
    value: str

    @classmethod
    def parse(cls, expression: str) -> 'RowFilter':
        """`guest_id=eq.<uuid>`; equality is the only operator supported"""
        column, _, rest = expression.partition('=')
        operator, _, value = rest.partition('.')
        if not column or operator != 'eq' or not value:
            raise ValueError(f"Unsupported row filter: {expression!r}")
        return cls(column=column, value=value)

    def matches(self, row: Dict[str, Any]) -> bool:
        return row.get(self.column) is not None and str(row.get(self.column)) == self.value

    def __str__(self):
        return f"{self.column}=eq.{self.value}"
