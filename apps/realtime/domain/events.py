"""Realtime domain events."""

from dataclasses import dataclass

from shared.domain.base import DomainEvent

from apps.realtime.domain.changes import ChangeEvent


@dataclass(kw_only=True)
class RowChanged(DomainEvent):
    """A row of the hosted database changed"""
    change: ChangeEvent

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'table': self.change.table,
            'type': self.change.event_type.value,
            'row_id': self.change.row_id,
        })
        return data
