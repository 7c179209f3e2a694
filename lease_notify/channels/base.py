"""
Delivery channel protocol.

A channel delivers one reminder to one audience and reports success as a
boolean.  Timeouts and transport errors are failures, never exceptions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lease_kernel.domain.dtos import ContractSnapshot, NotificationKind


@runtime_checkable
class ReminderChannel(Protocol):
    """Two independent audiences: the internal team and the contract's owner."""

    def send_internal_reminder(
        self,
        snapshot: ContractSnapshot,
        kind: NotificationKind,
        year: int | None = None,
    ) -> bool:
        ...

    def send_subject_reminder(
        self,
        snapshot: ContractSnapshot,
        kind: NotificationKind,
        year: int | None = None,
    ) -> bool:
        ...
