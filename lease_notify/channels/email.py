"""
SMTP reminder channel.

Sends plain-text expiry reminders: the internal copy goes to the configured
team address, the subject copy to the contract owner's email.  Delivery is
best effort; every failure is logged and reported as False.
"""

from __future__ import annotations

import smtplib
from contextlib import contextmanager
from email.message import EmailMessage
from email.utils import formataddr

from lease_config.schema import NotificationSettings, SmtpSettings
from lease_kernel.domain.dtos import ContractSnapshot, NotificationKind
from lease_kernel.logging_config import get_logger

logger = get_logger("notify.channels.email")


class SmtpReminderChannel:
    """ReminderChannel backed by an SMTP server."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        sender_address: str,
        sender_name: str = "",
        internal_recipient: str | None = None,
        username: str | None = None,
        password: str | None = None,
        use_ssl: bool = False,
        starttls: bool = True,
        timeout_seconds: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender_address = sender_address
        self.sender_name = sender_name
        self.internal_recipient = internal_recipient
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.starttls = starttls
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(
        cls, smtp: SmtpSettings, notification: NotificationSettings,
    ) -> SmtpReminderChannel:
        return cls(
            host=smtp.host,
            port=smtp.port,
            sender_address=notification.sender_address,
            sender_name=notification.sender_name,
            internal_recipient=notification.internal_recipient,
            username=smtp.username,
            password=smtp.password,
            use_ssl=smtp.use_ssl,
            starttls=smtp.starttls,
            timeout_seconds=smtp.timeout_seconds,
        )

    # ------------------------------------------------------------------
    # ReminderChannel
    # ------------------------------------------------------------------

    def send_internal_reminder(
        self,
        snapshot: ContractSnapshot,
        kind: NotificationKind,
        year: int | None = None,
    ) -> bool:
        if not self.internal_recipient:
            logger.warning(
                "internal_recipient_not_configured",
                extra={"contract_id": str(snapshot.contract_id)},
            )
            return False
        return self._send_reminder(snapshot, kind, year, self.internal_recipient, "internal")

    def send_subject_reminder(
        self,
        snapshot: ContractSnapshot,
        kind: NotificationKind,
        year: int | None = None,
    ) -> bool:
        if not snapshot.owner.email:
            logger.warning(
                "owner_email_missing",
                extra={
                    "contract_id": str(snapshot.contract_id),
                    "owner_id": str(snapshot.owner.party_id),
                },
            )
            return False
        return self._send_reminder(snapshot, kind, year, snapshot.owner.email, "subject")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _send_reminder(
        self,
        snapshot: ContractSnapshot,
        kind: NotificationKind,
        year: int | None,
        recipient: str,
        audience: str,
    ) -> bool:
        expiry = snapshot.expiry_date_for(kind, year)
        if expiry is None:
            logger.error(
                "reminder_expiry_date_missing",
                extra={
                    "contract_id": str(snapshot.contract_id),
                    "kind": kind.value,
                    "year": year,
                },
            )
            return False

        message = build_reminder_message(
            snapshot, kind, year, expiry,
            sender=formataddr((self.sender_name, self.sender_address)),
            recipient=recipient,
            audience=audience,
        )
        try:
            with self._connection() as server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "reminder_delivery_failed",
                extra={
                    "contract_id": str(snapshot.contract_id),
                    "kind": kind.value,
                    "year": year,
                    "audience": audience,
                    "error": str(exc),
                },
            )
            return False

        logger.info(
            "reminder_delivered",
            extra={
                "contract_id": str(snapshot.contract_id),
                "kind": kind.value,
                "year": year,
                "audience": audience,
            },
        )
        return True

    @contextmanager
    def _connection(self):
        """Context-managed, authenticated SMTP connection."""
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout_seconds)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        try:
            if not self.use_ssl and self.starttls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            yield server
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                logger.debug("smtp_quit_failed", exc_info=True)


def build_reminder_message(
    snapshot: ContractSnapshot,
    kind: NotificationKind,
    year: int | None,
    expiry,
    *,
    sender: str,
    recipient: str,
    audience: str,
) -> EmailMessage:
    """Plain-text reminder for one obligation."""
    owner = snapshot.owner.full_name
    tenant = snapshot.tenant.full_name
    if kind == NotificationKind.CONTRACT_EXPIRY:
        subject = f"Contract expiry: {owner} - {tenant}"
        what = "the rental contract"
    else:
        subject = f"Annuity {year} due: {owner} - {tenant}"
        what = f"the {year} annuity of the rental contract"

    lines = []
    if audience == "subject":
        lines.append(f"Dear {owner},")
        lines.append("")
    lines.append(f"This is a reminder that {what} expires on {expiry:%d %B %Y}.")
    lines.append("")
    lines.append(f"Owner: {owner}")
    lines.append(f"Tenant: {tenant}")
    if snapshot.contract.address:
        lines.append(f"Address: {snapshot.contract.address}")
    if audience == "internal":
        lines.append(f"Contract: {snapshot.contract_id}")

    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content("\n".join(lines) + "\n")
    return message
