"""Outbound email port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    sender: str
    to: str
    subject: str
    body: str
    html_body: str | None = None


@dataclass(frozen=True)
class DeliveryReceipt:
    delivered: bool
    message_id: str | None = None
    error: str | None = None


class MailerPort(ABC):
    @abstractmethod
    def send(self, message: OutgoingEmail) -> DeliveryReceipt:
        """Hand ``message`` to the mail service.

        Refusals come back as an undelivered receipt; transport errors may raise.
        """
