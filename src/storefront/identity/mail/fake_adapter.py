"""In-memory mailer for development and tests."""

from uuid import uuid4

from storefront.identity.mail.port import DeliveryReceipt, MailerPort, OutgoingEmail


class FakeMailer(MailerPort):
    def __init__(self) -> None:
        self.sent_emails: list[OutgoingEmail] = []
        self.refuse_with: str | None = None

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed") -> None:
        self.refuse_with = None if should_succeed else failure_reason

    def send(self, message: OutgoingEmail) -> DeliveryReceipt:
        if self.refuse_with is not None:
            return DeliveryReceipt(delivered=False, error=self.refuse_with)
        self.sent_emails.append(message)
        return DeliveryReceipt(delivered=True, message_id=f"email-{uuid4().hex[:12]}")

    def reset(self) -> None:
        self.sent_emails.clear()
        self.refuse_with = None
