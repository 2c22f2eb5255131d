"""Transactional e-mail providers.

Each dispatch is a single HTTP request; failures are raised as ProviderError
and never retried or routed to another provider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

from billsense.config.settings import BillSenseSettings
from billsense.domain.entities import EmailProviderName, EmailSettings
from billsense.domain.errors import ProviderError
from billsense.email.templates import RenderedEmail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sender:
    name: str
    email: str


class EmailProvider(ABC):
    """One configured account at an e-mail API."""

    name = "Email"

    def __init__(self, api_key: str, sender: Sender, api_url: str, timeout: float = 10.0):
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout

    @abstractmethod
    def build_request(
        self, to_email: str, to_name: Optional[str], message: RenderedEmail
    ) -> tuple[dict, dict]:
        """Return (headers, json payload) for one message."""

    def send(self, to_email: str, to_name: Optional[str], message: RenderedEmail) -> None:
        """Send one message.

        Raises:
            ProviderError: On a network failure or a non-success response
        """
        headers, payload = self.build_request(to_email, to_name, message)
        try:
            response = requests.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("%s request failed: %s", self.name, e)
            raise ProviderError(f"{self.name} API error: {e}")

        if not response.ok:
            logger.error("%s API error %s: %s", self.name, response.status_code, response.text)
            raise ProviderError(f"{self.name} API error: {response.reason} - {response.text}")

        logger.info("Sent '%s' to %s via %s", message.subject, to_email, self.name)


class ResendProvider(EmailProvider):
    name = "Resend"

    def build_request(self, to_email, to_name, message):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": f"{self.sender.name} <{self.sender.email}>",
            "to": [to_email],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        return headers, payload


class BrevoProvider(EmailProvider):
    name = "Brevo"

    def build_request(self, to_email, to_name, message):
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }
        recipient = {"email": to_email}
        if to_name:
            recipient["name"] = to_name
        payload = {
            "sender": {"name": self.sender.name, "email": self.sender.email},
            "to": [recipient],
            "subject": message.subject,
            "htmlContent": message.html,
            "textContent": message.text,
        }
        return headers, payload


def system_sender(config: BillSenseSettings) -> Sender:
    return Sender(name=config.system_sender_name, email=config.system_sender_email)


def system_provider(config: BillSenseSettings) -> BrevoProvider:
    """The platform's own Brevo account.

    Raises:
        ProviderError: If no system API key is configured
    """
    if not config.system_brevo_api_key:
        raise ProviderError("System e-mail provider is not configured (BILLSENSE_BREVO_API_KEY)")
    return BrevoProvider(
        api_key=config.system_brevo_api_key,
        sender=system_sender(config),
        api_url=config.brevo_api_url,
        timeout=config.http_timeout,
    )


def custom_brevo_provider(settings: EmailSettings, config: BillSenseSettings) -> Optional[BrevoProvider]:
    """The company's own Brevo account, if configured with an API key."""
    brevo = settings.brevo_config
    if settings.provider != EmailProviderName.BREVO or not brevo.api_key:
        return None
    default = system_sender(config)
    return BrevoProvider(
        api_key=brevo.api_key,
        sender=Sender(name=brevo.sender_name or default.name, email=brevo.sender_email or default.email),
        api_url=config.brevo_api_url,
        timeout=config.http_timeout,
    )


def select_provider(settings: EmailSettings, config: BillSenseSettings) -> EmailProvider:
    """Pick the provider for a company in fixed preference order.

    Resend (when selected and keyed), then the company's Brevo account (when
    selected and keyed), then the system default.
    """
    resend = settings.resend_config
    if settings.provider == EmailProviderName.RESEND and resend.api_key:
        default = system_sender(config)
        return ResendProvider(
            api_key=resend.api_key,
            sender=Sender(
                name=resend.sender_name or default.name,
                email=resend.sender_email or default.email,
            ),
            api_url=config.resend_api_url,
            timeout=config.http_timeout,
        )

    brevo = custom_brevo_provider(settings, config)
    if brevo is not None:
        return brevo

    return system_provider(config)
