"""Client portal invitations."""

import logging
import secrets
from typing import Any, Optional
from urllib.parse import urlencode

from billsense.config.settings import BillSenseSettings, get_config
from billsense.database.base import Database
from billsense.domain.errors import DomainError, NotFoundError, ProviderError, ValidationError, client_not_found
from billsense.email.providers import custom_brevo_provider, system_provider
from billsense.email.templates import (
    render_client_invite_email,
    render_password_reset_email,
    render_portal_access_email,
)

logger = logging.getLogger(__name__)

Envelope = tuple[dict[str, Any], int]

RESET_MESSAGE = "Password reset email sent successfully!"
EXISTING_USER_MESSAGE = "User already has an account. Access notification email sent!"
INVITED_MESSAGE = "Invitation sent successfully!"


class ClientInviteService:
    """Invites a client's contact to the client portal."""

    def __init__(self, db: Database, config: Optional[BillSenseSettings] = None):
        """Initialize client invite service.

        Args:
            db: Database instance
            config: Settings; the global configuration when omitted
        """
        self.db = db
        self.config = config or get_config()

    def action_link(self, email: str, purpose: str) -> str:
        """One-time link to the portal's password setup page."""
        query = urlencode({"email": email, "type": purpose, "token": secrets.token_urlsafe(24)})
        return f"{self.config.site_url.rstrip('/')}/client/setup-password?{query}"

    def invite(self, client_id: Optional[int], email: Optional[str], is_resend: bool = False) -> dict[str, Any]:
        """Invite or re-invite a portal user and link them to the client.

        Returns:
            {"message": ..., "user_id": ...}

        Raises:
            ValidationError: If client ID or e-mail is missing
            NotFoundError: If the client does not exist
            ProviderError: If the system provider fails
        """
        if not client_id or not email:
            raise ValidationError("Client ID and email are required")
        email = email.strip().lower()

        existing = self.db.get_auth_user_by_email(email)
        if existing is not None and is_resend:
            system_provider(self.config).send(
                email, None, render_password_reset_email(self.action_link(email, "recovery"))
            )
            return {"message": RESET_MESSAGE, "user_id": existing.id}

        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        user_id = existing.id if existing is not None else None
        email_sent = False

        brevo = custom_brevo_provider(self.db.get_email_settings(client.company_id), self.config)
        if brevo is not None:
            if user_id is None:
                user_id = self.db.create_auth_user(email, invited_for_client=client_id)
            try:
                brevo.send(email, None, render_client_invite_email(self.action_link(email, "invite")))
                email_sent = True
            except ProviderError as e:
                logger.warning("Failed to send invite via Brevo, falling back to system default: %s", e)

        if not email_sent:
            system = system_provider(self.config)
            if existing is not None:
                system.send(email, None, render_portal_access_email(self.action_link(email, "access")))
            else:
                if user_id is None:
                    user_id = self.db.create_auth_user(email, invited_for_client=client_id)
                system.send(email, None, render_client_invite_email(self.action_link(email, "invite")))

        self.db.upsert_client_user(client_id=client_id, email=email, auth_user_id=user_id)

        if existing is not None and not is_resend:
            message = EXISTING_USER_MESSAGE
        elif is_resend:
            message = RESET_MESSAGE
        else:
            message = INVITED_MESSAGE
        logger.info("Client %s portal invite for %s: %s", client_id, email, message)
        return {"message": message, "user_id": user_id}

    def invite_client_user(
        self, client_id: Optional[int], email: Optional[str], is_resend: bool = False
    ) -> Envelope:
        """Invite a portal user; errors are reported in the body with status 200."""
        try:
            return self.invite(client_id, email, is_resend), 200
        except DomainError as e:
            logger.error("Error in invitation process: %s", e)
            return {"error": str(e)}, 200
