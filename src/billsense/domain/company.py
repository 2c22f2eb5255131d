"""Company onboarding and settings domain service."""

import logging
from typing import Optional

from billsense.database.base import Database
from billsense.domain.entities import Company, EmailProviderName, EmailSettings, ProviderConfig
from billsense.domain.errors import ConflictError, NotFoundError, ValidationError, profile_not_found

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for profiles, companies and per-company settings."""

    def __init__(self, db: Database):
        """Initialize company service.

        Args:
            db: Database instance
        """
        self.db = db

    def register_user(self, email: str, full_name: str) -> int:
        """Create a profile for a new user, or return the existing one's ID."""
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid e-mail address is required")
        if not (full_name or "").strip():
            raise ValidationError("Full name is required")

        existing = self.db.get_profile_by_email(email)
        if existing is not None:
            return existing.id
        return self.db.create_profile(email=email, full_name=full_name.strip())

    def onboard(
        self,
        user_id: int,
        company_name: str,
        email: Optional[str] = None,
        currency: str = "USD",
        invoice_prefix: str = "INV-",
    ) -> int:
        """Create a company and attach the user's profile to it.

        Returns:
            Company ID

        Raises:
            NotFoundError: If the profile does not exist
            ConflictError: If the profile already belongs to a company
        """
        if not (company_name or "").strip():
            raise ValidationError("Company name is required")

        profile = self.db.get_profile(user_id)
        if profile is None:
            raise NotFoundError(profile_not_found(user_id))
        if profile.company_id is not None:
            raise ConflictError(f"Profile {user_id} already belongs to company {profile.company_id}")

        company_id = self.db.create_company(
            name=company_name.strip(),
            email=email or profile.email,
            currency=(currency or "USD").upper(),
            invoice_prefix=invoice_prefix,
        )
        self.db.set_profile_company(user_id, company_id)
        logger.info("Onboarded user %s into company %s", user_id, company_id)
        return company_id

    def get_company(self, company_id: int) -> Company:
        company = self.db.get_company(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")
        return company

    def configure_email(
        self,
        company_id: int,
        provider: str,
        api_key: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_email: Optional[str] = None,
    ) -> EmailSettings:
        """Store the e-mail provider of a company.

        The other provider's stored configuration is kept so switching back
        does not lose it.
        """
        self.get_company(company_id)
        try:
            name = EmailProviderName(provider)
        except ValueError:
            raise ValidationError(f"Unknown e-mail provider '{provider}'")

        current = self.db.get_email_settings(company_id)
        config = ProviderConfig(
            api_key=api_key or None,
            sender_name=sender_name or None,
            sender_email=sender_email or None,
        )
        if name == EmailProviderName.RESEND:
            settings = EmailSettings(provider=name, resend_config=config, brevo_config=current.brevo_config)
        elif name == EmailProviderName.BREVO:
            settings = EmailSettings(provider=name, resend_config=current.resend_config, brevo_config=config)
        else:
            settings = EmailSettings(
                provider=name,
                resend_config=current.resend_config,
                brevo_config=current.brevo_config,
            )

        self.db.save_email_settings(company_id, settings)
        return settings
