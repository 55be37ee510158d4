"""Batch preconditions: failing any of them leaves every row untouched."""

from src.fx_payouts.domain.models import BankAccount, PayoutItem, PayoutRecipient
from src.fx_payouts.domain.variants import PayoutVariant

INVALID_ITEM_STATUS = "invalid_item_status"
ONBOARDING_INCOMPLETE = "onboarding_incomplete"
TAX_INFORMATION_UNCONFIRMED = "tax_information_unconfirmed"
TAX_ID_UNVERIFIED = "tax_id_unverified"
BANK_ACCOUNT_MISSING = "bank_account_missing"


def precondition_failure(
    variant: PayoutVariant,
    items: list[PayoutItem],
    recipient: PayoutRecipient,
    bank_account: BankAccount | None,
) -> str | None:
    """Return the first failing precondition, or None when the batch may proceed."""
    if any(i.status not in variant.valid_statuses for i in items):
        return INVALID_ITEM_STATUS
    if not recipient.completed_onboarding:
        return ONBOARDING_INCOMPLETE
    if recipient.tax_information_confirmed_at is None:
        return TAX_INFORMATION_UNCONFIRMED
    if variant.requires_bank_account and bank_account is None:
        return BANK_ACCOUNT_MISSING
    if not recipient.tax_id_verified:
        return TAX_ID_UNVERIFIED
    return None


def is_sanctioned(country_code: str, sanctioned_country_codes: list[str]) -> bool:
    return country_code.upper() in {c.upper() for c in sanctioned_country_codes}
