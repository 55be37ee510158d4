"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation / lookup
  2xxx: Waterfall
  3xxx: Payouts
  4xxx: Billing
  9xxx: System

Validation and eligibility outcomes (retained payouts, failed approvals) are
returned as results, not raised. Everything here is meant to propagate.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Validation / lookup ---

class CompanyNotFoundError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(1001, f"Company not found: {company_id}", 404)


class InvestorNotFoundError(AppError):
    def __init__(self, company_investor_id: str) -> None:
        super().__init__(1002, f"Company investor not found: {company_investor_id}", 404)


class InvoiceNotFoundError(AppError):
    def __init__(self, invoice_id: str) -> None:
        super().__init__(1003, f"Invoice not found: {invoice_id}", 404)


class CompanyWorkerNotFoundError(AppError):
    def __init__(self, company_worker_id: str) -> None:
        super().__init__(1004, f"Company worker not found: {company_worker_id}", 404)


class DividendRoundNotFoundError(AppError):
    def __init__(self, round_id: str) -> None:
        super().__init__(1005, f"Dividend round not found: {round_id}", 404)


# --- 2xxx: Waterfall ---

class ScenarioNotFoundError(AppError):
    def __init__(self, scenario_id: str) -> None:
        super().__init__(2001, f"Liquidation scenario not found: {scenario_id}", 404)


class InvalidExitAmountError(AppError):
    def __init__(self, exit_amount_cents: int) -> None:
        super().__init__(
            2002, f"Exit amount must be positive, got {exit_amount_cents} cents", 422
        )


class NoInvestorsError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(2003, f"No investors found for company {company_id}", 422)


class WaterfallInvariantError(AppError):
    """Payouts exceed the exit amount: a modeling bug, never clamped."""

    def __init__(self, total_cents: int, exit_amount_cents: int) -> None:
        super().__init__(
            2004,
            f"Total payouts ({total_cents}) exceed exit amount ({exit_amount_cents})",
            500,
        )


class MultipleDefaultShareClassesError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(
            2005, f"Company {company_id} has more than one default share class", 422
        )


# --- 3xxx: Payouts ---

class PayoutItemsNotFoundError(AppError):
    def __init__(self, item_type_name: str) -> None:
        super().__init__(3001, f"No {item_type_name.lower()}s found for payout", 404)


class ItemsInvestorMismatchError(AppError):
    def __init__(self, item_type_name: str) -> None:
        super().__init__(
            3002, f"{item_type_name}s must belong to the same company investor", 422
        )


class InsufficientPlatformBalanceError(AppError):
    def __init__(self, item_type_name: str, company_investor_id: str) -> None:
        super().__init__(
            3003,
            f"Flexile balance insufficient to pay for {item_type_name.lower()}s "
            f"to investor {company_investor_id}",
            503,
        )


class UnknownCountryError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(3004, f"Unknown country for user {user_id}", 422)


class PayoutProcessorError(AppError):
    """A processor step returned an unusable response. `kind` names the step."""

    QUOTE_CREATION_FAILED = "quote_creation_failed"
    TRANSFER_CREATION_FAILED = "transfer_creation_failed"
    TRANSFER_FUNDING_FAILED = "transfer_funding_failed"
    RECIPIENT_ACCOUNT_INACTIVE = "recipient_account_inactive"

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(3005, message, 502)


class PaymentNotFoundError(AppError):
    def __init__(self, transfer_id: str) -> None:
        super().__init__(3006, f"No payment found for transfer {transfer_id}", 404)


class PayoutInProgressError(AppError):
    def __init__(self, lock_key: str) -> None:
        super().__init__(3007, f"Another payout batch holds {lock_key}", 409)


# --- 4xxx: Billing ---

class BillingNotReadyError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(
            4001, f"Should not generate consolidated invoice for company {company_id}", 422
        )


class DividendRoundNotIssuedError(AppError):
    def __init__(self, round_id: str, status: str) -> None:
        super().__init__(
            4002, f"Dividend round {round_id} is not ready for billing (status={status})", 422
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
