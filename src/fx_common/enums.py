"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class SecurityType(str, Enum):
    EQUITY = "equity"
    CONVERTIBLE = "convertible"


class ScenarioStatus(str, Enum):
    DRAFT = "draft"
    CALCULATED = "calculated"


class PayoutKind(str, Enum):
    DIVIDEND = "dividend"
    EQUITY_BUYBACK = "equity_buyback"


class PayoutItemStatus(str, Enum):
    """Shared by dividends and equity buybacks."""
    PENDING_SIGNUP = "Pending signup"
    ISSUED = "Issued"
    RETAINED = "Retained"
    PROCESSING = "Processing"
    PAID = "Paid"


class RetainedReason(str, Enum):
    OFAC_SANCTIONED_COUNTRY = "ofac_sanctioned_country"
    BELOW_MINIMUM_PAYMENT_THRESHOLD = "below_minimum_payment_threshold"


class PaymentStatus(str, Enum):
    INITIAL = "initial"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class WiseTransferState(str, Enum):
    """Transfer states reported by the processor's state-change webhook."""
    INCOMING_PAYMENT_WAITING = "incoming_payment_waiting"
    PROCESSING = "processing"
    FUNDS_CONVERTED = "funds_converted"
    OUTGOING_PAYMENT_SENT = "outgoing_payment_sent"
    CANCELLED = "cancelled"
    FUNDS_REFUNDED = "funds_refunded"
    BOUNCED_BACK = "bounced_back"
    CHARGED_BACK = "charged_back"


class InvoiceStatus(str, Enum):
    RECEIVED = "received"
    APPROVED = "approved"
    PAYMENT_PENDING = "payment_pending"
    PROCESSING = "processing"
    PAID = "paid"
    REJECTED = "rejected"
    FAILED = "failed"


class ConsolidatedInvoiceStatus(str, Enum):
    SENT = "sent"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"


class DividendRoundStatus(str, Enum):
    ISSUED = "Issued"
    PAID = "Paid"
