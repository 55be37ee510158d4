"""Default payout notifier: records the failure notification in the log.

Mail delivery lives outside this service; the log line is the enqueue record.
"""

import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


class LoggingPayoutNotifier:
    async def payment_failed(
        self,
        kind: str,
        payment_id: str,
        amount: Decimal,
        currency: str,
        net_amount_in_usd_cents: int,
    ) -> None:
        logger.warning(
            "Enqueued %s payment failure notice: payment=%s amount=%s %s net_usd_cents=%d",
            kind, payment_id, amount, currency, net_amount_in_usd_cents,
        )
