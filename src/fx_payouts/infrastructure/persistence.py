"""PayoutRepository: raw SQL over the variant's item and payment tables.

Table names come from PayoutVariant (a fixed whitelist in code, never user
input), so the statements are built per variant and cached.
"""

import uuid
from functools import lru_cache
from typing import Any

from sqlalchemy import TextClause, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fx_common.enums import PaymentStatus, PayoutItemStatus
from src.fx_payouts.domain.models import BankAccount, Payment, PayoutItem, PayoutRecipient
from src.fx_payouts.domain.variants import PayoutVariant

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_RECIPIENT_SQL = text("""
    SELECT ci.id AS company_investor_id, ci.user_id, ci.completed_onboarding,
           ci.minimum_dividend_payment_in_cents,
           u.country_code, u.tax_information_confirmed_at, u.tax_id_verified
    FROM company_investors ci
    JOIN users u ON u.id = ci.user_id
    WHERE ci.id = :company_investor_id
""")

_GET_BANK_ACCOUNT_SQL = text("""
    SELECT id, user_id, recipient_id, currency, last_four_digits
    FROM bank_accounts
    WHERE user_id = :user_id AND deleted_at IS NULL
    ORDER BY created_at DESC
    LIMIT 1
""")

_DELETE_BANK_ACCOUNT_SQL = text("""
    UPDATE bank_accounts SET deleted_at = NOW(), updated_at = NOW()
    WHERE id = :bank_account_id
""")

_PAYMENT_COLUMNS = (
    "id, company_investor_id, processor_uuid, status, wise_transfer_reference, "
    "wise_quote_id, transfer_currency, total_transaction_cents, transfer_fee_in_cents, "
    "transfer_id, conversion_rate, recipient_last4, wise_transfer_status, "
    "wise_transfer_estimate, created_at"
)

_UPDATABLE_PAYMENT_FIELDS = frozenset({
    "status", "wise_quote_id", "transfer_currency", "total_transaction_cents",
    "transfer_fee_in_cents", "transfer_id", "conversion_rate", "recipient_last4",
    "wise_transfer_status", "wise_transfer_estimate",
})


@lru_cache(maxsize=None)
def _variant_sql(variant: PayoutVariant) -> dict[str, TextClause]:
    items = variant.items_table
    payments = variant.payments_table
    links = variant.payment_items_table
    return {
        "get_items": text(f"""
            SELECT id, company_id, company_investor_id, status,
                   total_amount_in_cents, net_amount_in_cents, retained_reason
            FROM {items}
            WHERE id IN :item_ids
            ORDER BY id
            FOR UPDATE
        """).bindparams(bindparam("item_ids", expanding=True)),
        "retain_items": text(f"""
            UPDATE {items}
            SET status = :status, retained_reason = :reason, updated_at = NOW()
            WHERE id IN :item_ids
        """).bindparams(bindparam("item_ids", expanding=True)),
        "set_status": text(f"""
            UPDATE {items}
            SET status = :status, updated_at = NOW()
            WHERE id IN :item_ids
        """).bindparams(bindparam("item_ids", expanding=True)),
        "set_status_clear_reason": text(f"""
            UPDATE {items}
            SET status = :status, retained_reason = NULL, updated_at = NOW()
            WHERE id IN :item_ids
        """).bindparams(bindparam("item_ids", expanding=True)),
        "insert_payment": text(f"""
            INSERT INTO {payments} (
                id, company_investor_id, processor_uuid, status, wise_transfer_reference
            ) VALUES (
                :id, :company_investor_id, :processor_uuid, :status, :reference
            )
            RETURNING {_PAYMENT_COLUMNS}
        """),
        "link_items": text(f"""
            INSERT INTO {links} ({variant.payment_fk}, {variant.payment_item_fk})
            VALUES (:payment_id, :item_id)
        """),
        "find_by_transfer": text(f"""
            SELECT {_PAYMENT_COLUMNS}
            FROM {payments}
            WHERE transfer_id = :transfer_id
            FOR UPDATE
        """),
        "payment_item_ids": text(f"""
            SELECT {variant.payment_item_fk} AS item_id
            FROM {links}
            WHERE {variant.payment_fk} = :payment_id
            ORDER BY {variant.payment_item_fk}
        """),
    }


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_item(row: Any) -> PayoutItem:
    return PayoutItem(
        id=row.id,
        company_id=row.company_id,
        company_investor_id=row.company_investor_id,
        status=row.status,
        total_amount_in_cents=row.total_amount_in_cents,
        net_amount_in_cents=row.net_amount_in_cents,
        retained_reason=row.retained_reason,
    )


def _row_to_payment(row: Any) -> Payment:
    return Payment(
        id=row.id,
        company_investor_id=row.company_investor_id,
        processor_uuid=row.processor_uuid,
        status=row.status,
        wise_transfer_reference=row.wise_transfer_reference,
        wise_quote_id=row.wise_quote_id,
        transfer_currency=row.transfer_currency,
        total_transaction_cents=row.total_transaction_cents,
        transfer_fee_in_cents=row.transfer_fee_in_cents,
        transfer_id=row.transfer_id,
        conversion_rate=row.conversion_rate,
        recipient_last4=row.recipient_last4,
        wise_transfer_status=row.wise_transfer_status,
        wise_transfer_estimate=row.wise_transfer_estimate,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PayoutRepository:
    async def get_items(
        self, db: AsyncSession, variant: PayoutVariant, item_ids: list[str]
    ) -> list[PayoutItem]:
        if not item_ids:
            return []
        rows = (
            await db.execute(_variant_sql(variant)["get_items"], {"item_ids": list(item_ids)})
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    async def get_recipient(
        self, db: AsyncSession, company_investor_id: str
    ) -> PayoutRecipient | None:
        row: Any = (
            await db.execute(_GET_RECIPIENT_SQL, {"company_investor_id": company_investor_id})
        ).fetchone()
        if row is None:
            return None
        return PayoutRecipient(
            company_investor_id=row.company_investor_id,
            user_id=row.user_id,
            completed_onboarding=row.completed_onboarding,
            country_code=row.country_code,
            tax_information_confirmed_at=row.tax_information_confirmed_at,
            tax_id_verified=row.tax_id_verified,
            minimum_dividend_payment_in_cents=row.minimum_dividend_payment_in_cents or 0,
        )

    async def get_bank_account(self, db: AsyncSession, user_id: str) -> BankAccount | None:
        row: Any = (await db.execute(_GET_BANK_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        if row is None:
            return None
        return BankAccount(
            id=row.id,
            user_id=row.user_id,
            recipient_id=row.recipient_id,
            currency=row.currency,
            last_four_digits=row.last_four_digits,
        )

    async def mark_bank_account_deleted(self, db: AsyncSession, bank_account_id: str) -> None:
        await db.execute(_DELETE_BANK_ACCOUNT_SQL, {"bank_account_id": bank_account_id})

    async def mark_items_retained(
        self, db: AsyncSession, variant: PayoutVariant, item_ids: list[str], reason: str
    ) -> None:
        await db.execute(
            _variant_sql(variant)["retain_items"],
            {
                "status": PayoutItemStatus.RETAINED.value,
                "reason": reason,
                "item_ids": list(item_ids),
            },
        )

    async def set_items_status(
        self,
        db: AsyncSession,
        variant: PayoutVariant,
        item_ids: list[str],
        status: str,
        clear_retained_reason: bool = False,
    ) -> None:
        key = "set_status_clear_reason" if clear_retained_reason else "set_status"
        await db.execute(
            _variant_sql(variant)[key], {"status": status, "item_ids": list(item_ids)}
        )

    async def create_payment(
        self,
        db: AsyncSession,
        variant: PayoutVariant,
        company_investor_id: str,
        item_ids: list[str],
    ) -> Payment:
        sql = _variant_sql(variant)
        row = (
            await db.execute(
                sql["insert_payment"],
                {
                    "id": str(uuid.uuid4()),
                    "company_investor_id": company_investor_id,
                    "processor_uuid": str(uuid.uuid4()),
                    "status": PaymentStatus.INITIAL.value,
                    "reference": variant.transfer_reference,
                },
            )
        ).fetchone()
        payment = _row_to_payment(row)
        await db.execute(
            sql["link_items"],
            [{"payment_id": payment.id, "item_id": item_id} for item_id in item_ids],
        )
        return payment

    async def update_payment(
        self, db: AsyncSession, variant: PayoutVariant, payment_id: str, **fields: Any
    ) -> None:
        unknown = set(fields) - _UPDATABLE_PAYMENT_FIELDS
        if unknown:
            raise ValueError(f"Cannot update payment fields: {sorted(unknown)}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = :{name}" for name in sorted(fields))
        await db.execute(
            text(
                f"UPDATE {variant.payments_table} SET {assignments}, updated_at = NOW()"
                " WHERE id = :payment_id"
            ),
            {**fields, "payment_id": payment_id},
        )

    async def find_payment_by_transfer_id(
        self, db: AsyncSession, variant: PayoutVariant, transfer_id: str
    ) -> Payment | None:
        row = (
            await db.execute(_variant_sql(variant)["find_by_transfer"], {"transfer_id": transfer_id})
        ).fetchone()
        return _row_to_payment(row) if row is not None else None

    async def get_payment_item_ids(
        self, db: AsyncSession, variant: PayoutVariant, payment_id: str
    ) -> list[str]:
        rows = (
            await db.execute(_variant_sql(variant)["payment_item_ids"], {"payment_id": payment_id})
        ).fetchall()
        return [r.item_id for r in rows]
