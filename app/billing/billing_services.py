# app/billing/billing_services.py
import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.invoice_math import compute_invoice_totals, generate_invoice_number, to_money
from app.helpers.time import as_utc, clinic_today, clinic_zone, utcnow
from app.system_models.invoice_model.invoice_model import Invoice, InvoiceItem
from app.system_models.invoice_model.invoice_schemas import (
    BillingReport,
    BillingStats,
    InvoiceCreate,
    InvoiceUpdate,
    PaymentRequest,
)
from app.system_models.payment_model.payment_model import Payment
from app.users.auth_dependencies import StaffSession
from config.clinicconfig import clinic_settings

logger = logging.getLogger(__name__)

INVOICE_NUMBER_ATTEMPTS = 3
PAYABLE_STATUSES = ("pending", "overdue")


async def get_invoice_or_404(db: AsyncSession, invoice_id: int) -> Invoice:
    invoice = await db.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _item_rows(items, totals) -> List[InvoiceItem]:
    return [
        InvoiceItem(
            description=item.description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            amount=amount,
        )
        for item, amount in zip(items, totals.line_amounts)
    ]


# ============================================================
# ✅ CREATE INVOICE
# ============================================================
async def create_invoice(db: AsyncSession, invoice: InvoiceCreate, session: StaffSession) -> Invoice:
    tax_rate = invoice.tax_rate if invoice.tax_rate is not None else clinic_settings.DEFAULT_TAX_RATE
    try:
        totals = compute_invoice_totals(invoice.items, tax_rate, invoice.discount)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    invoice_date = invoice.invoice_date or clinic_today()
    due_date = invoice.due_date or invoice_date + timedelta(days=clinic_settings.INVOICE_DUE_DAYS)
    if due_date < invoice_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Due date cannot be before the invoice date")

    header = invoice.model_dump(exclude={"items", "tax_rate", "discount", "invoice_date", "due_date"})
    terms = header.pop("terms") or f"Payment due within {(due_date - invoice_date).days} days of invoice date."

    for _ in range(INVOICE_NUMBER_ATTEMPTS):
        db_invoice = Invoice(
            **header,
            terms=terms,
            invoice_number=generate_invoice_number(),
            invoice_date=invoice_date,
            due_date=due_date,
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            discount=totals.discount,
            total_amount=totals.total_amount,
            status="pending",
            created_by=session.user_id,
            items=_item_rows(invoice.items, totals),
        )
        db.add(db_invoice)
        try:
            await db.commit()
        except IntegrityError:
            # Invoice number collision; draw a new one
            await db.rollback()
            continue
        await db.refresh(db_invoice)
        logger.info(
            f"🧾 Invoice {db_invoice.invoice_number} created for {db_invoice.patient_name}: "
            f"{db_invoice.total_amount}"
        )
        return db_invoice

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Could not allocate an invoice number. Please try again.",
    )


# ============================================================
# ✅ EDIT INVOICE
# ============================================================
async def update_invoice(
    db: AsyncSession,
    invoice_id: int,
    changes: InvoiceUpdate,
    session: StaffSession,
) -> Invoice:
    invoice = await get_invoice_or_404(db, invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice {invoice.invoice_number} is already {invoice.status} and can no longer be edited",
        )

    fields = changes.model_dump(exclude_unset=True, exclude={"items"})
    tax_rate = fields.pop("tax_rate", None)
    discount = fields.pop("discount", None)
    invoice_date = fields.pop("invoice_date", None) or invoice.invoice_date
    due_date = fields.pop("due_date", None) or invoice.due_date
    if fields.get("patient_name", "") is None:
        fields.pop("patient_name")

    items = changes.items if changes.items is not None else list(invoice.items)
    try:
        totals = compute_invoice_totals(
            items,
            invoice.tax_rate if tax_rate is None else tax_rate,
            invoice.discount if discount is None else discount,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if due_date < invoice_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Due date cannot be before the invoice date")

    for key, value in fields.items():
        setattr(invoice, key, value)
    if changes.items is not None:
        # Replace lines wholesale
        invoice.items.clear()
        await db.flush()
        invoice.items.extend(_item_rows(changes.items, totals))

    # A payment at another desk must not be overwritten by the edit
    result = await db.execute(
        update(Invoice)
        .where(Invoice.id == invoice_id, Invoice.status.in_(PAYABLE_STATUSES))
        .values(
            invoice_date=invoice_date,
            due_date=due_date,
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            discount=totals.discount,
            total_amount=totals.total_amount,
            status="overdue" if due_date < clinic_today() else "pending",
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Invoice was settled at another desk. Refresh and try again.",
        )

    await db.commit()
    await db.refresh(invoice)
    logger.info(
        f"✏️  Invoice {invoice.invoice_number} edited by user {session.user_id}: "
        f"total {invoice.total_amount}"
    )
    return invoice


async def mark_overdue_invoices(db: AsyncSession, today: Optional[date] = None) -> int:
    """Pending invoices past their due date become overdue. Returns how many moved."""
    today = today or clinic_today()
    result = await db.execute(
        update(Invoice)
        .where(Invoice.status == "pending", Invoice.due_date < today)
        .values(status="overdue")
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    if result.rowcount:
        logger.info(f"⏰ {result.rowcount} invoices marked overdue")
    return result.rowcount


async def list_invoices(
    db: AsyncSession,
    search: Optional[str] = None,
    status_filter: Optional[str] = None,
) -> List[Invoice]:
    await mark_overdue_invoices(db)

    query = select(Invoice)
    if status_filter and status_filter != "all":
        query = query.where(Invoice.status == status_filter)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Invoice.patient_name.ilike(pattern)
            | Invoice.patient_phone.ilike(pattern)
            | Invoice.invoice_number.ilike(pattern)
        )
    result = await db.execute(query.order_by(Invoice.created_at.desc(), Invoice.id.desc()))
    return list(result.scalars().all())


# ============================================================
# ✅ PROCESS PAYMENT
# ============================================================
async def process_payment(
    db: AsyncSession,
    invoice_id: int,
    payment: PaymentRequest,
    session: StaffSession,
) -> Payment:
    invoice = await get_invoice_or_404(db, invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice {invoice.invoice_number} is already {invoice.status}",
        )

    amount = to_money(payment.amount)
    paid_at = utcnow()

    # Only one desk can settle an invoice
    result = await db.execute(
        update(Invoice)
        .where(Invoice.id == invoice_id, Invoice.status.in_(PAYABLE_STATUSES))
        .values(
            status="paid",
            payment_method=payment.method,
            payment_date=paid_at,
            payment_reference=payment.reference,
            payment_notes=payment.notes,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Invoice was settled at another desk. Refresh and try again.",
        )

    db_payment = Payment(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        patient_name=invoice.patient_name,
        patient_phone=invoice.patient_phone,
        amount=amount,
        method=payment.method,
        reference=payment.reference,
        notes=payment.notes,
        status="completed",
        processed_by=session.user_id,
        processed_at=paid_at,
    )
    db.add(db_payment)
    await db.commit()
    await db.refresh(db_payment)
    await db.refresh(invoice)

    if amount != to_money(invoice.total_amount):
        logger.warning(
            f"⚠️  Invoice {invoice.invoice_number} settled with {amount}, billed {invoice.total_amount}"
        )
    logger.info(f"💰 Payment {db_payment.id}: {amount} by {payment.method} for {invoice.invoice_number}")
    return db_payment


async def list_payments(
    db: AsyncSession,
    search: Optional[str] = None,
    method: Optional[str] = None,
) -> List[Payment]:
    query = select(Payment)
    if method and method != "all":
        query = query.where(Payment.method == method)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Payment.patient_name.ilike(pattern)
            | Payment.invoice_number.ilike(pattern)
            | Payment.reference.ilike(pattern)
        )
    result = await db.execute(query.order_by(Payment.processed_at.desc(), Payment.id.desc()))
    return list(result.scalars().all())


# ============================================================
# ✅ DASHBOARD
# ============================================================
async def billing_stats(db: AsyncSession, today: Optional[date] = None) -> BillingStats:
    """Revenue is counted from paid invoices, by the clinic-local payment date."""
    today = today or clinic_today()
    await mark_overdue_invoices(db, today)
    invoices = list((await db.execute(select(Invoice))).scalars().all())

    zone = clinic_zone()
    total_revenue = Decimal("0.00")
    today_revenue = Decimal("0.00")
    by_method = defaultdict(lambda: Decimal("0.00"))
    counts = defaultdict(int)

    for invoice in invoices:
        counts[invoice.status] += 1
        if invoice.status != "paid":
            continue
        amount = to_money(invoice.total_amount)
        total_revenue += amount
        by_method[invoice.payment_method or "unknown"] += amount
        paid_at = as_utc(invoice.payment_date)
        if paid_at and paid_at.astimezone(zone).date() == today:
            today_revenue += amount

    return BillingStats(
        total_invoices=len(invoices),
        pending_invoices=counts["pending"],
        overdue_invoices=counts["overdue"],
        paid_invoices=counts["paid"],
        total_revenue=total_revenue,
        today_revenue=today_revenue,
        revenue_by_method=dict(by_method),
    )


# ============================================================
# ✅ REPORTS
# ============================================================
REPORT_WINDOWS = {"today": 0, "week": 7, "month": 30, "quarter": 90, "year": 365}


def _matches(needle: str, *values: Optional[str]) -> bool:
    return any(needle in (value or "").lower() for value in values)


async def billing_report(
    db: AsyncSession,
    period: str = "all",
    status_filter: Optional[str] = None,
    method: Optional[str] = None,
    search: Optional[str] = None,
    today: Optional[date] = None,
) -> BillingReport:
    """
    Invoices are windowed by creation day and payments by processing day,
    both in clinic-local time. A window of N days starts N days before today.
    """
    today = today or clinic_today()
    await mark_overdue_invoices(db, today)
    zone = clinic_zone()

    def local_day(moment) -> date:
        return as_utc(moment).astimezone(zone).date()

    invoices = list((await db.execute(select(Invoice).order_by(Invoice.created_at))).scalars().all())
    payments = list((await db.execute(select(Payment))).scalars().all())

    since = today - timedelta(days=REPORT_WINDOWS[period]) if period in REPORT_WINDOWS else None
    if since:
        invoices = [i for i in invoices if local_day(i.created_at) >= since]
        payments = [p for p in payments if local_day(p.processed_at) >= since]
    if status_filter and status_filter != "all":
        invoices = [i for i in invoices if i.status == status_filter]
    if method and method != "all":
        payments = [p for p in payments if p.method == method]
    if search:
        needle = search.lower()
        invoices = [i for i in invoices if _matches(needle, i.patient_name, i.invoice_number)]
        payments = [p for p in payments if _matches(needle, p.patient_name, p.invoice_number)]

    counts = defaultdict(int)
    monthly = defaultdict(lambda: Decimal("0.00"))
    total_amount = Decimal("0.00")
    for invoice in invoices:
        counts[invoice.status] += 1
        amount = to_money(invoice.total_amount)
        total_amount += amount
        monthly[local_day(invoice.created_at).strftime("%Y-%m")] += amount

    by_method = defaultdict(lambda: Decimal("0.00"))
    total_payment_amount = Decimal("0.00")
    for payment in payments:
        amount = to_money(payment.amount)
        total_payment_amount += amount
        by_method[payment.method] += amount

    collection_rate = (
        to_money(Decimal(counts["paid"]) * 100 / len(invoices)) if invoices else Decimal("0.00")
    )
    logger.info(f"📊 Billing report ({period}): {len(invoices)} invoices, {len(payments)} payments")

    return BillingReport(
        period=period,
        since=since,
        total_invoices=len(invoices),
        total_amount=total_amount,
        paid_invoices=counts["paid"],
        pending_invoices=counts["pending"],
        overdue_invoices=counts["overdue"],
        total_payments=len(payments),
        total_payment_amount=total_payment_amount,
        payment_methods=dict(by_method),
        monthly_totals=dict(monthly),
        collection_rate=collection_rate,
    )
