# app/billing/routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing import billing_services
from app.database.connection import get_db
from app.system_models.invoice_model.invoice_schemas import (
    REPORT_PERIOD,
    BillingReport,
    BillingStats,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceUpdate,
    PaymentRequest,
    PaymentResponse,
)
from app.users.auth_dependencies import StaffSession, require_roles

router = APIRouter()

front_desk = require_roles("receptionist")


@router.post("/invoices", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice: InvoiceCreate,
    session: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.create_invoice(db, invoice, session)


@router.get("/invoices", response_model=List[InvoiceResponse])
async def list_invoices(
    search: Optional[str] = Query(None, description="Patient name, phone or invoice number"),
    status_filter: Optional[str] = Query(None, alias="status"),
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.list_invoices(db, search, status_filter)


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.get_invoice_or_404(db, invoice_id)


@router.put("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    changes: InvoiceUpdate,
    session: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    """Edit a pending or overdue invoice; totals are recomputed."""
    return await billing_services.update_invoice(db, invoice_id, changes, session)


@router.post("/invoices/{invoice_id}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    invoice_id: int,
    payment: PaymentRequest,
    session: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.process_payment(db, invoice_id, payment, session)


@router.get("/payments", response_model=List[PaymentResponse])
async def payment_history(
    search: Optional[str] = Query(None),
    method: Optional[str] = Query(None),
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.list_payments(db, search, method)


@router.get("/stats", response_model=BillingStats)
async def dashboard_stats(
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.billing_stats(db)


@router.get("/reports", response_model=BillingReport)
async def billing_report(
    period: REPORT_PERIOD = Query("all"),
    status_filter: Optional[str] = Query(None, alias="status"),
    method: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Patient name or invoice number"),
    _: StaffSession = Depends(front_desk),
    db: AsyncSession = Depends(get_db),
):
    return await billing_services.billing_report(db, period, status_filter, method, search)
