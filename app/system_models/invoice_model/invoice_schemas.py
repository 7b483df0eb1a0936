# app/system_models/invoice_model/invoice_schemas.py
from typing import Dict, List, Literal, Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator

INVOICE_STATUS = Literal["pending", "paid", "overdue"]
PAYMENT_METHOD = Literal["cash", "card", "online"]


class InvoiceItemIn(BaseModel):
    description: str
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Field(Decimal("0"), ge=0)

    @field_validator("description")
    def description_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Item description is required")
        return v


class InvoiceCreate(BaseModel):
    patient_id: Optional[str] = None
    patient_name: str
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    patient_address: Optional[str] = None
    invoice_date: Optional[date] = None   # defaults to clinic "today"
    due_date: Optional[date] = None       # defaults to invoice date + INVOICE_DUE_DAYS
    items: List[InvoiceItemIn]
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)   # defaults to DEFAULT_TAX_RATE
    discount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None

    @field_validator("patient_name")
    def patient_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Please select a patient")
        return v

    @field_validator("items")
    def items_required(cls, v):
        if not v:
            raise ValueError("Add at least one invoice item")
        return v


class InvoiceItemResponse(BaseModel):
    id: int
    description: str
    quantity: int
    unit_price: Decimal
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    patient_id: Optional[str] = None
    patient_name: str
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    patient_address: Optional[str] = None
    invoice_date: date
    due_date: date
    items: List[InvoiceItemResponse] = Field(default_factory=list)
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    terms: Optional[str] = None
    status: INVOICE_STATUS
    payment_method: Optional[str] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount received")
    method: PAYMENT_METHOD = "cash"
    reference: Optional[str] = None
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    invoice_id: int
    invoice_number: str
    patient_name: str
    patient_phone: Optional[str] = None
    amount: Decimal
    method: PAYMENT_METHOD
    reference: Optional[str] = None
    notes: Optional[str] = None
    status: str
    processed_by: Optional[int] = None
    processed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingStats(BaseModel):
    total_invoices: int
    pending_invoices: int
    overdue_invoices: int
    paid_invoices: int
    total_revenue: Decimal
    today_revenue: Decimal
    revenue_by_method: Dict[str, Decimal]


class InvoiceUpdate(BaseModel):
    """Partial edit of an unpaid invoice; totals are recomputed from the result."""
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    patient_address: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[InvoiceItemIn]] = None
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    discount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None

    @field_validator("patient_name")
    def patient_required(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Please select a patient")
        return v

    @field_validator("items")
    def items_required(cls, v):
        if v is not None and not v:
            raise ValueError("Add at least one invoice item")
        return v


REPORT_PERIOD = Literal["all", "today", "week", "month", "quarter", "year"]


class BillingReport(BaseModel):
    period: REPORT_PERIOD
    since: Optional[date] = None
    total_invoices: int
    total_amount: Decimal
    paid_invoices: int
    pending_invoices: int
    overdue_invoices: int
    total_payments: int
    total_payment_amount: Decimal
    payment_methods: Dict[str, Decimal]
    monthly_totals: Dict[str, Decimal] = Field(description="Invoiced amount per YYYY-MM")
    collection_rate: Decimal = Field(description="Paid invoices as a percentage of all invoices")
