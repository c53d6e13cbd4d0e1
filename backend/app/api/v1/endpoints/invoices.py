"""
Invoice API Endpoints.

One invoice per order. Users see their own invoices; admins see all and
are the only ones who can delete them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import OwnershipGuard, require_admin
from backend.app.core.redis_client import get_redis
from backend.app.db.session import get_db
from backend.app.domain.billing.billing_service import BillingService
from backend.app.domain.pricing.rate_resolver import RateResolver
from backend.app.models.billing_enums import InvoiceStatus
from backend.app.models.invoice import Invoice
from backend.app.models.order import Order
from backend.app.models.profile import Profile
from backend.app.schemas.order import InvoiceCreate, InvoiceUpdate, InvoiceResponse, InvoiceListResponse
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.cache import CacheService
from backend.app.services.documents import build_invoice_document, render_invoice_pdf

router = APIRouter(prefix="/invoices", tags=["Invoices"])
ownership_guard = OwnershipGuard()


def _visible(invoice: Optional[Invoice], current_user: dict, lookup) -> Invoice:
    if not invoice:
        raise ResourceNotFoundError("Invoice", lookup)
    ownership_guard.enforce(invoice.user_id, current_user, "invoice")
    return invoice


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Issue the invoice for an order.

    The invoice amount is the order total; numbering is ``INV-YYYYMM-NNNN``.
    """
    invoice = await BillingService.create_invoice(
        db,
        invoice_data.order_id,
        issue_date=invoice_data.issue_date,
        due_date=invoice_data.due_date,
        user_id=ownership_guard.filter_by_ownership(current_user),
    )
    await db.commit()
    await db.refresh(invoice)

    await log_user_action(
        db, current_user, AuditAction.INVOICE_ISSUED, "invoice", invoice.id,
        metadata={"invoice_number": invoice.invoice_number, "order_id": invoice.order_id, "amount": invoice.amount},
    )
    await CacheService.invalidate(redis)

    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = []
    owner_filter = ownership_guard.filter_by_ownership(current_user)
    if owner_filter:
        filters.append(Invoice.user_id == owner_filter)
    if invoice_status:
        filters.append(Invoice.status == invoice_status)

    total_result = await db.execute(select(func.count(Invoice.id)).where(*filters))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Invoice).where(*filters).order_by(Invoice.issue_date.desc(), Invoice.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    invoices = result.scalars().all()

    return InvoiceListResponse(
        invoices=[InvoiceResponse.model_validate(invoice) for invoice in invoices],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("/mark-overdue")
async def mark_overdue_invoices(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Move every pending invoice past its due date to OVERDUE (admin-only).

    Intended for a daily scheduler.
    """
    updated = await BillingService.mark_overdue_invoices(db)
    await db.commit()

    if updated:
        await CacheService.invalidate(redis)

    return {"updated": updated}


@router.get("/order/{order_id}", response_model=InvoiceResponse)
async def get_invoice_by_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invoice = await BillingService.get_invoice_for_order(db, order_id)
    return InvoiceResponse.model_validate(_visible(invoice, current_user, f"order {order_id}"))


@router.get("/number/{invoice_number}", response_model=InvoiceResponse)
async def get_invoice_by_number(
    invoice_number: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Invoice).where(Invoice.invoice_number == invoice_number))
    invoice = result.scalar_one_or_none()
    return InvoiceResponse.model_validate(_visible(invoice, current_user, invoice_number))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invoice = await db.get(Invoice, invoice_id)
    return InvoiceResponse.model_validate(_visible(invoice, current_user, invoice_id))


@router.get("/{invoice_id}/document", response_class=Response)
async def download_invoice_document(
    invoice_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Invoice as a PDF, itemized per trip from the stored price snapshots.
    """
    invoice = _visible(await db.get(Invoice, invoice_id), current_user, invoice_id)
    order = await db.get(Order, invoice.order_id)
    trips = await BillingService.get_order_trips(db, order)
    company = await RateResolver.get_company_settings(db)
    customer = await db.get(Profile, invoice.user_id)

    document = build_invoice_document(
        invoice, order, trips,
        company_name=company.company_name if company else None,
        customer=customer,
    )
    return Response(
        content=render_invoice_pdf(document),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.invoice_number}.pdf"'},
    )


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Change an invoice's status or due date. Marking it paid records ``paid_at``.
    """
    invoice = _visible(await db.get(Invoice, invoice_id), current_user, invoice_id)
    previous_status = invoice.status

    await BillingService.update_invoice(db, invoice, status=invoice_data.status, due_date=invoice_data.due_date)
    await db.commit()
    await db.refresh(invoice)

    action = AuditAction.INVOICE_UPDATED
    if invoice.status == InvoiceStatus.PAID and previous_status != InvoiceStatus.PAID:
        action = AuditAction.INVOICE_PAID

    await log_user_action(
        db, current_user, action, "invoice", invoice.id,
        metadata={"from": previous_status.value, "to": invoice.status.value},
    )
    await CacheService.invalidate(redis)

    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    invoice = await db.get(Invoice, invoice_id)
    if not invoice:
        raise ResourceNotFoundError("Invoice", invoice_id)

    invoice_number = invoice.invoice_number
    await db.delete(invoice)
    await db.commit()

    await log_user_action(
        db, admin, AuditAction.INVOICE_DELETED, "invoice", invoice_id,
        metadata={"invoice_number": invoice_number},
    )
    await CacheService.invalidate(redis)
