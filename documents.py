"""
Document helpers: totals, money formatting, list filtering and the
dashboard summary. Everything here is a pure function over models.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from models import (
    BusinessSummary,
    Client,
    Document,
    DocumentDesign,
    DocumentType,
    LineItem,
    Totals,
)

logger = logging.getLogger(__name__)

TAX_RATE = 0.10
DEFAULT_DUE_DAYS = 7


# ── Totals ─────────────────────────────────────────────────────────────────────

def compute_totals(items: Iterable[LineItem]) -> Totals:
    """
    subtotal = Σ quantity × unit_price, tax = subtotal × TAX_RATE,
    total = subtotal + tax. Nothing is rounded here.
    """
    subtotal = sum((item.quantity * item.unit_price for item in items), 0.0)
    tax = subtotal * TAX_RATE
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def format_money(value: float, symbol: str = "$") -> str:
    return f"{symbol}{value:.2f}"


def format_quantity(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


# ── Document lifecycle ─────────────────────────────────────────────────────────

def new_document(
    client_id: str,
    type: DocumentType = "invoice",
    today: Optional[date] = None,
) -> Document:
    """A fresh draft with the editor's starting values."""
    today = today or date.today()
    return Document(
        client_id=client_id,
        type=type,
        status="draft",
        items=[LineItem(id="1", description="Consulting Services", quantity=1, unit_price=100)],
        issue_date=today,
        due_date=today + timedelta(days=DEFAULT_DUE_DAYS),
        notes="",
        design=DocumentDesign(),
    )


def mark_paid(document: Document) -> Document:
    return document.model_copy(update={"status": "paid"}, deep=True)


def document_filename(document: Document, ext: str) -> str:
    return f"{document.type}_{document.id}.{ext}"


def resolve_client(document: Document, clients: Iterable[Client]) -> Optional[Client]:
    return next((c for c in clients if c.id == document.client_id), None)


def filter_documents(
    documents: Iterable[Document],
    clients: Iterable[Client],
    term: str,
) -> List[Document]:
    """Case-insensitive match on id, status or the client's name."""
    clients = list(clients)
    needle = (term or "").strip().lower()
    if not needle:
        return list(documents)

    matches = []
    for doc in documents:
        client = resolve_client(doc, clients)
        if (
            needle in doc.id.lower()
            or needle in doc.status.lower()
            or (client is not None and needle in client.name.lower())
        ):
            matches.append(doc)
    return matches


# ── Dashboard ──────────────────────────────────────────────────────────────────

def summarize(documents: Iterable[Document], clients: Iterable[Client]) -> BusinessSummary:
    documents = list(documents)
    summary = BusinessSummary(
        total_revenue=sum((d.total for d in documents if d.status == "paid"), 0.0),
        pending_revenue=sum(
            (d.total for d in documents if d.status in ("sent", "overdue")), 0.0
        ),
        active_clients=sum(1 for c in clients if c.status == "active"),
        document_count=len(documents),
        overdue_count=sum(1 for d in documents if d.status == "overdue"),
    )
    logger.debug("Summary over %d document(s): %s", len(documents), summary)
    return summary


def summary_context(summary: BusinessSummary, symbol: str = "$") -> str:
    """Data context handed to the insights prompt."""
    return (
        f"Total Revenue: {format_money(summary.total_revenue, symbol)}. "
        f"Pending Revenue: {format_money(summary.pending_revenue, symbol)}. "
        f"Active Clients: {summary.active_clients}. "
        f"Documents: {summary.document_count} ({summary.overdue_count} overdue)."
    )
