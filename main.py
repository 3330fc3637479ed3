import io
import logging
from contextlib import asynccontextmanager
from typing import List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastmcp import FastMCP

from agent import BusinessAssistant
from config import load_settings
from documents import (
    compute_totals,
    document_filename,
    filter_documents,
    summarize,
    summary_context,
)
from exports import render_pdf, to_csv, to_excel, to_png_preview
from models import (
    AIResponse,
    BusinessSummary,
    ChatRequest,
    Client,
    Document,
    DocumentNotesRequest,
    EmailRequest,
    HealthResponse,
    LineItem,
    RenderRequest,
    RenderResponse,
    Totals,
    Workspace,
)
from renderer import page_count, render_document

VERSION = "1.0.0"

settings = load_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
)
logger = logging.getLogger("orange_docs")

_assistant: Optional[BusinessAssistant] = None


def get_assistant() -> BusinessAssistant:
    global _assistant
    if _assistant is None:
        _assistant = BusinessAssistant(settings)
    return _assistant


def _render(req: RenderRequest) -> RenderResponse:
    instructions = render_document(
        req.document,
        req.client,
        business_name=req.business_name or settings.business_name,
        currency=settings.currency_symbol,
    )
    return RenderResponse(
        filename=document_filename(req.document, "pdf"),
        pages=page_count(instructions),
        totals=req.document.totals,
        instructions=instructions,
    )


# ── MCP Server (mounted inside FastAPI, same port) ─────────────────────────────

mcp = FastMCP(
    name="Orange Business Docs",
    instructions=(
        "Computes invoice, quote and receipt totals and lays documents out as "
        "positioned draw instructions. Send line items or a full document."
    ),
)


@mcp.tool()
def calculate_totals(items: list[dict]) -> dict:
    """
    Compute subtotal, 10% tax and total for a list of line items.

    Args:
        items: Line items with description, quantity and unit_price (or price).
               Non-numeric quantities/prices count as zero.
    """
    line_items = [LineItem.model_validate(item) for item in items]
    return compute_totals(line_items).model_dump()


@mcp.tool()
def render_document_mcp(document: dict, client: Optional[dict] = None) -> dict:
    """
    Lay out a document as draw instructions (millimetres, A4, top-left origin).

    Args:
        document: Document with type, status, items, dates, notes and design.
        client:   Optional resolved client (name, company, email, address).
    """
    req = RenderRequest(
        document=Document.model_validate(document),
        client=Client.model_validate(client) if client else None,
    )
    return _render(req).model_dump()


@mcp.tool()
def draft_document_notes(doc_type: str, client_name: str, descriptions: list[str]) -> str:
    """Write a one-sentence footer note for an invoice, quote or receipt."""
    items = [LineItem(description=d) for d in descriptions]
    return get_assistant().generate_document_notes(doc_type, client_name, items)


# ── Lifespan ───────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    assistant = get_assistant()
    logger.info(
        "Orange Business Docs ready | provider: %s | model: %s | ai configured: %s",
        assistant.provider, assistant.model, assistant.configured,
    )
    yield
    logger.info("Shutting down.")


# ── App ────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Orange Business Docs",
    description=(
        "Invoice, quote and receipt engine: totals, two-layout PDF rendering, "
        "CSV/Excel exports and AI-drafted emails, insights and notes.\n\n"
        "Exposes **MCP** (`/sse`) on the same URL."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/sse", mcp.http_app(transport="sse"))


# ── Info ───────────────────────────────────────────────────────────────────────

@app.get("/", tags=["Info"])
def root(request: Request):
    base = str(request.base_url).rstrip("/")
    return {
        "name": "Orange Business Docs",
        "version": VERSION,
        "endpoints": {
            "docs":      f"{base}/docs",
            "health":    f"{base}/health",
            "totals":    f"{base}/documents/totals",
            "render":    f"{base}/documents/render",
            "export":    f"{base}/documents/export?format=pdf|png|csv|excel",
            "summary":   f"{base}/dashboard/summary",
            "mcp":       f"{base}/sse",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
def health():
    assistant = get_assistant()
    return HealthResponse(
        status="ok",
        provider=assistant.provider,
        model=assistant.model,
        ai_configured=assistant.configured,
        version=VERSION,
    )


# ── Documents ──────────────────────────────────────────────────────────────────

@app.post("/documents/totals", response_model=Totals, tags=["Documents"])
def totals(items: List[LineItem]):
    return compute_totals(items)


@app.post("/documents/render", response_model=RenderResponse, tags=["Documents"])
def render(req: RenderRequest):
    return _render(req)


@app.post("/documents/export", tags=["Documents"])
def export(
    req: RenderRequest,
    format: Literal["pdf", "png", "csv", "excel"] = Query(
        default="pdf",
        description="**pdf** (default) | **png** (page-one preview) | **csv** | **excel**",
    ),
):
    """
    Download a document.

    - `format=pdf`   → `<type>_<id>.pdf`
    - `format=png`   → first-page preview `<type>_<id>.png`
    - `format=csv`   → `<type>_<id>.csv`
    - `format=excel` → `<type>_<id>.xlsx`
    """
    doc = req.document
    business_name = req.business_name or settings.business_name

    try:
        if format in ("pdf", "png"):
            pdf_bytes = render_pdf(doc, req.client, business_name, settings.currency_symbol)
            if format == "pdf":
                content, media_type, ext = pdf_bytes, "application/pdf", "pdf"
            else:
                content, media_type, ext = to_png_preview(pdf_bytes), "image/png", "png"
        elif format == "csv":
            content, media_type, ext = to_csv(doc, req.client), "text/csv", "csv"
        else:
            content = to_excel(doc, req.client)
            media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
            ext = "xlsx"
    except Exception as e:
        logger.exception("Export of %s as %s failed", doc.id, format)
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        content=io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{document_filename(doc, ext)}"'},
    )


@app.post("/documents/search", response_model=List[Document], tags=["Documents"])
def search(workspace: Workspace, q: str = Query(default="", description="Id, status or client name")):
    return filter_documents(workspace.documents, workspace.clients, q)


@app.post("/dashboard/summary", response_model=BusinessSummary, tags=["Dashboard"])
def dashboard_summary(workspace: Workspace):
    return summarize(workspace.documents, workspace.clients)


# ── AI ─────────────────────────────────────────────────────────────────────────

@app.post("/ai/email", response_model=AIResponse, tags=["AI"])
def ai_email(req: EmailRequest):
    text = get_assistant().generate_email(req.recipient, req.purpose, req.tone, req.context)
    return AIResponse(text=text)


@app.post("/ai/insights", response_model=AIResponse, tags=["AI"])
def ai_insights(workspace: Workspace):
    summary = summarize(workspace.documents, workspace.clients)
    text = get_assistant().generate_insights(summary_context(summary, settings.currency_symbol))
    return AIResponse(text=text)


@app.post("/ai/client-action", response_model=AIResponse, tags=["AI"])
def ai_client_action(client: Client):
    return AIResponse(text=get_assistant().suggest_client_action(client))


@app.post("/ai/document-notes", response_model=AIResponse, tags=["AI"])
def ai_document_notes(req: DocumentNotesRequest):
    text = get_assistant().generate_document_notes(req.type, req.client_name, req.items)
    return AIResponse(text=text)


@app.post("/ai/chat", response_model=AIResponse, tags=["AI"])
def ai_chat(req: ChatRequest):
    return AIResponse(text=get_assistant().chat(req.history, req.message))


# ── Entry point ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.app_env == "development",
    )
