import asyncio
import logging
from typing import Iterable, List

import google.generativeai as genai

from core.config import settings
from schemas.inventory import Item, LogEntry

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "AI analysis is unavailable right now. Please try again in a moment."
EMPTY_MESSAGE = "The analysis did not produce any text."

RECENT_LOG_LIMIT = 10


def build_prompt(items: Iterable[Item], logs: Iterable[LogEntry]) -> str:
    """Prompt from the reconciled item list and the most recent ledger entries."""
    inventory_lines = [
        f"- {i.name} ({i.category}): {i.quantity} on hand "
        f"(safety stock: {i.safety_stock}, unit price: {i.price:g})"
        for i in items
    ]
    recent: List[LogEntry] = list(logs)[:RECENT_LOG_LIMIT]
    log_lines = [
        f"- {log.timestamp.date().isoformat()}: {'inbound' if log.type == 'IN' else 'outbound'} "
        f"{log.item_name} x{log.quantity} ({log.note or 'no note'})"
        for log in recent
    ]

    return "\n".join([
        "You are an inventory management and logistics consultant.",
        "Below are the current warehouse stock levels and the latest inbound/outbound records.",
        "",
        "Write a markdown report with these sections:",
        "1. **Stock overview**: overall health of the inventory.",
        "2. **Action needed**: items below safety stock and suggested reorders.",
        "3. **Trends**: a short analysis of the recent movement pattern.",
        "4. **Improvements**: advice on turnover and stock handling.",
        "",
        "---",
        "[Current inventory]",
        *inventory_lines,
        "",
        f"[Recent activity (latest {RECENT_LOG_LIMIT})]",
        *log_lines,
        "---",
        "",
        "Keep the tone polite and professional.",
    ])


def _extract_text(response) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    parts = getattr(candidates[0].content, "parts", None) or []
    return "".join(getattr(p, "text", "") or "" for p in parts).strip()


def _generate(prompt: str) -> str:
    genai.configure(api_key=settings.gemini_api_key)
    model = genai.GenerativeModel(settings.gemini_model)
    response = model.generate_content(
        prompt,
        request_options={"timeout": settings.gemini_timeout},
    )
    return _extract_text(response)


async def summarize_inventory(items: Iterable[Item], logs: Iterable[LogEntry]) -> str:
    """
    Ask Gemini for a prose report on the given snapshot.

    Never raises: any failure (no key, network, API error, bad payload)
    is logged and turned into FALLBACK_MESSAGE.
    """
    prompt = build_prompt(items, logs)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set, skipping analysis")
        return FALLBACK_MESSAGE
    try:
        text = await asyncio.to_thread(_generate, prompt)
    except Exception as e:
        logger.error("Gemini analysis failed: %r", e)
        return FALLBACK_MESSAGE
    return text or EMPTY_MESSAGE
