# parish_office/services/pdf_renderer.py
"""HTML → PDF via headless Chromium (Playwright).

The renderer is injected into certificate generation as a plain
`Callable[[str], bytes]` so tests can swap in a stub.
"""
from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Renderer = Callable[[str], bytes]

PAGE_MARGIN = {"top": "0.5in", "bottom": "0.5in", "left": "0.5in", "right": "0.5in"}


def render_html_to_pdf(html_content: str) -> bytes:
    """Render a self-contained HTML document to an A4 PDF."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=True)
        try:
            page = browser.new_page()
            page.set_content(html_content, wait_until="networkidle")
            pdf_bytes = page.pdf(format="A4", print_background=True, margin=PAGE_MARGIN)
        finally:
            browser.close()
    logger.debug("rendered certificate pdf (%s bytes)", len(pdf_bytes))
    return pdf_bytes
