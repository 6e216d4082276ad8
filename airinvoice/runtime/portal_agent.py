"""Invoice acquisition from the airline e-tax portal.

The agent drives a headless Chromium through the portal's ticket search:

    home page -> fill ticket/name -> search -> poll #searchResults
      -> tick the ticket -> View -> detail page (#divprint) -> PDF

``search_portal`` reports what happened as ``Located``, ``NoResults`` or
``Faulted`` and never raises for portal problems. ``acquire`` turns a fault
past the search form into a placeholder document when fallback is enabled. An
unreachable portal or a missing search form is never papered over: it means
the portal is down or its interface changed.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from airinvoice.domain.passenger import DocumentSource, PassengerRecord, PortalFields
from airinvoice.invoice.placeholder import build_placeholder_html
from airinvoice.invoice.portal_page import parse_portal_detail_text
from airinvoice.runtime.logging import get_logger
from airinvoice.runtime.paths import get_paths
from airinvoice.runtime.settings import PortalSettings, get_settings

logger = get_logger(__name__)

TICKET_INPUT = "#ticketNo"
FIRST_NAME_INPUT = "#firstName"
LAST_NAME_INPUT = "#lastName"
SEARCH_BUTTON = 'button[onclick="search()"]'
SEARCH_RESULTS = "#searchResults"
TICKET_CHECKBOX = '#searchResults input[name="ticket"]'
VIEW_BUTTONS = ("#searchResults button.view-button", '#searchResults button[onclick="viewTicketDetails()"]')
DETAIL_CONTAINER = "#divprint"
NO_RESULTS_MARKER = "No ticket details found"

PDF_MARGINS = {"top": "20px", "bottom": "20px", "left": "20px", "right": "20px"}


class AcquisitionError(RuntimeError):
    """Raised when no document could be produced for a passenger."""


class PortalFault(RuntimeError):
    """Portal did not behave as expected during a search."""


class PortalUnavailable(PortalFault):
    """Portal could not be loaded or no longer shows the ticket search form."""


@dataclass(frozen=True)
class Located:
    document_path: Path
    portal_fields: PortalFields


@dataclass(frozen=True)
class NoResults:
    pass


@dataclass(frozen=True)
class Faulted:
    detail: str
    fallback_allowed: bool = True


PortalOutcome = Located | NoResults | Faulted


@dataclass(frozen=True)
class Acquisition:
    """A document stored for a passenger and where it came from."""

    document_path: Path
    portal_fields: PortalFields | None
    source: DocumentSource


def document_filename(ticket_number: str, epoch_seconds: float) -> str:
    safe_ticket = re.sub(r"[^A-Za-z0-9_-]", "_", ticket_number) or "unknown"
    return f"invoice_{safe_ticket}_{int(epoch_seconds * 1000)}.pdf"


def search_results_loaded(results_html: str) -> bool:
    content = results_html.strip()
    return bool(content) and ("<table" in content or NO_RESULTS_MARKER in content)


def has_ticket_results(results_html: str) -> bool:
    return "<table" in results_html and "ticket" in results_html and NO_RESULTS_MARKER not in results_html


def probe_portal(url: str, timeout: float, user_agent: str, transport: httpx.BaseTransport | None = None) -> None:
    """
    Check that the portal answers HTTP at all before starting a browser.

    Any response counts, error pages included; only connection-level failures
    mean the portal is unavailable.

    Raises:
        PortalUnavailable: The portal host could not be reached.
    """
    try:
        with httpx.Client(
            transport=transport,
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        ) as client:
            response = client.get(url)
    except httpx.RequestError as exc:
        raise PortalUnavailable(f"Could not reach airline portal: {exc}") from exc
    logger.debug("Portal answered HTTP %d", response.status_code)


def _ms(seconds: float) -> float:
    return seconds * 1000


class PortalAgent:
    """Acquires invoice documents for passengers; one browser per acquisition."""

    def __init__(
        self,
        settings: PortalSettings,
        documents_dir: Path,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.documents_dir = documents_dir
        self._clock = clock
        self._sleep = sleep

    def acquire(self, passenger: PassengerRecord) -> Acquisition | None:
        """
        Produce a document for ``passenger``.

        Returns:
            The acquisition, or None when the portal has no invoice for the ticket.

        Raises:
            AcquisitionError: The portal faulted and no placeholder could be used.
        """
        logger.info("Acquiring invoice for ticket %s (%s)", passenger.ticket_number, passenger.full_name)
        outcome = self.search_portal(passenger)
        if isinstance(outcome, Located):
            logger.info("Invoice for ticket %s stored at %s", passenger.ticket_number, outcome.document_path)
            return Acquisition(outcome.document_path, outcome.portal_fields, "portal")
        if isinstance(outcome, NoResults):
            logger.info("Portal has no invoice for ticket %s", passenger.ticket_number)
            return None
        return self._degrade(passenger, outcome)

    def _degrade(self, passenger: PassengerRecord, fault: Faulted) -> Acquisition:
        if not (fault.fallback_allowed and self.settings.fallback_enabled):
            raise AcquisitionError(f"Failed to download invoice from airline portal: {fault.detail}")
        logger.warning(
            "Portal acquisition failed for ticket %s (%s); storing a placeholder document",
            passenger.ticket_number,
            fault.detail,
        )
        return Acquisition(self.synthesize_placeholder(passenger, fault.detail), None, "placeholder")

    def synthesize_placeholder(self, passenger: PassengerRecord, detail: str) -> Path:
        """Render the labelled placeholder document; it never contains invoice fields."""
        now = self._clock()
        markup = build_placeholder_html(
            passenger.ticket_number,
            passenger.first_name,
            passenger.last_name,
            datetime.fromtimestamp(now),
        )
        target = self.documents_dir / document_filename(passenger.ticket_number, now)
        try:
            self.documents_dir.mkdir(parents=True, exist_ok=True)
            self.render_html_to_pdf(markup, target)
        except (PlaywrightError, OSError) as exc:
            raise AcquisitionError(
                f"Failed to create placeholder document after portal fault ({detail}): {exc}"
            ) from exc
        logger.debug("Placeholder document written to %s", target)
        return target

    def render_html_to_pdf(self, markup: str, target: Path) -> None:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True, args=list(self.settings.browser_args))
            try:
                page = browser.new_page()
                page.set_content(markup)
                page.pdf(path=str(target), format="A4", print_background=True, margin=PDF_MARGINS)
            finally:
                browser.close()

    def search_portal(self, passenger: PassengerRecord) -> PortalOutcome:
        try:
            probe_portal(self.settings.url, self.settings.navigation_timeout, self.settings.user_agent)
            self.documents_dir.mkdir(parents=True, exist_ok=True)
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(
                    headless=self.settings.headless,
                    args=list(self.settings.browser_args),
                )
                try:
                    context = browser.new_context(user_agent=self.settings.user_agent)
                    page = context.new_page()
                    return self._run_search(page, passenger)
                finally:
                    browser.close()
        except PortalUnavailable as exc:
            return Faulted(str(exc), fallback_allowed=False)
        except PortalFault as exc:
            return Faulted(str(exc))
        except PlaywrightError as exc:
            return Faulted(f"Portal automation error: {exc}")
        except OSError as exc:
            return Faulted(f"Could not store portal document: {exc}")

    def _run_search(self, page: Any, passenger: PassengerRecord) -> PortalOutcome:
        navigation_ms = _ms(self.settings.navigation_timeout)
        element_ms = _ms(self.settings.element_timeout)

        logger.debug("Navigating to %s", self.settings.url)
        try:
            page.goto(self.settings.url, wait_until="networkidle", timeout=navigation_ms)
        except PlaywrightError as exc:
            raise PortalUnavailable(f"Could not load airline portal: {exc}") from exc
        try:
            page.wait_for_selector(TICKET_INPUT, timeout=element_ms)
        except PlaywrightTimeoutError as exc:
            raise PortalUnavailable("Ticket search form did not load") from exc

        page.fill(TICKET_INPUT, passenger.ticket_number)
        first_name_input = page.query_selector(FIRST_NAME_INPUT)
        last_name_input = page.query_selector(LAST_NAME_INPUT)
        if first_name_input is not None and last_name_input is not None:
            first_name_input.fill(passenger.first_name)
            last_name_input.fill(passenger.last_name)
        else:
            logger.info("Name fields not found on portal; searching by ticket only")

        search_button = page.query_selector(SEARCH_BUTTON)
        if search_button is None:
            raise PortalFault("Search button not found on portal")
        search_button.click()

        results_html = self._poll_search_results(page)
        if not has_ticket_results(results_html):
            return NoResults()

        checkbox = page.query_selector(TICKET_CHECKBOX)
        if checkbox is None:
            raise PortalFault("Ticket checkbox not found in search results")
        checkbox.click()

        view_button = None
        for selector in VIEW_BUTTONS:
            view_button = page.query_selector(selector)
            if view_button is not None:
                break
        if view_button is None:
            raise PortalFault("View button not found in search results")

        with page.expect_navigation(wait_until="networkidle", timeout=navigation_ms):
            view_button.click()
        try:
            page.wait_for_selector(DETAIL_CONTAINER, timeout=element_ms)
        except PlaywrightTimeoutError as exc:
            raise PortalFault("Invoice detail page did not load") from exc

        portal_fields = parse_portal_detail_text(page.text_content("body") or "")
        if portal_fields.is_empty:
            logger.info("No labelled invoice fields on detail page for ticket %s", passenger.ticket_number)

        target = self.documents_dir / document_filename(passenger.ticket_number, self._clock())
        page.pdf(path=str(target), format="A4", print_background=True, margin=PDF_MARGINS)
        return Located(target, portal_fields)

    def _poll_search_results(self, page: Any) -> str:
        """Wait for the search AJAX call to fill #searchResults; returns its HTML."""
        attempts = self.settings.poll_attempts
        for attempt in range(1, attempts + 1):
            self._sleep(self.settings.poll_interval)
            results = page.query_selector(SEARCH_RESULTS)
            if results is not None:
                results_html = results.inner_html()
                if search_results_loaded(results_html):
                    logger.debug("Search results loaded after %d attempt(s)", attempt)
                    return results_html
            logger.debug("Waiting for search results... attempt %d/%d", attempt, attempts)
        raise PortalFault(f"Search results did not load within {attempts} attempts")


_agent: PortalAgent | None = None


def get_portal_agent() -> PortalAgent:
    global _agent
    if _agent is None:
        _agent = PortalAgent(get_settings().portal, get_paths().uploads)
    return _agent
