"""Tests for the portal acquisition agent, driven through a fake browser page."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import httpx
import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from airinvoice.domain.passenger import PassengerRecord, PortalFields
from airinvoice.runtime import portal_agent
from airinvoice.runtime.portal_agent import (
    AcquisitionError,
    Faulted,
    Located,
    NoResults,
    PortalAgent,
    PortalFault,
    PortalOutcome,
    PortalUnavailable,
    document_filename,
    has_ticket_results,
    probe_portal,
    search_results_loaded,
)
from airinvoice.runtime.settings import PortalSettings

RESULTS_TABLE = '<table><tr><td><input type="checkbox" name="ticket"></td><td>ticket 2172345678901</td></tr></table>'
NO_RESULTS = '<div class="msg">No ticket details found</div>'
DETAIL_BODY = (
    "Invoice No. : 27P2410IV002348 Invoice Date : 14/10/2024 Passenger Name : WAGNER/VICTOR MR "
    "GST No. : 27AABCB3524G1Z1 Total 416.00 35,000.00"
)


class FakeElement:
    def __init__(self, page: FakePage, selector: str, html_states: list[str] | None = None) -> None:
        self.page = page
        self.selector = selector
        self.html_states = html_states or []

    def fill(self, value: str) -> None:
        self.page.filled[self.selector] = value

    def click(self) -> None:
        self.page.clicked.append(self.selector)

    def inner_html(self) -> str:
        if len(self.html_states) > 1:
            return self.html_states.pop(0)
        return self.html_states[0] if self.html_states else ""


class FakePage:
    def __init__(
        self,
        results_states: list[str],
        *,
        missing: tuple[str, ...] = (),
        form_loads: bool = True,
        body_text: str = DETAIL_BODY,
    ) -> None:
        self.results_states = results_states
        self.missing = set(missing)
        self.form_loads = form_loads
        self.body_text = body_text
        self.filled: dict[str, str] = {}
        self.clicked: list[str] = []
        self.navigations: list[dict[str, object]] = []
        self.pdf_calls: list[dict[str, object]] = []
        self.visited: list[str] = []

    def goto(self, url: str, **kwargs: object) -> None:
        self.visited.append(url)

    def wait_for_selector(self, selector: str, timeout: float | None = None) -> FakeElement:
        if selector == "#ticketNo" and not self.form_loads:
            raise PlaywrightTimeoutError("Timeout 10000ms exceeded.")
        return FakeElement(self, selector)

    def fill(self, selector: str, value: str) -> None:
        self.filled[selector] = value

    def query_selector(self, selector: str) -> FakeElement | None:
        if selector in self.missing:
            return None
        if selector == "#searchResults":
            return FakeElement(self, selector, self.results_states)
        return FakeElement(self, selector)

    @contextmanager
    def expect_navigation(self, **kwargs: object):
        self.navigations.append(kwargs)
        yield

    def text_content(self, selector: str) -> str:
        return self.body_text

    def pdf(self, **kwargs: object) -> bytes:
        self.pdf_calls.append(kwargs)
        Path(str(kwargs["path"])).write_bytes(b"%PDF-1.4 fake")
        return b""


def _passenger() -> PassengerRecord:
    return PassengerRecord(id="p-1", ticket_number="2172345678901", first_name="Victor", last_name="Wagner")


def _agent(tmp_path: Path, sleeps: list[float] | None = None, **overrides: object) -> PortalAgent:
    settings = PortalSettings(poll_attempts=3, poll_interval=0.5, **overrides)  # type: ignore[arg-type]
    recorded = sleeps if sleeps is not None else []
    return PortalAgent(settings, tmp_path / "uploads", clock=lambda: 1_700_000_000.123, sleep=recorded.append)


def test_run_search_locates_invoice_and_captures_portal_fields(tmp_path: Path) -> None:
    sleeps: list[float] = []
    agent = _agent(tmp_path, sleeps)
    agent.documents_dir.mkdir(parents=True)
    page = FakePage(["", RESULTS_TABLE])

    outcome = agent._run_search(page, _passenger())

    assert isinstance(outcome, Located)
    assert outcome.document_path == tmp_path / "uploads" / "invoice_2172345678901_1700000000123.pdf"
    assert outcome.document_path.exists()
    assert outcome.portal_fields.invoice_number == "27P2410IV002348"
    assert outcome.portal_fields.total_amount == "35,000.00"
    assert page.filled == {"#ticketNo": "2172345678901", "#firstName": "Victor", "#lastName": "Wagner"}
    assert page.clicked == [
        'button[onclick="search()"]',
        '#searchResults input[name="ticket"]',
        "#searchResults button.view-button",
    ]
    assert sleeps == [0.5, 0.5]
    assert page.navigations and page.navigations[0]["wait_until"] == "networkidle"
    assert page.pdf_calls[0]["format"] == "A4"
    assert page.pdf_calls[0]["print_background"] is True


def test_run_search_reports_no_results_marker(tmp_path: Path) -> None:
    agent = _agent(tmp_path)
    page = FakePage([NO_RESULTS])

    outcome = agent._run_search(page, _passenger())

    assert isinstance(outcome, NoResults)
    assert page.pdf_calls == []


def test_run_search_uses_alternate_view_button(tmp_path: Path) -> None:
    agent = _agent(tmp_path)
    agent.documents_dir.mkdir(parents=True)
    page = FakePage([RESULTS_TABLE], missing=("#searchResults button.view-button",))

    outcome = agent._run_search(page, _passenger())

    assert isinstance(outcome, Located)
    assert '#searchResults button[onclick="viewTicketDetails()"]' in page.clicked


def test_run_search_searches_by_ticket_only_when_name_fields_are_absent(tmp_path: Path) -> None:
    agent = _agent(tmp_path)
    page = FakePage([NO_RESULTS], missing=("#firstName",))

    agent._run_search(page, _passenger())

    assert page.filled == {"#ticketNo": "2172345678901"}


def test_polling_budget_exhaustion_is_a_fault_not_a_miss(tmp_path: Path) -> None:
    sleeps: list[float] = []
    agent = _agent(tmp_path, sleeps)
    page = FakePage(["", "<span>Loading...</span>"])

    with pytest.raises(PortalFault, match="did not load within 3 attempts"):
        agent._run_search(page, _passenger())
    assert len(sleeps) == 3


def test_missing_search_form_means_portal_unavailable(tmp_path: Path) -> None:
    agent = _agent(tmp_path)

    with pytest.raises(PortalUnavailable):
        agent._run_search(FakePage([], form_loads=False), _passenger())


@pytest.mark.parametrize(
    "missing",
    ['button[onclick="search()"]', '#searchResults input[name="ticket"]'],
)
def test_missing_controls_are_faults(tmp_path: Path, missing: str) -> None:
    agent = _agent(tmp_path)
    page = FakePage([RESULTS_TABLE], missing=(missing,))

    with pytest.raises(PortalFault):
        agent._run_search(page, _passenger())


class ScriptedAgent(PortalAgent):
    """Agent whose portal outcome and PDF rendering are scripted."""

    def __init__(self, tmp_path: Path, outcome: PortalOutcome, *, render_error: Exception | None = None, **settings):
        super().__init__(PortalSettings(**settings), tmp_path / "uploads", clock=lambda: 1_700_000_000.0)
        self.outcome = outcome
        self.render_error = render_error
        self.rendered: list[str] = []

    def search_portal(self, passenger: PassengerRecord) -> PortalOutcome:
        return self.outcome

    def render_html_to_pdf(self, markup: str, target: Path) -> None:
        if self.render_error is not None:
            raise self.render_error
        self.rendered.append(markup)
        target.write_bytes(b"%PDF-1.4 placeholder")


def test_acquire_returns_portal_document(tmp_path: Path) -> None:
    fields = PortalFields(invoice_number="27P2410IV002348")
    located = Located(tmp_path / "invoice.pdf", fields)

    acquisition = ScriptedAgent(tmp_path, located).acquire(_passenger())

    assert acquisition is not None
    assert acquisition.source == "portal"
    assert acquisition.portal_fields == fields


def test_acquire_returns_none_when_portal_has_no_invoice(tmp_path: Path) -> None:
    assert ScriptedAgent(tmp_path, NoResults()).acquire(_passenger()) is None


def test_fault_degrades_to_labelled_placeholder(tmp_path: Path) -> None:
    agent = ScriptedAgent(tmp_path, Faulted("View button not found in search results"))

    acquisition = agent.acquire(_passenger())

    assert acquisition is not None
    assert acquisition.source == "placeholder"
    assert acquisition.portal_fields is None
    assert acquisition.document_path.exists()
    assert acquisition.document_path.name == "invoice_2172345678901_1700000000000.pdf"
    assert "PLACEHOLDER" in agent.rendered[0]
    assert "2172345678901" in agent.rendered[0]


def test_fault_raises_when_fallback_disabled(tmp_path: Path) -> None:
    agent = ScriptedAgent(tmp_path, Faulted("Search results did not load"), fallback_enabled=False)

    with pytest.raises(AcquisitionError, match="Search results did not load"):
        agent.acquire(_passenger())
    assert agent.rendered == []


def test_unavailable_portal_never_uses_placeholder(tmp_path: Path) -> None:
    agent = ScriptedAgent(tmp_path, Faulted("Ticket search form did not load", fallback_allowed=False))

    with pytest.raises(AcquisitionError, match="Ticket search form did not load"):
        agent.acquire(_passenger())
    assert agent.rendered == []


def test_placeholder_render_failure_is_an_acquisition_error(tmp_path: Path) -> None:
    agent = ScriptedAgent(tmp_path, Faulted("boom"), render_error=OSError("disk full"))

    with pytest.raises(AcquisitionError, match="disk full"):
        agent.acquire(_passenger())


def test_search_result_classification() -> None:
    assert not search_results_loaded("   ")
    assert not search_results_loaded("<span>Loading...</span>")
    assert search_results_loaded(NO_RESULTS)
    assert search_results_loaded(RESULTS_TABLE)
    assert has_ticket_results(RESULTS_TABLE)
    assert not has_ticket_results(NO_RESULTS)
    assert not has_ticket_results("<table><tr><td>No ticket details found</td></tr></table>")


def test_document_filename_is_filesystem_safe() -> None:
    assert document_filename("2172345678901", 1.5) == "invoice_2172345678901_1500.pdf"
    assert document_filename("../etc/passwd", 0) == "invoice____etc_passwd_0.pdf"


def test_probe_accepts_any_http_answer() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="Service Unavailable"))

    probe_portal("https://portal.test/home.jsp", 5.0, "test-agent", transport=transport)


def test_probe_sends_browser_user_agent() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["User-Agent"])
        return httpx.Response(200)

    probe_portal("https://portal.test/home.jsp", 5.0, "test-agent", transport=httpx.MockTransport(handler))

    assert seen == ["test-agent"]


def test_probe_connection_failure_means_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(PortalUnavailable, match="Could not reach airline portal"):
        probe_portal("https://portal.test/home.jsp", 5.0, "test-agent", transport=httpx.MockTransport(handler))


def test_unreachable_portal_is_not_eligible_for_placeholder(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def unreachable(url: str, timeout: float, user_agent: str) -> None:
        raise PortalUnavailable("Could not reach airline portal: Connection refused")

    monkeypatch.setattr(portal_agent, "probe_portal", unreachable)
    agent = PortalAgent(PortalSettings(), tmp_path / "uploads")

    outcome = agent.search_portal(_passenger())

    assert outcome == Faulted("Could not reach airline portal: Connection refused", fallback_allowed=False)
    with pytest.raises(AcquisitionError, match="Connection refused"):
        agent.acquire(_passenger())
