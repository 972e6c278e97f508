#!/usr/bin/env python3
"""LP Leaderboard TUI - terminal dashboard for the zap-out leaderboard API."""
from __future__ import annotations

import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote

import httpx
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.timer import Timer
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Sparkline,
    Static,
    TabbedContent,
    TabPane,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
API_URL = os.environ.get("LEADERBOARD_API_URL", "http://localhost:8000").rstrip("/")
REQUEST_TIMEOUT = 15.0
HEALTH_POLL_SECONDS = 10.0
COPY_RESET_SECONDS = 2.0

TITLE = "Meteora Zap Out Leaderboard"
SUBTITLE = "Top Traders Rankings"

SORT_FIELDS = ("rank", "volume7D", "feesLifetime")
DEFAULT_DIRECTION = {"rank": "asc", "volume7D": "desc", "feesLifetime": "desc"}


# ---------------------------------------------------------------------------
# Search / sort / copy state (pure, no widgets)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SortState:
    field: str = "rank"
    direction: str = "asc"

    def select(self, field: str) -> "SortState":
        """Same field flips direction; a new field starts at its default."""
        if field == self.field:
            return SortState(field, "desc" if self.direction == "asc" else "asc")
        return SortState(field, DEFAULT_DIRECTION.get(field, "desc"))

    def arrow(self, field: str) -> str:
        if field != self.field:
            return ""
        return " ▲" if self.direction == "asc" else " ▼"


def filter_entries(entries: Iterable[dict], query: str) -> list[dict]:
    """Entries whose wallet contains ``query``, case-insensitively."""
    needle = query.lower()
    return [e for e in entries if needle in str(e.get("wallet", "")).lower()]


def sort_entries(entries: Iterable[dict], state: SortState) -> list[dict]:
    """Stable sort on the active field. Ranks are never renumbered."""
    if state.field not in SORT_FIELDS:
        return list(entries)
    return sorted(
        entries,
        key=lambda e: e.get(state.field) or 0,
        reverse=state.direction == "desc",
    )


class CopiedIndicator:
    """Remembers the last copied value for ``duration`` seconds."""

    def __init__(
        self,
        duration: float = COPY_RESET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration = duration
        self._clock = clock
        self._value: Optional[str] = None
        self._until = 0.0

    def mark(self, value: str) -> None:
        self._value = value
        self._until = self._clock() + self.duration

    @property
    def current(self) -> Optional[str]:
        if self._value is not None and self._clock() < self._until:
            return self._value
        return None

    def is_copied(self, value: str) -> bool:
        return self.current == value


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------
def format_wallet(wallet: str, head: int = 3, tail: int = 3) -> str:
    if len(wallet) <= head + tail:
        return wallet
    return f"{wallet[:head]}...{wallet[-tail:]}"


def format_table_currency(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def format_metric_currency(value: float) -> str:
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    return f"${value:,.0f}"


def format_compact_currency(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:,.2f}"


def format_count(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{int(value):,}"


def format_short_date(iso_date: str) -> str:
    """'2026-10-17' -> 'Oct 17'"""
    try:
        day = datetime.strptime(iso_date, "%Y-%m-%d")
    except ValueError:
        return iso_date
    return f"{day:%b} {day.day}"


def rank_badge(rank: int) -> str:
    if rank == 1:
        return "\U0001f3c6 #1"
    if rank == 2:
        return "\U0001f948 #2"
    if rank == 3:
        return "\U0001f949 #3"
    return f"#{rank}"


# ---------------------------------------------------------------------------
# API access
# ---------------------------------------------------------------------------
def api_get(path: str) -> Any:
    """GET a JSON document from the leaderboard API (raises httpx errors)."""
    response = httpx.get(f"{API_URL}{path}", timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------
CSS = """
Screen {
    background: $surface;
}

#title-bar {
    layout: horizontal;
    height: 3;
    padding: 0 2;
    background: $boost;
    margin: 0 1 1 1;
}

#title {
    width: 1fr;
    content-align: left middle;
    color: #00ff88;
    text-style: bold;
}

#live-indicator {
    width: auto;
    min-width: 14;
    content-align: right middle;
}

/* ---- Metric cards ---- */
#stats-grid {
    layout: grid;
    grid-size: 3 1;
    grid-gutter: 1;
    padding: 0 1;
    margin: 0 1;
    height: auto;
}

.stat-card {
    height: 5;
    background: $boost;
    border: round $primary-background;
    padding: 0 1;
    content-align: center middle;
}

.stat-value {
    text-style: bold;
    color: #00ff88;
    text-align: center;
    width: 100%;
}

.stat-title {
    color: #888888;
    text-align: center;
    width: 100%;
}

/* ---- Search ---- */
#toolbar {
    layout: horizontal;
    height: 3;
    margin: 1 1 0 1;
}

#section-title {
    width: 1fr;
    content-align: left middle;
    text-style: bold;
    padding: 0 1;
}

#search {
    width: 50;
}

/* ---- Table ---- */
#leaderboard {
    height: 1fr;
    margin: 0 1;
    border: round $primary-background;
}

#empty-state {
    margin: 0 2;
    color: #888888;
    text-align: center;
    height: auto;
}

#footer-note {
    height: 1;
    margin: 0 2;
    color: #666666;
    text-align: center;
}
"""

PROFILE_CSS = """
ProfileScreen {
    align: center middle;
}

#profile-dialog {
    width: 90%;
    height: 90%;
    background: $surface;
    border: round $primary;
    padding: 1 2;
}

#profile-title {
    text-style: bold;
    height: 1;
}

#profile-wallet, #profile-rank {
    height: 1;
    color: #66ccff;
}

#profile-stats {
    layout: grid;
    grid-size: 4 1;
    grid-gutter: 1;
    height: auto;
    margin: 1 0;
}

#profile-tabs {
    height: 1fr;
}

.chart-label {
    color: #888888;
    height: 1;
}

Sparkline {
    height: 6;
    margin: 0 0 1 0;
}
"""


# ---------------------------------------------------------------------------
# Stat card widget
# ---------------------------------------------------------------------------
class StatCard(Static):
    """A small card showing a single metric."""

    def __init__(self, title: str, value: str = "...", card_id: str = "") -> None:
        super().__init__(id=card_id, classes="stat-card")
        self._title = title
        self._value = value

    def compose(self) -> ComposeResult:
        yield Label(self._value, classes="stat-value", id=f"{self.id}-val")
        yield Label(self._title, classes="stat-title")

    def update_value(self, value: str) -> None:
        self._value = value
        try:
            self.query_one(f"#{self.id}-val", Label).update(value)
        except Exception:
            pass


# ---------------------------------------------------------------------------
# Profile modal
# ---------------------------------------------------------------------------
class ProfileScreen(ModalScreen[None]):
    """LP profile drill-down: stats, positions and 30-day charts."""

    DEFAULT_CSS = PROFILE_CSS
    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("c", "copy_wallet", "Copy wallet"),
    ]

    def __init__(self, wallet: str) -> None:
        super().__init__()
        self.wallet = wallet
        self.profile: Optional[dict] = None
        self._copied = CopiedIndicator()

    def compose(self) -> ComposeResult:
        with Vertical(id="profile-dialog"):
            yield Static("[bold]LP Profile[/]", id="profile-title")
            yield Static(self._wallet_line(), id="profile-wallet")
            yield Static("Loading profile...", id="profile-rank")
            with Container(id="profile-stats"):
                yield StatCard("Total Liquidity", card_id="pf-liquidity")
                yield StatCard("7D Volume", card_id="pf-volume")
                yield StatCard("Lifetime Fees", card_id="pf-fees")
                yield StatCard("Avg APR", card_id="pf-apr")
            with TabbedContent(initial="positions", id="profile-tabs"):
                with TabPane("Positions", id="positions"):
                    yield DataTable(id="positions-table", cursor_type="row", zebra_stripes=True)
                with TabPane("Volume Trend", id="volume"):
                    yield Static("30-Day Volume Trend", id="volume-title", classes="chart-label")
                    yield Sparkline([], id="volume-spark")
                    yield Static("", id="volume-range", classes="chart-label")
                with TabPane("Fee History", id="fees"):
                    yield Static("Daily Fees", classes="chart-label")
                    yield Sparkline([], id="fees-daily-spark")
                    yield Static("Cumulative", classes="chart-label")
                    yield Sparkline([], id="fees-cumulative-spark")
                    yield Static("", id="fees-range", classes="chart-label")

    def on_mount(self) -> None:
        table = self.query_one("#positions-table", DataTable)
        table.add_columns("Pool", "Pair", "Liquidity", "24H Fees", "7D Fees", "APR", "Status")
        self._load_profile()

    def _wallet_line(self) -> str:
        mark = "  [green]✓ Copied![/]" if self._copied.is_copied(self.wallet) else ""
        return f"{format_wallet(self.wallet, head=6, tail=4)}  [dim](c to copy)[/]{mark}"

    @work(thread=True, exclusive=True)
    def _load_profile(self) -> None:
        try:
            profile = api_get(f"/api/lp/{quote(self.wallet, safe='')}")
        except httpx.HTTPStatusError as e:
            message = "LP not found" if e.response.status_code == 404 else "Failed to load LP profile"
            self.app.call_from_thread(self._show_error, message)
            return
        except httpx.HTTPError:
            self.app.call_from_thread(self._show_error, "Failed to load LP profile")
            return
        self.app.call_from_thread(self._apply_profile, profile)

    def _show_error(self, message: str) -> None:
        self.query_one("#profile-rank", Static).update(f"[bold red]{message}[/]")
        for card_id in ("pf-liquidity", "pf-volume", "pf-fees", "pf-apr"):
            self.query_one(f"#{card_id}", StatCard).update_value("--")

    def _apply_profile(self, profile: dict) -> None:
        self.profile = profile
        self.query_one("#profile-rank", Static).update(
            f"{rank_badge(int(profile.get('rank', 0)))}  "
            f"[dim]{profile.get('activePositions', 0)} active positions[/]"
        )
        self.query_one("#pf-liquidity", StatCard).update_value(
            format_compact_currency(profile.get("totalLiquidity", 0))
        )
        self.query_one("#pf-volume", StatCard).update_value(
            format_compact_currency(profile.get("volume7D", 0))
        )
        self.query_one("#pf-fees", StatCard).update_value(
            format_compact_currency(profile.get("feesLifetime", 0))
        )
        self.query_one("#pf-apr", StatCard).update_value(f"{profile.get('avgApr', 0):.1f}%")

        table = self.query_one("#positions-table", DataTable)
        table.clear()
        for position in profile.get("positions", []):
            status = "[green]In Range[/]" if position.get("inRange") else "[red]Out of Range[/]"
            table.add_row(
                position.get("poolName", ""),
                position.get("tokenPair", ""),
                format_compact_currency(position.get("liquidity", 0)),
                f"+{format_compact_currency(position.get('fees24H', 0))}",
                f"+{format_compact_currency(position.get('fees7D', 0))}",
                f"{position.get('apr', 0):.1f}%",
                status,
                key=position.get("id"),
            )

        volume_history = profile.get("volumeHistory", [])
        self.query_one("#volume-spark", Sparkline).data = [p.get("volume", 0) for p in volume_history]
        self.query_one("#volume-title", Static).update(
            f"30-Day Volume Trend  [bold]{format_compact_currency(profile.get('volume30D', 0))} total[/]"
        )
        self.query_one("#volume-range", Static).update(self._date_range(volume_history))

        fee_history = profile.get("feeHistory", [])
        self.query_one("#fees-daily-spark", Sparkline).data = [p.get("fees", 0) for p in fee_history]
        self.query_one("#fees-cumulative-spark", Sparkline).data = [
            p.get("cumulative", 0) for p in fee_history
        ]
        self.query_one("#fees-range", Static).update(self._date_range(fee_history))

    @staticmethod
    def _date_range(points: list[dict]) -> str:
        if not points:
            return ""
        return f"{format_short_date(points[0].get('date', ''))} - {format_short_date(points[-1].get('date', ''))}"

    def action_copy_wallet(self) -> None:
        self.app.copy_to_clipboard(self.wallet)
        self._copied.mark(self.wallet)
        self.notify("Wallet address copied to clipboard", title="Copied!", timeout=COPY_RESET_SECONDS)
        self._refresh_wallet_line()
        self.set_timer(COPY_RESET_SECONDS, self._refresh_wallet_line)

    def _refresh_wallet_line(self) -> None:
        try:
            self.query_one("#profile-wallet", Static).update(self._wallet_line())
        except Exception:
            pass

    def action_close(self) -> None:
        self.dismiss()


# ---------------------------------------------------------------------------
# Main TUI App
# ---------------------------------------------------------------------------
class LeaderboardApp(App):
    """Meteora zap-out leaderboard dashboard."""

    TITLE = TITLE
    SUB_TITLE = SUBTITLE
    CSS = CSS
    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("d", "toggle_dark", "Dark/Light"),
        Binding("1", "sort('rank')", "Sort rank"),
        Binding("2", "sort('volume7D')", "Sort volume"),
        Binding("3", "sort('feesLifetime')", "Sort fees"),
        Binding("c", "copy_wallet", "Copy wallet"),
        Binding("escape", "clear_search", "Clear search", show=False),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.entries: Optional[list[dict]] = None  # None while loading
        self.search_query = ""
        self.sort_state = SortState()
        self._visible: list[dict] = []
        self._copied = CopiedIndicator()
        self._copy_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="title-bar"):
            yield Static(f"{TITLE}  [dim]{SUBTITLE}[/]", id="title")
            yield Static("[yellow]●[/] Connecting", id="live-indicator")
        with Container(id="stats-grid"):
            yield StatCard("Total Trades", card_id="stat-trades")
            yield StatCard("Total Volume", card_id="stat-volume")
            yield StatCard("Total Unique LPs", card_id="stat-lps")
        with Horizontal(id="toolbar"):
            yield Static("Top Traders", id="section-title")
            yield Input(placeholder="Search by wallet address...", id="search")
        yield DataTable(id="leaderboard", cursor_type="row", zebra_stripes=True)
        yield Static("Loading leaderboard...", id="empty-state")
        yield Static(f"{TITLE} | Tracking top traders | {API_URL}", id="footer-note")
        yield Footer()

    # ---- Lifecycle ----
    def on_mount(self) -> None:
        self._render_table()
        self.action_refresh()
        self._fetch_health()
        self.set_interval(HEALTH_POLL_SECONDS, self._fetch_health)

    def action_refresh(self) -> None:
        self._load_leaderboard()
        self._load_stats()

    # ---- Data loading (thread workers) ----
    @work(thread=True, exclusive=True, group="leaderboard")
    def _load_leaderboard(self) -> None:
        try:
            data = api_get("/api/leaderboard")
        except httpx.HTTPError:
            data = []
        if not isinstance(data, list):
            data = []
        self.call_from_thread(self._apply_leaderboard, data)

    @work(thread=True, exclusive=True, group="stats")
    def _load_stats(self) -> None:
        try:
            stats = api_get("/api/stats")
        except httpx.HTTPError:
            stats = None
        self.call_from_thread(self._apply_stats, stats if isinstance(stats, dict) else None)

    @work(thread=True, exclusive=True, group="health")
    def _fetch_health(self) -> None:
        try:
            health = api_get("/health/detailed")
        except httpx.HTTPError:
            health = None
        self.call_from_thread(self._apply_health, health)

    def _apply_leaderboard(self, entries: list[dict]) -> None:
        self.entries = entries
        self._render_table()

    def _apply_stats(self, stats: Optional[dict]) -> None:
        stats = stats or {}
        self._update_stat("stat-trades", format_count(stats.get("totalTVL", 0)))
        self._update_stat("stat-volume", format_metric_currency(stats.get("volume24H", 0)))
        self._update_stat("stat-lps", format_count(stats.get("totalUniqueLPs", 0)))

    def _apply_health(self, health: Optional[dict]) -> None:
        if health is None:
            label = "[red]●[/] Offline"
        else:
            cache = health.get("cache", {})
            if cache.get("fresh"):
                label = "[green]●[/] Live"
            elif cache.get("hasSnapshot"):
                label = "[yellow]●[/] Stale"
            else:
                label = "[yellow]●[/] Waiting"
        try:
            self.query_one("#live-indicator", Static).update(label)
        except Exception:
            pass

    def _update_stat(self, card_id: str, value: str) -> None:
        try:
            self.query_one(f"#{card_id}", StatCard).update_value(value)
        except Exception:
            pass

    # ---- Table ----
    def _render_table(self) -> None:
        table = self.query_one("#leaderboard", DataTable)
        cursor_row = table.cursor_row
        table.clear(columns=True)
        state = self.sort_state
        table.add_column(f"Rank{state.arrow('rank')}", key="rank")
        table.add_column("Wallet", key="wallet")
        table.add_column("Trades", key="activePositions")
        table.add_column(f"Volume{state.arrow('volume7D')}", key="volume7D")
        table.add_column(f"Est. Fees{state.arrow('feesLifetime')}", key="feesLifetime")

        empty = self.query_one("#empty-state", Static)
        if self.entries is None:
            self._visible = []
            empty.update("Loading leaderboard...")
            empty.display = True
            return

        self._visible = sort_entries(filter_entries(self.entries, self.search_query), state)
        for entry in self._visible:
            wallet = str(entry.get("wallet", ""))
            wallet_cell = format_wallet(wallet)
            if self._copied.is_copied(wallet):
                wallet_cell += "  [green]✓ copied[/]"
            table.add_row(
                rank_badge(int(entry.get("rank", 0))),
                wallet_cell,
                f"{int(entry.get('activePositions', 0)):,}",
                format_table_currency(entry.get("volume7D", 0)),
                format_table_currency(entry.get("feesLifetime", 0)),
                key=wallet,
            )

        if self._visible:
            empty.display = False
            table.move_cursor(row=min(cursor_row, len(self._visible) - 1))
        else:
            empty.update(
                f'No results found. No wallets matching "{self.search_query}"'
                if self.search_query
                else "No results found. No leaderboard data available"
            )
            empty.display = True

    def _selected_entry(self) -> Optional[dict]:
        row = self.query_one("#leaderboard", DataTable).cursor_row
        if 0 <= row < len(self._visible):
            return self._visible[row]
        return None

    @on(Input.Changed, "#search")
    def _on_search(self, event: Input.Changed) -> None:
        self.search_query = event.value
        self._render_table()

    @on(DataTable.HeaderSelected, "#leaderboard")
    def _on_header(self, event: DataTable.HeaderSelected) -> None:
        field = event.column_key.value
        if field in SORT_FIELDS:
            self.action_sort(field)

    @on(DataTable.RowSelected, "#leaderboard")
    def _on_row_selected(self, event: DataTable.RowSelected) -> None:
        wallet = event.row_key.value
        if wallet is not None:
            self.push_screen(ProfileScreen(wallet))

    # ---- Actions ----
    def action_sort(self, field: str) -> None:
        self.sort_state = self.sort_state.select(field)
        self._render_table()

    def action_clear_search(self) -> None:
        search = self.query_one("#search", Input)
        if search.value:
            search.value = ""  # fires Input.Changed
        self.query_one("#leaderboard", DataTable).focus()

    def action_copy_wallet(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        wallet = str(entry.get("wallet", ""))
        self.copy_to_clipboard(wallet)
        self._copied.mark(wallet)
        self.notify("Wallet address copied to clipboard", title="Copied!", timeout=COPY_RESET_SECONDS)
        self._render_table()
        if self._copy_timer is not None:
            self._copy_timer.stop()
        self._copy_timer = self.set_timer(COPY_RESET_SECONDS, self._render_table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main() -> None:
    app = LeaderboardApp()
    app.run()


if __name__ == "__main__":
    main()
