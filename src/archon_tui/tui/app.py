"""Main TUI application loop and layout.

This module orchestrates the TUI application: it owns the event queue, the
tick source, the realtime listener and the effect executor, feeds every
event through ``dispatch.update`` and renders the resulting state with rich.
"""

from __future__ import annotations

import logging
import select
import sys
import time
from collections.abc import Callable

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.text import Text

from ..client import ArchonClient
from ..clipboard import SubprocessClipboard
from ..retry import RetryPolicy
from ..utils import Config
from .dispatch import startup_effects, update
from .effects import Effect, Quit
from .events import Event, EventQueue, KeyPressed, Resize
from .executor import EffectExecutor
from .interfaces import ClipboardWriter, RealtimeClient, TaskClient
from .models import Panel, Unfiltered
from .poller import TickSource
from .realtime import PollingRealtimeClient, RealtimeListener
from .state import AppState
from .tui_utils import decode_key, get_terminal_size, is_escape_sequence_complete
from .views.footer_bar import render_footer_bar
from .views.header_bar import render_header_bar
from .views.modal_panel import render_modal
from .views.task_details import render_task_details
from .views.task_list_panel import render_task_list_panel

logger = logging.getLogger(__name__)

ESCAPE_TIMEOUT_SECONDS = 0.05
MAX_ESCAPE_LENGTH = 8


class TUIApp:
    """Main TUI application orchestrating all components."""

    def __init__(
        self,
        config: Config,
        task_client: TaskClient | None = None,
        clipboard: ClipboardWriter | None = None,
        realtime_client: RealtimeClient | None = None,
        project_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize TUI application.

        Args:
            config: Runtime configuration
            task_client: Task API client (defaults to ArchonClient from config)
            clipboard: Clipboard writer (defaults to SubprocessClipboard)
            realtime_client: Realtime client (defaults to polling the task client)
            project_id: Project to open at startup
            clock: Monotonic time source
        """
        self.config = config
        self.console = Console()
        self.should_quit = False

        self.task_client = task_client or ArchonClient(
            config.server_url,
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            retry_policy=RetryPolicy(),
        )
        self.clipboard = clipboard or SubprocessClipboard()

        self.state = AppState.from_config(config, clock=clock, project_id=project_id)
        self.event_queue = EventQueue()
        self.tick_source = TickSource(self.event_queue, clock=clock)

        self.realtime_client: RealtimeClient | None = None
        self.listener: RealtimeListener | None = None
        if config.realtime_enabled:
            self.realtime_client = realtime_client or PollingRealtimeClient(
                self.task_client, poll_seconds=config.realtime_poll_seconds
            )
            self.listener = RealtimeListener(self.realtime_client, self.event_queue)

        self.executor = EffectExecutor(
            task_client=self.task_client,
            clipboard=self.clipboard,
            event_queue=self.event_queue,
            realtime_client=self.realtime_client,
            listener=self.listener,
            max_workers=config.max_workers,
        )

        # Terminal size tracking
        self.terminal_width, self.terminal_height = get_terminal_size()
        self.min_terminal_cols = config.tui_min_terminal_cols
        self.min_terminal_rows = config.tui_min_terminal_rows
        self.state.window.width = self.terminal_width
        self.state.window.height = self.terminal_height

        self._saved_terminal = None
        self._started = False
        self._shut_down = False

    # Event handling

    def dispatch(self, event: Event) -> None:
        """Apply one event and run the effects it produces."""
        _, effects = update(self.state, event)
        self.run_effects(effects)

    def run_effects(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Quit):
                logger.info("Quit requested")
                self.should_quit = True
                continue
            self.executor.submit(effect)

    def process_events(self) -> int:
        """Dispatch every queued event. Returns the number processed."""
        events = self.event_queue.drain()
        for event in events:
            self.dispatch(event)
        return len(events)

    def _check_terminal_size(self) -> bool:
        """Check if terminal meets minimum size requirements, posting Resize on change.

        Returns:
            True if terminal is large enough, False otherwise
        """
        width, height = get_terminal_size()
        if (width, height) != (self.terminal_width, self.terminal_height):
            self.terminal_width, self.terminal_height = width, height
            self.event_queue.put(Resize(width=width, height=height))
        return width >= self.min_terminal_cols and height >= self.min_terminal_rows

    # Keyboard

    def _read_char(self, timeout: float) -> str | None:
        ready, _, _ = select.select([sys.stdin], [], [], timeout)
        if not ready:
            return None
        return sys.stdin.read(1)

    def _poll_keyboard(self, timeout: float = 0.1) -> str | None:
        """Poll for keyboard input with timeout.

        Escape sequences (arrows, Home/End, PgUp/PgDn, F5) are read in full
        and decoded; a lone ESC becomes "esc".

        Args:
            timeout: Timeout in seconds

        Returns:
            Normalized key name if a key was pressed, None otherwise
        """
        try:
            char = self._read_char(timeout)
            if not char:
                return None
            if char != "\x1b":
                return decode_key(char)

            sequence = ""
            while len(sequence) < MAX_ESCAPE_LENGTH:
                follow = self._read_char(ESCAPE_TIMEOUT_SECONDS)
                if not follow:
                    break
                sequence += follow
                if is_escape_sequence_complete(sequence):
                    break
            if not sequence:
                return "esc"
            return decode_key("\x1b" + sequence)
        except (OSError, ValueError) as err:
            logger.warning(f"Error reading keyboard input: {err}")
            return None

    def _enter_cbreak(self) -> None:
        """Put stdin in cbreak mode with signal keys delivered as characters."""
        if not sys.stdin.isatty():
            return
        import termios
        import tty

        fd = sys.stdin.fileno()
        self._saved_terminal = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        attrs = termios.tcgetattr(fd)
        attrs[3] &= ~termios.ISIG
        termios.tcsetattr(fd, termios.TCSADRAIN, attrs)

    def _restore_terminal(self) -> None:
        if self._saved_terminal is None:
            return
        import termios

        termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._saved_terminal)
        self._saved_terminal = None

    # Rendering

    def _build_layout(self) -> Layout:
        """Build the multi-panel layout.

        Returns:
            Rich Layout with all panels configured
        """
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=1),
            Layout(name="main", ratio=1),
            Layout(name="footer", size=1),
        )
        if self.state.modal.is_open:
            layout["main"].split_row(
                Layout(name="tasks", ratio=4),
                Layout(name="modal", ratio=6),
            )
        else:
            layout["main"].split_row(
                Layout(name="tasks", ratio=5),
                Layout(name="details", ratio=5),
            )
        return layout

    def _render_layout(self) -> Layout:
        """Render all panels from the current state."""
        state = self.state
        data = state.data

        if not self._check_terminal_size():
            return Layout(
                Text(
                    f"Terminal too small! Need {self.min_terminal_cols}x"
                    f"{self.min_terminal_rows}, got {self.terminal_width}x"
                    f"{self.terminal_height}",
                    style="bold red",
                    justify="center",
                )
            )

        layout = self._build_layout()
        tasks = state.visible_tasks()

        layout["header"].update(
            render_header_bar(
                project_label=state.project_label,
                sort_label=data.sort_mode.display_name,
                connected=data.connected,
                connection_state=data.connection_state,
                task_count=len(tasks),
                filters_active=data.status_filter is not None
                or not isinstance(data.feature_filter, Unfiltered),
            )
        )
        layout["tasks"].update(
            render_task_list_panel(
                tasks,
                state.navigation.selected_index,
                state.window.list_rows,
                matches=data.search.matches,
                focused=state.window.active_panel == Panel.TASKS and not state.modal.is_open,
            )
        )

        modal_panel = render_modal(state)
        if modal_panel is not None:
            layout["modal"].update(modal_panel)
        else:
            layout["details"].update(
                render_task_details(
                    state.selected_task,
                    scroll=state.window.details_scroll,
                    focused=state.window.active_panel == Panel.DETAILS,
                )
            )

        layout["footer"].update(
            render_footer_bar(
                loading_message=data.loading_message if data.loading else None,
                spinner_frame=state.spinner_frame,
                error_message=data.error_message,
                status_message=data.status_message,
                search_query=data.search.query,
                search_active=data.search.active,
                search_position=state.search_position(),
                terminal_width=self.terminal_width,
            )
        )
        return layout

    # Lifecycle

    def start(self) -> None:
        """Start background threads and issue the startup effects."""
        if self._started:
            return
        self._started = True
        self.tick_source.start()
        if self.listener is not None:
            self.listener.start()
        self.run_effects(startup_effects(self.state))

    def run(self) -> int:
        """Run the main TUI event loop.

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        try:
            self._enter_cbreak()
            self.start()

            with Live(
                self._render_layout(),
                console=self.console,
                refresh_per_second=self.config.tui_refresh_per_second,
                screen=True,
            ) as live:
                logger.info("TUI main loop started")

                while not self.should_quit:
                    self.process_events()
                    if self.should_quit:
                        break

                    key = self._poll_keyboard(timeout=0.1)
                    if key:
                        self.dispatch(KeyPressed(key=key))

                    live.update(self._render_layout())

            logger.info("TUI main loop exited")
            return 0

        except KeyboardInterrupt:
            logger.info("TUI interrupted by user")
            return 130

        except Exception as err:
            logger.error(f"TUI crashed: {err}", exc_info=True)
            self.console.print(f"[red]Error: {escape(str(err))}[/red]")
            return 1

        finally:
            self._restore_terminal()
            self.shutdown()

    def shutdown(self) -> None:
        """Stop background threads and close the task client. Safe to call twice."""
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("Shutting down TUI")
        self.tick_source.stop()
        if self.listener is not None:
            self.listener.stop()
        self.executor.shutdown(wait=False)
        close = getattr(self.task_client, "close", None)
        if callable(close):
            close()
        logger.info("TUI shutdown complete")
