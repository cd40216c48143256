from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
from typing import Dict, Any, Callable, Optional
from gpuscope.loggers.error_log import get_error_logger
from gpuscope.renderers.display.layout import (
    ROOT_LAYOUT,
    TELEMETRY_LAYOUT,
    ANALYSIS_LAYOUT,
)


class CLIDisplayManager:
    """
    Manages a single shared Rich Live display and the layout sections
    filled by renderers.
    """

    _console: Console = Console()
    _live_display: Optional[Live] = None
    _layout: Layout = Layout(name=ROOT_LAYOUT)

    # Key: layout section name
    # Value: callable returning the latest renderable for that section
    _layout_content_fns: Dict[str, Callable[[], Any]] = {}
    _active_count: int = 0

    logger = get_error_logger("CLIDisplayManager")

    @classmethod
    def _create_initial_layout(cls):
        cls._layout = Layout(name=ROOT_LAYOUT)
        cls._layout.split_column(
            Layout(name=TELEMETRY_LAYOUT, ratio=1),
            Layout(name=ANALYSIS_LAYOUT, ratio=2),
        )
        cls._layout[TELEMETRY_LAYOUT].update(
            Panel(Text("Waiting for telemetry...", justify="center"))
        )
        cls._layout[ANALYSIS_LAYOUT].update(
            Panel(Text("Waiting for analysis...", justify="center"))
        )

    @classmethod
    def start_display(cls):
        """Starts the shared display if not already running."""
        if cls._active_count == 0:
            cls._create_initial_layout()
            cls._live_display = Live(
                cls._layout,
                console=cls._console,
                auto_refresh=False,
                transient=False,
                screen=False,
            )
            try:
                cls._live_display.start()
            except Exception as e:
                cls.logger.error(f"[GPUScope] Failed to start live display: {e}")
                cls._live_display = None

        cls._active_count += 1

    @classmethod
    def stop_display(cls):
        """Stops the shared Rich Live display."""
        if cls._live_display:
            try:
                cls._live_display.stop()
            except Exception as e:
                cls.logger.error(f"[GPUScope] Error stopping live display: {e}")
            finally:
                cls._live_display = None
                cls._layout_content_fns.clear()
                cls._layout = Layout(name=ROOT_LAYOUT)

    @classmethod
    def release_display(cls):
        """Decrements the active count and stops the display if none remain."""
        cls._active_count = max(cls._active_count - 1, 0)
        if cls._active_count == 0:
            cls.stop_display()

    @classmethod
    def register_layout_content(
        cls, layout_section: str, content_fn: Callable[[], Any]
    ):
        """
        Registers a function that provides content for a layout section.
        """
        if cls._layout.get(layout_section) is None:
            cls.logger.error(
                f"[GPUScope] WARNING: Layout section '{layout_section}' not found. Cannot register content."
            )
            return
        cls._layout_content_fns.setdefault(layout_section, content_fn)

    @classmethod
    def update_display(cls):
        """
        Calls every registered content function and refreshes the display.
        """
        if cls._live_display is None:
            return
        for section, content_fn in cls._layout_content_fns.items():
            try:
                cls._layout[section].update(content_fn())
            except Exception as e:
                cls.logger.error(f"[GPUScope] Failed to render section '{section}': {e}")
        cls._live_display.refresh()


class NullDisplayManager:
    """Display backend that renders nothing (headless runs and tests)."""

    @classmethod
    def start_display(cls):
        pass

    @classmethod
    def stop_display(cls):
        pass

    @classmethod
    def release_display(cls):
        pass

    @classmethod
    def register_layout_content(cls, layout_section, content_fn):
        pass

    @classmethod
    def update_display(cls):
        pass
