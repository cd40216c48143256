from typing import Any, Dict


class BaseRenderer:
    """
    Base class for display sections. Each renderer is responsible for
    providing content for one named section of the shared display.
    """

    def __init__(self, name: str, layout_section_name: str):
        self.name = name
        self.layout_section_name = layout_section_name
        self._latest_data: Dict[str, Any] = {}

    def get_panel_renderable(self) -> Any:
        """
        Subclasses return a Rich renderable (Panel, Table, Text) built from
        their latest data.
        """
        raise NotImplementedError(
            "Subclasses must implement get_panel_renderable to provide content for the shared display."
        )
