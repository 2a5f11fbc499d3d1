"""
The main entrypoint for the consolechat package.

`ConsoleChat` is a Dash application that renders a terminal-styled
conversation and exposes the JSON chat API on its Flask server. Both paths go
through one `Dispatcher`, which normalizes the OpenAI and Gemini backends
behind a single adapter interface.
"""

from typing import Optional

from dash import Dash

from . import layout as layout_module
from . import store as store_module
from .config import Settings
from .dispatch import Dispatcher


def _component_ids(component) -> set:
    ids = set()
    stack = [component]
    while stack:
        node = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(node)
            continue
        component_id = getattr(node, "id", None)
        if isinstance(component_id, str):
            ids.add(component_id)
        children = getattr(node, "children", None)
        if children is not None and not isinstance(children, str):
            stack.append(children)
    return ids


class ConsoleChat(Dash):
    """
    A browser-based console chat client for OpenAI and Gemini.

    Every collaborator can be injected; the defaults give a working app that
    keeps its UI cache in memory.
    """

    def __init__(
        self,
        layout: Optional[layout_module.Layout] = None,
        dispatcher: Optional[Dispatcher] = None,
        store: Optional[store_module.Store] = None,
        settings: Optional[Settings] = None,
        **kwargs,
    ) -> None:
        """
        Initialize the application.

        Parameters
        ----------
        layout : layout.Layout, optional
            Builds the component tree. Defaults to layout.Terminal().
        dispatcher : Dispatcher, optional
            Routes chat requests to the provider adapters. Defaults to a
            Dispatcher with the OpenAI and Gemini adapters.
        store : store.Store, optional
            Key-value cache for history, keys, theme and model choice.
            Defaults to store.File when `settings.store_dir` is set, else
            store.InMemory().
        settings : Settings, optional
            Defaults to Settings(), read from the environment.
        **kwargs
            Additional arguments passed to the Dash constructor.

        Raises
        ------
        ValueError
            If the layout is missing component IDs the callbacks need.
        """
        self.settings = settings or Settings()
        self.layout_builder = layout or layout_module.Terminal()

        if "external_stylesheets" not in kwargs:
            kwargs["external_stylesheets"] = []
        kwargs["external_stylesheets"].extend(
            self.layout_builder.get_external_stylesheets()
        )

        if "external_scripts" not in kwargs:
            kwargs["external_scripts"] = []
        kwargs["external_scripts"].extend(self.layout_builder.get_external_scripts())

        kwargs.setdefault("title", "console-chat")

        super().__init__(**kwargs)

        self.dispatcher = dispatcher or Dispatcher(settings=self.settings)
        if store is not None:
            self.store = store
        elif self.settings.store_dir:
            self.store = store_module.File(self.settings.store_dir)
        else:
            self.store = store_module.InMemory()

        self.layout = self.layout_builder.build_layout()
        missing = layout_module.REQUIRED_IDS - _component_ids(self.layout)
        if missing:
            raise ValueError(
                f"Layout is missing required component IDs: {', '.join(sorted(missing))}"
            )
        self._register_callbacks()
        self._register_routes()

    def _register_callbacks(self) -> None:
        """Registers the Dash callbacks that drive the UI."""
        from .callbacks import register_callbacks

        register_callbacks(self)

    def _register_routes(self) -> None:
        """Registers the JSON API on the underlying Flask server."""
        from .api import register_routes

        register_routes(self)
