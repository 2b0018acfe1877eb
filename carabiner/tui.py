from loguru import logger
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Grid, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    RichLog,
    Select,
    Static,
)

from .config import SettingsStore, get_settings_path
from .exceptions import CarabinerError
from .models import DeviceKind, KeyEvent, Modifier
from .service import ControlHub

# Textual key names for keys whose W3C code is not derived from the character
TEXTUAL_CODES = {
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "enter": "Enter",
    "escape": "Escape",
    "delete": "Delete",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "insert": "Insert",
    "backspace": "Backspace",
    "tab": "Tab",
    "space": "Space",
    **{f"f{n}": f"F{n}" for n in range(1, 13)},
}

TEXTUAL_MODIFIERS = {
    "shift": Modifier.SHIFT,
    "ctrl": Modifier.CONTROL,
    "alt": Modifier.ALT,
    "meta": Modifier.META,
}


def textual_key_event(key: str, character: str | None = None) -> KeyEvent:
    """Translate a Textual key press into a tap ``KeyEvent``.

    Terminals report presses only, so the event carries no phase.
    """
    *prefixes, name = key.split("+")
    modifiers = {TEXTUAL_MODIFIERS[p] for p in prefixes if p in TEXTUAL_MODIFIERS}

    if name in TEXTUAL_CODES:
        code = TEXTUAL_CODES[name]
    elif len(name) == 1 and name.isalpha():
        code = f"Key{name.upper()}"
        if name.isupper():
            modifiers.add(Modifier.SHIFT)
    elif len(name) == 1 and name.isdigit():
        code = f"Digit{name}"
    else:
        code = name

    typed = character if character and character.isprintable() else None
    return KeyEvent(code=code, key=typed, modifiers=frozenset(modifiers), phase=None)


class TextualLogger:
    def __init__(self, rich_log: RichLog):
        self.rich_log = rich_log

    def write(self, message):
        message = message.rstrip()
        try:
            self.rich_log.app.call_from_thread(self.rich_log.write, message)
        except RuntimeError:
            # Already on the app thread
            self.rich_log.write(message)

    def flush(self):
        pass


class RemotePad(Static, can_focus=True):
    """Focus this pane and type: every key goes to the selected device."""

    def __init__(self, hub: ControlHub, **kwargs):
        super().__init__("Focus here and use the keyboard as a remote.", **kwargs)
        self.hub = hub

    def on_key(self, event: events.Key) -> None:
        if event.key in ("tab", "shift+tab"):
            return
        event.stop()
        event.prevent_default()
        self.hub.router.handle_key(textual_key_event(event.key, event.character))


class Dashboard(Vertical):
    def __init__(self, hub: ControlHub):
        super().__init__()
        self.hub = hub
        self.selected_row: str | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="controls"):
            with Vertical(classes="column"):
                yield Label("Streaming Devices", classes="section-title")
                yield DataTable(id="devices-table", cursor_type="row")
                with Horizontal(classes="buttons-row"):
                    yield Button("Add", id="devices-add", variant="primary")
                    yield Button("Remove", id="devices-remove", variant="error")

            with Vertical(classes="column"):
                yield Label("Remote", classes="section-title")
                yield Label("", id="selected-device")
                yield RemotePad(self.hub, id="remote")

        yield Label("Logs", classes="section-title")
        yield RichLog(id="logs", highlight=True, markup=True)

    def on_mount(self):
        log_widget = self.query_one("#logs", RichLog)
        logger.remove()
        logger.add(TextualLogger(log_widget), format="{time:HH:mm:ss} | {level} | {message}")
        self.refresh_data()

    def refresh_data(self):
        table = self.query_one("#devices-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Sel", "Type", "Alias", "Address", "Linked")

        selected = self.hub.selection.device_id
        for dev in self.hub.list_devices():
            mark = "*" if dev.id == selected else ""
            kind = dev.kind.label if dev.kind else dev.family.value
            table.add_row(mark, kind, dev.alias, dev.address, dev.linked, key=dev.id)

        label = self.hub.selection.device_id or "(none)"
        self.query_one("#selected-device", Label).update(f"Selected: {label}")

    def on_data_table_row_selected(self, event: DataTable.RowSelected):
        if event.data_table.id == "devices-table":
            self.selected_row = event.row_key.value
            self.hub.select_device(self.selected_row)
            self.refresh_data()

    def on_button_pressed(self, event: Button.Pressed):
        if event.button.id == "devices-remove":
            if self.selected_row:
                try:
                    self.hub.remove_device(self.selected_row)
                    self.notify(f"Device '{self.selected_row}' removed")
                    self.selected_row = None
                    self.refresh_data()
                except CarabinerError as e:
                    self.notify(f"Error: {e}", severity="error")
            else:
                self.notify("Please select a device to remove", severity="warning")
        elif event.button.id == "devices-add":
            def handle_add(result):
                if result:
                    address, kind, alias = result
                    try:
                        device = self.hub.add_device(address, kind, alias)
                        self.notify(f"Device '{device.id}' added")
                        self.refresh_data()
                    except CarabinerError as e:
                        self.notify(f"Error adding device: {e}", severity="error")

            self.app.push_screen(AddDeviceScreen(id="add-device-screen"), handle_add)


class AddDeviceScreen(ModalScreen):
    CSS = """
    AddDeviceScreen {
        align: center middle;
    }

    #dialog {
        grid-size: 2;
        grid-gutter: 1 2;
        grid-rows: auto;
        padding: 1 2;
        width: 60;
        height: auto;
        border: thick $background 80%;
        background: $surface;
    }

    #title {
        column-span: 2;
        height: 3;
        width: 100%;
        content-align: center middle;
        text-style: bold;
        background: $accent;
        color: $text;
        margin-bottom: 1;
    }

    Label {
        width: 100%;
        height: 3;
        content-align: right middle;
    }

    #buttons {
        column-span: 2;
        height: 5;
        align: right middle;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Grid(
            Label("Add Streaming Device", id="title"),
            Label("IP Address:"),
            Input(placeholder="e.g. 192.168.1.50", id="input-address"),
            Label("Alias:"),
            Input(placeholder="e.g. Living Room", id="input-alias"),
            Label("Type:"),
            Select(
                [(kind.label, kind.value) for kind in DeviceKind],
                value=DeviceKind.ROKU.value,
                allow_blank=False,
                id="input-kind",
            ),
            Horizontal(
                Button("Cancel", variant="error", id="btn-cancel"),
                Button("Add", variant="success", id="btn-submit"),
                id="buttons"
            ),
            id="dialog"
        )

    def on_button_pressed(self, event: Button.Pressed):
        if event.button.id == "btn-submit":
            address = self.query_one("#input-address", Input).value.strip()
            alias = self.query_one("#input-alias", Input).value
            kind = DeviceKind(self.query_one("#input-kind", Select).value)

            if address:
                self.dismiss((address, kind, alias))
            else:
                self.notify("IP address is required.", severity="error")

        elif event.button.id == "btn-cancel":
            self.dismiss(None)


class CarabinerApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }

    .section-title {
        text-style: bold;
        margin: 1 0;
    }

    #controls {
        height: auto;
        margin-bottom: 2;
    }

    .column {
        width: 1fr;
        height: auto;
        padding: 1;
    }

    #remote {
        height: 5;
        border: round $accent;
        content-align: center middle;
    }

    #remote:focus {
        border: round $success;
    }

    #logs {
        height: 1fr;
        border: solid gray;
        background: $surface;
    }

    .buttons-row {
        height: auto;
        align: right middle;
    }
    """

    TITLE = "carabiner"
    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, hub: ControlHub | None = None):
        super().__init__()
        self.hub = hub or ControlHub(SettingsStore(get_settings_path()))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Dashboard(self.hub)
        yield Footer()

    def on_mount(self) -> None:
        self.hub.start()
        self.query_one(Dashboard).refresh_data()

    def on_unmount(self) -> None:
        self.hub.close()
