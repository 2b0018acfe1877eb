import sys
from typing import Literal

from cyclopts import App
from loguru import logger

from .config import SettingsStore, get_settings_path
from .exceptions import CarabinerError
from .models import DeviceKind
from .service import ControlHub

app = App(name="carabiner", help="Remote control for streaming devices shown in the preview window.")

devices_app = App(name="devices", help="Manage streaming devices.")

app.command(devices_app)


def open_hub() -> ControlHub:
    return ControlHub(SettingsStore(get_settings_path()))


@devices_app.command(name="list")
def list_devices():
    """List configured streaming devices."""
    try:
        hub = open_hub()
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)

    devices = hub.list_devices()
    if not devices:
        print("No devices configured.")
        return

    selected = hub.settings.control.device_id
    print(f"{'SEL':<4} {'ID':<26} {'ALIAS':<15} {'TYPE':<10} {'LINKED'}")
    print("-" * 70)
    for dev in devices:
        mark = "*" if dev.id == selected else ""
        kind = dev.kind.label if dev.kind else ""
        print(f"{mark:<4} {dev.id:<26} {dev.alias:<15} {kind:<10} {dev.linked}")


@devices_app.command(name="add")
def add_device(address: str, kind: Literal["roku", "firetv", "googletv"] = "roku", alias: str = ""):
    """Add a streaming device by IP address."""
    hub = None
    try:
        hub = open_hub()
        device = hub.add_device(address, DeviceKind(kind), alias)
        print(f"Device '{device.id}' added.")
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@devices_app.command(name="remove")
def remove_device(device_id: str):
    """Remove a device; clears the selection if it was selected."""
    hub = None
    try:
        hub = open_hub()
        hub.start()
        hub.remove_device(device_id)
        print(f"Device '{device_id}' removed.")
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@devices_app.command(name="link")
def link_device(device_id: str, source: str):
    """Link a device to a video source id (empty DEVICE_ID unlinks)."""
    hub = None
    try:
        hub = open_hub()
        hub.link_device(device_id, source)
        print(f"Video source '{source}' linked to '{device_id or '(none)'}'.")
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@app.command(name="select")
def select_device(device_id: str = ""):
    """Select the device that receives keys ("ADDRESS|FAMILY"; empty clears)."""
    hub = None
    try:
        hub = open_hub()
        hub.start()
        hub.select_device(device_id)
        print(f"Selected '{hub.selection.device_id or '(none)'}'.")
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@app.command(name="send")
def send_keys(*keys: str):
    """Send keys (e.g. up, select, home, or single characters) to the selected device."""
    hub = None
    try:
        hub = open_hub()
        hub.start()
        if not hub.selection.current:
            logger.warning("No device selected.")
        for key in keys:
            hub.send_key(key)
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@app.command(name="adb-path")
def set_adb_path(path: str):
    """Set the adb executable used for Fire TV and Google TV devices."""
    hub = None
    try:
        hub = open_hub()
        hub.post({"type": "set-adb-path", "payload": path})
        print(f"ADB path set to '{path}'.")
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        if hub:
            hub.close(disconnect=False)


@app.command(name="tui")
def tui():
    """Launch the interactive terminal remote."""
    from .tui import CarabinerApp
    try:
        hub = open_hub()
    except CarabinerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    CarabinerApp(hub=hub).run()


if __name__ == "__main__":
    app()
