from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class DeviceFamily(StrEnum):
    ECP_HTTP = "ecp-http"
    ADB_SHELL = "adb-shell"

    @classmethod
    def _missing_(cls, value):
        # Short forms written by older settings files
        legacy = {"ecp": cls.ECP_HTTP, "adb": cls.ADB_SHELL}
        if isinstance(value, str):
            return legacy.get(value.lower())
        return None


class DeviceKind(StrEnum):
    ROKU = "roku"
    FIRETV = "firetv"
    GOOGLETV = "googletv"

    @property
    def family(self) -> DeviceFamily:
        if self is DeviceKind.ROKU:
            return DeviceFamily.ECP_HTTP
        return DeviceFamily.ADB_SHELL

    @property
    def label(self) -> str:
        return {"roku": "Roku", "firetv": "Fire TV", "googletv": "Google TV"}[self.value]


class Modifier(StrEnum):
    SHIFT = "Shift"
    CONTROL = "Control"
    ALT = "Alt"
    META = "Meta"


class KeyPhase(StrEnum):
    DOWN = "down"
    UP = "up"


class Key(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    SELECT = "select"
    BACK = "back"
    HOME = "home"
    INFO = "info"
    REWIND = "rev"
    PLAY = "play"
    FORWARD = "fwd"
    VOLUME_MUTE = "volumemute"
    INSTANT_REPLAY = "instantreplay"
    BACKSPACE = "backspace"
    A = "a"
    B = "b"


class KeyEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    key: str | None = None
    modifiers: frozenset[Modifier] = frozenset()
    # None marks a tap from a source that never reports key release
    phase: KeyPhase | None = KeyPhase.DOWN
    is_repeat: bool = False


class LogicalCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    literal: bool = False

    @classmethod
    def named(cls, key: Key) -> Self:
        return cls(token=key.value)

    @classmethod
    def typed(cls, encoded: str) -> Self:
        return cls(token=f"lit_{encoded}", literal=True)

    @property
    def key(self) -> Key | None:
        if self.literal:
            return None
        try:
            return Key(self.token)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.token


class KeyStroke(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: LogicalCommand
    phase: KeyPhase | None = None


def format_device_id(address: str, family: DeviceFamily) -> str:
    return f"{address}|{family.value}"


def parse_device_id(device_id: str) -> tuple[str, DeviceFamily]:
    address, sep, family = device_id.partition("|")
    if not sep or not address.strip():
        raise ValueError(f"Malformed device id: {device_id!r}")
    try:
        return address.strip(), DeviceFamily(family.strip())
    except ValueError:
        raise ValueError(f"Unknown device family in {device_id!r}")


class SettingsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeviceRecord(SettingsModel):
    address: str
    family: DeviceFamily
    alias: str = ""
    kind: DeviceKind | None = None
    # Video source id this device follows in the preview window
    linked: str = ""

    @field_validator("family", mode="before")
    @classmethod
    def _accept_legacy_family(cls, value):
        if isinstance(value, str):
            return DeviceFamily(value)
        return value

    @property
    def id(self) -> str:
        return format_device_id(self.address, self.family)

    @property
    def label(self) -> str:
        kind = self.kind.label if self.kind else self.family.value
        alias = f"{self.alias} - " if self.alias else ""
        return f"{kind}: {alias}{self.address}"


class DisplaySettings(SettingsModel):
    device_id: str | None = None
    filter: str = "none"
    resolution: str | None = None
    launch_app_at_login: bool = False
    show_settings_on_start: bool = True
    audio_enabled: bool = False
    show_in_dock: bool = True
    dark_mode: bool = False
    auto_update: bool = True
    shortcut: str | None = None
    overlay_opacity: float = 0.0


class BorderSettings(SettingsModel):
    width: str = "medium"
    style: str = "solid"
    color: str = "#662D91"


class ControlSettings(SettingsModel):
    device_id: str = ""
    adb_path: str | None = None
    # Last so the array of tables follows the plain keys in TOML
    device_list: list[DeviceRecord] = Field(default_factory=list)


class FilesSettings(SettingsModel):
    screenshot_path: str | None = None
    recording_path: str | None = None


class WindowBounds(SettingsModel):
    x: int | None = None
    y: int | None = None
    width: int
    height: int


class SharedSettings(SettingsModel):
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    border: BorderSettings = Field(default_factory=BorderSettings)
    control: ControlSettings = Field(default_factory=ControlSettings)
    files: FilesSettings = Field(default_factory=FilesSettings)
    windows: dict[str, WindowBounds] = Field(default_factory=dict)
