# src/tasksync/layout.py

from __future__ import annotations

"""
Process-wide UI chrome state: device class, navigation drawer, stats panel.

Kept apart from the synchronization core; the presentation layer owns it
and only consumes the core's drawer-collapse instruction.
"""

from dataclasses import dataclass
from enum import StrEnum


class DeviceClass(StrEnum):
    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"

    @classmethod
    def parse(cls, raw: str | None) -> DeviceClass:
        if not raw:
            return cls.DESKTOP
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.DESKTOP


class MenuMode(StrEnum):
    OVER = "over"  # drawer slides over the content
    PUSH = "push"  # drawer pushes the content aside


@dataclass(slots=True)
class LayoutState:
    device: DeviceClass
    menu_opened: bool
    menu_mode: MenuMode
    menu_position: str
    show_backdrop: bool
    show_stat: bool

    @property
    def is_mobile(self) -> bool:
        return self.device == DeviceClass.MOBILE

    @property
    def is_tablet(self) -> bool:
        return self.device == DeviceClass.TABLET

    @property
    def compact(self) -> bool:
        return self.is_mobile

    @classmethod
    def for_device(cls, device: DeviceClass, *, show_stat: bool | None = None) -> LayoutState:
        mobile = device == DeviceClass.MOBILE
        return cls(
            device=device,
            menu_opened=not mobile,
            menu_mode=MenuMode.OVER if mobile else MenuMode.PUSH,
            menu_position="left",
            show_backdrop=mobile,
            show_stat=(not mobile) if show_stat is None else show_stat,
        )

    def toggle_menu(self) -> bool:
        self.menu_opened = not self.menu_opened
        return self.menu_opened

    def close_menu(self) -> None:
        self.menu_opened = False

    def toggle_stat(self) -> bool:
        self.show_stat = not self.show_stat
        return self.show_stat
