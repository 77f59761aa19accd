# tests/test_layout.py

from __future__ import annotations

from types import SimpleNamespace

from tasksync.cli.bootstrap import create_initial_state
from tasksync.config import Settings
from tasksync.layout import DeviceClass, LayoutState, MenuMode


def test_mobile_layout_starts_collapsed() -> None:
    layout = LayoutState.for_device(DeviceClass.MOBILE)

    assert layout.menu_opened is False
    assert layout.menu_mode == MenuMode.OVER
    assert layout.show_backdrop is True
    assert layout.show_stat is False
    assert layout.menu_position == "left"


def test_desktop_layout_starts_open_and_toggles() -> None:
    layout = LayoutState.for_device(DeviceClass.DESKTOP)

    assert layout.menu_opened is True
    assert layout.menu_mode == MenuMode.PUSH
    assert layout.show_backdrop is False
    assert layout.show_stat is True

    assert layout.toggle_menu() is False
    assert layout.toggle_stat() is False
    layout.close_menu()
    assert layout.menu_opened is False


def test_device_parse_falls_back_to_desktop() -> None:
    assert DeviceClass.parse("Mobile") == DeviceClass.MOBILE
    assert DeviceClass.parse("fridge") == DeviceClass.DESKTOP
    assert DeviceClass.parse(None) == DeviceClass.DESKTOP


def test_bootstrap_wires_compact_filters_for_mobile(settings: SimpleNamespace) -> None:
    settings.device = "mobile"
    settings.show_stat = True

    state = create_initial_state(settings=settings)

    assert state.layout.is_mobile
    assert state.layout.show_stat is True
    assert state.sync.filters.compact is True
    assert settings.db_path.exists()


def test_settings_read_prefixed_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TASKSYNC_DEVICE", "Tablet")
    monkeypatch.setenv("TASKSYNC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKSYNC_SHOW_STAT", "no")
    monkeypatch.setenv("TASKSYNC_MAX_NOTICES", "oops")

    s = Settings.from_env()

    assert s.device == "tablet"
    assert s.db_path == tmp_path / "tasks.sqlite3"
    assert s.show_stat is False
    assert s.max_notices == 50
