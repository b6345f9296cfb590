"""Tests for the Bravia TV device handler."""

import logging
import threading

import pytest

from sony_av.bravia import BraviaHandler
from sony_av.bravia_api import VideoOption
from sony_av.channels import REFRESH, StatusDetail, ThingStatus
from sony_av.exceptions import ApiError, DeviceConnectionError, UnexpectedResponseError

from .conftest import MOCK_TV_CONFIG, TV_HOST, wait_until

PICTURE_SETTINGS = [
    VideoOption("brightness", "30"),
    VideoOption("color", "25"),
    VideoOption("pictureMode", "cinema"),
    VideoOption("lightSensor", "on"),
    VideoOption("someFutureTarget", "whatever"),
]


@pytest.fixture
def make_handler(mock_bravia_client, scheduler_factory, on_state, on_status, clock):
    def _make(**overrides):
        return BraviaHandler(
            {**MOCK_TV_CONFIG, **overrides},
            on_state=on_state,
            on_status=on_status,
            scheduler_factory=scheduler_factory,
            client_factory=lambda host, psk, timeout: mock_bravia_client,
            clock=clock,
        )
    return _make


@pytest.fixture
def handler(make_handler):
    handler = make_handler()
    handler.initialize()
    return handler


@pytest.fixture
def active_tv(mock_bravia_client):
    """TV switched on, showing HDMI 2."""
    mock_bravia_client.get_power_status.return_value = True
    mock_bravia_client.get_display_off.return_value = False
    mock_bravia_client.get_playing_content_uri.return_value = "extInput:hdmi?port=2"
    mock_bravia_client.get_picture_quality_settings.return_value = PICTURE_SETTINGS
    return mock_bravia_client


class TestInitialize:
    """Tests for handler setup."""

    def test_schedules_refresh(self, handler, scheduler_factory):
        scheduler_factory.assert_called_once_with(handler.refresh, 5, name=f"tv-{TV_HOST}")
        scheduler_factory.return_value.start.assert_called_once()
        assert handler.status.status is ThingStatus.UNKNOWN

    def test_client_built_from_config(self, scheduler_factory):
        calls = []
        handler = BraviaHandler(
            {**MOCK_TV_CONFIG, "request_timeout": 3.0},
            scheduler_factory=scheduler_factory,
            client_factory=lambda host, psk, timeout: calls.append((host, psk, timeout)),
        )
        handler.initialize()

        assert calls == [(TV_HOST, "0000", 3.0)]

    @pytest.mark.parametrize(
        "overrides, reason",
        [
            ({"host": " "}, "Host not configured"),
            ({"psk": None}, "Api key not configured"),
        ],
    )
    def test_configuration_errors(self, make_handler, scheduler_factory, overrides, reason):
        handler = make_handler(**overrides)
        handler.initialize()

        assert handler.status.status is ThingStatus.OFFLINE
        assert handler.status.detail is StatusDetail.CONFIGURATION_ERROR
        assert handler.status.reason == reason
        scheduler_factory.assert_not_called()


class TestRefresh:
    """Tests for the refresh tick."""

    def test_standby_skips_sub_queries(self, handler, mock_bravia_client):
        handler.refresh()

        assert handler.status.is_online
        assert handler.states == {"system#power": False}
        mock_bravia_client.get_display_off.assert_not_called()
        mock_bravia_client.get_playing_content_uri.assert_not_called()
        mock_bravia_client.get_picture_quality_settings.assert_not_called()

    def test_active(self, handler, active_tv):
        handler.refresh()

        assert handler.status.is_online
        assert handler.states == {
            "system#power": True,
            "system#display_off": False,
            "system#current_input": "hdmi2",
            "video#brightness": 30,
            "video#saturation": 25,
            "video#picture_mode": "cinema",
            "video#light_sensor": True,
        }

    def test_display_off_error_skips_only_that_batch(self, handler, active_tv):
        active_tv.get_picture_quality_settings.side_effect = ApiError(40005, "Display Is Turned off")

        handler.refresh()

        assert handler.status.is_online
        assert handler.states["system#current_input"] == "hdmi2"
        assert not any(channel.startswith("video#") for channel in handler.states)

    def test_no_content_maps_to_unknown_input(self, handler, active_tv):
        active_tv.get_playing_content_uri.side_effect = ApiError(7, "Illegal State")

        handler.refresh()

        assert handler.status.is_online
        assert handler.states["system#current_input"] == "unknown"

    def test_unmapped_input_uri_passes_through(self, handler, active_tv):
        active_tv.get_playing_content_uri.return_value = "tv:dvbt?trip=1.2.3"

        handler.refresh()

        assert handler.states["system#current_input"] == "tv:dvbt?trip=1.2.3"

    def test_other_api_error_goes_offline(self, handler, active_tv):
        active_tv.get_display_off.side_effect = ApiError(3, "Illegal Argument")

        handler.refresh()

        assert handler.status.status is ThingStatus.OFFLINE
        assert handler.status.detail is StatusDetail.COMMUNICATION_ERROR
        assert handler.status.reason == "[3] Illegal Argument"
        # Already applied updates stay
        assert handler.states["system#power"] is True
        active_tv.get_playing_content_uri.assert_not_called()

    def test_invalid_setting_value_is_skipped(self, handler, active_tv, caplog):
        active_tv.get_picture_quality_settings.return_value = [
            VideoOption("brightness", "bright"),
            VideoOption("contrast", "80"),
        ]

        with caplog.at_level(logging.ERROR):
            handler.refresh()

        assert "video#brightness" not in handler.states
        assert handler.states["video#contrast"] == 80
        assert "video#brightness" in caplog.text

    def test_setting_without_value_is_skipped(self, handler, active_tv):
        active_tv.get_picture_quality_settings.return_value = [
            VideoOption("pictureMode", None),
            VideoOption("hdrMode", "auto"),
        ]

        handler.refresh()

        assert "video#picture_mode" not in handler.states
        assert handler.states["video#hdr_mode"] == "auto"

    def test_unexpected_response(self, handler, mock_bravia_client):
        mock_bravia_client.get_power_status.side_effect = UnexpectedResponseError("bad")

        handler.refresh()

        assert handler.status.status is ThingStatus.OFFLINE

    def test_connection_error_goes_offline_at_once(self, handler, mock_bravia_client):
        mock_bravia_client.get_power_status.side_effect = DeviceConnectionError("Connection refused")

        handler.refresh()

        assert handler.status.status is ThingStatus.OFFLINE
        assert handler.status.reason == "Connection refused"

    def test_timeout_hysteresis(self, handler, mock_bravia_client, clock):
        mock_bravia_client.get_power_status.return_value = False
        handler.refresh()
        assert handler.status.is_online

        mock_bravia_client.get_power_status.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 5.0
        handler.refresh()
        assert handler.status.is_online

        clock.now = 10.5
        handler.refresh()
        assert handler.status.status is ThingStatus.OFFLINE
        assert handler.status.reason == "Response timeout"

        mock_bravia_client.get_power_status.side_effect = None
        clock.now = 20.0
        handler.refresh()
        assert handler.status.is_online

    def test_answered_error_resets_hysteresis(self, handler, active_tv, clock):
        active_tv.get_picture_quality_settings.side_effect = ApiError(40005, "Display Is Turned off")
        clock.now = 8.0
        handler.refresh()

        active_tv.get_power_status.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 15.0
        handler.refresh()

        assert handler.status.is_online


    def test_power_api_error_resets_hysteresis(self, handler, mock_bravia_client, clock):
        mock_bravia_client.get_power_status.side_effect = ApiError(12, "No Such Method")
        clock.now = 8.0
        handler.refresh()
        assert handler.status.status is ThingStatus.OFFLINE

        mock_bravia_client.get_power_status.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 15.0
        handler.refresh()

        assert handler.status.reason == "[12] No Such Method"

    def test_command_resets_hysteresis(self, handler, mock_bravia_client, clock):
        clock.now = 8.0
        handler.handle_command("system#current_input", "hdmi1")

        mock_bravia_client.get_power_status.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 15.0
        handler.refresh()

        assert handler.status.status is ThingStatus.UNKNOWN

    def test_failed_command_keeps_hysteresis(self, handler, mock_bravia_client, clock):
        mock_bravia_client.set_input.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 8.0
        handler.handle_command("system#current_input", "hdmi1")

        mock_bravia_client.get_power_status.side_effect = DeviceConnectionError("timed out", is_timeout=True)
        clock.now = 15.0
        handler.refresh()

        assert handler.status.reason == "Response timeout"


class TestCommands:
    """Tests for command handling."""

    def test_power(self, handler, mock_bravia_client, on_state):
        handler.handle_command("system#power", "ON")

        mock_bravia_client.set_power_status.assert_called_once_with(True)
        on_state.assert_called_with("system#power", True)

    def test_display_off(self, handler, mock_bravia_client):
        handler.handle_command("system#display_off", True)

        mock_bravia_client.set_display_off.assert_called_once_with(True)
        assert handler.states["system#display_off"] is True

    def test_input_is_idempotent(self, handler, mock_bravia_client):
        handler.handle_command("system#current_input", "hdmi2")
        handler.handle_command("system#current_input", "hdmi2")

        assert mock_bravia_client.set_input.call_count == 2
        assert mock_bravia_client.set_input.call_args_list[0] == mock_bravia_client.set_input.call_args_list[1]
        assert handler.states["system#current_input"] == "hdmi2"

    def test_video_number(self, handler, mock_bravia_client):
        handler.handle_command("video#saturation", "40")

        mock_bravia_client.set_picture_quality.assert_called_once_with("color", "40")
        assert handler.states["video#saturation"] == 40

    def test_video_string(self, handler, mock_bravia_client):
        handler.handle_command("video#picture_mode", "vivid")

        mock_bravia_client.set_picture_quality.assert_called_once_with("pictureMode", "vivid")
        assert handler.states["video#picture_mode"] == "vivid"

    def test_light_sensor(self, handler, mock_bravia_client):
        handler.handle_command("video#light_sensor", "ON")

        mock_bravia_client.set_picture_quality.assert_called_once_with("lightSensor", "on")
        assert handler.states["video#light_sensor"] is True

    def test_invalid_number_not_sent(self, handler, mock_bravia_client):
        handler.handle_command("video#brightness", "bright")

        mock_bravia_client.set_picture_quality.assert_not_called()
        assert "video#brightness" not in handler.states

    def test_failure_leaves_cache(self, handler, mock_bravia_client, caplog):
        mock_bravia_client.set_power_status.side_effect = DeviceConnectionError("Connection refused")

        with caplog.at_level(logging.ERROR):
            handler.handle_command("system#power", "ON")

        assert "system#power" not in handler.states
        assert "Command failed" in caplog.text

    def test_refresh_replays_cache(self, handler, mock_bravia_client, on_state):
        handler.refresh()
        on_state.reset_mock()

        handler.handle_command("system#power", REFRESH)

        on_state.assert_called_once_with("system#power", False)
        assert mock_bravia_client.get_power_status.call_count == 1

    def test_refresh_without_cached_value(self, handler, on_state):
        handler.handle_command("video#hue", REFRESH)

        on_state.assert_not_called()


def test_dispose(handler, scheduler_factory):
    handler.dispose()

    scheduler_factory.return_value.cancel.assert_called_once()
    assert handler.status.status is ThingStatus.UNKNOWN


def test_dispose_waits_for_tick_and_drops_its_updates(mock_bravia_client, on_state, on_status):
    started = threading.Event()
    release = threading.Event()

    def blocking_power_status():
        started.set()
        release.wait(2)
        return True

    mock_bravia_client.get_power_status.side_effect = blocking_power_status
    handler = BraviaHandler(
        dict(MOCK_TV_CONFIG),
        on_state=on_state,
        on_status=on_status,
        client_factory=lambda host, psk, timeout: mock_bravia_client,
    )
    handler.initialize()
    assert started.wait(2)
    on_state.reset_mock()
    on_status.reset_mock()

    disposer = threading.Thread(target=handler.dispose)
    disposer.start()
    assert wait_until(lambda: handler._connection is None)
    assert disposer.is_alive()

    release.set()
    disposer.join(2)

    assert not disposer.is_alive()
    on_state.assert_not_called()
    on_status.assert_not_called()
