import errno
from unittest.mock import MagicMock

import pytest

from conftest import FLOOD_ENGINE, STUBBORN_ENGINE
from uci_engine.channel import ChannelClosed
from uci_engine.driver import EngineDriver
from uci_engine.errors import (
    ConfigError,
    EngineNotFoundError,
    ForceKilledError,
    NotAFileError,
    OptionError,
    ReadError,
    SpawnError,
)
from uci_engine.options import EngineOptions
from uci_engine.process import EngineProcess


@pytest.fixture
def driver(make_engine):
    engine = make_engine()
    drv = EngineDriver(engine.path)
    drv.engine = engine
    yield drv
    if not drv.process.closed:
        drv.close()


def test_happy_path(driver):
    driver.run()
    assert driver.recv(timeout=5) == "id name Stub"
    assert driver.recv(timeout=5) == "uciok"

    driver.close()

    assert driver.engine.received() == ["uci", "quit"]
    assert not driver.process.is_running()


def test_lines_end_when_engine_exits(driver):
    driver.run()
    driver.send_command("quit")
    assert list(driver.lines()) == ["id name Stub", "uciok"]
    with pytest.raises(ChannelClosed):
        driver.recv(timeout=1)


def test_multipv_is_sent_to_engine(driver):
    driver.run()
    assert driver.recv(timeout=5) == "id name Stub"
    assert driver.recv(timeout=5) == "uciok"

    driver.set_option("multipv", 4)
    assert driver.options.multipv == 4

    with pytest.raises(OptionError):
        driver.set_option("multipv", 300)
    assert driver.options.multipv == 4

    driver.close()
    assert driver.engine.received() == [
        "uci",
        "setoption name MultiPV value 4",
        "quit",
    ]


def test_unknown_option_writes_nothing(driver):
    driver.run()
    with pytest.raises(OptionError) as excinfo:
        driver.set_option("hash", 128)
    assert "hash" in str(excinfo.value)

    driver.close()
    assert driver.engine.received() == ["uci", "quit"]


def test_send_command_formats_arguments(driver):
    driver.run()
    driver.send_command("go depth %d", driver.options.depth)
    driver.close()
    assert driver.engine.received() == ["uci", "go depth 20", "quit"]


def test_send_command_after_close_is_silent(driver):
    driver.run()
    driver.close()
    driver.send_command("isready")
    assert driver.engine.received() == ["uci", "quit"]


def test_run_twice_fails(driver):
    driver.run()
    with pytest.raises(SpawnError):
        driver.run()


def test_cancellation_drops_remaining_lines(make_engine):
    engine = make_engine(FLOOD_ENGINE)
    driver = EngineDriver(engine.path)
    driver.run()

    received = [driver.recv(timeout=5) for _ in range(10)]
    assert received == [f"info string line {i}" for i in range(10)]

    driver.cancel()
    driver._reader.join(timeout=2)
    assert not driver.running
    assert driver.errors.empty()

    driver.close()
    assert engine.received() == ["uci", "quit"]


def test_close_reports_force_kill(make_engine):
    driver = EngineDriver(make_engine(STUBBORN_ENGINE).path)
    driver.run()
    with pytest.raises(ForceKilledError):
        driver.close()
    assert not driver.process.is_running()
    assert not driver.running


def test_context_manager(make_engine):
    engine = make_engine()
    with EngineDriver(engine.path) as driver:
        assert driver.recv(timeout=5) == "id name Stub"
    assert engine.received() == ["uci", "quit"]


@pytest.mark.parametrize(
    "path, error",
    [("", ConfigError), ("/does/not/exist", EngineNotFoundError), ("/tmp", NotAFileError)],
)
def test_bad_paths(path, error):
    with pytest.raises(error):
        EngineDriver(path)


def test_unexpected_read_error_goes_to_error_queue(make_engine):
    driver = EngineDriver(make_engine().path)
    driver.process.close()
    driver.process = MagicMock(spec=EngineProcess)
    driver.process.stdout.readline.side_effect = OSError(errno.EIO, "Input/output error")

    driver._read_output()

    error = driver.errors.get_nowait()
    assert isinstance(error, ReadError)
    assert "Input/output error" in str(error)
    assert driver.output.closed


def test_closed_stdout_ends_reader_quietly(make_engine):
    driver = EngineDriver(make_engine().path)
    driver.process.close()

    driver._read_output()

    assert driver.errors.empty()
    assert driver.output.closed


class TestSetOption:
    @pytest.fixture
    def driver(self, make_engine):
        drv = EngineDriver(make_engine().path)
        drv.process.close()
        drv.process = MagicMock(spec=EngineProcess)
        return drv

    def test_defaults(self, driver):
        assert driver.options == EngineOptions(depth=20, multipv=1)

    def test_depth_is_local_only(self, driver):
        driver.set_option("depth", 7)
        assert driver.options.depth == 7
        driver.process.write.assert_not_called()

    def test_depth_accepts_negative(self, driver):
        driver.set_option("depth", -3)
        assert driver.options.depth == -3

    @pytest.mark.parametrize("value", [1, 256])
    def test_multipv_bounds_accepted(self, driver, value):
        driver.set_option("multipv", value)
        assert driver.options.multipv == value
        driver.process.write.assert_called_once_with(
            f"setoption name MultiPV value {value}"
        )

    @pytest.mark.parametrize("value", [0, 257, -1])
    def test_multipv_out_of_range_rejected(self, driver, value):
        with pytest.raises(OptionError, match="between 1 and 256"):
            driver.set_option("multipv", value)
        assert driver.options.multipv == 1
        driver.process.write.assert_not_called()

    @pytest.mark.parametrize("name", ["depth", "multipv"])
    @pytest.mark.parametrize("value", ["4", 4.0, True, None])
    def test_wrong_kind_rejected(self, driver, name, value):
        with pytest.raises(OptionError, match="requires integer value"):
            driver.set_option(name, value)
        assert driver.options == EngineOptions()
        driver.process.write.assert_not_called()

    def test_unknown_option(self, driver):
        with pytest.raises(OptionError, match="invalid option 'MultiPV'"):
            driver.set_option("MultiPV", 2)
        driver.process.write.assert_not_called()
