import pytest

from telemetry_bridge.exceptions import RegistryError, SensorDirectoryError
from telemetry_bridge.sensors.base import BaseSensor, Reading
from telemetry_bridge.sensors.ds18b20 import DS18B20Sensor
from telemetry_bridge.sensors.registry import SensorRegistry


class FakeHumiditySensor(BaseSensor):
    def __init__(self, *, id, path):
        self._id = id

    @property
    def identifier(self):
        return self._id

    def read(self):
        return Reading(55.0)


class BrokenSensor(FakeHumiditySensor):
    def __init__(self, *, id, path):
        raise RuntimeError("cannot open device")


@pytest.fixture
def device_dir(tmp_path):
    for name in ("28-0000001", "28-0000002", "w1_bus_master1", "10-0000003", "28"):
        (tmp_path / name).mkdir()
    return tmp_path


# discover tests
def test_discover_keeps_only_family_prefix(device_dir):
    registry = SensorRegistry()
    sensors = registry.discover(str(device_dir))

    assert len(sensors) == 2
    assert registry.identifiers == ["28-0000001", "28-0000002"]
    assert all(isinstance(sensor, DS18B20Sensor) for sensor in sensors)


def test_discover_passes_base_dir_to_driver(device_dir):
    sensors = SensorRegistry().discover(str(device_dir))
    assert sensors[0].device_file == str(device_dir / "28-0000001" / "w1_slave")


def test_discover_result_is_cached_and_immutable(device_dir):
    registry = SensorRegistry()
    sensors = registry.discover(str(device_dir))

    (device_dir / "28-0000009").mkdir()

    assert registry.sensors is sensors
    assert isinstance(registry.sensors, tuple)
    assert len(registry.sensors) == 2


def test_discover_empty_directory(tmp_path):
    assert SensorRegistry().discover(str(tmp_path)) == ()


def test_discover_missing_directory_raises(tmp_path):
    missing = tmp_path / "does-not-exist"
    with pytest.raises(SensorDirectoryError) as excinfo:
        SensorRegistry().discover(str(missing))
    assert excinfo.value.path == str(missing)
    assert isinstance(excinfo.value.cause, FileNotFoundError)


def test_discover_skips_driver_that_fails_to_build(device_dir, caplog):
    registry = SensorRegistry()
    registry.register("10-", BrokenSensor)

    with caplog.at_level("ERROR", logger="telemetry_bridge"):
        sensors = registry.discover(str(device_dir))

    assert [s.identifier for s in sensors] == ["28-0000001", "28-0000002"]
    assert "10-0000003" in caplog.text


# register tests
def test_register_adds_new_family(device_dir):
    registry = SensorRegistry()
    registry.register("10-", FakeHumiditySensor)

    sensors = registry.discover(str(device_dir))

    assert registry.identifiers == ["10-0000003", "28-0000001", "28-0000002"]
    assert isinstance(sensors[0], FakeHumiditySensor)


def test_register_override_logs_warning(caplog):
    registry = SensorRegistry()
    with caplog.at_level("WARNING", logger="telemetry_bridge"):
        registry.register("28-", FakeHumiditySensor)
    assert "Overriding driver for '28-'" in caplog.text


@pytest.mark.parametrize("prefix, driver_class", [("", DS18B20Sensor), ("  ", DS18B20Sensor), (28, DS18B20Sensor), ("3b-", dict)])
def test_register_rejects_invalid_entries(prefix, driver_class):
    with pytest.raises(RegistryError):
        SensorRegistry().register(prefix, driver_class)


def test_custom_registry_replaces_defaults(device_dir):
    registry = SensorRegistry(registry={"10-": FakeHumiditySensor})
    registry.discover(str(device_dir))
    assert registry.identifiers == ["10-0000003"]


@pytest.mark.parametrize("order", [("2", "28-"), ("28-", "2")])
def test_longest_prefix_wins_regardless_of_registration_order(device_dir, order):
    drivers = {"2": FakeHumiditySensor, "28-": DS18B20Sensor}
    registry = SensorRegistry(registry={})
    for prefix in order:
        registry.register(prefix, drivers[prefix])

    sensors = registry.discover(str(device_dir))

    by_id = {sensor.identifier: sensor for sensor in sensors}
    assert isinstance(by_id["28-0000001"], DS18B20Sensor)
    assert isinstance(by_id["28"], FakeHumiditySensor)
