import pytest

from voc_records.core.errors import ConfigError
from voc_records.services import ConfigService, PrepareConfig


def test_defaults(tmp_path):
    config = ConfigService().load(overrides={"input_dirs": tmp_path, "output_dir": tmp_path / "out"})
    assert config.input_dirs == [tmp_path]
    assert config.test_ratio == 0.2
    assert config.seed == 42
    assert config.label_policy == "sorted"
    assert config.record_path("train") == tmp_path / "out" / "train.records"
    assert config.label_map_path == tmp_path / "out" / "label_map.pbtxt"


def test_yaml_file_with_overrides(tmp_path, memory_logger):
    path = tmp_path / "run.yaml"
    path.write_text(
        "input_dirs: [data]\noutput_dir: out\ntest_ratio: 25%\nseed: 7\nrecord_extension: .tfrecord\n",
        encoding="utf-8",
    )
    config = ConfigService(memory_logger).load(path, overrides={"seed": 9, "label_policy": None})
    assert config.input_dirs == [tmp_path / "data"]
    assert config.output_dir == tmp_path / "out"
    assert config.test_ratio == 0.25
    assert config.seed == 9
    assert config.record_extension == "tfrecord"
    assert memory_logger.messages("INFO")


def test_json_file(tmp_path):
    path = tmp_path / "run.json"
    path.write_text('{"input_dirs": "data", "output_dir": "/abs/out", "workers": 2}', encoding="utf-8")
    config = ConfigService().load(path)
    assert config.input_dirs == [tmp_path / "data"]
    assert str(config.output_dir) == "/abs/out"
    assert config.workers == 2


@pytest.mark.parametrize("overrides", [
    {"label_policy": "random"},
    {"test_ratio": "150%"},
    {"workers": 0},
    {"start_id": 0},
])
def test_invalid_values(tmp_path, overrides):
    data = {"input_dirs": [tmp_path], "output_dir": tmp_path, **overrides}
    with pytest.raises(ConfigError):
        ConfigService().load(overrides=data)


def test_missing_required(tmp_path):
    with pytest.raises(ConfigError):
        ConfigService().load(overrides={"output_dir": tmp_path})


def test_missing_and_broken_files(tmp_path):
    with pytest.raises(ConfigError):
        ConfigService().load(tmp_path / "missing.yaml")
    broken = tmp_path / "broken.yaml"
    broken.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        ConfigService().load(broken)


@pytest.mark.parametrize("name", ["config.yaml", "config.json"])
def test_export_and_reload(tmp_path, name):
    service = ConfigService()
    config = PrepareConfig(input_dirs=[tmp_path / "in"], output_dir=tmp_path / "out", seed=3)
    path = service.export(config, tmp_path / name)
    assert service.load(path) == config
