import json

from dentalceph.services.config_service import DEFAULT_CONFIG, ConfigService


def test_missing_file_uses_defaults_and_writes_them(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigService(path)

    assert config.annotation_color == "#ff9800"
    assert config.thickness == 4
    assert config.font_size == 18
    assert config.font_family == "Arial"
    assert config.hit_tolerance == 8.0
    assert config.default_zoom == 100
    assert config.default_export_format == "png"
    assert config.log_level == "INFO"
    assert config.log_to_file is True
    assert path.exists()


def test_user_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"annotation": {"color": "#00ff00"}, "hit_tolerance": 5}))

    config = ConfigService(path)

    assert config.annotation_color == "#00ff00"
    assert config.thickness == 4
    assert config.hit_tolerance == 5.0
    assert config.zoom_levels == DEFAULT_CONFIG["zoom"]["levels"]


def test_corrupt_file_is_recreated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    config = ConfigService(path)

    assert config.thickness == 4
    assert json.loads(path.read_text())["annotation"]["thickness"] == 4


def test_non_object_file_is_recreated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")

    config = ConfigService(path)

    assert config.font_size == 18


def test_set_and_save(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigService(path)
    config.set("hit_tolerance", 12)
    config.save()

    assert ConfigService(path).hit_tolerance == 12.0
