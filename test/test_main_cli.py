import json

import pytest

from conftest import CATALOG_PATH, TEMPLATE_DIR
from main import main


@pytest.fixture
def app_config(tmp_path):
    path = tmp_path / "pinmap_config.yml"
    path.write_text(
        f"""\
storage:
  backend: sqlite
  db_path: {(tmp_path / "data" / "pinmap.db").as_posix()}
catalog:
  path: {CATALOG_PATH.as_posix()}
export:
  template_dir: {TEMPLATE_DIR.as_posix()}
  output_dir: {(tmp_path / "out").as_posix()}
logging:
  level: ERROR
""",
        encoding="utf-8",
    )
    return str(path)


def run(capsys, app_config, *argv):
    code = main(["--app_config", app_config, "--raw", *argv])
    captured = capsys.readouterr()
    return code, captured


class TestPinMapCli:
    """End-to-end through the command line"""

    def test_when_init_twice_then_second_call_keeps_database(self, capsys, app_config):
        # Act
        first_code, first = run(capsys, app_config, "init")
        _, second = run(capsys, app_config, "init")

        # Assert
        assert first_code == 0
        assert json.loads(first.out) == {"written": True, "config_key": "kr_cvo_config_data"}
        assert json.loads(second.out)["written"] is False

    def test_when_pin_configured_then_exported_to_output_dir(self, capsys, app_config, tmp_path):
        # Arrange
        run(capsys, app_config, "init")

        # Act
        set_code, saved = run(
            capsys,
            app_config,
            "config",
            "set",
            "3",
            "--type",
            "DIO",
            "--set",
            "custSpecName=O_S_LS13",
            "--set",
            "connectedTo=TLE7244_01_05",
        )
        export_code, exported = run(capsys, app_config, "export", "pin", "3")

        # Assert
        record = json.loads(saved.out)
        result = json.loads(exported.out)
        assert set_code == 0 and export_code == 0
        assert record["originalLabel"] == "V_V_BAT2"
        assert record["pinNumber"] == "3"
        assert result["file_name"] == "TLE7244_DIO_Pin3_Config.arxml"
        content = (tmp_path / "out" / "TLE7244_DIO_Pin3_Config.arxml").read_text(encoding="utf-8")
        assert "<SHORT-NAME>O_S_LS13</SHORT-NAME>" in content

    def test_when_catalog_pin_requested_then_descriptor_printed(self, capsys, app_config):
        # Act
        code, captured = run(capsys, app_config, "pins", "get", "84")

        # Assert
        pin = json.loads(captured.out)
        assert code == 0
        assert pin["label"] == "O_S_RL09"
        assert pin["ic"] == "TLE7244_01_05"

    def test_when_nothing_saved_then_export_reports_nothing(self, capsys, app_config):
        # Act
        code, captured = run(capsys, app_config, "export", "all")

        # Assert
        assert code == 0
        assert json.loads(captured.out)["exported"] is False

    def test_when_import_file_malformed_then_error_exit(self, capsys, app_config, tmp_path):
        # Arrange
        bad = tmp_path / "bad.json"
        bad.write_text('{"foo": 1}', encoding="utf-8")

        # Act
        code, captured = run(capsys, app_config, "import", str(bad))

        # Assert
        assert code == 2
        assert captured.err.startswith("[ERROR] import - ")

    def test_when_set_assignment_malformed_then_error_exit(self, capsys, app_config):
        # Act
        code, captured = run(capsys, app_config, "config", "set", "3", "--type", "DIO", "--set", "oops")

        # Assert
        assert code == 2
        assert "key=value" in captured.err

    def test_when_getting_unsaved_pin_then_error_exit(self, capsys, app_config):
        # Arrange
        run(capsys, app_config, "init")

        # Act
        code, captured = run(capsys, app_config, "config", "get", "42")

        # Assert
        assert code == 2
        assert captured.err.startswith("[ERROR] config - No saved configuration for pin 42")

    def test_when_setting_pin_with_separator_then_error_exit(self, capsys, app_config):
        # Arrange
        run(capsys, app_config, "init")

        # Act
        code, captured = run(capsys, app_config, "config", "set", "3/4", "--type", "DIO", "--set", "direction=Output")

        # Assert
        assert code == 2
        assert captured.err.startswith("[ERROR] config - Invalid pin number '3/4'")
