import pytest
import yaml

from force_calibration.cli import main

ROWS = [["Tekscan", "Zwick"]] + [[x, 2.0 * x + 1.0] for x in range(1, 11)]


@pytest.fixture
def data_file(write_csv, isolated_cwd):
    return write_csv(ROWS)


def test_calibrate_prints_summary(data_file, capsys):
    main(["calibrate", str(data_file), "--points", "4"])

    out = capsys.readouterr().out
    assert "Total available data points: 10" in out
    assert "Linear Model: R² = 1.0000" in out
    assert "Best Model:" in out
    assert out.count("RMSE for all data (using best model):") == 1
    assert "Calibration complete!" in out


def test_calibrate_saves_report_and_plots(data_file, tmp_path, capsys):
    output = tmp_path / "out" / "calibration.yaml"
    plots = tmp_path / "plots"

    main(
        [
            "calibrate",
            str(data_file),
            "--points",
            "5",
            "--output",
            str(output),
            "--plots",
            str(plots),
        ]
    )

    saved = yaml.safe_load(output.read_text(encoding="utf-8"))
    assert saved["n_calibration_points"] == 5
    assert saved["full_dataset"]["rmse"] == pytest.approx(0.0, abs=1e-6)
    assert saved["data_source"] == str(data_file)
    assert len(saved["attempts"]) == 9
    assert (plots / "calibration_fit.png").exists()
    assert (plots / "residuals.png").exists()


def test_calibrate_prompts_for_point_count(data_file, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "3")

    main(["calibrate", str(data_file)])

    assert "Number of data points used: 3" in capsys.readouterr().out


def test_calibrate_uses_config(data_file, tmp_path, capsys):
    config = tmp_path / "settings.yaml"
    config.write_text(
        yaml.dump({"calibration": {"n_points": 6, "models": ["Linear", "Quadratic"]}})
    )

    main(["--config", str(config), "calibrate", str(data_file)])

    out = capsys.readouterr().out
    assert "Number of data points used: 6" in out
    assert "Exponential" not in out


@pytest.mark.parametrize("points", ["1", "11"])
def test_calibrate_invalid_point_count(data_file, points, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["calibrate", str(data_file), "--points", points])

    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert "Invalid number of calibration points" in out
    assert "Best Model:" not in out


def test_calibrate_no_model_converged(write_csv, isolated_cwd, capsys):
    path = write_csv([[-x, x * x] for x in range(1, 8)])
    config = isolated_cwd / "config.yaml"
    config.write_text(yaml.dump({"calibration": {"models": ["Logarithmic", "Power"]}}))

    with pytest.raises(SystemExit) as exc_info:
        main(["calibrate", str(path), "--points", "4"])

    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert "No model could be fitted" in out
    assert "Logarithmic: DomainError" in out


def test_calibrate_single_column_file(write_csv, isolated_cwd, capsys):
    path = write_csv([[1], [2], [3]])

    with pytest.raises(SystemExit):
        main(["calibrate", str(path), "--points", "2"])

    assert "at least two columns" in capsys.readouterr().out


def test_predict_with_saved_calibration(data_file, tmp_path, capsys):
    config = tmp_path / "linear.yaml"
    config.write_text(yaml.dump({"calibration": {"models": ["Linear"]}}))
    calibration = tmp_path / "calibration.yaml"
    main(
        [
            "--config",
            str(config),
            "calibrate",
            str(data_file),
            "--points",
            "4",
            "--output",
            str(calibration),
        ]
    )
    capsys.readouterr()

    new_data = tmp_path / "new.csv"
    new_data.write_text("12,25\n20,41\n")
    result = tmp_path / "calibrated.csv"

    main(["predict", str(calibration), str(new_data), "--output", str(result)])

    assert "RMSE against reference column: 0.0000" in capsys.readouterr().out

    lines = result.read_text().strip().splitlines()
    assert lines[0] == "sensor,reference,calibrated"
    calibrated = [float(line.split(",")[2]) for line in lines[1:]]
    assert calibrated == pytest.approx([25.0, 41.0], abs=1e-4)


def test_predict_sensor_readings_only(data_file, tmp_path, capsys):
    config = tmp_path / "linear.yaml"
    config.write_text(yaml.dump({"calibration": {"models": ["Linear"]}}))
    calibration = tmp_path / "calibration.yaml"
    main(
        [
            "--config",
            str(config),
            "calibrate",
            str(data_file),
            "--points",
            "4",
            "--output",
            str(calibration),
        ]
    )
    capsys.readouterr()

    raw = tmp_path / "raw.csv"
    raw.write_text("12\n20\n")
    result = tmp_path / "calibrated.csv"

    main(["predict", str(calibration), str(raw), "--output", str(result)])

    out = capsys.readouterr().out
    assert "RMSE against reference column" not in out
    lines = result.read_text().strip().splitlines()
    assert lines[0] == "sensor,calibrated"
    calibrated = [float(line.split(",")[1]) for line in lines[1:]]
    assert calibrated == pytest.approx([25.0, 41.0], abs=1e-4)


def test_predict_rejects_bad_calibration_file(data_file, tmp_path, capsys):
    calibration = tmp_path / "calibration.yaml"
    calibration.write_text(yaml.dump({"model": "Linear", "parameters": {"a": 1.0}}))

    with pytest.raises(SystemExit):
        main(["predict", str(calibration), str(data_file)])

    assert "missing parameters" in capsys.readouterr().out
