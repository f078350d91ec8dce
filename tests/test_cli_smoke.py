import csv
from pathlib import Path

from PIL import Image

from file_pipeline import cli


def _config(tmp_path: Path, *, operations: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "\n".join(
            [
                "pipeline:",
                "  operations:",
                operations,
                "finalize:",
                "  enabled: true",
                "  overwrite: false",
                "logging:",
                "  log_dir: logs",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path


def _image(path: Path, size=(400, 300)) -> Path:
    Image.new("RGB", size, (10, 20, 30)).save(path, format="JPEG")
    return path


def test_cli_list_operations_smoke(capsys):
    rc = cli.main(["list-operations"])
    assert rc == 0

    out = capsys.readouterr().out
    assert "scale - Scale an image to a target resolution (Lanczos resampling)." in out
    assert "exif_redaction" in out


def test_cli_apply_smoke(tmp_path, monkeypatch):
    photos = tmp_path / "photos"
    photos.mkdir()
    first = _image(photos / "a.jpg")
    second = _image(photos / "b.jpg")
    config_path = _config(
        tmp_path,
        operations="\n".join(
            [
                "    - name: scale",
                "      options: {width: 200, height: 150}",
                "    - name: format_conversion",
                "      options: {extension: .png}",
            ]
        ),
    )
    audit_csv = tmp_path / "audit.csv"
    monkeypatch.delenv("FILE_PIPELINE_CONFIG", raising=False)

    rc = cli.main(["apply", str(first), str(second), "--config", str(config_path), "--audit-csv", str(audit_csv)])
    assert rc == 0

    outputs = sorted(p.name for p in photos.iterdir())
    assert len(outputs) == 4
    assert [name for name in outputs if name.endswith(".png")] != []
    for name in outputs:
        if name.endswith(".png"):
            with Image.open(photos / name) as image:
                assert image.size == (200, 150)
    assert not (photos / "a_versions").exists()

    logs = list((tmp_path / "logs").glob("*_oplog.log"))
    assert len(logs) == 1
    assert "Step 1/2: Scale" in logs[0].read_text(encoding="utf-8")

    with open(audit_csv, newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["operation"] for row in rows] == ["Scale", "FormatConversion", "Scale", "FormatConversion"]


def test_cli_apply_reports_failures(tmp_path, capsys, monkeypatch):
    good = _image(tmp_path / "good.jpg")
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"not an image")
    config_path = _config(
        tmp_path,
        operations="\n".join(["    - name: scale", "      options: {width: 100, height: 75}"]),
    )
    monkeypatch.delenv("FILE_PIPELINE_CONFIG", raising=False)

    rc = cli.main(["apply", str(good), str(bad), "--config", str(config_path), "--no-finalize"])
    assert rc == 1

    out = capsys.readouterr().out
    assert f"ok      {good}" in out
    assert f"failed  {bad}" in out
    assert (tmp_path / "good_versions").is_dir()
    assert not (tmp_path / "bad_versions").exists()


def test_cli_apply_missing_input_exits_nonzero(tmp_path, monkeypatch):
    config_path = _config(tmp_path, operations="    - name: scale")
    monkeypatch.delenv("FILE_PIPELINE_CONFIG", raising=False)

    assert cli.main(["apply", str(tmp_path / "missing.jpg"), "--config", str(config_path)]) == 1
