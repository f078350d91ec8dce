import logging
from pathlib import Path

import pandas as pd
import pytest

from file_pipeline.framework.audit import AUDIT_COLUMNS, write_audit_csv
from file_pipeline.framework.config import PipelineConfig
from file_pipeline.framework.runner import run_files
from versionkit import FileOperation, MissingVersionFileError, OperationRegistry, VersionedFile


class Append(FileOperation):
    defaults = {"text": "x"}

    def operation(self, src_file, out_file, original=None):
        content = Path(src_file).read_text(encoding="utf-8")
        if content.startswith("boom"):
            raise RuntimeError("cannot append to boom")
        Path(out_file).write_text(content + self.options["text"], encoding="utf-8")
        return f"appended {self.options['text']}"


def _registry():
    registry = OperationRegistry()
    registry.register("append", Append)
    return registry


def _config(**extra):
    cfg = {"pipeline": {"operations": [{"name": "append", "options": {"text": "b"}}]}}
    cfg.update(extra)
    return PipelineConfig.from_dict(cfg)


def _write(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    return str(path)


LOGGER = logging.getLogger("tests.runner")


def test_run_files_finalizes_and_audits(tmp_path):
    first = _write(tmp_path / "one.txt", "a")
    second = _write(tmp_path / "two.txt", "boom")

    report = run_files([first, second], _config(), logger=LOGGER, registry=_registry())

    assert [run.ok for run in report.files] == [True, False]
    assert report.failed == (report.files[1],)
    assert "cannot append to boom" in str(report.files[1].error)

    output = report.files[0].output
    assert output is not None and output != first
    assert Path(output).read_text(encoding="utf-8") == "ab"
    assert Path(first).read_text(encoding="utf-8") == "a"
    assert Path(second).read_text(encoding="utf-8") == "boom"

    audit = report.audit
    assert list(audit.columns) == AUDIT_COLUMNS
    assert list(audit["operation"]) == ["Append", None]
    assert audit.loc[0, "options"] == '{"text": "b"}'
    assert audit.loc[0, "log"] == "appended b"
    assert bool(audit.loc[0, "success"]) is True
    assert audit.loc[1, "file"] == second
    assert bool(audit.loc[1, "success"]) is False


def test_finalize_error_is_attributed_to_its_file(tmp_path, monkeypatch):
    first = _write(tmp_path / "one.txt", "a")
    second = _write(tmp_path / "two.txt", "c")
    finalize = VersionedFile.finalize

    def finalize_unless_one(self, *, overwrite=False):
        if self.basename == "one":
            raise PermissionError("read-only directory")
        return finalize(self, overwrite=overwrite)

    monkeypatch.setattr(VersionedFile, "finalize", finalize_unless_one)
    audit_csv = tmp_path / "audit.csv"

    report = run_files(
        [first, second],
        _config(logging={"audit_csv": str(audit_csv)}),
        logger=LOGGER,
        registry=_registry(),
    )

    assert [run.ok for run in report.files] == [False, True]
    assert isinstance(report.files[0].error, PermissionError)
    assert Path(report.files[1].output).read_text(encoding="utf-8") == "cb"
    assert not (tmp_path / "two_versions").exists()

    last = report.audit.iloc[-1]
    assert last["file"] == first
    assert last["log"] == "PermissionError: read-only directory"
    assert len(pd.read_csv(audit_csv)) == len(report.audit)


def test_run_files_without_finalize_keeps_versions(tmp_path):
    source = _write(tmp_path / "doc.txt", "a")

    report = run_files([source], _config(finalize={"enabled": False}), logger=LOGGER, registry=_registry())

    assert report.files[0].ok
    assert report.files[0].output is None
    assert (tmp_path / "doc_versions").is_dir()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["doc.txt", "doc_versions"]


def test_run_files_overwrite_replaces_the_original(tmp_path):
    source = _write(tmp_path / "doc.txt", "a")

    report = run_files([source], _config(finalize={"overwrite": True}), logger=LOGGER, registry=_registry())

    assert report.files[0].output == source
    assert Path(source).read_text(encoding="utf-8") == "ab"
    assert not (tmp_path / "doc_versions").exists()


def test_run_files_checks_every_input_first(tmp_path):
    present = _write(tmp_path / "doc.txt", "a")

    with pytest.raises(MissingVersionFileError):
        run_files([present, str(tmp_path / "gone.txt")], _config(), logger=LOGGER, registry=_registry())

    assert sorted(p.name for p in tmp_path.iterdir()) == ["doc.txt"]


def test_write_audit_csv_appends_with_one_header(tmp_path):
    frame = pd.DataFrame([{"file": "a", "version": "v1", "success": True}], columns=AUDIT_COLUMNS)
    path = str(tmp_path / "nested" / "audit.csv")

    write_audit_csv(path, frame)
    write_audit_csv(path, frame)

    lines = Path(path).read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(AUDIT_COLUMNS)
    assert len(lines) == 3
    assert pd.read_csv(path)["file"].tolist() == ["a", "a"]
