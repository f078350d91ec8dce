import pytest

from versionkit import (
    FailedModificationError,
    MisplacedVersionFileError,
    MissingVersionFileError,
    OperationDescriptor,
    OperationResult,
    Validator,
    VersionInfo,
)


def _result(success=True, log_data=None):
    return OperationResult(OperationDescriptor("Op", {"level": 1}), success, log_data)


def test_valid_version_passes(tmp_path):
    version = tmp_path / "v1.txt"
    version.write_text("x", encoding="utf-8")
    result = _result()

    path, checked = Validator(str(version), result, str(tmp_path), "/orig.txt").validate()

    assert path == str(version)
    assert checked is result


def test_failure_is_checked_before_anything_else(tmp_path):
    error = ValueError("broken input")
    result = _result(False, error)

    with pytest.raises(FailedModificationError, match=r"Op with options \{'level': 1\} failed") as excinfo:
        Validator(str(tmp_path / "missing.txt"), result, str(tmp_path), "/orig.txt").validate()

    assert excinfo.value.result is result
    assert excinfo.value.file == "/orig.txt"
    assert excinfo.value.original_errors == [error]
    assert "ValueError: broken input" in str(excinfo.value)


def test_non_modifying_result_short_circuits(tmp_path):
    result = _result(log_data={"k": 1})
    assert Validator(None, result, str(tmp_path), "/orig.txt").validate() == (None, result)


def test_missing_file_is_rejected(tmp_path):
    missing = tmp_path / "nope.txt"
    with pytest.raises(MissingVersionFileError, match=r"File missing for version"):
        Validator(str(missing), None, str(tmp_path), "/orig.txt").validate()


def test_file_outside_directory_is_rejected(tmp_path):
    workdir = tmp_path / "work"
    workdir.mkdir()
    elsewhere = tmp_path / "v1.txt"
    elsewhere.write_text("x", encoding="utf-8")

    with pytest.raises(MisplacedVersionFileError) as excinfo:
        Validator(str(elsewhere), None, str(workdir), "/orig.txt").validate()

    assert str(excinfo.value) == f"File v1.txt was expected in {workdir}, but was in {tmp_path}."


def test_check_returns_version_info(tmp_path):
    version = tmp_path / "v1.txt"
    version.write_text("x", encoding="utf-8")

    info = Validator.check(VersionInfo(path=str(version)), directory=str(tmp_path), fallback="/o")

    assert info == VersionInfo(path=str(version), result=None)
    assert info.modified
