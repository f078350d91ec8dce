import os
from pathlib import Path

import pytest

from file_pipeline.foundation.config_io import load_config
from file_pipeline.framework.config import OperationSpec, PipelineConfig, build_pipeline
from versionkit import SourceFileError


def _base_cfg(**extra):
    cfg = {
        "pipeline": {
            "operations": [
                {"name": "scale", "options": {"width": 1280, "height": 960}},
                {"name": "format_conversion", "options": {"extension": ".tiff"}},
            ]
        }
    }
    cfg.update(extra)
    return cfg


def test_pipeline_config_defaults():
    config = PipelineConfig.from_dict(_base_cfg())

    assert config.operations == (
        OperationSpec("scale", {"width": 1280, "height": 960}),
        OperationSpec("format_conversion", {"extension": ".tiff"}),
    )
    assert config.source_directories == ()
    assert config.finalize_enabled is True
    assert config.finalize_overwrite is False
    assert config.max_workers is None
    assert config.log_dir is None
    assert config.audit_csv is None


def test_pipeline_config_resolves_relative_paths(tmp_path):
    cfg = _base_cfg(
        logging={"log_dir": "logs", "audit_csv": "audit/runs.csv"},
        finalize={"enabled": False, "overwrite": True},
        batch={"max_workers": 2},
    )
    cfg["pipeline"]["source_directories"] = ["ops"]

    config = PipelineConfig.from_dict(cfg, base_dir=str(tmp_path))

    assert config.source_directories == (os.path.join(str(tmp_path), "ops"),)
    assert config.log_dir == os.path.join(str(tmp_path), "logs")
    assert config.audit_csv == os.path.join(str(tmp_path), "audit", "runs.csv")
    assert config.finalize_enabled is False
    assert config.finalize_overwrite is True
    assert config.max_workers == 2


def test_pipeline_config_rejects_unknown_keys():
    with pytest.raises(ValueError, match=r"Unknown config keys under finalize: overwrit"):
        PipelineConfig.from_dict(_base_cfg(finalize={"overwrit": True}))

    cfg = _base_cfg()
    cfg["pipeline"]["operations"][0]["option"] = {}
    with pytest.raises(ValueError, match=r"Unknown config keys under pipeline.operations\[0\]: option"):
        PipelineConfig.from_dict(cfg)


def test_pipeline_config_requires_pipeline_section():
    with pytest.raises(ValueError, match=r"Missing required config namespace: pipeline"):
        PipelineConfig.from_dict({})


def test_pipeline_config_rejects_bad_worker_count():
    with pytest.raises(ValueError, match=r"batch.max_workers must be >= 1"):
        PipelineConfig.from_dict(_base_cfg(batch={"max_workers": 0}))


def test_build_pipeline_uses_default_operations():
    pipeline = build_pipeline(PipelineConfig.from_dict(_base_cfg()))
    assert [op.name for op in pipeline.operations] == ["Scale", "FormatConversion"]
    assert pipeline.operations[0].options["width"] == 1280


def test_build_pipeline_reports_unknown_operations():
    cfg = _base_cfg()
    cfg["pipeline"]["operations"].append({"name": "exif_restore"})
    with pytest.raises(SourceFileError, match=r"Did you mean: exif_restoration"):
        build_pipeline(PipelineConfig.from_dict(cfg))


def test_load_config_base_only(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\nb:\n  c: 2\n", encoding="utf-8")

    cfg, meta = load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")

    assert cfg == {"a": 1, "b": {"c": 2}}
    assert meta["mode"] == "base"
    assert os.path.basename(meta["paths"][0]) == "config.yaml"


def test_load_config_base_plus_local_overlay(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\nb:\n  c: 2\n  l: [1, 2]\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("b:\n  c: 3\n  d: 4\n  l: [9]\n", encoding="utf-8")

    cfg, meta = load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")

    assert cfg == {"a": 1, "b": {"c": 3, "d": 4, "l": [9]}}
    assert meta["mode"] == "base+local"
    assert len(meta["paths"]) == 2


def test_load_config_overlay_type_mismatch_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a:\n  b: 1\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("a: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"Invalid config overlay merge at a"):
        load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")


def test_load_config_overlay_nulls_clear_and_scalars_cannot_become_lists(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\nb:\n  c: 2\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("b:\n  c: null\n", encoding="utf-8")

    cfg, _meta = load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")
    assert cfg == {"a": 1, "b": {"c": None}}

    (tmp_path / "config.local.yaml").write_text("b:\n  c: [3]\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"Invalid config overlay merge at b.c: cannot replace scalar"):
        load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")


def test_load_config_invalid_yaml_names_the_file(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("a: [1, 2\n", encoding="utf-8")

    with pytest.raises(ValueError) as excinfo:
        load_config(config_dir=str(tmp_path), env_var="TEST_FILE_PIPELINE_CONFIG")

    assert "config.local.yaml" in str(excinfo.value)


def test_load_config_env_override_loads_single_file(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    base_dir.mkdir()
    (base_dir / "config.yaml").write_text("a: 1\n", encoding="utf-8")
    (base_dir / "config.local.yaml").write_text("a: 2\n", encoding="utf-8")
    env_path = tmp_path / "my_config.yaml"
    env_path.write_text("a: 999\n", encoding="utf-8")

    monkeypatch.setenv("TEST_FILE_PIPELINE_CONFIG", str(env_path))
    cfg, meta = load_config(config_dir=str(base_dir), env_var="TEST_FILE_PIPELINE_CONFIG")

    assert cfg == {"a": 999}
    assert meta["mode"] == "env"
    assert meta["paths"] == [os.path.abspath(str(env_path))]


def test_explicit_path_beats_env_var(tmp_path, monkeypatch):
    explicit = tmp_path / "explicit.yaml"
    explicit.write_text("a: 1\n", encoding="utf-8")
    monkeypatch.setenv("TEST_FILE_PIPELINE_CONFIG", str(tmp_path / "missing.yaml"))

    cfg, meta = load_config(config_path=str(explicit), env_var="TEST_FILE_PIPELINE_CONFIG")

    assert cfg == {"a": 1}
    assert meta["mode"] == "explicit"


def test_repo_config_is_found_from_a_subdirectory(monkeypatch):
    repo_root = Path(__file__).resolve().parents[1]
    monkeypatch.delenv("TEST_FILE_PIPELINE_CONFIG", raising=False)
    monkeypatch.chdir(repo_root / "tests")

    cfg, meta = load_config(env_var="TEST_FILE_PIPELINE_CONFIG")

    assert Path(meta["paths"][0]).resolve() == (repo_root / "config" / "config.yaml").resolve()
    assert Path(str(meta["repo_root"])).resolve() == repo_root.resolve()
    # The shipped config must parse.
    PipelineConfig.from_dict(cfg)
