"""Project-specific framework utilities.

Structural helpers that turn a config file into a pipeline run: parsing
(`config`), metadata access (`exif`), execution (`runner`) and the audit
trail (`audit`). For the versioning engine itself, use `versionkit`.
"""
