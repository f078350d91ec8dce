"""Image file pipelines on top of `versionkit`.

- `file_pipeline.foundation`: config file loading and operational logging
- `file_pipeline.framework`: pipeline configuration, EXIF helpers, batch runner, audit trail
- `file_pipeline.operations`: default operations (scale, format conversion, EXIF handling)
"""
