from __future__ import annotations

import uuid
from pathlib import Path

from libs.core import logging as core_logging

from .civitai_client import CivitaiAPIError, CivitaiClient
from .errors import DownloadError, StorageError, with_upstream_detail
from .models import MaterializedResult

LOGGER = core_logging.get_logger("imagegen")


def ensure_directory(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(f"Could not create output directory {path}: {exc}") from exc
    if not path.is_dir():
        raise StorageError(f"Output path is not a directory: {path}")
    return path


def unique_filename(extension: str) -> str:
    return f"{uuid.uuid4().hex}.{extension.lstrip('.')}"


class ResultMaterializer:
    def __init__(
        self,
        client: CivitaiClient,
        output_dir: Path | None = None,
        extension: str = "jpeg",
    ) -> None:
        self.client = client
        self.output_dir = output_dir
        self.extension = extension

    def materialize(self, result_ref: str) -> MaterializedResult:
        if self.output_dir is None:
            return MaterializedResult(remote_url=result_ref)

        directory = ensure_directory(self.output_dir)
        try:
            content = self.client.download(result_ref)
        except CivitaiAPIError as exc:
            LOGGER.warning("imagegen_download_failed", error=exc.detail, status_code=exc.status_code)
            raise DownloadError(with_upstream_detail(exc.detail, exc.body)) from exc

        target = directory / unique_filename(self.extension)
        created = False
        try:
            # "xb" refuses to overwrite, so a name collision surfaces instead of clobbering.
            with open(target, "xb") as handle:
                created = True
                handle.write(content)
        except OSError as exc:
            # Only the file this call created is removed; a partial image never stays behind.
            if created:
                target.unlink(missing_ok=True)
            raise StorageError(f"Could not write image to {target}: {exc}") from exc
        LOGGER.info("imagegen_result_saved", path=str(target), size_bytes=len(content))
        return MaterializedResult(local_path=str(target))
