from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from form_export.config import Settings

logger = logging.getLogger("form_export.storage")


class StorageError(RuntimeError):
    """Raised when export storage read/write fails."""


class ExportSink(Protocol):
    sink_id: str

    def store(self, name: str, content: bytes, *, content_type: str = "text/plain") -> str:
        ...

    def check_access(self) -> None:
        """Raise StorageError when the sink cannot accept exports. Leaves nothing behind."""
        ...


def _is_s3_uri(path: str) -> bool:
    return path.strip().lower().startswith("s3://")


def _parse_s3_uri(uri: str, *, require_key: bool = True) -> tuple[str, str]:
    raw = uri.strip()
    if not _is_s3_uri(raw):
        raise StorageError(f"Not an S3 URI: '{uri}'")
    # s3://bucket/key...
    without_scheme = raw[5:]
    parts = without_scheme.split("/", 1)
    bucket = parts[0].strip()
    key = parts[1].strip() if len(parts) > 1 else ""
    if not bucket or (require_key and not key):
        raise StorageError(f"Invalid S3 URI: '{uri}' (expected s3://<bucket>/<key>)")
    return bucket, key


def _safe_name(name: str) -> str:
    safe = Path(name).name
    if not safe or safe in {".", ".."}:
        raise StorageError(f"Invalid export file name: '{name}'")
    return safe


def _create_s3_client(region: str) -> Any:
    try:
        import boto3  # type: ignore
    except ImportError as exc:
        raise StorageError("boto3 is required for the S3 export sink.") from exc
    return boto3.client("s3", region_name=region)


_ACCESS_CHECK_NAME = ".ready_check"


class LocalExportSink:
    sink_id = "local"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def store(self, name: str, content: bytes, *, content_type: str = "text/plain") -> str:
        del content_type
        destination = self._root / _safe_name(name)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Failed to write export to '{destination}': {exc}") from exc
        logger.info(
            "export_saved",
            extra={"event": "export_saved", "sink": self.sink_id, "location": str(destination), "bytes": len(content)},
        )
        return str(destination)

    def check_access(self) -> None:
        marker = self._root / _ACCESS_CHECK_NAME
        token = uuid4().hex
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            marker.write_text(token, encoding="utf-8")
            read_back = marker.read_text(encoding="utf-8")
            marker.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Export directory '{self._root}' is not writable: {exc}") from exc
        if read_back != token:
            raise StorageError(f"Export directory '{self._root}' returned different content than written.")


class S3ExportSink:
    sink_id = "s3"

    def __init__(self, bucket: str, prefix: str = "", *, region: str = "us-east-1", client: Any | None = None) -> None:
        if not bucket.strip():
            raise StorageError("S3 export sink selected but no bucket is configured.")
        self._bucket = bucket.strip()
        self._prefix = prefix.strip().strip("/")
        self._region = region
        self._client = client

    def _s3(self) -> Any:
        if self._client is None:
            self._client = _create_s3_client(self._region)
        return self._client

    def store(self, name: str, content: bytes, *, content_type: str = "text/plain") -> str:
        base = f"{self._prefix}/" if self._prefix else ""
        key = f"{base}{_safe_name(name)}"
        try:
            self._s3().put_object(
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=content_type or "application/octet-stream",
            )
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to write export to S3 (bucket={self._bucket}, key={key}): {exc}") from exc
        location = f"s3://{self._bucket}/{key}"
        logger.info(
            "export_saved",
            extra={"event": "export_saved", "sink": self.sink_id, "location": location, "bytes": len(content)},
        )
        return location

    def check_access(self) -> None:
        # Bucket-level check only; no object is written.
        try:
            self._s3().head_bucket(Bucket=self._bucket)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"S3 bucket '{self._bucket}' is not reachable: {exc}") from exc


def build_export_sink(location: str, *, settings: Settings, s3_client: Any | None = None) -> ExportSink | None:
    raw = (location or "").strip()
    if not raw:
        return None
    if _is_s3_uri(raw):
        bucket, prefix = _parse_s3_uri(raw, require_key=False)
        return S3ExportSink(bucket, prefix, region=settings.aws_region, client=s3_client)
    return LocalExportSink(raw)


def load_bytes(path_or_uri: str, *, settings: Settings, s3_client: Any | None = None) -> bytes:
    raw = str(path_or_uri or "").strip()
    if not raw:
        raise StorageError("Missing storage path.")

    if _is_s3_uri(raw):
        bucket, key = _parse_s3_uri(raw)
        client = s3_client or _create_s3_client(settings.aws_region)
        try:
            response = client.get_object(Bucket=bucket, Key=key)
            body = response.get("Body")
            if body is None:
                raise StorageError(f"S3 get_object returned no body (bucket={bucket}, key={key}).")
            return body.read()
        except StorageError:
            raise
        except Exception as exc:  # pragma: no cover - depends on AWS runtime integration
            raise StorageError(f"Failed to read from S3 (bucket={bucket}, key={key}): {exc}") from exc

    path = Path(raw)
    if not path.exists():
        raise StorageError(f"Stored file not found at '{raw}'.")
    return path.read_bytes()
