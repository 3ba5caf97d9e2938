"""Typed configuration for deployment monitors.

Three sources feed a monitor:
- the extension directory (`.deployrc.json` + `package.json`),
- the environment (WooCommerce.com credentials),
- the launcher, which packs everything into a `MonitorConfig` and hands it to
  the monitor process as a base64 JSON payload.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_id,
    get_int,
    get_list,
    get_str,
    get_table,
)

__all__ = [
    "ConfigError",
    "Credentials",
    "ProductConfig",
    "MonitorConfig",
    "load_credentials",
    "load_product_config",
    "load_extensions_list",
    "DEFAULT_API_URL",
    "DEFAULT_EXTENSIONS_CONFIG",
    "DEFAULT_STATUS_FILE",
    "DEPLOYRC_NAME",
]

DEFAULT_API_URL = "https://woocommerce.com/wp-json/wc/submission/runner/v1"
DEFAULT_EXTENSIONS_CONFIG = Path.home() / ".es-extensions.json"
DEFAULT_STATUS_FILE = Path.home() / ".wc-deploy-status.json"
DEPLOYRC_NAME = ".deployrc.json"
DEFAULT_VERSION = "0.0.0"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when configuration cannot be loaded or decoded."""

    kind: Literal["missing", "invalid", "credentials_missing", "payload_invalid"]
    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class Credentials:
    """WooCommerce.com submission API credentials."""

    username: str
    password: str = field(repr=False)
    api_url: str = DEFAULT_API_URL

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password, "apiUrl": self.api_url}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Credentials | None:
        username = get_str(data, "username")
        password = get_str(data, "password")
        if username is None or password is None:
            return None
        api_url = get_str(data, "apiUrl") or DEFAULT_API_URL
        return cls(username=username, password=password, api_url=api_url.rstrip("/"))


@dataclass(frozen=True, slots=True)
class ProductConfig:
    """Deployment identity of one extension directory."""

    product_id: str
    slug: str
    version: str
    path: Path


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Everything one monitor process needs. Immutable for the process lifetime."""

    product_id: str
    version: str
    slug: str
    credentials: Credentials
    working_dir: Path
    commit_message: str
    status_file: Path | None = None
    is_batch_deploy: bool = False
    batch_index: int = 0
    batch_total: int = 1

    @property
    def batch_label(self) -> str:
        """1-based position in the batch, e.g. "2/5"."""
        return f"{self.batch_index + 1}/{self.batch_total}"

    def to_dict(self) -> StrDict:
        return {
            "productId": self.product_id,
            "version": self.version,
            "slug": self.slug,
            "credentials": self.credentials.to_dict(),
            "workingDir": str(self.working_dir),
            "commitMessage": self.commit_message,
            "statusFile": str(self.status_file) if self.status_file else None,
            "isBatchDeploy": self.is_batch_deploy,
            "batchIndex": self.batch_index,
            "batchTotal": self.batch_total,
        }

    def to_payload(self) -> str:
        """Encode as the base64 JSON argument of the monitor process."""
        raw = json.dumps(self.to_dict()).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[MonitorConfig, ConfigError]:
        product_id = get_id(data, "productId")
        version = get_str(data, "version")
        slug = get_str(data, "slug")
        if product_id is None or version is None or slug is None:
            return Err(
                ConfigError(
                    kind="payload_invalid",
                    message="monitor payload requires productId, version and slug",
                )
            )

        creds_tbl = get_table(data, "credentials")
        credentials = Credentials.from_dict(creds_tbl) if creds_tbl is not None else None
        if credentials is None:
            return Err(
                ConfigError(
                    kind="payload_invalid",
                    message="monitor payload requires credentials.username and credentials.password",
                )
            )

        status_file = get_str(data, "statusFile")
        batch_total = get_int(data, "batchTotal") or 1
        batch_index = get_int(data, "batchIndex") or 0
        if batch_total < 1 or not 0 <= batch_index < batch_total:
            return Err(
                ConfigError(
                    kind="payload_invalid",
                    message=f"invalid batch position: index={batch_index} total={batch_total}",
                )
            )

        return Ok(
            cls(
                product_id=product_id,
                version=version,
                slug=slug,
                credentials=credentials,
                working_dir=Path(get_str(data, "workingDir") or "."),
                commit_message=get_str(data, "commitMessage") or f"Deploy version {version}",
                status_file=Path(status_file) if status_file else None,
                is_batch_deploy=get_bool(data, "isBatchDeploy") or False,
                batch_index=batch_index,
                batch_total=batch_total,
            )
        )

    @classmethod
    def from_payload(cls, payload: str) -> Result[MonitorConfig, ConfigError]:
        """Decode the base64 JSON argument of the monitor process."""
        try:
            raw = base64.b64decode(payload.encode("ascii"), validate=True)
            obj: object = json.loads(raw.decode("utf-8"))
        except (binascii.Error, ValueError) as e:
            # json.JSONDecodeError and UnicodeError are both ValueError.
            return Err(ConfigError(kind="payload_invalid", message=f"undecodable payload: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(ConfigError(kind="payload_invalid", message="payload is not a JSON object"))
        return cls.from_dict(data)


def load_credentials(env: Mapping[str, str]) -> Result[Credentials, ConfigError]:
    """Read WooCommerce.com credentials from environment variables."""
    username = (env.get("WC_USERNAME") or "").strip()
    password = (env.get("WC_APP_PASSWORD") or "").strip()
    if not username or not password:
        return Err(
            ConfigError(
                kind="credentials_missing",
                message="WooCommerce.com credentials not found",
                hint="Set WC_USERNAME and WC_APP_PASSWORD (and optionally WC_API_URL)",
            )
        )

    api_url = (env.get("WC_API_URL") or "").strip() or DEFAULT_API_URL
    return Ok(Credentials(username=username, password=password, api_url=api_url.rstrip("/")))


def _read_json_object(path: Path) -> Result[StrDict, ConfigError]:
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(kind="missing", message=f"not found: {path}", path=path))
    except (OSError, ValueError) as e:
        return Err(ConfigError(kind="invalid", message=f"failed to read {path.name}: {e}", path=path))

    data = as_str_dict(obj)
    if data is None:
        return Err(ConfigError(kind="invalid", message=f"{path.name}: expected a JSON object", path=path))
    return Ok(data)


def _read_package_version(directory: Path) -> str:
    result = _read_json_object(directory / "package.json")
    if isinstance(result, Err):
        return DEFAULT_VERSION
    return get_str(result.value, "version") or DEFAULT_VERSION


def load_product_config(directory: Path) -> Result[ProductConfig, ConfigError]:
    """Load productId/slug from `.deployrc.json` and the version from `package.json`."""
    rc_path = directory / DEPLOYRC_NAME
    result = _read_json_object(rc_path)
    if isinstance(result, Err):
        error = result.error
        if error.kind == "missing":
            return Err(
                ConfigError(
                    kind="missing",
                    message=f"no {DEPLOYRC_NAME} found in {directory}",
                    path=rc_path,
                    hint="Run from a WooCommerce extension directory",
                )
            )
        return result

    data = result.value
    product_id = get_id(data, "productId")
    slug = get_str(data, "slug")
    if product_id is None or slug is None:
        return Err(
            ConfigError(
                kind="invalid",
                message=f"{DEPLOYRC_NAME} requires productId and slug",
                path=rc_path,
            )
        )

    return Ok(
        ProductConfig(
            product_id=product_id,
            slug=slug,
            version=_read_package_version(directory),
            path=directory,
        )
    )


def load_extensions_list(path: Path) -> Result[list[Path], ConfigError]:
    """Load the `extensions` path list used by `monitor --all`."""
    result = _read_json_object(path)
    if isinstance(result, Err):
        return result

    raw = get_list(result.value, "extensions") or []
    paths = [Path(item).expanduser() for item in raw if isinstance(item, str) and item.strip()]
    if not paths:
        return Err(
            ConfigError(
                kind="invalid",
                message="no extensions configured",
                path=path,
                hint=f'Add {{"extensions": ["/path/to/extension"]}} to {path}',
            )
        )
    return Ok(paths)
