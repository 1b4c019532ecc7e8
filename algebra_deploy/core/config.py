import json
import os
from pathlib import Path
from typing import Any

_CONFIG_ENV_KEYS = ("ALGEBRA_DEPLOY_CONFIG_PATH", "ALGEBRA_DEPLOY_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_PRIVATE_KEY_ENV = "DEPLOYER_PRIVATE_KEY"

DEFAULT_WALLET_LABEL = "deployer"
DEFAULT_ARTIFACTS_DIR = "artifacts"
DEFAULT_RECORD_PATH = "deploys.json"
DEFAULT_CONFIRMATIONS = 1
DEFAULT_RECEIPT_TIMEOUT = 180


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a config-relative path (artifacts dir, record file) against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    root = _project_root()
    return (root / p) if root else p


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except Exception:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def _deploy_section() -> dict[str, Any]:
    section = CONFIG.get("deploy", {})
    return section if isinstance(section, dict) else {}


def get_chain_id() -> int | None:
    value = _deploy_section().get("chain_id")
    if value is None:
        return None
    return int(value)


def get_wallet_label() -> str:
    label = _deploy_section().get("wallet_label")
    if label:
        return str(label).strip()
    return DEFAULT_WALLET_LABEL


def get_artifacts_dir() -> Path:
    return resolve_project_path(
        _deploy_section().get("artifacts_dir") or DEFAULT_ARTIFACTS_DIR
    )


def get_record_path() -> Path:
    return resolve_project_path(
        _deploy_section().get("record_path") or DEFAULT_RECORD_PATH
    )


def get_confirmations() -> int:
    value = _deploy_section().get("confirmations")
    if value is None:
        return DEFAULT_CONFIRMATIONS
    confirmations = int(value)
    if confirmations < 1:
        raise ValueError("deploy.confirmations must be >= 1")
    return confirmations


def get_receipt_timeout() -> int:
    value = _deploy_section().get("receipt_timeout")
    if value is None:
        return DEFAULT_RECEIPT_TIMEOUT
    return int(value)


def get_wallet(label: str) -> dict[str, Any] | None:
    for wallet in CONFIG.get("wallets", []) or []:
        if wallet.get("label") == label:
            return wallet
    return None


def get_deployer_private_key(label: str | None = None) -> str | None:
    wallet = get_wallet(label or get_wallet_label())
    if wallet:
        pk = wallet.get("private_key") or wallet.get("private_key_hex")
        if pk:
            return str(pk).strip()
    return os.environ.get(_PRIVATE_KEY_ENV)
