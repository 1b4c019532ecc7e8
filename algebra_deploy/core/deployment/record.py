from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from algebra_deploy.core.deployment.errors import RecordStoreError


class AddressRecord(BaseModel):
    """``deploys.json``: the four core addresses plus any other keys, passed through."""

    model_config = ConfigDict(extra="allow")

    pool_deployer: str | None = Field(default=None, alias="poolDeployer")
    factory: str | None = None
    vault: str | None = None
    vault_factory: str | None = Field(default=None, alias="vaultFactory")

    _order: list[str] = PrivateAttr(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _only_string_values(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            raise ValueError(f"address record must be a JSON object, got {type(data).__name__}")
        bad = [k for k, v in data.items() if not isinstance(v, str)]
        if bad:
            raise ValueError(f"non-string values for keys: {bad}")
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, str]) -> AddressRecord:
        record = cls.model_validate(data)
        record._order = list(data)
        return record

    @property
    def extras(self) -> dict[str, str]:
        return dict(self.model_extra or {})

    def to_dict(self) -> dict[str, str]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        ordered = {k: data[k] for k in self._order if k in data}
        ordered.update({k: v for k, v in data.items() if k not in ordered})
        return ordered

    def merged(self, updates: Mapping[str, str]) -> AddressRecord:
        data = self.to_dict()
        data.update(updates)
        return AddressRecord.from_mapping(data)


class AddressRecordStore:
    """Read-modify-write of the address record file. Single writer only."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.record: AddressRecord | None = None

    def load(self) -> AddressRecord:
        if not self.path.exists():
            raise RecordStoreError(self.path, "address record not found")
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise RecordStoreError(self.path, f"cannot read: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise RecordStoreError(self.path, f"cannot decode: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise RecordStoreError(self.path, f"invalid JSON: {exc}") from exc
        try:
            self.record = AddressRecord.from_mapping(raw)
        except ValueError as exc:
            raise RecordStoreError(self.path, f"malformed record: {exc}") from exc
        logger.debug(f"Loaded {len(self.record.to_dict())} keys from {self.path}")
        return self.record

    def merge(self, updates: Mapping[str, str]) -> AddressRecord:
        if self.record is None:
            raise RecordStoreError(self.path, "merge before load")
        try:
            self.record = self.record.merged(updates)
        except ValueError as exc:
            raise RecordStoreError(self.path, f"invalid update: {exc}") from exc
        return self.record

    def save(self, record: AddressRecord | None = None) -> Path:
        record = record if record is not None else self.record
        if record is None:
            raise RecordStoreError(self.path, "nothing to save")
        payload = json.dumps(record.to_dict(), indent=2) + "\n"
        tmp = self.path.with_name(f".{self.path.name}.tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            if self.path.exists():
                shutil.copymode(self.path, tmp)
            tmp.replace(self.path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise RecordStoreError(self.path, f"cannot write: {exc}") from exc
        logger.info(f"Wrote address record to {self.path}")
        return self.path
