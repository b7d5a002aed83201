import importlib
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG = Path(__file__).parent / 'config' / 'config.yaml'


class CollectorSettings(BaseModel):
    poll_interval_s: float = Field(10.0, gt=0)
    duration_s: float = Field(900.0, gt=0)
    query_timeout_s: Optional[float] = Field(None, gt=0)


class SourceSettings(BaseModel):
    module: str = 'blehub.adapters.bleak_scanner.bleak_adapter'
    class_name: str = Field('BleakAdvertisementSource', alias='class')
    id: str = 'ble0'
    params: Dict[str, Any] = Field(default_factory=dict)

    model_config = {'populate_by_name': True}


class ExportSettings(BaseModel):
    backend: str = Field('s3', pattern='^(s3|file)$')
    bucket: Optional[str] = None
    key: str = 'ble/advertisements.parquet'
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    root: str = 'data/export'
    staging_dir: Optional[str] = None

    def key_for(self, started_at: datetime) -> str:
        """Object key for a run; ``{start:...}`` placeholders take the run start time."""
        return self.key.format(start=started_at)


class UploadSettings(BaseModel):
    retries: int = Field(0, ge=0)
    backoff_s: float = Field(1.0, ge=0)


class ServiceSettings(BaseModel):
    repeat: bool = True
    history_size: int = Field(50, gt=0)


class AppConfig(BaseModel):
    collector: CollectorSettings = Field(default_factory=CollectorSettings)
    source: SourceSettings = Field(default_factory=SourceSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)


def config_path() -> Path:
    return Path(os.getenv('BLEHUB_CONFIG', str(DEFAULT_CONFIG)))


def load_config(cfg_path: Optional[Path] = None) -> AppConfig:
    cfg = yaml.safe_load(Path(cfg_path or config_path()).read_text()) or {}
    return AppConfig.model_validate(cfg)


def build_source(settings: SourceSettings):
    mod = importlib.import_module(settings.module)
    cls = getattr(mod, settings.class_name)
    return cls(source_id=settings.id, **settings.params)


def build_store(settings: ExportSettings):
    from .export.object_store import FileObjectStore, S3ObjectStore

    if settings.backend == 'file':
        return FileObjectStore(settings.root)
    if not settings.bucket:
        raise ValueError('export.bucket is required for the s3 backend')
    return S3ObjectStore(settings.bucket, region=settings.region, endpoint_url=settings.endpoint_url)
