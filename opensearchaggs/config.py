from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Datasource settings loaded from ``OPENSEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix='OPENSEARCH_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    hosts: List[str] = ['localhost:9200']
    user: str = 'admin'
    password: str = 'admin'
    index: Optional[str] = None
    time_field: str = '@timestamp'

    # major version of the backend, gates aggregation types with a minimum version
    backend_version: int = 7
