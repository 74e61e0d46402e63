from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    agent_url: str = Field("http://127.0.0.1:8080", alias="AGENT_URL")
    # Seconds per agent request; a hung endpoint then ends as an ordinary failure
    agent_timeout: Optional[float] = Field(5.0, alias="AGENT_TIMEOUT")
    # Concurrent fetches per poller; ticks beyond this are skipped
    poll_max_inflight: int = Field(4, alias="POLL_MAX_INFLIGHT")

    poll_interfaces_interval: float = Field(10.0, alias="POLL_INTERFACES_INTERVAL")
    poll_devices_interval: float = Field(5.0, alias="POLL_DEVICES_INTERVAL")
    poll_network_interval: float = Field(1.0, alias="POLL_NETWORK_INTERVAL")
    poll_errors_interval: float = Field(5.0, alias="POLL_ERRORS_INTERVAL")
    poll_metrics_interval: float = Field(3.0, alias="POLL_METRICS_INTERVAL")

    notification_ttl: float = Field(15.0, alias="NOTIFICATION_TTL")
    throughput_capacity: int = Field(60, alias="THROUGHPUT_CAPACITY")

    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8090, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    def poll_intervals(self) -> dict[str, float]:
        return {
            "interfaces": self.poll_interfaces_interval,
            "devices": self.poll_devices_interval,
            "network": self.poll_network_interval,
            "errors": self.poll_errors_interval,
            "metrics": self.poll_metrics_interval,
        }


settings = Settings()
