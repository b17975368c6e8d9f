"""Operator configuration loaded from the environment."""

import os
from typing import Optional

from pydantic import BaseModel, Field


def _env_bool(name, default):
    return os.getenv(name, default).lower() == "true"


class OperatorConfig(BaseModel):
    """Runtime settings for the operator and its controllers."""

    log_level: str = Field(default="INFO", description="Root log level")
    worker_limit: int = Field(default=5, description="kopf handler worker limit")
    posting_enabled: bool = Field(
        default=False, description="Post log records as Kubernetes events"
    )
    server_timeout: int = Field(default=60, description="Watch server timeout (s)")
    reconcile_workers: int = Field(
        default=2, ge=1, description="Concurrent reconcile workers per kind"
    )
    reconcile_timeout: float = Field(
        default=60.0, gt=0, description="Deadline of a single reconcile pass (s)"
    )
    cluster_ready_poll_interval: float = Field(
        default=10.0,
        gt=0,
        description="Requeue delay while a referenced cluster is not ready (s)",
    )
    temporal_rpc_timeout: float = Field(
        default=10.0, gt=0, description="Deadline for Temporal RPC calls (s)"
    )
    temporal_address_override: Optional[str] = Field(
        default=None,
        description="host:port used instead of the frontend service DNS name",
    )
    watch_namespace: Optional[str] = Field(
        default=None, description="Restrict watching to one namespace"
    )

    @classmethod
    def from_env(cls):
        """Build the configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            worker_limit=int(os.getenv("WORKER_LIMIT", "5")),
            posting_enabled=_env_bool("POSTING_ENABLED", "false"),
            server_timeout=int(os.getenv("SERVER_TIMEOUT", "60")),
            reconcile_workers=int(os.getenv("RECONCILE_WORKERS", "2")),
            reconcile_timeout=float(os.getenv("RECONCILE_TIMEOUT", "60")),
            cluster_ready_poll_interval=float(
                os.getenv("CLUSTER_READY_POLL_INTERVAL", "10")
            ),
            temporal_rpc_timeout=float(os.getenv("TEMPORAL_RPC_TIMEOUT", "10")),
            temporal_address_override=os.getenv("TEMPORAL_ADDRESS_OVERRIDE") or None,
            watch_namespace=os.getenv("WATCH_NAMESPACE") or None,
        )
