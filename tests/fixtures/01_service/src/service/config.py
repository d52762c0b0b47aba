from __future__ import annotations

from typing import Literal, Optional, TypedDict

from .sinks import Partial, SinkConfigSchema as SinkSchema

LogLevel = Literal["debug", "info"]


class ServiceConfigSchema(TypedDict):
    """Root configuration of the service.

    Loaded from ``service.yaml`` in the working directory.
    """

    name: str
    """Name reported in every log line.

    :example: billing
    """

    log_level: LogLevel
    """Verbosity of the service log.

    :default: "info"
    """

    http: HttpConfig
    sink: SinkSchema
    defaults: Partial[SinkSchema]


class HttpConfig(TypedDict):
    """Settings of the embedded HTTP server."""

    port: int
    #: Interface to bind to.
    host: Optional[str]
    tls: TlsConfig | None


class TlsConfig(TypedDict):
    cert: str
    key: str
