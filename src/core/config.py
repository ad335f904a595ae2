"""Configuration management for the SQL Server MCP server."""

import os
from typing import Any, List, Optional
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator
from dotenv import load_dotenv

from core.exceptions import ConfigurationError

# 載入 .env 檔案，支援多種路徑策略
_env_loaded = False

# 優先使用環境變數指定的路徑
env_file = os.getenv('ENV_FILE_PATH')
if env_file and Path(env_file).exists():
    load_dotenv(env_file, override=False)
    _env_loaded = True
else:
    possible_paths = [
        Path.cwd() / '.env',  # 當前工作目錄
        Path(__file__).parent.parent.parent / '.env',  # 專案根目錄
    ]
    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(str(env_path), override=False)
            _env_loaded = True
            break

if not _env_loaded:
    load_dotenv()


DEFAULT_PORT = 1433
DEFAULT_DATABASE = "master"

# Characters that force an ODBC attribute value to be wrapped in braces
_ODBC_SPECIAL_CHARS = set(";{}")


def detect_mssql_driver() -> str:
    """檢測系統可用的 MSSQL ODBC 驅動程式

    Returns:
        str: 可用的驅動程式名稱，優先順序：Driver 18 > Driver 17 > Driver 13
    """
    default_driver = "ODBC Driver 18 for SQL Server"
    try:
        import pyodbc
    except ImportError:
        # pyodbc 不可用，使用預設值（會在連接時失敗並提示使用者）
        return default_driver

    try:
        available_drivers = pyodbc.drivers()
    except pyodbc.Error:
        return default_driver

    preferred_drivers = [
        "ODBC Driver 18 for SQL Server",
        "ODBC Driver 17 for SQL Server",
        "ODBC Driver 13 for SQL Server",
    ]

    for driver in preferred_drivers:
        if driver in available_drivers:
            return driver

    # 如果都找不到，嘗試找任何 SQL Server 驅動程式
    for driver in available_drivers:
        if "SQL Server" in driver:
            return driver

    return default_driver


def _odbc_value(value: str) -> str:
    """Quote an ODBC connection string attribute value when needed."""
    if value != value.strip() or any(ch in _ODBC_SPECIAL_CHARS for ch in value):
        return "{" + value.replace("}", "}}") + "}"
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got {raw!r}",
            details={"variable": name}
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class ConnectionParameters(BaseModel):
    """Parameters for a single SQL Server session.

    Optional fields given as ``None`` fall back to their defaults, so an
    omitted field and an explicit default produce the same session.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    server: str = Field(description="SQL Server host or host\\instance")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="TCP port")
    user: str = Field(description="SQL login user")
    password: SecretStr = Field(description="SQL login password")
    database: str = Field(default=DEFAULT_DATABASE, description="Database name")
    encrypt: bool = Field(default=True, description="Enable TLS encryption with certificate validation")
    trust_server_certificate: bool = Field(
        default=False,
        description="Skip server certificate validation (must be requested explicitly)"
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_null_optionals(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: value for key, value in data.items()
                if value is not None or key in ("server", "user", "password")
            }
        return data

    @field_validator("server", "database")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} must not be empty")
        return value

    @field_validator("user")
    @classmethod
    def _user_not_blank(cls, value: str) -> str:
        # Login names are sent verbatim
        if not value.strip():
            raise ValueError("user must not be empty")
        return value

    @field_validator("password")
    @classmethod
    def _password_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("password must not be empty")
        return value

    @property
    def instance_name(self) -> Optional[str]:
        """Named instance part of ``host\\instance``, if any."""
        if "\\" in self.server:
            return self.server.split("\\", 1)[1] or None
        return None

    def get_connection_string(self, driver: str, application_name: Optional[str] = None) -> str:
        """Generate ODBC connection string for SQL Server.

        A named instance is resolved through the SQL Browser service, so the
        port is only added for plain host names.
        """
        server = self.server if self.instance_name else f"{self.server},{self.port}"
        parts = [
            f"DRIVER={{{driver}}}",
            f"SERVER={_odbc_value(server)}",
            f"DATABASE={_odbc_value(self.database)}",
            f"UID={_odbc_value(self.user)}",
            f"PWD={_odbc_value(self.password.get_secret_value())}",
        ]

        if self.encrypt:
            parts.append("Encrypt=yes")
        else:
            parts.append("Encrypt=no")

        # Trust is never implied by Encrypt=no
        if self.trust_server_certificate:
            parts.append("TrustServerCertificate=yes")
        else:
            parts.append("TrustServerCertificate=no")

        if application_name:
            parts.append(f"APP={_odbc_value(application_name)}")

        return ";".join(parts)

    def describe(self, include_user: bool = False) -> dict:
        """Password-free summary of the effective parameters."""
        info = {
            "server": self.server,
            "port": self.port,
            "database": self.database,
            "encrypt": self.encrypt,
            "trust_server_certificate": self.trust_server_certificate,
        }
        if include_user:
            info["user"] = self.user
        return info


class SessionConfig(BaseModel):
    """Driver, pool and timeout settings applied to every session."""

    driver: str = Field(default="ODBC Driver 18 for SQL Server", description="ODBC driver for SQL Server")
    connect_timeout: int = Field(default=15, ge=1, description="Login/pool open timeout in seconds")
    request_timeout: int = Field(default=30, ge=1, description="Query timeout in seconds")
    pool_min: int = Field(default=0, ge=0, description="Minimum pooled connections")
    pool_max: int = Field(default=5, ge=1, description="Maximum pooled connections")
    pool_recycle: int = Field(default=-1, description="Recycle pooled connections after N seconds (-1 disables)")
    application_name: str = Field(default="mssql-mcp-server", description="APP attribute sent to the server")

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "SessionConfig":
        if self.pool_min > self.pool_max:
            raise ValueError("pool_min must not exceed pool_max")
        return self

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create session configuration from environment variables."""
        # 優先使用環境變數，沒有則自動檢測驅動程式
        driver = os.getenv("MSSQL_DRIVER") or detect_mssql_driver()

        return cls(
            driver=driver,
            connect_timeout=_env_int("DB_TIMEOUT", 15),
            request_timeout=_env_int("DB_COMMAND_TIMEOUT", 30),
            pool_min=_env_int("DB_POOL_MIN", 0),
            pool_max=_env_int("DB_POOL_MAX", 5),
            pool_recycle=_env_int("DB_POOL_RECYCLE", -1),
            application_name=os.getenv("MSSQL_APP_NAME", "mssql-mcp-server")
        )


class ServerConfig(BaseModel):
    """MCP server, logging and HTTP transport configuration."""

    server_name: str = Field(default="sql-server-mcp", description="MCP server name identifier")
    tool_prefix: str = Field(default="", description="Optional prefix for MCP tool names (e.g. mssql_query)")
    log_level: str = Field(default="INFO", description="Logging level")
    expose_sensitive_info: bool = False  # Control whether the status tool reports the login user
    http_host: str = "127.0.0.1"
    http_port: int = Field(default=8000, ge=1, le=65535)
    cors_allowed_origins: List[str] = Field(default_factory=list)
    cors_preflight_max_age: int = Field(default=600, description="CORS preflight max age in seconds")

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create server configuration from environment variables."""
        origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
        return cls(
            server_name=os.getenv("MCP_SERVER_NAME", "sql-server-mcp"),
            tool_prefix=os.getenv("TOOL_PREFIX", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            expose_sensitive_info=_env_bool("EXPOSE_SENSITIVE_INFO", False),
            http_host=os.getenv("HTTP_HOST", "127.0.0.1"),
            http_port=_env_int("HTTP_PORT", 8000),
            cors_allowed_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
            cors_preflight_max_age=_env_int("CORS_PREFLIGHT_MAX_AGE", 600)
        )


class AppConfig(BaseModel):
    """Application configuration combining all configs."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create full application configuration from environment variables."""
        try:
            return cls(
                session=SessionConfig.from_env(),
                server=ServerConfig.from_env()
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError subclass
            raise ConfigurationError(f"Invalid configuration: {e}")
