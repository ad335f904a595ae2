"""
pytest 配置文件

提供測試環境設定、fixtures 和假的資料庫連接器（不需要真實的 SQL Server）
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest
from dotenv import load_dotenv

# 添加 src 目錄到 Python 路徑
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# 載入環境變數
load_dotenv()

from core.config import SessionConfig  # noqa: E402
from database.async_connectors import AsyncDatabaseConnector, QueryResult  # noqa: E402
from database.session_manager import SessionManager  # noqa: E402


def default_responder(statement: str, values: List[Any]) -> QueryResult:
    """依語句回傳假的查詢結果"""
    # 參數化查詢時，原始 SQL 是 sp_executesql 的第一個參數
    if statement.startswith("EXEC sp_executesql") and values:
        statement = values[0]

    if "@@VERSION" in statement:
        rows = [{"version": "Microsoft SQL Server 2022 (RTM) - 16.0.1000.6"}]
    elif "sys.databases" in statement:
        rows = [{"name": "tempdb"}, {"name": "master"}, {"name": "model"}, {"name": "msdb"}]
    elif "sys.tables" in statement:
        rows = [
            {"schemaName": "sales", "tableName": "orders"},
            {"schemaName": "dbo", "tableName": "users"},
            {"schemaName": "dbo", "tableName": "accounts"},
        ]
    elif "sys.schemas" in statement:
        rows = [{"name": "sys"}, {"name": "dbo"}, {"name": "sales"}]
    elif statement.strip().upper() == "SELECT 1 AS X":
        rows = [{"x": 1}]
    else:
        rows = []
    return QueryResult(rows_affected=[len(rows)], recordset=rows, recordsets=[rows])


class FakeConnector(AsyncDatabaseConnector):
    """記錄呼叫的假連接器"""

    def __init__(self, params, settings, open_error: Optional[BaseException] = None,
                 responder: Optional[Callable[[str, List[Any]], QueryResult]] = None,
                 delay: float = 0):
        super().__init__(params, settings)
        self.open_error = open_error
        self.delay = delay
        self.close_delay = 0
        self.responder = responder or default_responder
        self.opened = False
        self.closed = False
        self.executed = []

    async def open(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def execute(self, statement: str, values: Optional[List[Any]] = None) -> QueryResult:
        self.executed.append((statement, list(values or [])))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.responder(statement, list(values or []))

    async def close(self):
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.closed = True

    @property
    def is_live(self) -> bool:
        return self.opened and not self.closed


class ConnectorFactory:
    """可設定失敗情境的連接器工廠"""

    def __init__(self):
        self.created: List[FakeConnector] = []
        self.open_error: Optional[BaseException] = None
        self.responder = None
        self.delay = 0

    def __call__(self, params, settings) -> FakeConnector:
        connector = FakeConnector(params, settings, self.open_error, self.responder, self.delay)
        self.created.append(connector)
        return connector

    @property
    def live(self) -> List[FakeConnector]:
        return [connector for connector in self.created if connector.is_live]


@pytest.fixture
def session_settings():
    """測試用的連線設定（短逾時）"""
    return SessionConfig(driver="ODBC Driver 18 for SQL Server", connect_timeout=2, request_timeout=2)


@pytest.fixture
def connector_factory():
    """假連接器工廠 fixture"""
    return ConnectorFactory()


@pytest.fixture
def session_manager(session_settings, connector_factory):
    """使用假連接器的 SessionManager"""
    return SessionManager(session_settings, connector_factory=connector_factory)


@pytest.fixture
def connect_args():
    """最小的 connect 參數"""
    return {"server": "db1", "user": "u", "password": "p"}
