# src/kraken_spot_sdk/rest/models.py

"""
Result payloads of the endpoints exposed by KrakenSpotRestClient.

Each one is wrapped in the generic KrakenResponse envelope. Amounts are kept
as strings, as sent by the API, to avoid float rounding.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ..core.models import AppBaseModel


class SystemStatusValue(str, Enum):
    ONLINE = "online"
    MAINTENANCE = "maintenance"
    CANCEL_ONLY = "cancel_only"
    POST_ONLY = "post_only"


class ExportReportType(str, Enum):
    TRADES = "trades"
    LEDGERS = "ledgers"


class ExportReportFormat(str, Enum):
    CSV = "CSV"
    TSV = "TSV"


class ServerTime(AppBaseModel):
    unixtime: int
    rfc1123: Optional[str] = None


class SystemStatus(AppBaseModel):
    status: SystemStatusValue
    timestamp: str


class AssetInfo(AppBaseModel):
    aclass: str
    altname: str
    decimals: int
    display_decimals: int
    collateral_value: Optional[float] = None
    status: Optional[str] = None


class TradeBalance(AppBaseModel):
    """Margin trading summary. Field names follow the API abbreviations."""

    equivalent_balance: str = Field(..., alias="eb")
    trade_balance: str = Field(..., alias="tb")
    margin: Optional[str] = Field(default=None, alias="m")
    unrealized_net_pnl: Optional[str] = Field(default=None, alias="n")
    cost_basis: Optional[str] = Field(default=None, alias="c")
    floating_valuation: Optional[str] = Field(default=None, alias="v")
    equity: Optional[str] = Field(default=None, alias="e")
    free_margin: Optional[str] = Field(default=None, alias="mf")
    margin_level: Optional[str] = Field(default=None, alias="ml")
    unexecuted_value: Optional[str] = Field(default=None, alias="uv")


class CancelOrderResult(AppBaseModel):
    count: int
    pending: Optional[bool] = None


class ExportReportRequested(AppBaseModel):
    id: str


class WebsocketToken(AppBaseModel):
    token: str
    expires: int
