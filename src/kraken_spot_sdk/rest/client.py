# src/kraken_spot_sdk/rest/client.py

# --- Built Ins ---
from typing import Any, Optional

# --- Installed ---
import aiohttp
from loguru import logger as log

# --- Local Application Imports ---
from .constants import ApiPaths
from .dispatcher import DispatchResult, RestDispatcher
from .models import (
    AssetInfo,
    CancelOrderResult,
    ExportReportFormat,
    ExportReportRequested,
    ExportReportType,
    ServerTime,
    SystemStatus,
    TradeBalance,
    WebsocketToken,
)
from ..auth.authorizer import Authorizer, KrakenRestAuthorizer, encode_nonce_and_security_options
from ..auth.nonce import ClockNonceSource, NonceSource
from ..config.models import ClientSettings
from ..core.context import RequestContext
from ..core.models import FORM_CONTENT_TYPE, KrakenResponse, RequestDescriptor, SecurityOptions


class KrakenSpotRestClient:
    """
    Client for the Kraken spot REST API.

    Manages an aiohttp session (unless one is injected) and exposes one coroutine
    per endpoint. Every operation returns a DispatchResult whose payload is the
    decoded KrakenResponse envelope. A call that does not raise may still carry
    business errors in `payload.error`.

    Without credentials (and without a custom authorizer) the client runs in
    public-only mode: private operations raise MissingCredentialsError before
    any network call.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
        authorizer: Optional[Authorizer] = None,
        nonce_source: Optional[NonceSource] = None,
    ):
        self._settings = settings or ClientSettings()
        if authorizer is None and self._settings.has_credentials:
            authorizer = KrakenRestAuthorizer.from_settings(self._settings)
        self._nonce_source = nonce_source or ClockNonceSource()
        self._owns_session = False
        self._dispatcher = RestDispatcher(
            base_url=self._settings.base_url,
            user_agent=self._settings.user_agent,
            http_session=http_session,
            authorizer=authorizer,
            request_timeout_s=self._settings.request_timeout_s,
        )

        if authorizer is None:
            log.warning("Kraken REST client has no credentials: only public endpoints are available.")
        log.info(f"Kraken REST client initialized for {self._settings.base_url}.")

    @property
    def dispatcher(self) -> RestDispatcher:
        return self._dispatcher

    @property
    def public_only(self) -> bool:
        return self._dispatcher.public_only

    # --- SESSION MANAGEMENT ---

    async def connect(self):
        """Creates an aiohttp session unless an active one was injected."""
        session = self._dispatcher.http_session
        if session is None or session.closed:
            self._dispatcher.http_session = aiohttp.ClientSession()
            self._owns_session = True
            log.info("Aiohttp session established for Kraken REST API.")

    async def close(self):
        """Closes the session if this client created it. Injected sessions are managed externally."""
        session = self._dispatcher.http_session
        if self._owns_session and session is not None and not session.closed:
            await session.close()
            log.info("Aiohttp session for Kraken REST API closed.")
        self._owns_session = False

    async def __aenter__(self) -> "KrakenSpotRestClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # --- HELPERS ---

    def next_nonce(self) -> int:
        return self._nonce_source.next()

    async def _get_public(
        self,
        operation: str,
        path: str,
        receiver: Any,
        query: Optional[dict[str, Any]] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        descriptor = RequestDescriptor(operation=operation, path=path, method="GET", query=query)
        return await self._dispatcher.send(descriptor, receiver, ctx)

    async def _post_private(
        self,
        operation: str,
        path: str,
        receiver: Any,
        nonce: Optional[int],
        secopts: Optional[SecurityOptions],
        params: Optional[dict[str, Any]] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        form = encode_nonce_and_security_options(
            {}, nonce if nonce is not None else self.next_nonce(), secopts
        )
        if params:
            form.update({k: v for k, v in params.items() if v is not None})
        descriptor = RequestDescriptor(
            operation=operation,
            path=path,
            method="POST",
            content_type=FORM_CONTENT_TYPE,
            body=form,
        )
        return await self._dispatcher.send(descriptor, receiver, ctx)

    # --- MARKET DATA ---

    async def get_server_time(self, ctx: Optional[RequestContext] = None) -> DispatchResult:
        """Gets the server time."""
        return await self._get_public("GetServerTime", ApiPaths.SERVER_TIME, KrakenResponse[ServerTime], ctx=ctx)

    async def get_system_status(self, ctx: Optional[RequestContext] = None) -> DispatchResult:
        """Gets the current system status or trading mode."""
        return await self._get_public(
            "GetSystemStatus", ApiPaths.SYSTEM_STATUS, KrakenResponse[SystemStatus], ctx=ctx
        )

    async def get_asset_info(
        self,
        assets: Optional[list[str]] = None,
        asset_class: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Gets information about the assets available for deposit, withdrawal, trading and staking."""
        query: dict[str, Any] = {}
        if assets:
            query["asset"] = ",".join(assets)
        if asset_class:
            query["aclass"] = asset_class
        return await self._get_public(
            "GetAssetInfo", ApiPaths.ASSET_INFO, KrakenResponse[dict[str, AssetInfo]], query=query, ctx=ctx
        )

    # --- ACCOUNT DATA ---

    async def get_account_balance(
        self,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Retrieves all cash balances, net of pending withdrawals."""
        log.info("[API CALL] Fetching account balance")
        return await self._post_private(
            "GetAccountBalance", ApiPaths.ACCOUNT_BALANCE, KrakenResponse[dict[str, str]], nonce, secopts, ctx=ctx
        )

    async def get_trade_balance(
        self,
        asset: Optional[str] = None,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Retrieves a summary of collateral balances, margin position valuations, equity and margin level."""
        return await self._post_private(
            "GetTradeBalance",
            ApiPaths.TRADE_BALANCE,
            KrakenResponse[TradeBalance],
            nonce,
            secopts,
            params={"asset": asset},
            ctx=ctx,
        )

    async def request_export_report(
        self,
        report: ExportReportType,
        description: str,
        format: ExportReportFormat = ExportReportFormat.CSV,
        starttm: Optional[int] = None,
        endtm: Optional[int] = None,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Requests a trades or ledgers export. The report is built asynchronously by the exchange."""
        log.info(f"[API CALL] Requesting {ExportReportType(report).value} export report '{description}'")
        params = {
            "report": ExportReportType(report).value,
            "description": description,
            "format": ExportReportFormat(format).value,
            "starttm": starttm,
            "endtm": endtm,
        }
        return await self._post_private(
            "RequestExportReport",
            ApiPaths.REQUEST_EXPORT_REPORT,
            KrakenResponse[ExportReportRequested],
            nonce,
            secopts,
            params=params,
            ctx=ctx,
        )

    async def retrieve_data_export(
        self,
        report_id: str,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """
        Downloads a processed export report.

        On success the payload is an open RawStream over the zip archive: the
        caller must close it. When the API answers with a JSON envelope instead
        (e.g. unknown report), the payload is that decoded envelope.
        """
        log.info(f"[API CALL] Retrieving data export: {report_id}")
        return await self._post_private(
            "RetrieveDataExport",
            ApiPaths.RETRIEVE_DATA_EXPORT,
            KrakenResponse[Any],
            nonce,
            secopts,
            params={"id": report_id},
            ctx=ctx,
        )

    # --- TRADING ---

    async def cancel_order(
        self,
        txid: str,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Cancels a particular open order (or set of open orders) by txid or userref."""
        log.info(f"[API CALL] Attempting to cancel order: {txid}")
        return await self._post_private(
            "CancelOrder",
            ApiPaths.CANCEL_ORDER,
            KrakenResponse[CancelOrderResult],
            nonce,
            secopts,
            params={"txid": txid},
            ctx=ctx,
        )

    # --- WEBSOCKET ---

    async def get_websocket_token(
        self,
        nonce: Optional[int] = None,
        secopts: Optional[SecurityOptions] = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """Gets an authentication token for the private websocket feeds."""
        return await self._post_private(
            "GetWebsocketToken",
            ApiPaths.GET_WEBSOCKET_TOKEN,
            KrakenResponse[WebsocketToken],
            nonce,
            secopts,
            ctx=ctx,
        )
