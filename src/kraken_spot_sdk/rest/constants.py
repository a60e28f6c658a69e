# src/kraken_spot_sdk/rest/constants.py

"""
Static REST API constants
"""


class ApiPaths:
    """Centralizes the URL paths of the API endpoints, relative to the base URL."""

    # Market Data
    SERVER_TIME = "/public/Time"
    SYSTEM_STATUS = "/public/SystemStatus"
    ASSET_INFO = "/public/Assets"

    # Account Data
    ACCOUNT_BALANCE = "/private/Balance"
    TRADE_BALANCE = "/private/TradeBalance"
    REQUEST_EXPORT_REPORT = "/private/AddExport"
    RETRIEVE_DATA_EXPORT = "/private/RetrieveExport"

    # Trading
    CANCEL_ORDER = "/private/CancelOrder"

    # Websocket
    GET_WEBSOCKET_TOKEN = "/private/GetWebSocketsToken"
