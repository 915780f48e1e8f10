"""
Wire-level names shared with API-X servers
"""


class URLScheme:
    HTTP = "http"
    HTTPS = "https"


class QueryItemKey:
    API_KEY = "api_key"
    APP_SESSION_ID = "app_session_id"


class HTTPHeaderField:
    DATE = "Date"
    CONTENT_TYPE = "Content-Type"
    ACCEPT = "Accept"
    SALT = "salt"


class HTTPHeaderValue:
    CONTENT_TYPE_JSON = "application/json"