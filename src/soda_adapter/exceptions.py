"""
Exception hierarchy shared by the SODA adapter components
"""


class SodaError(Exception):
    """Base exception for all adapter errors"""
    pass


class ConfigurationError(SodaError):
    """Raised when the request or client configuration is invalid"""
    pass


class EnvironmentError(SodaError):
    """Raised when required environment variables are missing"""
    pass


class TransportError(SodaError):
    """Raised when the HTTP transport fails before a response is received"""
    pass


class RemoteError(SodaError):
    """Raised when the SODA service answers with a status code >= 400"""

    def __init__(self, status_code: int, url: str, body: str):
        super().__init__(f"SODA error {status_code}:\nURL: GET {url}\nResponse: {body}")
        self.status_code = status_code
        self.url = url
        self.body = body


class DecodeError(SodaError):
    """Raised when a count, field or metadata response cannot be decoded"""
    pass
