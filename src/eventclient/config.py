"""
Client configuration.

Connection settings for the HTTP backend. Loading them from files or the
environment is left to the application; this module only defines and
validates the value object.
"""

from dataclasses import dataclass

DEFAULT_API_ROOT = "https://api.serialized.io"


@dataclass(frozen=True)
class ClientConfig:
    """
    Connection settings for HttpBackend.

    Attributes:
        api_root: Base URL of the API (trailing slashes are stripped)
        access_key: Value of the access key header
        secret_access_key: Value of the secret access key header
        timeout: Request timeout in seconds

    Example:
        >>> config = ClientConfig(access_key="key", secret_access_key="secret")
        >>> backend = HttpBackend(config)
    """

    access_key: str
    secret_access_key: str
    api_root: str = DEFAULT_API_ROOT
    timeout: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.access_key:
            raise ValueError("access_key must not be empty.")

        if not self.secret_access_key:
            raise ValueError("secret_access_key must not be empty.")

        if not self.api_root.startswith(("http://", "https://")):
            raise ValueError(
                f"api_root must be an http(s) URL, got {self.api_root!r}."
            )
        # frozen: bypass __setattr__ to normalize
        object.__setattr__(self, "api_root", self.api_root.rstrip("/"))

        if self.timeout <= 0:
            raise ValueError(
                f"timeout must be positive, got {self.timeout}. "
                "Use a value like 30.0 (default) seconds."
            )

    def __repr__(self) -> str:
        return (
            f"ClientConfig(api_root={self.api_root!r}, access_key={self.access_key!r}, "
            f"secret_access_key='***', timeout={self.timeout})"
        )


__all__ = ["ClientConfig", "DEFAULT_API_ROOT"]
