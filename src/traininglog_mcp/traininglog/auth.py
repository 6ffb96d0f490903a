"""Bearer token handling for the TrainingLog server."""

from traininglog_mcp.traininglog.store import LocalStore, TOKEN_KEY


class TokenAuth:
    """Holds the optional bearer token, persisted in the local store.

    An explicit token (from configuration) takes precedence over the one saved
    by the last successful login.
    """

    def __init__(self, store: LocalStore | None = None, token: str | None = None):
        self._store = store
        self._token = token

    @property
    def token(self) -> str | None:
        if self._token:
            return self._token
        if self._store is not None:
            saved = self._store.get(TOKEN_KEY)
            if isinstance(saved, str) and saved:
                return saved
        return None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def set_token(self, token: str) -> None:
        self._token = token
        if self._store is not None:
            self._store.set(TOKEN_KEY, token)

    def clear(self) -> None:
        self._token = None
        if self._store is not None:
            self._store.remove(TOKEN_KEY)

    def get_auth_header(self) -> dict[str, str]:
        token = self.token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}
