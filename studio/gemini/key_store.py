"""
Gemini API Key Store
Owns the user-supplied API keys, the active key index and their persistence
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

import httpx

from studio.utils.config import Settings, get_settings
from studio.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_MARKER = "PLACEHOLDER"

STORAGE_KEYS = "gemini_api_keys"
STORAGE_ACTIVE_INDEX = "gemini_active_key_index"
STORAGE_LEGACY_KEY = "gemini_api_key"


def is_placeholder_key(key: Optional[str]) -> bool:
    """Empty values and anything containing the placeholder marker are not keys"""
    if not key or not key.strip():
        return True
    return PLACEHOLDER_MARKER in key.upper()


def mask_key(key: str) -> str:
    """Render a key for logs without revealing it"""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


class KeyValueStorage(Protocol):
    """Durable string key-value storage (the browser's localStorage equivalent)"""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, used in tests and for throwaway sessions"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage:
    """
    Storage backed by a single JSON document on disk.

    Storage is best-effort: read and write failures are logged and the
    in-memory view keeps working.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data

        self._data = {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(raw, dict):
                self._data = {str(k): str(v) for k, v in raw.items()}
            else:
                logger.warning(f"Ignoring malformed credential storage at {self.path}")
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read credential storage {self.path}: {e}")
        return self._data

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._load(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write credential storage {self.path}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._flush()


class CredentialStore:
    """
    Ordered set of API keys with one active key.

    Features:
    - Startup resolution from storage, legacy storage, environment, then a remote endpoint
    - Placeholder keys are never accepted
    - Every mutation is persisted
    - Round-robin rotation when the active key is exhausted

    Rotation takes no lock. Concurrent callers may each rotate, moving the
    index more than one step; any next key being tried is all that matters.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        env_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        endpoint_timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the store.

        Args:
            storage: Durable key-value storage for the key list and active index
            env_key: Build/environment supplied default key
            endpoint_url: URL returning {"apiKey": "..."} used as last resort
            endpoint_timeout: Timeout in seconds for the endpoint request
            http_client: Optional shared httpx client for the endpoint request
        """
        self.storage = storage
        self.env_key = env_key
        self.endpoint_url = endpoint_url
        self.endpoint_timeout = endpoint_timeout
        self._http_client = http_client

        self._keys: List[str] = []
        self._active_index: Optional[int] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStorage] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "CredentialStore":
        """Build a store wired to the configured file storage and defaults"""
        settings = settings if settings is not None else get_settings()
        return cls(
            storage=storage if storage is not None else JsonFileStorage(settings.credential_store_path),
            env_key=settings.gemini_api_key,
            endpoint_url=settings.default_key_endpoint,
            endpoint_timeout=settings.default_key_endpoint_timeout,
            http_client=http_client,
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    @property
    def active_index(self) -> Optional[int]:
        return self._active_index

    @property
    def active_key(self) -> Optional[str]:
        """The key to use for the next call, or None when unconfigured"""
        if not self.is_configured:
            return None
        return self._keys[self._active_index]

    @property
    def is_configured(self) -> bool:
        if not self._keys or self._active_index is None:
            return False
        return not is_placeholder_key(self._keys[self._active_index])

    def __len__(self) -> int:
        return len(self._keys)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """
        Resolve the key set once at startup.

        Priority: saved key list, legacy single-key slot (migrated), environment
        default, remote default-key endpoint.

        Returns:
            bool: Whether a usable key was found
        """
        if self._load_saved_keys():
            source = "storage"
        elif self._migrate_legacy_key():
            source = "legacy storage"
        elif not is_placeholder_key(self.env_key):
            self._replace([self.env_key.strip()])
            source = "environment"
        else:
            remote_key = await self._fetch_default_key()
            if remote_key:
                self._replace([remote_key])
                source = "default key endpoint"
            else:
                source = None

        if source:
            logger.info(f"Loaded {len(self._keys)} API key(s) from {source}")
        else:
            logger.warning("No API key configured")
        return self.is_configured

    def _load_saved_keys(self) -> bool:
        raw = self.storage.get(STORAGE_KEYS)
        if not raw:
            return False

        try:
            saved = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable saved API key list")
            return False
        if not isinstance(saved, list):
            return False

        keys = self._valid_keys(saved)
        if not keys:
            return False

        index = 0
        raw_index = self.storage.get(STORAGE_ACTIVE_INDEX)
        if raw_index is not None:
            try:
                index = int(raw_index)
            except ValueError:
                index = 0
        if not 0 <= index < len(keys):
            index = 0

        self._keys = keys
        self._active_index = index
        return True

    def _migrate_legacy_key(self) -> bool:
        legacy = self.storage.get(STORAGE_LEGACY_KEY)
        if is_placeholder_key(legacy):
            return False

        self._replace([legacy.strip()])
        self._persist()
        self.storage.remove(STORAGE_LEGACY_KEY)
        logger.info("Migrated legacy single API key into the key list")
        return True

    async def _fetch_default_key(self) -> Optional[str]:
        if not self.endpoint_url:
            return None

        try:
            if self._http_client is not None:
                response = await self._http_client.get(self.endpoint_url)
            else:
                async with httpx.AsyncClient(timeout=self.endpoint_timeout) as client:
                    response = await client.get(self.endpoint_url)
        except httpx.HTTPError as e:
            logger.info(f"Could not reach default key endpoint {self.endpoint_url}: {e}")
            return None

        if not response.is_success:
            logger.error(
                f"Failed to fetch default API key: {response.status_code} {response.reason_phrase}"
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Default key endpoint returned invalid JSON")
            return None

        key = data.get("apiKey") if isinstance(data, dict) else None
        if not isinstance(key, str) or is_placeholder_key(key):
            return None
        return key.strip()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_single(self, key: Optional[str]) -> None:
        """Replace the whole set with one key, or clear it for empty/placeholder values"""
        self.set_all([key] if key is not None else [])

    def set_all(self, keys: List[Optional[str]]) -> None:
        """Replace the set with the valid keys from ``keys``"""
        self._replace(self._valid_keys(keys))
        self._persist()
        logger.info(f"API key set replaced ({len(self._keys)} key(s))")

    def add(self, key: Optional[str]) -> None:
        """Append a key; empty and placeholder values are ignored"""
        if is_placeholder_key(key):
            return

        self._keys.append(key.strip())
        if self._active_index is None:
            self._active_index = 0
        self._persist()
        logger.info(f"Added API key {mask_key(key.strip())} ({len(self._keys)} total)")

    def remove(self, index: int) -> None:
        """Delete the key at ``index``; out-of-range indexes are ignored"""
        if not 0 <= index < len(self._keys):
            return

        removed = self._keys.pop(index)
        if not self._keys:
            self._active_index = None
        elif self._active_index is None or self._active_index >= len(self._keys):
            self._active_index = len(self._keys) - 1
        self._persist()
        logger.info(f"Removed API key {mask_key(removed)} ({len(self._keys)} left)")

    def rotate(self) -> bool:
        """
        Advance to the next key, wrapping around.

        Returns:
            bool: False when there is no other key to move to
        """
        if len(self._keys) <= 1:
            return False

        current = self._active_index or 0
        self._active_index = (current + 1) % len(self._keys)
        self.storage.set(STORAGE_ACTIVE_INDEX, str(self._active_index))
        logger.warning(
            f"Rotated API key [{current}] -> [{self._active_index}] "
            f"({mask_key(self._keys[self._active_index])})"
        )
        return True

    def _replace(self, keys: List[str]) -> None:
        self._keys = keys
        self._active_index = 0 if keys else None

    def _persist(self) -> None:
        if not self._keys:
            self.storage.remove(STORAGE_KEYS)
            self.storage.remove(STORAGE_ACTIVE_INDEX)
            return
        self.storage.set(STORAGE_KEYS, json.dumps(self._keys))
        self.storage.set(STORAGE_ACTIVE_INDEX, str(self._active_index))

    @staticmethod
    def _valid_keys(keys: List[Optional[str]]) -> List[str]:
        return [
            key.strip()
            for key in keys
            if isinstance(key, str) and not is_placeholder_key(key)
        ]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_status_summary(self) -> str:
        """
        Get a human-readable status summary.

        Returns:
            str: Formatted status string
        """
        lines = [
            "Gemini Key Store Status",
            f"  Total Keys: {len(self._keys)}",
            f"  Configured: {'Yes' if self.is_configured else 'No'}",
        ]
        for i, key in enumerate(self._keys):
            marker = "ACTIVE" if i == self._active_index else "standby"
            lines.append(f"  [{i}] {mask_key(key)}: {marker}")
        return "\n".join(lines)
