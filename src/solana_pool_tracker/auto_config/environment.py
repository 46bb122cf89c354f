import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from solana_pool_tracker import constants

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = 'https://api.mainnet-beta.solana.com'


def load_env_file(env_path: Optional[Path] = None) -> bool:
    """
    Load environment variables from a .env file using the python-dotenv library.

    Args:
        env_path: Optional path to the .env file. Defaults to config/.env in
                  the project root.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    if env_path is None:
        project_root = Path(__file__).resolve().parents[3]
        env_path = project_root / "config" / ".env"

    if not Path(env_path).exists():
        logger.debug(f"No .env file found at {env_path}")
        return False

    try:
        return load_dotenv(dotenv_path=env_path, override=True)
    except OSError as e:
        logger.warning(f"Could not load .env file from {env_path}: {e}")
        return False


class Config:
    def __init__(self, env_path: Optional[Path] = None) -> None:
        load_env_file(env_path)

        # Solana RPC Configuration
        self.solana_rpc_url = self._get_env_var('SOLANA_RPC_URL', default=DEFAULT_RPC_URL)
        wss_url = self._get_env_var('SOLANA_WSS_URL')
        self.solana_wss_url: Optional[str] = wss_url if wss_url else None

        # Rate Limiting Configuration
        self.max_requests_per_second = self._get_int_var(
            'MAX_REQUESTS_PER_SECOND', default=8
        )

        # Tracker Configuration
        self.resample_interval = self._get_int_var(
            'RESAMPLE_INTERVAL_SECONDS', default=constants.RESAMPLE_INTERVAL_SECONDS
        )
        self.max_tracked_pools = self._get_int_var(
            'MAX_TRACKED_POOLS', default=constants.MAX_TRACKED_POOLS
        )
        self.event_queue_size = self._get_int_var(
            'EVENT_QUEUE_SIZE', default=constants.EVENT_QUEUE_SIZE
        )
        self.worker_count = self._get_int_var('WORKER_COUNT', default=constants.WORKER_COUNT)

        # Logging Configuration
        log_level_str = self._get_env_var('LOG_LEVEL', default='INFO').upper()
        level_map = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL
        }
        if log_level_str not in level_map:
            logger.warning(f"Invalid LOG_LEVEL: {log_level_str}. Using INFO.")
            self.log_level = logging.INFO
        else:
            self.log_level = level_map[log_level_str]

        self._validate_config()

    def _get_env_var(self, key: str, default: str = '') -> str:
        value = os.environ.get(key)
        return value if value is not None else default

    def _get_int_var(self, key: str, default: int) -> int:
        """Read a positive integer, falling back to the default on bad input."""
        raw = self._get_env_var(key, default=str(default))
        try:
            value = int(raw)
        except (ValueError, TypeError):
            logger.warning(f"Invalid {key} value {raw!r}. Using default: {default}")
            return default
        if value <= 0:
            logger.warning(f"{key} must be positive, got {value}. Using default: {default}")
            return default
        return value

    def _validate_config(self) -> None:
        """Validate configuration values with fallbacks for invalid values."""
        if not self.solana_rpc_url or not self.solana_rpc_url.startswith('http'):
            logger.warning(
                f"Invalid SOLANA_RPC_URL: {self.solana_rpc_url}. Using default public RPC endpoint."
            )
            self.solana_rpc_url = DEFAULT_RPC_URL

        if self.solana_wss_url is not None and not self.solana_wss_url.startswith('ws'):
            logger.warning(f"Invalid SOLANA_WSS_URL: {self.solana_wss_url}. Deriving from RPC URL.")
            self.solana_wss_url = None

        if 'api.mainnet-beta.solana.com' in self.solana_rpc_url:
            logger.warning(
                "Using public Solana RPC. Consider using a dedicated RPC provider for better performance."
            )

    def get_rpc_url(self) -> str:
        return self.solana_rpc_url

    def get_wss_url(self) -> str:
        """The websocket endpoint, derived from the RPC URL when not configured."""
        if self.solana_wss_url is not None:
            return self.solana_wss_url
        if self.solana_rpc_url.startswith('https://'):
            return 'wss://' + self.solana_rpc_url[len('https://'):]
        return 'ws://' + self.solana_rpc_url[len('http://'):]

    def get_provider_key(self) -> str:
        url = self.solana_rpc_url.lower()
        if 'quiknode' in url:
            return "quicknode"
        elif 'alchemy' in url:
            return "alchemy"
        elif 'helius' in url:
            return "helius"
        elif 'api.mainnet-beta.solana.com' in url:
            return "public_rpc"
        else:
            return "custom_rpc"

    def _mask_url(self, url: str) -> str:
        """Mask sensitive parts of URL for display."""
        if not url:
            return "None"

        # last part might contain API key
        parts = url.split('/')
        if len(parts) >= 4:
            for i in range(len(parts) - 1, -1, -1):
                if parts[i] and len(parts[i]) > 10:
                    parts[i] = '*' * 8
                    break

        return '/'.join(parts)

    def print_config(self) -> None:
        """Print current configuration (excluding sensitive data)."""
        print("Solana Pool Tracker Configuration:")
        print(f"   RPC URL: {self._mask_url(self.solana_rpc_url)}")
        print(f"   WSS URL: {self._mask_url(self.get_wss_url())}")
        print(f"   Rate Limit: {self.max_requests_per_second} req/sec")
        print(f"   Resample Interval: {self.resample_interval}s")
        print(f"   Max Tracked Pools: {self.max_tracked_pools}")
        print(f"   Log Level: {logging.getLevelName(self.log_level)}")
        print(f"   Provider: {self.get_provider_key()}")
