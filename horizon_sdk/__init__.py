"""
horizon_sdk
───────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from horizon_sdk.tier0_core.logging import configure_logging, get_logger
from horizon_sdk.tier0_core.errors import (
    HorizonError,
    NoActiveHostError,
    NotInitializedError,
    ConfigurationError,
    ConnectionFailure,
    ServerError,
    RateLimitError,
    ClientError,
    DecodeError,
    RetriesExhaustedError,
    EventBusReentrancyError,
)
from horizon_sdk.tier0_core.config import (
    get_config,
    load_config_file,
    HorizonConfig,
    RetryPolicy,
)
from horizon_sdk.tier0_core.http import (
    TypedResponse,
    BinaryResponse,
    WireModel,
    MessageResponse,
)

from horizon_sdk.tier1_runtime.events import (
    EventBus,
    EventKey,
    ConnectionStatus,
    ConnectionStatusData,
    NetworkRequestData,
    NetworkSuccessData,
    NetworkErrorData,
    NetworkRetryData,
    RateLimitData,
)
from horizon_sdk.tier1_runtime.session import SessionState, SessionSnapshot
from horizon_sdk.tier1_runtime.decode import ResponseDecoder, parse_string_map

from horizon_sdk.tier2_reliability.cache import TTLCache
from horizon_sdk.tier2_reliability.health import HostProber, select_host

from horizon_sdk.tier3_platform.api_client import RequestExecutor
from horizon_sdk.tier3_platform.app import HorizonApp
from horizon_sdk.tier3_platform.managers import BaseManager
from horizon_sdk.tier3_platform.remote_config import RemoteConfigManager
from horizon_sdk.tier3_platform.news import NewsManager, NewsEntry
from horizon_sdk.tier3_platform.feedback import FeedbackManager
from horizon_sdk.tier3_platform.cloud_save import CloudSaveManager
from horizon_sdk.tier3_platform.leaderboard import LeaderboardManager, LeaderboardEntry
from horizon_sdk.tier3_platform.gift_codes import GiftCodeManager
from horizon_sdk.tier3_platform.user_logs import UserLogManager, LogType

__version__ = "0.1.0"
__all__ = [
    # logging
    "configure_logging", "get_logger",
    # errors
    "HorizonError", "NoActiveHostError", "NotInitializedError",
    "ConfigurationError", "ConnectionFailure", "ServerError", "RateLimitError",
    "ClientError", "DecodeError", "RetriesExhaustedError", "EventBusReentrancyError",
    # config
    "get_config", "load_config_file", "HorizonConfig", "RetryPolicy",
    # responses
    "TypedResponse", "BinaryResponse", "WireModel", "MessageResponse",
    # events
    "EventBus", "EventKey", "ConnectionStatus", "ConnectionStatusData",
    "NetworkRequestData", "NetworkSuccessData", "NetworkErrorData",
    "NetworkRetryData", "RateLimitData",
    # session
    "SessionState", "SessionSnapshot",
    # decoding
    "ResponseDecoder", "parse_string_map",
    # cache / connection
    "TTLCache", "HostProber", "select_host",
    # executor + app
    "RequestExecutor", "HorizonApp", "BaseManager",
    # managers
    "RemoteConfigManager", "NewsManager", "NewsEntry",
    "FeedbackManager", "CloudSaveManager", "LeaderboardManager", "LeaderboardEntry",
    "GiftCodeManager", "UserLogManager", "LogType",
]
