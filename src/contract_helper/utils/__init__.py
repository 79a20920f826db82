"""
Utilities shared by the helpers and the lazy call queue.
"""

from contract_helper.utils.logging import (
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from contract_helper.utils.retry import (
    PermanentError,
    RetryConfig,
    calculate_delay,
    retry,
    retry_async,
    with_retry,
)
from contract_helper.utils.callbacks import (
    PromiseCallback,
    maybe_await,
    notify_error,
    notify_success,
    run_promise_with_callback,
    run_with_callback,
)
from contract_helper.utils.pmap import MAP_SKIP, amap

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_async",
    "retry",
    "with_retry",
    "PermanentError",
    # Callbacks
    "PromiseCallback",
    "maybe_await",
    "notify_error",
    "notify_success",
    "run_with_callback",
    "run_promise_with_callback",
    # Mapper
    "amap",
    "MAP_SKIP",
]
