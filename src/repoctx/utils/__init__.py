"""repoctx utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- retry: Bounded retry policy
- deadline: Caller time budgets mapped onto per-step timeouts
- preflight: VCS client and storage checks (import from repoctx.utils.preflight)
"""

from repoctx.utils.deadline import Deadline
from repoctx.utils.logging import get_logger, setup_logging
from repoctx.utils.retry import RetryPolicy

__all__ = [
    "get_logger",
    "setup_logging",
    "RetryPolicy",
    "Deadline",
]
