"""Synchronous command dispatch with optimistic concurrency.

Product stock, discount usage, carts and orders are guarded by the version
column every aggregate carries. A unit of work that read a row another
writer has since committed fails on commit with ``ExpectedVersionError``,
whichever process or worker that other writer lives in. Protean re-runs the
handler in a fresh unit of work a bounded number of times
(``[server.version_retry]`` in ``domain.toml``); a conflict that survives
every attempt is reported as ``CheckoutBusy``.
"""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from storefront.domain import logger
from storefront.errors import CheckoutBusy


def version_retries() -> int:
    config = current_domain.config.get("server", {}).get("version_retry", {})
    if not config.get("enabled", True):
        return 0
    return int(config.get("max_retries", 0))


def process(command):
    """Process ``command`` in its own unit of work and return the handler's result."""
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        attempts = version_retries() + 1
        logger.warning(
            "Write conflict persisted after retries",
            command=command.__class__.__name__,
            attempts=attempts,
        )
        raise CheckoutBusy(command.__class__.__name__, attempts) from exc
