# shopcore/utils/retry.py
import logging

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_fixed,
    wait_incrementing,
    retry_if_exception_type,
    before_sleep_log,
)

from shopcore.domain.errors import VersionConflict, ConcurrencyExhausted, CartClearConflict
from shopcore.utils.settings import (
    CART_MAX_ATTEMPTS,
    CART_BACKOFF_SECONDS,
    CART_CLEAR_MAX_ATTEMPTS,
    CART_CLEAR_DELAY_SECONDS,
)
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def _log_conflict(retry_state):
    logger.warning(
        f"Optimistic locking failure in {retry_state.fn.__name__}, "
        f"attempt={retry_state.attempt_number}/{CART_MAX_ATTEMPTS}, "
        f"retrying in {retry_state.next_action.sleep:.3f}s"
    )


def _raise_exhausted(retry_state):
    logger.error(
        f"{retry_state.fn.__name__} failed after {retry_state.attempt_number} attempts"
    )
    raise ConcurrencyExhausted(retry_state.attempt_number) from retry_state.outcome.exception()


def optimistic_retry():
    #caly cykl odczyt -> zmiana -> zapis warunkowy jest powtarzany,
    #wiec kazda proba czyta koszyk od nowa
    return retry(
        stop=stop_after_attempt(CART_MAX_ATTEMPTS),
        wait=wait_incrementing(start=CART_BACKOFF_SECONDS, increment=CART_BACKOFF_SECONDS),
        retry=retry_if_exception_type(VersionConflict),
        before_sleep=_log_conflict,
        retry_error_callback=_raise_exhausted,
    )


def cart_clear_retry():
    #timeout liczy sie jako zwykla nieudana proba
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_CLEAR_MAX_ATTEMPTS),
        wait=wait_fixed(CART_CLEAR_DELAY_SECONDS),
        retry=retry_if_exception_type(
            (CartClearConflict, requests.Timeout, requests.ConnectionError)
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
