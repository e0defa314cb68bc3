import logging
import time
from typing import Any, Dict, Optional

import requests

from config import METRICS_TIMEOUT_SECONDS, METRICS_RETRY_COUNT, METRICS_RETRY_BACKOFF_BASE

logger = logging.getLogger(__name__)


class MetricsFetchError(Exception):
    pass


def _get_json(url: str, timeout: int) -> Dict[str, Any]:
    try:
        r = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise MetricsFetchError(f"request failed: {e}")
    if r.status_code != 200:
        raise MetricsFetchError(f"metrics endpoint returned status {r.status_code}: {r.text}")
    try:
        data = r.json()
    except ValueError as e:
        raise MetricsFetchError(f"metrics endpoint returned invalid JSON: {e}")
    if not isinstance(data, dict):
        raise MetricsFetchError(f"unexpected metrics payload type: {type(data).__name__}")
    return data


def fetch_pod_metrics(url: str,
                      timeout: Optional[int] = None,
                      retries: Optional[int] = None,
                      backoff_base: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """
    Fetch a metrics.k8s.io PodMetricsList payload.

    Retries with exponential backoff. Returns None when the endpoint cannot be
    used at all (metrics-server missing, connection refused, bad payload) so
    callers only ever see "data present" or "data absent".
    """
    timeout = METRICS_TIMEOUT_SECONDS if timeout is None else timeout
    retries = METRICS_RETRY_COUNT if retries is None else retries
    backoff_base = METRICS_RETRY_BACKOFF_BASE if backoff_base is None else backoff_base

    last_error: Optional[Exception] = None
    for attempt in range(1, retries + 1):
        try:
            data = _get_json(url, timeout)
            logger.info(f"Fetched {len(data.get('items') or [])} pod metric samples from {url}")
            return data
        except MetricsFetchError as e:
            last_error = e
            logger.warning(f"Metrics fetch attempt {attempt}/{retries} failed: {e}")
            if attempt < retries:
                time.sleep(backoff_base * (2 ** (attempt - 1)))

    logger.warning(f"Metrics unavailable from {url}: {last_error}")
    return None
