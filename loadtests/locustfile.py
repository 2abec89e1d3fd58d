"""Orders API load testing: Locust entry point.

Usage:
    # Web UI:
    locust -f loadtests/locustfile.py --host http://localhost:3000

    # Headless (CI mode):
    locust -f loadtests/locustfile.py OrderingUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.ordering import OrderingUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Extracts the API error body so the log shows
    "Cannot move order from shipped to shipped: ..." instead of just "400".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Check the target is healthy before the load begins."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    try:
        resp = requests.get(f"{environment.host}/health", timeout=5)
        print(f"[LOADTEST] Health: {resp.status_code} {resp.text}")
    except requests.RequestException as e:
        print(f"[LOADTEST] Health check failed: {e}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Report how many orders remain in the listing when the test ends."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    try:
        resp = requests.get(f"{environment.host}/orders", timeout=5)
        body = resp.json()
        more = " (more pages)" if "next" in body else ""
        print(f"[LOADTEST] First page holds {len(body.get('items', []))} orders{more}\n")
    except (requests.RequestException, ValueError) as e:
        print(f"[LOADTEST] Could not read the order listing: {e}\n")
