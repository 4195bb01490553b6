"""Storefront load testing: Locust entry point.

Seed the catalog first so the scenarios have stocked variants to buy:

    python src/manage.py seed-catalog --output loadtests/catalog.json

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Mixed workload only:
    locust -f loadtests/locustfile.py MixedWorkloadUser

    # Contention on a single variant:
    locust -f loadtests/locustfile.py HotVariantUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py MixedWorkloadUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.data_generators import ADMIN_HEADERS, load_catalog
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.mixed import MixedWorkloadUser  # noqa: F401
from loadtests.scenarios.stress import HotVariantUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log the storefront error reason for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Check that every seeded variant's movement history still explains its stock."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    try:
        catalog = load_catalog()
    except (OSError, ValueError) as e:
        print(f"[LOADTEST] Could not read the seeded catalog: {e}\n")
        return

    for line in catalog:
        try:
            resp = requests.get(
                f"{environment.host}/stock/variants/{line['variant_id']}/movements",
                headers=ADMIN_HEADERS,
                timeout=10,
            )
        except requests.RequestException as e:
            print(f"[LOADTEST] Could not fetch stock history: {e}\n")
            return

        if resp.status_code != 200:
            print(f"  {line['variant_id']}: {extract_error_detail(resp)}")
            continue

        history = resp.json()
        movements = history["movements"]
        stored = movements[-1]["new_stock"] if movements else 0
        verdict = "ok" if stored == history["replayed_stock"] else "MISMATCH"
        print(f"  {line['variant_id']}: {len(movements)} movements, stock {stored} ({verdict})")
    print()
