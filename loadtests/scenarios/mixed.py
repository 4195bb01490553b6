"""Mixed storefront workload scenario.

Combines the checkout journeys with weights that model a normal day of
traffic. This is the recommended scenario for load baseline testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.checkout import CustomerCancellationJourney, FulfillmentJourney, GuestCheckoutJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mix of storefront activity.

    - Guest checkout with tracking: the most common path
    - Fulfillment through delivery: admin activity on placed orders
    - Customer cancellation: the unhappy path that returns stock
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        GuestCheckoutJourney: 6,
        FulfillmentJourney: 3,
        CustomerCancellationJourney: 2,
    }
