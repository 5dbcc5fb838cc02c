"""Checkout initiation for a selected pricing plan."""

import logging
from dataclasses import dataclass

import httpx

from kinrecall.adapters.checkout_client import CheckoutClient
from kinrecall.domain.models import CheckoutOutcome, Identity
from kinrecall.domain.plans import find_plan

logger = logging.getLogger(__name__)

CHECKOUT_FAILED_NOTICE = "Checkout is unavailable right now. Please try again."
CHECKOUT_UNCONFIGURED_NOTICE = "Checkout is not configured for this site."
SIGN_IN_REQUIRED_NOTICE = "Sign in and choose a family before checking out."


@dataclass
class CheckoutService:
    """Turns a plan choice into a redirect or a user-facing notice.

    Reads identity and family but never changes session state.
    """

    client: CheckoutClient | None

    async def start_checkout(
        self, plan: str, identity: Identity | None, family_id: str | None
    ) -> CheckoutOutcome:
        """Request a checkout session for the plan."""
        if find_plan(plan) is None:
            return CheckoutOutcome(notice=f"Unknown plan: {plan}")
        if identity is None or family_id is None:
            return CheckoutOutcome(notice=SIGN_IN_REQUIRED_NOTICE)
        if self.client is None:
            return CheckoutOutcome(notice=CHECKOUT_UNCONFIGURED_NOTICE)

        payload = {"plan": plan, "user_id": identity, "family_id": family_id}
        try:
            body = await self.client.create_checkout_session(payload)
        except httpx.HTTPError:
            logger.exception("Checkout request failed", extra={"plan": plan})
            return CheckoutOutcome(notice=CHECKOUT_FAILED_NOTICE)

        url = body.get("url")
        if isinstance(url, str) and url:
            return CheckoutOutcome(redirect_url=url)
        error = body.get("error")
        if isinstance(error, str) and error:
            logger.warning("Checkout rejected: %s", error, extra={"plan": plan})
            return CheckoutOutcome(notice=f"Checkout failed: {error}")
        logger.warning("Unexpected checkout response", extra={"plan": plan})
        return CheckoutOutcome(notice=CHECKOUT_FAILED_NOTICE)
