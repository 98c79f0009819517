"""Checkout relay: verifies Stripe checkout webhooks and sends sale emails."""

__version__ = "0.1.0"
