"""HTTP surface for the checkout relay (FastAPI + Mangum)."""
