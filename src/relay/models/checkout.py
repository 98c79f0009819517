"""Models for checkout sessions and outbound notifications."""

from pydantic import BaseModel, ConfigDict, Field

# 9999-12-31T23:59:59Z, the last second datetime can represent
MAX_UNIX_SECONDS = 253402300799


class CustomerDetails(BaseModel):
    """Customer block of a Stripe checkout session."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(
        default=None,
        description="Email address collected at checkout",
        examples=["buyer@example.com"],
    )
    name: str | None = Field(
        default=None,
        description="Customer name, if collected",
    )


class CheckoutSession(BaseModel):
    """The fields of a completed checkout session this service reads.

    Stripe sends many more fields; they are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    customer_details: CustomerDetails | None = None
    amount_total: int = Field(
        ...,
        description="Total amount in minor currency units",
        examples=[4999],
    )
    currency: str = Field(
        ...,
        description="Three-letter ISO currency code, lowercase",
        examples=["usd"],
    )
    created: int = Field(
        ...,
        ge=0,
        le=MAX_UNIX_SECONDS,
        description="Session creation time (unix seconds)",
        examples=[1700000000],
    )

    @property
    def customer_email(self) -> str | None:
        if self.customer_details is None:
            return None
        return self.customer_details.email or None

    @property
    def customer_name(self) -> str | None:
        if self.customer_details is None:
            return None
        return self.customer_details.name or None


class SaleDetails(BaseModel):
    """Formatted sale fields interpolated into both notifications."""

    model_config = ConfigDict(frozen=True)

    customer_email: str
    customer_name: str
    amount_paid: str = Field(..., examples=["49.99"])
    currency: str = Field(..., examples=["USD"])
    payment_date: str = Field(..., examples=["14.11.2023 23.13.20"])


class NotificationMessage(BaseModel):
    """A single transactional email, built per send and never stored."""

    model_config = ConfigDict(frozen=True)

    to: str
    sender: str
    subject: str
    html: str
    reply_to: str | None = None


class DispatchResult(BaseModel):
    """Outcome of one step of the dispatch pipeline."""

    model_config = ConfigDict(frozen=True)

    step: str
    recipient: str
    delivered: bool
    message_id: str | None = None
    error: str | None = None
