"""Statistics schemas for the admin dashboard.

Field names are snake_case in Python and camelCase on the wire, which is
the contract the dashboard charts and tables consume.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Dashboard Stats ============


class GrowthStats(CamelModel):
    """Period-over-period growth percentages."""

    volume: float = Field(description="Volume growth vs. previous period, in percent")
    active_users: float = Field(description="Always 0, previous active users are not tracked")
    payouts: float = Field(description="Payouts growth vs. previous period, in percent")
    avg_value: float = Field(description="Average transaction value growth, in percent")


class DashboardStatsResponse(CamelModel):
    """Aggregate result for the dashboard KPI cards."""

    total_volume: float
    active_users: int = Field(description="Users active within the trailing 30 days")
    total_users: int
    total_payouts: float
    avg_transaction_value: float
    transaction_count: int
    growth: GrowthStats


# ============ Volume Over Time ============


class VolumeDataPoint(BaseModel):
    """Single month on the volume chart."""

    month: str = Field(description="Month label, e.g. 'January 2024'")
    volume: int
    payouts: int


class VolumeOverTimeResponse(BaseModel):
    data: list[VolumeDataPoint]


# ============ Recent Transactions ============


class RecentTransaction(BaseModel):
    """Row of the recent transactions table."""

    id: str
    customer: str
    email: str
    amount: float
    currency: str
    status: str
    type: str
    date: str = Field(description="ISO-8601 creation time")
    description: str


class RecentTransactionsResponse(BaseModel):
    transactions: list[RecentTransaction]
    total: int = Field(description="Number of transactions returned")


# ============ Currency Distribution ============


class CurrencyShare(BaseModel):
    """Slice of the currency pie chart."""

    name: str = Field(description="Currency code or 'OTHER'")
    value: int


class CurrencyDistributionResponse(BaseModel):
    data: list[CurrencyShare]


# ============ Service ============


class HealthResponse(CamelModel):
    status: str
    service: str
    timestamp: str
    firebase_initialized: bool


class ServiceInfoResponse(BaseModel):
    service: str
    version: str
    endpoints: dict[str, str]
