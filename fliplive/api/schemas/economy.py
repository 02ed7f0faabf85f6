from pydantic import BaseModel, Field

from fliplive.schemas import Currency


class PurchaseVipIn(BaseModel):
    tier: str = Field(description="normal, super or diamond")
    months: int = Field(ge=1, le=12, description="Months to buy")


class PurchaseMvpIn(BaseModel):
    package_days: int = Field(description="Package length in days (30, 90, 180 or 365)")


class PurchaseGuardianIn(BaseModel):
    target_user_id: str = Field(description="User to guard")
    tier: str = Field(description="silver, gold or king")
    months: int = Field(ge=1, le=12, description="Months to buy")


class TransferIn(BaseModel):
    to_user_id: str = Field(description="Receiving user")
    currency: Currency = Field(description="Currency to move")
    amount: int = Field(gt=0, description="Amount in whole units")
    description: str | None = Field(default=None, max_length=200)


class VerifyPaymentIn(BaseModel):
    provider: str = Field(min_length=1, description="Payment provider name")
    provider_txn_id: str = Field(min_length=1, description="Provider transaction reference")
