"""Marketplace orders. Owned by order management; read here to gate driver broadcasts."""
from sqlmodel import Field, SQLModel

ORDER_STATUS_PENDING = "pending"


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    id: str = Field(primary_key=True)
    status: str = ORDER_STATUS_PENDING  # pending | accepted | picked_up | delivered | cancelled
    driver_id: str | None = Field(default=None, index=True)
