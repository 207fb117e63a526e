from __future__ import annotations

from pydantic import BaseModel, Field


class OrderStatusAction(BaseModel):
    name: str
    next_status: int = Field(alias="nextStatus")
    next_status_label: str = Field(default="", alias="nextStatusLabel")

    class Config:
        populate_by_name = True


class OrderStatusNode(BaseModel):
    value: int
    label: str
    type: str = "info"
    is_final: bool = Field(default=False, alias="isFinal")
    actions: list[OrderStatusAction] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class OrderStatusFlow(BaseModel):
    statuses: list[OrderStatusNode] = Field(default_factory=list)

    def as_json(self) -> dict:
        """Stored / wire form (camelCase keys)."""
        return self.model_dump(by_alias=True)


class OrderStatusFlowOut(BaseModel):
    shop_id: int
    order_status_flow: dict


class UpdateOrderStatusFlowRequest(BaseModel):
    shop_id: int
    order_status_flow: OrderStatusFlow
