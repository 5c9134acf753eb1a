"""
Order Domain Models

Orders arrive from the order-processing pipeline after payment capture.
The settlement engine only reads them; all amounts are integer minor
currency units (cents).

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List


class OrderLineItem(BaseModel):
    """
    Order line item as handed to settlement

    Fields:
        product_id: Product reference in the catalog
        quantity: Units ordered
        unit_price: Price per unit (minor units)
        seller_id: Owning seller (filled from the catalog when absent)
        category_id: Product category (filled from the catalog when absent)
    """

    product_id: str = Field(..., description="Catalog product ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: int = Field(..., description="Price per unit in minor units", ge=0)
    seller_id: Optional[str] = Field(None, description="Seller that owns the product")
    category_id: Optional[str] = Field(None, description="Product category")
    title: Optional[str] = Field(None, description="Product title at order time")
    sku: Optional[str] = Field(None, description="Product SKU at order time")

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> int:
        """price x quantity"""
        return self.unit_price * self.quantity


class Order(BaseModel):
    """
    Paid order handed to settlement

    Fields:
        id: Order identifier (also the idempotency key for settlement)
        gross_amount: Authorized order amount (minor units)
        items: Ordered line items
        payment_captured: Whether the charge already succeeded
    """

    id: str = Field(..., description="Order ID")
    gross_amount: int = Field(..., description="Authorized amount in minor units", ge=0)
    items: List[OrderLineItem] = Field(default_factory=list, description="Line items")
    payment_captured: bool = Field(False, description="Charge succeeded")

    @property
    def items_total(self) -> int:
        """Sum of line totals"""
        return sum(item.line_total for item in self.items)


class ProductInfo(BaseModel):
    """Catalog lookup result for one product (camelCase on the wire)"""

    product_id: str
    seller_id: str
    category_id: Optional[str] = None
    title: Optional[str] = None
    sku: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
