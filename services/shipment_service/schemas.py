from typing import Any, Optional

from pydantic import BaseModel

class AwbRequest(BaseModel):
    courier_id: Optional[int] = None

class CourierOrderResponse(BaseModel):
    order_id: str
    courier_order_id: str
    courier_shipment_id: str

class AwbResponse(BaseModel):
    order_id: str
    awb_code: str
    courier_name: str

class TrackingResponse(BaseModel):
    order_id: str
    tracking_data: dict[str, Any]
    awb_code: Optional[str] = None
    courier_name: Optional[str] = None

class ReconcileResponse(BaseModel):
    checked: int
    updated: int
    failed: int
