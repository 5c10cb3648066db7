"""
Row → view mappers

One mapper per entity. Each accepts an ORM object or a plain mapping and
always returns a fully populated view, substituting defaults for nulls.
"""

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional
import json
import logging

from pydantic import BaseModel, Field

from bepawa.domain.catalog.stock import StockStatus, derive_status, parse_date

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = "https://images.unsplash.com/photo-1584308666744-24d5c474f2ae?w=400"

NOTIFICATION_TYPES = ("info", "success", "warning", "error")


def _read(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _int(value: Any) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None or value == "" else str(value)


def _datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


class ProductView(BaseModel):
    """Product as catalog and inventory screens consume it"""
    id: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    price: float = 0.0
    buy_price: float = 0.0
    sell_price: float = 0.0
    stock: int = 0
    min_stock: int = 0
    max_stock: Optional[int] = None
    manufacturer: str = ""
    supplier: str = ""
    sku: str = ""
    dosage_form: str = ""
    strength: str = ""
    pack_size: str = ""
    batch_number: str = ""
    requires_prescription: bool = False
    expiry_date: Optional[date] = None
    image: str = PLACEHOLDER_IMAGE_URL
    status: StockStatus = StockStatus.OUT_OF_STOCK
    is_public_product: bool = False
    is_retail_product: bool = False
    is_wholesale_product: bool = False
    user_id: Optional[str] = None
    wholesaler_id: Optional[str] = None
    pharmacy_id: Optional[str] = None


def map_product_row(row: Any) -> ProductView:
    stock = _int(_read(row, "stock"))
    min_stock = _int(_read(row, "min_stock_level") if _read(row, "min_stock_level") is not None else _read(row, "min_stock"))
    sell_price = _float(_read(row, "sell_price") if _read(row, "sell_price") is not None else _read(row, "price"))
    expiry = parse_date(_read(row, "expiry_date"))

    try:
        status = StockStatus(_read(row, "status"))
    except ValueError:
        status = derive_status(stock, min_stock, expiry)

    supplier = _str(_read(row, "supplier"))
    return ProductView(
        id=_str(_read(row, "id")),
        name=_str(_read(row, "name")),
        description=_str(_read(row, "description")),
        category=_str(_read(row, "category")),
        price=sell_price,
        buy_price=_float(_read(row, "buy_price")),
        sell_price=sell_price,
        stock=stock,
        min_stock=min_stock,
        max_stock=_optional_int(_read(row, "max_stock")),
        manufacturer=_str(_read(row, "manufacturer")) or supplier,
        supplier=supplier,
        sku=_str(_read(row, "sku")),
        dosage_form=_str(_read(row, "dosage_form")),
        strength=_str(_read(row, "strength")),
        pack_size=_str(_read(row, "pack_size")),
        batch_number=_str(_read(row, "batch_number")),
        requires_prescription=bool(_read(row, "requires_prescription")),
        expiry_date=expiry,
        image=_str(_read(row, "image_url")) or PLACEHOLDER_IMAGE_URL,
        status=status,
        is_public_product=bool(_read(row, "is_public_product")),
        is_retail_product=bool(_read(row, "is_retail_product")),
        is_wholesale_product=bool(_read(row, "is_wholesale_product")),
        user_id=_optional_str(_read(row, "user_id")),
        wholesaler_id=_optional_str(_read(row, "wholesaler_id")),
        pharmacy_id=_optional_str(_read(row, "pharmacy_id")),
    )


class PurchaseOrderItemView(BaseModel):
    id: str = ""
    purchase_order_id: str = ""
    product_id: Optional[str] = None
    product_name: str = ""
    quantity: int = 0
    unit_price: float = 0.0
    total_price: float = 0.0
    unit_cost: float = 0.0
    total_cost: float = 0.0
    received_quantity: int = 0
    created_at: Optional[datetime] = None


def map_purchase_order_item_row(row: Any) -> PurchaseOrderItemView:
    unit_price = _float(_read(row, "unit_price"))
    total_price = _float(_read(row, "total_price"))
    return PurchaseOrderItemView(
        id=_str(_read(row, "id")),
        purchase_order_id=_str(_read(row, "purchase_order_id")),
        product_id=_optional_str(_read(row, "product_id")),
        product_name=_str(_read(row, "product_name")),
        quantity=_int(_read(row, "quantity")),
        unit_price=unit_price,
        total_price=total_price,
        unit_cost=unit_price,
        total_cost=total_price,
        received_quantity=_int(_read(row, "received_quantity")),
        created_at=_datetime(_read(row, "created_at")),
    )


def parse_json_field(value: Any) -> Optional[Dict[str, Any]]:
    """Stored JSON may come back as text or as an object; anything else is ``None``"""
    if not value:
        return None
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.debug("Discarding unparseable JSON field")
            return None
        return parsed if isinstance(parsed, dict) else None
    if isinstance(value, Mapping):
        return dict(value)
    return None


class AuditLogView(BaseModel):
    id: str = ""
    user_id: Optional[str] = None
    action: str = ""
    resource_type: str = ""
    resource_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    category: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None


def map_audit_log_row(row: Any) -> AuditLogView:
    return AuditLogView(
        id=_str(_read(row, "id")),
        user_id=_optional_str(_read(row, "user_id")),
        action=_str(_read(row, "action")),
        resource_type=_str(_read(row, "resource_type")),
        resource_id=_optional_str(_read(row, "resource_id")),
        old_values=parse_json_field(_read(row, "old_values")),
        new_values=parse_json_field(_read(row, "new_values")),
        category=_optional_str(_read(row, "category")),
        ip_address=_optional_str(_read(row, "ip_address")),
        user_agent=_optional_str(_read(row, "user_agent")),
        created_at=_datetime(_read(row, "created_at")),
    )


class NotificationView(BaseModel):
    id: str = ""
    user_id: str = ""
    title: str = ""
    message: str = ""
    type: str = "info"
    is_read: bool = False
    action_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


def map_notification_row(row: Any) -> NotificationView:
    kind = _read(row, "type")
    # ORM rows keep the JSON column under ``payload``; ``metadata`` is reserved there
    metadata = _read(row, "payload") if not isinstance(row, Mapping) else row.get("metadata", row.get("payload"))
    return NotificationView(
        id=_str(_read(row, "id")),
        user_id=_str(_read(row, "user_id")),
        title=_str(_read(row, "title")),
        message=_str(_read(row, "message")),
        type=kind if kind in NOTIFICATION_TYPES else "info",
        is_read=bool(_read(row, "is_read")),
        action_url=_optional_str(_read(row, "action_url")),
        metadata=parse_json_field(metadata) or {},
        created_at=_datetime(_read(row, "created_at")),
        expires_at=_datetime(_read(row, "expires_at")),
    )
