"""
Platform record -> index document transforms.

Why it's needed:
    The marketplace stores products, companies, users and orders in its own
    shape (populated references, GeoJSON points, nested address/contact
    blocks). The indices use flat, strictly mapped documents. These
    functions are the only place that knows both shapes.

What it does:
    - transform_product/company/user/order(): record dict -> document dict
      that satisfies the strict mapping in index_config.py
    - is_indexable_*(): whether a record belongs in the index at all;
      inactive products, companies and users are removed instead
    - TRANSFORMERS / INDEXABLE: lookup tables keyed by entity type

How it helps:
    - Denormalization: supplier name and location are copied into each
      product so a search hit renders without a database join
    - None values are dropped so partial records never write explicit nulls
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional


def _compact(value: Any) -> Any:
    """Drop None values recursively and serialize dates."""
    if isinstance(value, dict):
        compacted = {key: _compact(item) for key, item in value.items() if item is not None}
        return {key: item for key, item in compacted.items() if item != {}}
    if isinstance(value, list):
        return [_compact(item) for item in value if item is not None]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _id(ref: Any) -> Optional[str]:
    """Id of a populated reference ({"_id": ...} / {"id": ...}) or a raw id."""
    if ref is None:
        return None
    if isinstance(ref, dict):
        raw = ref.get("_id", ref.get("id"))
        return str(raw) if raw is not None else None
    return str(ref)


def _geo(value: Any) -> Optional[Dict[str, float]]:
    """GeoJSON point, [lon, lat] pair or {lat, lon} -> {lat, lon}."""
    if not value:
        return None
    if isinstance(value, dict):
        if "coordinates" in value:
            return _geo(value["coordinates"])
        if "lat" in value and "lon" in value:
            return {"lat": float(value["lat"]), "lon": float(value["lon"])}
        return None
    if isinstance(value, (list, tuple)) and len(value) == 2:
        lon, lat = value
        return {"lat": float(lat), "lon": float(lon)}
    return None


def _ref(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def transform_product(product: Dict[str, Any]) -> Dict[str, Any]:
    supplier = _ref(product.get("supplier"))
    return _compact({
        "name": product.get("name"),
        "description": product.get("description"),
        "category": product.get("category"),
        "price": product.get("price"),
        "currency": product.get("currency"),
        "unit": product.get("unit"),
        "supplier": {
            "id": _id(product.get("supplier")),
            "name": supplier.get("name"),
            "location": _geo(supplier.get("location")),
            "rating": supplier.get("rating"),
        },
        "inventory": product.get("inventory"),
        "tags": product.get("tags") or [],
        "certifications": product.get("certifications") or [],
        "nutritionalInfo": product.get("nutritionalInfo"),
        "images": product.get("images") or [],
        "qualityScore": product.get("qualityScore") or 0,
        "popularityScore": product.get("popularityScore") or 0,
        "seasonality": product.get("seasonality"),
        "createdAt": product.get("createdAt"),
        "updatedAt": product.get("updatedAt"),
        "status": product.get("status"),
        "location": _geo(product.get("location")),
    })


def transform_company(company: Dict[str, Any]) -> Dict[str, Any]:
    address = _ref(company.get("address"))
    contact = _ref(company.get("contactInfo"))
    return _compact({
        "name": company.get("name"),
        "description": company.get("description"),
        "type": company.get("type"),
        "industry": company.get("industry"),
        "size": company.get("size"),
        "location": {
            "address": address.get("full"),
            "city": address.get("city"),
            "state": address.get("state"),
            "country": address.get("country"),
            "zipCode": address.get("zipCode"),
            "coordinates": _geo(company.get("location")),
        },
        "contact": {
            "email": contact.get("email"),
            "phone": contact.get("phone"),
            "website": company.get("website"),
        },
        "certifications": company.get("certifications") or [],
        "rating": company.get("rating") or 0,
        "reviewCount": company.get("reviewCount") or 0,
        "verified": bool(company.get("verified", False)),
        "active": company.get("active"),
        "createdAt": company.get("createdAt"),
        "updatedAt": company.get("updatedAt"),
    })


def transform_user(user: Dict[str, Any]) -> Dict[str, Any]:
    company = _ref(user.get("company"))
    profile = _ref(user.get("profile"))
    return _compact({
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
        "company": {
            "id": _id(user.get("company")),
            "name": company.get("name"),
            "type": company.get("type"),
        },
        "profile": {
            "title": profile.get("title"),
            "bio": profile.get("bio"),
            "expertise": profile.get("expertise") or [],
            "interests": profile.get("interests") or [],
            "location": _geo(profile.get("location")),
        },
        "active": user.get("active"),
        "verified": bool(user.get("verified", False)),
        "lastLoginAt": user.get("lastLoginAt"),
        "createdAt": user.get("createdAt"),
    })


def _party(ref: Any) -> Dict[str, Any]:
    party = _ref(ref)
    return {
        "id": _id(ref),
        "name": party.get("name"),
        "company": _ref(party.get("company")).get("name"),
    }


def _order_item(item: Dict[str, Any]) -> Dict[str, Any]:
    product = _ref(item.get("product"))
    return {
        "productId": _id(item.get("product")),
        "productName": product.get("name"),
        "category": product.get("category"),
        "quantity": item.get("quantity"),
        "unitPrice": item.get("unitPrice"),
        "totalPrice": item.get("totalPrice"),
    }


def transform_order(order: Dict[str, Any]) -> Dict[str, Any]:
    items: List[Dict[str, Any]] = [_order_item(item) for item in order.get("items") or []]
    return _compact({
        "orderNumber": order.get("orderNumber"),
        "buyer": _party(order.get("buyer")),
        "supplier": _party(order.get("supplier")),
        "items": items,
        "totalAmount": order.get("totalAmount"),
        "currency": order.get("currency"),
        "status": order.get("status"),
        "paymentStatus": order.get("paymentStatus"),
        "deliveryDate": order.get("deliveryDate"),
        "createdAt": order.get("createdAt"),
        "updatedAt": order.get("updatedAt"),
    })


def is_indexable_product(product: Dict[str, Any]) -> bool:
    return product.get("status") == "ACTIVE"


def is_indexable_company(company: Dict[str, Any]) -> bool:
    return bool(company.get("active"))


def is_indexable_user(user: Dict[str, Any]) -> bool:
    return bool(user.get("active"))


def is_indexable_order(order: Dict[str, Any]) -> bool:
    return True


TRANSFORMERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "products": transform_product,
    "companies": transform_company,
    "users": transform_user,
    "orders": transform_order,
}

INDEXABLE: Dict[str, Callable[[Dict[str, Any]], bool]] = {
    "products": is_indexable_product,
    "companies": is_indexable_company,
    "users": is_indexable_user,
    "orders": is_indexable_order,
}
