"""
Entity-specific query builders for products, companies, orders and users.

Why it's needed:
    A buyer looking for "organic tomatoes under 5 EUR within 50km" thinks in
    domain terms, not in filter maps. Each builder turns a typed set of
    domain filters into generic SearchOptions: filters, the entity's boost
    map and its default facets.

What it does:
    - build_product_search(): price range, in stock, categories, suppliers,
      certifications, nutritional ranges, distance sort/radius
    - build_company_search(): types, industries, verified, min rating,
      distance sort/radius on location.coordinates
    - build_order_search(): statuses, payment statuses, buyer, supplier,
      created-at window, amount range
    - build_user_search(): roles, verified, active, expertise
    - PRODUCT_SORT_PRESETS: named catalog orderings used by the router

How it helps:
    - Pure functions: same inputs, same SearchOptions, no I/O
    - An origin without max_distance sorts by distance but does not
      restrict results; the radius filter only appears with a distance
    - Caller boosts and aggregations override the entity defaults
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tradesearch.schemas.search import (
    FieldSort,
    GeoDistanceFilter,
    GeoDistanceSort,
    GeoPoint,
    RangeFilter,
    SearchOptions,
    SortSpec,
    TermFilter,
    TermsFilter,
)

PRODUCT_BOOSTS: Dict[str, float] = {
    "name": 3.0,
    "description": 1.0,
    "tags": 2.0,
    "supplier.name": 1.5,
}

COMPANY_BOOSTS: Dict[str, float] = {
    "name": 3.0,
    "description": 1.0,
    "location.city": 1.5,
}

ORDER_BOOSTS: Dict[str, float] = {
    "orderNumber": 3.0,
    "buyer.name": 1.5,
    "supplier.name": 1.5,
}

USER_BOOSTS: Dict[str, float] = {
    "name": 3.0,
    "profile.title": 2.0,
    "profile.bio": 1.0,
}

PRODUCT_AGGREGATIONS: Dict[str, Dict[str, Any]] = {
    "categories": {"terms": {"field": "category", "size": 20}},
    "price_ranges": {
        "range": {
            "field": "price",
            "ranges": [
                {"to": 10},
                {"from": 10, "to": 50},
                {"from": 50, "to": 100},
                {"from": 100},
            ],
        }
    },
    "suppliers": {"terms": {"field": "supplier.name.keyword", "size": 10}},
    "certifications": {"terms": {"field": "certifications", "size": 15}},
    "avg_price": {"avg": {"field": "price"}},
    "avg_rating": {"avg": {"field": "qualityScore"}},
}

COMPANY_AGGREGATIONS: Dict[str, Dict[str, Any]] = {
    "types": {"terms": {"field": "type", "size": 10}},
    "industries": {"terms": {"field": "industry", "size": 20}},
    "locations": {"terms": {"field": "location.city", "size": 50}},
    "rating_ranges": {
        "range": {
            "field": "rating",
            "ranges": [
                {"from": 4.5},
                {"from": 4.0, "to": 4.5},
                {"from": 3.0, "to": 4.0},
                {"to": 3.0},
            ],
        }
    },
}

PRODUCT_SORT_PRESETS: Dict[str, List[FieldSort]] = {
    "price_asc": [FieldSort(field="price", order="asc")],
    "price_desc": [FieldSort(field="price", order="desc")],
    "rating": [FieldSort(field="qualityScore", order="desc")],
    "popularity": [FieldSort(field="popularityScore", order="desc")],
    "newest": [FieldSort(field="createdAt", order="desc")],
}


class NumericRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class GeoOrigin(BaseModel):
    """Origin for distance sorting; max_distance (e.g. "50km") adds a radius filter."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    max_distance: Optional[str] = None

    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


class ProductFilters(BaseModel):
    price: Optional[NumericRange] = None
    in_stock: bool = False
    categories: List[str] = Field(default_factory=list)
    supplier_ids: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    nutritional: Dict[str, NumericRange] = Field(default_factory=dict)
    location: Optional[GeoOrigin] = None


class CompanyFilters(BaseModel):
    types: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    verified: Optional[bool] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    location: Optional[GeoOrigin] = None


class OrderFilters(BaseModel):
    statuses: List[str] = Field(default_factory=list)
    payment_statuses: List[str] = Field(default_factory=list)
    buyer_id: Optional[str] = None
    supplier_id: Optional[str] = None
    created_from: Optional[str] = None
    created_to: Optional[str] = None
    amount: Optional[NumericRange] = None


class UserFilters(BaseModel):
    roles: List[str] = Field(default_factory=list)
    verified: Optional[bool] = None
    active: Optional[bool] = None
    expertise: List[str] = Field(default_factory=list)


# =============================================================
# Helpers
# =============================================================

def _range(bounds: Optional[NumericRange]) -> Optional[RangeFilter]:
    if bounds is None or (bounds.min is None and bounds.max is None):
        return None
    return RangeFilter(gte=bounds.min, lte=bounds.max)


def _apply_geo(
    field: str,
    origin: Optional[GeoOrigin],
    filters: Dict[str, Any],
    sort: List[SortSpec],
) -> List[SortSpec]:
    """Prepend a distance sort and, only with max_distance, add a radius filter."""
    if origin is None:
        return sort
    if origin.max_distance:
        filters[field] = GeoDistanceFilter(origin=origin.point(), distance=origin.max_distance)
    return [GeoDistanceSort(field=field, origin=origin.point()), *sort]


def _assemble(
    base: SearchOptions,
    filters: Dict[str, Any],
    sort: List[SortSpec],
    boosts: Dict[str, float],
    aggregations: Optional[Dict[str, Dict[str, Any]]] = None,
) -> SearchOptions:
    return base.model_copy(
        update={
            "filters": {**base.filters, **filters},
            "sort": sort,
            "boost": {**boosts, **base.boost},
            "aggregations": {**(aggregations or {}), **base.aggregations},
        },
        deep=True,
    )


# =============================================================
# Builders
# =============================================================

def build_product_search(base: SearchOptions, product_filters: ProductFilters) -> SearchOptions:
    filters: Dict[str, Any] = {}

    price = _range(product_filters.price)
    if price:
        filters["price"] = price
    if product_filters.in_stock:
        filters["inventory.current"] = RangeFilter(gt=0)
    if product_filters.categories:
        filters["category"] = TermsFilter(values=product_filters.categories)
    if product_filters.supplier_ids:
        filters["supplier.id"] = TermsFilter(values=product_filters.supplier_ids)
    if product_filters.certifications:
        filters["certifications"] = TermsFilter(values=product_filters.certifications)
    for nutrient, bounds in product_filters.nutritional.items():
        nutrient_range = _range(bounds)
        if nutrient_range:
            filters[f"nutritionalInfo.{nutrient}"] = nutrient_range

    sort = _apply_geo("location", product_filters.location, filters, list(base.sort))
    return _assemble(base, filters, sort, PRODUCT_BOOSTS, PRODUCT_AGGREGATIONS)


def build_company_search(base: SearchOptions, company_filters: CompanyFilters) -> SearchOptions:
    filters: Dict[str, Any] = {}

    if company_filters.types:
        filters["type"] = TermsFilter(values=company_filters.types)
    if company_filters.industries:
        filters["industry"] = TermsFilter(values=company_filters.industries)
    if company_filters.verified is not None:
        filters["verified"] = TermFilter(value=company_filters.verified)
    if company_filters.min_rating is not None:
        filters["rating"] = RangeFilter(gte=company_filters.min_rating)

    sort = _apply_geo("location.coordinates", company_filters.location, filters, list(base.sort))
    return _assemble(base, filters, sort, COMPANY_BOOSTS, COMPANY_AGGREGATIONS)


def build_order_search(base: SearchOptions, order_filters: OrderFilters) -> SearchOptions:
    filters: Dict[str, Any] = {}

    if order_filters.statuses:
        filters["status"] = TermsFilter(values=order_filters.statuses)
    if order_filters.payment_statuses:
        filters["paymentStatus"] = TermsFilter(values=order_filters.payment_statuses)
    if order_filters.buyer_id:
        filters["buyer.id"] = TermFilter(value=order_filters.buyer_id)
    if order_filters.supplier_id:
        filters["supplier.id"] = TermFilter(value=order_filters.supplier_id)
    if order_filters.created_from or order_filters.created_to:
        filters["createdAt"] = RangeFilter(gte=order_filters.created_from, lte=order_filters.created_to)
    amount = _range(order_filters.amount)
    if amount:
        filters["totalAmount"] = amount

    sort = list(base.sort) or [FieldSort(field="createdAt", order="desc")]
    return _assemble(base, filters, sort, ORDER_BOOSTS)


def build_user_search(base: SearchOptions, user_filters: UserFilters) -> SearchOptions:
    filters: Dict[str, Any] = {}

    if user_filters.roles:
        filters["role"] = TermsFilter(values=user_filters.roles)
    if user_filters.verified is not None:
        filters["verified"] = TermFilter(value=user_filters.verified)
    if user_filters.active is not None:
        filters["active"] = TermFilter(value=user_filters.active)
    if user_filters.expertise:
        filters["profile.expertise"] = TermsFilter(values=user_filters.expertise)

    return _assemble(base, filters, list(base.sort), USER_BOOSTS)


def product_sort_preset(name: Optional[str]) -> List[FieldSort]:
    """Sort clauses for a named preset; unknown or empty names mean relevance."""
    if not name:
        return []
    return list(PRODUCT_SORT_PRESETS.get(name, []))
