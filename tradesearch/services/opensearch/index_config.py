"""
OpenSearch index mappings and analyzers for the trading platform entities.

Why it's needed:
    Products, companies, orders and users are searched with different
    filters (price ranges, geo radius, certifications, order status). Each
    needs explicit field types so those filters compile to term, range and
    geo_distance clauses that the engine can actually evaluate.

What it does:
    - PRODUCTS_MAPPING: catalog search. name is analyzed text with keyword
      and completion sub-fields (autocomplete), category/tags/certifications
      are keywords for facets, supplier and product location are geo points.
      Uses food_analyzer (lowercase + stop + synonyms + stemming) so
      "tomatoes" matches "tomato" and "organic" matches "bio".
    - COMPANIES_MAPPING: supplier/buyer directory with city facets and
      location.coordinates for "near me" sorting.
    - ORDERS_MAPPING: order history. Line items are nested so a filter on
      item category and quantity applies to the same line.
    - USERS_MAPPING: people search with expertise facets.
    - default_registry(): registers all four on a fresh IndexRegistry.

How it helps:
    - strict dynamic mapping: a document with an unmapped field is rejected
      per item in a bulk write instead of silently widening the schema.
      Product sub-objects copied from the catalog record as they are
      (inventory, nutritionalInfo, images, seasonality) are open: extra
      inventory counters and nutrients are mapped on first sight so range
      filters work on them, extra image and seasonality keys are stored
      but not indexed
    - completion sub-fields power suggest() without a separate index
"""

from tradesearch.services.opensearch.mapping import (
    BooleanField,
    DateField,
    GeoPointField,
    IndexMapping,
    IndexRegistry,
    KeywordField,
    NestedField,
    NumberField,
    ObjectField,
    TextField,
)

PRODUCTS_INDEX = "products"
COMPANIES_INDEX = "companies"
ORDERS_INDEX = "orders"
USERS_INDEX = "users"

FOOD_ANALYSIS = {
    "analyzer": {
        "food_analyzer": {
            "type": "custom",
            "tokenizer": "standard",
            "filter": ["lowercase", "stop", "synonym_filter", "stemmer"],
        }
    },
    "filter": {
        "synonym_filter": {
            "type": "synonym",
            "synonyms": [
                "tomato,tomatoes",
                "potato,potatoes",
                "apple,apples",
                "organic,bio,natural",
                "fresh,new",
            ],
        }
    },
}


PRODUCTS_MAPPING = IndexMapping(
    entity_type="products",
    index_name=PRODUCTS_INDEX,
    number_of_shards=2,
    number_of_replicas=1,
    analysis=FOOD_ANALYSIS,
    highlight_fields=["name", "description", "tags"],
    fields={
        "name": TextField(analyzer="standard", keyword=True, suggest=True, suggest_analyzer="simple"),
        "description": TextField(analyzer="food_analyzer"),
        "category": KeywordField(text=True),
        "price": NumberField(),
        "currency": KeywordField(),
        "unit": KeywordField(),
        "supplier": ObjectField(fields={
            "id": KeywordField(),
            "name": TextField(keyword=True),
            "location": GeoPointField(),
            "rating": NumberField(),
        }),
        "inventory": ObjectField(dynamic="true", fields={
            "current": NumberField(number_type="integer"),
            "lowStockThreshold": NumberField(number_type="integer"),
            "status": KeywordField(),
        }),
        "tags": KeywordField(),
        "certifications": KeywordField(),
        "nutritionalInfo": ObjectField(dynamic="true", fields={
            "calories": NumberField(),
            "protein": NumberField(),
            "fat": NumberField(),
            "carbohydrates": NumberField(),
            "fiber": NumberField(),
            "vitamins": KeywordField(),
        }),
        "images": ObjectField(dynamic="false", fields={
            "url": KeywordField(),
            "alt": TextField(),
        }),
        "qualityScore": NumberField(),
        "popularityScore": NumberField(),
        "seasonality": ObjectField(dynamic="false", fields={
            "months": KeywordField(),
            "regions": KeywordField(),
        }),
        "createdAt": DateField(),
        "updatedAt": DateField(),
        "status": KeywordField(),
        "location": GeoPointField(),
    },
)


COMPANIES_MAPPING = IndexMapping(
    entity_type="companies",
    index_name=COMPANIES_INDEX,
    highlight_fields=["name", "description"],
    fields={
        "name": TextField(analyzer="standard", keyword=True, suggest=True),
        "description": TextField(),
        "type": KeywordField(),
        "industry": KeywordField(),
        "size": KeywordField(),
        "location": ObjectField(fields={
            "address": TextField(),
            "city": KeywordField(),
            "state": KeywordField(),
            "country": KeywordField(),
            "zipCode": KeywordField(),
            "coordinates": GeoPointField(),
        }),
        "contact": ObjectField(fields={
            "email": KeywordField(),
            "phone": KeywordField(),
            "website": KeywordField(),
        }),
        "certifications": KeywordField(),
        "rating": NumberField(),
        "reviewCount": NumberField(number_type="integer"),
        "verified": BooleanField(),
        "active": BooleanField(),
        "createdAt": DateField(),
        "updatedAt": DateField(),
    },
)


ORDERS_MAPPING = IndexMapping(
    entity_type="orders",
    index_name=ORDERS_INDEX,
    highlight_fields=["orderNumber", "buyer.name", "supplier.name"],
    fields={
        "orderNumber": KeywordField(),
        "buyer": ObjectField(fields={
            "id": KeywordField(),
            "name": TextField(),
            "company": TextField(),
        }),
        "supplier": ObjectField(fields={
            "id": KeywordField(),
            "name": TextField(),
            "company": TextField(),
        }),
        "items": NestedField(fields={
            "productId": KeywordField(),
            "productName": TextField(),
            "category": KeywordField(),
            "quantity": NumberField(number_type="integer"),
            "unitPrice": NumberField(),
            "totalPrice": NumberField(),
        }),
        "totalAmount": NumberField(),
        "currency": KeywordField(),
        "status": KeywordField(),
        "paymentStatus": KeywordField(),
        "deliveryDate": DateField(),
        "createdAt": DateField(),
        "updatedAt": DateField(),
    },
)


USERS_MAPPING = IndexMapping(
    entity_type="users",
    index_name=USERS_INDEX,
    highlight_fields=["name", "profile.title", "profile.bio"],
    fields={
        "name": TextField(keyword=True, suggest=True),
        "email": KeywordField(),
        "role": KeywordField(),
        "company": ObjectField(fields={
            "id": KeywordField(),
            "name": TextField(),
            "type": KeywordField(),
        }),
        "profile": ObjectField(fields={
            "title": TextField(),
            "bio": TextField(),
            "expertise": KeywordField(),
            "interests": KeywordField(),
            "location": GeoPointField(),
        }),
        "active": BooleanField(),
        "verified": BooleanField(),
        "lastLoginAt": DateField(),
        "createdAt": DateField(),
    },
)


PLATFORM_MAPPINGS = (PRODUCTS_MAPPING, COMPANIES_MAPPING, ORDERS_MAPPING, USERS_MAPPING)


def default_registry(index_prefix: str = "") -> IndexRegistry:
    """Registry with every platform entity registered."""
    registry = IndexRegistry(index_prefix=index_prefix)
    for mapping in PLATFORM_MAPPINGS:
        registry.register_mapping(mapping.entity_type, mapping)
    return registry
