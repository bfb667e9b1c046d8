"""Unit tests for platform record -> index document transforms."""

from datetime import datetime

import pytest

from tradesearch.services.indexing.transformers import (
    INDEXABLE,
    TRANSFORMERS,
    transform_company,
    transform_order,
    transform_product,
    transform_user,
)


@pytest.mark.unit
class TestTransformProduct:
    def test_denormalizes_supplier_and_geojson(self):
        product = {
            "name": "Heirloom Tomato",
            "price": 4.2,
            "status": "ACTIVE",
            "supplier": {
                "_id": "s-1",
                "name": "Valley Farm",
                "location": {"type": "Point", "coordinates": [13.4, 52.5]},
                "rating": 4.7,
            },
            "location": [2.35, 48.85],
            "createdAt": datetime(2024, 5, 1, 12, 0),
        }

        doc = transform_product(product)

        assert doc["supplier"] == {
            "id": "s-1",
            "name": "Valley Farm",
            "location": {"lat": 52.5, "lon": 13.4},
            "rating": 4.7,
        }
        assert doc["location"] == {"lat": 48.85, "lon": 2.35}
        assert doc["createdAt"] == "2024-05-01T12:00:00"

    def test_none_values_are_dropped(self):
        doc = transform_product({"name": "Leek", "description": None, "supplier": "s-9"})

        assert "description" not in doc
        assert doc["supplier"] == {"id": "s-9"}
        assert doc["tags"] == []
        assert doc["qualityScore"] == 0


@pytest.mark.unit
class TestOtherTransforms:
    def test_company_location_block(self):
        doc = transform_company({
            "name": "Fresh Co",
            "address": {"city": "Lyon", "country": "FR"},
            "location": {"lat": 45.76, "lon": 4.83},
            "website": "https://fresh.example",
            "active": True,
        })

        assert doc["location"] == {
            "city": "Lyon",
            "country": "FR",
            "coordinates": {"lat": 45.76, "lon": 4.83},
        }
        assert doc["contact"] == {"website": "https://fresh.example"}
        assert doc["verified"] is False

    def test_user_profile(self):
        doc = transform_user({
            "name": "Ada",
            "role": "BUYER",
            "company": {"id": "c-1", "name": "Fresh Co"},
            "profile": {"title": "Chef", "expertise": ["dairy"]},
        })

        assert doc["company"] == {"id": "c-1", "name": "Fresh Co"}
        assert doc["profile"]["expertise"] == ["dairy"]
        assert doc["profile"]["interests"] == []

    def test_order_items_and_parties(self):
        doc = transform_order({
            "orderNumber": "ORD-1",
            "buyer": {"_id": "u-1", "name": "Ada", "company": {"name": "Bistro"}},
            "supplier": "u-2",
            "items": [{"product": {"_id": "p-1", "name": "Tomato"}, "quantity": 3, "unitPrice": 1.5}],
            "totalAmount": 4.5,
        })

        assert doc["buyer"] == {"id": "u-1", "name": "Ada", "company": "Bistro"}
        assert doc["supplier"] == {"id": "u-2"}
        assert doc["items"] == [{"productId": "p-1", "productName": "Tomato", "quantity": 3, "unitPrice": 1.5}]


@pytest.mark.unit
class TestIndexable:
    @pytest.mark.parametrize(
        "entity_type,record,expected",
        [
            ("products", {"status": "ACTIVE"}, True),
            ("products", {"status": "DRAFT"}, False),
            ("companies", {"active": True}, True),
            ("companies", {}, False),
            ("users", {"active": False}, False),
            ("orders", {"status": "CANCELLED"}, True),
        ],
    )
    def test_indexable(self, entity_type, record, expected):
        assert INDEXABLE[entity_type](record) is expected

    def test_every_entity_has_a_transform(self):
        assert set(TRANSFORMERS) == set(INDEXABLE) == {"products", "companies", "users", "orders"}
