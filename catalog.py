"""
Product catalog

CategoryDirectory reads categories, ProductIdGenerator builds display ids and
ProductCatalog runs the product lifecycle on top of both plus the ImageStore.

None of the multi-step operations are atomic. Create checks for duplicates,
generates the id, stores images and inserts the record as separate steps, so
two concurrent creates can pass the duplicate check or share a display id.
Image deletion is best-effort and never rolls back a database change.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bson import ObjectId
from fastapi import UploadFile
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, serialize_doc, to_object_id
from errors import CategoryNotFound, ConflictError, NotFound, ValidationError
from images import ImageStore
from schemas import Category, Product, ProductFields

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "description", "price", "category")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def price_range(min_price: Optional[float] = None, max_price: Optional[float] = None) -> Dict[str, float]:
    price_filter: Dict[str, float] = {}
    if min_price is not None:
        price_filter["$gte"] = float(min_price)
    if max_price is not None:
        price_filter["$lte"] = float(max_price)
    return price_filter


class CategoryDirectory:
    def __init__(self, database: Database):
        self.collection = database["category"]

    def find_by_id(self, category_id: Any) -> Dict[str, Any]:
        obj_id = to_object_id(category_id)
        category = self.collection.find_one({"_id": obj_id}) if obj_id else None
        if not category:
            raise CategoryNotFound()
        return category

    def find_by_name(self, name: str) -> Dict[str, Any]:
        category = self.collection.find_one({"name": name})
        if not category:
            raise CategoryNotFound()
        return category

    def find_many(self, category_ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        ids = list(set(category_ids))
        if not ids:
            return {}
        return {c["_id"]: c for c in self.collection.find({"_id": {"$in": ids}})}

    def list(self) -> List[Dict[str, Any]]:
        return [
            {"id": str(c["_id"]), **Category.model_validate(c).model_dump()}
            for c in self.collection.find().sort("cat_no", ASCENDING)
        ]


class ProductIdGenerator:
    """Builds ids like PAT03CAT07: third product in the category with cat_no 7.

    The count is read before the insert, so the id is a display label and
    not a key. The Mongo _id stays the unique identifier.
    """

    def __init__(self, database: Database, categories: CategoryDirectory):
        self.products = database["product"]
        self.categories = categories

    def generate(self, category_id: Any) -> str:
        category = self.categories.find_by_id(category_id)
        count = self.products.count_documents({"category": category["_id"]})
        return f"PAT0{count + 1}CAT0{category['cat_no']}"


class ProductCatalog:
    def __init__(
        self,
        database: Database,
        images: ImageStore,
        categories: Optional[CategoryDirectory] = None,
        id_generator: Optional[ProductIdGenerator] = None,
    ):
        self.db = database
        self.products = database["product"]
        self.images = images
        self.categories = categories or CategoryDirectory(database)
        self.id_generator = id_generator or ProductIdGenerator(database, self.categories)

    def _expand(self, products: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Serialize products with their category document in place of the id."""
        products = list(products)
        categories = self.categories.find_many(
            p["category"] for p in products if isinstance(p.get("category"), ObjectId)
        )
        expanded = []
        for product in products:
            product = dict(product)
            product["category"] = categories.get(product.get("category"), product.get("category"))
            expanded.append(serialize_doc(product))
        return expanded

    def _product_id(self, product_id: Optional[str]) -> ObjectId:
        if not product_id:
            raise ValidationError("Product ID is required")
        obj_id = to_object_id(product_id)
        if obj_id is None:
            raise ValidationError("Invalid product id")
        return obj_id

    def _require(self, product_id: Optional[str]) -> Dict[str, Any]:
        product = self.products.find_one({"_id": self._product_id(product_id)})
        if not product:
            raise NotFound("Product not found")
        return product

    def find_duplicate(self, name: str, gender: Optional[str], size: Optional[str], color: Optional[str]) -> Optional[Dict[str, Any]]:
        return self.products.find_one({
            "name": name,
            "gender": gender,
            "size": size,
            "color": color,
            "is_deleted": {"$ne": True},
        })

    def create(self, fields: ProductFields, blobs: Sequence[UploadFile] = ()) -> Dict[str, Any]:
        missing = [f for f in REQUIRED_FIELDS if _is_blank(getattr(fields, f))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        self.images.validate(blobs)

        if self.find_duplicate(fields.name, fields.gender, fields.size, fields.color):
            logger.info("Rejected duplicate product %r (%s/%s/%s)", fields.name, fields.gender, fields.size, fields.color)
            raise ConflictError("Product with these specifications already exists")

        product_id = self.id_generator.generate(fields.category)
        category_id = to_object_id(fields.category)
        images = self.images.store(blobs)

        product = Product(
            product_id=product_id,
            name=fields.name,
            description=fields.description,
            price=fields.price,
            category=str(category_id),
            stock_quantity=fields.stock_quantity or 0,
            gender=fields.gender,
            size=fields.size,
            color=fields.color,
            images=images,
        )
        doc = product.model_dump()
        doc["category"] = category_id
        try:
            new_id = create_document(self.db, "product", doc)
        except PyMongoError:
            self.images.remove(images)
            raise

        logger.info("Created product %s (%s) with %d image(s)", product_id, new_id, len(images))
        return serialize_doc(self.products.find_one({"_id": ObjectId(new_id)}))

    def update(self, product_id: Optional[str], fields: ProductFields, blobs: Sequence[UploadFile] = ()) -> Dict[str, Any]:
        existing = self._require(product_id)

        # Absent and empty fields keep the stored value; anything else, 0 included, overwrites
        changes = {k: v for k, v in fields.model_dump().items() if not _is_blank(v)}
        if not changes and not blobs:
            raise ValidationError("No fields to update")
        if "category" in changes:
            changes["category"] = self.categories.find_by_id(changes["category"])["_id"]

        merged = {**existing, **changes}
        missing = [f for f in REQUIRED_FIELDS if _is_blank(merged.get(f))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if blobs:
            self.images.validate(blobs)
            self.images.remove(existing.get("images") or [])
            changes["images"] = self.images.store(blobs)

        changes["is_updated"] = True
        changes["updated_at"] = datetime.now(timezone.utc)
        updated = self.products.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFound("Product update failed")
        logger.info("Updated product %s (%s)", updated.get("product_id"), existing["_id"])
        return serialize_doc(updated)

    def delete(self, product_id: Optional[str]) -> None:
        product = self._require(product_id)
        # Files go first; the record is deleted even if some of them could not be
        self.images.remove(product.get("images") or [])
        self.products.delete_one({"_id": product["_id"]})
        logger.info("Deleted product %s (%s)", product.get("product_id"), product["_id"])

    def list(self) -> List[Dict[str, Any]]:
        return self._expand(self.products.find())

    def filter(
        self,
        size: Optional[str] = None,
        color: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "price",
        order: str = "asc",
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if size:
            query["size"] = size
        if color:
            query["color"] = color
        price_filter = price_range(min_price, max_price)
        if price_filter:
            query["price"] = price_filter

        direction = DESCENDING if order == "desc" else ASCENDING
        products = list(self.products.find(query).sort(sort_by or "price", direction))
        if not products:
            raise NotFound("No products found")
        return [serialize_doc(p) for p in products]

    def by_category(
        self,
        category_name: Optional[str] = None,
        gender: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        # An unknown category is an error, not an empty result
        if category_name:
            query["category"] = self.categories.find_by_name(category_name)["_id"]
        if gender:
            query["gender"] = gender
        price_filter = price_range(min_price, max_price)
        if price_filter:
            query["price"] = price_filter
        return self._expand(self.products.find(query))

    def get(self, product_id: Optional[str]) -> Dict[str, Any]:
        return self._expand([self._require(product_id)])[0]
