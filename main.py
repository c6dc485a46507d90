import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from starlette.datastructures import UploadFile as StarletteUploadFile

import database
from accounts import AccountDirectory
from auth import require_admin, require_role
from catalog import CategoryDirectory, ProductCatalog
from config import DEFAULT_JWT_SECRET, JWT_SECRET, LOG_LEVEL, PORT, PRODUCT_ASSETS_DIR
from database import get_db
from errors import Forbidden, StoreError
from images import ImageStore
from schemas import DeleteProductInput, LoginInput, ProductFields, RegisterInput, UserLookupInput

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

if JWT_SECRET == DEFAULT_JWT_SECRET:
    logger.warning("JWT_SECRET is not set; using the development default")

app = FastAPI(title="Fashion Store API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error responses

@app.exception_handler(StoreError)
async def handle_store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"status": False, "message": "Missing or invalid fields", "errors": errors},
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"status": False, "message": "Internal Server Error"})


# Dependencies

def get_image_store() -> ImageStore:
    return ImageStore(PRODUCT_ASSETS_DIR)


def get_catalog(db: Database = Depends(get_db), images: ImageStore = Depends(get_image_store)) -> ProductCatalog:
    return ProductCatalog(db, images)


def get_accounts(db: Database = Depends(get_db)) -> AccountDirectory:
    return AccountDirectory(db)


def product_fields(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None, ge=0, allow_inf_nan=False),
    category: Optional[str] = Form(None),
    stock_quantity: Optional[int] = Form(None, ge=0),
    gender: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
) -> ProductFields:
    return ProductFields(
        name=name,
        description=description,
        price=price,
        category=category,
        stock_quantity=stock_quantity,
        gender=gender,
        size=size,
        color=color,
    )


async def uploaded_images(request: Request) -> List[UploadFile]:
    """Image parts of the form; fields submitted without a chosen file are skipped."""
    form = await request.form()
    return [
        item for item in form.getlist("images")
        if isinstance(item, StarletteUploadFile) and item.filename
    ]


def respond(message: str, data=None) -> dict:
    return {"status": True, "message": message, "data": data}


# Routes
@app.get("/")
def read_root():
    return {"message": "Fashion Store API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "assets_dir": PRODUCT_ASSETS_DIR,
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["database_name"] = database.db.name
            response["collections"] = database.db.list_collection_names()
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# Products
@app.post("/products", status_code=201)
def create_product(
    current_user: dict = Depends(require_admin),
    fields: ProductFields = Depends(product_fields),
    images: List[UploadFile] = Depends(uploaded_images),
    catalog: ProductCatalog = Depends(get_catalog),
):
    product = catalog.create(fields, images)
    return respond("Product created successfully", product)


@app.put("/products")
def update_product(
    current_user: dict = Depends(require_admin),
    product_id: Optional[str] = Form(None, alias="id"),
    fields: ProductFields = Depends(product_fields),
    images: List[UploadFile] = Depends(uploaded_images),
    catalog: ProductCatalog = Depends(get_catalog),
):
    product = catalog.update(product_id, fields, images)
    return respond("Product updated successfully", product)


@app.delete("/products")
def delete_product(
    payload: Optional[DeleteProductInput] = None,
    current_user: dict = Depends(require_admin),
    catalog: ProductCatalog = Depends(get_catalog),
):
    catalog.delete(payload.productId if payload else None)
    return respond("Product deleted successfully")


@app.get("/products")
def list_products(catalog: ProductCatalog = Depends(get_catalog)):
    return respond("Products fetched successfully", catalog.list())


@app.get("/products/filter")
def filter_products(
    size: Optional[str] = None,
    color: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    sort_by: str = Query("price", alias="sortBy"),
    order: str = "asc",
    catalog: ProductCatalog = Depends(get_catalog),
):
    products = catalog.filter(size, color, min_price, max_price, sort_by, order)
    return respond("Products fetched successfully", products)


@app.get("/products/by-category")
def products_by_category(
    category: Optional[str] = None,
    gender: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    catalog: ProductCatalog = Depends(get_catalog),
):
    products = catalog.by_category(category, gender, min_price, max_price)
    return respond("Fetching product by Category", products)


@app.get("/products/item")
def get_product(
    product_id: Optional[str] = Query(None, alias="productId"),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return respond("Product fetched successfully", catalog.get(product_id))


@app.get("/categories")
def list_categories(db: Database = Depends(get_db)):
    return respond("Categories fetched successfully", CategoryDirectory(db).list())


# Users
@app.post("/users/register", status_code=201)
def register_user(payload: RegisterInput, accounts: AccountDirectory = Depends(get_accounts)):
    user = accounts.register(payload)
    return respond("User created successfully", user)


@app.post("/users/login")
def user_login(payload: LoginInput, accounts: AccountDirectory = Depends(get_accounts)):
    token, user = accounts.login(payload)
    return {"status": True, "message": "Login successful", "token": token, "user": user}


@app.get("/users")
def list_users(
    current_user: dict = Depends(require_admin),
    accounts: AccountDirectory = Depends(get_accounts),
):
    return respond("Users Data", accounts.list())


@app.post("/users/by-id")
def get_user(
    payload: Optional[UserLookupInput] = None,
    current_user: dict = Depends(require_role("customer", denial=Forbidden)),
    accounts: AccountDirectory = Depends(get_accounts),
):
    user = accounts.get(payload.UserId if payload else None)
    return respond("User Found", user)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
