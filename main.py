import logging
import os
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from typing import Optional

import basket
import checkout
import database
import orders
from auth import CurrentUser, admin_only, authenticate
from database import create_document, get_db, get_documents, to_object_id, to_str_id
from errors import NotFound, ShopError
from schemas import BasketAddRequest, CheckoutRequest, Product, QuantityUpdate

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Shop API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping

@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Seed products if empty
SEED_PRODUCTS = [
    Product(name="Basic T-shirt", price=4500, stock=25, category="T-shirts",
            description="Cotton t-shirt, regular fit.",
            image="https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=800&q=80"),
    Product(name="Oversized T-shirt", price=6900, stock=12, category="T-shirts",
            description="Heavyweight cotton, oversized cut."),
    Product(name="Wireless Headphones", price=32000, stock=8, category="Electronics",
            description="Bluetooth headphones with 30h battery."),
    Product(name="Power Bank", price=12500, stock=15, category="Electronics",
            description="10000 mAh, USB-C."),
    Product(name="Ceramic Mug", price=3000, stock=40, category="Home",
            description="Matte finish, 350ml."),
]


@app.on_event("startup")
async def seed_products():
    if database.db is None or os.getenv("SEED_PRODUCTS", "1") == "0":
        return
    try:
        if database.db["product"].count_documents({}) == 0:
            for p in SEED_PRODUCTS:
                create_document(database.db, "product", p)
            logger.info("seeded %s products", len(SEED_PRODUCTS))
    except Exception:
        logger.exception("product seeding failed")


# Routes
@app.get("/")
def root():
    return {"message": "Shop API Running"}


@app.get("/me")
def me(user: CurrentUser = Depends(authenticate)):
    return {"user": user.model_dump()}


@app.get("/products")
def list_products(q: Optional[str] = Query(None), category: Optional[str] = Query(None),
                  db: Database = Depends(get_db)):
    query = {}
    if q:
        query["$or"] = [
            {"name": {"$regex": q, "$options": "i"}},
            {"description": {"$regex": q, "$options": "i"}},
            {"category": {"$regex": q, "$options": "i"}},
        ]
    if category:
        query["category"] = {"$regex": f"^{category}$", "$options": "i"}

    docs = get_documents(db, "product", query)
    return to_str_id(docs)


@app.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(product_id)
    if oid is None:
        raise HTTPException(status_code=400, detail="Invalid product id")
    doc = db["product"].find_one({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return to_str_id(doc)


@app.get("/basket")
def get_basket(user: CurrentUser = Depends(authenticate), db: Database = Depends(get_db)):
    return basket.get_basket(db, user.id)


@app.post("/basket")
def add_to_basket(payload: BasketAddRequest, user: CurrentUser = Depends(authenticate),
                  db: Database = Depends(get_db)):
    return basket.add_item(db, user.id, payload.productId, payload.quantity)


@app.put("/basket/{product_id}")
def update_basket_item(product_id: str, payload: QuantityUpdate, user: CurrentUser = Depends(authenticate),
                       db: Database = Depends(get_db)):
    return basket.set_quantity(db, user.id, product_id, payload.quantity)


@app.delete("/basket/{product_id}")
def remove_from_basket(product_id: str, user: CurrentUser = Depends(authenticate),
                       db: Database = Depends(get_db)):
    return basket.remove_item(db, user.id, product_id)


@app.post("/checkout", status_code=201)
def place_order(payload: CheckoutRequest, user: CurrentUser = Depends(authenticate),
                db: Database = Depends(get_db)):
    try:
        order_id = checkout.place_order(db, user.id, payload)
    except NotFound:
        logger.exception("checkout failed for user %s", user.id)
        raise HTTPException(status_code=500, detail="Server error while placing order")
    return {"message": "Order placed successfully", "orderId": order_id}


@app.get("/orders")
def list_orders(user: CurrentUser = Depends(admin_only), db: Database = Depends(get_db)):
    return orders.list_orders(db)


@app.delete("/orders/{order_id}")
def delete_order(order_id: str, user: CurrentUser = Depends(admin_only), db: Database = Depends(get_db)):
    return orders.delete_order(db, order_id)


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        logger.exception("database diagnostics failed")
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
