import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import verify
from database import DocumentStore, DocumentStoreError, close_store, get_store
from errors import InvalidInput, OperationFailed
from inventory import find_product, save_product
from schemas import AuthResult, LoginIn, ProductSaveIn, ProductSaveOut, ProductSearchOut, SessionContext

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_store()


app = FastAPI(title="Login & Inventory API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Helpers ----------

def require_store() -> DocumentStore:
    store = get_store()
    if store is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return store


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(OperationFailed)
async def operation_failed_handler(request: Request, exc: OperationFailed):
    return JSONResponse(status_code=503, content={"detail": exc.message})


# ---------- Basic Routes ----------

@app.get("/")
def read_root():
    return {"message": "Login & Inventory Backend Running"}


# ---------- Auth Routes ----------

AUTH_STATUS_CODES = {"authenticated": 200, "rejected": 401, "failed": 503}


@app.post("/api/login", response_model=AuthResult)
async def login(credentials: LoginIn, response: Response, store: DocumentStore = Depends(require_store)):
    result = await verify(store, credentials.email, credentials.password)
    response.status_code = AUTH_STATUS_CODES[result.status]
    return result


@app.post("/api/logout")
def logout():
    return {"message": "Signed out"}


@app.get("/api/help")
def account_help():
    return {"message": "Accounts are created by an administrator in the users collection."}


# ---------- Product Routes ----------

@app.get("/api/products/search", response_model=ProductSearchOut)
async def search_product(name: str, store: DocumentStore = Depends(require_store)):
    product = await find_product(store, name)
    if product is None:
        return ProductSearchOut(found=False, message="Product not found. You can create it.")
    return ProductSearchOut(found=True, product=product, message="Product found")


@app.put("/api/products", response_model=ProductSaveOut)
async def upsert_product(product: ProductSaveIn, store: DocumentStore = Depends(require_store)):
    session = SessionContext(last_found_id=product.existing_id)
    record = await save_product(store, product.name, product.quantity, product.price, session=session)
    return ProductSaveOut(product=record, message="Product saved successfully")


# ---------- Diagnostics ----------

@app.get("/test")
async def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }

    store = get_store()
    if store is None:
        response["database"] = "⚠️  Available but not initialized"
        return response

    try:
        collections = await store.list_collections()
        response["collections"] = collections[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except DocumentStoreError as e:
        logger.warning("Diagnostics query failed: %s", e)
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
