import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import database
from config import CORS_ORIGINS, DATABASE_NAME, DATABASE_URL, PORT
from database import create_document, get_db, get_documents, serialize_doc
from schemas import Deliverystaff, Menuitem, User, Vendor
from snapshot import hash_item_snapshot
import delivery
import orders

app = FastAPI(title="Meshi Order API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders.router)
app.include_router(delivery.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors: answer 400 naming the first bad field
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    return JSONResponse(status_code=400, content={"detail": detail})


# Seed data route (idempotent) to populate a couple of vendors, their menus and demo accounts
@app.post("/seed")
def seed():
    try:
        db = get_db()
        # Only seed if empty
        if db["vendor"].count_documents({}) == 0:
            v1_id = create_document("vendor", Vendor(
                name="Spice Route",
                email="spiceroute@example.com",
                cuisine="Indian",
                image_url="https://images.unsplash.com/photo-1544025162-d76694265947",
                rating=4.6,
                delivery_time_min=30,
            ))

            v2_id = create_document("vendor", Vendor(
                name="Pasta Palace",
                email="pastapalace@example.com",
                cuisine="Italian",
                image_url="https://images.unsplash.com/photo-1521389508051-d7ffb5dc8bbf",
                rating=4.4,
                delivery_time_min=25,
            ))

            for item in [
                Menuitem(vendor_id=v1_id, name="Butter Chicken", description="Creamy tomato gravy", price=320, is_veg=False, category="Mains"),
                Menuitem(vendor_id=v1_id, name="Paneer Tikka", description="Grilled cottage cheese", price=240, is_veg=True, category="Starters"),
                Menuitem(vendor_id=v2_id, name="Margherita Pizza", description="Classic with basil", price=299, is_veg=True, category="Pizza"),
                Menuitem(vendor_id=v2_id, name="Pesto Pasta", description="Fresh basil pesto", price=275.5, is_veg=True, category="Pasta"),
            ]:
                create_document("menuitem", item)

            create_document("user", User(name="Demo Customer", email="customer@example.com", mobile="9000000001"))
            create_document("deliverystaff", Deliverystaff(
                name="Demo Rider",
                email="rider@example.com",
                mobile="9000000002",
                vendor_id=v1_id,
                status="active",
            ))
        return {"status": "ok"}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/")
def read_root():
    return {"message": "Meshi Order API is running"}


@app.get("/api/public/vendors")
def list_vendors():
    try:
        docs = get_documents("vendor", limit=50)
        return [serialize_doc(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/public/vendors/{vendor_id}/menu")
def get_menu(vendor_id: str):
    # Each item carries the snapshot hash the client must send back when ordering
    try:
        items = get_documents("menuitem", {"vendor_id": vendor_id}, limit=200)
        menu = []
        for item in items:
            doc = serialize_doc(item)
            doc["version_hash"] = hash_item_snapshot(item)
            menu.append(doc)
        return menu
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }

    try:
        db = database.db
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Configured"
            response["database_name"] = db.name if hasattr(db, 'name') else "✅ Connected"
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"

    response["database_url"] = "✅ Set" if DATABASE_URL else "❌ Not Set"
    response["database_name"] = "✅ Set" if DATABASE_NAME else "❌ Not Set"
    return response


if __name__ == "__main__":
    import uvicorn
    from config import validate_configuration

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    validate_configuration()
    uvicorn.run(app, host="0.0.0.0", port=PORT)
