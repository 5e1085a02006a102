import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import database
from responses import register_exception_handlers
from routes import (
    auth,
    messages,
    payments,
    project_discussions,
    project_features,
    projects,
    reviews,
    services,
    uploads,
    users,
)
from schemas import COLLECTIONS
from security import auth_middleware
from settings import ALLOWED_ORIGINS, APP_TITLE, DATABASE_NAME, DATABASE_URL, LOG_LEVEL, PORT

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_TITLE)

# CORS must stay the outermost middleware, so it is added after the auth gate
app.middleware("http")(auth_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for module in (auth, users, uploads, projects, services, project_features, project_discussions, messages, reviews, payments):
    app.include_router(module.router)


@app.get("/")
def read_root():
    return {"message": f"{APP_TITLE} is running"}


@app.get("/schema")
def get_schema():
    return {"collections": COLLECTIONS}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if DATABASE_URL else "❌ Not Set",
        "database_name": DATABASE_NAME,
        "connection_status": "Not Connected",
        "collections": [],
    }
    db = database.db
    if db is None:
        return response
    response["database"] = "✅ Available"
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except Exception as e:
        logger.warning("Database diagnostics failed: %s", e)
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
