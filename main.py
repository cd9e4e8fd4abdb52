import os
import time
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, List, Optional
from datetime import datetime

from dotenv import load_dotenv
from bson import ObjectId
from pymongo.database import Database

from database import connect_database, create_document, get_documents, ping, update_document
from schemas import LessonUpdateResult, OrderIn
from validators import (
    RequestError,
    build_search_filter,
    filter_lesson_updates,
    normalize_order,
    parse_object_id,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", Path(__file__).resolve().parent / "public"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    client, db = connect_database()
    app.state.db = db
    try:
        yield
    finally:
        client.close()


app = FastAPI(title="Lessons API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    ms = int((time.perf_counter() - started) * 1000)
    ip = request.client.host if request.client else ""
    ua = request.headers.get("user-agent", "")
    url = request.url.path
    if request.url.query:
        url += "?" + request.url.query
    logger.info("%s %s %s %dms ip=%s ua=%s", response.status_code, request.method, url, ms, ip, ua)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


# ---------- Helpers ----------

def current_db(request: Request) -> Optional[Database]:
    return getattr(request.app.state, "db", None)


def get_db(db: Optional[Database] = Depends(current_db)) -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def _jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def doc_to_dict(doc: dict) -> dict:
    return {k: _jsonable(v) for k, v in doc.items()}


def _client_error(err: RequestError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)


def _store_error(err: Exception) -> HTTPException:
    logger.exception("Store operation failed")
    return HTTPException(status_code=500, detail=str(err))


# ---------- Health ----------

@app.get("/api/health")
def health(db: Optional[Database] = Depends(current_db)):
    if db is None:
        return JSONResponse(status_code=500, content={"ok": False, "error": "Database not configured"})
    try:
        ping(db)
    except Exception as e:
        logger.warning("Health ping failed: %s", e)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return {"ok": True}


# ---------- Lesson Routes ----------

@app.get("/api/lessons")
def list_lessons(db: Database = Depends(get_db)) -> List[dict]:
    try:
        docs = get_documents(db, "lessons")
    except Exception as e:
        raise _store_error(e)
    return [doc_to_dict(d) for d in docs]

@app.put("/api/lessons/{lesson_id}", response_model=LessonUpdateResult)
def update_lesson(lesson_id: str, body: Optional[Dict[str, Any]] = Body(None), db: Database = Depends(get_db)):
    try:
        oid = parse_object_id(lesson_id)
        updates = filter_lesson_updates(body)
    except RequestError as err:
        raise _client_error(err)

    try:
        matched, modified = update_document(db, "lessons", oid, updates)
    except Exception as e:
        raise _store_error(e)
    if matched == 0:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return LessonUpdateResult(matchedCount=matched, modifiedCount=modified)


# ---------- Search ----------

@app.get("/api/search")
def search_lessons(q: Optional[str] = None, db: Database = Depends(get_db)) -> List[dict]:
    try:
        filter_dict = build_search_filter(q)
    except RequestError as err:
        raise _client_error(err)

    try:
        docs = get_documents(db, "lessons", filter_dict)
    except Exception as e:
        raise _store_error(e)
    return [doc_to_dict(d) for d in docs]


# ---------- Order Routes ----------

@app.post("/api/orders", status_code=201)
def create_order(order: Optional[OrderIn] = None, db: Database = Depends(get_db)):
    try:
        record = normalize_order(order.model_dump() if order else None)
    except RequestError as err:
        raise _client_error(err)

    try:
        saved = create_document(db, "orders", record.model_dump())
    except Exception as e:
        raise _store_error(e)
    out = doc_to_dict(saved)
    return {"insertedId": out["_id"], **out}


# ---------- Images ----------

@app.get("/images/lessons/{file}")
def lesson_image(file: str):
    folder = (PUBLIC_DIR / "images" / "lessons").resolve()
    path = (folder / file).resolve()
    if path.parent == folder and path.is_file():
        return FileResponse(path)
    return JSONResponse(status_code=404, content={"error": "Image not found", "file": file})


# Mounted after every route; "/" matches all paths.
if PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
