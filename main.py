import logging
import os
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import catalog
import colleges
import enquiries
from config import Settings, get_settings
from database import peek_db
from emails import SmtpEmailSender
from enquiries import EnquiryPipeline
from validation import ApiError, PersistenceError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Education Times Abroad API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

LISTING_CACHE_HEADERS = {
    "Cache-Control": "public, s-maxage=180, stale-while-revalidate=300",
    "CDN-Cache-Control": "public, s-maxage=300",
}


# ---------- Error responses ----------

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    body: Dict[str, Any] = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = {"error": "Internal server error"}
    if not get_settings().is_production:
        body["detail"] = str(exc)
    return JSONResponse(status_code=500, content=body)


# ---------- Dependencies ----------

def get_pipeline(settings: Settings = Depends(get_settings)) -> EnquiryPipeline:
    return EnquiryPipeline(settings, SmtpEmailSender(settings))


# ---------- Meta ----------

@app.get("/")
def read_root():
    return {"message": "Education Times Abroad API is running"}


@app.get("/test")
def test_database():
    """Test endpoint to check if database is available and accessible"""
    settings = get_settings()
    response: Dict[str, Any] = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
        "database_name": "✅ Set" if settings.database_name else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }

    db = peek_db()
    if db is not None:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            response["collections"] = db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:80]}"

    return response


# ---------- Catalog ----------

@app.get("/api/colleges")
def list_colleges(
    response: Response,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    country: Optional[str] = None,
    exam: Optional[str] = None,
    college_type: Optional[str] = None,
):
    data = colleges.list_colleges(
        page=page, limit=limit, search=search, country=country, exam=exam, college_type=college_type
    )
    response.headers.update(LISTING_CACHE_HEADERS)
    return {"success": True, "message": "Colleges fetched successfully", "data": data}


@app.get("/api/colleges/{slug}")
def get_college(slug: str):
    return {"success": True, "data": colleges.get_college(slug)}


@app.get("/api/countries")
def list_countries():
    return {"success": True, "data": catalog.list_countries()}


@app.get("/api/countries/{slug}")
def get_country(slug: str):
    return {"success": True, "data": catalog.get_country(slug)}


@app.get("/api/exams")
def list_exams():
    return {"success": True, "data": catalog.list_exams()}


@app.get("/api/exams/{slug}")
def get_exam(slug: str):
    return {"success": True, "data": catalog.get_exam(slug)}


# ---------- Enquiries ----------

@app.post("/api/enquiries", status_code=201)
def create_enquiry(
    background_tasks: BackgroundTasks,
    payload: Any = Body(None),
    pipeline: EnquiryPipeline = Depends(get_pipeline),
):
    """Store a lead from the enquiry form, then email the admin and the student."""
    try:
        enquiry_id, enquiry = pipeline.submit(payload)
    except PersistenceError:
        raise PersistenceError("Failed to submit enquiry. Please try again.")
    # Runs after the response is sent; failures are only logged
    background_tasks.add_task(pipeline.notify, enquiry)
    return {"success": True, "message": "Enquiry submitted successfully", "enquiryId": enquiry_id}


@app.get("/api/enquiries")
def list_enquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    status: Optional[str] = None,
    interest: Optional[str] = None,
    search: Optional[str] = None,
):
    result = enquiries.list_enquiries(page=page, limit=limit, status=status, interest=interest, search=search)
    return {"success": True, **result}


@app.get("/api/enquiries/{enquiry_id}")
def get_enquiry(enquiry_id: str):
    return {"success": True, "data": enquiries.get_enquiry(enquiry_id)}


@app.patch("/api/enquiries/{enquiry_id}")
def update_enquiry_status(enquiry_id: str, payload: Any = Body(None)):
    doc = enquiries.update_enquiry_status(enquiry_id, payload)
    return {"success": True, "message": "Enquiry status updated", "data": doc}


@app.delete("/api/enquiries/{enquiry_id}")
def delete_enquiry(enquiry_id: str):
    enquiries.delete_enquiry(enquiry_id)
    return {"success": True, "message": "Enquiry deleted successfully"}


# ---------- Admin ----------

@app.get("/api/admin/colleges")
def admin_list_colleges():
    return {"success": True, "message": "Colleges fetched successfully", "data": colleges.list_all_colleges()}


@app.post("/api/admin/colleges", status_code=201)
def admin_create_college(payload: Any = Body(None)):
    doc = colleges.create_college(payload)
    return {"success": True, "message": "College created successfully", "data": doc}


@app.put("/api/admin/colleges/{college_id}")
def admin_update_college(college_id: str, payload: Any = Body(None)):
    doc = colleges.update_college(college_id, payload)
    return {"success": True, "message": "College updated successfully", "data": doc}


@app.delete("/api/admin/colleges/{college_id}")
def admin_deactivate_college(college_id: str):
    colleges.deactivate_college(college_id)
    return {"success": True, "message": "College deactivated"}


@app.post("/api/admin/countries", status_code=201)
def admin_create_country(payload: Any = Body(None)):
    doc = catalog.create_country(payload)
    return {"success": True, "message": "Country created successfully", "data": doc}


@app.post("/api/admin/exams", status_code=201)
def admin_create_exam(payload: Any = Body(None)):
    doc = catalog.create_exam(payload)
    return {"success": True, "message": "Exam created successfully", "data": doc}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
