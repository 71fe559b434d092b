from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from api import get_adapter, is_realtime_enabled
from errors import (
    AdapterError,
    AuthError,
    NotFoundError,
    PartialWriteError,
    TransientNetworkError,
    ValidationError,
)
from geocode import reverse_geocode, search_address
from log import configure_logging
from mock_adapter import MockAdapter
from models import AuthResponse, Location, Message, PhotoFile, Report, User
from service_reports import ReportService

configure_logging()

app = FastAPI(title="Citizen Reports Portal")


# The service wraps whichever adapter the selector picked at startup.
# Routes receive it through `get_service` so tests can override it with
# `app.dependency_overrides`.
def get_service() -> ReportService:
    return ReportService(get_adapter())


# Error taxonomy -> HTTP status
ERROR_STATUS = [
    (AuthError, 401),
    (NotFoundError, 404),
    (TransientNetworkError, 503),
    (PartialWriteError, 502),
]


@app.exception_handler(ValidationError)
async def validation_failed(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.errors})


@app.exception_handler(AdapterError)
async def adapter_failed(request: Request, exc: AdapterError):
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/health")
async def health(svc: ReportService = Depends(get_service)):
    try:
        await svc.health_check()
        return {"ok": True, "adapter": type(svc.adapter).__name__, "realtime": is_realtime_enabled()}
    except AdapterError as e:
        raise HTTPException(status_code=500, detail=f"Backend health check failed: {e}")


# ---------- Auth ----------

@app.post("/auth/login", response_model=AuthResponse)
async def login(body: dict, svc: ReportService = Depends(get_service)):
    return await svc.login(body)


@app.post("/auth/logout")
async def logout(svc: ReportService = Depends(get_service)):
    await svc.logout()
    return {"ok": True}


@app.get("/auth/me", response_model=Optional[User])
async def me(svc: ReportService = Depends(get_service)):
    return await svc.current_user()


# ---------- Reports ----------

@app.get("/reports", response_model=List[Report])
async def list_reports(svc: ReportService = Depends(get_service)):
    user = await svc.require_user()
    return await svc.list_reports(user.id)


@app.post("/reports", response_model=Report, status_code=201)
async def create_report(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    urgency: Optional[str] = Form(None),
    lat: Optional[str] = Form(None),
    lng: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    svc: ReportService = Depends(get_service),
):
    user = await svc.require_user()

    form = {"title": title, "description": description or None, "urgency": urgency}
    lat, lng = lat or None, lng or None
    if lat is not None or lng is not None:
        # pydantic parses the coordinates so bad numbers get field messages
        form["location"] = {"lat": lat, "lng": lng, "address": address}
    if photo is not None:
        form["photo_file"] = PhotoFile(
            filename=photo.filename or "photo",
            content_type=photo.content_type or "application/octet-stream",
            data=await photo.read(),
        )
    return await svc.create_report(form, user.id)


@app.get("/reports/{report_id}", response_model=Report)
async def get_report(report_id: str, svc: ReportService = Depends(get_service)):
    user = await svc.require_user()
    return await svc.get_report(report_id, user_id=user.id)


@app.get("/reports/{report_id}/messages", response_model=List[Message])
async def get_messages(report_id: str, svc: ReportService = Depends(get_service)):
    user = await svc.require_user()
    await svc.get_report(report_id, user_id=user.id)
    return await svc.get_messages(report_id)


@app.post("/reports/{report_id}/messages", response_model=Message, status_code=201)
async def send_message(report_id: str, body: dict, svc: ReportService = Depends(get_service)):
    user = await svc.require_user()
    await svc.get_report(report_id, user_id=user.id)
    return await svc.send_message(report_id, body, user.id)


@app.post("/seed", response_model=List[Report])
async def seed(svc: ReportService = Depends(get_service)):
    if not isinstance(svc.adapter, MockAdapter):
        raise HTTPException(status_code=400, detail="Seeding is only available with the mock adapter")
    user = await svc.require_user()
    # NOTE: writes straight into the mock store, there is no adapter operation for it
    return svc.adapter.store.seed_demo(user.id)


# ---------- Geocoding ----------

@app.get("/geocode/reverse")
def geocode_reverse(lat: float = Query(..., ge=-90, le=90), lng: float = Query(..., ge=-180, le=180)):
    return {"address": reverse_geocode(lat, lng)}


@app.get("/geocode/search", response_model=List[Location])
def geocode_search(q: str = Query(..., min_length=3)):
    return search_address(q)
