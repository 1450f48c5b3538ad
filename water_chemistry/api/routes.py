from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status

from water_chemistry.core.config import settings
from water_chemistry.core.security import require_user
from water_chemistry.errors import (
    ForbiddenError,
    InsufficientDataError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
    WaterChemistryError,
)
from water_chemistry.schemas import (
    AdjustmentPlan,
    AnalyzeRequest,
    AnalyzeResponse,
    ChemistryRecord,
    InsufficientDataResponse,
    RecordIn,
    RecordListResponse,
    SaveResponse,
    SolveRequest,
    ToxicityAssessment,
    WaterReading,
)
from water_chemistry.services.parameters import parameter_advice, parameter_reports
from water_chemistry.services.records import RecordService
from water_chemistry.services.recommend import recommend
from water_chemistry.services.solver import solve
from water_chemistry.services.toxicity import assess
from water_chemistry.storage import SqliteRecordStore

router = APIRouter()


def get_record_service() -> RecordService:
    return RecordService(SqliteRecordStore(settings.DATABASE_PATH))


def _http_error(e: WaterChemistryError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, StorageUnavailable):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record store unavailable, retry later",
            headers={"Retry-After": "5"},
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/health")
def health():
    return {"status": "ok", "service": settings.PROJECT_NAME}


# ---- toxicity model ----

@router.post(
    "/water-chemistry/assess",
    response_model=Union[ToxicityAssessment, InsufficientDataResponse],
)
def assess_reading(reading: WaterReading, _owner: str = Depends(require_user)):
    try:
        return assess(reading, mode=settings.PKA_MODE)
    except InsufficientDataError as e:
        return InsufficientDataResponse(missing=e.missing)


@router.post(
    "/water-chemistry/solve",
    response_model=Union[AdjustmentPlan, InsufficientDataResponse],
)
def solve_reading(req: SolveRequest, _owner: str = Depends(require_user)):
    try:
        return solve(req.reading, req.target_level, mode=settings.PKA_MODE)
    except InsufficientDataError as e:
        return InsufficientDataResponse(missing=e.missing)


@router.post("/water-chemistry/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest, _owner: str = Depends(require_user)):
    reports = parameter_reports(req.reading)
    advice = parameter_advice(reports)

    try:
        assessment = assess(req.reading, mode=settings.PKA_MODE)
    except InsufficientDataError as e:
        return AnalyzeResponse(
            status="insufficient_data",
            missing=e.missing,
            parameters=reports,
            parameter_advice=advice,
        )

    plan = solve(req.reading, req.target_level, mode=settings.PKA_MODE)

    return AnalyzeResponse(
        status="ok",
        assessment=assessment,
        plan=plan,
        recommendations=recommend(assessment, plan),
        parameters=reports,
        parameter_advice=advice,
    )


# ---- records ----

@router.post("/water-chemistry/records", response_model=SaveResponse)
def save_record(
    payload: RecordIn,
    owner_id: str = Depends(require_user),
    service: RecordService = Depends(get_record_service),
):
    try:
        record, was_insert = service.save(owner_id, payload, timeout=settings.STORAGE_TIMEOUT_S)
    except WaterChemistryError as e:
        raise _http_error(e)

    return SaveResponse(
        message="Record saved successfully" if was_insert else "Record updated successfully",
        was_insert=was_insert,
        data=record,
    )


@router.get("/water-chemistry/records", response_model=RecordListResponse)
def list_records(
    date: Optional[str] = None,
    parameter: Optional[str] = None,
    search: Optional[str] = None,
    owner_id: str = Depends(require_user),
    service: RecordService = Depends(get_record_service),
):
    try:
        records = service.list_records(
            owner_id,
            timeout=settings.STORAGE_TIMEOUT_S,
            record_date=date,
            parameter=parameter,
            search=search,
        )
    except WaterChemistryError as e:
        raise _http_error(e)
    return RecordListResponse(records=records)


@router.get("/water-chemistry/records/{record_id}", response_model=ChemistryRecord)
def get_record(
    record_id: int,
    owner_id: str = Depends(require_user),
    service: RecordService = Depends(get_record_service),
):
    try:
        return service.get_record(owner_id, record_id, timeout=settings.STORAGE_TIMEOUT_S)
    except WaterChemistryError as e:
        raise _http_error(e)


@router.put("/water-chemistry/records/{record_id}", response_model=ChemistryRecord)
def update_record(
    record_id: int,
    payload: RecordIn,
    owner_id: str = Depends(require_user),
    service: RecordService = Depends(get_record_service),
):
    try:
        return service.update_record(owner_id, record_id, payload, timeout=settings.STORAGE_TIMEOUT_S)
    except WaterChemistryError as e:
        raise _http_error(e)


@router.delete("/water-chemistry/records/{record_id}")
def delete_record(
    record_id: int,
    owner_id: str = Depends(require_user),
    service: RecordService = Depends(get_record_service),
):
    try:
        service.delete_record(owner_id, record_id, timeout=settings.STORAGE_TIMEOUT_S)
    except WaterChemistryError as e:
        raise _http_error(e)
    return {"success": True, "message": "Record deleted successfully"}
