import logging
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import load_settings
from .errors import ParseError
from .export import encode_csv
from .logging_config import setup_logging
from .lookups import (
    ParkingMetrics,
    estimate_occupant_load,
    lookup_ada_stalls,
    lookup_egress,
    lookup_fire_rating,
    lookup_ibc_limit,
    lookup_parking_rate,
)
from .matching import resolve_with_trace
from .models import (
    AdaLookupRequest,
    ColumnMappingOut,
    DatasetResponse,
    EgressLookupRequest,
    EgressResponse,
    ExportRequest,
    FireRatingRequest,
    HealthResponse,
    IbcLookupRequest,
    LimitResponse,
    LookupResponse,
    ParkingLookupRequest,
    RecordsRequest,
    ReportItem,
    ReportSummary,
    UploadReport,
    ValidationOut,
    ZoningMatchRequest,
    ZoningMatchResponse,
)
from .parser import decode_bytes, describe_text, parse, sha256_hex
from .rules import DatasetType
from .schema import normalize_dataset
from .table import Dataset, key_set
from .validate import validate

settings = load_settings()
setup_logging(settings.log_level, settings.log_json)
logger = logging.getLogger("codesheet.api")

app = FastAPI(
    title="codesheet",
    description="Reference-table ingestion and lookups for building-code worksheets",
    version="0.1.0",
)


def _dataset_type(value: str) -> DatasetType:
    kind = DatasetType.coerce(value)
    if kind is None:
        raise HTTPException(status_code=422, detail=f"Unknown dataset type '{value}'")
    return kind


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/datasets/{dataset_type}", response_model=DatasetResponse)
async def upload_dataset(dataset_type: str, file: UploadFile = File(...), county: Optional[str] = None):
    kind = _dataset_type(dataset_type)
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    raw = await file.read()
    if len(raw) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.max_upload_bytes} bytes")

    text, encoding = decode_bytes(raw)
    try:
        dataset = parse(text)
    except ParseError as e:
        logger.info("upload rejected: %s", e, extra={"dataset_type": kind.value})
        return JSONResponse(
            status_code=422,
            content={"detail": str(e), "error": type(e).__name__, "debug": describe_text(text)},
        )

    table = normalize_dataset(dataset, kind, default_county=county)
    result = validate(table.dataset, kind)
    if not result.valid:
        logger.info("dataset failed validation: %s", result.message, extra={"dataset_type": kind.value})

    warnings = [
        ReportItem(row=w.row, issue="row_too_long", value=w.reason, action="extra_fields_ignored")
        for w in dataset.warnings
    ]
    errors = [
        ReportItem(row=f.row, issue="row_unparseable", value=f.reason, action="skipped")
        for f in dataset.skipped_rows
    ]

    return DatasetResponse(
        dataset_type=kind.value,
        headers=list(table.dataset.headers),
        original_headers=dict(table.dataset.original_headers),
        records=list(table.dataset.records),
        mapping=[ColumnMappingOut(**asdict(m)) for m in table.mapping],
        validation=ValidationOut(**asdict(result)),
        report=UploadReport(
            summary=ReportSummary(
                rows=len(table.dataset),
                columns=len(table.dataset.headers),
                skipped_rows=len(errors),
                warnings=len(warnings),
            ),
            encoding=encoding,
            sha256=sha256_hex(raw),
            warnings=warnings,
            errors=errors,
        ),
    )


@app.post("/datasets/{dataset_type}/normalize")
def normalize_records(dataset_type: str, req: RecordsRequest):
    kind = _dataset_type(dataset_type)
    source = Dataset(records=tuple(req.records), headers=tuple(key_set(req.records)))
    table = normalize_dataset(source, kind)
    return {
        "records": list(table.dataset.records),
        "mapping": [asdict(m) for m in table.mapping],
    }


@app.post("/datasets/{dataset_type}/validate", response_model=ValidationOut)
def validate_records(dataset_type: str, req: RecordsRequest):
    kind = _dataset_type(dataset_type)
    return ValidationOut(**asdict(validate(req.records, kind)))


@app.post("/match/zoning", response_model=ZoningMatchResponse)
def match_zoning(req: ZoningMatchRequest):
    outcome = resolve_with_trace(req.records, req.jurisdiction, req.code)
    return ZoningMatchResponse(
        matched=outcome.record is not None,
        record=outcome.record,
        strategy=outcome.strategy,
        candidates=outcome.candidates,
        jurisdiction_values=outcome.jurisdiction_values,
        district_values=outcome.district_values,
    )


@app.post("/lookup/ada", response_model=LookupResponse)
def lookup_ada(req: AdaLookupRequest):
    return LookupResponse(**asdict(lookup_ada_stalls(req.records, req.total_spaces)))


@app.post("/lookup/parking", response_model=LookupResponse)
def lookup_parking(req: ParkingLookupRequest):
    metrics = ParkingMetrics(units=req.units, area=req.area)
    result = lookup_parking_rate(req.records, req.jurisdiction, req.use_type, metrics)
    return LookupResponse(**asdict(result))


@app.post("/lookup/ibc", response_model=LimitResponse)
def lookup_ibc(req: IbcLookupRequest):
    kind = _dataset_type(req.dataset_type)
    if not kind.is_ibc_limit:
        raise HTTPException(status_code=422, detail=f"'{req.dataset_type}' is not an IBC limits table")
    result = lookup_ibc_limit(req.records, req.occupancy, req.construction_type, req.sprinklered, kind)
    return LimitResponse(**asdict(result))


@app.post("/lookup/fire-rating", response_model=LimitResponse)
def lookup_fire(req: FireRatingRequest):
    return LimitResponse(**asdict(lookup_fire_rating(req.records, req.construction_type, req.element)))


@app.post("/lookup/egress", response_model=EgressResponse)
def lookup_exits(req: EgressLookupRequest):
    load = req.occupant_load
    if load is None:
        load = estimate_occupant_load(req.occupancy, req.area)
    result = lookup_egress(req.records, req.occupancy, load)
    return EgressResponse(occupant_load=load, **asdict(result))


@app.post("/export")
def export_csv(req: ExportRequest):
    return PlainTextResponse(encode_csv(req.records, req.columns), media_type="text/csv")
