from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

CellValue = Union[bool, int, float, str]
RecordIn = Dict[str, CellValue]


class HealthResponse(BaseModel):
    ok: bool = True


class ValidationOut(BaseModel):
    valid: bool
    message: str
    missing_columns: List[str] = Field(default_factory=list)
    record_count: int = 0


class ColumnMappingOut(BaseModel):
    source: str
    target: str
    rule: str


class ReportItem(BaseModel):
    row: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class ReportSummary(BaseModel):
    rows: int
    columns: int
    skipped_rows: int = 0
    warnings: int = 0


class UploadReport(BaseModel):
    summary: ReportSummary
    encoding: Dict[str, Any] = Field(default_factory=dict)
    sha256: str
    warnings: List[ReportItem] = Field(default_factory=list)
    errors: List[ReportItem] = Field(default_factory=list)


class DatasetResponse(BaseModel):
    dataset_type: str
    headers: List[str]
    original_headers: Dict[str, str] = Field(default_factory=dict)
    records: List[RecordIn]
    mapping: List[ColumnMappingOut] = Field(default_factory=list)
    validation: ValidationOut
    report: UploadReport


class RecordsRequest(BaseModel):
    records: List[RecordIn]


class ZoningMatchRequest(BaseModel):
    records: List[RecordIn]
    jurisdiction: str
    code: str


class ZoningMatchResponse(BaseModel):
    matched: bool
    record: Optional[RecordIn] = None
    strategy: Optional[str] = None
    candidates: int = 0
    jurisdiction_values: List[str] = Field(default_factory=list)
    district_values: List[str] = Field(default_factory=list)


class AdaLookupRequest(BaseModel):
    records: List[RecordIn] = Field(default_factory=list)
    total_spaces: Union[int, float] = Field(..., examples=[120])


class ParkingLookupRequest(BaseModel):
    records: List[RecordIn] = Field(default_factory=list)
    jurisdiction: str
    use_type: str
    units: Union[int, float] = 0
    area: Union[int, float] = 0


class LookupResponse(BaseModel):
    required: int
    description: str
    source: Optional[str] = None


class IbcLookupRequest(BaseModel):
    records: List[RecordIn] = Field(default_factory=list)
    dataset_type: str = Field(default="height-limits", examples=["height-limits", "story-limits", "area-limits"])
    occupancy: str
    construction_type: str
    sprinklered: bool = False


class LimitResponse(BaseModel):
    limit: Union[int, float]
    description: str


class ExportRequest(BaseModel):
    records: List[RecordIn]
    columns: Optional[List[str]] = None


class FireRatingRequest(BaseModel):
    records: List[RecordIn] = Field(default_factory=list)
    construction_type: str
    element: str = Field(..., examples=["exterior walls", "roof_construction"])


class EgressLookupRequest(BaseModel):
    records: List[RecordIn] = Field(default_factory=list)
    occupancy: str
    occupant_load: Optional[Union[int, float]] = None
    # used to estimate the occupant load when none is given
    area: Union[int, float] = 0


class EgressResponse(BaseModel):
    occupant_load: Union[int, float]
    exits_required: int
    max_travel_distance: Optional[Union[int, float]] = None
    description: str
