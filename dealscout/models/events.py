"""Progress events streamed to the scan caller, one JSON object per line."""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from dealscout.models.scan import ScanSummary


class StatusEvent(BaseModel):
    type: Literal["status"] = "status"
    message: str


class LogEvent(BaseModel):
    type: Literal["log"] = "log"
    message: str
    level: Literal["info", "warning", "error"] = "info"


class NewDealEvent(BaseModel):
    type: Literal["newDeal"] = "newDeal"
    deal_id: str
    name: str
    source: str
    deal_quality: int
    viability_score: int
    analysis_origin: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    summary: ScanSummary


ScanProgressEvent = Annotated[
    Union[StatusEvent, LogEvent, NewDealEvent, ErrorEvent, CompleteEvent],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(ScanProgressEvent)


def to_json_line(event) -> str:
    return event.model_dump_json() + "\n"


def parse_event(line: str):
    return _event_adapter.validate_json(line)
