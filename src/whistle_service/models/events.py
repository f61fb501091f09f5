"""
Notification Event Models

Tagged union of events pushed from the notification hub to admin viewers.
The ``type`` field is the discriminator on the wire.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from whistle_service.models.report import Report, utcnow


def _timestamp() -> str:
    return utcnow().isoformat()


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> str:
        """Serialize using wire field names"""
        return self.model_dump_json(by_alias=True)


class ConnectedEvent(_Event):
    type: Literal["connected"] = "connected"
    message: str = "Notifications active"


class HeartbeatEvent(_Event):
    type: Literal["heartbeat"] = "heartbeat"
    timestamp: str = Field(default_factory=_timestamp)


class _ReportEvent(_Event):
    report_id: str = Field(..., alias="reportId")
    category: str
    severity: str
    timestamp: str = Field(default_factory=_timestamp)


class NewReportEvent(_ReportEvent):
    type: Literal["new_report"] = "new_report"


class UrgentReportEvent(_ReportEvent):
    type: Literal["urgent_report"] = "urgent_report"


NotificationEvent = Annotated[
    Union[ConnectedEvent, HeartbeatEvent, NewReportEvent, UrgentReportEvent],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(NotificationEvent)


def parse_event(data: str) -> NotificationEvent:
    """Parse one JSON event payload received from the stream"""
    return _event_adapter.validate_json(data)


def event_for_report(report: Report) -> Union[NewReportEvent, UrgentReportEvent]:
    """Build the notification announcing a newly stored report"""
    event_cls = UrgentReportEvent if report.is_urgent else NewReportEvent
    return event_cls(
        report_id=report.id,
        category=report.display_category,
        severity=report.severity.value,
    )
