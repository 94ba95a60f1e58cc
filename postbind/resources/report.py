from typing import Any, Dict, Mapping, Optional

from postbind import validators
from postbind.exceptions import MissingParameterError
from postbind.resources.base import Prop, Resource, ResourceDescriptor, ResourceService


REPORT_TYPES = (
    "cash_flow",
    "payment_log",
    "refund",
    "shipment",
    "shipment_invoice",
    "tracker",
)


class Report(Resource):
    descriptor = ResourceDescriptor(
        name="Report",
        url="reports",
        key="report",
        prop_types={
            "type": validators.one_of(REPORT_TYPES).required,
            "start_date": validators.matches(r"\d{4}-\d{2}-\d{2}", "a YYYY-MM-DD date"),
            "end_date": validators.matches(r"\d{4}-\d{2}-\d{2}", "a YYYY-MM-DD date"),
            "include_children": validators.boolean,
            "columns": validators.list_of(validators.string),
            "additional_columns": validators.list_of(validators.string),
        },
    )

    type: Prop = None
    status: Optional[str] = None
    start_date: Prop = None
    end_date: Prop = None
    include_children: Prop = None
    columns: Prop = None
    additional_columns: Prop = None
    url: Optional[str] = None
    url_expires_at: Optional[str] = None


class ReportService(ResourceService[Report]):
    """Reports live under a per-type collection such as ``reports/shipment``."""

    resource_class = Report

    async def all(self, query: Optional[Mapping[str, Any]] = None, url: Optional[str] = None) -> Dict[str, Any]:
        query = dict(query or {})
        if not url:
            report_type = query.pop("type", None)
            if not report_type:
                raise MissingParameterError("Missing parameter: type")
            url = f"{self.descriptor.url}/{report_type}"
        return await super().all(query, url)

    async def save(self, report: Report) -> Report:
        if report.id:
            return await self.not_implemented("update")

        self.validate_properties(report)
        data = report.to_json()
        report_type = data.pop("type")
        response = await self.transport.post(f"{self.descriptor.url}/{report_type}", data)
        report.merge(response.body)
        return report

    def delete(self, id: Optional[str]):
        return self.not_implemented("delete")
