from postbind.resources.address import Address, AddressService
from postbind.resources.base import Resource, ResourceDescriptor, ResourceService
from postbind.resources.parcel import Parcel, ParcelService
from postbind.resources.report import Report, ReportService
from postbind.resources.shipment import PostageLabel, Rate, Shipment, ShipmentService
from postbind.resources.webhook import Webhook, WebhookService

__all__ = [
    "Address",
    "AddressService",
    "Parcel",
    "ParcelService",
    "PostageLabel",
    "Rate",
    "Report",
    "ReportService",
    "Resource",
    "ResourceDescriptor",
    "ResourceService",
    "Shipment",
    "ShipmentService",
    "Webhook",
    "WebhookService",
]
