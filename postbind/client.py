"""
EasyPost API Client

Wires one transport into every resource service:

    async with Client(api_key="EZTK...") as client:
        webhook = await client.webhooks.save(client.webhooks.create({"url": "https://example.com/hook"}))
"""

from typing import Optional

from postbind.config import get_settings
from postbind.exceptions import MissingParameterError
from postbind.resources.address import AddressService
from postbind.resources.parcel import ParcelService
from postbind.resources.report import ReportService
from postbind.resources.shipment import ShipmentService
from postbind.resources.webhook import WebhookService
from postbind.transport import HttpTransport, Transport
from postbind.webhooks import validate_webhook


class Client:
    """
    Client for the EasyPost API.

    Pass ``transport`` to use your own HTTP stack; otherwise an
    ``HttpTransport`` is built from the arguments and ``POSTBIND_*`` settings.
    """

    validate_webhook = staticmethod(validate_webhook)

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[Transport] = None,
    ):
        if transport is None:
            settings = get_settings()
            api_key = api_key or (settings.api_key.get_secret_value() if settings.api_key else None)
            if not api_key:
                raise MissingParameterError(
                    "API key required. Set POSTBIND_API_KEY environment variable "
                    "or pass api_key parameter"
                )
            transport = HttpTransport(
                api_key,
                base_url=base_url or settings.base_url,
                timeout=timeout or settings.timeout,
            )

        self.transport = transport
        self.addresses = AddressService(transport)
        self.parcels = ParcelService(transport)
        self.reports = ReportService(transport)
        self.shipments = ShipmentService(transport)
        self.webhooks = WebhookService(transport)

    async def aclose(self):
        """Close the underlying transport if it owns a connection pool."""
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
