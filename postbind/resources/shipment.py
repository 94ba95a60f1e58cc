from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from postbind import validators
from postbind.exceptions import PostbindError
from postbind.resources.address import Address
from postbind.resources.base import Prop, Resource, ResourceDescriptor, ResourceService, reference_to
from postbind.resources.parcel import Parcel


class Rate(BaseModel):
    """A carrier quote attached to a shipment."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    rate: Optional[str] = None
    currency: Optional[str] = None
    delivery_days: Optional[int] = None
    shipment_id: Optional[str] = None
    carrier_account_id: Optional[str] = None


class PostageLabel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    label_url: Optional[str] = None
    label_file_type: Optional[str] = None
    label_pdf_url: Optional[str] = None
    label_zpl_url: Optional[str] = None


_address = validators.one_of_type(validators.mapping, validators.string)


class Shipment(Resource):
    descriptor = ResourceDescriptor(
        name="Shipment",
        url="shipments",
        key="shipment",
        prop_types={
            "to_address": _address.required,
            "from_address": _address.required,
            "return_address": _address,
            "buyer_address": _address,
            "parcel": validators.one_of_type(validators.mapping, validators.string).required,
            "customs_info": validators.mapping,
            "options": validators.mapping,
            "reference": validators.string,
            "is_return": validators.boolean,
            "carrier_accounts": validators.list_of(validators.string),
            "service": validators.string,
        },
        json_id_keys=frozenset({"to_address", "from_address", "return_address", "buyer_address", "parcel"}),
    )

    to_address: reference_to(Address) = None
    from_address: reference_to(Address) = None
    return_address: reference_to(Address) = None
    buyer_address: reference_to(Address) = None
    parcel: reference_to(Parcel) = None
    customs_info: Prop = None
    options: Prop = None
    reference: Prop = None
    is_return: Prop = None
    carrier_accounts: Prop = None
    service: Prop = None
    status: Optional[str] = None
    tracking_code: Optional[str] = None
    rates: Optional[List[Rate]] = None
    selected_rate: Optional[Rate] = None
    postage_label: Optional[PostageLabel] = None
    messages: Optional[List[Dict[str, Any]]] = None


def _rate_id(rate: Union[Rate, Dict[str, Any], str]) -> Optional[str]:
    if isinstance(rate, str):
        return rate
    if isinstance(rate, Rate):
        return rate.id
    return rate.get("id")


class ShipmentService(ResourceService[Shipment]):
    resource_class = Shipment

    async def buy(
        self,
        shipment: Shipment,
        rate: Union[Rate, Dict[str, Any], str, None],
        insurance: Optional[str] = None,
    ) -> Shipment:
        """Purchase a rate; the label and tracking code are applied to the shipment."""
        self.verify_parameters(shipment, {"this": ["id"], "args": ["rate"]}, rate)

        body: Dict[str, Any] = {"rate": {"id": _rate_id(rate)}}
        if insurance:
            body["insurance"] = insurance
        return await self.rpc(shipment, "buy", body)

    async def get_smartrates(self, shipment: Shipment) -> List[Dict[str, Any]]:
        """
        Fetch time-in-transit rates.

        The result list is returned as-is and the shipment is left untouched.
        """
        self.verify_parameters(shipment, {"this": ["id"]})
        response = await self._call(shipment, "smartrate", None, None, "get")
        return response.body.get("result") or []

    async def regenerate_rates(self, shipment: Shipment) -> Shipment:
        self.verify_parameters(shipment, {"this": ["id"]})
        return await self.rpc(shipment, "rerate")

    async def label(self, shipment: Shipment, file_format: Optional[str]) -> Shipment:
        """Convert a purchased label to another format (PDF, ZPL, EPL2)."""
        self.verify_parameters(shipment, {"this": ["id"], "args": ["file_format"]}, file_format)
        return await self.rpc(shipment, "label", {"file_format": file_format.upper()}, method="get")

    def lowest_rate(
        self,
        shipment: Shipment,
        carriers: Optional[Iterable[str]] = None,
        services: Optional[Iterable[str]] = None,
    ) -> Rate:
        """Cheapest of the shipment's rates, optionally limited to some carriers/services."""
        if isinstance(carriers, str):
            carriers = [carriers]
        if isinstance(services, str):
            services = [services]
        carriers = {c.lower() for c in carriers} if carriers else None
        services = {s.lower() for s in services} if services else None

        candidates = [
            r for r in shipment.rates or []
            if r.rate is not None
            and (carriers is None or (r.carrier or "").lower() in carriers)
            and (services is None or (r.service or "").lower() in services)
        ]
        if not candidates:
            raise PostbindError("No rates found.")
        return min(candidates, key=lambda r: float(r.rate))

    def delete(self, id: Optional[str]):
        return self.not_implemented("delete")
