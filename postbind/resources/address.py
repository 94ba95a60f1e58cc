from typing import Any, Dict, Mapping, Optional

from postbind import validators
from postbind.resources.base import Prop, Resource, ResourceDescriptor, ResourceService


class Address(Resource):
    descriptor = ResourceDescriptor(
        name="Address",
        url="addresses",
        key="address",
        prop_types={
            "name": validators.string,
            "company": validators.string,
            "street1": validators.string,
            "street2": validators.string,
            "city": validators.string,
            "state": validators.string,
            "zip": validators.string,
            "country": validators.matches(r"[A-Z]{2}", "a two-letter ISO country code"),
            "phone": validators.string,
            "email": validators.string,
            "residential": validators.boolean,
            "carrier_facility": validators.string,
            "federal_tax_id": validators.string,
            "state_tax_id": validators.string,
            "verify": validators.one_of_type(validators.boolean, validators.list_of(validators.string)),
            "verify_strict": validators.one_of_type(validators.boolean, validators.list_of(validators.string)),
        },
    )

    name: Prop = None
    company: Prop = None
    street1: Prop = None
    street2: Prop = None
    city: Prop = None
    state: Prop = None
    zip: Prop = None
    country: Prop = None
    phone: Prop = None
    email: Prop = None
    residential: Prop = None
    carrier_facility: Prop = None
    federal_tax_id: Prop = None
    state_tax_id: Prop = None
    verify: Prop = None
    verify_strict: Prop = None
    verifications: Optional[Dict[str, Any]] = None


class AddressService(ResourceService[Address]):
    resource_class = Address

    async def create_and_verify(self, data: Mapping[str, Any]) -> Address:
        """Create an address and fail unless the API can verify it."""
        address = self.create(data)
        self.validate_properties(address)
        response = await self.transport.post(
            f"{self.descriptor.url}/create_and_verify", self.wrap_json(address.to_json())
        )
        return self.create(response.body["address"])

    async def verify(self, address: Address) -> Address:
        """Run verification on a saved address and apply the result to it."""
        self.verify_parameters(address, {"this": ["id"]})
        response = await self._call(address, "verify", None, None, "get")
        address.merge(response.body.get("address", response.body))
        return address

    def delete(self, id: Optional[str]):
        return self.not_implemented("delete")
