from typing import Any, Mapping, Optional

from postbind import validators
from postbind.resources.base import Prop, Resource, ResourceDescriptor, ResourceService


class Parcel(Resource):
    descriptor = ResourceDescriptor(
        name="Parcel",
        url="parcels",
        key="parcel",
        prop_types={
            "length": validators.number,
            "width": validators.number,
            "height": validators.number,
            "weight": validators.number.required,
            "predefined_package": validators.string,
        },
    )

    length: Prop = None
    width: Prop = None
    height: Prop = None
    weight: Prop = None
    predefined_package: Prop = None


class ParcelService(ResourceService[Parcel]):
    resource_class = Parcel

    async def all(self, query: Optional[Mapping[str, Any]] = None, url: Optional[str] = None):
        return await self.not_implemented("all")

    def delete(self, id: Optional[str]):
        return self.not_implemented("delete")
