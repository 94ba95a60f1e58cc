from typing import Any, Mapping, Optional

from postbind import validators
from postbind.exceptions import MissingParameterError
from postbind.resources.base import Prop, Resource, ResourceDescriptor, ResourceService


class Webhook(Resource):
    descriptor = ResourceDescriptor(
        name="Webhook",
        url="webhooks",
        key="webhook",
        prop_types={
            "url": validators.http_url.required,
            "webhook_secret": validators.string,
        },
    )

    url: Prop = None
    webhook_secret: Prop = None
    disabled_at: Prop = None


class WebhookService(ResourceService[Webhook]):
    resource_class = Webhook

    async def update(self, id: str, data: Optional[Mapping[str, Any]] = None) -> Webhook:
        """Update a webhook by id; with no data this re-enables a disabled webhook."""
        if not id:
            raise MissingParameterError(f"No id was passed into {self.descriptor.name} update()")

        response = await self.transport.patch(f"{self.descriptor.url}/{id}", dict(data or {}))
        return self.create(response.body)
