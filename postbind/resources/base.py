"""
Generic resource mapping.

A resource type is a pydantic model with a statically declared field set
and a ``ResourceDescriptor`` describing its wire contract. All network
behaviour lives in ``ResourceService``, which holds the transport:

    class Webhook(Resource):
        descriptor = ResourceDescriptor(name="Webhook", url="webhooks", key="webhook",
                                        prop_types={"url": validators.http_url.required})
        url: Prop = None

    class WebhookService(ResourceService[Webhook]):
        resource_class = Webhook
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Awaitable,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic import ValidationError as ModelValidationError

from postbind.exceptions import MissingParameterError, ResourceNotImplementedError, ValidationError
from postbind.logger import logger
from postbind.transport import Response, Transport
from postbind.validators import Validator


# Writable properties keep the value they were given; the descriptor's
# validators decide whether it is acceptable.
Prop = Optional[Any]


def reference_to(model: Type[BaseModel]) -> Any:
    """Field type for a nested object: mappings parse into ``model``, anything else is kept as is."""
    return Annotated[Union[model, Any], Field(union_mode="left_to_right")]


@dataclass(frozen=True)
class ResourceDescriptor:
    """Static wire contract of a resource type."""
    name: str
    url: str
    key: str
    prop_types: Dict[str, Validator] = field(default_factory=dict)
    json_id_keys: FrozenSet[str] = frozenset()


def _reference_id(value: Any) -> Optional[str]:
    if isinstance(value, Resource):
        return value.id
    if isinstance(value, Mapping):
        return value.get("id")
    return None


def _serialize(value: Any) -> Any:
    if isinstance(value, Resource):
        return value.to_json()
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, Mapping):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class Resource(BaseModel):
    """Local mirror of an API object."""

    descriptor: ClassVar[ResourceDescriptor]

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    object: Optional[str] = None
    mode: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    _validation_errors: Optional[Dict[str, str]] = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        descriptor = getattr(cls, "descriptor", None)
        if descriptor is None:
            return
        undeclared = (set(descriptor.prop_types) | set(descriptor.json_id_keys)) - set(cls.model_fields)
        if undeclared:
            raise TypeError(f"{cls.__name__} descriptor names undeclared fields: {sorted(undeclared)}")

    @property
    def validation_errors(self) -> Optional[Dict[str, str]]:
        """Failures recorded by the last validation pass."""
        return self._validation_errors

    @classmethod
    def from_data(cls, data: Mapping) -> "Resource":
        """
        Build an object from raw data.

        Writable properties are stored as given and checked later by the
        descriptor's validators. Data the model cannot hold at all (a
        non-string id, a malformed rate list) raises ``ValidationError``.
        """
        try:
            return cls.model_validate(dict(data))
        except ModelValidationError as e:
            errors = {
                ".".join(str(part) for part in err["loc"]) or "data": err["msg"]
                for err in e.errors()
            }
            descriptor = getattr(cls, "descriptor", None)
            raise ValidationError(errors, descriptor.name if descriptor else cls.__name__) from e

    def merge(self, data: Mapping) -> "Resource":
        """
        Apply an API response body onto this object.

        Only declared fields are taken; everything else in ``data`` is
        dropped. Values go through the model's own parsing, so nested
        objects come back as resources.
        """
        fields = type(self).model_fields
        parsed = type(self).from_data({k: v for k, v in data.items() if k in fields})
        for name in parsed.model_fields_set:
            setattr(self, name, getattr(parsed, name))
        return self

    def to_json(self) -> Dict[str, Any]:
        """Serializable view holding only the writable properties that are set."""
        descriptor = type(self).descriptor
        json: Dict[str, Any] = {}

        for key in descriptor.prop_types:
            value = getattr(self, key, None)
            if not value:
                continue

            if key in descriptor.json_id_keys:
                # Vendor ids are prefixed tokens such as "adr_..."
                if isinstance(value, str) and "_" in value:
                    json[key] = {"id": value}
                    continue

                reference = _reference_id(value)
                if reference:
                    json[key] = {"id": reference}
                    continue

            json[key] = _serialize(value)

        return json


R = TypeVar("R", bound=Resource)


class ResourceService(Generic[R]):
    """CRUD operations for one resource type over an injected transport."""

    resource_class: ClassVar[Type[Resource]]

    def __init__(self, transport: Transport):
        self.transport = transport

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self.resource_class.descriptor

    @property
    def _log(self):
        return logger.bind(resource=self.descriptor.name)

    # ------------------------------------------------------------------
    # Local helpers
    # ------------------------------------------------------------------

    def create(self, data: Optional[Mapping] = None) -> R:
        """Build a local object from raw data. No request is made."""
        if isinstance(data, self.resource_class):
            return data
        return self.resource_class.from_data(data or {})

    def unwrap_all(self, data: Any) -> List[Any]:
        if isinstance(data, list):
            return data
        return data[self.descriptor.url]

    def wrap_json(self, json: Dict[str, Any]) -> Dict[str, Any]:
        return {self.descriptor.key: json}

    def validate_properties(self, resource: R, throw_on_failure: bool = True) -> Optional[Dict[str, str]]:
        """
        Run every declared validator against the resource's JSON view.

        Args:
            resource: Object to check; its ``validation_errors`` are replaced.
            throw_on_failure: Raise ``ValidationError`` instead of returning.

        Returns:
            Mapping of property name to message, or None when valid.
        """
        resource._validation_errors = None
        props = resource.to_json()
        name = self.descriptor.name

        errors: Dict[str, str] = {}
        for key, validator in self.descriptor.prop_types.items():
            err = validator(props, key, name)
            if err:
                errors[key] = str(err)

        resource._validation_errors = errors or None

        if errors and throw_on_failure:
            raise ValidationError(errors, name)

        return errors or None

    def verify_parameters(self, resource: R, requirements: Optional[Mapping[str, Sequence[str]]] = None, *args: Any) -> None:
        """
        Check that an operation has the context it needs.

        ``requirements["this"]`` names attributes that must be set on the
        resource; ``requirements["args"]`` names the positional ``args``
        that must be given, in order.
        """
        requirements = requirements or {}

        for p in requirements.get("this", ()):
            if not getattr(resource, p, None):
                raise MissingParameterError(f"Object requires {p} to be set.")

        for i, p in enumerate(requirements.get("args", ())):
            if i >= len(args) or not args[i]:
                raise MissingParameterError(f"Missing parameter: {p}")

    async def not_implemented(self, fn_name: str) -> Any:
        raise ResourceNotImplementedError(fn_name, self.descriptor.url)

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    async def rpc(
        self,
        resource: R,
        path: Optional[str] = None,
        body: Any = None,
        path_prefix: Optional[str] = None,
        method: str = "post",
    ) -> R:
        """
        Call ``{path_prefix or url}/{id}/{path}`` and map the response onto
        the resource. For ``get`` the body is sent as the query string.
        """
        response = await self._call(resource, path, body, path_prefix, method)
        resource.merge(response.body)
        return resource

    async def _call(
        self,
        resource: R,
        path: Optional[str],
        body: Any,
        path_prefix: Optional[str],
        method: str,
    ) -> Response:
        if method not in ("get", "post", "patch", "delete"):
            raise ValueError(f"Unsupported method: {method}")

        slash_path = f"/{path}" if path else ""
        url = f"{path_prefix or self.descriptor.url}/{resource.id}{slash_path}"

        if method == "delete":
            return await self.transport.delete(url)
        return await getattr(self.transport, method)(url, body)

    async def save(self, resource: R) -> R:
        """Create (POST) or update (PATCH) the resource, then apply the response."""
        self.validate_properties(resource)
        data = self.wrap_json(resource.to_json())

        if resource.id:
            response = await self.transport.patch(f"{self.descriptor.url}/{resource.id}", data)
        else:
            response = await self.transport.post(self.descriptor.url, data)

        resource.merge(response.body)
        self._log.debug(f"saved {resource.id}")
        return resource

    async def all(self, query: Optional[Mapping[str, Any]] = None, url: Optional[str] = None) -> Dict[str, Any]:
        """
        List records.

        Returns ``{<url>: [objects], "has_more": bool}``. Report URLs such as
        ``reports/shipment`` are keyed ``reports``.
        """
        url = url or self.descriptor.url
        response = await self.transport.get(url, dict(query or {}))
        objects = [self.create(data) for data in self.unwrap_all(response.body)]

        if "reports" in url:
            url = "reports"

        has_more = response.body.get("has_more") if isinstance(response.body, Mapping) else None
        return {url: objects, "has_more": has_more}

    async def retrieve(self, id: str, url_prefix: Optional[str] = None) -> R:
        url = f"{url_prefix or self.descriptor.url}/{id}"
        response = await self.transport.get(url)
        return self.create(response.body)

    async def refresh(self, resource: R) -> R:
        """Re-fetch the resource in place.

        Deprecated: use ``retrieve(id)`` and keep the returned object.
        """
        warnings.warn(
            "refresh() is deprecated; use retrieve(id) instead",
            DeprecationWarning,
            stacklevel=2,
        )
        if not resource.id:
            raise MissingParameterError("Cannot retrieve an object without an id.")

        fetched = await self.retrieve(resource.id)
        for name in fetched.model_fields_set:
            setattr(resource, name, getattr(fetched, name))
        return resource

    def delete(self, id: Optional[str]) -> Awaitable[Response]:
        """
        Delete a record by id.

        The id is checked before any request exists, so a missing id raises
        here rather than from the returned awaitable.
        """
        if not id:
            raise MissingParameterError(f"No id was passed into {self.descriptor.name} delete()")

        self._log.debug(f"deleting {id}")
        return self.transport.delete(f"{self.descriptor.url}/{id}")

    def delete_resource(self, resource: R) -> Awaitable[Response]:
        return self.delete(resource.id)
