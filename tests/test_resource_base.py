"""
Tests for resources/base.py - descriptor-driven mapping and CRUD plumbing
"""

import warnings
from typing import Any, Optional

import pytest

from postbind import validators
from postbind.exceptions import MissingParameterError, ResourceNotImplementedError, ValidationError
from postbind.resources.address import Address
from postbind.resources.base import Resource, ResourceDescriptor, ResourceService
from postbind.resources.parcel import ParcelService
from postbind.resources.report import ReportService
from postbind.resources.shipment import Shipment, ShipmentService
from postbind.resources.webhook import Webhook, WebhookService


class TestToJSON:

    def test_only_declared_props_are_serialized(self):
        webhook = Webhook(id="hook_1", url="https://example.com/hook", mode="test", disabled_at="now")

        assert webhook.to_json() == {"url": "https://example.com/hook"}

    def test_falsy_values_are_omitted(self):
        webhook = Webhook(url="https://example.com/hook", webhook_secret="")

        assert "webhook_secret" not in webhook.to_json()

    def test_id_string_is_wrapped_as_reference(self):
        shipment = Shipment(to_address="adr_123", parcel="prcl_456")

        json = shipment.to_json()

        assert json["to_address"] == {"id": "adr_123"}
        assert json["parcel"] == {"id": "prcl_456"}

    def test_nested_resource_with_id_is_reduced_to_reference(self):
        shipment = Shipment(to_address=Address(id="obj_123", street1="417 Montgomery St"))

        assert shipment.to_json() == {"to_address": {"id": "obj_123"}}

    def test_nested_resource_without_id_serializes_itself(self):
        shipment = Shipment(from_address={"street1": "417 Montgomery St", "city": "San Francisco"})

        assert shipment.to_json()["from_address"] == {
            "street1": "417 Montgomery St",
            "city": "San Francisco",
        }

    def test_string_without_underscore_is_sent_verbatim(self):
        shipment = Shipment(to_address="unverified")

        assert shipment.to_json()["to_address"] == "unverified"

    def test_plain_values_pass_through(self):
        shipment = Shipment(options={"label_format": "PDF"}, carrier_accounts=["ca_1"])

        json = shipment.to_json()

        assert json["options"] == {"label_format": "PDF"}
        assert json["carrier_accounts"] == ["ca_1"]


class TestMerge:

    def test_undeclared_keys_are_dropped(self):
        webhook = Webhook()

        webhook.merge({"id": "hook_1", "url": "https://example.com", "save": "boom", "to_json": 1})

        assert webhook.id == "hook_1"
        assert callable(webhook.to_json)
        assert not hasattr(webhook, "save")

    def test_nested_objects_become_resources(self):
        shipment = Shipment()

        shipment.merge({"to_address": {"id": "adr_1", "city": "Boston"}})

        assert isinstance(shipment.to_address, Address)
        assert shipment.to_address.city == "Boston"

    def test_descriptor_must_name_declared_fields(self):
        with pytest.raises(TypeError, match="undeclared"):
            class Broken(Resource):
                descriptor = ResourceDescriptor(
                    name="Broken", url="broken", key="broken",
                    prop_types={"missing": validators.string},
                )

    def test_unparseable_response_raises_sdk_error(self):
        webhook = Webhook()

        with pytest.raises(ValidationError) as exc_info:
            webhook.merge({"id": ["hook_1"]})

        assert "id" in exc_info.value.errors
        assert webhook.id is None


class TestCreate:
    """Writable values are stored as given; the validators judge them."""

    def test_badly_typed_value_is_kept_and_flagged(self, transport):
        service = WebhookService(transport)

        webhook = service.create({"url": "https://example.com/hook", "webhook_secret": 42})

        assert webhook.webhook_secret == 42
        errors = service.validate_properties(webhook, throw_on_failure=False)
        assert list(errors) == ["webhook_secret"]

    def test_string_weight_is_not_coerced(self, transport):
        service = ParcelService(transport)

        parcel = service.create({"weight": "10"})

        assert parcel.weight == "10"
        with pytest.raises(ValidationError) as exc_info:
            service.validate_properties(parcel)
        assert list(exc_info.value.errors) == ["weight"]

    def test_non_string_id_raises_sdk_error(self, transport):
        with pytest.raises(ValidationError) as exc_info:
            WebhookService(transport).create({"id": 5})

        assert exc_info.value.object_name == "Webhook"
        assert "id" in exc_info.value.errors

    def test_references_keep_their_shape(self, transport):
        shipment = ShipmentService(transport).create({
            "to_address": {"city": "Boston"},
            "from_address": "adr_123",
            "parcel": 7,
        })

        assert isinstance(shipment.to_address, Address)
        assert shipment.from_address == "adr_123"
        assert shipment.parcel == 7

    @pytest.mark.asyncio
    async def test_retrieve_accepts_numeric_timestamps(self, transport, respond):
        respond("get", {"id": "hook_1", "url": "https://example.com/hook", "disabled_at": 1700000000})

        webhook = await WebhookService(transport).retrieve("hook_1")

        assert webhook.disabled_at == 1700000000


class TestValidateProperties:

    def test_returns_failures_without_throwing(self, transport):
        service = WebhookService(transport)
        webhook = Webhook()
        webhook.webhook_secret = 42

        errors = service.validate_properties(webhook, throw_on_failure=False)

        assert set(errors) == {"url", "webhook_secret"}
        assert all(errors.values())
        assert webhook.validation_errors == errors

    def test_raises_with_full_mapping(self, transport):
        service = WebhookService(transport)
        webhook = Webhook(url="ftp://example.com")

        with pytest.raises(ValidationError) as exc_info:
            service.validate_properties(webhook)

        assert set(exc_info.value.errors) == {"url"}
        assert exc_info.value.object_name == "Webhook"
        assert webhook.validation_errors == exc_info.value.errors

    def test_valid_resource_returns_none(self, transport):
        service = WebhookService(transport)
        webhook = Webhook(url="https://example.com/hook")

        assert service.validate_properties(webhook) is None
        assert webhook.validation_errors is None

    def test_errors_persist_until_revalidated(self, transport):
        service = WebhookService(transport)
        webhook = Webhook()
        service.validate_properties(webhook, throw_on_failure=False)

        webhook.url = "https://example.com/hook"
        assert "url" in webhook.validation_errors

        service.validate_properties(webhook, throw_on_failure=False)
        assert webhook.validation_errors is None


class TestVerifyParameters:

    def test_missing_attribute(self, transport):
        service = ShipmentService(transport)

        with pytest.raises(MissingParameterError, match="Object requires id to be set."):
            service.verify_parameters(Shipment(), {"this": ["id"]})

    def test_missing_argument(self, transport):
        service = ShipmentService(transport)

        with pytest.raises(MissingParameterError, match="Missing parameter: rate"):
            service.verify_parameters(Shipment(id="shp_1"), {"this": ["id"], "args": ["rate"]}, None)

    def test_all_present(self, transport):
        service = ShipmentService(transport)

        service.verify_parameters(Shipment(id="shp_1"), {"this": ["id"], "args": ["rate"]}, "rate_1")


class TestWrapping:

    def test_unwrap_all_passes_lists_through(self, transport):
        data = [{"id": "hook_1"}]

        assert WebhookService(transport).unwrap_all(data) is data

    def test_unwrap_all_reads_collection_key(self, transport):
        data = {"webhooks": [{"id": "hook_1"}], "has_more": False}

        assert WebhookService(transport).unwrap_all(data) == [{"id": "hook_1"}]

    def test_wrap_json(self, transport):
        assert WebhookService(transport).wrap_json({"url": "x"}) == {"webhook": {"url": "x"}}

    def test_create_makes_no_request(self, transport):
        webhook = WebhookService(transport).create({"id": "hook_1", "url": "https://example.com"})

        assert isinstance(webhook, Webhook)
        assert webhook.id == "hook_1"
        transport.assert_not_called()
        transport.post.assert_not_called()


class TestSave:

    @pytest.mark.asyncio
    async def test_post_when_new(self, transport, respond):
        respond("post", {"id": "hook_1", "url": "https://example.com/hook", "mode": "test"})
        service = WebhookService(transport)
        webhook = service.create({"url": "https://example.com/hook"})

        result = await service.save(webhook)

        transport.post.assert_awaited_once_with("webhooks", {"webhook": {"url": "https://example.com/hook"}})
        assert result is webhook
        assert webhook.id == "hook_1"
        assert webhook.mode == "test"

    @pytest.mark.asyncio
    async def test_patch_when_persisted(self, transport, respond):
        respond("patch", {"id": "hook_1", "url": "https://example.com/new"})
        service = WebhookService(transport)
        webhook = service.create({"id": "hook_1", "url": "https://example.com/new"})

        await service.save(webhook)

        transport.patch.assert_awaited_once_with("webhooks/hook_1", {"webhook": {"url": "https://example.com/new"}})

    @pytest.mark.asyncio
    async def test_invalid_resource_never_reaches_transport(self, transport):
        service = WebhookService(transport)

        with pytest.raises(ValidationError):
            await service.save(Webhook())

        transport.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, transport):
        transport.post.side_effect = RuntimeError("boom")
        service = WebhookService(transport)

        with pytest.raises(RuntimeError, match="boom"):
            await service.save(Webhook(url="https://example.com/hook"))


class TestAll:

    @pytest.mark.asyncio
    async def test_keyed_by_url(self, transport, respond):
        respond("get", {"webhooks": [{"id": "hook_1"}, {"id": "hook_2"}], "has_more": True})
        service = WebhookService(transport)

        result = await service.all({"page_size": 2})

        transport.get.assert_awaited_once_with("webhooks", {"page_size": 2})
        assert [w.id for w in result["webhooks"]] == ["hook_1", "hook_2"]
        assert all(isinstance(w, Webhook) for w in result["webhooks"])
        assert result["has_more"] is True

    @pytest.mark.asyncio
    async def test_report_urls_are_keyed_reports(self, transport, respond):
        respond("get", {"reports": [{"id": "shprep_1", "type": "shipment"}], "has_more": False})
        service = ReportService(transport)

        result = await service.all({}, "reports/shipment")

        assert "reports" in result
        assert "reports/shipment" not in result
        assert result["reports"][0].id == "shprep_1"


class TestRetrieve:

    @pytest.mark.asyncio
    async def test_retrieve_by_id(self, transport, respond):
        respond("get", {"id": "hook_1", "url": "https://example.com/hook"})

        webhook = await WebhookService(transport).retrieve("hook_1")

        transport.get.assert_awaited_once_with("webhooks/hook_1")
        assert webhook.url == "https://example.com/hook"

    @pytest.mark.asyncio
    async def test_retrieve_with_prefix(self, transport, respond):
        respond("get", {"id": "hook_1"})

        await WebhookService(transport).retrieve("hook_1", "other")

        transport.get.assert_awaited_once_with("other/hook_1")

    @pytest.mark.asyncio
    async def test_refresh_copies_properties(self, transport, respond):
        respond("get", {"id": "hook_1", "url": "https://example.com/fresh"})
        webhook = Webhook(id="hook_1", url="https://example.com/stale")

        with pytest.warns(DeprecationWarning):
            await WebhookService(transport).refresh(webhook)

        assert webhook.url == "https://example.com/fresh"

    @pytest.mark.asyncio
    async def test_refresh_requires_id(self, transport):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DeprecationWarning)
            with pytest.raises(MissingParameterError, match="without an id"):
                await WebhookService(transport).refresh(Webhook())


class TestDelete:

    @pytest.mark.parametrize("bad_id", ["", None])
    def test_missing_id_fails_before_any_request(self, transport, bad_id):
        service = WebhookService(transport)

        with pytest.raises(MissingParameterError, match="No id was passed into Webhook delete()"):
            service.delete(bad_id)

        transport.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_by_id(self, transport):
        await WebhookService(transport).delete("hook_1")

        transport.delete.assert_awaited_once_with("webhooks/hook_1")

    @pytest.mark.asyncio
    async def test_delete_resource(self, transport):
        await WebhookService(transport).delete_resource(Webhook(id="hook_1"))

        transport.delete.assert_awaited_once_with("webhooks/hook_1")


class TestRPC:

    @pytest.mark.asyncio
    async def test_maps_response_onto_resource(self, transport, respond):
        respond("post", {"id": "shp_1", "status": "purchased", "tracking_code": "EZ1"})
        service = ShipmentService(transport)
        shipment = Shipment(id="shp_1")

        result = await service.rpc(shipment, "buy", {"rate": {"id": "rate_1"}})

        transport.post.assert_awaited_once_with("shipments/shp_1/buy", {"rate": {"id": "rate_1"}})
        assert result is shipment
        assert shipment.tracking_code == "EZ1"

    @pytest.mark.asyncio
    async def test_path_prefix_and_method(self, transport, respond):
        respond("get", {"id": "shp_1"})
        service = ShipmentService(transport)

        await service.rpc(Shipment(id="shp_1"), None, {"a": 1}, "elsewhere", method="get")

        transport.get.assert_awaited_once_with("elsewhere/shp_1", {"a": 1})

    @pytest.mark.asyncio
    async def test_unknown_method(self, transport):
        with pytest.raises(ValueError):
            await ShipmentService(transport).rpc(Shipment(id="shp_1"), "buy", method="put")


class TestNotImplemented:

    @pytest.mark.asyncio
    async def test_raises_only_when_awaited(self, transport):
        pending = WebhookService(transport).not_implemented("buy")

        with pytest.raises(ResourceNotImplementedError) as exc_info:
            await pending

        assert exc_info.value.fn_name == "buy"
        assert exc_info.value.url == "webhooks"
        assert isinstance(exc_info.value, NotImplementedError)


class Note(Resource):
    descriptor = ResourceDescriptor(
        name="Note",
        url="notes",
        key="note",
        prop_types={"body": validators.string.required, "author": validators.any_value},
        json_id_keys=frozenset({"author"}),
    )

    body: Optional[str] = None
    author: Optional[Any] = None


class NoteService(ResourceService[Note]):
    resource_class = Note


class TestCustomResource:

    def test_mapping_with_id_is_reduced(self):
        note = Note(body="hi", author={"id": "user_9", "name": "Sam"})

        assert note.to_json() == {"body": "hi", "author": {"id": "user_9"}}

    @pytest.mark.asyncio
    async def test_round_trip_through_service(self, transport, respond):
        respond("post", {"id": "note_1", "body": "hi"})
        service = NoteService(transport)

        note = await service.save(service.create({"body": "hi"}))

        transport.post.assert_awaited_once_with("notes", {"note": {"body": "hi"}})
        assert note.id == "note_1"
