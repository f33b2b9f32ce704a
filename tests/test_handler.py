import json

import httpx
import pytest

from core.config import KlaviyoSettings
from core.forwarder import SubscriptionForwarder
from core.handler import handle_subscribe, parse_body
from core.errors import ValidationError

PROFILES = "/api/profiles/"
LIST = "/api/lists/LIST1/relationships/profiles/"
VALID = {"firstName": "Jess", "phone": "0412 345 678", "postcode": "2650"}


def _post(body):
    return {"method": "POST", "body": json.dumps(body) if isinstance(body, dict) else body}


def _decode(response):
    return response["statusCode"], json.loads(response["body"])


@pytest.fixture
def factory(settings, klaviyo):
    built = []

    def get_forwarder():
        fwd = SubscriptionForwarder(settings, transport=klaviyo.transport)
        built.append(fwd)
        return fwd

    get_forwarder.built = built
    return get_forwarder


def test_success_response(klaviyo, factory):
    klaviyo.on("POST", PROFILES, 201, {"data": {"id": "P1"}})
    klaviyo.on("POST", LIST, 204)

    response = handle_subscribe(_post(VALID), factory)

    assert response["headers"]["content-type"] == "application/json"
    assert _decode(response) == (
        200, {"success": True, "message": "Successfully subscribed to the wait list!"}
    )
    assert klaviyo.body(0)["data"]["attributes"]["phone_number"] == "+61412345678"


def test_success_even_when_list_add_fails(klaviyo, factory):
    klaviyo.on("POST", PROFILES, 201, {"data": {"id": "P1"}})
    klaviyo.on("POST", LIST, 503)

    status, body = _decode(handle_subscribe(_post(VALID), factory))

    assert status == 200
    assert body["success"] is True


def test_conflict_with_duplicate_id_returns_200(klaviyo, factory):
    klaviyo.on("POST", PROFILES, 409, {"errors": [{"meta": {"duplicate_profile_id": "EXIST1"}}]})
    klaviyo.on("PATCH", "/api/profiles/EXIST1/", 200, {"data": {"id": "EXIST1"}})
    klaviyo.on("POST", LIST, 204)

    status, _ = _decode(handle_subscribe(_post(VALID), factory))

    assert status == 200
    assert ("PATCH", "/api/profiles/EXIST1/") in klaviyo.paths()


def test_conflict_without_duplicate_id_returns_500(klaviyo, factory):
    klaviyo.on("POST", PROFILES, 409, {"errors": [{"code": "duplicate_profile"}]})

    status, body = _decode(handle_subscribe(_post(VALID), factory))

    assert status == 500
    assert body["success"] is False
    assert "duplicate" not in body["error"]


@pytest.mark.parametrize("missing", ["firstName", "phone", "postcode"])
def test_missing_field_returns_400(klaviyo, factory, missing):
    payload = {k: v for k, v in VALID.items() if k != missing}

    status, body = _decode(handle_subscribe(_post(payload), factory))

    assert (status, body) == (400, {"success": False, "error": "Missing required fields"})
    assert klaviyo.calls == []


@pytest.mark.parametrize("postcode", ["ABCD", "123", "12345", " 2650"])
def test_invalid_postcode_returns_400(klaviyo, factory, postcode):
    status, body = _decode(handle_subscribe(_post({**VALID, "postcode": postcode}), factory))

    assert (status, body) == (400, {"success": False, "error": "Invalid postcode format"})
    assert klaviyo.calls == []


@pytest.mark.parametrize("raw", ["", "not json", "[1, 2]", None])
def test_bad_body_returns_400(factory, raw):
    status, body = _decode(handle_subscribe({"method": "POST", "body": raw}, factory))

    assert (status, body) == (400, {"success": False, "error": "Invalid request body"})


def test_missing_configuration_returns_500_without_outbound_call(klaviyo):
    def get_forwarder():
        settings = KlaviyoSettings.from_env({})
        return SubscriptionForwarder(settings, transport=klaviyo.transport)

    status, body = _decode(handle_subscribe(_post(VALID), get_forwarder))

    assert (status, body) == (500, {"success": False, "error": "Server configuration error"})
    assert klaviyo.calls == []


def test_transport_failure_returns_generic_500(settings):
    def refuse(request):
        raise httpx.ConnectError("connection refused to a.klaviyo.com", request=request)

    def get_forwarder():
        return SubscriptionForwarder(settings, transport=httpx.MockTransport(refuse))

    status, body = _decode(handle_subscribe(_post(VALID), get_forwarder))

    assert (status, body) == (500, {"success": False, "error": "An error occurred"})


def test_non_post_is_rejected(factory):
    response = handle_subscribe({"method": "GET"}, factory)

    assert response["statusCode"] == 405
    assert response["headers"]["allow"] == "POST"
    assert factory.built == []


def test_http_method_key_and_bytes_body_are_accepted(klaviyo, factory):
    klaviyo.on("POST", PROFILES, 201, {"data": {"id": "P1"}})
    klaviyo.on("POST", LIST, 204)

    request = {"httpMethod": "post", "body": json.dumps(VALID).encode()}

    assert handle_subscribe(request, factory)["statusCode"] == 200


def test_parse_body_accepts_decoded_mapping():
    assert parse_body({"firstName": "Jess"}) == {"firstName": "Jess"}


def test_parse_body_rejects_invalid_utf8():
    with pytest.raises(ValidationError):
        parse_body(b"\xff\xfe")
