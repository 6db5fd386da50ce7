"""
Cloud Request Test Fixtures

Canned cloud service responses and scripted transports.
All fixtures are explicit - no random generation.
"""

import json

from cloudrequest.transport import MockTransport, TransportResponse, json_response


RESOURCE_KEY = "resource_key"
SUB_PROPERTIES_KEY = "subpropertieskey"
INVALID_KEY = "invalidkey"
INVALID_KEY_MESSAGE = f"58982060: {INVALID_KEY} not a valid resource key"

USER_AGENT = "iPhone"

JSON_RESPONSE = '{"device":{"value":"1"}}'

EVIDENCE_KEYS_RESPONSE = '["query.User-Agent", "header.User-Agent"]'

ACCESSIBLE_PROPERTIES_RESPONSE = json.dumps({
    "Products": {
        "device": {
            "DataTier": "tier",
            "Properties": [
                {"Name": "value", "Type": "String", "Category": "Device"}
            ]
        }
    }
})

ACCESSIBLE_SUB_PROPERTIES_RESPONSE = json.dumps({
    "Products": {
        "device": {
            "DataTier": "CloudV4TAC",
            "Properties": [
                {"Name": "IsMobile", "Type": "Boolean", "Category": "Device"},
                {"Name": "IsTablet", "Type": "Boolean", "Category": "Device"}
            ]
        },
        "devices": {
            "DataTier": "CloudV4TAC",
            "Properties": [
                {
                    "Name": "Devices",
                    "Type": "Array",
                    "Category": "Unspecified",
                    "ItemProperties": [
                        {"Name": "IsMobile", "Type": "Boolean", "Category": "Device"},
                        {"Name": "IsTablet", "Type": "Boolean", "Category": "Device"}
                    ]
                }
            ]
        }
    }
})

TEST_ELEMENT_PROPERTIES_RESPONSE = json.dumps({
    "Products": {
        "testElement": {
            "Properties": [
                {"Name": "property1", "Type": "String"},
                {"Name": "property2", "Type": "String"}
            ]
        }
    }
})

EXPECTED_NULL_REASON = "this is the null reason"

NULL_VALUE_RESPONSE = json.dumps({
    "testElement": {
        "property1": "a value",
        "property2": None,
        "property2nullreason": EXPECTED_NULL_REASON,
        "Property4": None
    },
    "javascriptProperties": []
})


def invalid_key_response() -> TransportResponse:
    return json_response({"errors": [INVALID_KEY_MESSAGE]}, status_code=400)


def create_cloud_transport(
    process_response: str = JSON_RESPONSE,
    properties_response: str = ACCESSIBLE_PROPERTIES_RESPONSE,
    evidence_keys_response: str = EVIDENCE_KEYS_RESPONSE
) -> MockTransport:
    """Transport that answers all three cloud endpoints successfully."""
    return MockTransport(routes=[
        (f"accessibleProperties?resource={INVALID_KEY}", invalid_key_response()),
        ("accessibleProperties", json_response(properties_response)),
        ("evidencekeys", json_response(evidence_keys_response)),
        (".json?", json_response(process_response)),
    ])
