"""
Cloud Request Constants

Endpoint defaults, evidence prefixes and message templates shared by the
request engine and the property resolution layer.
"""

# Environment variable that overrides the default cloud endpoint
FOD_CLOUD_API_URL = "FOD_CLOUD_API_URL"

BASE_URL_DEFAULT = "https://cloud.51degrees.com/api/v4/"

# =============================================================================
# EVIDENCE
# =============================================================================

EVIDENCE_SEPARATOR = "."

EVIDENCE_QUERY_PREFIX = "query"
EVIDENCE_HTTPHEADER_PREFIX = "header"
EVIDENCE_COOKIE_PREFIX = "cookie"
EVIDENCE_OTHER = "other"

# Merge order, lowest precedence first
EVIDENCE_PRECEDENCE = (
    EVIDENCE_OTHER,
    EVIDENCE_COOKIE_PREFIX,
    EVIDENCE_HTTPHEADER_PREFIX,
    EVIDENCE_QUERY_PREFIX,
)

# =============================================================================
# MESSAGES
# =============================================================================

MESSAGE_NO_DATA_IN_RESPONSE = "No data in response from cloud service at {url}"

EXCEPTION_CLOUD_ERROR = "Error returned from cloud service: '{errors}'"

MESSAGE_ERROR_CODE_RETURNED = (
    "Cloud service at '{url}' returned status code '{status}' with content {content}"
)

MESSAGE_TRANSPORT_FAILURE = "Request to cloud service at '{url}' failed: {reason}"

WARNING_MESSAGE = "'{key}=>{value}' evidence conflicts with {conflicts}"

MISSING_PROPERTY_PREFIX = "Property '{name}' not found in data for element '{module}'. "

PROPERTY_NOT_IN_CLOUD_RESOURCE = (
    "This is because your resource key does not include access to this "
    "property. Properties that are included for this resource key under "
    "'{module}' are {available}."
)

PROPERTY_NOT_RETURNED = (
    "The property is included for this resource key under '{module}' but "
    "was not returned by the cloud service."
)

MODULE_NOT_IN_CLOUD_RESOURCE = (
    "This is because your resource key does not include access to any "
    "properties under '{module}'."
)

NO_VALUE_REASON_DEFAULT = "The cloud service returned no value for this property."
