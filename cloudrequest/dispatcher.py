"""
Cloud Request Dispatcher

Builds outbound requests for a resource identity, sends them through the
injected transport and classifies what comes back.

CLASSIFICATION:
===============
- transport failure            -> CloudRequestError (status 0)
- non-2xx status               -> CloudRequestError (HTTP_ERROR)
- 2xx with non-empty "errors"  -> CloudRequestError (CLOUD_ERROR)
- 2xx with empty body          -> CloudRequestError (NO_DATA)
- anything else                -> raw body, unparsed

No retries. A failure is always raised, never turned into empty data.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode
import json
import logging

from .config import ResourceIdentity
from .constants import (
    EXCEPTION_CLOUD_ERROR,
    MESSAGE_ERROR_CODE_RETURNED,
    MESSAGE_NO_DATA_IN_RESPONSE,
    MESSAGE_TRANSPORT_FAILURE,
)
from .errors import CloudErrorCode, CloudRequestError
from .transport.base import Transport, TransportError, TransportResponse

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def extract_errors(body: Optional[str]) -> Tuple[str, ...]:
    """
    Return the messages of a top-level "errors" array, if the body has one.

    Bodies that are not JSON objects have no errors.
    """
    if not body:
        return ()
    try:
        payload = json.loads(body)
    except ValueError:
        return ()
    if not isinstance(payload, dict):
        return ()
    errors = payload.get("errors")
    if not errors or not isinstance(errors, list):
        return ()
    return tuple(str(e) for e in errors)


def encode_query(query: Mapping[str, Any]) -> str:
    """URL-encode the resolved query map as a form body."""
    return urlencode([(key, "" if value is None else str(value)) for key, value in query.items()])


class CloudRequestDispatcher:
    """
    Sends requests for one resource identity.

    GUARANTEES:
    ===========
    1. The Origin header is set on every call when configured
    2. Only a 2xx, non-empty, error-free body is returned
    3. Every other outcome raises CloudRequestError
    """

    def __init__(self, identity: ResourceIdentity, transport: Transport):
        self._identity = identity
        self._transport = transport

    @property
    def identity(self) -> ResourceIdentity:
        return self._identity

    def send(self, method: str, url: str, body: Optional[str] = None) -> str:
        """Perform one call and return the raw body of a successful response."""
        headers: Dict[str, str] = {}
        if self._identity.origin is not None:
            headers['Origin'] = self._identity.origin
        if body is not None:
            headers['Content-Type'] = FORM_CONTENT_TYPE

        logger.debug("Sending %s %s", method, url)

        try:
            response = self._transport.request(method, url, body=body, headers=headers)
        except TransportError as e:
            raise CloudRequestError(
                MESSAGE_TRANSPORT_FAILURE.format(url=url, reason=e),
                error_code=e.error_code,
                status_code=0
            ) from e

        return self._classify(url, response)

    def _classify(self, url: str, response: TransportResponse) -> str:
        errors = extract_errors(response.body)

        if not response.is_success:
            message = MESSAGE_ERROR_CODE_RETURNED.format(
                url=url,
                status=response.status_code,
                content=response.body
            )
            if errors:
                message = f"{message}. {EXCEPTION_CLOUD_ERROR.format(errors=', '.join(errors))}"
            raise CloudRequestError(
                message,
                error_code=CloudErrorCode.HTTP_ERROR,
                status_code=response.status_code,
                response_headers=response.headers,
                response_body=response.body,
                errors=errors
            )

        if errors:
            raise CloudRequestError(
                EXCEPTION_CLOUD_ERROR.format(errors=", ".join(errors)),
                error_code=CloudErrorCode.CLOUD_ERROR,
                status_code=response.status_code,
                response_headers=response.headers,
                response_body=response.body,
                errors=errors
            )

        if not response.body or not response.body.strip():
            raise CloudRequestError(
                MESSAGE_NO_DATA_IN_RESPONSE.format(url=url),
                error_code=CloudErrorCode.NO_DATA,
                status_code=response.status_code,
                response_headers=response.headers,
                response_body=response.body
            )

        return response.body

    # =========================================================================
    # CLOUD CALLS
    # =========================================================================

    def process(self, query: Mapping[str, Any]) -> str:
        """POST the resolved query map to the resource's processing endpoint."""
        return self.send("POST", self._identity.process_url, encode_query(query))

    def fetch_evidence_keys(self) -> str:
        return self.send("GET", self._identity.evidence_keys_url)

    def fetch_properties(self) -> str:
        return self.send("GET", self._identity.properties_url)
