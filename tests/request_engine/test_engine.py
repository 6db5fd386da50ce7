"""
Cloud Request Engine Tests

Construction, configuration precedence and end-to-end processing through
a pipeline with a scripted transport.
"""

import json
from urllib.parse import parse_qsl

import pytest

from cloudrequest import (
    CloudRequestEngine,
    CloudRequestError,
    CloudRequestSettings,
    ConfigurationError,
    Pipeline,
)
from cloudrequest.constants import BASE_URL_DEFAULT, FOD_CLOUD_API_URL

from .fixtures import (
    ACCESSIBLE_SUB_PROPERTIES_RESPONSE,
    INVALID_KEY,
    INVALID_KEY_MESSAGE,
    JSON_RESPONSE,
    RESOURCE_KEY,
    SUB_PROPERTIES_KEY,
    USER_AGENT,
    create_cloud_transport,
)


TEST_END_POINT = "http://testEndPoint/"
TEST_ENV_VAR_END_POINT = "http://testEnvVarEndPoint/"


@pytest.fixture
def no_endpoint_env(monkeypatch):
    monkeypatch.delenv(FOD_CLOUD_API_URL, raising=False)


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestConstruction:

    def test_missing_resource_key_is_fatal(self):
        with pytest.raises(ConfigurationError):
            CloudRequestEngine({"httpClient": create_cloud_transport()})

    def test_empty_resource_key_is_fatal(self):
        with pytest.raises(ConfigurationError):
            CloudRequestEngine(resource_key="", transport=create_cloud_transport())

    def test_construction_makes_no_calls(self):
        transport = create_cloud_transport()

        CloudRequestEngine(resource_key=RESOURCE_KEY, transport=transport)

        assert transport.calls == []

    def test_settings_object_accepted(self):
        settings = CloudRequestSettings(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        assert CloudRequestEngine(settings).resource_key == RESOURCE_KEY

    def test_settings_object_and_keywords_rejected(self):
        settings = CloudRequestSettings(resource_key=RESOURCE_KEY)

        with pytest.raises(TypeError):
            CloudRequestEngine(settings, cloud_endpoint=TEST_END_POINT)


class TestEndpointPrecedence:

    def test_explicit_setting_beats_environment(self, monkeypatch):
        monkeypatch.setenv(FOD_CLOUD_API_URL, TEST_ENV_VAR_END_POINT)

        engine = CloudRequestEngine({
            "resourceKey": RESOURCE_KEY,
            "httpClient": create_cloud_transport(),
            "cloudEndPoint": TEST_END_POINT,
        })

        assert engine.base_url == TEST_END_POINT

    def test_environment_beats_default(self, monkeypatch):
        monkeypatch.setenv(FOD_CLOUD_API_URL, TEST_ENV_VAR_END_POINT)

        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        assert engine.base_url == TEST_ENV_VAR_END_POINT

    def test_default_used_otherwise(self, no_endpoint_env):
        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        assert engine.base_url == BASE_URL_DEFAULT

    def test_empty_environment_variable_ignored(self, monkeypatch):
        monkeypatch.setenv(FOD_CLOUD_API_URL, "")

        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        assert engine.base_url == BASE_URL_DEFAULT

    @pytest.mark.parametrize("endpoint", ["http://x", "http://x/"])
    def test_base_url_always_ends_with_slash(self, endpoint):
        engine = CloudRequestEngine(
            resource_key=RESOURCE_KEY,
            cloud_endpoint=endpoint,
            transport=create_cloud_transport()
        )

        assert engine.base_url == "http://x/"


# =============================================================================
# PROCESSING
# =============================================================================

class TestProcess:

    def _pipeline(self, transport, **settings):
        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=transport, **settings)
        return engine, Pipeline([engine])

    def test_process_stores_raw_response(self):
        engine, pipeline = self._pipeline(create_cloud_transport())
        flow_data = pipeline.create_flow_data()
        flow_data.evidence.set("query.User-Agent", USER_AGENT)

        flow_data.process()

        result = flow_data.get_from_element(engine).cloud
        assert result == JSON_RESPONSE
        assert json.loads(result)["device"]["value"] == "1"
        assert flow_data.get("cloud").get("Cloud") == JSON_RESPONSE

    def test_process_primes_schema_before_posting(self):
        transport = create_cloud_transport()
        _, pipeline = self._pipeline(transport)

        pipeline.create_flow_data().process()

        methods = [c.method for c in transport.calls]
        assert methods[-1] == "POST"
        assert len(transport.calls_to("accessibleProperties")) == 1
        assert len(transport.calls_to("evidencekeys")) == 1

    def test_schema_shared_across_flows(self):
        transport = create_cloud_transport()
        _, pipeline = self._pipeline(transport)

        for _ in range(3):
            pipeline.create_flow_data().process()

        assert len(transport.calls_to("accessibleProperties")) == 1
        assert len(transport.calls_to("evidencekeys")) == 1
        assert len(transport.calls_to(".json?")) == 3

    def test_posted_body_follows_precedence(self):
        transport = create_cloud_transport()
        engine, pipeline = self._pipeline(transport)
        flow_data = pipeline.create_flow_data()
        flow_data.evidence.set_all({
            "header.User-Agent": "from-header",
            "cookie.User-Agent": "from-cookie",
            "query.session-id": "8b5461ac",
        })

        flow_data.process()

        post = transport.calls_to(".json?")[0]
        assert dict(parse_qsl(post.body)) == {
            "user-agent": "from-header",
            "session-id": "8b5461ac",
        }
        conflicts = flow_data.get_from_element(engine).conflicts
        assert [c.key for c in conflicts] == ["header.User-Agent"]

    def test_origin_configured_on_engine_is_sent(self):
        transport = create_cloud_transport()
        engine, pipeline = self._pipeline(transport, cloud_request_origin="https://example.com")

        pipeline.create_flow_data().process()

        assert engine.cloud_request_origin == "https://example.com"
        assert all(c.header("Origin") == "https://example.com" for c in transport.calls)

    def test_cloud_errors_raise_and_store_nothing(self):
        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport(
            process_response='{"errors": ["bad key"]}'
        ))
        flow_data = Pipeline([engine]).create_flow_data()

        with pytest.raises(CloudRequestError) as exc_info:
            flow_data.process()

        assert "bad key" in str(exc_info.value)
        assert not flow_data.has(engine.data_key)

    def test_invalid_resource_key_surfaces_cloud_message(self):
        engine = CloudRequestEngine(resource_key=INVALID_KEY, transport=create_cloud_transport())

        with pytest.raises(CloudRequestError) as exc_info:
            Pipeline([engine]).create_flow_data().process()

        assert INVALID_KEY_MESSAGE in str(exc_info.value)
        assert exc_info.value.status_code == 400


# =============================================================================
# DECLARED SCHEMA
# =============================================================================

class TestDeclaredSchema:

    def test_evidence_key_filter_from_cloud(self):
        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        key_filter = engine.evidence_key_filter

        assert key_filter.include("query.user-agent")
        assert key_filter.include("HEADER.USER-AGENT")
        assert not key_filter.include("cookie.user-agent")

    def test_engine_declares_cloud_property(self):
        engine = CloudRequestEngine(resource_key=RESOURCE_KEY, transport=create_cloud_transport())

        assert engine.properties["cloud"]["type"] == "string"

    def test_sub_properties(self):
        transport = create_cloud_transport(properties_response=ACCESSIBLE_SUB_PROPERTIES_RESPONSE)
        engine = CloudRequestEngine(resource_key=SUB_PROPERTIES_KEY, transport=transport)

        properties = engine.flow_element_properties

        assert len(properties) == 2
        assert set(properties["device"]) == {"ismobile", "istablet"}
        devices = properties["devices"]
        assert list(devices) == ["devices"]
        names = {meta["name"].lower() for meta in devices["devices"]["itemproperties"]}
        assert names == {"ismobile", "istablet"}
