from unittest.mock import patch

import pytest
import requests

from beaware.models.api_config import ApiConfig
from beaware.services.lookup import manager
from beaware.services.lookup.abuseipdb import AbuseIPDBProvider
from beaware.services.lookup.generic import GenericProvider, determine_status
from beaware.services.lookup.ipqs import IPQSProvider
from beaware.services.lookup.virustotal import VirusTotalProvider

POST = "beaware.services.lookup.base.requests.post"


def make_config(**overrides) -> ApiConfig:
    fields = {
        "id": 1,
        "name": "Example Reputation",
        "type": "phone",
        "url": "https://api.example.com/v1",
        "api_key": "ABC123",
        "enabled": True,
        "timeout": 30,
        "parameter_mapping": '{"phone": "{{phone}}", "key": "{{apiKey}}"}',
    }
    fields.update(overrides)
    return ApiConfig(**fields)


def test_templated_lookup_posts_rendered_body(provider_response):
    with patch(POST, return_value=provider_response(payload={"risk_score": 85})) as post:
        result = manager.lookup_scam_data("phone", "+15551234567", make_config())

    post.assert_called_once()
    args, kwargs = post.call_args
    assert args[0] == "https://api.example.com/v1"
    assert kwargs["json"] == {"phone": "+15551234567", "key": "ABC123"}
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["timeout"] == 30

    assert result.status == "malicious"
    assert result.risk_score == 85
    assert result.provider == "Example Reputation"
    assert result.api_call_details.method == "POST"


@pytest.mark.parametrize(
    "score, status",
    [
        (100, "malicious"),
        (80, "malicious"),
        (79, "suspicious"),
        (50, "suspicious"),
        (20, "suspicious"),
        (19, "safe"),
        (0, "safe"),
    ],
)
def test_generic_status_thresholds(score, status):
    assert determine_status(score) == status


def test_generic_reads_score_field_as_fallback(provider_response):
    payload = {"score": "55", "reputation": "shady"}
    with patch(POST, return_value=provider_response(payload=payload)):
        result = manager.lookup_scam_data("phone", "+15551234567", make_config())

    assert result.risk_score == 55
    assert result.status == "suspicious"
    assert result.reputation == "shady"
    assert result.details == payload


def test_timeout_degrades_to_unknown():
    config = make_config(timeout=5)
    with patch(POST, side_effect=requests.Timeout()):
        result = manager.lookup_scam_data("phone", "+15551234567", config)

    assert result.status == "unknown"
    assert result.reputation == "error"
    assert result.risk_score == 0
    assert result.details["error"] == "Request timed out after 5s"
    assert result.api_call_details.url == "https://api.example.com/v1"


def test_http_error_degrades_to_unknown(provider_response):
    resp = provider_response(status_code=500, reason="Internal Server Error", text="boom")
    with patch(POST, return_value=resp):
        result = manager.lookup_scam_data("phone", "+15551234567", make_config())

    assert result.status == "unknown"
    assert result.reputation == "error"
    assert result.details["error"] == "API error: 500 Internal Server Error - boom"


def test_non_json_response_degrades_to_unknown(provider_response):
    with patch(POST, return_value=provider_response(payload=ValueError("no json"))):
        result = manager.lookup_scam_data("phone", "+15551234567", make_config())

    assert result.status == "unknown"
    assert "error" in result.details


def test_non_numeric_score_degrades_to_unknown(provider_response):
    with patch(POST, return_value=provider_response(payload={"risk_score": "very high"})):
        result = manager.lookup_scam_data("phone", "+15551234567", make_config())

    assert result.status == "unknown"
    assert result.reputation == "error"


def test_malformed_mapping_falls_back_to_default_body(provider_response):
    config = make_config(name="Custom", parameter_mapping="{not json")
    with patch(POST, return_value=provider_response(payload={"risk_score": 10})) as post:
        result = manager.lookup_scam_data("phone", "+15551234567", config)

    assert post.call_args.kwargs["json"] == {"phone": "+15551234567", "key": "ABC123"}
    assert result.status == "safe"


def test_empty_mapping_synthesizes_body_without_key(provider_response):
    config = make_config(name="Keyless", parameter_mapping="{}", api_key="")
    with patch(POST, return_value=provider_response(payload={})) as post:
        manager.lookup_scam_data("email", "bob@example.com", config)

    assert post.call_args.kwargs["json"] == {"email": "bob@example.com"}


def test_templated_url_and_headers(provider_response):
    config = make_config(
        url="https://api.example.com/check/{{input}}",
        headers='{"Authorization": "Bearer {{key}}"}',
    )
    with patch(POST, return_value=provider_response(payload={})) as post:
        manager.lookup_scam_data("phone", "+1 555", config)

    args, kwargs = post.call_args
    assert args[0] == "https://api.example.com/check/%2B1%20555"
    assert kwargs["headers"]["Authorization"] == "Bearer ABC123"
    assert kwargs["headers"]["User-Agent"] == "BeAware-ScamChecker/1.0"


@pytest.mark.parametrize(
    "name, mapping, expected",
    [
        ("IPQS", None, IPQSProvider),
        ("IPQualityScore", "", IPQSProvider),
        ("VirusTotal", None, VirusTotalProvider),
        ("abuseipdb", "{}", AbuseIPDBProvider),
        ("VirusTotal", '{"resource": "{{input}}"}', GenericProvider),
        ("Something Else", None, GenericProvider),
    ],
)
def test_provider_dispatch(name, mapping, expected):
    provider = manager.get_lookup_provider(make_config(name=name, parameter_mapping=mapping))
    assert type(provider) is expected


def test_ipqs_phone_lookup(provider_response):
    config = make_config(name="IPQS", parameter_mapping=None, url="https://ipqs.example/api/json/")
    payload = {
        "success": True,
        "fraud_score": 90,
        "country": "US",
        "carrier": "Acme Mobile",
        "line_type": "VOIP",
        "VOIP": True,
        "prepaid": False,
        "risky": True,
    }
    with patch(POST, return_value=provider_response(payload=payload)) as post:
        result = manager.lookup_scam_data("phone", "+15551234567", config)

    args, kwargs = post.call_args
    assert args[0] == "https://ipqs.example/api/json/phone"
    assert kwargs["json"] == {"key": "ABC123", "strictness": "1", "phone": "+15551234567"}

    assert result.status == "malicious"
    assert result.reputation == "high risk"
    assert result.details["isScam"] is True
    assert result.details["riskFactors"] == ["VOIP", "Risky"]


@pytest.mark.parametrize(
    "score, status, reputation",
    [
        (85, "malicious", "high risk"),
        (84, "suspicious", "medium risk"),
        (50, "suspicious", "medium risk"),
        (25, "suspicious", "low risk"),
        (24, "safe", "good"),
    ],
)
def test_ipqs_risk_bands(provider_response, score, status, reputation):
    config = make_config(name="IPQS", parameter_mapping=None, type="email")
    payload = {"fraud_score": score, "overall_score": 80}
    with patch(POST, return_value=provider_response(payload=payload)):
        result = manager.lookup_scam_data("email", "bob@example.com", config)

    assert (result.status, result.reputation) == (status, reputation)


def test_ipqs_reported_failure_is_error(provider_response):
    config = make_config(name="IPQS", parameter_mapping=None)
    payload = {"success": False, "message": "Invalid key"}
    with patch(POST, return_value=provider_response(payload=payload)):
        result = manager.lookup_scam_data("phone", "+15551234567", config)

    assert result.status == "unknown"
    assert result.details["error"] == "Invalid key"


def test_ipqs_unsupported_type_does_not_call_out():
    config = make_config(name="IPQS", parameter_mapping=None, type="domain")
    with patch(POST) as post:
        result = manager.lookup_scam_data("domain", "example.com", config)

    post.assert_not_called()
    assert result.status == "unknown"
    assert result.details["error"] == "Unsupported type: domain"


@pytest.mark.parametrize("positives, status", [(0, "safe"), (3, "malicious")])
def test_virustotal_positives(provider_response, positives, status):
    config = make_config(name="virustotal", parameter_mapping=None, type="url", url="https://vt.example/")
    with patch(POST, return_value=provider_response(payload={"positives": positives})) as post:
        result = manager.lookup_scam_data("url", "https://bad.example", config)

    args, kwargs = post.call_args
    assert args[0] == "https://vt.example/vtapi/v2/file/report"
    assert kwargs["json"] == {"apikey": "ABC123", "resource": "https://bad.example"}
    assert result.provider == "VirusTotal"
    assert result.status == status


@pytest.mark.parametrize("confidence, status", [(50, "safe"), (51, "malicious")])
def test_abuseipdb_confidence(provider_response, confidence, status):
    config = make_config(name="AbuseIPDB", parameter_mapping=None, type="ip", url="https://abuse.example")
    payload = {"data": {"abuseConfidencePercentage": confidence}}
    with patch(POST, return_value=provider_response(payload=payload)) as post:
        result = manager.lookup_scam_data("ip", "203.0.113.7", config)

    kwargs = post.call_args.kwargs
    assert kwargs["headers"]["Key"] == "ABC123"
    assert kwargs["json"] == {"ip": "203.0.113.7", "maxAgeInDays": 90, "verbose": True}
    assert result.provider == "AbuseIPDB"
    assert result.status == status
    assert result.risk_score == confidence


def test_lookup_all_returns_one_result_per_config_in_order(provider_response):
    healthy = make_config(id=1, name="Healthy", url="https://healthy.example")
    broken = make_config(id=2, name="Broken", url="https://broken.example")

    def fake_post(url, **kwargs):
        if url.startswith("https://broken.example"):
            raise requests.ConnectionError("refused")
        return provider_response(payload={"risk_score": 60})

    with patch(POST, side_effect=fake_post):
        results = manager.lookup_all("phone", "+15551234567", [healthy, broken])

    assert [r.provider for r in results] == ["Healthy", "Broken"]
    assert results[0].status == "suspicious"
    assert results[1].status == "unknown"
    assert results[1].details["error"].startswith("Request failed")


def test_lookup_all_with_no_configs():
    assert manager.lookup_all("phone", "+15551234567", []) == []


@pytest.mark.parametrize(
    "lookup_type, canned",
    [
        ("phone", "+1234567890"),
        ("email", "test@example.com"),
        ("url", "https://example.com"),
        ("ip", "8.8.8.8"),
        ("domain", "example.com"),
    ],
)
def test_config_check_uses_canned_input(provider_response, lookup_type, canned):
    config = make_config(name="Custom", parameter_mapping='{"q": "{{input}}"}')
    with patch(POST, return_value=provider_response(payload={})) as post:
        result = manager.test_api_config(lookup_type, config)

    assert post.call_args.kwargs["json"] == {"q": canned}
    assert result.input == canned


def test_config_check_prefers_custom_input(provider_response):
    config = make_config(name="Custom", parameter_mapping='{"q": "{{input}}"}')
    with patch(POST, return_value=provider_response(payload={})) as post:
        manager.test_api_config("phone", config, custom_input="+447700900123")

    assert post.call_args.kwargs["json"] == {"q": "+447700900123"}
