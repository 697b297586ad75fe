from beaware.schemas.lookup_schemas import ApiCallDetails, ScamLookupResult
from beaware.services.lookup.base import (
    LookupProvider,
    ProviderError,
    error_result,
    to_score,
    utc_timestamp,
)

SUPPORTED_TYPES = ("phone", "email", "url", "ip")

# (threshold, status, reputation), checked top-down
RISK_BANDS = (
    (85, "malicious", "high risk"),
    (50, "suspicious", "medium risk"),
    (25, "suspicious", "low risk"),
)


def classify(risk_score: float) -> tuple[str, str]:
    for threshold, status, reputation in RISK_BANDS:
        if risk_score >= threshold:
            return status, reputation
    return "safe", "good"


def _flags(data: dict, names: dict[str, str]) -> list[str]:
    return [label for field, label in names.items() if data.get(field)]


class IPQSProvider(LookupProvider):
    """IPQualityScore phone / email / url / ip reputation."""

    def build_request(self, lookup_type: str, value: str) -> ApiCallDetails:
        if lookup_type not in SUPPORTED_TYPES:
            raise ProviderError(f"Unsupported type: {lookup_type}")

        body = {
            "key": self.config.api_key,
            "strictness": "1",
            lookup_type: value,
        }
        return ApiCallDetails(
            method="POST",
            url=f"{self.config.url.rstrip('/')}/{lookup_type}",
            headers=self.base_headers(),
            body=body,
        )

    def fallback_call(self, lookup_type: str, value: str) -> ApiCallDetails | None:
        return ApiCallDetails(
            method="POST",
            url=f"{self.config.url.rstrip('/')}/unknown",
            headers=self.base_headers(),
            body={"error": "Request failed"},
        )

    def parse_response(
        self,
        lookup_type: str,
        value: str,
        data: dict,
        call: ApiCallDetails,
    ) -> ScamLookupResult:
        if data.get("success") is False:
            return error_result(
                lookup_type,
                value,
                self.provider_name,
                data.get("message") or "API error",
                call,
                raw_response=data,
            )

        if lookup_type == "phone":
            risk_score = to_score(data.get("fraud_score"))
            details = {
                "isScam": risk_score > 75,
                "country": data.get("country"),
                "region": data.get("region"),
                "carrier": data.get("carrier"),
                "lineType": data.get("line_type"),
                "reputation": data.get("reputation"),
                "riskFactors": _flags(data, {"VOIP": "VOIP", "prepaid": "Prepaid", "risky": "Risky"}),
            }
        elif lookup_type == "email":
            risk_score = to_score(data.get("fraud_score"))
            overall = data.get("overall_score")
            details = {
                "isScam": risk_score > 75,
                "reputation": "poor" if overall is not None and overall < 70 else "good",
                "riskFactors": _flags(
                    data,
                    {"disposable": "Disposable", "suspect": "Suspicious", "recent_abuse": "Recent Abuse"},
                ),
            }
        elif lookup_type == "url":
            risk_score = to_score(data.get("risk_score"))
            details = {
                "isScam": bool(data.get("malware") or data.get("phishing") or data.get("suspicious")),
                "reputation": data.get("reputation") or "unknown",
                "riskFactors": _flags(
                    data,
                    {"malware": "Malware", "phishing": "Phishing", "suspicious": "Suspicious"},
                ),
            }
        else:
            risk_score = to_score(data.get("fraud_score"))
            details = {
                "country": data.get("country_code"),
                "region": data.get("region"),
                "reputation": data.get("reputation"),
                "riskFactors": _flags(
                    data,
                    {"vpn": "VPN", "tor": "Tor", "proxy": "Proxy", "bot_status": "Bot"},
                ),
            }

        status, reputation = classify(risk_score)

        return ScamLookupResult(
            type=lookup_type,
            input=value,
            provider=self.provider_name,
            risk_score=risk_score,
            reputation=reputation,
            status=status,
            details=details,
            raw_response=data,
            timestamp=utc_timestamp(),
            api_call_details=call,
        )
