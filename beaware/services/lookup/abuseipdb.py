from beaware.schemas.lookup_schemas import ApiCallDetails, ScamLookupResult
from beaware.services.lookup.base import LookupProvider, to_score, utc_timestamp

CHECK_PATH = "/api/v2/check"
MAX_AGE_DAYS = 90
MALICIOUS_CONFIDENCE = 50


class AbuseIPDBProvider(LookupProvider):
    display_name = "AbuseIPDB"

    def build_request(self, lookup_type: str, value: str) -> ApiCallDetails:
        headers = self.base_headers()
        headers["Key"] = self.config.api_key

        return ApiCallDetails(
            method="POST",
            url=f"{self.config.url.rstrip('/')}{CHECK_PATH}",
            headers=headers,
            body={
                "ip": value,
                "maxAgeInDays": MAX_AGE_DAYS,
                "verbose": True,
            },
        )

    def parse_response(
        self,
        lookup_type: str,
        value: str,
        data: dict,
        call: ApiCallDetails,
    ) -> ScamLookupResult:
        report = data.get("data") or {}
        confidence = to_score(report.get("abuseConfidencePercentage"))
        verdict = "malicious" if confidence > MALICIOUS_CONFIDENCE else "safe"

        return ScamLookupResult(
            type=lookup_type,
            input=value,
            provider=self.provider_name,
            risk_score=confidence,
            reputation=verdict,
            status=verdict,
            details=report,
            raw_response=data,
            timestamp=utc_timestamp(),
            api_call_details=call,
        )
