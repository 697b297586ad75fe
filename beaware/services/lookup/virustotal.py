from beaware.schemas.lookup_schemas import ApiCallDetails, ScamLookupResult
from beaware.services.lookup.base import LookupProvider, to_score, utc_timestamp

REPORT_PATH = "/vtapi/v2/file/report"


class VirusTotalProvider(LookupProvider):
    display_name = "VirusTotal"

    def _report_url(self) -> str:
        return f"{self.config.url.rstrip('/')}{REPORT_PATH}"

    def build_request(self, lookup_type: str, value: str) -> ApiCallDetails:
        return ApiCallDetails(
            method="POST",
            url=self._report_url(),
            headers=self.base_headers(),
            body={
                "apikey": self.config.api_key,
                "resource": value,
            },
        )

    def parse_response(
        self,
        lookup_type: str,
        value: str,
        data: dict,
        call: ApiCallDetails,
    ) -> ScamLookupResult:
        positives = to_score(data.get("positives"))
        verdict = "malicious" if positives > 0 else "safe"

        return ScamLookupResult(
            type=lookup_type,
            input=value,
            provider=self.provider_name,
            risk_score=positives,
            reputation=verdict,
            status=verdict,
            details=data,
            raw_response=data,
            timestamp=utc_timestamp(),
            api_call_details=call,
        )
