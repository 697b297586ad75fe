from beaware.schemas.lookup_schemas import ApiCallDetails, ScamLookupResult
from beaware.services.lookup.base import USER_AGENT, LookupProvider, to_score, utc_timestamp
from beaware.services.lookup_templates import (
    build_token_table,
    parse_json_object,
    render_mapping,
    render_url,
)

MALICIOUS_THRESHOLD = 80
SUSPICIOUS_THRESHOLD = 50
LOW_SUSPICIOUS_THRESHOLD = 20


def determine_status(risk_score: float) -> str:
    # 50 and 20 both map to suspicious; kept as configured upstream
    if risk_score >= MALICIOUS_THRESHOLD:
        return "malicious"
    if risk_score >= SUSPICIOUS_THRESHOLD:
        return "suspicious"
    if risk_score >= LOW_SUSPICIOUS_THRESHOLD:
        return "suspicious"
    return "safe"


class GenericProvider(LookupProvider):
    """Admin-templated provider: {{token}} mapping, headers and URL."""

    def build_request(self, lookup_type: str, value: str) -> ApiCallDetails:
        config = self.config
        tokens = build_token_table(value, config.api_key)

        mapping = parse_json_object(config.parameter_mapping, "parameter_mapping", config.name)
        custom_headers = parse_json_object(config.headers, "headers", config.name)

        params = render_mapping(mapping, tokens)
        if not params:
            params = {lookup_type: value}
            if config.api_key:
                params["key"] = config.api_key

        headers = render_mapping({"User-Agent": USER_AGENT, **custom_headers}, tokens)
        headers["Content-Type"] = "application/json"

        return ApiCallDetails(
            method="POST",
            url=render_url(config.url, tokens),
            headers=headers,
            body=params,
        )

    def fallback_call(self, lookup_type: str, value: str) -> ApiCallDetails | None:
        tokens = build_token_table(value, self.config.api_key)
        return ApiCallDetails(method="POST", url=render_url(self.config.url, tokens))

    def parse_response(
        self,
        lookup_type: str,
        value: str,
        data: dict,
        call: ApiCallDetails,
    ) -> ScamLookupResult:
        risk_score = to_score(data.get("risk_score") or data.get("score"))

        return ScamLookupResult(
            type=lookup_type,
            input=value,
            provider=self.provider_name,
            risk_score=risk_score,
            reputation=str(data.get("reputation") or "unknown"),
            status=determine_status(risk_score),
            details=data,
            raw_response=data,
            timestamp=utc_timestamp(),
            api_call_details=call,
        )
