import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import requests

from beaware.models.api_config import DEFAULT_TIMEOUT_SECONDS, ApiConfig
from beaware.schemas.lookup_schemas import ApiCallDetails, ScamLookupResult

logger = logging.getLogger(__name__)

USER_AGENT = "BeAware-ScamChecker/1.0"


class ProviderError(Exception):
    """A provider call failed; turned into an 'unknown' result by LookupProvider.lookup."""


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_result(
    lookup_type: str,
    value: str,
    provider: str,
    message: str,
    call: ApiCallDetails | None = None,
    raw_response: Any = None,
) -> ScamLookupResult:
    return ScamLookupResult(
        type=lookup_type,
        input=value,
        provider=provider,
        risk_score=0,
        reputation="error",
        status="unknown",
        details={"error": message or "Unknown error"},
        raw_response=raw_response,
        timestamp=utc_timestamp(),
        api_call_details=call,
    )


class LookupProvider(ABC):
    """
    One configured third-party lookup service.

    Subclasses build the outbound request and map the provider's JSON
    into a ScamLookupResult. Every request goes out as a POST with a
    JSON body so inputs and keys never land in URLs or access logs.
    lookup() never raises.
    """

    display_name: str | None = None

    def __init__(self, config: ApiConfig):
        self.config = config

    @property
    def provider_name(self) -> str:
        return self.display_name or self.config.name

    @property
    def timeout(self) -> int:
        return self.config.timeout or DEFAULT_TIMEOUT_SECONDS

    def base_headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }

    @abstractmethod
    def build_request(self, lookup_type: str, value: str) -> ApiCallDetails:
        pass

    @abstractmethod
    def parse_response(
        self,
        lookup_type: str,
        value: str,
        data: dict,
        call: ApiCallDetails,
    ) -> ScamLookupResult:
        pass

    def fallback_call(self, lookup_type: str, value: str) -> ApiCallDetails | None:
        """Request details to show when build_request itself failed."""
        return None

    def send(self, call: ApiCallDetails) -> dict:
        try:
            resp = requests.post(
                call.url,
                headers=call.headers,
                json=call.body,
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise ProviderError(f"Request timed out after {self.timeout}s")
        except requests.RequestException as exc:
            raise ProviderError(f"Request failed: {exc}")

        if not resp.ok:
            raise ProviderError(f"API error: {resp.status_code} {resp.reason} - {resp.text}")

        try:
            data = resp.json()
        except ValueError:
            raise ProviderError("Provider returned a response that is not valid JSON")

        if not isinstance(data, dict):
            raise ProviderError("Provider returned an unexpected JSON payload")

        return data

    def lookup(self, lookup_type: str, value: str) -> ScamLookupResult:
        call = None
        try:
            call = self.build_request(lookup_type, value)
            data = self.send(call)
            result = self.parse_response(lookup_type, value, data, call)
        except ProviderError as exc:
            logger.warning(
                "lookup_failed provider=%s type=%s error=%s",
                self.provider_name,
                lookup_type,
                exc,
            )
            return error_result(
                lookup_type,
                value,
                self.provider_name,
                str(exc),
                call or self.fallback_call(lookup_type, value),
            )
        except Exception as exc:
            logger.exception(
                "lookup_crashed provider=%s type=%s",
                self.provider_name,
                lookup_type,
            )
            return error_result(
                lookup_type,
                value,
                self.provider_name,
                str(exc) or exc.__class__.__name__,
                call or self.fallback_call(lookup_type, value),
            )

        logger.info(
            "lookup_completed provider=%s type=%s status=%s risk_score=%s",
            self.provider_name,
            lookup_type,
            result.status,
            result.risk_score,
        )
        return result


def to_score(raw: Any) -> float:
    # falsy provider values (None, "", 0) count as 0
    if not raw:
        return 0
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ProviderError(f"Non-numeric risk score from provider: {raw!r}")
