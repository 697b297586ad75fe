import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from beaware.models.api_config import ApiConfig
from beaware.schemas.lookup_schemas import ScamLookupResult
from beaware.services.lookup.abuseipdb import AbuseIPDBProvider
from beaware.services.lookup.base import LookupProvider, error_result
from beaware.services.lookup.generic import GenericProvider
from beaware.services.lookup.ipqs import IPQSProvider
from beaware.services.lookup.virustotal import VirusTotalProvider
from beaware.services.lookup_templates import has_parameter_mapping

logger = logging.getLogger(__name__)

NAMED_PROVIDERS: dict[str, type[LookupProvider]] = {
    "ipqs": IPQSProvider,
    "ipqualityscore": IPQSProvider,
    "virustotal": VirusTotalProvider,
    "abuseipdb": AbuseIPDBProvider,
}

TEST_INPUTS = {
    "phone": "+1234567890",
    "email": "test@example.com",
    "url": "https://example.com",
    "ip": "8.8.8.8",
    "domain": "example.com",
}

DEFAULT_MAX_WORKERS = 8


def get_lookup_provider(config: ApiConfig) -> LookupProvider:
    """
    A custom parameter mapping always wins: named integrations are only
    used for providers configured without one.
    """
    if has_parameter_mapping(config.parameter_mapping):
        return GenericProvider(config)

    provider_cls = NAMED_PROVIDERS.get((config.name or "").strip().lower(), GenericProvider)
    return provider_cls(config)


def lookup_scam_data(lookup_type: str, value: str, config: ApiConfig) -> ScamLookupResult:
    logger.info(
        "lookup_started provider=%s config_id=%s type=%s",
        config.name,
        config.id,
        lookup_type,
    )
    try:
        provider = get_lookup_provider(config)
    except Exception as exc:
        logger.exception("lookup_provider_init_failed provider=%s", config.name)
        return error_result(lookup_type, value, config.name, str(exc))

    return provider.lookup(lookup_type, value)


def lookup_all(
    lookup_type: str,
    value: str,
    configs: Iterable[ApiConfig],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[ScamLookupResult]:
    """
    One independent lookup per config, run concurrently.
    Results come back in config order, one per config.
    """
    configs = list(configs)
    if not configs:
        return []

    workers = max(1, min(max_workers, len(configs)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scam-lookup") as pool:
        return list(
            pool.map(lambda config: lookup_scam_data(lookup_type, value, config), configs)
        )


def test_api_config(
    lookup_type: str,
    config: ApiConfig,
    custom_input: str | None = None,
) -> ScamLookupResult:
    """Admin panel check that a provider config works, using canned sample inputs."""
    test_input = custom_input or TEST_INPUTS.get(lookup_type, "test")
    return lookup_scam_data(lookup_type, test_input, config)
